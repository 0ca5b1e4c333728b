"""High-level exports for the scan workflows."""

from .aggregate import Opportunity, aggregate
from .batch import BatchScheduler, SiteProgress
from .content_fetcher import ContentFetcher, FetchFailure, FetchOutcome
from .link_context import AnchorInfo, extract_anchors, iter_anchors, parse_document
from .relevance import DEFAULT_POLICY, Classification, KeywordPolicy, LinkCandidate, classify
from .scout import ScanReport, run_scan, scan_site, scan_sites
from .scout_config import ScoutConfig
from .site_analyzer import SiteAnalyzer, SiteResult, SiteStatus

__all__ = [
    "AnchorInfo",
    "BatchScheduler",
    "Classification",
    "ContentFetcher",
    "DEFAULT_POLICY",
    "FetchFailure",
    "FetchOutcome",
    "KeywordPolicy",
    "LinkCandidate",
    "Opportunity",
    "ScanReport",
    "ScoutConfig",
    "SiteAnalyzer",
    "SiteProgress",
    "SiteResult",
    "SiteStatus",
    "aggregate",
    "classify",
    "extract_anchors",
    "iter_anchors",
    "parse_document",
    "run_scan",
    "scan_site",
    "scan_sites",
]
