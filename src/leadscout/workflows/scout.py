"""Scan pipeline entry points: batch run, report assembly and sync wrappers."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..core.keys import K_DATA, K_DURATION_MS, K_META, K_OPPORTUNITIES_FOUND, K_TOTAL_SITES
from .aggregate import Opportunity, aggregate
from .batch import BatchScheduler, ProgressHook
from .content_fetcher import ContentFetcher
from .relevance import KeywordPolicy
from .scout_config import ScoutConfig
from .site_analyzer import SiteAnalyzer, SiteResult

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """Response envelope for one scan run."""

    total_sites: int
    duration_ms: int
    opportunities: List[Opportunity] = field(default_factory=list)
    sites: List[SiteResult] = field(default_factory=list)

    @property
    def opportunities_found(self) -> int:
        return len(self.opportunities)

    def status_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for site in self.sites:
            counts[site.status.value] = counts.get(site.status.value, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            K_META: {
                K_TOTAL_SITES: self.total_sites,
                K_OPPORTUNITIES_FOUND: self.opportunities_found,
                K_DURATION_MS: self.duration_ms,
            },
            K_DATA: [row.to_dict() for row in self.opportunities],
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)


def build_scheduler(
    policy: KeywordPolicy,
    config: Optional[ScoutConfig] = None,
    fetcher: Optional[ContentFetcher] = None,
) -> BatchScheduler:
    cfg = config or ScoutConfig()
    return BatchScheduler(SiteAnalyzer(cfg, policy, fetcher=fetcher))


async def run_scan(
    urls: Sequence[str],
    policy: KeywordPolicy,
    config: Optional[ScoutConfig] = None,
    *,
    progress_hook: Optional[ProgressHook] = None,
    fetcher: Optional[ContentFetcher] = None,
) -> ScanReport:
    """Fetch and classify every URL, then aggregate the matches."""

    scheduler = build_scheduler(policy, config, fetcher)
    start = time.perf_counter()
    sites = await scheduler.run(list(urls), progress_hook=progress_hook)
    opportunities = aggregate(sites)
    duration_ms = int((time.perf_counter() - start) * 1000)
    report = ScanReport(
        total_sites=len(urls),
        duration_ms=duration_ms,
        opportunities=opportunities,
        sites=sites,
    )
    failed = sum(1 for s in sites if not s.reachable)
    script_rendered = sum(1 for s in sites if s.script_rendered)
    logger.info(
        "scan finished: %d sites, %d opportunities, %d failed, %d script-rendered, %d ms",
        report.total_sites,
        report.opportunities_found,
        failed,
        script_rendered,
        duration_ms,
    )
    return report


async def analyze_site(
    url: str,
    policy: KeywordPolicy,
    config: Optional[ScoutConfig] = None,
    *,
    fetcher: Optional[ContentFetcher] = None,
) -> SiteResult:
    """Analyze one URL outside of a batch."""

    scheduler = build_scheduler(policy, config, fetcher)
    results = await scheduler.run([url])
    return results[0]


# ---------------- Single event loop helper for this module ------------------
_SCAN_LOOP: asyncio.AbstractEventLoop | None = None


def _run_in_scan_loop(coro):
    global _SCAN_LOOP
    if _SCAN_LOOP is None or _SCAN_LOOP.is_closed():
        _SCAN_LOOP = asyncio.new_event_loop()
    return _SCAN_LOOP.run_until_complete(coro)


def scan_sites(
    urls: Sequence[str],
    policy: KeywordPolicy,
    config: Optional[ScoutConfig] = None,
    *,
    progress_hook: Optional[ProgressHook] = None,
) -> ScanReport:
    """Synchronous wrapper around :func:`run_scan`."""

    return _run_in_scan_loop(run_scan(urls, policy, config, progress_hook=progress_hook))


def scan_site(url: str, policy: KeywordPolicy, config: Optional[ScoutConfig] = None) -> SiteResult:
    return _run_in_scan_loop(analyze_site(url, policy, config))
