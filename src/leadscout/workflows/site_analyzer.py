"""Per-site orchestration: fetch, parse, classify, assemble a SiteResult."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from ..core.keys import (
    K_DESCRIPTION,
    K_DESTINATION_URL,
    K_ERROR,
    K_FLAGGED,
    K_HTTP_STATUS,
    K_LINKS,
    K_MATCHED_TERMS,
    K_SCRIPT_RENDERED,
    K_STATUS,
    K_URL,
)
from .content_fetcher import ContentFetcher, FetchFailure, FetchOutcome
from .link_context import iter_anchors, parse_document
from .relevance import KeywordPolicy, LinkCandidate, classify
from .scout_config import ScoutConfig
from .scout_utils import contains_any

logger = logging.getLogger(__name__)


class SiteStatus(str, Enum):
    PENDING = "pending"
    ONLINE = "online"
    SHORT_CONTENT = "short_content"
    HTTP_ERROR = "http_error"
    TIMEOUT = "timeout"
    DNS_FAILURE = "dns_failure"
    CONNECTION_REFUSED = "connection_refused"
    NETWORK_ERROR = "network_error"


_FAILURE_STATUS = {
    FetchFailure.TIMEOUT: SiteStatus.TIMEOUT,
    FetchFailure.DNS_FAILURE: SiteStatus.DNS_FAILURE,
    FetchFailure.CONNECTION_REFUSED: SiteStatus.CONNECTION_REFUSED,
    FetchFailure.HTTP_ERROR: SiteStatus.HTTP_ERROR,
    FetchFailure.NETWORK_ERROR: SiteStatus.NETWORK_ERROR,
}

_STATUS_LABELS = {
    SiteStatus.PENDING: "Pending",
    SiteStatus.ONLINE: "Online",
    SiteStatus.SHORT_CONTENT: "Short content/JS",
    SiteStatus.TIMEOUT: "Timeout",
    SiteStatus.DNS_FAILURE: "DNS Error",
    SiteStatus.CONNECTION_REFUSED: "Connection refused",
    SiteStatus.NETWORK_ERROR: "Network error",
}


@dataclass(frozen=True)
class SiteResult:
    url: str
    status: SiteStatus
    http_status: Optional[int] = None
    links: Tuple[LinkCandidate, ...] = ()
    matched_terms: Tuple[str, ...] = ()
    script_rendered: bool = False
    flagged: bool = False
    error: Optional[str] = None

    @property
    def status_label(self) -> str:
        if self.status is SiteStatus.HTTP_ERROR:
            return f"HTTP {self.http_status}" if self.http_status is not None else "HTTP error"
        return _STATUS_LABELS[self.status]

    @property
    def reachable(self) -> bool:
        return self.status in {SiteStatus.ONLINE, SiteStatus.SHORT_CONTENT}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            K_URL: self.url,
            K_STATUS: self.status_label,
            K_LINKS: [
                {K_DESCRIPTION: link.description, K_DESTINATION_URL: link.destination_url}
                for link in self.links
            ],
            K_MATCHED_TERMS: list(self.matched_terms),
            K_SCRIPT_RENDERED: self.script_rendered,
            K_FLAGGED: self.flagged,
        }
        if self.http_status is not None:
            payload[K_HTTP_STATUS] = self.http_status
        if self.error:
            payload[K_ERROR] = self.error
        return payload


@dataclass
class PageScan:
    links: List[LinkCandidate] = field(default_factory=list)
    matched_terms: List[str] = field(default_factory=list)
    script_rendered: bool = False


class SiteAnalyzer:
    """Turns one URL into one terminal :class:`SiteResult`."""

    def __init__(
        self,
        config: ScoutConfig,
        policy: KeywordPolicy,
        fetcher: Optional[ContentFetcher] = None,
    ) -> None:
        self.config = config
        self.policy = policy
        self.fetcher = fetcher or ContentFetcher(config)

    def is_flagged(self, url: str) -> bool:
        return contains_any(url.lower(), (p.lower() for p in self.config.flag_patterns))

    def analyze_html(self, url: str, html: str) -> PageScan:
        """Extract and classify every anchor of *html* fetched from *url*."""

        scan = PageScan()
        seen: set[str] = set()
        soup = parse_document(html)
        cap = self.config.max_links_per_site
        for anchor in iter_anchors(soup, self.config.ignored_patterns):
            if len(scan.links) >= cap:
                break
            verdict = classify(anchor, url, self.policy, self.config.short_labels)
            if not verdict.matched or verdict.candidate is None:
                logger.debug("rejected %s on %s: %s", anchor.href, url, verdict.reason)
                continue
            destination = verdict.candidate.destination_url
            if destination in seen:
                continue
            seen.add(destination)
            scan.links.append(verdict.candidate)
            for term in verdict.found_terms:
                if term not in scan.matched_terms:
                    scan.matched_terms.append(term)

        if not scan.links:
            # Whole markup, inline <script> bodies included.
            scan.script_rendered = contains_any((html or "").lower(), self.policy.positive)
        return scan

    def result_from_outcome(self, url: str, outcome: FetchOutcome) -> SiteResult:
        flagged = self.is_flagged(url)
        if not outcome.ok:
            failure = outcome.failure or FetchFailure.NETWORK_ERROR
            return SiteResult(
                url=url,
                status=_FAILURE_STATUS[failure],
                http_status=outcome.status_code,
                flagged=flagged,
                error=outcome.error,
            )
        if outcome.status_code != 200:
            return SiteResult(
                url=url,
                status=SiteStatus.HTTP_ERROR,
                http_status=outcome.status_code,
                flagged=flagged,
            )

        if outcome.body_length < self.config.short_content_bytes:
            status = SiteStatus.SHORT_CONTENT
        else:
            status = SiteStatus.ONLINE
        scan = self.analyze_html(url, outcome.body)
        return SiteResult(
            url=url,
            status=status,
            http_status=outcome.status_code,
            links=tuple(scan.links),
            matched_terms=tuple(scan.matched_terms),
            script_rendered=scan.script_rendered,
            flagged=flagged,
        )

    async def analyze(self, session: aiohttp.ClientSession, url: str) -> SiteResult:
        outcome = await self.fetcher.fetch(session, url)
        result = self.result_from_outcome(url, outcome)
        logger.debug(
            "%s -> %s (%d links, script_rendered=%s)",
            url,
            result.status_label,
            len(result.links),
            result.script_rendered,
        )
        return result
