from __future__ import annotations

import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, TextIO, Tuple

from dotenv import find_dotenv, load_dotenv

from .core.errors import ScanInputError
from .workflows.batch import ProgressHook
from .workflows.relevance import KeywordPolicy
from .workflows.scout import ScanReport, scan_sites
from .workflows.scout_config import MAX_POSITIVE_KEYWORDS, MAX_URLS_PER_SCAN, ScoutConfig
from .workflows.scout_utils import is_absolute_http_url

logger = logging.getLogger(__name__)


def parse_manifest_lines(lines: Iterable[str]) -> List[str]:
    urls: List[str] = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("#"):
            continue
        if any(ch.isspace() for ch in line):
            raise ScanInputError(f"Invalid manifest line (inline metadata not allowed): {raw_line.rstrip()}")
        urls.append(line)
    return urls


def load_manifest(path_or_dash: str, *, stdin: Optional[TextIO] = None) -> List[str]:
    if path_or_dash == "-":
        stream = stdin or sys.stdin
        return parse_manifest_lines(stream.read().splitlines())
    path = Path(path_or_dash)
    if not path.exists():
        raise FileNotFoundError(f"Manifest not found: {path}")
    return parse_manifest_lines(path.read_text(encoding="utf-8").splitlines())


def load_terms(path: Optional[Path]) -> List[str]:
    """Read one keyword per line; blank lines and ``#`` comments are skipped."""

    if path is None:
        return []
    terms: List[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        term = line.strip()
        if term and not term.startswith("#"):
            terms.append(term)
    return terms


def validate_urls(urls: Sequence[str]) -> List[str]:
    """Reject empty/oversized lists and drop malformed URLs."""

    if not urls:
        raise ScanInputError("URL list is empty.")
    if len(urls) > MAX_URLS_PER_SCAN:
        raise ScanInputError(f"URL limit exceeded: {len(urls)} > {MAX_URLS_PER_SCAN}.")
    valid: List[str] = []
    for raw in urls:
        url = (raw or "").strip() if isinstance(raw, str) else ""
        if not is_absolute_http_url(url):
            logger.warning("dropping malformed url: %r", raw)
            continue
        valid.append(url)
    if not valid:
        raise ScanInputError("No valid URLs supplied.")
    return valid


def build_policy(
    positive: Optional[Sequence[str]] = None,
    strong_negative: Optional[Sequence[str]] = None,
    weak_negative: Optional[Sequence[str]] = None,
) -> KeywordPolicy:
    if positive and len(positive) > MAX_POSITIVE_KEYWORDS:
        raise ScanInputError(f"Too many positive keywords: {len(positive)} > {MAX_POSITIVE_KEYWORDS}.")
    return KeywordPolicy.build(positive, strong_negative, weak_negative)


def _env_int(name: str, default: int) -> int:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def config_from_env(base: Optional[ScoutConfig] = None) -> ScoutConfig:
    """Apply ``LEADSCOUT_*`` overrides (a local .env included) on top of *base*."""

    load_dotenv(find_dotenv(usecwd=True), override=False)
    config = base or ScoutConfig()
    timeout = _env_float("LEADSCOUT_TIMEOUT", config.timeout)
    return replace(
        config,
        timeout=timeout if timeout > 0 else config.timeout,
        concurrency=max(1, _env_int("LEADSCOUT_CONCURRENCY", config.concurrency)),
        max_links_per_site=max(1, _env_int("LEADSCOUT_MAX_LINKS", config.max_links_per_site)),
        max_attempts=max(1, _env_int("LEADSCOUT_MAX_ATTEMPTS", config.max_attempts)),
    )


def build_config(
    *,
    timeout: Optional[float] = None,
    concurrency: Optional[int] = None,
    max_links: Optional[int] = None,
    attempts: Optional[int] = None,
) -> ScoutConfig:
    """Environment first, explicit arguments win."""

    config = config_from_env()
    overrides: Dict[str, Any] = {}
    if timeout is not None:
        overrides["timeout"] = timeout
    if concurrency is not None:
        overrides["concurrency"] = concurrency
    if max_links is not None:
        overrides["max_links_per_site"] = max_links
    if attempts is not None:
        overrides["max_attempts"] = attempts
    try:
        return replace(config, **overrides) if overrides else config
    except ValueError as exc:
        raise ScanInputError(str(exc)) from exc


def render_site_summary(report: ScanReport) -> str:
    lines: List[str] = []
    for site in report.sites:
        flags = []
        if site.script_rendered:
            flags.append("script-rendered")
        if site.flagged:
            flags.append("flagged")
        suffix = f" ({', '.join(flags)})" if flags else ""
        lines.append(f"{site.status_label:<20} {len(site.links):>4}  {site.url}{suffix}")
    counts = report.status_counts()
    lines.append(
        "total: {sites} sites, {opps} opportunities, {ms} ms [{breakdown}]".format(
            sites=report.total_sites,
            opps=report.opportunities_found,
            ms=report.duration_ms,
            breakdown=", ".join(f"{k}={v}" for k, v in sorted(counts.items())),
        )
    )
    return "\n".join(lines)


def run_consumer(
    urls: Sequence[str],
    *,
    policy: KeywordPolicy,
    config: ScoutConfig,
    progress_hook: Optional[ProgressHook] = None,
    strict: bool = False,
) -> Tuple[ScanReport, int]:
    """Validate input, run the scan and return the report plus an exit code.

    With *strict*, a run where no site could be read exits with 3.
    """

    valid = validate_urls(urls)
    dropped = len(urls) - len(valid)
    if dropped:
        logger.warning("%d of %d urls dropped during validation", dropped, len(urls))
    report = scan_sites(valid, policy, config, progress_hook=progress_hook)
    exit_code = 0
    if strict and not any(site.reachable for site in report.sites):
        exit_code = 3
    return report, exit_code
