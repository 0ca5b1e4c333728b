"""Bounded-concurrency driver that runs SiteAnalyzer over a URL list."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import aiohttp

from ..core.errors import ScanError
from .site_analyzer import SiteAnalyzer, SiteResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteProgress:
    """Progress notification emitted once per completed site."""

    index: int
    completed: int
    total: int
    url: str
    match_count: int
    script_rendered: bool
    flagged: bool
    status: str


ProgressHook = Callable[[SiteProgress], None]


def _call_hook(hook: ProgressHook, progress: SiteProgress) -> None:
    try:
        hook(progress)
    except Exception:
        logger.warning("progress hook failed for %s", progress.url, exc_info=True)


def log_progress(progress: SiteProgress) -> None:
    marker = " [flagged]" if progress.flagged else ""
    js = " [script-rendered]" if progress.script_rendered else ""
    logger.info(
        "[%d/%d] %s: %s, %d matches%s%s",
        progress.completed,
        progress.total,
        progress.url,
        progress.status,
        progress.match_count,
        js,
        marker,
    )


class BatchScheduler:
    """Runs at most ``config.concurrency`` site analyses at once."""

    def __init__(self, analyzer: SiteAnalyzer) -> None:
        self.analyzer = analyzer
        self.config = analyzer.config

    def _session(self) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(limit=self.config.concurrency, ssl=False)
        return aiohttp.ClientSession(connector=connector)

    async def _run_one(
        self,
        index: int,
        url: str,
        session: aiohttp.ClientSession,
        semaphore: asyncio.Semaphore,
    ) -> tuple[int, SiteResult]:
        async with semaphore:
            return index, await self.analyzer.analyze(session, url)

    async def run(
        self,
        urls: Sequence[str],
        progress_hook: Optional[ProgressHook] = None,
    ) -> List[SiteResult]:
        """Analyze every URL; ``results[i]`` always belongs to ``urls[i]``."""

        total = len(urls)
        results: List[Optional[SiteResult]] = [None] * total
        if not total:
            return []
        semaphore = asyncio.Semaphore(self.config.concurrency)
        async with self._session() as session:
            tasks = [
                asyncio.create_task(self._run_one(idx, url, session, semaphore))
                for idx, url in enumerate(urls)
            ]
            completed = 0
            try:
                for future in asyncio.as_completed(tasks):
                    index, result = await future
                    results[index] = result
                    completed += 1
                    self._notify(progress_hook, index, completed, total, result)
            except Exception as exc:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise ScanError(f"batch aborted by internal error: {exc}") from exc

        # Deferred progress callbacks run before the results are handed back.
        await asyncio.sleep(0)

        missing = [urls[i] for i, r in enumerate(results) if r is None]
        if missing:
            raise ScanError(f"batch finished without results for {len(missing)} url(s)")
        return [r for r in results if r is not None]

    def _notify(
        self,
        hook: Optional[ProgressHook],
        index: int,
        completed: int,
        total: int,
        result: SiteResult,
    ) -> None:
        progress = SiteProgress(
            index=index,
            completed=completed,
            total=total,
            url=result.url,
            match_count=len(result.links),
            script_rendered=result.script_rendered,
            flagged=result.flagged,
            status=result.status_label,
        )
        log_progress(progress)
        if hook is None:
            return
        asyncio.get_running_loop().call_soon(_call_hook, hook, progress)
