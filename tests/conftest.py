from __future__ import annotations

import asyncio
from typing import Dict, Optional

import pytest

from leadscout.workflows.content_fetcher import FetchFailure, FetchOutcome


class FakeFetcher:
    """Serves canned pages and records how many fetches overlap."""

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        *,
        failures: Optional[Dict[str, FetchFailure]] = None,
        statuses: Optional[Dict[str, int]] = None,
        delays: Optional[Dict[str, float]] = None,
        default_delay: float = 0.0,
    ) -> None:
        self.pages = pages or {}
        self.failures = failures or {}
        self.statuses = statuses or {}
        self.delays = delays or {}
        self.default_delay = default_delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls = []

    async def fetch(self, session, url: str) -> FetchOutcome:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, self.default_delay))
        finally:
            self.in_flight -= 1
        if url in self.failures:
            return FetchOutcome.failed(url, self.failures[url], error="simulated")
        html = self.pages.get(url, "<html><body></body></html>")
        return FetchOutcome.success(url, self.statuses.get(url, 200), html.encode("utf-8"))


@pytest.fixture
def fake_fetcher():
    """Factory for :class:`FakeFetcher` instances."""

    return FakeFetcher
