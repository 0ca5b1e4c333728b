"""Single-page HTTP retrieval with error classification.

One GET per URL through a shared ``aiohttp.ClientSession``. Server errors
(5xx) and transport failures come back as a failed :class:`FetchOutcome`
instead of raising, so a bad site never aborts a batch.
"""

from __future__ import annotations

import asyncio
import logging
import random
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import aiohttp

from .scout_config import HDR_ACCEPT, HDR_ACCEPT_LANGUAGE, HDR_USER_AGENT, ScoutConfig
from .scout_utils import pick_user_agent

logger = logging.getLogger(__name__)


class FetchFailure(str, Enum):
    TIMEOUT = "timeout"
    DNS_FAILURE = "dns_failure"
    CONNECTION_REFUSED = "connection_refused"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class FetchOutcome:
    """Container for a single fetch attempt."""

    url: str
    ok: bool
    status_code: Optional[int] = None
    body: str = ""
    body_length: int = 0
    failure: Optional[FetchFailure] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, url: str, status_code: int, raw: bytes, charset: Optional[str] = None) -> "FetchOutcome":
        return cls(
            url=url,
            ok=True,
            status_code=status_code,
            body=_decode_body(raw, charset),
            body_length=len(raw),
        )

    @classmethod
    def failed(
        cls,
        url: str,
        failure: FetchFailure,
        *,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
    ) -> "FetchOutcome":
        return cls(url=url, ok=False, status_code=status_code, failure=failure, error=error)


def _decode_body(raw: bytes, charset: Optional[str]) -> str:
    if not raw:
        return ""
    try:
        return raw.decode(charset or "utf-8", "ignore")
    except LookupError:
        return raw.decode("utf-8", "ignore")


def classify_fetch_error(exc: BaseException) -> FetchFailure:
    """Map a transport exception onto the closed failure set."""

    if isinstance(exc, asyncio.TimeoutError):
        return FetchFailure.TIMEOUT
    if isinstance(exc, aiohttp.ClientConnectorError):
        os_error = getattr(exc, "os_error", None)
        if isinstance(os_error, socket.gaierror):
            return FetchFailure.DNS_FAILURE
        if isinstance(os_error, ConnectionRefusedError):
            return FetchFailure.CONNECTION_REFUSED
    if isinstance(exc, ConnectionRefusedError):
        return FetchFailure.CONNECTION_REFUSED
    if isinstance(exc, socket.gaierror):
        return FetchFailure.DNS_FAILURE
    return FetchFailure.NETWORK_ERROR


class ContentFetcher:
    """Fetches one page at a time with spoofed browser headers and lax TLS."""

    def __init__(self, config: ScoutConfig, rng: Optional[random.Random] = None) -> None:
        self.config = config
        self._rng = rng

    def build_headers(self) -> Dict[str, str]:
        return {
            HDR_USER_AGENT: pick_user_agent(self.config.user_agents, self._rng),
            HDR_ACCEPT: self.config.accept,
            HDR_ACCEPT_LANGUAGE: self.config.accept_language,
        }

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> FetchOutcome:
        try:
            status, raw, charset = await self._fetch_with_retries(session, url)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            failure = classify_fetch_error(exc)
            detail = str(exc) or exc.__class__.__name__
            logger.debug("fetch failed for %s: %s (%s)", url, failure.value, detail)
            return FetchOutcome.failed(url, failure, error=detail)
        if status >= 500:
            return FetchOutcome.failed(url, FetchFailure.HTTP_ERROR, status_code=status, error=f"HTTP {status}")
        return FetchOutcome.success(url, status, raw, charset)

    async def _fetch_with_retries(
        self,
        session: aiohttp.ClientSession,
        url: str,
    ) -> tuple[int, bytes, Optional[str]]:
        delay = self.config.backoff_initial
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                return await self._fetch_once(session, url)
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                if attempt == self.config.max_attempts:
                    raise
                logger.debug("retrying %s after attempt %d: %r", url, attempt, exc)
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.config.backoff_max)
        raise RuntimeError("unexpected retry state")

    async def _fetch_once(
        self,
        session: aiohttp.ClientSession,
        url: str,
    ) -> tuple[int, bytes, Optional[str]]:
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ssl=False,
            headers=self.build_headers(),
            max_redirects=self.config.max_redirects,
        ) as resp:
            raw = await resp.read()
            return resp.status, raw, resp.charset
