"""
Metrics endpoint scraper.

Fetches exposition text for one target with a hard deadline and a hard
response-size ceiling. Every failure is raised as a ``ScrapeError`` scoped
to that target; callers decide whether to continue with other targets.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from promrdf.discovery.models import Target

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
ACCEPT_HEADER = "text/plain;version=0.0.4;q=1,*/*;q=0.1"


def is_retryable_status(status_code: int | None) -> bool:
    """Connection failures (no status) and overload/server statuses are worth retrying."""
    return status_code is None or status_code in (408, 429, 500, 502, 503, 504)


class ScrapeError(Exception):
    """Base class for failures scraping a single target."""

    kind = "error"

    def __init__(self, target: Target, message: str) -> None:
        super().__init__(f"{target.url}: {message}")
        self.target = target
        self.message = message


class ScrapeTimeout(ScrapeError):
    """The target did not deliver a complete response in time."""

    kind = "timeout"


class ScrapeTooLarge(ScrapeError):
    """The response exceeded the size ceiling."""

    kind = "too_large"


class ScrapeUnreachable(ScrapeError):
    """Connection failure (``status`` is None) or an HTTP error status."""

    kind = "unreachable"

    def __init__(self, target: Target, message: str, status: int | None = None) -> None:
        super().__init__(target, message)
        self.status = status

    @property
    def retryable(self) -> bool:
        return is_retryable_status(self.status)


def _should_retry(exc: BaseException) -> bool:
    return isinstance(exc, ScrapeUnreachable) and exc.retryable


class Scraper:
    """
    HTTP scraper shared by all workers of a scan.

    Use as an async context manager so the underlying connection pool is
    closed::

        async with Scraper(timeout=5.0) as scraper:
            text = await scraper.fetch(target)

    Args:
        timeout: Hard per-target deadline in seconds, retries included
        max_bytes: Response-size ceiling
        retries: Extra attempts for connection errors and 408/429/5xx
        concurrency: Maximum simultaneous connections
        backoff: Exponential backoff multiplier between retries
        client: Pre-built httpx client (not closed by the scraper)
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        retries: int = 1,
        concurrency: int = 16,
        backoff: float = 0.2,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.retries = retries
        self.concurrency = concurrency
        self.backoff = backoff
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> Scraper:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                limits=httpx.Limits(max_connections=self.concurrency),
                headers={"Accept": ACCEPT_HEADER},
                follow_redirects=True,
            )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self,
        target: Target,
        timeout: float | None = None,
        max_bytes: int | None = None,
    ) -> str:
        """
        Fetch the exposition text of one target.

        Raises:
            ScrapeTimeout: Deadline exceeded
            ScrapeTooLarge: Body larger than ``max_bytes``
            ScrapeUnreachable: Connection failure or HTTP error status
        """
        deadline = timeout if timeout is not None else self.timeout
        ceiling = max_bytes if max_bytes is not None else self.max_bytes

        try:
            return await asyncio.wait_for(self._fetch_with_retries(target, ceiling), deadline)
        except asyncio.TimeoutError:
            raise ScrapeTimeout(target, f"no complete response within {deadline}s") from None

    async def _fetch_with_retries(self, target: Target, max_bytes: int) -> str:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_exponential(multiplier=self.backoff, max=2),
            retry=retry_if_exception(_should_retry),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.debug(
                        "scrape_retry",
                        url=target.url,
                        attempt=attempt.retry_state.attempt_number,
                    )
                return await self._get(target, max_bytes)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _get(self, target: Target, max_bytes: int) -> str:
        if self._client is None:
            raise RuntimeError("Scraper used outside of its async context")

        try:
            async with self._client.stream("GET", target.url) as response:
                if response.status_code >= 400:
                    raise ScrapeUnreachable(
                        target, f"HTTP {response.status_code}", status=response.status_code
                    )

                declared = response.headers.get("Content-Length", "")
                if declared.isdigit() and int(declared) > max_bytes:
                    raise ScrapeTooLarge(
                        target, f"declared length {declared} exceeds {max_bytes} bytes"
                    )

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > max_bytes:
                        raise ScrapeTooLarge(target, f"body exceeds {max_bytes} bytes")
                encoding = response.encoding or "utf-8"
        except httpx.TimeoutException as exc:
            raise ScrapeTimeout(target, f"timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ScrapeUnreachable(target, f"request failed: {exc}") from exc

        try:
            return body.decode(encoding, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")
