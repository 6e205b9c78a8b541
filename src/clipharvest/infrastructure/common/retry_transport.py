"""httpx transport that retries upstream throttling responses (429/503)."""

from __future__ import annotations

import asyncio
import random

import httpx
import structlog

log = structlog.get_logger(__name__)

_DEFAULT_RETRYABLE = frozenset({429, 503})


def _parse_retry_after(headers: httpx.Headers) -> float | None:
    """Parse ``Retry-After`` header value (seconds only).

    Returns the delay in seconds, or ``None`` if the header is missing
    or unparseable. HTTP-date values are ignored.
    """
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


class RetryTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx transport with retry on 429/503.

    Waits using exponential backoff (``base * factor**attempt``, capped at
    *max_backoff*, with ±25% jitter) and retries up to *max_retries* times.
    ``Retry-After`` wins over the computed delay when present.
    """

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 2,
        backoff_base: float = 1.0,
        backoff_factor: float = 2.0,
        max_backoff: float = 10.0,
        jitter: float = 0.25,
        retryable_status_codes: frozenset[int] = _DEFAULT_RETRYABLE,
    ) -> None:
        self._wrapped = wrapped
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._backoff_factor = backoff_factor
        self._max_backoff = max_backoff
        self._jitter = jitter
        self._retryable = retryable_status_codes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        for attempt in range(1 + self._max_retries):
            response = await self._wrapped.handle_async_request(request)

            if response.status_code not in self._retryable:
                return response

            if attempt == self._max_retries:
                return response

            # Read + close the retryable response before retrying
            await response.aread()
            await response.aclose()

            delay = self.compute_delay(response, attempt)
            log.info(
                "http_retry",
                url=str(request.url),
                status=response.status_code,
                attempt=attempt + 1,
                delay=round(delay, 2),
            )
            await asyncio.sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover

    def compute_delay(self, response: httpx.Response, attempt: int) -> float:
        """Compute retry delay from Retry-After or exponential backoff."""
        retry_after = _parse_retry_after(response.headers)
        if retry_after is not None:
            return min(retry_after, self._max_backoff)

        delay = min(
            self._backoff_base * (self._backoff_factor**attempt), self._max_backoff
        )
        spread = delay * self._jitter
        return max(0.0, delay + random.uniform(-spread, spread))  # noqa: S311

    async def aclose(self) -> None:
        """Close the wrapped transport."""
        await self._wrapped.aclose()


def build_http_client(
    *,
    timeout: float,
    max_redirects: int = 10,
    max_retries: int = 2,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared AsyncClient used by the request proxy."""
    return httpx.AsyncClient(
        transport=RetryTransport(
            transport or httpx.AsyncHTTPTransport(),
            max_retries=max_retries,
        ),
        timeout=timeout,
        follow_redirects=True,
        max_redirects=max_redirects,
    )
