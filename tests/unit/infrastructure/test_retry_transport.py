"""Tests for RetryTransport (429/503 retry) and the shared client factory."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from clipharvest.infrastructure.common.retry_transport import (
    RetryTransport,
    build_http_client,
)

_SLEEP_TARGET = "clipharvest.infrastructure.common.retry_transport.asyncio.sleep"


def _response(status: int = 200, headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(status_code=status, headers=headers or {})


def _request() -> httpx.Request:
    return httpx.Request("GET", "https://www.douyin.com/aweme/v1/web/aweme/detail/")


def _transport(
    responses: list[httpx.Response] | httpx.Response,
    **kwargs: float,
) -> RetryTransport:
    wrapped = AsyncMock(spec=httpx.AsyncBaseTransport)
    if isinstance(responses, list):
        wrapped.handle_async_request = AsyncMock(side_effect=responses)
    else:
        wrapped.handle_async_request = AsyncMock(return_value=responses)
    return RetryTransport(wrapped, **kwargs)  # type: ignore[arg-type]


class TestRetryTransport:
    @pytest.mark.asyncio()
    async def test_passes_through_success(self) -> None:
        transport = _transport(_response(200))
        resp = await transport.handle_async_request(_request())
        assert resp.status_code == 200

    @pytest.mark.asyncio()
    async def test_other_errors_not_retried(self) -> None:
        transport = _transport(_response(500))
        resp = await transport.handle_async_request(_request())
        assert resp.status_code == 500
        assert transport._wrapped.handle_async_request.call_count == 1

    @pytest.mark.asyncio()
    async def test_retries_429_then_succeeds(self) -> None:
        transport = _transport([_response(429), _response(200)])
        with patch(_SLEEP_TARGET, new_callable=AsyncMock) as sleep:
            resp = await transport.handle_async_request(_request())
        assert resp.status_code == 200
        assert sleep.await_count == 1

    @pytest.mark.asyncio()
    async def test_gives_up_after_max_retries(self) -> None:
        transport = _transport(
            [_response(503), _response(503), _response(503)], max_retries=2
        )
        with patch(_SLEEP_TARGET, new_callable=AsyncMock) as sleep:
            resp = await transport.handle_async_request(_request())
        assert resp.status_code == 503
        assert sleep.await_count == 2
        assert transport._wrapped.handle_async_request.call_count == 3


class TestComputeDelay:
    def test_retry_after_wins(self) -> None:
        transport = _transport(_response(200), max_backoff=30.0)
        assert transport.compute_delay(_response(429, {"Retry-After": "7"}), 0) == 7.0

    def test_retry_after_capped(self) -> None:
        transport = _transport(_response(200), max_backoff=5.0)
        assert transport.compute_delay(_response(429, {"Retry-After": "60"}), 0) == 5.0

    def test_unparseable_retry_after_uses_backoff(self) -> None:
        transport = _transport(_response(200), jitter=0.0)
        resp = _response(429, {"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})
        assert transport.compute_delay(resp, 1) == 2.0

    def test_exponential_with_jitter_bounds(self) -> None:
        transport = _transport(_response(200), backoff_base=1.0, jitter=0.25)
        for _ in range(20):
            delay = transport.compute_delay(_response(503), 2)
            assert 3.0 <= delay <= 5.0


class TestBuildHttpClient:
    @pytest.mark.asyncio()
    async def test_client_follows_redirects(self) -> None:
        client = build_http_client(timeout=5.0, max_redirects=3)
        assert client.follow_redirects is True
        assert client.max_redirects == 3
        assert isinstance(client._transport, RetryTransport)
        await client.aclose()
