"""Serialized, caching gateway for all outbound HTTP requests.

Every network call is queued and executed by a single worker task with a
fixed pause between requests. Successful responses are cached by
``METHOD:url[:headers-digest]``; identical requests already in flight share
one network call.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import json
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

import httpx
import structlog

from clipharvest.domain.entities.errors import NetworkError
from clipharvest.domain.entities.http import ProxyResponse
from clipharvest.infrastructure.cache.memory_cache import MemoryCache
from clipharvest.infrastructure.common.headers import BASE_HEADERS
from clipharvest.infrastructure.logging.redaction import hash_key

log = structlog.get_logger(__name__)

# Rotated per request, so it must not split the cache.
_KEY_EXCLUDED_HEADERS = frozenset({"user-agent"})


def build_cache_key(method: str, url: str, headers: dict[str, str] | None = None) -> str:
    key = f"{method.upper()}:{url}"
    relevant = {
        k.lower(): v
        for k, v in (headers or {}).items()
        if k.lower() not in _KEY_EXCLUDED_HEADERS
    }
    if relevant:
        digest = hashlib.sha1(
            json.dumps(relevant, sort_keys=True).encode("utf-8")
        ).hexdigest()[:16]
        key = f"{key}:{digest}"
    return key


@dataclass
class _Job:
    method: str
    url: str
    headers: dict[str, str]
    timeout: float | None
    follow_redirects: bool
    future: asyncio.Future[ProxyResponse]


@dataclass
class ProxyStats:
    total_requests: int = 0
    successful_requests: int = 0
    cached_requests: int = 0
    failed_requests: int = 0
    total_response_ms: float = 0.0
    network_requests: int = 0

    @property
    def average_response_ms(self) -> float:
        if not self.network_requests:
            return 0.0
        return self.total_response_ms / self.network_requests


class RequestProxy:
    """Queue-backed HTTP gateway implementing :class:`RequestProxyPort`.

    Args:
        client: Shared ``httpx.AsyncClient``; closed by :meth:`aclose` when
            *owns_client* is true.
        cache: Response cache.
        request_delay: Pause after every dequeued request (seconds).
        max_queue_length: Health-check threshold for the queue.
        default_timeout: Timeout for requests that do not pass one.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        cache: MemoryCache | None = None,
        request_delay: float = 0.1,
        max_queue_length: int = 100,
        default_timeout: float = 10.0,
        owns_client: bool = True,
    ) -> None:
        self._client = client
        self._cache = cache or MemoryCache()
        self._delay = request_delay
        self._max_queue_length = max_queue_length
        self._default_timeout = default_timeout
        self._owns_client = owns_client
        self._queue: asyncio.Queue[_Job] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._inflight: dict[str, asyncio.Future[ProxyResponse]] = {}
        self._stats = ProxyStats()

    @property
    def cache(self) -> MemoryCache:
        return self._cache

    @property
    def queue_length(self) -> int:
        return self._queue.qsize()

    # ------------------------------------------------------------------
    # Request API
    # ------------------------------------------------------------------

    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        follow_redirects: bool = True,
        use_cache: bool = True,
    ) -> ProxyResponse:
        method = method.upper()
        self._stats.total_requests += 1
        key = build_cache_key(method, url, headers)

        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                self._stats.cached_requests += 1
                self._stats.successful_requests += 1
                log.debug("proxy_cache_hit", cache_digest=hash_key(key), url=url)
                return _replace_from_cache(cached)

            pending = self._inflight.get(key)
            if pending is not None:
                log.debug("proxy_request_joined", cache_digest=hash_key(key), url=url)
                try:
                    response = await asyncio.shield(pending)
                except NetworkError:
                    self._stats.failed_requests += 1
                    raise
                except asyncio.CancelledError:
                    if not pending.cancelled():
                        raise
                    self._stats.failed_requests += 1
                    raise NetworkError(f"shared request was cancelled: {url}") from None
                if not response.ok:
                    self._stats.failed_requests += 1
                    return response
                self._stats.cached_requests += 1
                self._stats.successful_requests += 1
                return _replace_from_cache(response)

        loop = asyncio.get_running_loop()
        job = _Job(
            method=method,
            url=url,
            headers={**BASE_HEADERS, **(headers or {})},
            timeout=timeout if timeout is not None else self._default_timeout,
            follow_redirects=follow_redirects,
            future=loop.create_future(),
        )
        # Shared with joiners; a caller timing out must not cancel it.
        job.future.add_done_callback(self._forget(key if use_cache else None))
        if use_cache:
            self._inflight[key] = job.future
        self._ensure_worker()
        await self._queue.put(job)

        try:
            response = await asyncio.shield(job.future)
        except NetworkError:
            self._stats.failed_requests += 1
            raise

        if response.ok:
            self._stats.successful_requests += 1
            if use_cache:
                self._cache.set(key, response)
        else:
            self._stats.failed_requests += 1
        return response

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _forget(self, key: str | None) -> Callable[[asyncio.Future[ProxyResponse]], None]:
        def _done(future: asyncio.Future[ProxyResponse]) -> None:
            if key is not None and self._inflight.get(key) is future:
                del self._inflight[key]
            if not future.cancelled():
                # Marks the error retrieved when every caller has gone away.
                future.exception()

        return _done

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                if not job.future.done():
                    try:
                        response = await self._send(job)
                    except Exception as exc:  # noqa: BLE001
                        if not job.future.done():
                            job.future.set_exception(exc)
                    else:
                        if not job.future.done():
                            job.future.set_result(response)
            finally:
                self._queue.task_done()
            if self._delay > 0:
                await asyncio.sleep(self._delay)

    async def _send(self, job: _Job) -> ProxyResponse:
        started = time.perf_counter()
        try:
            resp = await self._client.request(
                job.method,
                job.url,
                headers=job.headers,
                timeout=job.timeout,
                follow_redirects=job.follow_redirects,
            )
        except httpx.TimeoutException as exc:
            log.warning("proxy_request_timeout", url=job.url, timeout=job.timeout)
            raise NetworkError(f"timeout after {job.timeout}s: {job.url}") from exc
        except httpx.HTTPError as exc:
            log.warning("proxy_request_error", url=job.url, error=str(exc))
            raise NetworkError(f"{type(exc).__name__}: {exc}") from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        self._stats.network_requests += 1
        self._stats.total_response_ms += elapsed_ms
        log.debug(
            "proxy_request_done",
            method=job.method,
            url=job.url,
            status=resp.status_code,
            elapsed_ms=round(elapsed_ms, 1),
        )
        return ProxyResponse(
            status_code=resp.status_code,
            url=str(resp.url),
            text=resp.text,
            headers=dict(resp.headers),
            elapsed_ms=elapsed_ms,
        )

    # ------------------------------------------------------------------
    # Stats / health
    # ------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        s = self._stats
        return {
            "total_requests": s.total_requests,
            "successful_requests": s.successful_requests,
            "cached_requests": s.cached_requests,
            "failed_requests": s.failed_requests,
            "average_response_ms": round(s.average_response_ms, 1),
            "cache_size": len(self._cache),
            "queue_length": self.queue_length,
            "cache_hit_rate": _ratio(s.cached_requests, s.total_requests),
            "success_rate": _ratio(s.successful_requests, s.total_requests),
        }

    def health_check(self) -> dict[str, Any]:
        issues: list[str] = []
        if self.queue_length >= self._max_queue_length:
            issues.append(f"request queue backlog: {self.queue_length}")
        if len(self._cache) >= self._cache.max_entries:
            issues.append(f"cache at capacity: {len(self._cache)}")
        return {
            "status": "healthy" if not issues else "warning",
            "issues": issues,
            "stats": self.stats(),
        }

    def reset_stats(self) -> None:
        self._stats = ProxyStats()

    def clear_cache(self) -> None:
        self._cache.clear()
        log.info("proxy_cache_cleared")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._cache.start_cleanup()

    async def aclose(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None
        while not self._queue.empty():
            job = self._queue.get_nowait()
            if not job.future.done():
                job.future.set_exception(NetworkError("request proxy closed"))
            self._queue.task_done()
        await self._cache.aclose()
        if self._owns_client:
            await self._client.aclose()


def _ratio(part: int, whole: int) -> float:
    return round(part / whole, 4) if whole else 0.0


def _replace_from_cache(response: ProxyResponse) -> ProxyResponse:
    return replace(response, elapsed_ms=0.0, from_cache=True)
