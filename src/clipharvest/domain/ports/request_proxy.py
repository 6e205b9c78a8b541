"""Port for the throttled, caching outbound HTTP layer."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from clipharvest.domain.entities.http import ProxyResponse


@runtime_checkable
class RequestProxyPort(Protocol):
    """Single gateway for every outbound request of the pipeline.

    Implementations serialize requests, memoize successful responses and
    raise ``NetworkError`` on transport failures.
    """

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
        """Perform (or replay from cache) one HTTP request."""
        ...
