"""HEAD-request reachability check for resolved media URLs."""

from __future__ import annotations

import structlog

from clipharvest.domain.entities.errors import NetworkError
from clipharvest.domain.ports.request_proxy import RequestProxyPort

log = structlog.get_logger(__name__)


class MediaUrlVerifier:
    """Report whether a media URL is currently playable.

    A status below 400 after redirects counts as reachable. Transport
    failures are reported as unreachable, never raised.
    """

    def __init__(self, proxy: RequestProxyPort, *, timeout: float = 5.0) -> None:
        self._proxy = proxy
        self._timeout = timeout

    async def __call__(self, media_url: str) -> bool:
        if not media_url:
            return False
        try:
            response = await self._proxy.request(
                media_url,
                method="HEAD",
                timeout=self._timeout,
                follow_redirects=True,
                use_cache=False,
            )
        except NetworkError as exc:
            log.warning("media_check_failed", url=media_url, error=str(exc))
            return False

        reachable = response.status_code < 400
        log.debug(
            "media_checked",
            url=media_url,
            status=response.status_code,
            reachable=reachable,
        )
        return reachable
