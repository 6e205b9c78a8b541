"""Turn raw user input into a validated, expanded video page URL."""

from __future__ import annotations

import re
from urllib.parse import urlparse

import httpx
import structlog

from clipharvest.domain.entities.errors import (
    InvalidInputError,
    NetworkError,
    NoLinkFoundError,
    UnsupportedDomainError,
)
from clipharvest.domain.entities.video import ResolvedLink
from clipharvest.domain.ports.request_proxy import RequestProxyPort
from clipharvest.infrastructure.common.headers import get_headers

log = structlog.get_logger(__name__)

SHORT_LINK_HOSTS: frozenset[str] = frozenset({"v.douyin.com", "dy.tt"})
ALLOWED_DOMAINS: tuple[str, ...] = ("douyin.com", "iesdouyin.com", "dy.tt")

# Ordered: short-link form, full-domain form, @-prefixed link, bare host.
LINK_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"https?://v\.douyin\.com/[A-Za-z0-9_\-]+/?", re.IGNORECASE),
    re.compile(
        r"https?://(?:[a-z0-9\-]+\.)*(?:douyin\.com|iesdouyin\.com|dy\.tt)/[^\s\"'<>]*",
        re.IGNORECASE,
    ),
    re.compile(r"@(https?://[^\s\"'<>]+)", re.IGNORECASE),
    re.compile(
        r"(?<![\w./])(?:[a-z0-9\-]+\.)*(?:douyin\.com|iesdouyin\.com|dy\.tt)/[^\s\"'<>]*",
        re.IGNORECASE,
    ),
)

# Punctuation users paste around links (ASCII and full-width).
_TRAILING_JUNK = ".,;:!?)]}>。，！？）、"


def find_link(text: str) -> str | None:
    """Return the first link-shaped substring of *text*."""
    for pattern in LINK_PATTERNS:
        m = pattern.search(text)
        if m:
            link = m.group(1) if pattern.groups else m.group(0)
            return link.lstrip("@").rstrip(_TRAILING_JUNK)
    return None


def ensure_scheme(url: str) -> str:
    if re.match(r"^https?://", url, re.IGNORECASE):
        return url
    return f"https://{url.lstrip('/')}"


def host_of(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def is_short_link(url: str) -> bool:
    host = host_of(url)
    if host in SHORT_LINK_HOSTS:
        return True
    # iesdouyin share links (/share/...) redirect like short links.
    return host.endswith("iesdouyin.com") and urlparse(url).path.startswith("/share/")


def is_allowed_domain(url: str) -> bool:
    host = host_of(url)
    return any(host == d or host.endswith(f".{d}") for d in ALLOWED_DOMAINS)


class UrlNormalizer:
    """Validate input, expand short links, check the final domain.

    Args:
        proxy: Gateway used for the redirect-following expansion request.
        timeout: Expansion request timeout (seconds).
    """

    def __init__(self, proxy: RequestProxyPort, *, timeout: float = 10.0) -> None:
        self._proxy = proxy
        self._timeout = timeout

    async def normalize(self, raw: object) -> ResolvedLink:
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidInputError("input must be a non-empty string")

        text = raw.strip()
        link = find_link(text)
        if link is None:
            raise NoLinkFoundError("no video link found in input")

        url = ensure_scheme(link)
        short = is_short_link(url)
        if short:
            if not url.endswith("/") and "?" not in url:
                url = f"{url}/"
            url = await self.expand(url)

        if not is_allowed_domain(url):
            raise UnsupportedDomainError(f"unsupported domain: {host_of(url) or url}")

        log.debug("link_normalized", url=url, short_link=short)
        return ResolvedLink(raw_input=raw, normalized_url=url, is_short_link=short)

    async def expand(self, url: str) -> str:
        """Follow redirects of *url*; the original URL when expansion fails."""
        try:
            response = await self._proxy.request(
                url,
                headers=get_headers("mobile"),
                timeout=self._timeout,
                follow_redirects=True,
                use_cache=False,
            )
        except (NetworkError, httpx.HTTPError) as exc:
            log.warning("short_link_expand_failed", url=url, error=str(exc))
            return url

        final = response.url or url
        log.info("short_link_expanded", url=url, expanded=final, status=response.status_code)
        return final
