"""Port for a single video source strategy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from clipharvest.domain.entities.video import VideoRecord
from clipharvest.domain.ports.request_proxy import RequestProxyPort


@dataclass(frozen=True)
class FetchContext:
    """Inputs handed to a source fetch function for one attempt."""

    content_id: str | None  # None when no ID could be extracted
    page_url: str
    proxy: RequestProxyPort
    timeout: float


class SourceFetchFn(Protocol):
    """Fetch + parse strategy of one source.

    Returns a record or raises (``NetworkError``, ``ParseError``,
    ``httpx.HTTPError``, ``TimeoutError``); the registry records the outcome.
    """

    async def __call__(self, ctx: FetchContext) -> VideoRecord: ...
