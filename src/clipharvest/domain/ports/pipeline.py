"""Ports consumed by the resolution use case."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from clipharvest.domain.entities.video import ResolvedLink, VideoRecord


@runtime_checkable
class LinkNormalizerPort(Protocol):
    async def normalize(self, raw: object) -> ResolvedLink:
        """Validate raw input and return the expanded page URL.

        Raises InvalidInputError, NoLinkFoundError or UnsupportedDomainError.
        """
        ...


class VideoIdExtractorPort(Protocol):
    def __call__(self, url: str) -> str | None: ...


@runtime_checkable
class SourceRegistryPort(Protocol):
    async def resolve(self, content_id: str | None, full_url: str) -> VideoRecord:
        """First record produced by any source.

        Raises AllSourcesExhaustedError when every source failed or was skipped.
        """
        ...


class MediaVerifierPort(Protocol):
    async def __call__(self, media_url: str) -> bool:
        """``True`` when the media URL answers a HEAD request below 400."""
        ...
