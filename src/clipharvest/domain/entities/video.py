from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ResolvedLink:
    raw_input: str  # Caller text, untouched
    normalized_url: str  # Absolute URL after expansion
    is_short_link: bool = False


@dataclass(frozen=True)
class VideoStatistics:
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    play_count: int = 0
    collect_count: int = 0
    forward_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "likeCount": self.like_count,
            "commentCount": self.comment_count,
            "shareCount": self.share_count,
            "playCount": self.play_count,
            "collectCount": self.collect_count,
            "forwardCount": self.forward_count,
        }


@dataclass(frozen=True)
class MusicInfo:
    title: str = ""
    author: str = ""
    url: str = ""


@dataclass(frozen=True)
class VideoRecord:
    """Canonical, source-independent description of one video.

    ``media_url`` may be empty: a record without a playable URL is still a
    valid result and callers must handle it.
    """

    content_id: str
    author: str = "unknown"
    author_id: str = ""
    publish_time: str = ""  # ISO-8601 (UTC) or ""
    statistics: VideoStatistics = field(default_factory=VideoStatistics)
    description: str = ""
    media_url: str = ""
    cover_url: str = ""
    duration: int = 0
    width: int = 0
    height: int = 0
    music: MusicInfo = field(default_factory=MusicInfo)
    tags: tuple[str, ...] = ()
    source: str = ""  # Name of the source that produced the record
    media_verified: bool | None = None  # None when no reachability check ran

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the public camelCase output shape (``success`` included)."""
        data: dict[str, Any] = {
            "success": True,
            "contentId": self.content_id,
            "author": self.author,
            "authorId": self.author_id,
            "publishTime": self.publish_time,
            "statistics": self.statistics.to_dict(),
            "description": self.description,
            "mediaUrl": self.media_url,
            "coverUrl": self.cover_url,
            "duration": self.duration,
            "width": self.width,
            "height": self.height,
            "music": {
                "title": self.music.title,
                "author": self.music.author,
                "url": self.music.url,
            },
            "tags": list(self.tags),
            "source": self.source,
        }
        if self.media_verified is not None:
            data["mediaVerified"] = self.media_verified
        return data


@dataclass(frozen=True)
class ResolutionFailure:
    error: str
    attempted_sources: tuple[str, ...] = ()
    video_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": False, "error": self.error}
        if self.attempted_sources:
            data["attemptedSources"] = list(self.attempted_sources)
        if self.video_id:
            data["videoId"] = self.video_id
        return data
