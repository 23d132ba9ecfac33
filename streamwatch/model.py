"""Stream records as delivered by each platform and the common form they share."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Mapping


def _get(data: Mapping[str, Any], key: str, default: Any) -> Any:
    value = data.get(key)
    return default if value is None else value


def _rfc3339(epoch_seconds: int) -> str:
    """Format a Unix time as RFC 3339 in the local time zone."""
    moment = datetime.fromtimestamp(epoch_seconds).astimezone()
    if not moment.utcoffset():
        return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
    return moment.isoformat(timespec="seconds")


@dataclass
class Stream:
    """A live stream in the platform-neutral form stored in the database."""

    id: str = ""
    user_id: str = ""
    user_name: str = ""
    title: str = ""
    game_id: str = ""
    game_name: str = ""
    language: str = ""
    viewer_count: int = 0
    started_at: str = ""
    thumbnail_url: str = ""
    is_mature: bool = False
    platform: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Stream":
        return cls(
            id=_get(data, "id", ""),
            user_id=_get(data, "user_id", ""),
            user_name=_get(data, "user_name", ""),
            title=_get(data, "title", ""),
            game_id=_get(data, "game_id", ""),
            game_name=_get(data, "game_name", ""),
            language=_get(data, "language", ""),
            viewer_count=int(_get(data, "viewer_count", 0)),
            started_at=_get(data, "started_at", ""),
            thumbnail_url=_get(data, "thumbnail_url", ""),
            is_mature=bool(_get(data, "is_mature", False)),
            platform=_get(data, "platform", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class YtStream:
    """One entry of the JSON that yt-dlp dumps for a live video."""

    id: str = ""
    title: str = ""
    user_name: str = ""
    user_id: str = ""
    view_count: int = 0
    live_status: bool = False
    language: str = ""
    thumbnail: str = ""
    start_time: int = 0
    categories: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "YtStream":
        return cls(
            id=_get(data, "id", ""),
            title=_get(data, "title", ""),
            user_name=_get(data, "uploader", ""),
            user_id=_get(data, "channel_id", ""),
            view_count=int(_get(data, "concurrent_view_count", 0)),
            live_status=bool(_get(data, "is_live", False)),
            language=_get(data, "language", ""),
            thumbnail=_get(data, "thumbnail", ""),
            start_time=int(_get(data, "start_time", 0)),
            categories=list(_get(data, "categories", [])),
        )

    def to_stream(self) -> Stream:
        return Stream(
            id=self.id,
            user_id=self.user_id,
            user_name=self.user_name,
            title=self.title,
            game_id="",
            game_name=self.categories[0] if self.categories else "",
            language=self.language,
            viewer_count=self.view_count,
            started_at=_rfc3339(self.start_time),
            thumbnail_url=self.thumbnail,
            is_mature=False,
        )


@dataclass
class KickCategory:
    """The category block of a Kick livestream."""

    id: int = 0
    name: str = ""
    thumbnail: str = ""


@dataclass
class KickStream:
    """One livestream as returned by the Kick public API."""

    broadcaster_user_id: int = 0
    channel_id: int = 0
    slug: str = ""
    stream_title: str = ""
    language: str = ""
    has_mature_content: bool = False
    viewer_count: int = 0
    thumbnail: str = ""
    started_at: str = ""
    category: KickCategory = field(default_factory=KickCategory)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KickStream":
        category = _get(data, "category", {})
        return cls(
            broadcaster_user_id=int(_get(data, "broadcaster_user_id", 0)),
            channel_id=int(_get(data, "channel_id", 0)),
            slug=_get(data, "slug", ""),
            stream_title=_get(data, "stream_title", ""),
            language=_get(data, "language", ""),
            has_mature_content=bool(_get(data, "has_mature_content", False)),
            viewer_count=int(_get(data, "viewer_count", 0)),
            thumbnail=_get(data, "thumbnail", ""),
            started_at=_get(data, "started_at", ""),
            category=KickCategory(
                id=int(_get(category, "id", 0)),
                name=_get(category, "name", ""),
                thumbnail=_get(category, "thumbnail", ""),
            ),
        )

    def to_stream(self) -> Stream:
        return Stream(
            id=str(self.channel_id),
            user_id=str(self.broadcaster_user_id),
            user_name=self.slug,
            title=self.stream_title,
            game_id=str(self.category.id),
            game_name=self.category.name,
            language=self.language,
            viewer_count=self.viewer_count,
            started_at=self.started_at,
            thumbnail_url=self.thumbnail,
            is_mature=self.has_mature_content,
        )