"""Queries behind the stream list and the per-streamer viewer history."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine

from .model import Stream

STREAMER_QUERY = "SELECT streamer_name FROM streams WHERE stream_id = :stream_id"

RECENT_STREAMS_QUERY = """
SELECT stream_id
FROM streams
WHERE streamer_name = :streamer_name
ORDER BY started_at DESC
LIMIT 5
"""

SNAPSHOTS_QUERY = """
SELECT stream_id, viewer_count, timestamp
FROM stream_snapshots
WHERE stream_id = :stream_id
ORDER BY timestamp ASC
LIMIT 1000
"""

TOP_RECENT_QUERY = """
SELECT *
FROM (
    SELECT DISTINCT ON (streamer_name)
        platform, stream_id, streamer_name, title, game, language,
        thumbnail_url, timestamp, viewer_count
    FROM (
        SELECT DISTINCT ON (s.stream_id)
            s.platform, s.stream_id, s.streamer_name, s.title, s.game, s.language,
            s.thumbnail_url, ss.timestamp, ss.viewer_count
        FROM streams s
        JOIN stream_snapshots ss ON s.stream_id = ss.stream_id
        WHERE ss.timestamp > NOW() - INTERVAL '10 minutes'
        ORDER BY s.stream_id, ss.timestamp DESC
    ) AS latest_streams
    ORDER BY streamer_name, timestamp DESC
) AS latest_per_streamer
ORDER BY viewer_count DESC
LIMIT :limit
"""


class StreamNotFound(LookupError):
    """Raised when no stream with the given id is recorded."""


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


def _json_time(moment: datetime) -> str:
    stamp = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        stamp = stamp[: -len("+00:00")] + "Z"
    return stamp


def _summarise(stream_id: str, rows: list[Any]) -> dict[str, Any]:
    points = [(sid, int(viewers), _as_datetime(ts)) for sid, viewers, ts in rows]
    duration = points[-1][2] - points[0][2] if points else timedelta(0)
    average = sum(v for _, v, _ in points) // len(points) if points else 0
    return {
        "stream_id": stream_id,
        "snapshots": [
            {"stream_id": sid, "viewer_count": viewers, "timestamp": _json_time(ts)}
            for sid, viewers, ts in points
        ],
        "average_viewers": average,
        # Reported in nanoseconds, whatever the key says.
        "duration_minutes": duration // timedelta(microseconds=1) * 1000,
    }


def snapshot_history(engine: Engine, stream_id: str) -> list[dict[str, Any]]:
    """Viewer history of the five latest streams by the streamer of ``stream_id``."""
    with engine.connect() as conn:
        row = conn.execute(text(STREAMER_QUERY), {"stream_id": stream_id}).first()
        if row is None:
            raise StreamNotFound(f"no stream with id {stream_id!r}")
        streamer_name = row[0]
        recent_ids = [
            r[0]
            for r in conn.execute(
                text(RECENT_STREAMS_QUERY), {"streamer_name": streamer_name}
            ).all()
        ]
        return [
            _summarise(sid, conn.execute(text(SNAPSHOTS_QUERY), {"stream_id": sid}).all())
            for sid in recent_ids
        ]


def top_recent_streams(engine: Engine, limit: int) -> list[Stream]:
    """Latest state of the most watched streamers seen in the last ten minutes."""
    with engine.connect() as conn:
        rows = conn.execute(text(TOP_RECENT_QUERY), {"limit": limit}).all()
    return [
        Stream(
            platform=platform,
            id=stream_id,
            user_name=streamer_name,
            title=title,
            game_name=game,
            language=language,
            thumbnail_url=thumbnail_url,
            viewer_count=int(viewer_count),
        )
        for (
            platform,
            stream_id,
            streamer_name,
            title,
            game,
            language,
            thumbnail_url,
            _timestamp,
            viewer_count,
        ) in rows
    ]