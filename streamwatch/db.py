"""Database access for streams and their viewer snapshots."""

from __future__ import annotations

import logging
import os
from datetime import datetime

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from .model import Stream

logger = logging.getLogger(__name__)

DATABASE_URL_ENV = "DATABASE_URL"


def connect(url: str | None = None) -> Engine:
    """Create an engine for ``url`` (or ``$DATABASE_URL``) and check it answers."""
    url = url or os.environ.get(DATABASE_URL_ENV)
    if not url:
        raise ValueError(f"no database URL given and {DATABASE_URL_ENV} is not set")
    engine = create_engine(url)
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Connected to database")
    return engine


def stream_exists(engine: Engine, platform: str, stream_id: str) -> bool:
    """Tell whether a stream is already recorded for the platform."""
    with engine.connect() as conn:
        found = conn.execute(
            text(
                "SELECT EXISTS (SELECT 1 FROM streams "
                "WHERE platform = :platform AND stream_id = :stream_id)"
            ),
            {"platform": platform, "stream_id": stream_id},
        ).scalar()
    return bool(found)


def save_stream(engine: Engine, stream: Stream, platform: str) -> None:
    """Record a stream's details unless it is already stored."""
    if stream_exists(engine, platform, stream.id):
        return
    try:
        with engine.begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO streams (platform, stream_id, streamer_name, title, game, "
                    "language, thumbnail_url, is_mature, started_at) "
                    "VALUES (:platform, :stream_id, :streamer_name, :title, :game, "
                    ":language, :thumbnail_url, :is_mature, :started_at) "
                    "ON CONFLICT DO NOTHING"
                ),
                {
                    "platform": platform,
                    "stream_id": stream.id,
                    "streamer_name": stream.user_name,
                    "title": stream.title,
                    "game": stream.game_name,
                    "language": stream.language,
                    "thumbnail_url": stream.thumbnail_url,
                    "is_mature": stream.is_mature,
                    "started_at": stream.started_at,
                },
            )
    except Exception as exc:
        logger.error("Failed to insert stream: %s", exc)
        raise


def save_snapshot(engine: Engine, stream: Stream) -> None:
    """Record the stream's current viewer count."""
    try:
        with engine.begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO stream_snapshots (stream_id, viewer_count, is_live) "
                    "VALUES (:stream_id, :viewer_count, true)"
                ),
                {"stream_id": stream.id, "viewer_count": stream.viewer_count},
            )
    except Exception as exc:
        logger.error("Failed to insert snapshot: %s", exc)
        raise


def latest_snapshot_time(engine: Engine) -> datetime:
    """Return the time of the most recent snapshot; LookupError if there is none."""
    with engine.connect() as conn:
        latest = conn.execute(text("SELECT MAX(timestamp) FROM stream_snapshots")).scalar()
    if latest is None:
        raise LookupError("no snapshots recorded")
    if isinstance(latest, str):
        return datetime.fromisoformat(latest)
    return latest