"""Aggregate viewing statistics for the stats page."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, TypeVar

from sqlalchemy import text
from sqlalchemy.engine import Engine

AVERAGE_DURATION_QUERY = """
SELECT game, TO_CHAR(timestamp, 'Day') AS day, ROUND(AVG(duration_minutes)) AS avg_duration
FROM (
    SELECT s.stream_id, game, DATE_TRUNC('minute', MAX(timestamp) - MIN(timestamp)) AS duration,
    EXTRACT(EPOCH FROM MAX(timestamp) - MIN(timestamp)) / 60 AS duration_minutes,
    MIN(timestamp) AS timestamp
    FROM stream_snapshots s
    JOIN streams ON streams.stream_id = s.stream_id
    GROUP BY s.stream_id, game
) durations
GROUP BY game, day
ORDER BY day, avg_duration DESC
"""

PEAK_LAST_30_DAYS_QUERY = """
SELECT viewer_count, streamer_name
FROM stream_snapshots
JOIN streams ON stream_snapshots.stream_id = streams.stream_id
WHERE timestamp >= NOW() - INTERVAL '30 days'
ORDER BY viewer_count DESC
LIMIT 1
"""

PEAK_ALL_TIME_QUERY = """
SELECT viewer_count, streamer_name
FROM stream_snapshots
JOIN streams ON stream_snapshots.stream_id = streams.stream_id
ORDER BY viewer_count DESC
LIMIT 1
"""

POPULAR_TIMES_QUERY = """
SELECT platform, EXTRACT(HOUR FROM timestamp)::int AS hour, ROUND(AVG(viewer_count)) AS avg_viewers
FROM stream_snapshots
JOIN streams ON stream_snapshots.stream_id = streams.stream_id
GROUP BY platform, hour
ORDER BY platform, avg_viewers DESC
"""

TOP_CATEGORIES_QUERY = """
SELECT platform, game, ROUND(AVG(viewer_count)) AS avg_viewers
FROM stream_snapshots
JOIN streams ON stream_snapshots.stream_id = streams.stream_id
GROUP BY platform, game
ORDER BY platform, avg_viewers DESC
"""

PEAK_HOUR_COMPARISON_QUERY = """
SELECT hour, platform, avg_viewers
FROM (
    SELECT
        EXTRACT(HOUR FROM stream_snapshots.timestamp)::int AS hour,
        platform,
        ROUND(AVG(viewer_count)) AS avg_viewers,
        ROW_NUMBER() OVER (
            PARTITION BY EXTRACT(HOUR FROM stream_snapshots.timestamp), platform
            ORDER BY AVG(viewer_count) DESC
        ) AS rank
    FROM stream_snapshots
    JOIN streams ON stream_snapshots.stream_id = streams.stream_id
    GROUP BY EXTRACT(HOUR FROM stream_snapshots.timestamp), platform
) ranked
WHERE rank = 1
"""


@dataclass
class AverageDurationEntry:
    """Average stream length in minutes for a category on a weekday."""

    category: str
    day: str
    avg_duration: int


@dataclass
class PopularTimeEntry:
    """The hour of day with the highest average audience on a platform."""

    platform: str
    hour: int
    avg_viewers: int


@dataclass
class TopCategoryEntry:
    """The category with the highest average audience on a platform."""

    platform: str
    category: str
    avg_viewers: int


@dataclass
class PeakHourComparisonEntry:
    """Average audience of a platform at one hour of the day."""

    hour: int
    platform: str
    avg_viewers: int


@dataclass
class StatsPageData:
    """Everything the stats page charts."""

    average_duration: list[AverageDurationEntry] = field(default_factory=list)
    peak_30: int = 0
    peak_30_streamer: str = ""
    peak_all_time: int = 0
    peak_all_streamer: str = ""
    popular_times: list[PopularTimeEntry] = field(default_factory=list)
    top_categories: list[TopCategoryEntry] = field(default_factory=list)
    peak_hour_comparison: list[PeakHourComparisonEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON form, with the key names the stats page reads."""
        return {
            "AverageDuration": [
                {"Category": e.category, "Day": e.day, "AvgDuration": e.avg_duration}
                for e in self.average_duration
            ],
            "Peak30": self.peak_30,
            "Peak30Streamer": self.peak_30_streamer,
            "PeakAllTime": self.peak_all_time,
            "PeakAllStreamer": self.peak_all_streamer,
            "PopularTimes": [
                {"Platform": e.platform, "Hour": e.hour, "AvgViewers": e.avg_viewers}
                for e in self.popular_times
            ],
            "TopCategories": [
                {"Platform": e.platform, "Category": e.category, "AvgViewers": e.avg_viewers}
                for e in self.top_categories
            ],
            "PeakHourComparison": [
                {"Hour": e.hour, "Platform": e.platform, "AvgViewers": e.avg_viewers}
                for e in self.peak_hour_comparison
            ],
        }


_Entry = TypeVar("_Entry", PopularTimeEntry, TopCategoryEntry)


def _first_per_platform(entries: Iterable[_Entry]) -> list[_Entry]:
    best: dict[str, _Entry] = {}
    for entry in entries:
        best.setdefault(entry.platform, entry)
    return list(best.values())


def _peak(conn: Any, query: str) -> tuple[int, str]:
    row = conn.execute(text(query)).first()
    if row is None:
        raise LookupError("no snapshots recorded")
    viewers, streamer = row
    return int(viewers), streamer


def _rows(conn: Any, query: str, build: Callable[..., Any]) -> list[Any]:
    return [build(*row) for row in conn.execute(text(query)).all()]


def get_stats_page_data(engine: Engine) -> StatsPageData:
    """Run every statistics query; LookupError if no snapshot exists for a peak."""
    data = StatsPageData()
    with engine.connect() as conn:
        data.average_duration = _rows(
            conn,
            AVERAGE_DURATION_QUERY,
            lambda game, day, avg: AverageDurationEntry(game, day, int(avg)),
        )
        data.peak_30, data.peak_30_streamer = _peak(conn, PEAK_LAST_30_DAYS_QUERY)
        data.peak_all_time, data.peak_all_streamer = _peak(conn, PEAK_ALL_TIME_QUERY)
        data.popular_times = _first_per_platform(
            _rows(
                conn,
                POPULAR_TIMES_QUERY,
                lambda platform, hour, avg: PopularTimeEntry(platform, int(hour), int(avg)),
            )
        )
        data.top_categories = _first_per_platform(
            _rows(
                conn,
                TOP_CATEGORIES_QUERY,
                lambda platform, game, avg: TopCategoryEntry(platform, game, int(avg)),
            )
        )
        data.peak_hour_comparison = _rows(
            conn,
            PEAK_HOUR_COMPARISON_QUERY,
            lambda hour, platform, avg: PeakHourComparisonEntry(int(hour), platform, int(avg)),
        )
    return data