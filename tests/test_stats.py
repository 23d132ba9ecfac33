from decimal import Decimal

import pytest

from streamwatch import stats
from streamwatch.stats import (
    AverageDurationEntry,
    PeakHourComparisonEntry,
    PopularTimeEntry,
    StatsPageData,
    TopCategoryEntry,
    get_stats_page_data,
)


class FakeResult:
    def __init__(self, rows):
        self._rows = list(rows)

    def all(self):
        return list(self._rows)

    def first(self):
        return self._rows[0] if self._rows else None

    def scalar(self):
        row = self.first()
        return None if row is None else row[0]


class FakeConn:
    def __init__(self, engine):
        self.engine = engine

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, statement, params=None):
        sql = str(statement)
        self.engine.calls.append((sql, params))
        response = self.engine.responses[sql]
        rows = response(params) if callable(response) else response
        return FakeResult(rows)


class FakeEngine:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def connect(self):
        return FakeConn(self)


def full_responses():
    return {
        stats.AVERAGE_DURATION_QUERY: [
            ("Chess", "Monday   ", Decimal(90)),
            ("Just Chatting", "Monday   ", Decimal(45)),
        ],
        stats.PEAK_LAST_30_DAYS_QUERY: [(5000, "bob")],
        stats.PEAK_ALL_TIME_QUERY: [(9000, "carol")],
        stats.POPULAR_TIMES_QUERY: [
            ("kick", 21, Decimal(800)),
            ("kick", 3, Decimal(100)),
            ("twitch", 19, Decimal(1200)),
            ("twitch", 4, Decimal(300)),
        ],
        stats.TOP_CATEGORIES_QUERY: [
            ("kick", "Slots", Decimal(700)),
            ("kick", "Chess", Decimal(50)),
            ("twitch", "Just Chatting", Decimal(1100)),
        ],
        stats.PEAK_HOUR_COMPARISON_QUERY: [
            (19, "twitch", Decimal(1200)),
            (21, "kick", Decimal(800)),
        ],
    }


def test_average_durations_are_read_in_order():
    data = get_stats_page_data(FakeEngine(full_responses()))
    assert data.average_duration == [
        AverageDurationEntry("Chess", "Monday   ", 90),
        AverageDurationEntry("Just Chatting", "Monday   ", 45),
    ]


def test_peaks_carry_viewers_and_streamer():
    data = get_stats_page_data(FakeEngine(full_responses()))
    assert (data.peak_30, data.peak_30_streamer) == (5000, "bob")
    assert (data.peak_all_time, data.peak_all_streamer) == (9000, "carol")


def test_popular_times_keep_first_row_per_platform():
    data = get_stats_page_data(FakeEngine(full_responses()))
    assert sorted(data.popular_times, key=lambda e: e.platform) == [
        PopularTimeEntry("kick", 21, 800),
        PopularTimeEntry("twitch", 19, 1200),
    ]


def test_top_categories_keep_first_row_per_platform():
    data = get_stats_page_data(FakeEngine(full_responses()))
    assert sorted(data.top_categories, key=lambda e: e.platform) == [
        TopCategoryEntry("kick", "Slots", 700),
        TopCategoryEntry("twitch", "Just Chatting", 1100),
    ]


def test_peak_hour_comparison_keeps_all_rows():
    data = get_stats_page_data(FakeEngine(full_responses()))
    assert data.peak_hour_comparison == [
        PeakHourComparisonEntry(19, "twitch", 1200),
        PeakHourComparisonEntry(21, "kick", 800),
    ]


def test_averages_are_plain_ints():
    data = get_stats_page_data(FakeEngine(full_responses()))
    values = sorted(e.avg_viewers for e in data.popular_times + data.top_categories)
    assert values == [700, 800, 1100, 1200]
    assert [type(v).__name__ for v in values] == ["int", "int", "int", "int"]


@pytest.mark.parametrize(
    "query", [stats.PEAK_LAST_30_DAYS_QUERY, stats.PEAK_ALL_TIME_QUERY]
)
def test_missing_peak_raises_lookup_error(query):
    responses = full_responses()
    responses[query] = []
    with pytest.raises(LookupError):
        get_stats_page_data(FakeEngine(responses))


def test_empty_groupings_give_empty_lists():
    responses = full_responses()
    for query in (
        stats.AVERAGE_DURATION_QUERY,
        stats.POPULAR_TIMES_QUERY,
        stats.TOP_CATEGORIES_QUERY,
        stats.PEAK_HOUR_COMPARISON_QUERY,
    ):
        responses[query] = []
    data = get_stats_page_data(FakeEngine(responses))
    assert data.average_duration == []
    assert data.popular_times == []
    assert data.top_categories == []
    assert data.peak_hour_comparison == []


def test_to_dict_uses_page_key_names():
    data = StatsPageData(
        average_duration=[AverageDurationEntry("Chess", "Friday   ", 30)],
        peak_30=10,
        peak_30_streamer="dan",
        peak_all_time=20,
        peak_all_streamer="eve",
        popular_times=[PopularTimeEntry("kick", 5, 7)],
        top_categories=[TopCategoryEntry("twitch", "Chess", 8)],
        peak_hour_comparison=[PeakHourComparisonEntry(6, "kick", 9)],
    )
    assert data.to_dict() == {
        "AverageDuration": [{"Category": "Chess", "Day": "Friday   ", "AvgDuration": 30}],
        "Peak30": 10,
        "Peak30Streamer": "dan",
        "PeakAllTime": 20,
        "PeakAllStreamer": "eve",
        "PopularTimes": [{"Platform": "kick", "Hour": 5, "AvgViewers": 7}],
        "TopCategories": [{"Platform": "twitch", "Category": "Chess", "AvgViewers": 8}],
        "PeakHourComparison": [{"Hour": 6, "Platform": "kick", "AvgViewers": 9}],
    }


def test_all_queries_run_once():
    engine = FakeEngine(full_responses())
    get_stats_page_data(engine)
    assert sorted(sql for sql, _ in engine.calls) == sorted(full_responses())