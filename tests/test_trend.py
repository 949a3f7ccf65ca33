from __future__ import annotations

from datetime import date

from src.analytics.trend import (
    aggregate_trend,
    build_trend_buckets,
    resolve_window_count,
    score_bucket,
)
from src.models.performance import MetricDefinitionRecord, MetricObservationRecord
from src.shared.time import DateWindow

CALLS = MetricDefinitionRecord(id="m-calls", key="calls", target=50, weight=0.5)
MEETINGS = MetricDefinitionRecord(id="m-meetings", key="meetings", target=10, weight=0.5)


def _observation(profile_id: str, metric_id: str, value: float, start: date, end: date) -> MetricObservationRecord:
    return MetricObservationRecord(
        profile_id=profile_id, metric_id=metric_id, value=value, period_start=start, period_end=end
    )


def test_fixed_window_buckets_anchor_at_range_end() -> None:
    window = DateWindow(label="Custom", start=date(2026, 9, 1), end=date(2026, 9, 29))
    assert resolve_window_count(window) == 4
    buckets = build_trend_buckets(window, today=date(2026, 10, 19))
    assert buckets == [
        (date(2026, 9, 1), date(2026, 9, 8)),
        (date(2026, 9, 8), date(2026, 9, 15)),
        (date(2026, 9, 15), date(2026, 9, 22)),
        (date(2026, 9, 22), date(2026, 9, 29)),
    ]


def test_rolling_window_buckets_anchor_at_today() -> None:
    window = DateWindow(label="This Week", start=date(2026, 10, 19), end=date(2026, 10, 25))
    buckets = build_trend_buckets(window, today=date(2026, 10, 19))
    assert len(buckets) == 5
    assert buckets[-1] == (date(2026, 10, 12), date(2026, 10, 19))
    assert buckets[0] == (date(2026, 9, 14), date(2026, 9, 21))


def test_short_window_has_single_bucket() -> None:
    window = DateWindow(label="Today", start=date(2026, 10, 19), end=date(2026, 10, 19))
    assert resolve_window_count(window) == 1
    assert resolve_window_count(DateWindow(label="All Time", start=date(1970, 1, 1), end=date(2026, 10, 19)), 8) == 8


def test_bucket_averages_values_and_caps_percentages() -> None:
    start, end = date(2026, 9, 1), date(2026, 9, 7)
    observations = [
        _observation("p1", "m-calls", 100, start, end),
        _observation("p2", "m-calls", 50, start, end),
        _observation("p1", "m-meetings", 30, start, end),
    ]
    score, has_data = score_bucket(observations, [CALLS, MEETINGS], date(2026, 9, 1), date(2026, 9, 8))
    assert has_data is True
    # calls average 75 -> 150%, meetings 300% capped at 150%.
    assert score == 150


def test_single_outlier_is_capped() -> None:
    observations = [_observation("p1", "m-calls", 500, date(2026, 9, 1), date(2026, 9, 7))]
    score, _ = score_bucket(observations, [CALLS], date(2026, 9, 1), date(2026, 9, 8))
    assert score == 150


def test_bucket_normalizes_by_weights_with_data() -> None:
    observations = [_observation("p1", "m-calls", 25, date(2026, 9, 1), date(2026, 9, 7))]
    score, has_data = score_bucket(observations, [CALLS, MEETINGS], date(2026, 9, 1), date(2026, 9, 8))
    assert (score, has_data) == (50, True)


def test_empty_bucket_reports_no_data() -> None:
    assert score_bucket([], [CALLS], date(2026, 9, 1), date(2026, 9, 8)) == (0, False)


def test_aggregate_trend_labels_and_overlap() -> None:
    window = DateWindow(label="Custom", start=date(2026, 9, 1), end=date(2026, 9, 15))
    buckets = build_trend_buckets(window, today=date(2026, 10, 19))
    # Spans the shared boundary day, so both buckets see it.
    observations = [_observation("p1", "m-calls", 50, date(2026, 9, 8), date(2026, 9, 14))]
    points = aggregate_trend(observations, [CALLS], buckets)
    assert [point.label for point in points] == ["9/1", "9/8"]
    assert [point.score for point in points] == [100, 100]
    assert all(point.has_data for point in points)


def test_bucket_score_half_point_rounds_up() -> None:
    observations = [_observation("p1", "m-calls", 6.25, date(2026, 9, 1), date(2026, 9, 7))]
    # 12.5% of target
    score, _ = score_bucket(observations, [CALLS], date(2026, 9, 1), date(2026, 9, 8))
    assert score == 13
