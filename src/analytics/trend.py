from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple

from src.analytics.scoring import attainment_percentage, is_scorable, overlaps, round_half_up
from src.models.performance import MetricDefinitionRecord, MetricObservationRecord
from src.schemas.performance import TrendPoint
from src.shared.time import DateWindow

BUCKET_DAYS = 7
DEFAULT_ROLLING_WINDOWS = 5
# Per-metric ceiling so one outlier week cannot dominate the chart.
TREND_PERCENTAGE_CAP = 150.0


def resolve_window_count(window: DateWindow, rolling_windows: int = DEFAULT_ROLLING_WINDOWS) -> int:
    if window.is_rolling:
        return max(1, rolling_windows)
    return max(1, window.span_days // BUCKET_DAYS)


def build_trend_buckets(
    window: DateWindow, today: date, rolling_windows: int = DEFAULT_ROLLING_WINDOWS
) -> List[Tuple[date, date]]:
    count = resolve_window_count(window, rolling_windows)
    anchor = today if window.is_rolling else window.end
    buckets: List[Tuple[date, date]] = []
    for offset in range(count - 1, -1, -1):
        bucket_end = anchor - timedelta(days=BUCKET_DAYS * offset)
        buckets.append((bucket_end - timedelta(days=BUCKET_DAYS), bucket_end))
    return buckets


def score_bucket(
    observations: Iterable[MetricObservationRecord],
    metrics: Sequence[MetricDefinitionRecord],
    bucket_start: date,
    bucket_end: date,
) -> Tuple[int, bool]:
    samples: Dict[str, List[float]] = defaultdict(list)
    for observation in observations:
        if overlaps(observation, bucket_start, bucket_end):
            samples[observation.metric_id].append(observation.value)

    weighted_total = 0.0
    weight_with_data = 0.0
    has_data = False
    for metric in metrics:
        if not metric.visible_on_scorecard or not is_scorable(metric):
            continue
        values = samples.get(metric.id)
        if not values:
            continue
        has_data = True
        average_value = sum(values) / len(values)
        percentage = min(attainment_percentage(average_value, metric.target), TREND_PERCENTAGE_CAP)
        weighted_total += percentage * metric.weight
        weight_with_data += metric.weight

    if weight_with_data <= 0:
        return 0, has_data
    return round_half_up(weighted_total / weight_with_data), has_data


def aggregate_trend(
    observations: Iterable[MetricObservationRecord],
    metrics: Sequence[MetricDefinitionRecord],
    buckets: Sequence[Tuple[date, date]],
) -> List[TrendPoint]:
    observation_list = list(observations)
    points: List[TrendPoint] = []
    for bucket_start, bucket_end in buckets:
        score, has_data = score_bucket(observation_list, metrics, bucket_start, bucket_end)
        points.append(
            TrendPoint(
                label=f"{bucket_start.month}/{bucket_start.day}",
                bucket_start=bucket_start,
                bucket_end=bucket_end,
                score=score,
                has_data=has_data,
            )
        )
    return points
