from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Sequence

from src.analytics.scoring import (
    FULL_ATTAINMENT_SCORE,
    composite_score,
    round_half_up,
    sum_values_by_metric,
)
from src.models.performance import MetricDefinitionRecord, MetricObservationRecord


def calculate_profile_streak(
    observations: Iterable[MetricObservationRecord],
    metrics: Sequence[MetricDefinitionRecord],
) -> int:
    """Count the most recent consecutive periods scoring at full attainment.

    Periods are identified by their end date. The walk starts at the newest
    period and stops at the first period below full attainment.
    """
    observations_by_period: Dict[date, List[MetricObservationRecord]] = defaultdict(list)
    for observation in observations:
        observations_by_period[observation.period_end].append(observation)

    streak = 0
    for period_end in sorted(observations_by_period, reverse=True):
        values = sum_values_by_metric(observations_by_period[period_end])
        if composite_score(values, metrics) < FULL_ATTAINMENT_SCORE:
            break
        streak += 1
    return streak


def calculate_streaks(
    profile_ids: Sequence[str],
    observations: Iterable[MetricObservationRecord],
    metrics: Sequence[MetricDefinitionRecord],
) -> Dict[str, int]:
    observations_by_profile: Dict[str, List[MetricObservationRecord]] = defaultdict(list)
    for observation in observations:
        observations_by_profile[observation.profile_id].append(observation)
    return {
        profile_id: calculate_profile_streak(observations_by_profile.get(profile_id, []), metrics)
        for profile_id in profile_ids
    }


def calculate_cohort_streak(streaks: Iterable[int], member_count: int) -> int:
    if member_count <= 0:
        return 0
    return round_half_up(sum(streaks) / member_count)
