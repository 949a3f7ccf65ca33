from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from src.core.errors import ConfigurationError
from src.models.performance import MetricDefinitionRecord, MetricObservationRecord, ProfileRecord
from src.schemas.performance import AttainmentRow, MetricAttainment, ScorecardResponse, TopPerformer

logger = logging.getLogger(__name__)

FULL_ATTAINMENT_SCORE = 100
COACHING_THRESHOLD_SCORE = 80


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, not to the even neighbour."""
    return int(math.floor(value + 0.5))


def validate_metric_definition(metric: MetricDefinitionRecord) -> None:
    if metric.target < 0:
        raise ConfigurationError(
            f"Metric {metric.key} has a negative target ({metric.target})", metric_key=metric.key
        )
    if metric.weight < 0:
        raise ConfigurationError(
            f"Metric {metric.key} has a negative weight ({metric.weight})", metric_key=metric.key
        )


def is_scorable(metric: MetricDefinitionRecord) -> bool:
    try:
        validate_metric_definition(metric)
    except ConfigurationError:
        return False
    return True


def partition_valid_metrics(metrics: Iterable[MetricDefinitionRecord]) -> List[MetricDefinitionRecord]:
    valid: List[MetricDefinitionRecord] = []
    for metric in metrics:
        try:
            validate_metric_definition(metric)
        except ConfigurationError as exc:
            logger.warning("Excluding metric from scoring: %s", exc.message)
            continue
        valid.append(metric)
    return valid


def attainment_percentage(value: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return (value / target) * 100


def overlaps(observation: MetricObservationRecord, start: date, end: date) -> bool:
    return observation.period_start <= end and observation.period_end >= start


def sum_values_by_metric(observations: Iterable[MetricObservationRecord]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for observation in observations:
        totals[observation.metric_id] += observation.value
    return dict(totals)


def score_metrics(
    values_by_metric_id: Mapping[str, float],
    metrics: Sequence[MetricDefinitionRecord],
) -> Tuple[Dict[str, MetricAttainment], Dict[str, MetricAttainment], float]:
    """Return (scorecard attainments, informational attainments, unrounded composite).

    Values for metric ids outside ``metrics`` are ignored. A metric that fails
    validation contributes nothing.
    """
    scored: Dict[str, MetricAttainment] = {}
    informational: Dict[str, MetricAttainment] = {}
    composite = 0.0
    for metric in metrics:
        try:
            validate_metric_definition(metric)
        except ConfigurationError as exc:
            logger.debug("Skipping metric %s: %s", metric.key, exc.message)
            continue
        value = values_by_metric_id.get(metric.id, 0.0)
        attainment = MetricAttainment(
            value=value, percentage=attainment_percentage(value, metric.target)
        )
        if metric.visible_on_scorecard:
            scored[metric.key] = attainment
            composite += attainment.percentage * metric.weight
        else:
            informational[metric.key] = attainment
    return scored, informational, composite


def composite_score(
    values_by_metric_id: Mapping[str, float], metrics: Sequence[MetricDefinitionRecord]
) -> int:
    _, _, composite = score_metrics(values_by_metric_id, metrics)
    return round_half_up(composite)


def compute_attainment_row(
    profile: ProfileRecord,
    observations: Iterable[MetricObservationRecord],
    metrics: Sequence[MetricDefinitionRecord],
) -> AttainmentRow:
    values = sum_values_by_metric(obs for obs in observations if obs.profile_id == profile.id)
    scored, informational, composite = score_metrics(values, metrics)
    return AttainmentRow(
        profile_id=profile.id,
        name=profile.display_name,
        team_id=profile.team_id,
        department=profile.department,
        email=profile.email,
        metrics=scored,
        informational_metrics=informational,
        composite_score=round_half_up(composite),
    )


def build_scorecard(
    profiles: Sequence[ProfileRecord],
    observations: Iterable[MetricObservationRecord],
    metrics: Sequence[MetricDefinitionRecord],
    period_start: date,
    period_end: date,
    date_range: str,
) -> ScorecardResponse:
    observations_by_profile: Dict[str, List[MetricObservationRecord]] = defaultdict(list)
    for observation in observations:
        if overlaps(observation, period_start, period_end):
            observations_by_profile[observation.profile_id].append(observation)

    rows = [
        compute_attainment_row(profile, observations_by_profile.get(profile.id, []), metrics)
        for profile in profiles
    ]
    # sorted() is stable, so equal scores keep store order.
    rows = sorted(rows, key=lambda row: -row.composite_score)

    top_performer = (
        TopPerformer(profile_id=rows[0].profile_id, name=rows[0].name, score=rows[0].composite_score)
        if rows
        else None
    )
    cohort_average = round_half_up(sum(row.composite_score for row in rows) / len(rows)) if rows else 0
    visible_metrics = [
        metric for metric in metrics if metric.visible_on_scorecard and is_scorable(metric)
    ]
    return ScorecardResponse(
        period_start=period_start,
        period_end=period_end,
        date_range=date_range,
        metric_keys=[metric.key for metric in visible_metrics],
        metric_labels={metric.key: metric.name or metric.key for metric in visible_metrics},
        rows=rows,
        top_performer=top_performer,
        cohort_average=cohort_average,
        above_target_count=sum(1 for row in rows if row.composite_score >= FULL_ATTAINMENT_SCORE),
        below_threshold_count=sum(1 for row in rows if row.composite_score < COACHING_THRESHOLD_SCORE),
    )
