from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from src.analytics.playbook_catalog import METRIC_GUIDANCE, METRIC_SKILL_CATEGORY, PLAYBOOK_CATALOG
from src.analytics.scoring import round_half_up
from src.schemas.performance import AttainmentRow, MetricPerformance, Playbook, RankedPlaybook

LAGGING_THRESHOLD = 80
EXCEEDING_THRESHOLD = 100
MAX_RECOMMENDED_PLAYBOOKS = 3
MAINTAIN_HABITS_MESSAGE = (
    "All KPIs are on track. Focus on maintaining current habits and consistent execution."
)


def metric_label(metric_key: str, labels: Optional[Mapping[str, str]] = None) -> str:
    if labels and labels.get(metric_key):
        return labels[metric_key]
    guidance = METRIC_GUIDANCE.get(metric_key)
    if guidance:
        return str(guidance["title"])
    return metric_key.replace("_", " ").title()


def resolve_skill_category(
    metric_key: str, mapping: Mapping[str, str] = METRIC_SKILL_CATEGORY
) -> Optional[str]:
    return mapping.get(metric_key)


def average_metric_percentages(
    rows: Sequence[AttainmentRow], metric_keys: Sequence[str]
) -> Dict[str, int]:
    averages: Dict[str, int] = {}
    for metric_key in metric_keys:
        percentages = [
            row.metrics[metric_key].percentage if metric_key in row.metrics else 0.0
            for row in rows
        ]
        averages[metric_key] = round_half_up(sum(percentages) / len(percentages)) if percentages else 0
    return averages


def classify_metrics(
    percentages: Mapping[str, int],
    labels: Optional[Mapping[str, str]] = None,
) -> Tuple[List[MetricPerformance], List[MetricPerformance], List[MetricPerformance]]:
    """Split metrics into (lagging, on track, exceeding), keeping input order."""
    lagging: List[MetricPerformance] = []
    on_track: List[MetricPerformance] = []
    exceeding: List[MetricPerformance] = []
    for metric_key, percentage in percentages.items():
        if percentage < LAGGING_THRESHOLD:
            status, bucket = "lagging", lagging
        elif percentage < EXCEEDING_THRESHOLD:
            status, bucket = "on_track", on_track
        else:
            status, bucket = "exceeding", exceeding
        guidance = METRIC_GUIDANCE.get(metric_key, {})
        bucket.append(
            MetricPerformance(
                key=metric_key,
                label=metric_label(metric_key, labels),
                percentage=percentage,
                status=status,
                skill_category=resolve_skill_category(metric_key),
                tips=list(guidance.get("tips", [])) if status == "lagging" else [],
            )
        )
    return lagging, on_track, exceeding


def rank_playbooks(
    lagging_metric_keys: Sequence[str],
    catalog: Sequence[Playbook] = PLAYBOOK_CATALOG,
    limit: int = MAX_RECOMMENDED_PLAYBOOKS,
) -> List[RankedPlaybook]:
    lagging_keys = set(lagging_metric_keys)
    if not lagging_keys:
        return []
    scored = [
        RankedPlaybook(
            **playbook.model_dump(),
            hit_count=len(lagging_keys.intersection(playbook.metric_keys)),
        )
        for playbook in catalog
    ]
    # Stable sort: equal hit counts stay in catalog order.
    ranked = sorted(
        (playbook for playbook in scored if playbook.hit_count > 0),
        key=lambda playbook: -playbook.hit_count,
    )
    return ranked[:limit]


def build_coaching_plan_text(
    audience_label: str,
    playbooks: Sequence[Playbook],
    labels: Optional[Mapping[str, str]] = None,
) -> str:
    lines = ["Apptivia Auto Coaching Plan", "", f"Focus: {audience_label or 'Team Snapshot'}", ""]
    if not playbooks:
        lines.append(MAINTAIN_HABITS_MESSAGE)
        return "\n".join(lines)
    for index, playbook in enumerate(playbooks, start=1):
        related = ", ".join(metric_label(key, labels) for key in playbook.metric_keys)
        lines.append(f"{index}. {playbook.title}")
        lines.append(f"   Related KPIs: {related}")
        lines.extend(f"   - {step}" for step in playbook.steps)
        lines.append("")
    return "\n".join(lines)
