from __future__ import annotations

from datetime import date
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field

from src.shared.base import BaseSchema, FrozenSchema

DATE_RANGE_PATTERN = "^(Today|This Week|Last Week|This Month|Last Month|All Time|Custom)$"
SNAPSHOT_MODE_PATTERN = "^(summary|full)$"


class PerformanceScope(BaseSchema):
    # Keep query parameter names in snake_case for API contract consistency.
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    departments: List[str] = Field(default_factory=list)
    teams: List[str] = Field(default_factory=list)
    members: List[str] = Field(default_factory=list)
    date_range: str = Field(default="This Week", pattern=DATE_RANGE_PATTERN)
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    refresh: int = Field(default=0, ge=0)

    @property
    def focus_member_id(self) -> Optional[str]:
        members = {member for member in self.members if member}
        return next(iter(members)) if len(members) == 1 else None

    def filter_signature(self) -> str:
        return "|".join(
            [
                "d:" + ",".join(_normalize(self.departments)),
                "t:" + ",".join(_normalize(self.teams)),
                "m:" + ",".join(_normalize(self.members)),
                f"r:{self.refresh}",
            ]
        )


def _normalize(values: List[str]) -> List[str]:
    return sorted({value.strip() for value in values if value and value.strip()})


class MetricAttainment(FrozenSchema):
    value: float
    percentage: float


class AttainmentRow(FrozenSchema):
    profile_id: str
    name: str
    team_id: Optional[str] = None
    department: Optional[str] = None
    email: Optional[str] = None
    metrics: Dict[str, MetricAttainment]
    informational_metrics: Dict[str, MetricAttainment] = Field(default_factory=dict)
    composite_score: int


class TopPerformer(FrozenSchema):
    profile_id: str
    name: str
    score: int


class ScorecardResponse(FrozenSchema):
    period_start: date
    period_end: date
    date_range: str
    metric_keys: List[str]
    metric_labels: Dict[str, str] = Field(default_factory=dict)
    rows: List[AttainmentRow]
    top_performer: Optional[TopPerformer] = None
    cohort_average: int
    above_target_count: int
    below_threshold_count: int


class TrendPoint(FrozenSchema):
    label: str
    bucket_start: date
    bucket_end: date
    score: int
    has_data: bool


class TrendSeries(FrozenSchema):
    date_range: str
    window_count: int
    points: List[TrendPoint]


class LevelBand(FrozenSchema):
    label: str
    min_points: int
    max_points: Optional[int] = None


class LevelInfo(FrozenSchema):
    level: str
    progress: int
    points_to_next: int


class ExactCount(FrozenSchema):
    kind: Literal["exact"] = "exact"
    value: int


class EstimatedCount(FrozenSchema):
    kind: Literal["estimated"] = "estimated"
    value: int
    basis: str


BadgeTotal = Annotated[Union[ExactCount, EstimatedCount], Field(discriminator="kind")]


class SkillCategoryProgress(FrozenSchema):
    skill_category_id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    progress: int
    achievements_completed: int
    points: int
    next_achievement: str


class CoachSnapshot(FrozenSchema):
    mode: str
    total_members: int
    average_level: str
    average_score: int
    average_points: int
    level_progress: int
    points_to_next_level: int
    scorecard_streak: int
    total_badges: Optional[BadgeTotal] = None
    total_achievements: int
    total_points: int
    skill_categories: List[SkillCategoryProgress]
    priority_skill_categories: List[SkillCategoryProgress]


class Playbook(FrozenSchema):
    id: str
    title: str
    metric_keys: List[str]
    steps: List[str]


class RankedPlaybook(Playbook):
    hit_count: int


class MetricPerformance(FrozenSchema):
    key: str
    label: str
    percentage: int
    status: str
    skill_category: Optional[str] = None
    tips: List[str] = Field(default_factory=list)


class PlaybookRecommendation(FrozenSchema):
    focus_profile_id: Optional[str] = None
    current_score: int
    playbooks: List[RankedPlaybook]
    lagging: List[MetricPerformance]
    on_track: List[MetricPerformance]
    exceeding: List[MetricPerformance]
    fallback_message: Optional[str] = None
