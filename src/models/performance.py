from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StoreRecord(BaseModel):
    # Store column names are accepted as aliases; the engine uses domain names.
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class MetricDefinitionRecord(StoreRecord):
    id: str
    key: str
    name: Optional[str] = None
    target: float = Field(default=0.0, alias="goal")
    weight: float = 0.0
    unit: Optional[str] = None
    category: Optional[str] = None
    visible_on_scorecard: bool = Field(default=True, alias="show_on_scorecard")
    display_order: Optional[int] = Field(default=None, alias="scorecard_position")
    is_active: bool = True

    @field_validator("target", "weight", mode="before")
    @classmethod
    def _null_number_as_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("visible_on_scorecard", "is_active", mode="before")
    @classmethod
    def _null_flag_as_true(cls, value: Any) -> Any:
        return True if value is None else value


class MetricObservationRecord(StoreRecord):
    profile_id: str
    metric_id: str = Field(alias="kpi_id")
    value: float = 0.0
    period_start: date
    period_end: date

    @field_validator("value", mode="before")
    @classmethod
    def _null_value_as_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class ProfileRecord(StoreRecord):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    team_id: Optional[str] = None
    department: Optional[str] = None

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()


class SkillCategoryRecord(StoreRecord):
    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None


class AchievementRecord(StoreRecord):
    id: str
    skill_category_id: str = Field(alias="skillset_id")
    name: Optional[str] = None
    description: Optional[str] = None
    points: int = 0
    difficulty: Optional[str] = None

    @field_validator("points", mode="before")
    @classmethod
    def _null_points_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class MasteryRecord(StoreRecord):
    profile_id: str
    skill_category_id: str = Field(alias="skillset_id")
    progress: float = 0.0
    achievements_completed: int = 0
    points_earned: float = Field(default=0.0, alias="total_points_earned")

    @field_validator("progress", "achievements_completed", "points_earned", mode="before")
    @classmethod
    def _null_counter_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class ProfileBadgeRecord(StoreRecord):
    id: str
    profile_id: str
