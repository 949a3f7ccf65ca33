from __future__ import annotations

from datetime import date
from typing import Iterator, List, Optional, Sequence, Tuple

from src.core.config import get_settings
from src.core.supabase import SupabaseClient, build_in_filter
from src.models.performance import (
    AchievementRecord,
    MasteryRecord,
    MetricDefinitionRecord,
    MetricObservationRecord,
    ProfileBadgeRecord,
    ProfileRecord,
    SkillCategoryRecord,
)


class PerformanceRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()
        self.chunk_size = max(get_settings().store_chunk_size, 1)

    def list_metric_definitions(
        self, active_only: bool = True, scorecard_visible_only: bool = False
    ) -> List[MetricDefinitionRecord]:
        filters: List[Tuple[str, str]] = []
        if active_only:
            filters.append(("is_active", "eq.true"))
        if scorecard_visible_only:
            filters.append(("show_on_scorecard", "eq.true"))
        rows = self.client.select_all(
            table="kpi_metrics",
            select="id,key,name,goal,weight,unit,category,show_on_scorecard,scorecard_position,is_active",
            filters=filters,
            order="scorecard_position.asc.nullslast",
        )
        return [MetricDefinitionRecord.model_validate(row) for row in rows]

    def list_profiles(
        self,
        departments: Sequence[str] = (),
        teams: Sequence[str] = (),
        member_ids: Sequence[str] = (),
    ) -> List[ProfileRecord]:
        filters: List[Tuple[str, str]] = []
        for column, values in (("department", departments), ("team_id", teams), ("id", member_ids)):
            in_filter = build_in_filter(values)
            if in_filter:
                filters.append((column, in_filter))
        rows = self.client.select_all(
            table="profiles",
            select="id,first_name,last_name,email,team_id,department",
            filters=filters,
            order="id.asc",
        )
        return [ProfileRecord.model_validate(row) for row in rows]

    def list_observations(
        self,
        profile_ids: Sequence[str],
        metric_ids: Sequence[str],
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        period_end_equals: Optional[date] = None,
    ) -> List[MetricObservationRecord]:
        """Observations for the profiles and metrics.

        With a period, a row matches when its own range overlaps it
        (``row.period_start <= period_end`` and ``row.period_end >= period_start``).
        """
        metric_filter = build_in_filter(metric_ids)
        if not metric_filter:
            return []
        observations: List[MetricObservationRecord] = []
        for chunk in self._chunks(profile_ids):
            profile_filter = build_in_filter(chunk)
            if not profile_filter:
                continue
            filters: List[Tuple[str, str]] = [
                ("profile_id", profile_filter),
                ("kpi_id", metric_filter),
            ]
            if period_end is not None:
                filters.append(("period_start", f"lte.{period_end.isoformat()}"))
            if period_start is not None:
                filters.append(("period_end", f"gte.{period_start.isoformat()}"))
            if period_end_equals is not None:
                filters.append(("period_end", f"eq.{period_end_equals.isoformat()}"))
            rows = self.client.select_all(
                table="kpi_values",
                select="profile_id,kpi_id,value,period_start,period_end",
                filters=filters,
                order="period_end.desc,id.asc",
            )
            observations.extend(MetricObservationRecord.model_validate(row) for row in rows)
        return observations

    def latest_period_end(self, profile_ids: Sequence[str]) -> Optional[date]:
        latest: Optional[date] = None
        for chunk in self._chunks(profile_ids):
            profile_filter = build_in_filter(chunk)
            if not profile_filter:
                continue
            rows = self.client.select(
                table="kpi_values",
                select="period_end",
                filters=[("profile_id", profile_filter)],
                order="period_end.desc",
                limit=1,
            )
            if rows and rows[0].get("period_end"):
                candidate = date.fromisoformat(str(rows[0]["period_end"]))
                if latest is None or candidate > latest:
                    latest = candidate
        return latest

    def list_skill_categories(self) -> List[SkillCategoryRecord]:
        rows = self.client.select_all(
            table="skillsets",
            select="id,name,description,color",
            order="name.asc",
        )
        return [SkillCategoryRecord.model_validate(row) for row in rows]

    def list_achievements(self, skill_category_ids: Sequence[str]) -> List[AchievementRecord]:
        category_filter = build_in_filter(skill_category_ids)
        if not category_filter:
            return []
        rows = self.client.select_all(
            table="achievements",
            select="id,skillset_id,name,description,points,difficulty",
            filters=[("skillset_id", category_filter)],
        )
        return [AchievementRecord.model_validate(row) for row in rows]

    def list_mastery_records(
        self, profile_ids: Sequence[str], skill_category_ids: Sequence[str] = ()
    ) -> List[MasteryRecord]:
        category_filter = build_in_filter(skill_category_ids)
        records: List[MasteryRecord] = []
        for chunk in self._chunks(profile_ids):
            profile_filter = build_in_filter(chunk)
            if not profile_filter:
                continue
            filters: List[Tuple[str, str]] = [("profile_id", profile_filter)]
            if category_filter:
                filters.append(("skillset_id", category_filter))
            rows = self.client.select_all(
                table="profile_skillsets",
                select="profile_id,skillset_id,progress,achievements_completed,total_points_earned",
                filters=filters,
            )
            records.extend(MasteryRecord.model_validate(row) for row in rows)
        return records

    def list_profile_badges(self, profile_ids: Sequence[str]) -> List[ProfileBadgeRecord]:
        badges: List[ProfileBadgeRecord] = []
        for chunk in self._chunks(profile_ids):
            profile_filter = build_in_filter(chunk)
            if not profile_filter:
                continue
            rows = self.client.select_all(
                table="profile_badges",
                select="id,profile_id",
                filters=[("profile_id", profile_filter)],
            )
            badges.extend(ProfileBadgeRecord.model_validate(row) for row in rows)
        return badges

    def _chunks(self, values: Sequence[str]) -> Iterator[List[str]]:
        normalized = sorted({value for value in values if value})
        for start in range(0, len(normalized), self.chunk_size):
            yield normalized[start : start + self.chunk_size]
