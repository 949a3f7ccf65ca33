from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from src.analytics.badges import estimate_badge_total
from src.analytics.mastery import build_level_bands, get_level_info, merge_mastery_records
from src.analytics.scoring import (
    composite_score,
    partition_valid_metrics,
    round_half_up,
    sum_values_by_metric,
)
from src.analytics.streak import calculate_cohort_streak, calculate_streaks
from src.core.cache import ScopeCache, build_cache_key
from src.core.config import get_settings
from src.core.errors import StoreQueryError
from src.models.performance import (
    AchievementRecord,
    MetricDefinitionRecord,
    MetricObservationRecord,
    ProfileRecord,
    SkillCategoryRecord,
)
from src.repositories.performance_repository import PerformanceRepository
from src.schemas.performance import (
    BadgeTotal,
    CoachSnapshot,
    ExactCount,
    PerformanceScope,
    SkillCategoryProgress,
)

logger = logging.getLogger(__name__)

SNAPSHOT_MODES = ("summary", "full")
PRIORITY_SKILL_CATEGORY_COUNT = 3
DIFFICULTY_RANK = {"easy": 1, "medium": 2, "hard": 3, "expert": 4}
SUMMARY_NEXT_ACHIEVEMENT = "View details to see next achievement"
ALL_ACHIEVEMENTS_COMPLETE = "All achievements complete"
KEEP_PROGRESSING = "Keep progressing to unlock the next achievement"


class CoachService:
    def __init__(self, repository: PerformanceRepository, cache: ScopeCache) -> None:
        self.repository = repository
        self.cache = cache
        self.settings = get_settings()
        self.level_bands = build_level_bands(self.settings.level_bands)

    def compute_coach_snapshot(self, scope: PerformanceScope, mode: str = "full") -> CoachSnapshot:
        if mode not in SNAPSHOT_MODES:
            mode = "full"
        key = build_cache_key(f"coach:{mode}", scope.filter_signature())
        return self.cache.get_or_compute(key, lambda: self._build_snapshot(scope, mode))

    def _build_snapshot(self, scope: PerformanceScope, mode: str) -> CoachSnapshot:
        is_full = mode == "full"
        profiles = self.repository.list_profiles(scope.departments, scope.teams, scope.members)
        profile_ids = [profile.id for profile in profiles]
        total_members = len(profiles)

        skill_categories = self.repository.list_skill_categories()
        metrics = partition_valid_metrics(self.repository.list_metric_definitions(active_only=True))
        observations = self._load_observations(profile_ids, metrics, mode)

        latest_period_end = max((obs.period_end for obs in observations), default=None)
        latest_observations = [obs for obs in observations if obs.period_end == latest_period_end]
        profile_scores = self._score_profiles(profiles, latest_observations, metrics)
        average_score = (
            round_half_up(sum(profile_scores.values()) / total_members) if total_members else 0
        )

        streaks: Dict[str, int] = {}
        if is_full:
            streaks = calculate_streaks(profile_ids, observations, metrics)
        scorecard_streak = calculate_cohort_streak(streaks.values(), total_members) if is_full else 0

        achievements_by_category: Dict[str, List[AchievementRecord]] = {}
        if is_full:
            achievements_by_category = self._load_achievements(skill_categories)

        mastery = (
            merge_mastery_records(
                self.repository.list_mastery_records(
                    profile_ids, [category.id for category in skill_categories]
                )
            )
            if profile_ids
            else {}
        )

        achievements_by_profile: Dict[str, int] = defaultdict(int)
        total_achievements = 0
        total_points = 0.0
        category_progress: List[SkillCategoryProgress] = []
        for category in skill_categories:
            progress_sum = 0.0
            achievements_sum = 0
            points_sum = 0.0
            for profile_id in profile_ids:
                record = mastery.get((profile_id, category.id))
                if record is None:
                    continue
                progress_sum += record.progress
                achievements_sum += record.achievements_completed
                points_sum += record.points_earned
                achievements_by_profile[profile_id] += record.achievements_completed
            total_achievements += achievements_sum
            total_points += points_sum
            average_achievements = round_half_up(achievements_sum / total_members) if total_members else 0
            category_progress.append(
                SkillCategoryProgress(
                    skill_category_id=category.id,
                    name=category.name,
                    description=category.description,
                    color=category.color,
                    progress=round_half_up(progress_sum / total_members) if total_members else 0,
                    achievements_completed=average_achievements,
                    points=round_half_up(points_sum / total_members) if total_members else 0,
                    next_achievement=self._next_achievement(
                        achievements_by_category.get(category.id, []), average_achievements, is_full
                    ),
                )
            )

        total_badges: Optional[BadgeTotal] = None
        if is_full:
            total_badges = self._count_badges(
                profile_ids, achievements_by_profile, streaks, profile_scores
            )

        average_points = round_half_up(total_points / total_members) if total_members else 0
        level_info = get_level_info(average_points, self.level_bands)
        priority = sorted(category_progress, key=lambda item: item.progress)
        return CoachSnapshot(
            mode=mode,
            total_members=total_members,
            average_level=level_info.level,
            average_score=average_score,
            average_points=average_points,
            level_progress=level_info.progress,
            points_to_next_level=level_info.points_to_next,
            scorecard_streak=scorecard_streak,
            total_badges=total_badges,
            total_achievements=total_achievements,
            total_points=round_half_up(total_points),
            skill_categories=category_progress,
            priority_skill_categories=priority[:PRIORITY_SKILL_CATEGORY_COUNT],
        )

    def _load_observations(
        self, profile_ids: Sequence[str], metrics: Sequence[MetricDefinitionRecord], mode: str
    ) -> List[MetricObservationRecord]:
        if not profile_ids or not metrics:
            return []
        metric_ids = [metric.id for metric in metrics]
        if mode == "summary" and len(profile_ids) == 1:
            latest = self.repository.latest_period_end(profile_ids)
            if latest is None:
                return []
            return self.repository.list_observations(
                profile_ids, metric_ids, period_end_equals=latest
            )
        return self.repository.list_observations(profile_ids, metric_ids)

    def _load_achievements(
        self, skill_categories: Sequence[SkillCategoryRecord]
    ) -> Dict[str, List[AchievementRecord]]:
        category_ids = [category.id for category in skill_categories if category.id]
        grouped: Dict[str, List[AchievementRecord]] = defaultdict(list)
        for achievement in self.repository.list_achievements(category_ids):
            grouped[achievement.skill_category_id].append(achievement)
        for achievements in grouped.values():
            achievements.sort(
                key=lambda item: (DIFFICULTY_RANK.get(item.difficulty or "", 5), item.points)
            )
        return dict(grouped)

    def _count_badges(
        self,
        profile_ids: Sequence[str],
        achievements_by_profile: Dict[str, int],
        streaks: Dict[str, int],
        profile_scores: Dict[str, int],
    ) -> BadgeTotal:
        if not profile_ids:
            return ExactCount(value=0)
        try:
            badges = self.repository.list_profile_badges(profile_ids)
        except StoreQueryError as exc:
            logger.warning("Badge query failed, estimating from milestones: %s", exc.message)
            return estimate_badge_total(profile_ids, achievements_by_profile, streaks, profile_scores)
        return ExactCount(value=len(badges))

    @staticmethod
    def _score_profiles(
        profiles: Sequence[ProfileRecord],
        observations: Sequence[MetricObservationRecord],
        metrics: Sequence[MetricDefinitionRecord],
    ) -> Dict[str, int]:
        by_profile: Dict[str, List[MetricObservationRecord]] = defaultdict(list)
        for observation in observations:
            by_profile[observation.profile_id].append(observation)
        return {
            profile.id: composite_score(sum_values_by_metric(by_profile.get(profile.id, [])), metrics)
            for profile in profiles
        }

    @staticmethod
    def _next_achievement(
        achievements: Sequence[AchievementRecord], completed: int, is_full: bool
    ) -> str:
        if not is_full:
            return SUMMARY_NEXT_ACHIEVEMENT
        if completed >= len(achievements):
            return ALL_ACHIEVEMENTS_COMPLETE
        upcoming = achievements[completed]
        return upcoming.description or upcoming.name or KEEP_PROGRESSING
