from __future__ import annotations

from typing import Mapping, Sequence

from src.analytics.scoring import FULL_ATTAINMENT_SCORE
from src.schemas.performance import EstimatedCount

ACHIEVEMENT_BADGE_MILESTONES = (10, 25, 50, 100)
STREAK_BADGE_MILESTONES = (5, 10, 30, 90, 180)
BADGE_ESTIMATE_BASIS = "achievement_and_streak_milestones"


def estimate_profile_badges(achievement_count: int, streak: int, latest_score: int) -> int:
    badge_count = sum(1 for milestone in ACHIEVEMENT_BADGE_MILESTONES if achievement_count >= milestone)
    badge_count += sum(1 for milestone in STREAK_BADGE_MILESTONES if streak >= milestone)
    if latest_score >= FULL_ATTAINMENT_SCORE:
        badge_count += 1
    return badge_count


def estimate_badge_total(
    profile_ids: Sequence[str],
    achievements_by_profile: Mapping[str, int],
    streaks: Mapping[str, int],
    scores: Mapping[str, int],
) -> EstimatedCount:
    total = sum(
        estimate_profile_badges(
            achievements_by_profile.get(profile_id, 0),
            streaks.get(profile_id, 0),
            scores.get(profile_id, 0),
        )
        for profile_id in profile_ids
    )
    return EstimatedCount(value=total, basis=BADGE_ESTIMATE_BASIS)
