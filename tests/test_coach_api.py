from __future__ import annotations

from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from src.analytics.coaching import rank_playbooks
from src.api.dependencies import get_coach_service, get_scorecard_service
from src.main import create_app
from src.schemas.performance import (
    CoachSnapshot,
    EstimatedCount,
    ExactCount,
    MetricPerformance,
    PerformanceScope,
    PlaybookRecommendation,
    SkillCategoryProgress,
)


class FakeCoachService:
    def __init__(self, estimated: bool = False) -> None:
        self.estimated = estimated
        self.calls: List[Tuple[PerformanceScope, str]] = []

    def compute_coach_snapshot(self, scope: PerformanceScope, mode: str = "full") -> CoachSnapshot:
        self.calls.append((scope, mode))
        category = SkillCategoryProgress(
            skill_category_id="sc1",
            name="Call Conqueror",
            progress=40,
            achievements_completed=3,
            points=1000,
            next_achievement="Book 50 meetings",
        )
        total_badges = (
            EstimatedCount(value=1, basis="achievement_and_streak_milestones")
            if self.estimated
            else ExactCount(value=3)
        )
        return CoachSnapshot(
            mode=mode,
            total_members=2,
            average_level="Intermediate",
            average_score=85,
            average_points=1050,
            level_progress=3,
            points_to_next_level=1450,
            scorecard_streak=1,
            total_badges=total_badges,
            total_achievements=6,
            total_points=2100,
            skill_categories=[category],
            priority_skill_categories=[category],
        )


class FakeScorecardService:
    def recommend_playbooks(self, scope: PerformanceScope) -> PlaybookRecommendation:
        return PlaybookRecommendation(
            focus_profile_id=scope.members[0] if scope.members else None,
            current_score=85,
            playbooks=rank_playbooks(["call_connects"]),
            lagging=[
                MetricPerformance(
                    key="call_connects",
                    label="Call Connects",
                    percentage=50,
                    status="lagging",
                    skill_category="Call Conqueror",
                )
            ],
            on_track=[],
            exceeding=[],
        )


def _client_with(coach_service: FakeCoachService) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_coach_service] = lambda: coach_service
    app.dependency_overrides[get_scorecard_service] = FakeScorecardService
    return TestClient(app)


@pytest.fixture()
def coach_service() -> FakeCoachService:
    return FakeCoachService()


def test_coach_snapshot(coach_service: FakeCoachService) -> None:
    response = _client_with(coach_service).get("/api/v1/coach/snapshot?teams=team-a")
    assert response.status_code == 200
    payload = response.json()
    assert payload["data"]["averageLevel"] == "Intermediate"
    assert payload["data"]["pointsToNextLevel"] == 1450
    assert payload["data"]["totalBadges"] == {"kind": "exact", "value": 3}
    assert payload["data"]["skillCategories"][0]["nextAchievement"] == "Book 50 meetings"
    assert payload["meta"]["degraded"] is False
    assert coach_service.calls[-1][1] == "full"


def test_coach_snapshot_summary_mode(coach_service: FakeCoachService) -> None:
    response = _client_with(coach_service).get("/api/v1/coach/snapshot?members=p1&mode=summary")
    assert response.status_code == 200
    scope, mode = coach_service.calls[-1]
    assert mode == "summary"
    assert scope.members == ["p1"]


def test_coach_snapshot_marks_estimated_badges_degraded() -> None:
    response = _client_with(FakeCoachService(estimated=True)).get("/api/v1/coach/snapshot")
    assert response.status_code == 200
    payload = response.json()
    assert payload["data"]["totalBadges"]["kind"] == "estimated"
    assert payload["data"]["totalBadges"]["basis"] == "achievement_and_streak_milestones"
    assert payload["meta"]["degraded"] is True


def test_coach_snapshot_rejects_unknown_mode(coach_service: FakeCoachService) -> None:
    response = _client_with(coach_service).get("/api/v1/coach/snapshot?mode=detailed")
    assert response.status_code == 422
    assert coach_service.calls == []


def test_coach_recommendations(coach_service: FakeCoachService) -> None:
    response = _client_with(coach_service).get("/api/v1/coach/recommendations?members=p1")
    assert response.status_code == 200
    payload = response.json()
    assert payload["data"]["focusProfileId"] == "p1"
    playbook = payload["data"]["playbooks"][0]
    assert playbook["id"] == "connection-to-meetings"
    assert playbook["hitCount"] == 1
    assert payload["data"]["lagging"][0]["skillCategory"] == "Call Conqueror"
    assert payload["meta"]["timeWindow"] == "This Week"
