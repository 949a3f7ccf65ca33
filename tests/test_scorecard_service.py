from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import List, Optional, Sequence

import pytest

from src.analytics.coaching import MAINTAIN_HABITS_MESSAGE
from src.core.cache import ScopeCache
from src.core.errors import StoreQueryError
from src.models.performance import MetricDefinitionRecord, MetricObservationRecord, ProfileRecord
from src.schemas.performance import PerformanceScope
from src.services.scorecard_service import ScorecardService

WEEK_START = date(2026, 9, 7)
WEEK_END = date(2026, 9, 13)


class StubPerformanceRepository:
    def __init__(self) -> None:
        self.metrics = [
            MetricDefinitionRecord(id="m-calls", key="call_connects", name="Call Connects", target=50, weight=0.5),
            MetricDefinitionRecord(id="m-meetings", key="meetings", name="Meetings", target=10, weight=0.5),
            MetricDefinitionRecord(
                id="m-notes", key="notes_logged", target=5, weight=0, visible_on_scorecard=False
            ),
        ]
        self.profiles = [
            ProfileRecord(id="p1", first_name="Alex", last_name="Taylor", team_id="team-a"),
            ProfileRecord(id="p2", first_name="Sam", last_name="Lee", team_id="team-b"),
        ]
        self.observations = [
            self._week("p1", "m-calls", 25),
            self._week("p1", "m-meetings", 12),
            self._week("p1", "m-notes", 10),
            self._week("p2", "m-calls", 50),
            self._week("p2", "m-meetings", 10),
        ]
        self.observation_calls = 0
        self.observation_error: Optional[Exception] = None
        self.query_started = threading.Event()
        self.query_gate: Optional[threading.Event] = None

    @staticmethod
    def _week(profile_id: str, metric_id: str, value: float) -> MetricObservationRecord:
        return MetricObservationRecord(
            profile_id=profile_id,
            metric_id=metric_id,
            value=value,
            period_start=WEEK_START,
            period_end=WEEK_END,
        )

    def list_metric_definitions(
        self, active_only: bool = True, scorecard_visible_only: bool = False
    ) -> List[MetricDefinitionRecord]:
        _ = active_only
        if scorecard_visible_only:
            return [metric for metric in self.metrics if metric.visible_on_scorecard]
        return list(self.metrics)

    def list_profiles(
        self, departments: Sequence[str] = (), teams: Sequence[str] = (), member_ids: Sequence[str] = ()
    ) -> List[ProfileRecord]:
        _ = departments
        return [
            profile
            for profile in self.profiles
            if (not teams or profile.team_id in teams) and (not member_ids or profile.id in member_ids)
        ]

    def list_observations(
        self,
        profile_ids: Sequence[str],
        metric_ids: Sequence[str],
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        period_end_equals: Optional[date] = None,
    ) -> List[MetricObservationRecord]:
        _ = period_end_equals
        self.observation_calls += 1
        self.query_started.set()
        if self.query_gate is not None:
            self.query_gate.wait(timeout=2)
        if self.observation_error is not None:
            raise self.observation_error
        return [
            observation
            for observation in self.observations
            if observation.profile_id in profile_ids
            and observation.metric_id in metric_ids
            and (period_end is None or observation.period_start <= period_end)
            and (period_start is None or observation.period_end >= period_start)
        ]


def _scope(**overrides) -> PerformanceScope:
    values = {
        "teams": ["team-a", "team-b"],
        "date_range": "Custom",
        "period_start": WEEK_START,
        "period_end": WEEK_END,
    }
    values.update(overrides)
    return PerformanceScope(**values)


def _service(repository: StubPerformanceRepository, today: date = date(2026, 10, 19)) -> ScorecardService:
    return ScorecardService(repository=repository, cache=ScopeCache(), today=lambda: today)


def test_compute_scorecard_for_team_scope() -> None:
    service = _service(StubPerformanceRepository())
    scorecard = service.compute_scorecard(_scope())
    assert [row.profile_id for row in scorecard.rows] == ["p2", "p1"]
    assert [row.composite_score for row in scorecard.rows] == [100, 85]
    assert scorecard.rows[1].informational_metrics["notes_logged"].percentage == pytest.approx(200.0)
    assert "notes_logged" not in scorecard.metric_keys
    assert scorecard.above_target_count == 1
    assert scorecard.below_threshold_count == 0


def test_concurrent_identical_scopes_query_store_once() -> None:
    repository = StubPerformanceRepository()
    repository.query_gate = threading.Event()
    service = _service(repository)

    with ThreadPoolExecutor(max_workers=2) as executor:
        first = executor.submit(service.compute_scorecard, _scope())
        assert repository.query_started.wait(timeout=2)
        second = executor.submit(service.compute_scorecard, _scope(teams=["team-b", "team-a"]))
        time.sleep(0.05)
        repository.query_gate.set()
        assert first.result(timeout=2) is second.result(timeout=2)

    assert repository.observation_calls == 1


def test_refresh_counter_forces_recompute() -> None:
    repository = StubPerformanceRepository()
    service = _service(repository)
    cached = service.compute_scorecard(_scope())
    assert service.compute_scorecard(_scope()) is cached
    assert repository.observation_calls == 1
    service.compute_scorecard(_scope(refresh=1))
    assert repository.observation_calls == 2


def test_store_failure_propagates_and_is_retried() -> None:
    repository = StubPerformanceRepository()
    repository.observation_error = StoreQueryError("kpi_values unavailable", table="kpi_values")
    service = _service(repository)
    with pytest.raises(StoreQueryError):
        service.compute_scorecard(_scope())
    repository.observation_error = None
    assert service.compute_scorecard(_scope()).rows
    assert repository.observation_calls == 2


def test_invalid_metric_is_left_out() -> None:
    repository = StubPerformanceRepository()
    repository.metrics.append(MetricDefinitionRecord(id="m-bad", key="broken", target=-1, weight=1))
    scorecard = _service(repository).compute_scorecard(_scope())
    assert "broken" not in scorecard.metric_keys
    assert scorecard.rows[0].composite_score == 100


def test_trend_for_rolling_preset_anchors_at_today() -> None:
    repository = StubPerformanceRepository()
    repository.observations = [
        MetricObservationRecord(
            profile_id="p1",
            metric_id="m-calls",
            value=50,
            period_start=date(2026, 10, 13),
            period_end=date(2026, 10, 19),
        )
    ]
    trend = _service(repository).compute_trend(_scope(date_range="This Week", period_start=None, period_end=None))
    assert trend.window_count == 5
    assert len(trend.points) == 5
    assert trend.points[-1].bucket_end == date(2026, 10, 19)
    assert (trend.points[-1].score, trend.points[-1].has_data) == (100, True)
    assert not trend.points[-2].has_data


def test_recommendations_for_single_member() -> None:
    service = _service(StubPerformanceRepository())
    recommendation = service.recommend_playbooks(_scope(members=["p1"]))
    assert recommendation.focus_profile_id == "p1"
    assert recommendation.current_score == 85
    assert [metric.key for metric in recommendation.lagging] == ["call_connects"]
    assert [metric.key for metric in recommendation.exceeding] == ["meetings"]
    assert [playbook.id for playbook in recommendation.playbooks] == ["connection-to-meetings"]
    assert recommendation.fallback_message is None


def test_recommendations_when_nothing_lags() -> None:
    service = _service(StubPerformanceRepository())
    recommendation = service.recommend_playbooks(_scope(members=["p2"]))
    assert recommendation.playbooks == []
    assert recommendation.lagging == []
    assert recommendation.fallback_message == MAINTAIN_HABITS_MESSAGE


def test_recommendations_for_cohort_use_average_attainment() -> None:
    service = _service(StubPerformanceRepository())
    recommendation = service.recommend_playbooks(_scope())
    assert recommendation.focus_profile_id is None
    assert [metric.key for metric in recommendation.lagging] == ["call_connects"]
    assert recommendation.lagging[0].percentage == 75
