from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional

from src.analytics.coaching import (
    MAINTAIN_HABITS_MESSAGE,
    average_metric_percentages,
    classify_metrics,
    rank_playbooks,
)
from src.analytics.scoring import build_scorecard, partition_valid_metrics
from src.analytics.trend import aggregate_trend, build_trend_buckets, resolve_window_count
from src.core.cache import ScopeCache, build_cache_key
from src.core.config import get_settings
from src.models.performance import MetricDefinitionRecord, MetricObservationRecord
from src.repositories.performance_repository import PerformanceRepository
from src.schemas.performance import (
    AttainmentRow,
    PerformanceScope,
    PlaybookRecommendation,
    ScorecardResponse,
    TrendSeries,
)
from src.shared.time import DateWindow, resolve_date_range

logger = logging.getLogger(__name__)


class ScorecardService:
    def __init__(
        self,
        repository: PerformanceRepository,
        cache: ScopeCache,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.today = today
        self.settings = get_settings()

    def resolve_window(self, scope: PerformanceScope) -> DateWindow:
        return resolve_date_range(
            scope.date_range, scope.period_start, scope.period_end, today=self.today()
        )

    def compute_scorecard(self, scope: PerformanceScope) -> ScorecardResponse:
        window = self.resolve_window(scope)
        key = build_cache_key(
            "scorecard", f"{scope.filter_signature()}|w:{window.start}..{window.end}"
        )
        return self.cache.get_or_compute(key, lambda: self._build_scorecard(scope, window))

    def compute_trend(self, scope: PerformanceScope) -> TrendSeries:
        today = self.today()
        window = self.resolve_window(scope)
        anchor = today if window.is_rolling else window.end
        key = build_cache_key(
            "trend",
            f"{scope.filter_signature()}|w:{window.label}:{window.start}..{window.end}|a:{anchor}",
        )
        return self.cache.get_or_compute(key, lambda: self._build_trend(scope, window, today))

    def recommend_playbooks(self, scope: PerformanceScope) -> PlaybookRecommendation:
        window = self.resolve_window(scope)
        key = build_cache_key(
            "recommendations", f"{scope.filter_signature()}|w:{window.start}..{window.end}"
        )
        return self.cache.get_or_compute(key, lambda: self._build_recommendation(scope))

    def _build_scorecard(self, scope: PerformanceScope, window: DateWindow) -> ScorecardResponse:
        metrics = self._load_metrics(scorecard_visible_only=False)
        profiles = self.repository.list_profiles(scope.departments, scope.teams, scope.members)
        observations: List[MetricObservationRecord] = []
        if profiles and metrics:
            observations = self.repository.list_observations(
                profile_ids=[profile.id for profile in profiles],
                metric_ids=[metric.id for metric in metrics],
                period_start=window.start,
                period_end=window.end,
            )
        logger.info(
            "Scorecard computed for %d profiles over %s..%s", len(profiles), window.start, window.end
        )
        return build_scorecard(
            profiles=profiles,
            observations=observations,
            metrics=metrics,
            period_start=window.start,
            period_end=window.end,
            date_range=window.label,
        )

    def _build_trend(self, scope: PerformanceScope, window: DateWindow, today: date) -> TrendSeries:
        rolling_windows = self.settings.trend_rolling_windows
        buckets = build_trend_buckets(window, today, rolling_windows)
        metrics = self._load_metrics(scorecard_visible_only=True)
        observations: List[MetricObservationRecord] = []
        if metrics:
            profiles = self.repository.list_profiles(scope.departments, scope.teams, scope.members)
            if profiles:
                observations = self.repository.list_observations(
                    profile_ids=[profile.id for profile in profiles],
                    metric_ids=[metric.id for metric in metrics],
                    period_start=buckets[0][0],
                    period_end=buckets[-1][1],
                )
        return TrendSeries(
            date_range=window.label,
            window_count=resolve_window_count(window, rolling_windows),
            points=aggregate_trend(observations, metrics, buckets),
        )

    def _build_recommendation(self, scope: PerformanceScope) -> PlaybookRecommendation:
        scorecard = self.compute_scorecard(scope)
        focus_row = self._find_focus_row(scorecard.rows, scope.focus_member_id)
        source_rows = [focus_row] if focus_row else scorecard.rows

        percentages = average_metric_percentages(source_rows, scorecard.metric_keys)
        lagging, on_track, exceeding = classify_metrics(percentages, scorecard.metric_labels)
        playbooks = rank_playbooks([metric.key for metric in lagging])
        current_score = focus_row.composite_score if focus_row else scorecard.cohort_average
        return PlaybookRecommendation(
            focus_profile_id=focus_row.profile_id if focus_row else None,
            current_score=current_score,
            playbooks=playbooks,
            lagging=lagging,
            on_track=on_track,
            exceeding=exceeding,
            fallback_message=None if lagging else MAINTAIN_HABITS_MESSAGE,
        )

    def _load_metrics(self, scorecard_visible_only: bool) -> List[MetricDefinitionRecord]:
        metrics = self.repository.list_metric_definitions(
            active_only=True, scorecard_visible_only=scorecard_visible_only
        )
        return partition_valid_metrics(metrics)

    @staticmethod
    def _find_focus_row(
        rows: List[AttainmentRow], focus_member_id: Optional[str]
    ) -> Optional[AttainmentRow]:
        if not focus_member_id:
            return None
        return next((row for row in rows if row.profile_id == focus_member_id), None)
