from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_coach_service, get_performance_scope, get_scorecard_service
from src.schemas.performance import (
    SNAPSHOT_MODE_PATTERN,
    CoachSnapshot,
    PerformanceScope,
    PlaybookRecommendation,
)
from src.services.coach_service import CoachService
from src.services.scorecard_service import ScorecardService
from src.shared.response import Meta, ResponseEnvelope

router = APIRouter(prefix="/coach", tags=["coach"])


@router.get("/snapshot")
def coach_snapshot(
    mode: str = Query(default="full", pattern=SNAPSHOT_MODE_PATTERN),
    scope: PerformanceScope = Depends(get_performance_scope),
    service: CoachService = Depends(get_coach_service),
) -> ResponseEnvelope[CoachSnapshot]:
    data = service.compute_coach_snapshot(scope, mode)
    meta = Meta(
        as_of_date=date.today().isoformat(),
        source="profiles,kpi_values,skillsets,achievements,profile_skillsets,profile_badges",
        time_window="cumulative",
        calculation_version="v1",
        degraded=data.total_badges is not None and data.total_badges.kind == "estimated",
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/recommendations")
def coach_recommendations(
    scope: PerformanceScope = Depends(get_performance_scope),
    service: ScorecardService = Depends(get_scorecard_service),
) -> ResponseEnvelope[PlaybookRecommendation]:
    data = service.recommend_playbooks(scope)
    meta = Meta(
        as_of_date=date.today().isoformat(),
        source="kpi_metrics,kpi_values,profiles",
        time_window=scope.date_range,
        calculation_version="v1",
    )
    return ResponseEnvelope(data=data, meta=meta)
