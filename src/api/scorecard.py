from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from src.api.dependencies import get_performance_scope, get_scorecard_service
from src.schemas.performance import PerformanceScope, ScorecardResponse, TrendSeries
from src.services.scorecard_service import ScorecardService
from src.shared.response import Meta, ResponseEnvelope

router = APIRouter(prefix="/scorecard", tags=["scorecard"])


@router.get("")
def scorecard(
    scope: PerformanceScope = Depends(get_performance_scope),
    service: ScorecardService = Depends(get_scorecard_service),
) -> ResponseEnvelope[ScorecardResponse]:
    data = service.compute_scorecard(scope)
    meta = Meta(
        as_of_date=date.today().isoformat(),
        source="kpi_metrics,kpi_values,profiles",
        time_window=scope.date_range,
        calculation_version="v1",
        period_start=data.period_start.isoformat(),
        period_end=data.period_end.isoformat(),
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/trend")
def scorecard_trend(
    scope: PerformanceScope = Depends(get_performance_scope),
    service: ScorecardService = Depends(get_scorecard_service),
) -> ResponseEnvelope[TrendSeries]:
    data = service.compute_trend(scope)
    meta = Meta(
        as_of_date=date.today().isoformat(),
        source="kpi_metrics,kpi_values,profiles",
        time_window=f"{data.window_count}w",
        calculation_version="v1",
        period_start=data.points[0].bucket_start.isoformat() if data.points else None,
        period_end=data.points[-1].bucket_end.isoformat() if data.points else None,
    )
    return ResponseEnvelope(data=data, meta=meta)
