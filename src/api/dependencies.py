from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import List

from fastapi import Query

from src.core.cache import ScopeCache
from src.repositories.performance_repository import PerformanceRepository
from src.schemas.performance import DATE_RANGE_PATTERN, PerformanceScope
from src.services.coach_service import CoachService
from src.services.scorecard_service import ScorecardService


@lru_cache
def get_scope_cache() -> ScopeCache:
    return ScopeCache()


@lru_cache
def get_performance_repository() -> PerformanceRepository:
    return PerformanceRepository()


def get_scorecard_service() -> ScorecardService:
    return ScorecardService(repository=get_performance_repository(), cache=get_scope_cache())


def get_coach_service() -> CoachService:
    return CoachService(repository=get_performance_repository(), cache=get_scope_cache())


def get_performance_scope(
    departments: List[str] = Query(default=[]),
    teams: List[str] = Query(default=[]),
    members: List[str] = Query(default=[]),
    date_range: str = Query(default="This Week", pattern=DATE_RANGE_PATTERN),
    period_start: date | None = Query(default=None),
    period_end: date | None = Query(default=None),
    refresh: int = Query(default=0, ge=0),
) -> PerformanceScope:
    return PerformanceScope(
        departments=departments,
        teams=teams,
        members=members,
        date_range=date_range,
        period_start=period_start,
        period_end=period_end,
        refresh=refresh,
    )
