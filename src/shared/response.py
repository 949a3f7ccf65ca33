from __future__ import annotations

from typing import Generic, Optional, TypeVar

from src.shared.base import BaseSchema


T = TypeVar("T")


class Meta(BaseSchema):
    as_of_date: str
    source: str
    time_window: str
    calculation_version: str
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    degraded: Optional[bool] = None


class ResponseEnvelope(BaseSchema, Generic[T]):
    data: T
    meta: Optional[Meta] = None
