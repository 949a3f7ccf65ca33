from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from src.core.errors import BadRequestError

DATE_RANGE_PRESETS = (
    "Today",
    "This Week",
    "Last Week",
    "This Month",
    "Last Month",
    "All Time",
    "Custom",
)
# Presets whose trend is anchored at today rather than at the range end.
ROLLING_PRESETS = frozenset({"This Week", "All Time"})
ALL_TIME_START = date(1970, 1, 1)


@dataclass(frozen=True)
class DateWindow:
    label: str
    start: date
    end: date

    @property
    def is_rolling(self) -> bool:
        return self.label in ROLLING_PRESETS

    @property
    def span_days(self) -> int:
        return (self.end - self.start).days


def resolve_date_range(
    label: str,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
    today: Optional[date] = None,
) -> DateWindow:
    if label not in DATE_RANGE_PRESETS:
        raise BadRequestError(f"Unsupported date range: {label}")
    if period_start is not None or period_end is not None:
        if period_start is None or period_end is None:
            raise BadRequestError("period_start and period_end must be provided together")
        if period_start > period_end:
            raise BadRequestError("period_start must not be after period_end")
        return DateWindow(label=label, start=period_start, end=period_end)
    if label == "Custom":
        raise BadRequestError("Custom date range requires period_start and period_end")

    current = today or date.today()
    if label == "Today":
        return DateWindow(label=label, start=current, end=current)
    if label == "This Week":
        monday = _week_start(current)
        return DateWindow(label=label, start=monday, end=monday + timedelta(days=6))
    if label == "Last Week":
        monday = _week_start(current) - timedelta(days=7)
        return DateWindow(label=label, start=monday, end=monday + timedelta(days=6))
    if label == "This Month":
        first_day = current.replace(day=1)
        return DateWindow(label=label, start=first_day, end=_add_months(first_day, 1) - timedelta(days=1))
    if label == "Last Month":
        first_day = _add_months(current.replace(day=1), -1)
        return DateWindow(label=label, start=first_day, end=current.replace(day=1) - timedelta(days=1))
    return DateWindow(label=label, start=ALL_TIME_START, end=current)


def _week_start(value: date) -> date:
    return value - timedelta(days=value.weekday())


def _add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1)
