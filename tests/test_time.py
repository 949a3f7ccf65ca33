from __future__ import annotations

from datetime import date

import pytest

from src.core.errors import BadRequestError
from src.shared.time import resolve_date_range

TODAY = date(2026, 10, 21)


@pytest.mark.parametrize(
    ("label", "start", "end"),
    [
        ("Today", date(2026, 10, 21), date(2026, 10, 21)),
        ("This Week", date(2026, 10, 19), date(2026, 10, 25)),
        ("Last Week", date(2026, 10, 12), date(2026, 10, 18)),
        ("This Month", date(2026, 10, 1), date(2026, 10, 31)),
        ("Last Month", date(2026, 9, 1), date(2026, 9, 30)),
        ("All Time", date(1970, 1, 1), date(2026, 10, 21)),
    ],
)
def test_presets_resolve_relative_to_today(label: str, start: date, end: date) -> None:
    window = resolve_date_range(label, today=TODAY)
    assert (window.start, window.end) == (start, end)


def test_last_month_crosses_year_boundary() -> None:
    window = resolve_date_range("Last Month", today=date(2026, 1, 15))
    assert (window.start, window.end) == (date(2025, 12, 1), date(2025, 12, 31))


def test_explicit_dates_override_preset() -> None:
    window = resolve_date_range("This Week", date(2026, 9, 1), date(2026, 9, 29), today=TODAY)
    assert (window.start, window.end) == (date(2026, 9, 1), date(2026, 9, 29))
    assert window.is_rolling
    assert window.span_days == 28


@pytest.mark.parametrize(
    ("label", "start", "end"),
    [
        ("Custom", None, None),
        ("Custom", date(2026, 9, 1), None),
        ("Custom", date(2026, 9, 30), date(2026, 9, 1)),
        ("Yesterday", None, None),
    ],
)
def test_invalid_ranges_are_rejected(label, start, end) -> None:
    with pytest.raises(BadRequestError):
        resolve_date_range(label, start, end, today=TODAY)
