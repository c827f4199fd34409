from __future__ import annotations

from datetime import date, datetime

import pytest

from commondate.utils.date_labels import (
    long_label,
    month_grid,
    month_label,
    parse_selected_date,
    shift_month,
    short_label,
    to_iso,
)


def test_parse_selected_date_accepts_common_inputs():
    assert parse_selected_date("2026-03-10") == date(2026, 3, 10)
    assert parse_selected_date(" 2026-03-10T19:00:00+09:00 ") == date(2026, 3, 10)
    assert parse_selected_date(datetime(2026, 3, 10, 23, 59)) == date(2026, 3, 10)
    assert parse_selected_date(date(2026, 3, 10)) == date(2026, 3, 10)
    assert parse_selected_date("March 10, 2026") == date(2026, 3, 10)


@pytest.mark.parametrize(
    "value",
    ["", "   ", "soon", None, 20260310, "2026-03-10xyz", "2026-03-10 is not a date", "2026-02-30"],
)
def test_parse_selected_date_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_selected_date(value)


def test_labels():
    assert to_iso("March 1, 2026") == "2026-03-01"
    assert short_label("2026-02-14") == "2/14 (Sat)"
    assert long_label("2026-02-14") == "Feb 14 (Sat)"
    assert month_label(2026, 2) == "February 2026"


def test_month_grid_starts_on_monday():
    # March 2026 starts on a Sunday.
    weeks = month_grid(2026, 3)
    assert weeks[0][:6] == [None] * 6
    assert weeks[0][6] == date(2026, 3, 1)
    days = [d for week in weeks for d in week if d is not None]
    assert len(days) == 31
    assert all(len(week) == 7 for week in weeks)


@pytest.mark.parametrize(
    ("year", "month", "offset", "expected"),
    [
        (2026, 3, 0, (2026, 3)),
        (2026, 12, 1, (2027, 1)),
        (2026, 1, -1, (2025, 12)),
        (2026, 5, -17, (2024, 12)),
    ],
)
def test_shift_month(year, month, offset, expected):
    assert shift_month(year, month, offset) == expected
