"""Date parsing and calendar layout helpers.

Selections are stored as ISO ``YYYY-MM-DD`` strings. Everything the UI shows
is derived from that string so that every participant sees the same day no
matter which timezone their browser is in.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser


def parse_selected_date(value: Any) -> date:
    """Coerce a date, datetime, or date-like string into a calendar date.

    Raises ValueError for anything that does not name a single day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")
    text = value.strip()
    if not text:
        raise ValueError("Date is required.")
    try:
        # Whole-string ISO only; trailing text goes to dateutil, which rejects it.
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"Invalid date: {text}") from exc


def to_iso(value: Any) -> str:
    return parse_selected_date(value).isoformat()


def short_label(value: Any) -> str:
    """'2/14 (Sat)'"""
    day = parse_selected_date(value)
    return f"{day.month}/{day.day} ({day.strftime('%a')})"


def long_label(value: Any) -> str:
    """'Feb 14 (Sat)'"""
    day = parse_selected_date(value)
    return f"{day.strftime('%b')} {day.day} ({day.strftime('%a')})"


def month_label(year: int, month: int) -> str:
    return date(year, month, 1).strftime("%B %Y")


def month_grid(year: int, month: int) -> list[list[date | None]]:
    """Weeks of the month, Monday first, padded with None outside the month."""
    weeks: list[list[date | None]] = []
    for week in calendar.Calendar(firstweekday=0).monthdayscalendar(year, month):
        weeks.append([date(year, month, day) if day else None for day in week])
    return weeks


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1
