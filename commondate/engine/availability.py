from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from commondate.db.sqlite_client import (
    add_selection,
    get_participant_selections,
    get_room,
    get_selections,
    remove_selection,
    replace_selections,
    room_exists,
)
from commondate.rooms.manager import normalize_display_name, validate_participant_name
from commondate.utils.date_labels import to_iso

logger = logging.getLogger(__name__)


def _checked_name(conn: Any, room_id: str, name: str) -> str:
    if not room_exists(conn, room_id):
        raise ValueError("Room not found.")
    error = validate_participant_name(name)
    if error:
        raise ValueError(error)
    return normalize_display_name(name)


def _add_or_room_gone(conn: Any, room_id: str, participant: str, day: str) -> bool:
    try:
        return add_selection(conn, room_id, participant, day)
    except Exception as exc:
        # The room can be deleted between the existence check and the insert.
        if get_room(conn, room_id) is None:
            raise ValueError("Room not found.") from exc
        raise


def add_date(conn: Any, room_id: str, name: str, selected_date: Any) -> bool:
    participant = _checked_name(conn, room_id, name)
    return _add_or_room_gone(conn, room_id, participant, to_iso(selected_date))


def remove_date(conn: Any, room_id: str, name: str, selected_date: Any) -> bool:
    participant = _checked_name(conn, room_id, name)
    return remove_selection(conn, room_id, participant, to_iso(selected_date))


def toggle_date(conn: Any, room_id: str, name: str, selected_date: Any) -> bool:
    """Flip one day for a participant; returns True when the day is now selected."""
    participant = _checked_name(conn, room_id, name)
    day = to_iso(selected_date)
    if remove_selection(conn, room_id, participant, day):
        logger.info("[AVAILABILITY] removed room_id=%s name=%r date=%s", room_id, participant, day)
        return False
    _add_or_room_gone(conn, room_id, participant, day)
    logger.info("[AVAILABILITY] added room_id=%s name=%r date=%s", room_id, participant, day)
    return True


def set_participant_dates(
    conn: Any,
    room_id: str,
    name: str,
    selected_dates: list[Any],
) -> None:
    participant = _checked_name(conn, room_id, name)
    days = [to_iso(d) for d in selected_dates]
    try:
        replace_selections(conn, room_id, participant, days)
    except Exception as exc:
        if get_room(conn, room_id) is None:
            raise ValueError("Room not found.") from exc
        raise


def get_participant_dates(conn: Any, room_id: str, name: str) -> list[str]:
    participant = normalize_display_name(name)
    return [row["selected_date"] for row in get_participant_selections(conn, room_id, participant)]


def summarize_selections(rows: list[dict[str, Any]]) -> dict[str, Any]:
    """Group selection rows by day and flag the days every participant picked.

    ``rows`` are expected in ``selected_date`` order; participants are listed in
    the order they first appear.
    """
    participants: list[str] = []
    seen: set[str] = set()
    grouped: dict[str, list[str]] = defaultdict(list)
    for row in rows:
        name = str(row["name"])
        day = to_iso(row["selected_date"])
        if name not in seen:
            seen.add(name)
            participants.append(name)
        if name not in grouped[day]:
            grouped[day].append(name)
    participant_count = len(participants)
    dates = [
        {
            "date": day,
            "names": names,
            "count": len(names),
            "all_available": participant_count > 0 and len(names) == participant_count,
        }
        for day, names in sorted(grouped.items())
    ]
    return {
        "participant_count": participant_count,
        "participants": participants,
        "dates": dates,
        "all_available_dates": [item["date"] for item in dates if item["all_available"]],
    }


def get_room_availability(conn: Any, room_id: str) -> dict[str, Any]:
    return summarize_selections(get_selections(conn, room_id))
