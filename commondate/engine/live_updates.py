"""Change detection for a room's selections.

A revision is ``(selection_count, max_selection_id)``. Ids are never reused, so
every insert raises the max id and every delete lowers the count; comparing two
revisions is enough to tell whether a room needs to be re-read.
"""

from __future__ import annotations

from typing import Any

from commondate.db.sqlite_client import get_selection_revision, room_exists

Revision = tuple[int, int]


def get_room_revision(conn: Any, room_id: str) -> Revision | None:
    if not room_exists(conn, room_id):
        return None
    return get_selection_revision(conn, room_id)


def poll_room_changes(
    conn: Any, room_id: str, last_revision: Revision | None
) -> tuple[bool, Revision | None]:
    revision = get_room_revision(conn, room_id)
    return revision != last_revision, revision
