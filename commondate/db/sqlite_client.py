from __future__ import annotations

import os
import sqlite3
from contextlib import suppress
from datetime import date, datetime
from pathlib import Path
from typing import Any

SQLITE_SCHEMA = """
CREATE TABLE IF NOT EXISTS rooms (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS date_selections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    room_id TEXT NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    selected_date TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE(room_id, name, selected_date)
);

CREATE INDEX IF NOT EXISTS idx_date_selections_room ON date_selections(room_id);
"""

POSTGRES_SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS rooms (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS date_selections (
        id BIGSERIAL PRIMARY KEY,
        room_id TEXT NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        selected_date DATE NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        UNIQUE(room_id, name, selected_date)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_date_selections_room ON date_selections(room_id)",
]


def _is_postgres(conn: Any) -> bool:
    return conn.__class__.__module__.startswith("psycopg")


def _adapt_sql(conn: Any, sql: str) -> str:
    return sql.replace("?", "%s") if _is_postgres(conn) else sql


def _execute(conn: Any, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Any:
    if _is_postgres(conn):
        cur = conn.cursor()
        cur.execute(_adapt_sql(conn, sql), tuple(params))
        return cur
    return conn.execute(_adapt_sql(conn, sql), tuple(params))


def _executemany(conn: Any, sql: str, params_seq: list[tuple[Any, ...]]) -> Any:
    if _is_postgres(conn):
        cur = conn.cursor()
        cur.executemany(_adapt_sql(conn, sql), params_seq)
        return cur
    return conn.executemany(_adapt_sql(conn, sql), params_seq)


def _safe_rollback(conn: Any) -> None:
    """Reset failed DB transactions without masking original errors."""
    with suppress(Exception):
        conn.rollback()


def row_to_dict(row: Any) -> dict[str, Any]:
    return row if isinstance(row, dict) else dict(row)


def _iso_date(value: Any) -> str:
    # Postgres hands back date objects, SQLite hands back text.
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def _selection_to_dict(row: Any) -> dict[str, Any]:
    out = row_to_dict(row)
    out["selected_date"] = _iso_date(out["selected_date"])
    return out


def get_connection(db_path: str) -> Any:
    database_url = os.getenv("DATABASE_URL", "").strip()
    if database_url:
        from psycopg import connect
        from psycopg.rows import dict_row

        return connect(database_url, row_factory=dict_row, autocommit=False)

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


def init_schema(conn: Any) -> None:
    if _is_postgres(conn):
        cur = conn.cursor()
        for statement in POSTGRES_SCHEMA_STATEMENTS:
            cur.execute(statement)
    else:
        conn.executescript(SQLITE_SCHEMA)
    conn.commit()


def _write(conn: Any, sql: str, params: tuple[Any, ...] | list[Any]) -> int:
    """Run one write and commit; roll back so a shared connection stays usable."""
    try:
        cur = _execute(conn, sql, params)
        conn.commit()
    except Exception:
        _safe_rollback(conn)
        raise
    return cur.rowcount


def insert_room(conn: Any, room_id: str, name: str) -> bool:
    """Insert a room; returns False when the id is already taken."""
    inserted = _write(
        conn,
        "INSERT INTO rooms (id, name) VALUES (?, ?) ON CONFLICT(id) DO NOTHING",
        [room_id, name],
    )
    return inserted > 0


def room_exists(conn: Any, room_id: str) -> bool:
    row = _execute(conn, "SELECT 1 AS found FROM rooms WHERE id = ?", [room_id]).fetchone()
    return row is not None


def get_room(conn: Any, room_id: str) -> dict[str, Any] | None:
    row = _execute(conn, "SELECT * FROM rooms WHERE id = ?", [room_id]).fetchone()
    return row_to_dict(row) if row else None


def get_rooms_with_counts(conn: Any) -> list[dict[str, Any]]:
    rows = _execute(
        conn,
        """
        SELECT r.id, r.name, r.created_at,
               COUNT(s.id) AS selection_count,
               COUNT(DISTINCT s.name) AS participant_count
        FROM rooms r
        LEFT JOIN date_selections s ON s.room_id = r.id
        GROUP BY r.id, r.name, r.created_at
        ORDER BY r.created_at DESC, r.id ASC
        """,
    ).fetchall()
    out: list[dict[str, Any]] = []
    for row in rows:
        item = row_to_dict(row)
        item["selection_count"] = int(item["selection_count"])
        item["participant_count"] = int(item["participant_count"])
        out.append(item)
    return out


def delete_room(conn: Any, room_id: str) -> bool:
    try:
        _execute(conn, "DELETE FROM date_selections WHERE room_id = ?", [room_id])
        cur = _execute(conn, "DELETE FROM rooms WHERE id = ?", [room_id])
        conn.commit()
    except Exception:
        _safe_rollback(conn)
        raise
    return cur.rowcount > 0


def add_selection(conn: Any, room_id: str, name: str, selected_date: str) -> bool:
    inserted = _write(
        conn,
        """
        INSERT INTO date_selections (room_id, name, selected_date)
        VALUES (?, ?, ?)
        ON CONFLICT(room_id, name, selected_date) DO NOTHING
        """,
        [room_id, name, selected_date],
    )
    return inserted > 0


def remove_selection(conn: Any, room_id: str, name: str, selected_date: str) -> bool:
    removed = _write(
        conn,
        """
        DELETE FROM date_selections
        WHERE room_id = ? AND name = ? AND selected_date = ?
        """,
        [room_id, name, selected_date],
    )
    return removed > 0


def replace_selections(
    conn: Any,
    room_id: str,
    name: str,
    selected_dates: list[str],
) -> None:
    try:
        _execute(
            conn,
            "DELETE FROM date_selections WHERE room_id = ? AND name = ?",
            [room_id, name],
        )
        _executemany(
            conn,
            """
            INSERT INTO date_selections (room_id, name, selected_date)
            VALUES (?, ?, ?)
            """,
            [(room_id, name, d) for d in sorted(set(selected_dates))],
        )
        conn.commit()
    except Exception:
        _safe_rollback(conn)
        raise


def get_selections(conn: Any, room_id: str) -> list[dict[str, Any]]:
    rows = _execute(
        conn,
        """
        SELECT * FROM date_selections
        WHERE room_id = ?
        ORDER BY selected_date ASC, id ASC
        """,
        [room_id],
    ).fetchall()
    return [_selection_to_dict(row) for row in rows]


def get_participant_selections(conn: Any, room_id: str, name: str) -> list[dict[str, Any]]:
    rows = _execute(
        conn,
        """
        SELECT * FROM date_selections
        WHERE room_id = ? AND name = ?
        ORDER BY selected_date ASC
        """,
        [room_id, name],
    ).fetchall()
    return [_selection_to_dict(row) for row in rows]


def get_selection_revision(conn: Any, room_id: str) -> tuple[int, int]:
    row = _execute(
        conn,
        """
        SELECT COUNT(*) AS selection_count, COALESCE(MAX(id), 0) AS max_id
        FROM date_selections
        WHERE room_id = ?
        """,
        [room_id],
    ).fetchone()
    data = row_to_dict(row)
    return int(data["selection_count"]), int(data["max_id"])
