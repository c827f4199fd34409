from __future__ import annotations

from typing import Any


def up(conn: Any) -> None:
    if conn.__class__.__module__.startswith("psycopg"):
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS date_selections (
                id BIGSERIAL PRIMARY KEY,
                room_id TEXT NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                selected_date DATE NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(room_id, name, selected_date)
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_date_selections_room ON date_selections(room_id)"
        )
    else:
        conn.executescript(
            """
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
        )
    conn.commit()


def down(conn: Any) -> None:
    if conn.__class__.__module__.startswith("psycopg"):
        conn.cursor().execute("DROP TABLE IF EXISTS date_selections")
    else:
        conn.executescript("DROP TABLE IF EXISTS date_selections;")
    conn.commit()
