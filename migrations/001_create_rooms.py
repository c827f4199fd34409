from __future__ import annotations

from typing import Any


def up(conn: Any) -> None:
    if conn.__class__.__module__.startswith("psycopg"):
        conn.cursor().execute(
            """
            CREATE TABLE IF NOT EXISTS rooms (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
    else:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS rooms (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            );
            """
        )
    conn.commit()


def down(conn: Any) -> None:
    if conn.__class__.__module__.startswith("psycopg"):
        conn.cursor().execute("DROP TABLE IF EXISTS rooms")
    else:
        conn.executescript("DROP TABLE IF EXISTS rooms;")
    conn.commit()
