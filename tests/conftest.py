from __future__ import annotations

import os
import sqlite3
from collections.abc import Generator
from pathlib import Path

import pytest

from commondate.config.settings import Settings
from commondate.db.sqlite_client import get_connection, init_schema, insert_room


@pytest.fixture
def sqlite_db(tmp_path: Path) -> Generator[sqlite3.Connection, None, None]:
    os.environ.pop("DATABASE_URL", None)
    db_path = str(tmp_path / "test.db")
    conn = get_connection(db_path)
    init_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def room_id(sqlite_db: sqlite3.Connection) -> str:
    insert_room(sqlite_db, "abcd1234", "March get-together")
    return "abcd1234"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="",
        sqlite_db_path="data/commondate.db",
        admin_password="letmein",  # pragma: allowlist secret
        base_url="http://localhost:8501",
        log_level="INFO",
        refresh_interval_seconds=5,
    )
