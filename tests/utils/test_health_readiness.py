from __future__ import annotations

from commondate.utils.health import liveness, readiness


class _BrokenConnection:
    def execute(self, sql: str):
        raise RuntimeError("database is locked")


def test_liveness_ok():
    assert liveness()["ok"] is True


def test_readiness_ok_with_sqlite(sqlite_db):
    status = readiness(sqlite_db)
    assert status["ok"] is True
    assert status["dependencies"]["database"] == "ready"


def test_readiness_fails_without_connection():
    status = readiness(None)
    assert status["ok"] is False
    assert status["dependencies"]["database"].startswith("error")


def test_readiness_fails_when_query_raises():
    status = readiness(_BrokenConnection())
    assert status["ok"] is False
    assert "database is locked" in status["dependencies"]["database"]
