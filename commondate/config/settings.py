from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    database_url: str
    sqlite_db_path: str
    admin_password: str
    base_url: str
    log_level: str
    refresh_interval_seconds: int


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "").strip(),
        sqlite_db_path=os.getenv("SQLITE_DB_PATH", "data/commondate.db"),
        admin_password=os.getenv("ADMIN_PASSWORD", ""),
        base_url=os.getenv("BASE_URL", "http://localhost:8501").strip(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        refresh_interval_seconds=_get_int_env("REFRESH_INTERVAL_SECONDS", 5),
    )


def validate_settings(settings: Settings) -> list[str]:
    errors: list[str] = []
    if not settings.base_url:
        errors.append("BASE_URL is required")
    elif "://" not in settings.base_url:
        errors.append("BASE_URL must include scheme, e.g. http://")
    if settings.refresh_interval_seconds <= 0:
        errors.append("REFRESH_INTERVAL_SECONDS must be > 0")
    if settings.database_url and not settings.database_url.startswith(
        ("postgres://", "postgresql://")
    ):
        errors.append("DATABASE_URL must start with postgres:// or postgresql://")
    if not settings.database_url and not settings.sqlite_db_path.strip():
        errors.append("SQLITE_DB_PATH is required when DATABASE_URL is unset")
    return errors


def settings_warnings(settings: Settings) -> list[str]:
    """Problems that degrade the app without stopping it."""
    warnings: list[str] = []
    if not settings.admin_password:
        warnings.append("ADMIN_PASSWORD is not set; room creation is disabled")
    return warnings


def ensure_runtime_dirs(settings: Settings) -> None:
    if not settings.database_url:
        Path(settings.sqlite_db_path).parent.mkdir(parents=True, exist_ok=True)
