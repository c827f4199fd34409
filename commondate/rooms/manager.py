from __future__ import annotations

import hmac
import logging
import re
import secrets
import string
import unicodedata
from typing import Any

from commondate.config.settings import Settings
from commondate.db.sqlite_client import (
    delete_room,
    get_room,
    get_rooms_with_counts,
    insert_room,
)

logger = logging.getLogger(__name__)

ROOM_ID_ALPHABET = string.ascii_lowercase + string.digits
ROOM_ID_LENGTH = 8
ROOM_ID_MAX_ATTEMPTS = 5
ROOM_NAME_MAX_LENGTH = 100
PARTICIPANT_NAME_MAX_LENGTH = 50

NAME_PUNCTUATION = frozenset(" '-._")
ROOM_ID_PATTERN = re.compile(rf"^[a-z0-9]{{{ROOM_ID_LENGTH}}}$")


def normalize_display_name(name: str) -> str:
    return " ".join(unicodedata.normalize("NFC", name).strip().split())


def _is_name_char(ch: str) -> bool:
    # Letters, combining marks and digits of any script.
    return ch in NAME_PUNCTUATION or unicodedata.category(ch)[0] in "LMN"


def validate_participant_name(name: str) -> str | None:
    cleaned = normalize_display_name(name)
    if not cleaned:
        return "Name is required."
    if len(cleaned) > PARTICIPANT_NAME_MAX_LENGTH:
        return f"Name must be at most {PARTICIPANT_NAME_MAX_LENGTH} characters."
    if not all(_is_name_char(ch) for ch in cleaned):
        return "Use letters, numbers, spaces, apostrophes, periods, hyphens, or underscores only."
    return None


def validate_room_name(name: str) -> str | None:
    cleaned = name.strip()
    if not cleaned:
        return "Room name is required."
    if len(cleaned) > ROOM_NAME_MAX_LENGTH:
        return f"Room name must be at most {ROOM_NAME_MAX_LENGTH} characters."
    return None


def generate_room_id() -> str:
    return "".join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))


def is_room_id(value: str) -> bool:
    return bool(ROOM_ID_PATTERN.match(value))


def verify_admin_password(settings: Settings, password: str) -> bool:
    if not settings.admin_password:
        logger.error("[ROOMS] ADMIN_PASSWORD is not set; rejecting admin login")
        return False
    return hmac.compare_digest(
        password.encode("utf-8"), settings.admin_password.encode("utf-8")
    )


def create_new_room(conn: Any, name: str) -> str:
    error = validate_room_name(name)
    if error:
        raise ValueError(error)
    cleaned = name.strip()
    for _ in range(ROOM_ID_MAX_ATTEMPTS):
        room_id = generate_room_id()
        if not insert_room(conn, room_id, cleaned):
            logger.warning("[ROOMS] room id collision room_id=%s", room_id)
            continue
        logger.info("[ROOMS] created room_id=%s name=%r", room_id, cleaned)
        return room_id
    raise RuntimeError("Could not allocate a unique room id.")


def find_room(conn: Any, room_id: str) -> dict[str, Any] | None:
    room_id = room_id.strip()
    if not is_room_id(room_id):
        return None
    return get_room(conn, room_id)


def list_rooms(conn: Any) -> list[dict[str, Any]]:
    return get_rooms_with_counts(conn)


def remove_room(conn: Any, room_id: str) -> bool:
    deleted = delete_room(conn, room_id)
    if deleted:
        logger.info("[ROOMS] deleted room_id=%s", room_id)
    else:
        logger.warning("[ROOMS] delete skipped, room not found room_id=%s", room_id)
    return deleted


def get_room_url(base_url: str, room_id: str) -> str:
    return f"{base_url.rstrip('/')}/?room={room_id}"


def parse_room_link(value: str) -> str:
    """Accept a full share link or a bare room id."""
    return value.split("room=")[-1].split("&")[0].strip()
