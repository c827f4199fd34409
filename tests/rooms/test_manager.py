from __future__ import annotations

import dataclasses
import logging

import pytest

from commondate.db.sqlite_client import add_selection, get_selections, insert_room
from commondate.rooms.manager import (
    create_new_room,
    find_room,
    generate_room_id,
    get_room_url,
    is_room_id,
    list_rooms,
    normalize_display_name,
    parse_room_link,
    remove_room,
    validate_participant_name,
    validate_room_name,
    verify_admin_password,
)


def test_generate_room_id_shape():
    for _ in range(20):
        room_id = generate_room_id()
        assert len(room_id) == 8
        assert is_room_id(room_id)


def test_create_new_room_trims_name(sqlite_db):
    room_id = create_new_room(sqlite_db, "  March get-together  ")
    room = find_room(sqlite_db, room_id)
    assert room is not None
    assert room["name"] == "March get-together"


@pytest.mark.parametrize("name", ["", "   ", "x" * 101])
def test_create_new_room_rejects_bad_names(sqlite_db, name):
    with pytest.raises(ValueError):
        create_new_room(sqlite_db, name)


def test_create_new_room_retries_on_collision(sqlite_db, mocker):
    insert_room(sqlite_db, "taken000", "Existing")
    mocker.patch(
        "commondate.rooms.manager.generate_room_id",
        side_effect=["taken000", "fresh000"],
    )
    assert create_new_room(sqlite_db, "Second") == "fresh000"


def test_create_new_room_gives_up_after_repeated_collisions(sqlite_db, mocker):
    insert_room(sqlite_db, "taken000", "Existing")
    mocker.patch("commondate.rooms.manager.generate_room_id", return_value="taken000")
    with pytest.raises(RuntimeError):
        create_new_room(sqlite_db, "Second")


def test_find_room_ignores_malformed_ids(sqlite_db, room_id):
    assert find_room(sqlite_db, room_id) is not None
    assert find_room(sqlite_db, f" {room_id} ") is not None
    assert find_room(sqlite_db, "ABCD1234") is None
    assert find_room(sqlite_db, "x'; DROP TABLE rooms; --") is None


def test_list_and_remove_rooms(sqlite_db, room_id):
    add_selection(sqlite_db, room_id, "Alex", "2026-03-10")
    listed = list_rooms(sqlite_db)
    assert [r["id"] for r in listed] == [room_id]
    assert remove_room(sqlite_db, room_id) is True
    assert list_rooms(sqlite_db) == []
    assert get_selections(sqlite_db, room_id) == []
    assert remove_room(sqlite_db, room_id) is False


def test_verify_admin_password(settings):
    assert verify_admin_password(settings, "letmein") is True
    assert verify_admin_password(settings, "wrong") is False
    assert verify_admin_password(settings, "") is False


def test_verify_admin_password_fails_closed_when_unset(settings, caplog):
    unset = dataclasses.replace(settings, admin_password="")
    with caplog.at_level(logging.ERROR):
        assert verify_admin_password(unset, "") is False
        assert verify_admin_password(unset, "anything") is False
    assert "ADMIN_PASSWORD is not set" in caplog.text


def test_validate_participant_name():
    assert validate_participant_name("Alex-1") is None
    assert validate_participant_name("김민수") is None
    assert validate_participant_name("O'Neil Jr.") is None
    assert validate_participant_name("jo_kim") is None
    assert validate_participant_name("नमस्ते") is None
    assert validate_participant_name("ราตรี") is None
    assert validate_participant_name("Zoe\u0301") is None
    assert validate_participant_name("") is not None
    assert validate_participant_name("   ") is not None
    assert validate_participant_name("a" * 51) is not None
    assert validate_participant_name("<script>") is not None


def test_validate_room_name():
    assert validate_room_name("Dinner") is None
    assert validate_room_name(" ") == "Room name is required."


def test_room_url_and_link_parsing():
    url = get_room_url("https://dates.example/", "abcd1234")
    assert url == "https://dates.example/?room=abcd1234"
    assert parse_room_link(url) == "abcd1234"
    assert parse_room_link("abcd1234") == "abcd1234"
    assert parse_room_link("https://dates.example/?room=abcd1234&x=1") == "abcd1234"


def test_decomposed_and_composed_names_are_the_same_participant():
    assert normalize_display_name("Zoe\u0301 ") == "Zo\u00e9"


def test_rejected_name_message_lists_underscores():
    assert "underscores" in validate_participant_name("<script>")
