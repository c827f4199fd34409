from __future__ import annotations

import logging
from datetime import date
from typing import Any

import streamlit as st

from commondate.config.settings import (
    ensure_runtime_dirs,
    load_settings,
    settings_warnings,
    validate_settings,
)
from commondate.db.sqlite_client import get_connection, init_schema
from commondate.engine.availability import (
    get_participant_dates,
    get_room_availability,
    toggle_date,
)
from commondate.engine.live_updates import get_room_revision, poll_room_changes
from commondate.rooms.manager import (
    create_new_room,
    find_room,
    get_room_url,
    list_rooms,
    normalize_display_name,
    parse_room_link,
    remove_room,
    validate_participant_name,
    verify_admin_password,
)
from commondate.utils.date_labels import long_label, month_grid, month_label, shift_month
from commondate.utils.health import readiness
from commondate.utils.invite_text import generate_invite
from commondate.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)

WEEKDAY_HEADERS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


@st.cache_resource
def get_runtime() -> dict[str, Any]:
    settings = load_settings()
    configure_logging(settings.log_level)
    ensure_runtime_dirs(settings)
    errors = validate_settings(settings)
    warnings = settings_warnings(settings)
    conn: Any | None = None
    try:
        conn = get_connection(settings.sqlite_db_path)
        init_schema(conn)
    except Exception as exc:
        logger.exception("[APP] database initialization failed")
        errors.append(f"Database initialization failed: {exc}")
    return {
        "settings": settings,
        "conn": conn,
        "errors": errors,
        "warnings": warnings,
    }


def init_state() -> None:
    defaults = {
        "current_view": "landing",
        "admin_authenticated": False,
        "created_room_id": None,
        "participant_name": "",
        "participant_room_id": None,
        "month_offset": 0,
        "room_revision": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def _open_room(room_id: str) -> None:
    st.query_params["room"] = room_id
    st.session_state.month_offset = 0
    st.session_state.room_revision = None
    st.rerun()


def _leave_room() -> None:
    st.query_params.clear()
    st.session_state.current_view = "landing"
    st.rerun()


def render_admin_gate() -> None:
    runtime = get_runtime()
    st.caption("Enter the admin password to create a room.")
    with st.form("admin_gate"):
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Confirm")
    if submitted:
        if not password.strip():
            st.error("Password is required.")
        elif verify_admin_password(runtime["settings"], password):
            st.session_state.admin_authenticated = True
            st.rerun()
        else:
            st.error("Incorrect password.")


def render_landing() -> None:
    runtime = get_runtime()
    conn = runtime["conn"]
    st.subheader("Find a date that works for everyone")
    with st.expander("Have a link already?"):
        link = st.text_input("Room link or ID", key="join_room_link")
        if st.button("Open room"):
            room_id = parse_room_link(link)
            if find_room(conn, room_id):
                _open_room(room_id)
            else:
                st.error("Room not found.")

    if not st.session_state.admin_authenticated:
        render_admin_gate()
        return

    created = st.session_state.created_room_id
    if not created:
        st.caption("Create a room and share the link with your friends.")
        with st.form("create_room"):
            room_name = st.text_input("Room name", placeholder="e.g. March get-together")
            submitted = st.form_submit_button("Create room")
        if submitted:
            created_id: str | None = None
            try:
                created_id = create_new_room(conn, room_name)
            except ValueError as exc:
                st.error(str(exc))
            except Exception:
                logger.exception("[APP] room creation failed")
                st.error("Could not create the room. Please try again.")
            if created_id:
                st.session_state.created_room_id = created_id
                st.rerun()
    else:
        room_url = get_room_url(runtime["settings"].base_url, created)
        st.success("Room created! Share this link with your friends.")
        st.code(room_url, language=None)
        col_go, col_again = st.columns(2)
        with col_go:
            if st.button("Go to room", type="primary"):
                st.session_state.created_room_id = None
                _open_room(created)
        with col_again:
            if st.button("Create another room"):
                st.session_state.created_room_id = None
                st.rerun()

    if st.button("Manage rooms"):
        st.session_state.current_view = "admin"
        st.rerun()


def render_admin() -> None:
    runtime = get_runtime()
    conn = runtime["conn"]
    if not st.session_state.admin_authenticated:
        render_admin_gate()
        return
    st.subheader("Rooms")
    if st.button("Back"):
        st.session_state.current_view = "landing"
        st.rerun()
    rooms = list_rooms(conn)
    if not rooms:
        st.info("No rooms yet.")
        return
    for room in rooms:
        with st.container(border=True):
            st.markdown(f"**{room['name']}** `{room['id']}`")
            st.caption(
                f"{room['participant_count']} participants | "
                f"{room['selection_count']} selections | created {room['created_at']}"
            )
            col_open, col_confirm, col_delete = st.columns(3)
            with col_open:
                if st.button("Open", key=f"open_{room['id']}"):
                    st.session_state.current_view = "landing"
                    _open_room(room["id"])
            with col_confirm:
                confirmed = st.checkbox("Confirm delete", key=f"confirm_{room['id']}")
            with col_delete:
                if st.button("Delete", key=f"delete_{room['id']}", disabled=not confirmed):
                    remove_room(conn, room["id"])
                    st.rerun()


def render_room_not_found() -> None:
    st.subheader("Room not found")
    st.write("The link is wrong or the room was deleted.")
    if st.button("Create a new room"):
        _leave_room()


def render_name_entry(conn: Any, room_id: str) -> None:
    if st.session_state.participant_room_id != room_id:
        st.session_state.participant_name = ""
    name = st.session_state.participant_name
    if not name:
        with st.form("name_entry"):
            entered = st.text_input("Your name", placeholder="Enter your name")
            submitted = st.form_submit_button("Confirm")
        if submitted:
            error = validate_participant_name(entered)
            if error:
                st.error(error)
            else:
                st.session_state.participant_name = normalize_display_name(entered)
                st.session_state.participant_room_id = room_id
                st.rerun()
        return
    picked = get_participant_dates(conn, room_id, name)
    col_hello, col_change = st.columns([4, 1])
    with col_hello:
        st.write(
            f"Hi **{name}**! Pick the dates you're available. "
            f"({len(picked)} selected)"
        )
    with col_change:
        if st.button("Change name"):
            st.session_state.participant_name = ""
            st.session_state.participant_room_id = None
            st.rerun()


def render_calendar(conn: Any, room_id: str, board: dict[str, Any]) -> None:
    name = st.session_state.participant_name
    mine = set(get_participant_dates(conn, room_id, name)) if name else set()
    everyone = set(board["all_available_dates"])
    today = date.today()
    year, month = shift_month(today.year, today.month, st.session_state.month_offset)

    col_prev, col_title, col_next = st.columns([1, 3, 1])
    with col_prev:
        if st.button("Prev", key="month_prev"):
            st.session_state.month_offset -= 1
            st.rerun()
    with col_title:
        st.markdown(f"#### {month_label(year, month)}")
    with col_next:
        if st.button("Next", key="month_next"):
            st.session_state.month_offset += 1
            st.rerun()

    for col, header in zip(st.columns(7), WEEKDAY_HEADERS):
        col.caption(header)
    for week in month_grid(year, month):
        for col, day in zip(st.columns(7), week):
            if day is None:
                continue
            iso = day.isoformat()
            label = str(day.day)
            if iso in everyone:
                label += " ★"
            with col:
                clicked = st.button(
                    label,
                    key=f"day_{iso}",
                    type="primary" if iso in mine else "secondary",
                    disabled=not name,
                    width="stretch",
                )
            if clicked:
                try:
                    toggle_date(conn, room_id, name, iso)
                except ValueError as exc:
                    st.error(str(exc))
                    return
                except Exception:
                    logger.exception("[APP] toggle failed room_id=%s date=%s", room_id, iso)
                    st.error("Could not save that date. Please try again.")
                    return
                st.rerun()
    if name:
        st.caption("Click a date to select or unselect it. ★ marks dates everyone can make.")
    else:
        st.caption("Enter your name to start picking dates.")


def render_board(board: dict[str, Any]) -> None:
    name = st.session_state.participant_name
    st.markdown("### Status")
    if board["all_available_dates"]:
        st.success(
            "Everyone can make it: "
            + ", ".join(long_label(day) for day in board["all_available_dates"])
        )
    if not board["dates"]:
        st.info("No dates selected yet.")
    for item in board["dates"]:
        names = ", ".join(f"**{n}**" if n == name else n for n in item["names"])
        st.write(f"{long_label(item['date'])}: {names} ({item['count']})")
    if board["participants"]:
        st.markdown(f"**Participants ({board['participant_count']})**")
        st.write(", ".join(board["participants"]))


def _watch_room(room_id: str) -> None:
    runtime = get_runtime()
    changed, revision = poll_room_changes(
        runtime["conn"], room_id, st.session_state.room_revision
    )
    if changed:
        st.session_state.room_revision = revision
        st.rerun()


def render_room(room_id: str) -> None:
    runtime = get_runtime()
    conn = runtime["conn"]
    room = find_room(conn, room_id)
    if not room:
        render_room_not_found()
        return
    st.session_state.room_revision = get_room_revision(conn, room_id)
    board = get_room_availability(conn, room_id)
    room_url = get_room_url(runtime["settings"].base_url, room_id)

    st.header(room["name"])
    with st.expander("Share link"):
        st.code(room_url, language=None)
        st.text_area(
            "Invite text",
            value=generate_invite(room["name"], room_url, board["all_available_dates"]),
            height=100,
        )
    render_name_entry(conn, room_id)
    col_calendar, col_board = st.columns(2)
    with col_calendar:
        render_calendar(conn, room_id, board)
    with col_board:
        render_board(board)
    st.fragment(run_every=runtime["settings"].refresh_interval_seconds)(_watch_room)(room_id)
    if st.button("Create a new room", key="room_new"):
        _leave_room()


def main() -> None:
    st.set_page_config(
        page_title="CommonDate",
        page_icon=":calendar:",
        layout="wide",
        initial_sidebar_state="collapsed",
    )
    init_state()
    runtime = get_runtime()
    if runtime["errors"]:
        st.error("Startup validation failed.")
        for error in runtime["errors"]:
            st.write(f"- {error}")
        return
    for warning in runtime.get("warnings", []):
        st.warning(warning)
    status = readiness(runtime["conn"])
    if not status["ok"]:
        st.error("Readiness check failed.")
        st.json(status)
        return

    st.title("CommonDate")
    room_id = st.query_params.get("room")
    if room_id:
        render_room(room_id.strip())
    elif st.session_state.current_view == "admin":
        render_admin()
    else:
        render_landing()


if __name__ == "__main__":
    main()
