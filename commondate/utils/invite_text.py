from __future__ import annotations

from commondate.utils.date_labels import short_label


def generate_invite(
    room_name: str, room_url: str, all_available_dates: list[str] | None = None
) -> str:
    lines = [
        f"Let's find a date: {room_name}",
        f"Pick the dates you're available here: {room_url}",
    ]
    if all_available_dates:
        labels = ", ".join(short_label(day) for day in all_available_dates)
        lines.append(f"Everyone can make it so far: {labels}")
    return "\n".join(lines)
