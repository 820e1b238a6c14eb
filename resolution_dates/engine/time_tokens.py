from __future__ import annotations

from typing import Optional, Tuple


def parse_time_token(raw: Optional[str], prefer_end: bool = False) -> Tuple[int, int]:
    """Convert a time-of-day token such as '9PM', '3:15am' or '9:00PM-9:15PM'
    into a 24-hour (hour, minute) pair.

    For ranges the start side is used unless ``prefer_end`` is set. A token with
    no AM/PM marker is taken as already being on the 24-hour clock.
    """
    text = (raw or "").strip().upper()
    if not text:
        return 0, 0

    if "-" in text:
        start, _, end = text.partition("-")
        text = end if prefer_end and end.strip() else start
        text = text.strip()

    is_pm = "PM" in text
    is_am = "AM" in text
    text = text.replace("AM", "").replace("PM", "").strip()

    if ":" in text:
        hour_part, _, minute_part = text.partition(":")
        hour = _to_int(hour_part)
        minute = _to_int(minute_part)
    else:
        hour = _to_int(text)
        minute = 0

    if is_pm and hour != 12:
        hour += 12
    elif is_am and hour == 12:
        hour = 0
    return hour, minute


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return 0
