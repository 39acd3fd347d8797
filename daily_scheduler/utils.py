"""
Time parsing and name normalization helpers shared by every pass.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional

import pytz


_TIME_PATTERN = re.compile(r"^(\d{1,2})\s*:\s*(\d{2})\s*(am|pm)?$")
_SPACES = re.compile(r"\s+")


def parse_time_to_minutes(value: Any) -> Optional[int]:
    """
    Parse a time of day into minutes since midnight.

    Args:
        value: "9:00", "09:30", "1:15pm", "1:15 PM", a time object, or an
            integer that is already a minute-of-day

    Returns:
        Optional[int]: Minutes since midnight, or None if unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        return None

    match = _TIME_PATTERN.match(value.strip().lower())
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    meridiem = match.group(3)

    if minutes > 59:
        return None

    if meridiem:
        if hours < 1 or hours > 12:
            return None
        if hours == 12:
            hours = 0 if meridiem == "am" else 12
        elif meridiem == "pm":
            hours += 12
    elif hours > 23:
        return None

    return hours * 60 + minutes


def minutes_to_label(minutes: Optional[int]) -> str:
    """Format minutes since midnight as "9:30 AM"."""
    if minutes is None:
        return ""
    hours, mins = divmod(minutes, 60)
    meridiem = "PM" if hours % 24 >= 12 else "AM"
    hours = hours % 12 or 12
    return f"{hours}:{mins:02d} {meridiem}"


def minutes_to_datetime(minutes: int, anchor_date: date, timezone: str) -> datetime:
    """
    Convert a minute-of-day into a timezone-aware instant on the anchor date.

    The same inputs always produce the same instant.
    """
    tz = pytz.timezone(timezone)
    midnight = datetime.combine(anchor_date, time(0, 0))
    return tz.localize(midnight + timedelta(minutes=minutes))


def ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Half-open interval overlap test."""
    return start1 < end2 and start2 < end1


def normalize_key(name: Any) -> str:
    """Canonical lookup key: trimmed, whitespace-collapsed, case-folded."""
    if name is None:
        return ""
    return _SPACES.sub(" ", str(name).strip()).casefold()


def clean_name(name: Any) -> str:
    """Trim and collapse whitespace but keep the configured spelling."""
    if name is None:
        return ""
    return _SPACES.sub(" ", str(name).strip())


def normalize_catalog(value: Any) -> List[str]:
    """
    Normalize any accepted catalog shape into an ordered list of names.

    Accepts a list of names, a list of ``{"name": ...}`` records, a mapping
    keyed by name, or a single name. Order is preserved; blanks and repeats
    (by canonical key) are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, dict):
        items = list(value.keys())
    else:
        items = list(value)

    names = []
    seen = set()
    for item in items:
        if isinstance(item, dict):
            item = item.get("name")
        name = clean_name(item)
        key = normalize_key(name)
        if not key or key in seen:
            continue
        seen.add(key)
        names.append(name)

    return names
