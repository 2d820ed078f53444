from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Union

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")

TimeLike = Union[time, datetime, str]


def parse_hhmm(value: str) -> time:
    """Parse "HH:MM" or "HH:MM:SS" into a time; seconds are dropped."""
    match = _HHMM_RE.match(value.strip())
    if not match:
        raise ValueError(f"Unsupported time format: {value}")
    hour = int(match.group(1))
    minute = int(match.group(2))
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time value: {value}")
    return time(hour=hour, minute=minute)


def _as_time(value: TimeLike) -> time:
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    return parse_hhmm(value)


def minutes_since_midnight(value: TimeLike) -> int:
    """Integer minutes 0..1439; seconds are truncated, never rounded."""
    t = _as_time(value)
    return t.hour * 60 + t.minute


def format_hhmm(value: TimeLike) -> str:
    return _as_time(value).strftime("%H:%M")


def format_time_12h(value: TimeLike) -> str:
    """"13:30" -> "1:30 PM", "00:05" -> "12:05 AM"."""
    t = _as_time(value)
    period = "PM" if t.hour >= 12 else "AM"
    hour12 = t.hour % 12 or 12
    return f"{hour12}:{t.minute:02d} {period}"


def format_relative_date(timestamp: datetime, now: datetime) -> str:
    """Relative wording for the last week, short absolute date before that."""
    diff = now - timestamp
    diff_days = int(diff // timedelta(days=1))
    if diff_days < 1:
        diff_hours = int(diff // timedelta(hours=1))
        if diff_hours < 1:
            diff_minutes = int(diff // timedelta(minutes=1))
            return "Just now" if diff_minutes <= 1 else f"{diff_minutes} minutes ago"
        return "1 hour ago" if diff_hours == 1 else f"{diff_hours} hours ago"
    if diff_days < 7:
        return "1 day ago" if diff_days == 1 else f"{diff_days} days ago"
    label = f"{timestamp.strftime('%b')} {timestamp.day}"
    if timestamp.year != now.year:
        label += f", {timestamp.year}"
    return label


def format_date_header(day: date, today: date) -> str:
    """Section header for a day of events: Today, Tomorrow, or "Saturday, October 24"."""
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return f"{day.strftime('%A, %B')} {day.day}"


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + "..."
