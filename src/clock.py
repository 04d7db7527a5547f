"""Wall-clock helpers for the daily schedule.

Schedule times are local ``HH:MM`` strings. Sleep durations are always
computed from a fresh "now" so that "today" advances between wakes.
"""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta

from cyclejournal.errors import InvalidScheduleTime

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_schedule_time(value: str) -> time:
    """Parse ``HH:MM`` (24-hour) into a :class:`datetime.time`.

    Raises:
        InvalidScheduleTime: Not ``HH:MM``, hour > 23, or minute > 59.
    """
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise InvalidScheduleTime(f"Invalid schedule time {value!r}, expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidScheduleTime(
            f"Invalid schedule time {value!r}: hour must be 0-23, minute 0-59"
        )
    return time(hour, minute)


def next_occurrence(value: str, now: datetime | None = None) -> datetime:
    """Next local datetime at *value*, strictly after *now*."""
    now = now or datetime.now()
    target = datetime.combine(now.date(), parse_schedule_time(value))
    if target <= now:
        target += timedelta(days=1)
    return target


def calculate_sleep_until(value: str, now: datetime | None = None) -> timedelta:
    """How long to sleep until the next *value* o'clock."""
    now = now or datetime.now()
    return next_occurrence(value, now) - now


def is_past(value: str, now: datetime | None = None) -> bool:
    """True once today's *value* time has been reached."""
    now = now or datetime.now()
    return now.time() >= parse_schedule_time(value)
