"""Cycle calendar models — pure data, no I/O.

A cycle date addresses every day of the journal in a fixed calendar of
100 "years" of 13 months x 4 weeks x 7 days (364 days per year, no leap
days). The 5-character code ``YYMWD`` is the on-disk key for every
artifact:

- ``YY`` year cycle, ``00``-``99``
- ``M``  month, ``0``-``9`` then ``A``-``C`` for 10-12
- ``W``  week within the month, ``0``-``3``
- ``D``  day within the week, ``0``-``6`` (Sunday is 0)
"""

from __future__ import annotations

import functools
from datetime import date, timedelta
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from cyclejournal.errors import CycleExhausted, InvalidDateComponent, InvalidDateString

YEAR_CYCLES = 100
MONTHS_PER_YEAR = 13
WEEKS_PER_MONTH = 4
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = WEEKS_PER_MONTH * DAYS_PER_WEEK
DAYS_PER_YEAR = MONTHS_PER_YEAR * DAYS_PER_MONTH
CYCLE_LENGTH_DAYS = YEAR_CYCLES * DAYS_PER_YEAR

CODE_LENGTH = 5
DEFAULT_EPOCH = date(2024, 1, 1)

_MONTH_CHARS = "0123456789ABC"


class DateRole(StrEnum):
    """Position of a date in the cycle, highest role first."""

    YEARLY = "yearly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"


def cycle_start(epoch: date = DEFAULT_EPOCH) -> date:
    """Return the first Sunday on or after *epoch*."""
    # date.weekday(): Monday=0 .. Sunday=6
    days_to_sunday = (6 - epoch.weekday()) % 7
    return epoch + timedelta(days=days_to_sunday)


@functools.total_ordering
class CycleDate(BaseModel):
    """Immutable cycle date value, ordered by :attr:`day_index`."""

    model_config = ConfigDict(frozen=True)

    year_cycle: int
    month: int
    week: int
    day: int

    @model_validator(mode="before")
    @classmethod
    def _check_types(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for name in ("year_cycle", "month", "week", "day"):
                value = data.get(name)
                if name in data and (not isinstance(value, int) or isinstance(value, bool)):
                    raise InvalidDateComponent(f"{name} must be an integer, got {value!r}")
        return data

    @model_validator(mode="after")
    def _check_ranges(self) -> CycleDate:
        limits = (
            ("year_cycle", self.year_cycle, YEAR_CYCLES - 1),
            ("month", self.month, MONTHS_PER_YEAR - 1),
            ("week", self.week, WEEKS_PER_MONTH - 1),
            ("day", self.day, DAYS_PER_WEEK - 1),
        )
        for name, value, upper in limits:
            if not 0 <= value <= upper:
                raise InvalidDateComponent(f"{name} must be 0-{upper}, got {value}")
        return self

    # ── Construction ─────────────────────────────────────────────

    @classmethod
    def new(cls, year_cycle: int, month: int, week: int, day: int) -> CycleDate:
        """Validated positional constructor."""
        return cls(year_cycle=year_cycle, month=month, week=week, day=day)

    @classmethod
    def from_day_index(cls, index: int) -> CycleDate:
        """Build a date from its linear day index within the cycle."""
        if not 0 <= index < CYCLE_LENGTH_DAYS:
            raise InvalidDateComponent(
                f"day index must be 0-{CYCLE_LENGTH_DAYS - 1}, got {index}"
            )
        year_cycle, in_year = divmod(index, DAYS_PER_YEAR)
        month, in_month = divmod(in_year, DAYS_PER_MONTH)
        week, day = divmod(in_month, DAYS_PER_WEEK)
        return cls(year_cycle=year_cycle, month=month, week=week, day=day)

    @classmethod
    def decode(cls, code: str) -> CycleDate:
        """Parse a 5-character ``YYMWD`` code.

        Raises:
            InvalidDateString: Wrong length or a character outside the
                allowed alphabet for its position (week ``4``-``9`` and
                day ``7``-``9`` included).
        """
        if len(code) != CODE_LENGTH:
            raise InvalidDateString(
                f"Cycle date must be exactly {CODE_LENGTH} characters, got {code!r}"
            )
        year_part, month_char, week_char, day_char = code[:2], code[2], code[3], code[4]
        if not (year_part.isascii() and year_part.isdigit()):
            raise InvalidDateString(f"Invalid year cycle {year_part!r} in {code!r}")
        month = _MONTH_CHARS.find(month_char.upper())
        if month < 0:
            raise InvalidDateString(f"Invalid month character {month_char!r} in {code!r}")
        for label, char, allowed in (("week", week_char, "0123"), ("day", day_char, "0123456")):
            if char not in allowed:
                raise InvalidDateString(f"Invalid {label} character {char!r} in {code!r}")
        return cls(
            year_cycle=int(year_part),
            month=month,
            week=int(week_char),
            day=int(day_char),
        )

    @classmethod
    def from_real_date(cls, real: date, epoch: date = DEFAULT_EPOCH) -> CycleDate:
        """Convert a real calendar date.

        Dates before the cycle start clamp to ``00000``. The year cycle
        wraps modulo 100, so the conversion is one-to-one only inside the
        100-year window starting at the cycle start.
        """
        days_since_start = (real - cycle_start(epoch)).days
        if days_since_start < 0:
            return cls(year_cycle=0, month=0, week=0, day=0)
        return cls.from_day_index(days_since_start % CYCLE_LENGTH_DAYS)

    @classmethod
    def today(cls, epoch: date = DEFAULT_EPOCH) -> CycleDate:
        """Cycle date for the current local day."""
        return cls.from_real_date(date.today(), epoch)

    # ── Encoding ─────────────────────────────────────────────────

    def encode(self) -> str:
        return f"{self.year_cycle:02d}{_MONTH_CHARS[self.month]}{self.week}{self.day}"

    def __str__(self) -> str:
        return self.encode()

    @property
    def day_index(self) -> int:
        """Linear position in the cycle; the canonical ordering key."""
        return (
            self.year_cycle * DAYS_PER_YEAR
            + self.month * DAYS_PER_MONTH
            + self.week * DAYS_PER_WEEK
            + self.day
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CycleDate):
            return NotImplemented
        return self.day_index < other.day_index

    def to_real_date(self, epoch: date = DEFAULT_EPOCH) -> date:
        """Inverse of :meth:`from_real_date` within the first 100-year window."""
        return cycle_start(epoch) + timedelta(days=self.day_index)

    # ── Roles ────────────────────────────────────────────────────

    def is_first_day_of_week(self) -> bool:
        return self.day == 0

    def is_first_day_of_month(self) -> bool:
        return self.week == 0 and self.day == 0

    def is_first_day_of_year(self) -> bool:
        return self.month == 0 and self.week == 0 and self.day == 0

    @property
    def role(self) -> DateRole:
        if self.is_first_day_of_year():
            return DateRole.YEARLY
        if self.is_first_day_of_month():
            return DateRole.MONTHLY
        if self.is_first_day_of_week():
            return DateRole.WEEKLY
        return DateRole.DAILY

    # ── Navigation ───────────────────────────────────────────────

    def previous_day(self) -> CycleDate:
        """The day before, saturating at ``00000``."""
        if self.day_index == 0:
            return self
        return CycleDate.from_day_index(self.day_index - 1)

    def next_day(self, *, wrap: bool = False) -> CycleDate:
        """The day after.

        Raises:
            CycleExhausted: On ``99C36`` unless ``wrap=True``, in which
                case the cycle restarts at ``00000``.
        """
        index = self.day_index + 1
        if index == CYCLE_LENGTH_DAYS:
            if not wrap:
                raise CycleExhausted(f"{self} is the last day of the cycle")
            index = 0
        return CycleDate.from_day_index(index)

    def previous_week(self) -> list[CycleDate]:
        """The 7 dates ending at and including this one, oldest first.

        Near ``00000`` the saturating :meth:`previous_day` repeats the
        floor date, so the list always has 7 items.
        """
        dates = [self]
        current = self
        for _ in range(DAYS_PER_WEEK - 1):
            current = current.previous_day()
            dates.append(current)
        dates.reverse()
        return dates

    def previous_year_cycle(self) -> int:
        """Year cycle before this one, wrapping 0 to 99."""
        return (self.year_cycle - 1) % YEAR_CYCLES

    def previous_month(self) -> tuple[int, int]:
        """``(year_cycle, month)`` of the month before this one."""
        if self.month > 0:
            return self.year_cycle, self.month - 1
        return self.previous_year_cycle(), MONTHS_PER_YEAR - 1
