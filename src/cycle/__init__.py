"""Cycle calendar — fixed 364-day years addressed by 5-character codes.

Every journal artifact is keyed by a :class:`CycleDate`. The functions
below are the parse/format/navigate surface used by the handler layer.
"""

from datetime import date

from cyclejournal.cycle.models import (
    CODE_LENGTH,
    CYCLE_LENGTH_DAYS,
    DAYS_PER_MONTH,
    DAYS_PER_WEEK,
    DAYS_PER_YEAR,
    DEFAULT_EPOCH,
    MONTHS_PER_YEAR,
    WEEKS_PER_MONTH,
    YEAR_CYCLES,
    CycleDate,
    DateRole,
    cycle_start,
)


def encode(cycle_date: CycleDate) -> str:
    """Format a cycle date as its 5-character code."""
    return cycle_date.encode()


def decode(code: str) -> CycleDate:
    """Parse a 5-character code into a cycle date."""
    return CycleDate.decode(code)


def from_real_date(real: date, epoch: date = DEFAULT_EPOCH) -> CycleDate:
    return CycleDate.from_real_date(real, epoch)


def to_real_date(cycle_date: CycleDate, epoch: date = DEFAULT_EPOCH) -> date:
    return cycle_date.to_real_date(epoch)


__all__ = [
    "CODE_LENGTH",
    "CYCLE_LENGTH_DAYS",
    "DAYS_PER_MONTH",
    "DAYS_PER_WEEK",
    "DAYS_PER_YEAR",
    "DEFAULT_EPOCH",
    "MONTHS_PER_YEAR",
    "WEEKS_PER_MONTH",
    "YEAR_CYCLES",
    "CycleDate",
    "DateRole",
    "cycle_start",
    "decode",
    "encode",
    "from_real_date",
    "to_real_date",
]
