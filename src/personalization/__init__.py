"""Personalization — profile/style text, rolling status, and holidays."""

from cyclejournal.personalization.models import Holiday, UpcomingHoliday
from cyclejournal.personalization.services import (
    NO_STATUS_TEXT,
    PersonalizationState,
    RollingStatus,
    load_personalization,
    parse_holidays,
)

__all__ = [
    "NO_STATUS_TEXT",
    "Holiday",
    "PersonalizationState",
    "RollingStatus",
    "UpcomingHoliday",
    "load_personalization",
    "parse_holidays",
]
