"""Holiday models for the upcoming-events block."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel

UPCOMING_WINDOW_DAYS = 30
MAX_UPCOMING = 5


class Holiday(BaseModel):
    """An important date from ``holidays.txt``.

    ``date`` is ``MM-DD`` for recurring annual events or ``YYYY-MM-DD``
    for a one-off date.
    """

    name: str
    date: str
    category: str
    description: str | None = None
    recurring: bool = True

    def days_until(self, today: date) -> int | None:
        """Days from *today* to the next occurrence, or None if none.

        Recurring holidays try this year, then next year. One-off dates
        in the past, and strings that are not valid dates, give None.
        """
        if self.recurring:
            try:
                month, day = (int(part) for part in self.date.split("-"))
            except ValueError:
                return None
            for year in (today.year, today.year + 1):
                try:
                    occurrence = date(year, month, day)
                except ValueError:
                    # Feb 29 outside a leap year
                    continue
                if occurrence >= today:
                    return (occurrence - today).days
            return None
        try:
            occurrence = date.fromisoformat(self.date)
        except ValueError:
            return None
        delta = (occurrence - today).days
        return delta if delta >= 0 else None


class UpcomingHoliday(BaseModel):
    """A holiday paired with how far away it is."""

    holiday: Holiday
    days_until: int

    @property
    def when(self) -> str:
        if self.days_until == 0:
            return "TODAY"
        if self.days_until == 1:
            return "tomorrow"
        return f"in {self.days_until} days"

    def render(self) -> str:
        line = f"- {self.holiday.name} ({self.when}): {self.holiday.category}"
        if self.holiday.description:
            line += f" - {self.holiday.description}"
        return line
