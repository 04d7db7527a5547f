"""Personalization state — profile, style, rolling status, and holidays.

All files live in the journal directory:

- ``profile.txt``  static facts about the writer (created with guidance)
- ``style.txt``    how prompts should sound (created with guidance)
- ``status.txt``   rolling status memory, rewritten after summaries
- ``holidays.txt`` ``DATE|CATEGORY|NAME|DESCRIPTION`` lines
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime
from pathlib import Path

from cyclejournal.errors import StatusConflict, StoreUnavailable
from cyclejournal.personalization.models import (
    MAX_UPCOMING,
    UPCOMING_WINDOW_DAYS,
    Holiday,
    UpcomingHoliday,
)
from cyclejournal.store.services import _atomic_write

logger = logging.getLogger(__name__)

PROFILE_FILENAME = "profile.txt"
STYLE_FILENAME = "style.txt"
STATUS_FILENAME = "status.txt"
HOLIDAYS_FILENAME = "holidays.txt"

NO_STATUS_TEXT = "No current status has been recorded yet."

DEFAULT_PROFILE = """\
Static facts about you, included as context in every prompt generation.

Replace this text with details that stay relevant from week to week:
your work and living situation, the people who matter most, core values,
long-running goals and projects, interests, and any health or lifestyle
factors that shape your days. Short-lived situations belong in status.txt,
which is maintained automatically."""

DEFAULT_STYLE = """\
How journal prompts should sound.

Replace this text with your preferred tone (warm, direct, playful,
challenging), the length and structure you like, words or framings to use
or avoid, and any reflective practice the prompts should draw on."""

DEFAULT_HOLIDAYS = """\
# Important dates that shape journal prompts.
# Format: DATE|CATEGORY|NAME|DESCRIPTION   (description is optional)
# DATE is MM-DD for annual events or YYYY-MM-DD for a one-off date.
# Example:
# 12-25|holiday|Christmas|Family gathering at home
"""


class RollingStatus:
    """Versioned single-value status memory backed by ``status.txt``.

    :meth:`replace` persists first and swaps the in-memory value only
    after the write succeeds, so a failed write leaves the previous
    status in place on disk and in memory.
    """

    def __init__(self, path: Path, text: str | None = None) -> None:
        self._path = path
        self._text = text
        self._version = 0
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> str | None:
        with self._lock:
            return self._text

    def read(self) -> tuple[str | None, int]:
        """Return ``(text, version)`` for a later compare-and-swap."""
        with self._lock:
            return self._text, self._version

    def replace(self, text: str, expected_version: int | None = None) -> int:
        """Persist *text* and make it current; return the new version.

        Raises:
            StatusConflict: *expected_version* is given and stale.
            StoreUnavailable: ``status.txt`` could not be written.
        """
        text = text.strip()
        with self._lock:
            if expected_version is not None and expected_version != self._version:
                raise StatusConflict(
                    f"status version is {self._version}, expected {expected_version}"
                )
            try:
                _atomic_write(self._path, text)
            except OSError as exc:
                raise StoreUnavailable(f"Cannot write {self._path}: {exc}") from exc
            self._text = text
            self._version += 1
            logger.info("Updated %s (version %d)", self._path.name, self._version)
            return self._version


class PersonalizationState:
    """Profile, style, rolling status, and holidays for context enrichment."""

    def __init__(
        self,
        *,
        profile: str | None,
        style: str | None,
        status: RollingStatus,
        holidays: list[Holiday],
    ) -> None:
        self.profile = profile
        self.style = style
        self.status = status
        self.holidays = holidays

    # ── Status ───────────────────────────────────────────────────

    def get_current_status(self) -> str:
        """Current status text, or a placeholder when none exists yet."""
        text = self.status.get()
        return text if text and text.strip() else NO_STATUS_TEXT

    def update_status(self, new_text: str) -> None:
        self.status.replace(new_text)

    # ── Holidays ─────────────────────────────────────────────────

    def upcoming_holidays(
        self, today: date | None = None, limit: int = MAX_UPCOMING
    ) -> list[UpcomingHoliday]:
        """Holidays within the next 30 days, soonest first."""
        today = today or date.today()
        upcoming: list[UpcomingHoliday] = []
        for holiday in self.holidays:
            days = holiday.days_until(today)
            if days is not None and days <= UPCOMING_WINDOW_DAYS:
                upcoming.append(UpcomingHoliday(holiday=holiday, days_until=days))
        upcoming.sort(key=lambda u: u.days_until)
        return upcoming[:limit]

    def temporal_context(self, now: datetime | None = None) -> str:
        now = now or datetime.now()
        lines = [f"CURRENT DATE: {now.strftime('%A, %B %d, %Y')}"]
        upcoming = self.upcoming_holidays(now.date())
        if upcoming:
            lines.append("")
            lines.append(f"UPCOMING EVENTS (next {UPCOMING_WINDOW_DAYS} days):")
            lines.extend(u.render() for u in upcoming)
        return "\n".join(lines)

    # ── Enrichment ───────────────────────────────────────────────

    def enrich_context(self, base: str, now: datetime | None = None) -> str:
        """Prefix *base* with temporal, profile, style, and status blocks.

        Order is fixed; empty blocks are left out; blocks are separated
        by a blank line.
        """
        blocks = [self.temporal_context(now)]
        for header, text in (
            ("USER PROFILE:", self.profile),
            ("COMMUNICATION STYLE:", self.style),
            ("CURRENT STATUS:", self.status.get()),
            ("JOURNAL CONTEXT:", base),
        ):
            if text and text.strip():
                blocks.append(f"{header}\n{text.strip()}")
        return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _load_text_file(path: Path, default: str) -> str:
    """Read a guidance file, creating it with *default* when missing."""
    if not path.exists():
        try:
            path.write_text(default, encoding="utf-8")
            logger.info("Created default %s", path.name)
        except OSError as exc:
            logger.warning("Could not create %s: %s", path, exc)
        return default
    try:
        content = path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        logger.error("Failed to read %s, using default content: %s", path, exc)
        return default
    if not content:
        logger.warning("%s is empty, using default content", path.name)
        return default
    logger.info("Loaded %s (%d characters)", path.name, len(content))
    return content


def _load_optional_text(path: Path) -> str | None:
    if not path.exists():
        logger.info("%s does not exist yet", path.name)
        return None
    try:
        content = path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        logger.error("Failed to read %s: %s", path, exc)
        return None
    return content or None


def parse_holidays(content: str) -> list[Holiday]:
    """Parse ``holidays.txt`` content; malformed lines are skipped."""
    holidays: list[Holiday] = []
    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = [p.strip() for p in line.split("|")]
        if len(parts) < 3 or not parts[0] or not parts[2]:
            logger.warning("Skipping malformed holiday on line %d: %r", lineno, line)
            continue
        when = parts[0]
        if len(when) == 5 and when[2] == "-":
            recurring = True
        elif len(when) == 10 and when.count("-") == 2:
            recurring = False
        else:
            logger.warning("Skipping holiday with unsupported date %r on line %d", when, lineno)
            continue
        description = parts[3] if len(parts) > 3 and parts[3] else None
        holidays.append(
            Holiday(
                name=parts[2],
                date=when,
                category=parts[1],
                description=description,
                recurring=recurring,
            )
        )
    return holidays


def _load_holidays(path: Path) -> list[Holiday]:
    if not path.exists():
        try:
            path.write_text(DEFAULT_HOLIDAYS, encoding="utf-8")
            logger.info("Created default %s", path.name)
        except OSError as exc:
            logger.warning("Could not create %s: %s", path, exc)
        return []
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to read %s: %s", path, exc)
        return []
    holidays = parse_holidays(content)
    logger.info("Parsed %d holidays from %s", len(holidays), path.name)
    return holidays


def load_personalization(journal_dir: Path) -> PersonalizationState:
    """Load all personalization files from *journal_dir*."""
    journal_dir.mkdir(parents=True, exist_ok=True)
    status_path = journal_dir / STATUS_FILENAME
    return PersonalizationState(
        profile=_load_text_file(journal_dir / PROFILE_FILENAME, DEFAULT_PROFILE),
        style=_load_text_file(journal_dir / STYLE_FILENAME, DEFAULT_STYLE),
        status=RollingStatus(status_path, _load_optional_text(status_path)),
        holidays=_load_holidays(journal_dir / HOLIDAYS_FILENAME),
    )
