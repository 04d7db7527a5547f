"""Tests for personalization state."""

from datetime import date, datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from cyclejournal.errors import StatusConflict, StoreUnavailable
from cyclejournal.personalization import (
    NO_STATUS_TEXT,
    Holiday,
    PersonalizationState,
    RollingStatus,
    UpcomingHoliday,
    load_personalization,
    parse_holidays,
)


def _state(tmp_path: Path, holidays=None, profile="Likes tea.", style="Warm.", status=None):
    return PersonalizationState(
        profile=profile,
        style=style,
        status=RollingStatus(tmp_path / "status.txt", status),
        holidays=holidays or [],
    )


def _one_off(name: str, when: date) -> Holiday:
    return Holiday(name=name, date=when.isoformat(), category="event", recurring=False)


class TestHoliday:
    """Tests for Holiday.days_until."""

    def test_recurring_later_this_year(self):
        h = Holiday(name="Xmas", date="12-25", category="holiday")
        assert h.days_until(date(2025, 12, 20)) == 5

    def test_recurring_rolls_to_next_year(self):
        h = Holiday(name="New Year", date="01-01", category="holiday")
        assert h.days_until(date(2025, 12, 31)) == 1

    def test_recurring_today(self):
        h = Holiday(name="Xmas", date="12-25", category="holiday")
        assert h.days_until(date(2025, 12, 25)) == 0

    def test_leap_day_skips_non_leap_year(self):
        h = Holiday(name="Leap", date="02-29", category="birthday")
        assert h.days_until(date(2027, 3, 1)) == (date(2028, 2, 29) - date(2027, 3, 1)).days

    def test_one_off_past(self):
        assert _one_off("Trip", date(2025, 1, 1)).days_until(date(2025, 6, 1)) is None

    def test_one_off_future(self):
        assert _one_off("Trip", date(2025, 6, 11)).days_until(date(2025, 6, 1)) == 10

    def test_invalid_date_string(self):
        assert Holiday(name="Bad", date="13-45", category="x").days_until(date(2025, 1, 1)) is None


class TestUpcomingHoliday:
    """Tests for rendering upcoming holidays."""

    def test_render_today(self):
        h = Holiday(name="Xmas", date="12-25", category="holiday", description="Family")
        assert UpcomingHoliday(holiday=h, days_until=0).render() == "- Xmas (TODAY): holiday - Family"

    def test_render_tomorrow(self):
        h = Holiday(name="Xmas", date="12-25", category="holiday")
        assert UpcomingHoliday(holiday=h, days_until=1).render() == "- Xmas (tomorrow): holiday"

    def test_render_days(self):
        h = Holiday(name="Xmas", date="12-25", category="holiday")
        assert "(in 12 days)" in UpcomingHoliday(holiday=h, days_until=12).render()


class TestUpcomingHolidays:
    """Tests for the 30-day window."""

    def test_thirty_days_included_thirty_one_excluded(self, tmp_path: Path):
        today = date(2025, 3, 1)
        state = _state(
            tmp_path,
            holidays=[
                _one_off("Edge", today + timedelta(days=30)),
                _one_off("Beyond", today + timedelta(days=31)),
            ],
        )
        names = [u.holiday.name for u in state.upcoming_holidays(today)]
        assert names == ["Edge"]

    def test_sorted_and_capped(self, tmp_path: Path):
        today = date(2025, 3, 1)
        holidays = [_one_off(f"H{n}", today + timedelta(days=n)) for n in (9, 3, 7, 1, 5, 2, 8)]
        upcoming = _state(tmp_path, holidays=holidays).upcoming_holidays(today)
        assert [u.days_until for u in upcoming] == [1, 2, 3, 5, 7]


class TestParseHolidays:
    """Tests for holidays.txt parsing."""

    def test_parses_lines(self):
        content = "\n".join(
            [
                "# comment",
                "",
                "12-25|holiday|Christmas|Family gathering",
                "2025-07-04|trip|Road trip",
                "not a holiday line",
                "July 4|holiday|Bad date",
            ]
        )
        holidays = parse_holidays(content)
        assert [(h.name, h.recurring, h.description) for h in holidays] == [
            ("Christmas", True, "Family gathering"),
            ("Road trip", False, None),
        ]


class TestRollingStatus:
    """Tests for the versioned rolling status."""

    def test_replace_persists_and_bumps_version(self, tmp_path: Path):
        status = RollingStatus(tmp_path / "status.txt")
        assert status.read() == (None, 0)

        version = status.replace("  Starting a new job.  ")

        assert version == 1
        assert status.get() == "Starting a new job."
        assert (tmp_path / "status.txt").read_text(encoding="utf-8") == "Starting a new job."

    def test_compare_and_swap(self, tmp_path: Path):
        status = RollingStatus(tmp_path / "status.txt")
        _, version = status.read()
        status.replace("first", expected_version=version)

        with pytest.raises(StatusConflict):
            status.replace("stale writer", expected_version=version)
        assert status.get() == "first"

    def test_failed_write_keeps_previous(self, tmp_path: Path):
        status = RollingStatus(tmp_path / "status.txt", "old")
        with patch(
            "cyclejournal.personalization.services._atomic_write",
            side_effect=OSError("read-only"),
        ):
            with pytest.raises(StoreUnavailable):
                status.replace("new")
        assert status.read() == ("old", 0)


class TestPersonalizationState:
    """Tests for status access and context enrichment."""

    def test_current_status_placeholder(self, tmp_path: Path):
        assert _state(tmp_path).get_current_status() == NO_STATUS_TEXT

    def test_update_status(self, tmp_path: Path):
        state = _state(tmp_path)
        state.update_status("Training for a marathon.")
        assert state.get_current_status() == "Training for a marathon."

    def test_enrich_context_order(self, tmp_path: Path):
        now = datetime(2025, 3, 1, 6, 0)
        state = _state(
            tmp_path,
            holidays=[_one_off("Concert", now.date() + timedelta(days=2))],
            status="Busy week.",
        )
        text = state.enrich_context("Day 00103: walked the dog", now=now)

        headers = [
            "CURRENT DATE: Saturday, March 01, 2025",
            "UPCOMING EVENTS (next 30 days):",
            "USER PROFILE:\nLikes tea.",
            "COMMUNICATION STYLE:\nWarm.",
            "CURRENT STATUS:\nBusy week.",
            "JOURNAL CONTEXT:\nDay 00103: walked the dog",
        ]
        positions = [text.index(h) for h in headers]
        assert positions == sorted(positions)
        assert "- Concert (in 2 days): event" in text

    def test_enrich_context_omits_empty_blocks(self, tmp_path: Path):
        state = _state(tmp_path, profile=None, style="  ")
        text = state.enrich_context("", now=datetime(2025, 3, 1))

        assert text == "CURRENT DATE: Saturday, March 01, 2025"


class TestLoadPersonalization:
    """Tests for loading files from the journal directory."""

    def test_creates_defaults(self, tmp_path: Path):
        state = load_personalization(tmp_path)

        assert (tmp_path / "profile.txt").exists()
        assert (tmp_path / "style.txt").exists()
        assert (tmp_path / "holidays.txt").exists()
        assert not (tmp_path / "status.txt").exists()
        assert state.holidays == []
        assert state.status.get() is None

    def test_loads_existing(self, tmp_path: Path):
        (tmp_path / "profile.txt").write_text("Engineer in Lisbon.\n")
        (tmp_path / "style.txt").write_text("Direct.")
        (tmp_path / "status.txt").write_text("Moving house.")
        (tmp_path / "holidays.txt").write_text("05-01|birthday|Mum's birthday\n")

        state = load_personalization(tmp_path)

        assert state.profile == "Engineer in Lisbon."
        assert state.style == "Direct."
        assert state.get_current_status() == "Moving house."
        assert [h.name for h in state.holidays] == ["Mum's birthday"]

    def test_empty_profile_uses_default(self, tmp_path: Path):
        (tmp_path / "profile.txt").write_text("   ")
        state = load_personalization(tmp_path)
        assert state.profile and "Static facts" in state.profile
