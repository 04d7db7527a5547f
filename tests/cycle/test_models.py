"""Tests for the cycle calendar."""

from datetime import date, timedelta

import pytest

from cyclejournal.cycle import (
    CYCLE_LENGTH_DAYS,
    DEFAULT_EPOCH,
    CycleDate,
    DateRole,
    cycle_start,
    decode,
    encode,
)
from cyclejournal.errors import CycleExhausted, InvalidDateComponent, InvalidDateString

FLOOR = CycleDate.new(0, 0, 0, 0)
CEILING = CycleDate.new(99, 12, 3, 6)


class TestConstruction:
    """Tests for validated construction."""

    def test_new_sets_fields(self):
        d = CycleDate.new(3, 11, 2, 5)
        assert (d.year_cycle, d.month, d.week, d.day) == (3, 11, 2, 5)

    @pytest.mark.parametrize(
        "fields",
        [(100, 0, 0, 0), (0, 13, 0, 0), (0, 0, 4, 0), (0, 0, 0, 7), (-1, 0, 0, 0)],
    )
    def test_out_of_range_rejected(self, fields):
        with pytest.raises(InvalidDateComponent):
            CycleDate.new(*fields)

    @pytest.mark.parametrize(
        "fields",
        [(3.5, 0, 0, 0), (0, "3", 0, 0), (0, 0, True, 0), (0, 0, 0, None)],
    )
    def test_non_integer_rejected(self, fields):
        with pytest.raises(InvalidDateComponent):
            CycleDate.new(*fields)

    def test_frozen(self):
        d = CycleDate.new(1, 2, 3, 4)
        with pytest.raises(Exception):
            d.day = 0  # type: ignore[misc]

    def test_from_day_index_inverse(self):
        for index in (0, 1, 27, 28, 363, 364, 12345, CYCLE_LENGTH_DAYS - 1):
            assert CycleDate.from_day_index(index).day_index == index

    def test_from_day_index_out_of_range(self):
        with pytest.raises(InvalidDateComponent):
            CycleDate.from_day_index(CYCLE_LENGTH_DAYS)


class TestCodec:
    """Tests for the 5-character code."""

    def test_encode_scenario(self):
        assert CycleDate.new(3, 11, 2, 5).encode() == "03B25"

    def test_decode_scenario(self):
        assert decode("03B25") == CycleDate.new(3, 11, 2, 5)

    def test_str_is_code(self):
        assert str(CycleDate.new(0, 10, 0, 1)) == "00A01"

    def test_decode_lowercase_month(self):
        assert decode("03b25") == CycleDate.new(3, 11, 2, 5)

    @pytest.mark.parametrize("code", ["", "0000", "000000", "0A000", "00D00", "00040", "00007", "00x00"])
    def test_decode_rejects(self, code):
        with pytest.raises(InvalidDateString):
            decode(code)

    def test_round_trip_sample(self):
        for index in range(0, CYCLE_LENGTH_DAYS, 131):
            d = CycleDate.from_day_index(index)
            assert decode(encode(d)) == d

    def test_round_trip_extremes(self):
        assert decode(encode(FLOOR)) == FLOOR
        assert decode(encode(CEILING)) == CEILING
        assert encode(CEILING) == "99C36"


class TestRealDates:
    """Tests for real-date conversion."""

    def test_cycle_start_is_first_sunday(self):
        start = cycle_start(DEFAULT_EPOCH)
        assert start == date(2024, 1, 7)
        assert start.weekday() == 6

    def test_cycle_start_on_sunday_epoch(self):
        assert cycle_start(date(2024, 1, 7)) == date(2024, 1, 7)

    def test_start_is_floor(self):
        assert CycleDate.from_real_date(date(2024, 1, 7)) == FLOOR

    def test_before_start_clamps(self):
        assert CycleDate.from_real_date(date(2023, 6, 1)) == FLOOR

    def test_month_and_year_boundaries(self):
        assert CycleDate.from_real_date(date(2024, 2, 4)) == CycleDate.new(0, 1, 0, 0)
        assert CycleDate.from_real_date(date(2025, 1, 5)) == CycleDate.new(1, 0, 0, 0)

    def test_day_zero_is_sunday(self):
        for index in range(0, 5000, 7):
            assert CycleDate.from_day_index(index).to_real_date().weekday() == 6

    def test_round_trip_within_window(self):
        start = cycle_start()
        for offset in range(0, CYCLE_LENGTH_DAYS, 173):
            real = start + timedelta(days=offset)
            assert CycleDate.from_real_date(real).to_real_date() == real

    def test_wraps_after_window(self):
        real = cycle_start() + timedelta(days=CYCLE_LENGTH_DAYS + 3)
        assert CycleDate.from_real_date(real) == CycleDate.new(0, 0, 0, 3)

    def test_custom_epoch(self):
        epoch = date(2030, 3, 1)
        d = CycleDate.from_real_date(cycle_start(epoch), epoch)
        assert d == FLOOR
        assert d.to_real_date(epoch) == cycle_start(epoch)


class TestOrdering:
    """Tests for day-index ordering."""

    def test_ordering(self):
        assert CycleDate.new(0, 0, 0, 6) < CycleDate.new(0, 0, 1, 0)
        assert CycleDate.new(1, 0, 0, 0) > CycleDate.new(0, 12, 3, 6)
        assert CycleDate.new(2, 2, 2, 2) >= CycleDate.new(2, 2, 2, 2)

    def test_sorting(self):
        dates = [decode("01000"), decode("00C36"), decode("00000")]
        assert [str(d) for d in sorted(dates)] == ["00000", "00C36", "01000"]

    def test_hashable(self):
        assert len({decode("03B25"), CycleDate.new(3, 11, 2, 5)}) == 1


class TestRoles:
    """Tests for role predicates and precedence."""

    def test_yearly(self):
        assert decode("05000").role == DateRole.YEARLY

    def test_monthly(self):
        assert decode("05300").role == DateRole.MONTHLY

    def test_weekly(self):
        assert decode("05320").role == DateRole.WEEKLY

    def test_daily(self):
        assert decode("05324").role == DateRole.DAILY

    def test_precedence_implications(self):
        for index in range(0, 2 * 364):
            d = CycleDate.from_day_index(index)
            if d.is_first_day_of_year():
                assert d.is_first_day_of_month()
            if d.is_first_day_of_month():
                assert d.is_first_day_of_week()


class TestNavigation:
    """Tests for day, week, month, and year navigation."""

    def test_previous_day_month_carry(self):
        assert CycleDate.new(1, 5, 0, 0).previous_day() == CycleDate.new(1, 4, 3, 6)

    def test_previous_day_year_carry(self):
        assert CycleDate.new(2, 0, 0, 0).previous_day() == CycleDate.new(1, 12, 3, 6)

    def test_previous_day_saturates(self):
        assert FLOOR.previous_day() == FLOOR

    def test_next_previous_inverse(self):
        for index in range(1, 3 * 364, 5):
            d = CycleDate.from_day_index(index)
            assert d.previous_day().next_day() == d

    def test_next_day_carries(self):
        assert CycleDate.new(0, 12, 3, 6).next_day() == CycleDate.new(1, 0, 0, 0)

    def test_next_day_at_ceiling_raises(self):
        with pytest.raises(CycleExhausted):
            CEILING.next_day()

    def test_next_day_at_ceiling_wraps_when_asked(self):
        assert CEILING.next_day(wrap=True) == FLOOR

    def test_previous_week_oldest_first(self):
        week = decode("00110").previous_week()
        assert [str(d) for d in week] == [
            "00101",
            "00102",
            "00103",
            "00104",
            "00105",
            "00106",
            "00110",
        ]

    def test_previous_week_contents(self):
        target = decode("00110")
        week = target.previous_week()
        assert len(week) == 7
        assert week[-1] == target
        assert week == sorted(week)
        assert week[0] == CycleDate.from_day_index(target.day_index - 6)

    def test_previous_week_near_floor_repeats(self):
        week = decode("00002").previous_week()
        assert len(week) == 7
        assert week[0] == FLOOR
        assert week[-1] == decode("00002")

    def test_previous_month(self):
        assert decode("01500").previous_month() == (1, 4)
        assert decode("01000").previous_month() == (0, 12)

    def test_previous_year_cycle_wraps(self):
        assert decode("03000").previous_year_cycle() == 2
        assert FLOOR.previous_year_cycle() == 99
