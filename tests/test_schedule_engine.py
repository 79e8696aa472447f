"""Unit tests for schedule_engine.py next-due-date calculation.

Vectors use 2025-01-15 (a Wednesday) as "today" unless a test passes its own
reference date. WeekdayIndex is Sunday-first: 0=SU, 1=MO ... 6=SA.

Test Categories:
- Shared primitives (advance_past_date, set_day, add_months)
- Daily cadence, including early completion
- Weekly cadence: current-week reuse, block jumps, Saturday rule
- Monthly cadence with day clamping
- Interval validation
- Timezone and clock handling
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from freezegun import freeze_time
import pytest

from homecadence.engines.schedule_engine import (
    DailyPattern,
    InvalidIntervalError,
    MonthlyPattern,
    WeeklyPattern,
    add_months,
    advance_past_date,
    calculate_next_due_date,
    set_day,
)
from homecadence.utils import dt_utils
from tests.helpers import make_utc_dt

TODAY = make_utc_dt(2025, 1, 15)


def _date(text: str) -> datetime:
    """Parse "YYYY-MM-DD" into UTC midnight."""
    year, month, day = (int(part) for part in text.split("-"))
    return make_utc_dt(year, month, day)


# =============================================================================
# Shared primitives
# =============================================================================


class TestAdvancePastDate:
    """Tests for advance_past_date()."""

    def test_steps_until_strictly_after(self) -> None:
        """Lands on the first grid point after must_exceed."""
        result = advance_past_date(_date("2025-01-10"), _date("2025-01-15"), 3)
        assert result == _date("2025-01-16")

    def test_grid_point_equal_to_bound_is_skipped(self) -> None:
        """A grid point equal to must_exceed is not accepted."""
        result = advance_past_date(_date("2025-01-13"), _date("2025-01-15"), 2)
        assert result == _date("2025-01-17")

    def test_start_already_after_bound_is_unchanged(self) -> None:
        """No step is taken when start is already past must_exceed."""
        result = advance_past_date(_date("2025-01-20"), _date("2025-01-15"), 3)
        assert result == _date("2025-01-20")

    def test_large_gap_uses_whole_steps(self) -> None:
        """Years of missed steps still land on the original grid."""
        result = advance_past_date(_date("2020-01-01"), _date("2025-01-15"), 7)
        assert result > _date("2025-01-15")
        assert (result - _date("2020-01-01")).days % 7 == 0
        assert (result - _date("2025-01-15")).days <= 7

    @pytest.mark.parametrize("interval", [0, -1])
    def test_non_positive_interval_raises(self, interval: int) -> None:
        """A non-positive step could never terminate."""
        with pytest.raises(InvalidIntervalError):
            advance_past_date(_date("2025-01-10"), _date("2025-01-15"), interval)


class TestSetDay:
    """Tests for set_day() within a Sunday-first week."""

    @pytest.mark.parametrize(
        ("day_of_week", "expected"),
        [
            (0, "2025-01-12"),
            (1, "2025-01-13"),
            (3, "2025-01-15"),
            (6, "2025-01-18"),
        ],
    )
    def test_moves_within_week(self, day_of_week: int, expected: str) -> None:
        """Wednesday 2025-01-15 moves backward or forward inside its week."""
        assert set_day(TODAY, day_of_week) == _date(expected)

    def test_keeps_time_of_day(self) -> None:
        """Only the date moves."""
        result = set_day(make_utc_dt(2025, 1, 15, 9, 30), 5)
        assert result == make_utc_dt(2025, 1, 17, 9, 30)

    @pytest.mark.parametrize("day_of_week", [-1, 7])
    def test_out_of_range_raises(self, day_of_week: int) -> None:
        """Day of week must be 0-6."""
        with pytest.raises(ValueError, match="0-6"):
            set_day(TODAY, day_of_week)


class TestAddMonths:
    """Tests for add_months() clamping."""

    @pytest.mark.parametrize(
        ("start", "months", "day_of_month", "expected"),
        [
            ("2025-01-31", 1, 31, "2025-02-28"),
            ("2024-01-31", 1, 31, "2024-02-29"),
            ("2025-03-31", 1, 31, "2025-04-30"),
            ("2025-12-15", 1, 15, "2026-01-15"),
            ("2025-02-28", 1, 31, "2025-03-31"),
            ("2024-11-10", 2, 10, "2025-01-10"),
        ],
    )
    def test_clamps_to_month_length(
        self, start: str, months: int, day_of_month: int, expected: str
    ) -> None:
        """Never overflows into the following month."""
        assert add_months(_date(start), months, day_of_month) == _date(expected)


# =============================================================================
# Daily
# =============================================================================


class TestDailyPattern:
    """Daily cadence keeps its grid anchored on the previous due date."""

    @pytest.mark.parametrize(
        ("interval", "previous", "expected"),
        [
            (1, None, "2025-01-16"),
            (1, "2025-01-14", "2025-01-16"),
            (2, "2025-01-13", "2025-01-17"),
            (3, "2025-01-10", "2025-01-16"),
            (5, "2025-01-10", "2025-01-20"),
            (7, "2025-01-08", "2025-01-22"),
            (100, "2025-01-08", "2025-04-18"),
        ],
    )
    def test_next_due(self, interval: int, previous: str | None, expected: str) -> None:
        """Next due date is the first grid point after today."""
        result = calculate_next_due_date(
            DailyPattern(interval=interval),
            _date(previous) if previous else None,
            TODAY,
        )
        assert result == _date(expected)

    def test_early_completion_ignores_time_of_day(self) -> None:
        """A due date late in the evening is normalized to its day."""
        result = calculate_next_due_date(
            DailyPattern(interval=1),
            datetime(2025, 1, 16, 23, 59, 59, 999000, tzinfo=ZoneInfo("UTC")),
            _date("2025-01-14"),
        )
        assert result == _date("2025-01-17")

    def test_early_completion_steps_from_future_due_date(self) -> None:
        """Completing ahead of a future due date moves one interval past it."""
        result = calculate_next_due_date(
            DailyPattern(interval=3), _date("2025-01-18"), _date("2025-01-14")
        )
        assert result == _date("2025-01-21")


# =============================================================================
# Weekly
# =============================================================================


class TestWeeklyPattern:
    """Weekly cadence: reuse the current week, else jump whole blocks."""

    @pytest.mark.parametrize(
        ("interval", "days", "previous", "expected"),
        [
            (1, [3], "2025-01-15", "2025-01-22"),
            (1, [5], None, "2025-01-17"),
            (1, [5], "2025-01-16", "2025-01-17"),
            (1, [1, 3, 5], "2025-01-13", "2025-01-15"),
            (2, [1], "2025-01-06", "2025-01-20"),
            (1, [0], "2025-01-12", "2025-01-19"),
        ],
    )
    def test_next_due_from_today(
        self, interval: int, days: list[int], previous: str | None, expected: str
    ) -> None:
        """Vectors relative to Wednesday 2025-01-15."""
        result = calculate_next_due_date(
            WeeklyPattern(interval=interval, days_of_week=days),
            _date(previous) if previous else None,
            TODAY,
        )
        assert result == _date(expected)

    @pytest.mark.parametrize(
        ("interval", "days", "previous", "reference", "expected"),
        [
            (3, [1], "2024-01-01", "2024-01-02", "2024-01-22"),
            (4, [5], "2024-01-05", "2024-01-06", "2024-02-02"),
            (3, [1, 3, 5], "2024-01-05", "2024-01-05", "2024-01-22"),
            (2, [1, 3, 5], "2024-01-01", "2024-01-14", "2024-01-15"),
            (3, [3, 5], "2024-01-01", "2024-01-02", "2024-01-03"),
            (2, [1, 3], "2024-01-05", "2024-01-05", "2024-01-15"),
            (3, [1], "2024-01-01", "2024-01-20", "2024-01-22"),
            (3, [1, 5], "2024-01-22", "2024-01-27", "2024-02-12"),
            (4, [3], "2024-02-07", "2024-02-08", "2024-03-06"),
            (3, [2, 4], "2024-11-26", "2024-11-29", "2024-12-17"),
            (3, [1, 3], "2023-12-18", "2023-12-22", "2024-01-08"),
            (4, [5], "2023-12-22", "2023-12-23", "2024-01-19"),
            (5, [2], "2024-01-02", "2024-01-03", "2024-02-06"),
            (3, [1, 3], "2024-01-04", "2024-01-04", "2024-01-22"),
            (2, [3], "2024-01-03", "2024-01-03", "2024-01-17"),
            (3, [3], "2024-01-03", "2024-01-03", "2024-01-24"),
            (2, [1], "2024-01-07", "2024-01-07", "2024-01-08"),
        ],
    )
    def test_multi_week_intervals(
        self,
        interval: int,
        days: list[int],
        previous: str,
        reference: str,
        expected: str,
    ) -> None:
        """Block jumps land on the first selected weekday of the next block."""
        result = calculate_next_due_date(
            WeeklyPattern(interval=interval, days_of_week=days),
            _date(previous),
            _date(reference),
        )
        assert result == _date(expected)

    def test_saturday_due_date_always_jumps(self) -> None:
        """A Saturday due date never reuses its own week."""
        result = calculate_next_due_date(
            WeeklyPattern(interval=2, days_of_week=[1]),
            _date("2024-01-06"),
            _date("2024-01-06"),
        )
        assert result == _date("2024-01-15")

    def test_unsorted_days_are_sorted(self) -> None:
        """Selection order does not matter."""
        result = calculate_next_due_date(
            WeeklyPattern(interval=2, days_of_week=[5, 1, 3]),
            _date("2024-01-01"),
            _date("2024-01-01"),
        )
        assert result == _date("2024-01-03")

    def test_no_days_behaves_as_every_n_weeks(self) -> None:
        """Empty selection steps whole weeks from the previous due date."""
        result = calculate_next_due_date(
            WeeklyPattern(interval=1, days_of_week=[]), _date("2025-01-10"), TODAY
        )
        assert result == _date("2025-01-17")

    def test_out_of_range_days_are_ignored(self) -> None:
        """Only 0-6 are weekdays."""
        result = calculate_next_due_date(
            WeeklyPattern(interval=1, days_of_week=[5, 9, -2]), None, TODAY
        )
        assert result == _date("2025-01-17")

    @pytest.mark.parametrize("interval", [1, 2, 3, 4])
    def test_result_is_selected_day_after_today(self, interval: int) -> None:
        """The result is always a selected weekday strictly after today."""
        days = [2, 4]
        result = calculate_next_due_date(
            WeeklyPattern(interval=interval, days_of_week=days),
            _date("2024-12-03"),
            TODAY,
        )
        assert result > TODAY
        assert dt_utils.weekday_index(result) in days


# =============================================================================
# Monthly
# =============================================================================


class TestMonthlyPattern:
    """Monthly cadence on a fixed day of month."""

    @pytest.mark.parametrize(
        ("interval", "day_of_month", "previous", "reference", "expected"),
        [
            (2, 10, "2024-11-10", None, "2025-03-10"),
            (1, 31, "2025-01-31", None, "2025-02-28"),
            (1, 29, "2025-01-29", None, "2025-02-28"),
            (1, 20, None, None, "2025-02-20"),
            (1, 20, "2025-02-20", "2025-01-15", "2025-03-20"),
            (1, 20, "2025-01-20", "2025-02-19", "2025-02-20"),
            (1, 20, "2025-01-20", "2025-02-20", "2025-02-20"),
        ],
    )
    def test_next_due(
        self,
        interval: int,
        day_of_month: int,
        previous: str | None,
        reference: str | None,
        expected: str,
    ) -> None:
        """Adds the interval at least once, then until not before today."""
        result = calculate_next_due_date(
            MonthlyPattern(interval=interval, day_of_month=day_of_month),
            _date(previous) if previous else None,
            _date(reference) if reference else TODAY,
        )
        assert result == _date(expected)

    def test_leap_year_february(self) -> None:
        """Day 31 lands on Feb 29 in a leap year."""
        result = calculate_next_due_date(
            MonthlyPattern(interval=1, day_of_month=31),
            _date("2024-01-31"),
            _date("2024-01-31"),
        )
        assert result == _date("2024-02-29")

    def test_short_month_does_not_shift_later_months(self) -> None:
        """After clamping to Feb 28 the next month is back on day 31."""
        result = calculate_next_due_date(
            MonthlyPattern(interval=1, day_of_month=31),
            _date("2025-02-28"),
            _date("2025-03-01"),
        )
        assert result == _date("2025-03-31")

    @pytest.mark.parametrize("day_of_month", [0, -1, 32])
    def test_day_of_month_out_of_range_raises(self, day_of_month: int) -> None:
        """Only days 1 through 31 are accepted."""
        with pytest.raises(ValueError, match="day_of_month"):
            MonthlyPattern(interval=1, day_of_month=day_of_month)


# =============================================================================
# Interval validation
# =============================================================================


class TestIntervalValidation:
    """Non-positive intervals are rejected before any arithmetic."""

    @pytest.mark.parametrize(
        "pattern",
        [
            DailyPattern(interval=0),
            DailyPattern(interval=-1),
            WeeklyPattern(interval=0, days_of_week=[1]),
            WeeklyPattern(interval=-1),
            MonthlyPattern(interval=0, day_of_month=5),
            MonthlyPattern(interval=-1, day_of_month=5),
        ],
    )
    def test_non_positive_interval_raises(self, pattern) -> None:
        """Every pattern kind validates its interval."""
        with pytest.raises(InvalidIntervalError) as exc_info:
            calculate_next_due_date(pattern, None, TODAY)
        assert exc_info.value.interval == pattern.interval

    def test_error_is_value_error(self) -> None:
        """Callers catching ValueError also catch the interval error."""
        error = InvalidIntervalError(0)
        assert isinstance(error, ValueError)
        assert "0" in str(error)


# =============================================================================
# Timezone and clock
# =============================================================================


class TestTimezoneHandling:
    """Day boundaries follow the configured local zone."""

    @freeze_time("2025-01-15 12:00:00")
    def test_defaults_to_system_clock(self) -> None:
        """Without a reference date "today" is the frozen clock's day."""
        result = calculate_next_due_date(DailyPattern(interval=1))
        assert result == _date("2025-01-16")

    def test_reference_uses_local_day(self, new_york_tz: ZoneInfo) -> None:
        """03:00 UTC on the 16th is still the 15th in New York."""
        dt_utils.set_default_timezone(new_york_tz)
        result = calculate_next_due_date(
            DailyPattern(interval=1), None, make_utc_dt(2025, 1, 16, 3)
        )
        assert result == datetime(2025, 1, 16, tzinfo=new_york_tz)

    def test_explicit_tz_overrides_default(self, new_york_tz: ZoneInfo) -> None:
        """The tz argument wins over the configured default."""
        result = calculate_next_due_date(
            DailyPattern(interval=1), None, make_utc_dt(2025, 1, 16, 3), tz=new_york_tz
        )
        assert result == datetime(2025, 1, 16, tzinfo=new_york_tz)

    def test_result_is_local_midnight_across_dst(self, new_york_tz: ZoneInfo) -> None:
        """Stepping over the March DST change keeps results at midnight."""
        dt_utils.set_default_timezone(new_york_tz)
        result = calculate_next_due_date(
            DailyPattern(interval=7),
            datetime(2025, 3, 5, tzinfo=new_york_tz),
            datetime(2025, 3, 6, tzinfo=new_york_tz),
        )
        assert result == datetime(2025, 3, 12, tzinfo=new_york_tz)
        assert (result.hour, result.minute) == (0, 0)
