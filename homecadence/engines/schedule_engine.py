"""Schedule Engine for homecadence.

Next-due-date calculation for recurring todos:
- DAILY: fixed day grid anchored on the previous due date
- WEEKLY: week-block jump, then snap onto a selected weekday
- MONTHLY: `dateutil.relativedelta` month arithmetic with day clamping
  (Jan 31 + 1 month = Feb 28)

A completed-late todo keeps its own cadence grid instead of restarting from
today, but the result never lands on or before today.

All day arithmetic happens on local-midnight datetimes in the configured
default timezone (see utils.dt_utils). Adding a timedelta to an aware
datetime is wall-clock arithmetic, so midnight stays midnight across DST.

IMPORTANT: This module must NOT import from data_builders.py.
Only import from const.py, type_defs.py, and utils.
"""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, ClassVar, assert_never

from dateutil.relativedelta import relativedelta

from .. import const
from ..utils.dt_utils import dt_now_local, start_of_local_day, weekday_index

if TYPE_CHECKING:
    from collections.abc import Iterable
    from zoneinfo import ZoneInfo


class InvalidIntervalError(ValueError):
    """Raised when a recurrence interval is not a strictly positive integer.

    Attributes:
        interval: The rejected interval value
    """

    def __init__(self, interval: object) -> None:
        """Initialize InvalidIntervalError.

        Args:
            interval: The rejected interval value
        """
        self.interval = interval
        super().__init__(f"Recurrence interval must be positive, got {interval!r}")


# =============================================================================
# RECURRENCE PATTERNS
# =============================================================================


@dataclass(frozen=True, slots=True)
class DailyPattern:
    """Every `interval` days."""

    TYPE: ClassVar[const.RecurrenceType] = const.RecurrenceType.DAILY

    interval: int = const.DEFAULT_RECURRENCE_INTERVAL


@dataclass(frozen=True, slots=True)
class WeeklyPattern:
    """Every `interval` weeks on the selected weekdays.

    An empty `days_of_week` behaves as DailyPattern(interval * 7).
    """

    TYPE: ClassVar[const.RecurrenceType] = const.RecurrenceType.WEEKLY

    interval: int = const.DEFAULT_RECURRENCE_INTERVAL
    days_of_week: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        """Freeze whatever iterable of weekday indexes was passed in."""
        object.__setattr__(self, "days_of_week", frozenset(self.days_of_week))


@dataclass(frozen=True, slots=True)
class MonthlyPattern:
    """Every `interval` months on `day_of_month`, capped to the month length."""

    TYPE: ClassVar[const.RecurrenceType] = const.RecurrenceType.MONTHLY

    interval: int = const.DEFAULT_RECURRENCE_INTERVAL
    day_of_month: int = 1

    def __post_init__(self) -> None:
        """Reject a day of month outside 1-31."""
        if not const.MIN_DAY_OF_MONTH <= self.day_of_month <= const.MAX_DAY_OF_MONTH:
            raise ValueError(
                f"day_of_month must be between {const.MIN_DAY_OF_MONTH} and "
                f"{const.MAX_DAY_OF_MONTH}, got {self.day_of_month}"
            )


RecurrencePattern = DailyPattern | WeeklyPattern | MonthlyPattern


# =============================================================================
# Shared date primitives
# =============================================================================


def advance_past_date(
    start: datetime, must_exceed: datetime, interval_days: int
) -> datetime:
    """Step `start` forward by `interval_days` until it is after `must_exceed`.

    Args:
        start: Date to step from (local midnight).
        must_exceed: The result must be strictly greater than this.
        interval_days: Days per step.

    Returns:
        First stepped date strictly after must_exceed (at least one step
        when start <= must_exceed, none otherwise).

    Raises:
        InvalidIntervalError: If interval_days <= 0 (the loop could not end).
    """
    if interval_days <= 0:
        raise InvalidIntervalError(interval_days)

    result = start
    if result <= must_exceed:
        # Jump straight to the last grid point not past must_exceed
        steps = (must_exceed - result).days // interval_days
        result = result + timedelta(days=steps * interval_days)
    while result <= must_exceed:
        result = result + timedelta(days=interval_days)
    return result


def set_day(value: datetime, day_of_week: int) -> datetime:
    """Move `value` within its Sunday-first week onto `day_of_week`.

    May move forward or backward by up to six days; time of day is kept.

    Raises:
        ValueError: If day_of_week is outside 0-6.
    """
    if not 0 <= day_of_week <= const.SATURDAY:
        raise ValueError(
            f"day_of_week must be a valid day of the week [0-6] but was {day_of_week}"
        )
    return value + timedelta(days=day_of_week - weekday_index(value))


def add_months(value: datetime, months: int, day_of_month: int) -> datetime:
    """Add `months` and land on `day_of_month`, capped to the month length.

    Goes through day 1 so the month step can never overflow
    (Jan 31 + 1 month lands on Feb 28/29, never in March).
    """
    first_of_month = value.replace(day=1) + relativedelta(months=months)
    last_day = monthrange(first_of_month.year, first_of_month.month)[1]
    return first_of_month.replace(day=min(day_of_month, last_day))


# =============================================================================
# Next due date
# =============================================================================


def calculate_next_due_date(
    pattern: RecurrencePattern,
    previous_due_date: datetime | None = None,
    reference_date: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> datetime:
    """Calculate the next due date for a recurrence pattern.

    Keeps the interval cadence: when a todo was due in the past, the next
    occurrence is computed from that original due date, not from today.

    Args:
        pattern: Daily, weekly, or monthly recurrence pattern.
        previous_due_date: Previous due date, or None to start from today.
        reference_date: Datetime to treat as "today" (e.g. the client's local
            day when it differs from the server clock). Defaults to now.
        tz: Zone defining day boundaries. Defaults to DEFAULT_TIME_ZONE.

    Returns:
        Next due date as an aware datetime at local midnight.

    Raises:
        InvalidIntervalError: If pattern.interval <= 0.
    """
    if pattern.interval <= 0:
        raise InvalidIntervalError(pattern.interval)

    today = start_of_local_day(reference_date or dt_now_local(tz), tz)
    base = (
        start_of_local_day(previous_due_date, tz)
        if previous_due_date is not None
        else today
    )

    match pattern:
        case DailyPattern():
            return advance_past_date(base, max(base, today), pattern.interval)
        case WeeklyPattern():
            return _next_weekly(pattern, base, today)
        case MonthlyPattern():
            return _next_monthly(pattern, base, today)
        case _:
            assert_never(pattern)


def _next_weekly(pattern: WeeklyPattern, base: datetime, today: datetime) -> datetime:
    """Weekly cadence: use the rest of the current week, else jump interval weeks."""
    week_days = pattern.interval * const.DAYS_PER_WEEK
    sorted_days = _valid_weekdays(pattern.days_of_week)

    if not sorted_days:
        return advance_past_date(base, max(base, today), week_days)

    latest_selected_day = sorted_days[-1]
    end_of_current_week = set_day(today, latest_selected_day)
    start_of_current_week = set_day(today, const.SUNDAY)

    can_use_current_week = (
        weekday_index(base) != const.SATURDAY
        and weekday_index(today) <= latest_selected_day
        and weekday_index(base) < latest_selected_day
        and start_of_current_week <= base < end_of_current_week
    )

    if can_use_current_week:
        next_date = max(base + timedelta(days=1), today)
    else:
        # Jump to the start of the next interval block
        next_date = set_day(base, const.SUNDAY) + timedelta(days=week_days)
        while next_date < today:
            next_date = next_date + timedelta(days=week_days)

    while weekday_index(next_date) not in sorted_days:
        next_date = next_date + timedelta(days=1)

    return next_date


def _next_monthly(pattern: MonthlyPattern, base: datetime, today: datetime) -> datetime:
    """Monthly cadence: add the interval at least once, then until not before today."""
    next_date = add_months(base, pattern.interval, pattern.day_of_month)
    while next_date < today:
        next_date = add_months(next_date, pattern.interval, pattern.day_of_month)
    return next_date


def _valid_weekdays(days: Iterable[int]) -> list[int]:
    """Sort weekday indexes, dropping anything outside 0-6."""
    valid = sorted({day for day in days if 0 <= day <= const.SATURDAY})
    dropped = set(days) - set(valid)
    if dropped:
        const.LOGGER.debug(
            "Schedule engine: Ignoring out-of-range weekdays %s", sorted(dropped)
        )
    return valid
