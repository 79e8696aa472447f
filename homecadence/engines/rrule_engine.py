"""RRULE Engine for homecadence.

Bidirectional mapping between the calendar editor's recurrence state and the
iCal RRULE wire value, plus the RRULE text codec and recurring event
expansion.

- parse_recurrence_rule: honest parser, raises RecurrenceParseError
- parse_recurrence_from_ical: call-site wrapper that logs and falls back to
  default_recurrence_state() on any failure
- generate_recurrence_rule: state → RRULE wire value (None if not recurring)
- adjust_start_date_for_recurrence_days: snap a new weekly event's start onto
  a selected weekday
- parse_rrule_string / format_rrule_string: "FREQ=...;..." text codec
- expand_recurring_events: `dateutil.rrule` expansion inside a window

Only a subset of the state round-trips losslessly (yearly day-of-month and
monthly day-of-month carry no BYxxx parts of their own).
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
import re
from typing import TYPE_CHECKING, Any, cast

from dateutil.relativedelta import relativedelta
from dateutil.rrule import rrulestr

from .. import const
from ..utils.dt_utils import (
    as_local,
    as_utc,
    dt_today_local,
    format_ical_utc,
    parse_ical_utc,
    weekday_index,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from zoneinfo import ZoneInfo

    from ..type_defs import ExpandableEvent, ICalEventData, RRuleData

_NTH_WEEKDAY_RE = re.compile(const.NTH_WEEKDAY_PATTERN)


class RecurrenceParseError(ValueError):
    """Raised when an RRULE value cannot be mapped onto recurrence state."""


# =============================================================================
# RECURRENCE STATE
# =============================================================================


@dataclass(frozen=True, slots=True)
class NthWeekday:
    """The `week`-th `day` of a month (week -1 = last)."""

    week: int = const.DEFAULT_NTH_WEEK
    day: int = const.DEFAULT_NTH_DAY


@dataclass(frozen=True, slots=True)
class YearlyNthWeekday:
    """The `week`-th `day` of zero-based `month`."""

    week: int = const.DEFAULT_NTH_WEEK
    day: int = const.DEFAULT_NTH_DAY
    month: int = const.DEFAULT_NTH_MONTH


@dataclass(slots=True)
class RecurrenceState:
    """Recurrence fields edited by the calendar event form.

    Superset of the todo RecurrencePattern: also models yearly cadence,
    nth-weekday modes and end conditions.
    """

    is_recurring: bool = False
    recurrence_type: const.RecurrenceType = const.DEFAULT_RECURRENCE_TYPE
    interval: int = const.DEFAULT_RECURRENCE_INTERVAL
    end_type: const.RecurrenceEndType = const.DEFAULT_RECURRENCE_END_TYPE
    count: int = const.DEFAULT_RECURRENCE_COUNT
    until: date = field(default_factory=dt_today_local)
    days: list[int] = field(default_factory=list)
    monthly_mode: const.RepeatMode = const.RepeatMode.DAY_OF_MONTH
    monthly_weekday: NthWeekday = field(default_factory=NthWeekday)
    yearly_mode: const.RepeatMode = const.RepeatMode.DAY_OF_MONTH
    yearly_weekday: YearlyNthWeekday = field(default_factory=YearlyNthWeekday)


def default_recurrence_state(tz: ZoneInfo | None = None) -> RecurrenceState:
    """Return the canonical defaults used by form init and error fallback."""
    state = RecurrenceState()
    reset_recurrence_fields(state, tz)
    return state


def reset_recurrence_fields(state: RecurrenceState, tz: ZoneInfo | None = None) -> None:
    """Reset every recurrence field in place to the canonical defaults.

    Not recurring, weekly, interval 1, never ends, count 10, until today,
    no days, day-of-month modes, nth-weekday {week 1, Monday[, January]}.
    """
    state.is_recurring = False
    state.recurrence_type = const.DEFAULT_RECURRENCE_TYPE
    state.interval = const.DEFAULT_RECURRENCE_INTERVAL
    state.end_type = const.DEFAULT_RECURRENCE_END_TYPE
    state.count = const.DEFAULT_RECURRENCE_COUNT
    state.until = dt_today_local(tz)
    state.days = []
    state.monthly_mode = const.RepeatMode.DAY_OF_MONTH
    state.monthly_weekday = NthWeekday()
    state.yearly_mode = const.RepeatMode.DAY_OF_MONTH
    state.yearly_weekday = YearlyNthWeekday()


def get_default_recurrence_until(
    start: date, recurrence_type: const.RecurrenceType | str
) -> date:
    """Suggest an "until" date for a freshly enabled recurrence.

    daily: start + 6 days, weekly: + 3 weeks, monthly: + 5 months,
    yearly: + 2 years.
    """
    match const.RecurrenceType(recurrence_type):
        case const.RecurrenceType.DAILY:
            return start + timedelta(days=const.DEFAULT_UNTIL_DAYS_DAILY)
        case const.RecurrenceType.WEEKLY:
            return start + timedelta(weeks=const.DEFAULT_UNTIL_WEEKS_WEEKLY)
        case const.RecurrenceType.MONTHLY:
            return start + relativedelta(months=const.DEFAULT_UNTIL_MONTHS_MONTHLY)
        case const.RecurrenceType.YEARLY:
            return start + relativedelta(years=const.DEFAULT_UNTIL_YEARS_YEARLY)


# =============================================================================
# RRULE → state
# =============================================================================


def parse_recurrence_rule(
    rrule: RRuleData | None,
    state: RecurrenceState | None = None,
    tz: ZoneInfo | None = None,
) -> RecurrenceState:
    """Map an RRULE wire value onto recurrence state.

    Fields the rule does not mention keep their value from `state` (or the
    defaults). An unrecognized FREQ leaves the prior type in place.

    Args:
        rrule: RRULE wire value, or None for "not recurring".
        state: Prior state to start from. Not modified.
        tz: Zone for the default "until" date.

    Returns:
        New RecurrenceState.

    Raises:
        RecurrenceParseError: If the interval, count, or until value is
            malformed.
    """
    if rrule is None:
        return default_recurrence_state(tz)

    result = (
        replace(state, days=list(state.days))
        if state is not None
        else default_recurrence_state(tz)
    )
    result.is_recurring = True

    freq = str(rrule.get(const.RRULE_FREQ) or "").lower()
    try:
        result.recurrence_type = const.RecurrenceType(freq)
    except ValueError:
        const.LOGGER.debug("RRULE engine: Ignoring unsupported FREQ %r", freq)

    interval = rrule.get(const.RRULE_INTERVAL)
    result.interval = (
        _positive_int(interval, const.RRULE_INTERVAL)
        if interval is not None
        else const.DEFAULT_RECURRENCE_INTERVAL
    )

    byday = _as_list(rrule.get(const.RRULE_BYDAY))
    if result.recurrence_type == const.RecurrenceType.WEEKLY and byday:
        result.days = [
            const.DAY_CODES.index(code) for code in byday if code in const.DAY_CODES
        ]

    if result.recurrence_type == const.RecurrenceType.MONTHLY and byday:
        nth = _parse_nth_weekday(byday[0])
        if nth is not None:
            result.monthly_mode = const.RepeatMode.NTH_WEEKDAY
            result.monthly_weekday = NthWeekday(week=nth[0], day=nth[1])

    bymonth = _as_list(rrule.get(const.RRULE_BYMONTH))
    if result.recurrence_type == const.RecurrenceType.YEARLY and byday and bymonth:
        nth = _parse_nth_weekday(byday[0])
        if nth is not None:
            result.yearly_mode = const.RepeatMode.NTH_WEEKDAY
            result.yearly_weekday = YearlyNthWeekday(
                week=nth[0],
                day=nth[1],
                month=_positive_int(bymonth[0] or 1, const.RRULE_BYMONTH) - 1,
            )

    count = rrule.get(const.RRULE_COUNT)
    until = rrule.get(const.RRULE_UNTIL)
    if count:
        result.end_type = const.RecurrenceEndType.COUNT
        result.count = _positive_int(count, const.RRULE_COUNT)
    elif until:
        try:
            result.until = parse_ical_utc(until).date()
        except (TypeError, ValueError) as err:
            raise RecurrenceParseError(f"Invalid UNTIL value {until!r}") from err
        result.end_type = const.RecurrenceEndType.UNTIL
    else:
        result.end_type = const.RecurrenceEndType.NEVER

    return result


def parse_recurrence_from_ical(
    ical_data: ICalEventData | None,
    state: RecurrenceState | None = None,
    tz: ZoneInfo | None = None,
) -> RecurrenceState:
    """Best-effort recurrence state for a (possibly third-party) iCal event.

    Missing data, non-VEVENT components, events without a rule, and any parse
    failure all yield default_recurrence_state(); failures are logged.
    """
    if not ical_data or ical_data.get("type") != const.ICAL_TYPE_VEVENT:
        return default_recurrence_state(tz)

    rrule = ical_data.get("rrule")
    if not rrule:
        return default_recurrence_state(tz)

    try:
        return parse_recurrence_rule(rrule, state, tz)
    except (
        ValueError,
        TypeError,
        KeyError,
        AttributeError,
        OverflowError,
    ) as err:
        const.LOGGER.error("Error parsing iCal recurrence %s: %s", rrule, err)
        return default_recurrence_state(tz)


# =============================================================================
# state → RRULE
# =============================================================================


def generate_recurrence_rule(
    state: RecurrenceState, tz: ZoneInfo | None = None
) -> RRuleData | None:
    """Build the RRULE wire value for a recurrence state.

    Args:
        state: Recurrence form state.
        tz: Zone whose end of day bounds an "until" date.

    Returns:
        RRULE wire value, or None when the state is not recurring.
    """
    if not state.is_recurring:
        return None

    rrule: RRuleData = {const.RRULE_FREQ: state.recurrence_type.upper()}
    if state.interval > 1:
        rrule[const.RRULE_INTERVAL] = state.interval

    if state.recurrence_type == const.RecurrenceType.WEEKLY and state.days:
        codes = [code for code in map(_day_code, state.days) if code]
        if codes:
            rrule[const.RRULE_BYDAY] = codes

    if (
        state.recurrence_type == const.RecurrenceType.MONTHLY
        and state.monthly_mode == const.RepeatMode.NTH_WEEKDAY
    ):
        nth = state.monthly_weekday
        rrule[const.RRULE_BYDAY] = [f"{nth.week}{_day_code(nth.day)}"]

    if (
        state.recurrence_type == const.RecurrenceType.YEARLY
        and state.yearly_mode == const.RepeatMode.NTH_WEEKDAY
    ):
        yearly = state.yearly_weekday
        rrule[const.RRULE_BYDAY] = [f"{yearly.week}{_day_code(yearly.day)}"]
        rrule[const.RRULE_BYMONTH] = [yearly.month + 1]

    if state.end_type == const.RecurrenceEndType.COUNT:
        rrule[const.RRULE_COUNT] = state.count
    elif state.end_type == const.RecurrenceEndType.UNTIL and state.until:
        end_of_day = datetime.combine(
            state.until,
            time(
                const.END_OF_DAY_HOUR,
                const.END_OF_DAY_MINUTE,
                const.END_OF_DAY_SECOND,
                const.END_OF_DAY_MICROSECOND,
            ),
        )
        rrule[const.RRULE_UNTIL] = format_ical_utc(as_local(end_of_day, tz))

    return rrule


def adjust_start_date_for_recurrence_days(
    start: datetime, recurrence_days: Iterable[int]
) -> datetime:
    """Move a weekly event's first start forward onto a selected weekday.

    Uses the UTC weekday of `start` and the smallest forward rotation (0-6
    days) to any selected day. Identity when no days are selected or the
    start already falls on one. Time of day is preserved.
    """
    days = [day for day in recurrence_days if 0 <= day <= const.SATURDAY]
    if not days:
        return start

    start_day = weekday_index(as_utc(start))
    days_to_add = min((day - start_day) % const.DAYS_PER_WEEK for day in days)
    if days_to_add == 0:
        return start

    shifted = as_utc(start) + timedelta(days=days_to_add)
    if start.tzinfo is None:
        return as_local(shifted).replace(tzinfo=None)
    return shifted.astimezone(start.tzinfo)


# =============================================================================
# RRULE text codec
# =============================================================================


def parse_rrule_string(rrule_string: str | None) -> RRuleData | None:
    """Parse "RRULE:FREQ=WEEKLY;BYDAY=MO,WE" text into an RRULE wire value.

    Keys are case-insensitive and parts without a value are skipped.

    Returns:
        RRULE wire value, or None for empty text or text without FREQ.
    """
    if not rrule_string:
        return None

    text = rrule_string.strip()
    if text.upper().startswith(const.RRULE_PREFIX):
        text = text[len(const.RRULE_PREFIX) :].strip()
    if not text:
        return None

    result: dict[str, Any] = {const.RRULE_FREQ: ""}
    for part in text.split(";"):
        key, _, value = part.partition("=")
        key = key.strip().lower()
        value = value.strip()
        if not key or not value:
            continue

        try:
            if key == const.RRULE_FREQ:
                result[key] = value.upper()
            elif key in const.RRULE_INTEGER_PARTS:
                result[key] = int(value)
            elif key == const.RRULE_BYDAY:
                result[key] = [day.strip().upper() for day in value.split(",")]
            elif key == const.RRULE_BYMONTH:
                result[key] = [int(month) for month in value.split(",")]
            elif key == const.RRULE_UNTIL:
                result[key] = value
        except ValueError:
            const.LOGGER.warning("RRULE engine: Skipping malformed RRULE part %r", part)

    if not result[const.RRULE_FREQ]:
        return None

    return cast("RRuleData", result)


def format_rrule_string(rrule: RRuleData) -> str:
    """Serialize an RRULE wire value as "FREQ=...;INTERVAL=...;..." text."""
    parts: list[str] = []
    for key in const.RRULE_PART_ORDER:
        value = rrule.get(key)
        if value is None or value == []:
            continue
        if isinstance(value, list):
            value = ",".join(str(item) for item in value)
        parts.append(f"{key.upper()}={value}")
    return ";".join(parts)


# =============================================================================
# Recurring event expansion
# =============================================================================


def expand_recurring_events(
    events: Sequence[ExpandableEvent],
    start_date: datetime,
    end_date: datetime,
) -> list[ExpandableEvent]:
    """Expand events that carry an RRULE into their instances in a window.

    Non-recurring events pass through unchanged. Each instance inside
    [start_date, end_date] is a copy of its event with id
    "{id}-{YYYYMMDDTHHMMSSZ}", shifted start/end, and updated
    ical_event.dtstart/dtend. At most MAX_RECURRENCE_INSTANCES instances are
    walked per event. An event whose rule cannot be built is logged and
    kept as-is.
    """
    window_start = as_utc(start_date)
    window_end = as_utc(end_date)
    expanded: list[ExpandableEvent] = []

    for event in events:
        ical_event = event.get("ical_event")
        rrule = ical_event.get("rrule") if ical_event else None
        if not rrule:
            expanded.append(event)
            continue

        event_start = as_utc(event["start"])
        duration = as_utc(event["end"]) - event_start
        try:
            rule_data = dict(rrule)
            if rule_data.get(const.RRULE_UNTIL):
                rule_data[const.RRULE_UNTIL] = format_ical_utc(
                    parse_ical_utc(rule_data[const.RRULE_UNTIL])
                )
            rule = rrulestr(
                format_rrule_string(cast("RRuleData", rule_data)),
                dtstart=event_start,
            )
        except (ValueError, TypeError, KeyError) as err:
            const.LOGGER.warning(
                "RRULE engine: Failed to expand recurring event %s: %s",
                event["id"],
                err,
            )
            expanded.append(event)
            continue

        for index, occurrence in enumerate(rule):
            if occurrence > window_end:
                break
            if index >= const.MAX_RECURRENCE_INSTANCES:
                const.LOGGER.warning(
                    "RRULE engine: Event %s hit the %s instance limit",
                    event["id"],
                    const.MAX_RECURRENCE_INSTANCES,
                )
                break
            if occurrence < window_start:
                continue
            expanded.append(_instance_of(event, occurrence, occurrence + duration))

    return expanded


# =============================================================================
# Private helpers
# =============================================================================


def _instance_of(
    event: ExpandableEvent, start: datetime, end: datetime
) -> ExpandableEvent:
    """Copy an event onto one occurrence."""
    instance = copy.copy(event)
    instance["id"] = f"{event['id']}-{format_ical_utc(start)}"
    instance["start"] = start
    instance["end"] = end
    ical_event = dict(event["ical_event"])
    ical_event["dtstart"] = format_ical_utc(start)
    ical_event["dtend"] = format_ical_utc(end)
    instance["ical_event"] = cast("ICalEventData", ical_event)
    return instance


def _day_code(day: int) -> str:
    """Day code for a WeekdayIndex, empty for out-of-range values."""
    if 0 <= day <= const.SATURDAY:
        return const.DAY_CODES[day]
    return ""


def _parse_nth_weekday(value: object) -> tuple[int, int] | None:
    """Parse "2MO"/"-1FR" into (week, WeekdayIndex), None if it does not match."""
    if not isinstance(value, str):
        return None
    match = _NTH_WEEKDAY_RE.match(value)
    if not match or match.group(2) not in const.DAY_CODES:
        return None
    return int(match.group(1)), const.DAY_CODES.index(match.group(2))


def _as_list(value: Any) -> list[Any]:
    """Normalize a scalar-or-list RRULE part to a list."""
    if value is None:
        return []
    if isinstance(value, list | tuple):
        return list(value)
    if isinstance(value, str):
        return [part for part in value.split(",") if part]
    return [value]


def _positive_int(value: Any, part: str) -> int:
    """Coerce an RRULE integer part, rejecting non-positive values."""
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError) as err:
        raise RecurrenceParseError(f"Invalid {part.upper()} value {value!r}") from err
    if number < 1:
        raise RecurrenceParseError(f"Invalid {part.upper()} value {value!r}")
    return number
