"""Shift Engine for homecadence.

Expands cyclic shift rotations into dated calendar occurrences.

A rotation repeats every `cycleWeeks` weeks. Each assignment anchors the
cycle on its startDate: week 0 of the cycle is the 7-day block starting on
that date. For every day of the window the engine picks the cycle week,
matches the rotation's slots on (weekIndex, dayOfWeek), and resolves slot
times to UTC instants on that date.

Expansion is deterministic: the same inputs give the same occurrence ids and
timestamps, so callers may re-expand a window and diff by id.

Bad records degrade instead of failing the window: a malformed "HH:MM"
resolves to minute 0, a slot outside the cycle or a rotation without a valid
cycle length is skipped. Each case is logged as a warning.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any

from dateutil.relativedelta import relativedelta

from .. import const
from ..utils.dt_utils import (
    dt_now_local,
    dt_to_utc_date,
    parse_time_to_minutes,
    weekday_index,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from zoneinfo import ZoneInfo

    from ..type_defs import (
        OccurrencePayload,
        ShiftAssignmentData,
        ShiftRotationData,
        ShiftSlotData,
        ShiftsSettings,
        ShiftUserData,
    )


@dataclass(frozen=True, slots=True)
class ShiftOccurrence:
    """One concrete shift on the calendar.

    Attributes:
        id: "shift-{assignmentId}-{slotId}-{epochMillis of the date}"
        title: Slot label, or the rotation name when the label is blank
        start: UTC start instant
        end: UTC end instant
        all_day: True for the ("00:00", "24:00") slot
        color: Display color
        integration_id: Owning shifts integration, if known
        users: Users shown on the event, or None
    """

    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool
    color: str
    integration_id: str | None = None
    users: tuple[ShiftUserData, ...] | None = None

    def as_dict(self) -> OccurrencePayload:
        """Serialize for the calendar UI (camelCase keys, ISO instants)."""
        payload: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "allDay": self.all_day,
            "color": self.color,
            "integrationId": self.integration_id,
        }
        if self.users is not None:
            payload["users"] = [dict(user) for user in self.users]
        return payload


# =============================================================================
# Slot time resolution
# =============================================================================


def slot_times_to_utc(
    day: date, start_time: str, end_time: str
) -> tuple[datetime, datetime, bool]:
    """Resolve slot "HH:MM" times on a UTC calendar date.

    ("00:00", "24:00") is all day: UTC midnight to the next UTC midnight.
    Otherwise both times are offsets from UTC midnight of `day`; there is no
    cross-midnight handling, except that hours past 24 roll into the next day.

    Returns:
        (start, end, all_day)
    """
    start_minutes = _slot_minutes(start_time)
    end_minutes = _slot_minutes(end_time)
    midnight = datetime.combine(day, time(0, 0), tzinfo=UTC)

    if start_minutes == 0 and end_minutes == const.MINUTES_PER_DAY:
        return midnight, midnight + timedelta(days=1), True

    return (
        midnight + timedelta(minutes=start_minutes),
        midnight + timedelta(minutes=end_minutes),
        False,
    )


def _slot_minutes(time_str: str) -> int:
    """Minutes since midnight for a slot time, 0 if malformed."""
    minutes = parse_time_to_minutes(time_str)
    if minutes is None:
        const.LOGGER.warning(
            "Shift engine: Malformed slot time %r, using 00:00", time_str
        )
        return 0
    return minutes


# =============================================================================
# Expansion
# =============================================================================


def default_shift_window(
    now: datetime | date | None = None, tz: ZoneInfo | None = None
) -> tuple[date, date]:
    """Default expansion window: one year back to two years ahead of today.

    Feb 29 clamps to Feb 28 in non-leap years.
    """
    if now is None:
        today = dt_now_local(tz).date()
    elif isinstance(now, datetime):
        today = now.date()
    else:
        today = now
    return (
        today - relativedelta(years=const.SHIFT_WINDOW_YEARS_BACK),
        today + relativedelta(years=const.SHIFT_WINDOW_YEARS_FORWARD),
    )


def expand_shifts_to_occurrences(
    rotations: Iterable[ShiftRotationData],
    settings: ShiftsSettings | None,
    start_date: date | datetime,
    end_date: date | datetime,
    known_users: Mapping[str, ShiftUserData] | None = None,
) -> list[ShiftOccurrence]:
    """Expand shift rotations into occurrences over an inclusive date window.

    Args:
        rotations: Rotations with their slots and assignments. Assignments
            may carry their user under "user".
        settings: Shifts integration settings (eventColor, user,
            useUserColors), or None for defaults.
        start_date: First day of the window (datetimes use their UTC date).
        end_date: Last day of the window, inclusive.
        known_users: Users by id, used to resolve settings["user"].

    Returns:
        Occurrences sorted by start.
    """
    settings = settings or {}
    event_color = settings.get(
        const.CONF_SHIFTS_EVENT_COLOR, const.DEFAULT_SHIFT_EVENT_COLOR
    )
    user_ids = settings.get(const.CONF_SHIFTS_USER_IDS) or []
    use_user_colors = bool(
        settings.get(
            const.CONF_SHIFTS_USE_USER_COLORS, const.DEFAULT_SHIFT_USE_USER_COLORS
        )
    )

    window_start = dt_to_utc_date(start_date)
    window_end = dt_to_utc_date(end_date)
    if window_start is None or window_end is None:
        raise ValueError(f"Invalid shift window {start_date!r} - {end_date!r}")

    occurrences: list[ShiftOccurrence] = []
    for rotation in rotations:
        occurrences.extend(
            _expand_rotation(
                rotation,
                window_start,
                window_end,
                event_color=event_color,
                use_user_colors=use_user_colors,
            )
        )

    if user_ids and not use_user_colors:
        # Display filter: show the configured users on every occurrence
        lookup = known_users or {}
        users = tuple(lookup[user_id] for user_id in user_ids if user_id in lookup)
        occurrences = [replace(occurrence, users=users) for occurrence in occurrences]

    return sorted(occurrences, key=lambda occurrence: occurrence.start)


def _expand_rotation(
    rotation: ShiftRotationData,
    window_start: date,
    window_end: date,
    *,
    event_color: str,
    use_user_colors: bool,
) -> list[ShiftOccurrence]:
    """Expand every assignment of one rotation."""
    cycle_weeks = rotation.get(const.DATA_ROTATION_CYCLE_WEEKS, 0)
    if not isinstance(cycle_weeks, int) or cycle_weeks < 1:
        const.LOGGER.warning(
            "Shift engine: Rotation %s has invalid cycleWeeks %r, skipping",
            rotation.get(const.DATA_ROTATION_ID),
            cycle_weeks,
        )
        return []

    slots_by_day: dict[tuple[int, int], list[ShiftSlotData]] = {}
    for slot in rotation.get(const.DATA_ROTATION_SLOTS, []):
        week_index = slot[const.DATA_SLOT_WEEK_INDEX]
        if not 0 <= week_index < cycle_weeks:
            const.LOGGER.warning(
                "Shift engine: Slot %s weekIndex %s outside %s-week cycle, skipping",
                slot.get(const.DATA_SLOT_ID),
                week_index,
                cycle_weeks,
            )
            continue
        key = (week_index, slot[const.DATA_SLOT_DAY_OF_WEEK])
        slots_by_day.setdefault(key, []).append(slot)

    rotation_color = rotation.get(const.DATA_ROTATION_COLOR)
    fallback_color = rotation_color if rotation_color is not None else event_color

    occurrences: list[ShiftOccurrence] = []
    for assignment in rotation.get(const.DATA_ROTATION_ASSIGNMENTS, []):
        user = assignment.get(const.DATA_ASSIGNMENT_USER)
        if use_user_colors and user and user.get(const.DATA_USER_COLOR):
            color = user[const.DATA_USER_COLOR]
        else:
            color = fallback_color
        users = (user,) if use_user_colors and user else None

        for day, slot in _assignment_slot_days(
            assignment, slots_by_day, cycle_weeks, window_start, window_end
        ):
            start, end, all_day = slot_times_to_utc(
                day,
                slot[const.DATA_SLOT_START_TIME],
                slot[const.DATA_SLOT_END_TIME],
            )
            occurrences.append(
                ShiftOccurrence(
                    id=_occurrence_id(assignment, slot, day),
                    title=(slot.get(const.DATA_SLOT_LABEL) or "").strip()
                    or rotation[const.DATA_ROTATION_NAME],
                    start=start,
                    end=end,
                    all_day=all_day,
                    color=color or event_color,
                    integration_id=rotation.get(const.DATA_ROTATION_INTEGRATION_ID),
                    users=users,
                )
            )

    return occurrences


def _assignment_slot_days(
    assignment: ShiftAssignmentData,
    slots_by_day: Mapping[tuple[int, int], list[ShiftSlotData]],
    cycle_weeks: int,
    window_start: date,
    window_end: date,
) -> Iterable[tuple[date, ShiftSlotData]]:
    """Yield (day, slot) for every slot falling on an assigned day in the window."""
    anchor = dt_to_utc_date(assignment[const.DATA_ASSIGNMENT_START_DATE])
    if anchor is None:
        const.LOGGER.warning(
            "Shift engine: Assignment %s has no valid startDate, skipping",
            assignment.get(const.DATA_ASSIGNMENT_ID),
        )
        return
    last_day = dt_to_utc_date(assignment.get(const.DATA_ASSIGNMENT_END_DATE))

    first = max(window_start, anchor)
    last = min(window_end, last_day) if last_day is not None else window_end

    day = first
    while day <= last:
        weeks_since_start = (day - anchor).days // const.DAYS_PER_WEEK
        week_index = weeks_since_start % cycle_weeks
        for slot in slots_by_day.get((week_index, weekday_index(day)), []):
            yield day, slot
        day += timedelta(days=1)


def _occurrence_id(
    assignment: ShiftAssignmentData, slot: ShiftSlotData, day: date
) -> str:
    """Deterministic occurrence id keyed on the UTC midnight of the date."""
    epoch_millis = int(
        datetime.combine(day, time(0, 0), tzinfo=UTC).timestamp() * 1000
    )
    return (
        f"{const.SHIFT_OCCURRENCE_ID_PREFIX}-{assignment[const.DATA_ASSIGNMENT_ID]}"
        f"-{slot[const.DATA_SLOT_ID]}-{epoch_millis}"
    )
