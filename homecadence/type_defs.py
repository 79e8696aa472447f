"""Type definitions for homecadence data structures.

ARCHITECTURE DECISION: TypedDict for records, dataclasses for values
====================================================================

Records that cross the persistence boundary (rotations, slots, assignments,
users, integration settings, RRULE wire values) are plain dicts shaped by
the storage collaborator, so they are described here as TypedDicts with the
storage's own camelCase keys. data_builders.py validates and normalizes raw
dicts into these shapes.

Values the engines compute (recurrence patterns, UI recurrence state, shift
occurrences) are frozen or plain dataclasses defined next to the engine that
owns them.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime validation lives in
data_builders.py.

IMPORTANT: This file must NOT import from engines/ or data_builders.py.
"""

from datetime import date, datetime
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

WeekdayIndex = int  # 0=Sunday .. 6=Saturday, see const.DAY_CODES
RotationId = str
SlotId = str
AssignmentId = str
UserId = str
ICalInstant = str  # iCal UTC instant "20251231T235959Z"


# =============================================================================
# RRULE Wire Value
# =============================================================================


class RRuleData(TypedDict):
    """Structured iCal RRULE as stored on a calendar event.

    freq is upper-case on the wire ("WEEKLY"). byday entries are day codes
    ("MO") or nth-weekday codes ("2MO", "-1FR").
    """

    freq: str
    interval: NotRequired[int]
    byday: NotRequired[list[str]]
    bymonth: NotRequired[list[int]]
    count: NotRequired[int]
    until: NotRequired[ICalInstant]


class ICalEventData(TypedDict):
    """iCal component envelope carrying an optional recurrence rule."""

    type: str
    rrule: NotRequired[RRuleData | None]
    dtstart: NotRequired[str]
    dtend: NotRequired[str]
    uid: NotRequired[str]
    summary: NotRequired[str]


class ExpandableEvent(TypedDict):
    """Calendar event that may recur through its ical_event.rrule.

    Additional keys (title, color, users, ...) are carried through expansion
    untouched.
    """

    id: str
    start: datetime
    end: datetime
    ical_event: NotRequired[ICalEventData]


# =============================================================================
# Shift Rotation Records
# =============================================================================


class ShiftUserData(TypedDict):
    """Display projection of a household user."""

    id: UserId
    name: str
    avatar: NotRequired[str | None]
    color: NotRequired[str | None]


class ShiftSlotData(TypedDict):
    """One timed slot inside a rotation cycle.

    weekIndex must be < the owning rotation's cycleWeeks.
    startTime/endTime are 24-hour "HH:MM"; ("00:00", "24:00") means all day.
    """

    id: SlotId
    weekIndex: int
    dayOfWeek: WeekdayIndex
    startTime: str
    endTime: str
    label: NotRequired[str | None]
    order: NotRequired[int]


class ShiftAssignmentData(TypedDict):
    """Binds a user to a rotation from an anchor date.

    startDate fixes which weekIndex the cycle starts on. A missing or None
    endDate means open-ended.
    """

    id: AssignmentId
    userId: UserId
    rotationId: RotationId
    startDate: date
    endDate: NotRequired[date | None]
    user: NotRequired[ShiftUserData | None]


class ShiftRotationData(TypedDict):
    """Cyclic shift schedule owned by a shifts integration."""

    id: RotationId
    integrationId: NotRequired[str | None]
    name: str
    cycleWeeks: int
    color: NotRequired[str | None]
    order: NotRequired[int]
    slots: list[ShiftSlotData]
    assignments: list[ShiftAssignmentData]


class ShiftsSettings(TypedDict):
    """Shifts integration settings.

    user holds user ids shown on every occurrence when useUserColors is off.
    """

    eventColor: NotRequired[str]
    user: NotRequired[list[UserId]]
    useUserColors: NotRequired[bool]


# =============================================================================
# Persisted Todo Recurrence Pattern
# =============================================================================


class RecurrencePatternData(TypedDict):
    """Recurrence pattern JSON as stored on a recurring todo."""

    type: str
    interval: int
    daysOfWeek: NotRequired[list[WeekdayIndex]]
    dayOfMonth: NotRequired[int]


# Serialized occurrence, as returned to the calendar UI
OccurrencePayload = dict[str, Any]
