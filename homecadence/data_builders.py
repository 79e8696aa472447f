"""Record validation and normalization helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Shift record field defaults (rotation, slot, assignment, user)
- Shift integration settings defaults
- Turning a persisted todo recurrence dict into a RecurrencePattern

### Schemas
Every record type has a module-level voluptuous schema. Unknown keys are
allowed and kept, since the storage layer adds its own bookkeeping fields.

### Build Functions
Each record type has a `build_<record>()` function that:
- Runs the raw dict through its schema (coercion, trimming, defaults)
- Translates `vol.Invalid` into EntityValidationError with the failing field
- Returns the normalized TypedDict ready for the engines

Consumers:
- Storage/API layer, before handing records to shift_engine
- Todo completion, before calling schedule_engine.calculate_next_due_date

See Also:
- type_defs.py: TypedDict definitions for type safety
"""

from __future__ import annotations

from datetime import date
from typing import Any, cast

import voluptuous as vol

from . import const
from .engines.schedule_engine import (
    DailyPattern,
    InvalidIntervalError,
    MonthlyPattern,
    RecurrencePattern,
    WeeklyPattern,
)
from .type_defs import (
    RecurrencePatternData,
    ShiftAssignmentData,
    ShiftRotationData,
    ShiftSlotData,
    ShiftsSettings,
    ShiftUserData,
)
from .utils.dt_utils import dt_to_utc_date

# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(ValueError):
    """Validation error with field-specific information.

    Raised when a persisted record or pattern dict fails its schema. The
    field attribute lets the caller point at the offending input.

    Attributes:
        field: Record key that failed validation ("" for the record itself)
        message: Human readable reason

    Example:
        raise EntityValidationError(
            field=const.DATA_ROTATION_CYCLE_WEEKS,
            message="value must be at least 1",
        )
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize EntityValidationError.

        Args:
            field: Record key for the field that failed validation
            message: Human readable reason
        """
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}" if field else message)


# ==============================================================================
# FIELD VALIDATORS
# ==============================================================================


def _stripped_string(value: Any) -> str:
    """Require a string and trim surrounding whitespace."""
    if not isinstance(value, str):
        raise vol.Invalid(f"expected a string, got {type(value).__name__}")
    return value.strip()


def _non_empty_string(value: Any) -> str:
    """Require a string that is not blank after trimming."""
    text = _stripped_string(value)
    if not text:
        raise vol.Invalid("must not be empty")
    return text


def _optional_label(value: Any) -> str | None:
    """Trim a slot label; blank or missing becomes None."""
    if value is None:
        return None
    return _stripped_string(value) or None


def _utc_date(value: Any) -> date:
    """Coerce a date, datetime, or ISO text into a UTC calendar date."""
    result = dt_to_utc_date(value) if value is not None else None
    if result is None:
        raise vol.Invalid(f"invalid date {value!r}")
    return result


def _optional_utc_date(value: Any) -> date | None:
    """Like _utc_date, but None passes through."""
    if value is None:
        return None
    return _utc_date(value)


# ==============================================================================
# SCHEMAS
# ==============================================================================

SHIFT_USER_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_USER_ID): _non_empty_string,
        vol.Required(const.DATA_USER_NAME): _stripped_string,
        vol.Optional(const.DATA_USER_AVATAR): vol.Any(None, str),
        vol.Optional(const.DATA_USER_COLOR): vol.Any(None, str),
    },
    extra=vol.ALLOW_EXTRA,
)

SHIFT_SLOT_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_SLOT_ID): _non_empty_string,
        vol.Required(const.DATA_SLOT_WEEK_INDEX): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Required(const.DATA_SLOT_DAY_OF_WEEK): vol.All(
            vol.Coerce(int), vol.Range(min=const.SUNDAY, max=const.SATURDAY)
        ),
        vol.Required(const.DATA_SLOT_START_TIME): _stripped_string,
        vol.Required(const.DATA_SLOT_END_TIME): _stripped_string,
        vol.Optional(const.DATA_SLOT_LABEL, default=None): _optional_label,
        vol.Optional(
            const.DATA_SLOT_ORDER, default=const.DEFAULT_SHIFT_ORDER
        ): vol.Coerce(int),
    },
    extra=vol.ALLOW_EXTRA,
)

SHIFT_ASSIGNMENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_ASSIGNMENT_ID): _non_empty_string,
        vol.Required(const.DATA_ASSIGNMENT_USER_ID): _non_empty_string,
        vol.Required(const.DATA_ASSIGNMENT_ROTATION_ID): _non_empty_string,
        vol.Required(const.DATA_ASSIGNMENT_START_DATE): _utc_date,
        vol.Optional(const.DATA_ASSIGNMENT_END_DATE, default=None): _optional_utc_date,
        vol.Optional(const.DATA_ASSIGNMENT_USER): vol.Any(None, SHIFT_USER_SCHEMA),
    },
    extra=vol.ALLOW_EXTRA,
)

SHIFT_ROTATION_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_ROTATION_ID): _non_empty_string,
        vol.Optional(const.DATA_ROTATION_INTEGRATION_ID): vol.Any(None, str),
        vol.Required(const.DATA_ROTATION_NAME): _non_empty_string,
        vol.Required(const.DATA_ROTATION_CYCLE_WEEKS): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
        vol.Optional(const.DATA_ROTATION_COLOR, default=None): vol.Any(None, str),
        vol.Optional(
            const.DATA_ROTATION_ORDER, default=const.DEFAULT_SHIFT_ORDER
        ): vol.Coerce(int),
        vol.Optional(const.DATA_ROTATION_SLOTS, default=list): [SHIFT_SLOT_SCHEMA],
        vol.Optional(const.DATA_ROTATION_ASSIGNMENTS, default=list): [
            SHIFT_ASSIGNMENT_SCHEMA
        ],
    },
    extra=vol.ALLOW_EXTRA,
)

SHIFTS_SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_SHIFTS_EVENT_COLOR, default=const.DEFAULT_SHIFT_EVENT_COLOR
        ): _non_empty_string,
        vol.Optional(const.CONF_SHIFTS_USER_IDS, default=list): [_non_empty_string],
        vol.Optional(
            const.CONF_SHIFTS_USE_USER_COLORS,
            default=const.DEFAULT_SHIFT_USE_USER_COLORS,
        ): vol.Boolean(),
    },
    extra=vol.ALLOW_EXTRA,
)

RECURRENCE_PATTERN_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_PATTERN_TYPE): vol.In(const.PATTERN_TYPE_OPTIONS),
        vol.Required(const.DATA_PATTERN_INTERVAL): vol.Coerce(int),
        vol.Optional(const.DATA_PATTERN_DAYS_OF_WEEK, default=list): [
            vol.All(vol.Coerce(int), vol.Range(min=const.SUNDAY, max=const.SATURDAY))
        ],
        vol.Optional(
            const.DATA_PATTERN_DAY_OF_MONTH, default=const.MIN_DAY_OF_MONTH
        ): vol.All(
            vol.Coerce(int),
            vol.Range(min=const.MIN_DAY_OF_MONTH, max=const.MAX_DAY_OF_MONTH),
        ),
    },
    extra=vol.ALLOW_EXTRA,
)


def _validate(schema: vol.Schema, data: Any) -> dict[str, Any]:
    """Run a schema, translating voluptuous errors into EntityValidationError."""
    try:
        return schema(data)
    except vol.Invalid as err:
        # MultipleInvalid reports its first error through path/msg as well
        field = ".".join(str(part) for part in err.path)
        raise EntityValidationError(field=field, message=err.msg) from err


# ==============================================================================
# SHIFT RECORDS
# ==============================================================================


def build_shift_user(data: dict[str, Any]) -> ShiftUserData:
    """Validate a user summary as embedded in an assignment.

    Raises:
        EntityValidationError: If id is missing or name is not a string
    """
    return cast("ShiftUserData", _validate(SHIFT_USER_SCHEMA, data))


def build_shift_slot(data: dict[str, Any]) -> ShiftSlotData:
    """Validate a rotation slot.

    Rules:
        1. weekIndex >= 0
        2. dayOfWeek in 0-6 (Sunday first)
        3. startTime/endTime are strings, trimmed (format is checked at
           expansion time, where a malformed value degrades to 00:00)
        4. Blank label becomes None, order defaults to 0

    Raises:
        EntityValidationError: If any rule fails
    """
    return cast("ShiftSlotData", _validate(SHIFT_SLOT_SCHEMA, data))


def build_shift_assignment(data: dict[str, Any]) -> ShiftAssignmentData:
    """Validate a rotation assignment.

    userId, rotationId and startDate are required; endDate is optional.
    Dates accept date, datetime (UTC date is used) or ISO text.

    Raises:
        EntityValidationError: If a required field is missing or a date
            cannot be parsed
    """
    return cast("ShiftAssignmentData", _validate(SHIFT_ASSIGNMENT_SCHEMA, data))


def build_shift_rotation(data: dict[str, Any]) -> ShiftRotationData:
    """Validate a rotation with its nested slots and assignments.

    Rules:
        1. name is a non-empty string (trimmed)
        2. cycleWeeks >= 1
        3. Every slot and assignment passes its own schema

    Raises:
        EntityValidationError: If any rule fails. For nested records the
            field is the dotted path, e.g. "slots.0.dayOfWeek".

    Example:
        rotation = build_shift_rotation(
            {"id": "r1", "name": " Dishes ", "cycleWeeks": "2"}
        )
        # {"id": "r1", "name": "Dishes", "cycleWeeks": 2, "color": None,
        #  "order": 0, "slots": [], "assignments": []}
    """
    return cast("ShiftRotationData", _validate(SHIFT_ROTATION_SCHEMA, data))


def build_shifts_settings(data: dict[str, Any] | None) -> ShiftsSettings:
    """Apply defaults to shift integration settings.

    eventColor "#06b6d4", user [], useUserColors False.
    """
    return cast("ShiftsSettings", _validate(SHIFTS_SETTINGS_SCHEMA, data or {}))


# ==============================================================================
# RECURRENCE PATTERNS
# ==============================================================================


def build_recurrence_pattern(data: RecurrencePatternData) -> RecurrencePattern:
    """Turn a persisted todo recurrence dict into a RecurrencePattern.

    Accepts {type, interval, daysOfWeek?, dayOfMonth?}. The interval is never
    corrected: a non-positive value is rejected.

    Raises:
        EntityValidationError: If type is unknown or a field has the wrong
            shape
        InvalidIntervalError: If interval <= 0
    """
    pattern = _validate(RECURRENCE_PATTERN_SCHEMA, data)
    interval = pattern[const.DATA_PATTERN_INTERVAL]
    if interval <= 0:
        raise InvalidIntervalError(interval)

    pattern_type = const.RecurrenceType(pattern[const.DATA_PATTERN_TYPE])
    if pattern_type == const.RecurrenceType.DAILY:
        return DailyPattern(interval=interval)
    if pattern_type == const.RecurrenceType.WEEKLY:
        return WeeklyPattern(
            interval=interval,
            days_of_week=frozenset(pattern[const.DATA_PATTERN_DAYS_OF_WEEK]),
        )
    return MonthlyPattern(
        interval=interval,
        day_of_month=pattern[const.DATA_PATTERN_DAY_OF_MONTH],
    )
