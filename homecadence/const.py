# File: const.py
"""Constants for the homecadence recurrence engine.

This file centralizes the weekday table, recurrence vocabulary, record keys,
defaults, and safety limits shared by the schedule, RRULE, and shift engines.
"""

from enum import StrEnum
import logging
from typing import Final

# Logger
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Weekdays
# ------------------------------------------------------------------------------------------------
# WeekdayIndex is 0-6, Sunday first, in iCal day-code order. Every engine
# indexes this one table; never re-declare it.
DAY_CODES: Final[tuple[str, ...]] = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")

SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6

DAYS_PER_WEEK = 7
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * 60


# ------------------------------------------------------------------------------------------------
# Recurrence Vocabulary
# ------------------------------------------------------------------------------------------------


class RecurrenceType(StrEnum):
    """Cadence kinds understood by the engines."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecurrenceEndType(StrEnum):
    """How a calendar recurrence terminates."""

    NEVER = "never"
    COUNT = "count"
    UNTIL = "until"


class RepeatMode(StrEnum):
    """Monthly/yearly repeat mode: fixed day of month or nth weekday."""

    DAY_OF_MONTH = "day"
    NTH_WEEKDAY = "weekday"


# iCal component type that carries a recurrence rule
ICAL_TYPE_VEVENT = "VEVENT"

# Nth-weekday BYDAY entry, e.g. "2MO" or "-1FR"
NTH_WEEKDAY_PATTERN = r"^(-?\d+)([A-Z]{2})$"

# Slot time of day, 24-hour "HH:MM"
SLOT_TIME_PATTERN = r"^(\d{1,2}):(\d{2})$"

# iCal UTC instant, RFC 5545 basic format
ICAL_UTC_FORMAT = "%Y%m%dT%H%M%SZ"

# RRULE wire keys
RRULE_FREQ = "freq"
RRULE_INTERVAL = "interval"
RRULE_BYDAY = "byday"
RRULE_BYMONTH = "bymonth"
RRULE_COUNT = "count"
RRULE_UNTIL = "until"

# Serialization order for RRULE strings
RRULE_PART_ORDER: Final[tuple[str, ...]] = (
    RRULE_FREQ,
    RRULE_INTERVAL,
    RRULE_BYDAY,
    RRULE_BYMONTH,
    RRULE_COUNT,
    RRULE_UNTIL,
)
RRULE_INTEGER_PARTS: Final[frozenset[str]] = frozenset(
    {RRULE_INTERVAL, RRULE_COUNT}
)
RRULE_PREFIX = "RRULE:"


# ------------------------------------------------------------------------------------------------
# Recurrence Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_RECURRENCE_INTERVAL = 1
DEFAULT_RECURRENCE_COUNT = 10
DEFAULT_RECURRENCE_TYPE = RecurrenceType.WEEKLY
DEFAULT_RECURRENCE_END_TYPE = RecurrenceEndType.NEVER
DEFAULT_NTH_WEEK = 1
DEFAULT_NTH_DAY = MONDAY
DEFAULT_NTH_MONTH = 0

# Default "until" offsets per cadence, measured from the event start
DEFAULT_UNTIL_DAYS_DAILY = 6
DEFAULT_UNTIL_WEEKS_WEEKLY = 3
DEFAULT_UNTIL_MONTHS_MONTHLY = 5
DEFAULT_UNTIL_YEARS_YEARLY = 2

# End of day used when turning an "until" date into an instant
END_OF_DAY_HOUR = 23
END_OF_DAY_MINUTE = 59
END_OF_DAY_SECOND = 59
END_OF_DAY_MICROSECOND = 999000

# Safety limit for expanding RRULE-backed events
MAX_RECURRENCE_INSTANCES = 1000


# ------------------------------------------------------------------------------------------------
# Recurrence Pattern Keys (persisted todo pattern JSON)
# ------------------------------------------------------------------------------------------------
DATA_PATTERN_TYPE = "type"
DATA_PATTERN_INTERVAL = "interval"
DATA_PATTERN_DAYS_OF_WEEK = "daysOfWeek"
DATA_PATTERN_DAY_OF_MONTH = "dayOfMonth"

MIN_DAY_OF_MONTH = 1
MAX_DAY_OF_MONTH = 31

# Recurrence patterns a todo can carry (no yearly)
PATTERN_TYPE_OPTIONS: Final[tuple[str, ...]] = (
    RecurrenceType.DAILY,
    RecurrenceType.WEEKLY,
    RecurrenceType.MONTHLY,
)


# ------------------------------------------------------------------------------------------------
# Shift Record Keys
# ------------------------------------------------------------------------------------------------
DATA_ROTATION_ID = "id"
DATA_ROTATION_INTEGRATION_ID = "integrationId"
DATA_ROTATION_NAME = "name"
DATA_ROTATION_CYCLE_WEEKS = "cycleWeeks"
DATA_ROTATION_COLOR = "color"
DATA_ROTATION_ORDER = "order"
DATA_ROTATION_SLOTS = "slots"
DATA_ROTATION_ASSIGNMENTS = "assignments"

DATA_SLOT_ID = "id"
DATA_SLOT_WEEK_INDEX = "weekIndex"
DATA_SLOT_DAY_OF_WEEK = "dayOfWeek"
DATA_SLOT_START_TIME = "startTime"
DATA_SLOT_END_TIME = "endTime"
DATA_SLOT_LABEL = "label"
DATA_SLOT_ORDER = "order"

DATA_ASSIGNMENT_ID = "id"
DATA_ASSIGNMENT_USER_ID = "userId"
DATA_ASSIGNMENT_ROTATION_ID = "rotationId"
DATA_ASSIGNMENT_START_DATE = "startDate"
DATA_ASSIGNMENT_END_DATE = "endDate"
DATA_ASSIGNMENT_USER = "user"

DATA_USER_ID = "id"
DATA_USER_NAME = "name"
DATA_USER_AVATAR = "avatar"
DATA_USER_COLOR = "color"

# Shifts integration settings
CONF_SHIFTS_EVENT_COLOR = "eventColor"
CONF_SHIFTS_USER_IDS = "user"
CONF_SHIFTS_USE_USER_COLORS = "useUserColors"


# ------------------------------------------------------------------------------------------------
# Shift Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_SHIFT_EVENT_COLOR = "#06b6d4"
DEFAULT_SHIFT_USE_USER_COLORS = False
DEFAULT_SHIFT_ORDER = 0

# Expansion window relative to "now"
SHIFT_WINDOW_YEARS_BACK = 1
SHIFT_WINDOW_YEARS_FORWARD = 2

# Occurrence id prefix: shift-{assignmentId}-{slotId}-{epochMillis}
SHIFT_OCCURRENCE_ID_PREFIX = "shift"
