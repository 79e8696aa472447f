# File: utils/dt_utils.py
"""Date and time utilities for homecadence.

Pure Python date/time functions shared by every engine. Nothing here reads
ambient state other than the configured default timezone and, where a
caller omits a reference, the system clock.

Uses standard library datetime/zoneinfo plus dateutil for iCal instants.

Functions:
    - set_default_timezone / get_default_timezone: Local zone configuration
    - dt_today_local: Get today's date in local timezone
    - dt_now_local: Current local datetime (aware)
    - as_utc / as_local: Timezone conversion with naive-input policy
    - start_of_local_day: Local midnight for a datetime
    - weekday_index: Sunday-first weekday (0=Sunday .. 6=Saturday)
    - dt_parse_date: Parse date strings
    - dt_to_utc_date: Normalize date/datetime/string to a UTC calendar date
    - parse_time_to_minutes: Parse "HH:MM" into minutes since midnight
    - format_ical_utc / parse_ical_utc: iCal UTC instant codec
"""

from __future__ import annotations

from datetime import UTC, date, datetime
import logging
import re
from zoneinfo import ZoneInfo

# Third-party date utilities
from dateutil.parser import isoparse

from .. import const

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

_SLOT_TIME_RE = re.compile(const.SLOT_TIME_PATTERN)


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    The default zone defines the day boundary used for "today" and for
    due-date normalization.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone.

    Returns:
        The configured default timezone (ZoneInfo object)
    """
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Example:
        datetime.date(2025, 4, 7)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware)."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Naive datetimes are read as wall-clock time in DEFAULT_TIME_ZONE.

    Args:
        dt_obj: Datetime object (aware or naive)

    Returns:
        Datetime in UTC timezone
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Naive datetimes are read as wall-clock time in the local zone, so they
    come back with the same fields and the zone attached.

    Args:
        dt_obj: Datetime object (aware or naive)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=tz_info)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Get the start of day (00:00:00) for a datetime in local timezone.

    Args:
        dt_obj: Datetime object (can be in any timezone)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime at 00:00:00 in local timezone (timezone-aware)
    """
    local_dt = as_local(dt_obj, tz)
    return local_dt.replace(hour=0, minute=0, second=0, microsecond=0)


def weekday_index(value: date | datetime) -> int:
    """Return the Sunday-first weekday index (0=Sunday .. 6=Saturday).

    Matches const.DAY_CODES ordering. Python's weekday() is Monday-first,
    so never use it directly for WeekdayIndex arithmetic.
    """
    return value.isoweekday() % const.DAYS_PER_WEEK


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025-04-07T10:00:00+00:00" (ISO datetime, date part in UTC)
    - "04/07/2025" (US format)
    - "2025/04/07"

    Args:
        date_str: Date string to parse, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        return as_utc(datetime.fromisoformat(date_str)).date()
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    _LOGGER.debug("Could not parse date string %r", date_str)
    return None


def dt_to_utc_date(value: str | date | datetime | None) -> date | None:
    """Normalize a date-like value to a UTC calendar date.

    Datetimes are converted to UTC first (naive ones are read in the
    default zone), plain dates pass through, strings go via dt_parse_date.

    Example:
        datetime(2025, 1, 6, 23, 30, tzinfo=ZoneInfo("America/New_York"))
        → datetime.date(2025, 1, 7)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value
    return dt_parse_date(value)


def parse_time_to_minutes(time_str: str | None) -> int | None:
    """Parse an "HH:MM" slot time into minutes since midnight.

    Hours are not range-checked: "24:00" is the end-of-day sentinel and
    larger values roll into the next day when added to a date.

    Args:
        time_str: Time text such as "09:30" or "24:00"

    Returns:
        Minutes since midnight, or None if the text is not HH:MM.
    """
    if not isinstance(time_str, str):
        return None
    match = _SLOT_TIME_RE.match(time_str)
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    return hours * const.MINUTES_PER_HOUR + minutes


# ==============================================================================
# iCal Instants
# ==============================================================================


def format_ical_utc(dt_obj: datetime) -> str:
    """Format a datetime as an iCal UTC instant ("20251231T235959Z").

    Sub-second precision is dropped, as the iCal format has none.
    """
    return as_utc(dt_obj).strftime(const.ICAL_UTC_FORMAT)


def parse_ical_utc(value: str) -> datetime:
    """Parse an iCal instant string into an aware UTC datetime.

    Accepts the basic form ("20251231T235959Z"), date-only values
    ("20251231") and extended ISO text. Values without an offset are UTC.

    Raises:
        ValueError: If the text is not a valid instant.
        TypeError: If value is not a string.
    """
    if not isinstance(value, str):
        raise TypeError(f"iCal instant must be a string, got {type(value).__name__}")
    parsed = isoparse(value.strip())
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
