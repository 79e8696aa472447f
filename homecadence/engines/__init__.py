"""Engine modules for homecadence.

Contains the recurrence computation engines:
- schedule_engine: Next due date for recurring todos
- rrule_engine: Recurrence form state <-> iCal RRULE, RRULE text codec,
  recurring event expansion
- shift_engine: Shift rotations -> dated calendar occurrences
"""

# Use relative imports within package to avoid mypy module resolution issues
from .rrule_engine import (
    NthWeekday,
    RecurrenceParseError,
    RecurrenceState,
    YearlyNthWeekday,
    adjust_start_date_for_recurrence_days,
    default_recurrence_state,
    expand_recurring_events,
    format_rrule_string,
    generate_recurrence_rule,
    get_default_recurrence_until,
    parse_recurrence_from_ical,
    parse_recurrence_rule,
    parse_rrule_string,
    reset_recurrence_fields,
)
from .schedule_engine import (
    DailyPattern,
    InvalidIntervalError,
    MonthlyPattern,
    RecurrencePattern,
    WeeklyPattern,
    add_months,
    advance_past_date,
    calculate_next_due_date,
    set_day,
)
from .shift_engine import (
    ShiftOccurrence,
    default_shift_window,
    expand_shifts_to_occurrences,
    slot_times_to_utc,
)

__all__ = [
    "DailyPattern",
    "InvalidIntervalError",
    "MonthlyPattern",
    "NthWeekday",
    "RecurrenceParseError",
    "RecurrencePattern",
    "RecurrenceState",
    "ShiftOccurrence",
    "WeeklyPattern",
    "YearlyNthWeekday",
    "add_months",
    "adjust_start_date_for_recurrence_days",
    "advance_past_date",
    "calculate_next_due_date",
    "default_recurrence_state",
    "default_shift_window",
    "expand_recurring_events",
    "expand_shifts_to_occurrences",
    "format_rrule_string",
    "generate_recurrence_rule",
    "get_default_recurrence_until",
    "parse_recurrence_from_ical",
    "parse_recurrence_rule",
    "parse_rrule_string",
    "reset_recurrence_fields",
    "set_day",
    "slot_times_to_utc",
]
