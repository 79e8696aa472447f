"""homecadence: recurrence and occurrence expansion for a household dashboard.

Three pure engines, no I/O:
- engines.schedule_engine: when is a recurring todo due next
- engines.rrule_engine: calendar recurrence form state <-> iCal RRULE
- engines.shift_engine: cyclic shift rotations -> calendar occurrences

Records from storage go through data_builders first. The local zone used for
day boundaries is configured with utils.dt_utils.set_default_timezone().
"""

from .data_builders import (
    EntityValidationError,
    build_recurrence_pattern,
    build_shift_assignment,
    build_shift_rotation,
    build_shift_slot,
    build_shift_user,
    build_shifts_settings,
)
from .utils.dt_utils import get_default_timezone, set_default_timezone

__all__ = [
    "EntityValidationError",
    "build_recurrence_pattern",
    "build_shift_assignment",
    "build_shift_rotation",
    "build_shift_slot",
    "build_shift_user",
    "build_shifts_settings",
    "get_default_timezone",
    "set_default_timezone",
]
