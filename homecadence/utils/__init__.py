# File: utils/__init__.py
"""Pure Python utilities for homecadence.

Submodules:
    - dt_utils: Date/time parsing, timezone configuration, iCal instants

Usage:
    from . import dt_utils
    from .dt_utils import weekday_index
"""

from . import dt_utils

__all__ = ["dt_utils"]
