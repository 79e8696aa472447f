"""Test helpers for homecadence.

Re-exports the record builders for convenient imports:

    from tests.helpers import make_rotation, make_slot, make_utc_dt

See builders.py for details.
"""

from tests.helpers.builders import (
    make_assignment,
    make_rotation,
    make_slot,
    make_user,
    make_utc_dt,
)

__all__ = [
    "make_assignment",
    "make_rotation",
    "make_slot",
    "make_user",
    "make_utc_dt",
]
