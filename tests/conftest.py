"""Shared fixtures for homecadence tests."""

from __future__ import annotations

from collections.abc import Iterator
from zoneinfo import ZoneInfo

import pytest

from homecadence.utils import dt_utils


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Iterator[None]:
    """Run every test with UTC as the local zone and restore it afterwards."""
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(ZoneInfo("UTC"))


@pytest.fixture
def new_york_tz() -> ZoneInfo:
    """Return a local timezone west of UTC (with DST)."""
    return ZoneInfo("America/New_York")
