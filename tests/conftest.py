"""Shared fixtures for cronplan tests."""

import pytest

from cronplan.scheduling import Dialect, Schedule

CONSTRUCTION_YEAR = 2024


@pytest.fixture
def make_schedule():
    """Build schedules with a fixed construction year."""

    def _make(expression=None, dialect=Dialect.UNIX, **kwargs):
        kwargs.setdefault("construction_year", CONSTRUCTION_YEAR)
        return Schedule(expression, dialect, **kwargs)

    return _make
