"""Predefined schedule expressions.

Schedules are editable, so presets are kept as expression text and
``get_preset`` builds a fresh schedule on every call. Weekdays are written by
name so that every preset reads the same under both dialects.

Usage:
    >>> from cronplan.scheduling.presets import get_preset
    >>> schedule = get_preset("weekdays_9am")
    >>> schedule.to_human_text()
    'on the 1st minute of the hour at 9am from Monday to Friday'
"""

from __future__ import annotations

from cronplan.scheduling.fields import Dialect
from cronplan.scheduling.schedule import Schedule


# =============================================================================
# Standard Intervals
# =============================================================================

YEARLY = "0 0 1 1 * *"
ANNUALLY = YEARLY
MONTHLY = "0 0 1 * * *"
WEEKLY = "0 0 * * SUN *"
DAILY = "0 0 * * * *"
MIDNIGHT = DAILY
HOURLY = "0 * * * * *"
EVERY_MINUTE = "* * * * * *"


# =============================================================================
# Business Schedule Presets
# =============================================================================

WEEKDAYS_9AM = "0 9 * * MON-FRI *"
WEEKDAYS_6PM = "0 18 * * MON-FRI *"
BUSINESS_START = "0 8 * * MON-FRI *"
BUSINESS_END = "0 17 * * MON-FRI *"

# Every 15 minutes, 9 AM - 5 PM on weekdays
BUSINESS_HOURS_15MIN = "*/15 9-17 * * MON-FRI *"
BUSINESS_HOURS_HOURLY = "0 9-17 * * MON-FRI *"


# =============================================================================
# Data Pipeline Presets
# =============================================================================

EVERY_5_MIN = "*/5 * * * * *"
EVERY_15_MIN = "*/15 * * * * *"
EVERY_30_MIN = "*/30 * * * * *"
EVERY_2_HOURS = "0 */2 * * * *"
EVERY_4_HOURS = "0 */4 * * * *"
EVERY_6_HOURS = "0 */6 * * * *"
TWICE_DAILY = "0 0,12 * * * *"
THREE_TIMES_DAILY = "0 8,12,18 * * * *"


# =============================================================================
# Off-hours and Calendar Presets
# =============================================================================

WEEKENDS_NOON = "0 12 * * SAT,SUN *"
NIGHTLY_2AM = "0 2 * * * *"
NIGHTLY_3AM = "0 3 * * * *"
SUNDAY_MAINTENANCE = "0 3 * * SUN *"
FIRST_OF_MONTH = "0 6 1 * * *"
QUARTERLY = "0 0 1 JAN,APR,JUL,OCT * *"


# =============================================================================
# Preset Registry
# =============================================================================

PRESETS: dict[str, str] = {
    # Standard
    "yearly": YEARLY,
    "annually": ANNUALLY,
    "monthly": MONTHLY,
    "weekly": WEEKLY,
    "daily": DAILY,
    "midnight": MIDNIGHT,
    "hourly": HOURLY,
    "every_minute": EVERY_MINUTE,
    # Business
    "weekdays_9am": WEEKDAYS_9AM,
    "weekdays_6pm": WEEKDAYS_6PM,
    "business_start": BUSINESS_START,
    "business_end": BUSINESS_END,
    "business_hours_15min": BUSINESS_HOURS_15MIN,
    "business_hours_hourly": BUSINESS_HOURS_HOURLY,
    # Data pipeline
    "every_5_min": EVERY_5_MIN,
    "every_15_min": EVERY_15_MIN,
    "every_30_min": EVERY_30_MIN,
    "every_2_hours": EVERY_2_HOURS,
    "every_4_hours": EVERY_4_HOURS,
    "every_6_hours": EVERY_6_HOURS,
    "twice_daily": TWICE_DAILY,
    "three_times_daily": THREE_TIMES_DAILY,
    # Off-hours and calendar
    "weekends_noon": WEEKENDS_NOON,
    "nightly_2am": NIGHTLY_2AM,
    "nightly_3am": NIGHTLY_3AM,
    "sunday_maintenance": SUNDAY_MAINTENANCE,
    "first_of_month": FIRST_OF_MONTH,
    "quarterly": QUARTERLY,
}


def get_preset(name: str, dialect: Dialect | str = Dialect.UNIX) -> Schedule | None:
    """Build a schedule from a preset by name.

    Args:
        name: Preset name (case-insensitive).
        dialect: Dialect of the returned schedule.

    Returns:
        A new Schedule, or None if not found.
    """
    expression = PRESETS.get(name.lower())
    if expression is None:
        return None
    return Schedule(expression, dialect)


def list_presets() -> list[str]:
    """List all available preset names."""
    return list(PRESETS.keys())
