"""Next-trigger search.

The resolver walks the fields from coarse to fine, letting each one move a
calendar cursor forward until a full pass leaves the cursor where it is.
Search order is Year, Day of Week, Month, Day of Month, Hour, Minute.

When a field cannot be satisfied before its parent cycle ends, the cursor is
rolled into the next parent cycle and the scan restarts from the year. The
cursor only ever moves forward and the year is capped, so the search always
terminates.
"""

from __future__ import annotations

import logging
from datetime import MAXYEAR, datetime, timedelta
from typing import TYPE_CHECKING

from cronplan.scheduling.fields import YEAR_HORIZON, FieldRole

if TYPE_CHECKING:
    from cronplan.scheduling.schedule import Schedule

logger = logging.getLogger(__name__)

SEARCH_ORDER = (
    FieldRole.YEAR,
    FieldRole.DAY_OF_WEEK,
    FieldRole.MONTH,
    FieldRole.DAY_OF_MONTH,
    FieldRole.HOUR,
    FieldRole.MINUTE,
)


def round_up_to_minute(moment: datetime) -> datetime:
    """Round up to the next whole minute (unchanged when already whole)."""
    if moment.second == 0 and moment.microsecond == 0:
        return moment
    return moment.replace(second=0, microsecond=0) + timedelta(minutes=1)


def next_valid(
    schedule: Schedule,
    reference: datetime,
    *,
    horizon: int = YEAR_HORIZON,
    log: logging.Logger | None = None,
) -> datetime | None:
    """Find the earliest instant at or after ``reference`` that satisfies
    every field of ``schedule``.

    Args:
        schedule: Schedule to evaluate.
        reference: Start of the search. Naive values are wall-clock time;
            aware values keep their ``tzinfo``.
        horizon: Years past ``reference`` to search before giving up.
        log: Logger to use instead of the module logger.

    Returns:
        The trigger instant, or None when the schedule never fires again.
    """
    log = log or logger
    year_field = schedule.field(FieldRole.YEAR)
    limit = min(max(year_field.upper, reference.year + horizon), MAXYEAR - 1)

    try:
        cursor = round_up_to_minute(reference)
        if cursor.year > limit:
            log.debug("Reference %s is past the search limit %d", reference, limit)
            return None
        passes = 0
        while True:
            passes += 1
            cursor, changed, exhausted = _scan(schedule, cursor)
            if exhausted or cursor.year > limit:
                log.debug(
                    "No trigger for %r up to year %d (%d passes)",
                    schedule.to_cron(), limit, passes,
                )
                return None
            if not changed:
                log.debug("Resolved %r after %d passes: %s", schedule.to_cron(), passes, cursor)
                return cursor
    except (OverflowError, ValueError):
        # datetime cannot represent years past MAXYEAR
        log.debug("Search for %r ran past the calendar", schedule.to_cron())
        return None


def _scan(schedule: Schedule, cursor: datetime) -> tuple[datetime, bool, bool]:
    """Run one pass over the fields.

    Returns:
        ``(cursor, changed, exhausted)``. A pass stops early after a failure
        so that the next pass restarts from the year.
    """
    changed = False
    for role in SEARCH_ORDER:
        field = schedule.field(role)
        ok, moved = field.test_or_advance(cursor)
        if ok:
            changed = changed or moved != cursor
            cursor = moved
            continue

        if role is FieldRole.YEAR:
            return cursor, changed, True
        if role is FieldRole.DAY_OF_WEEK:
            # already moved forward by whole days
            return moved, True, False
        return field.roll_parent_cycle(cursor), True, False
    return cursor, changed, False
