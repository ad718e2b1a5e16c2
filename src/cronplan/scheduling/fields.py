"""Schedule columns.

Each field owns the part tree of one column and knows how to test and
advance a calendar cursor against it. Cursors are plain ``datetime`` values;
every operation returns a new cursor instead of mutating a shared one.

Syntax Reference:
    Field         UNIX            QUARTZ
    ─────────────────────────────────────────────
    Minute        0-59            0-59
    Hour          0-23            0-23
    Day of Month  1-31            1-31
    Month         1-12 or JAN-DEC 1-12 or JAN-DEC
    Day of Week   0-6 (0=SUN)     1-7 (1=SUN)
    Year          construction year .. +100
"""

from __future__ import annotations

import calendar
from abc import ABC, abstractmethod
from datetime import MAXYEAR, datetime, timedelta
from enum import Enum
from typing import ClassVar, NamedTuple

from cronplan.scheduling.parts import Domain, FieldPart, Wildcard


class Dialect(str, Enum):
    """Numbering conventions for the day-of-week column."""

    UNIX = "unix"
    QUARTZ = "quartz"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, value: str | Dialect) -> Dialect:
        if isinstance(value, Dialect):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown dialect: {value!r}. Expected one of: "
                + ", ".join(d.value for d in cls)
            ) from None


class FieldRole(Enum):
    """Schedule columns, valued by their position in the expression."""

    MINUTE = 0
    HOUR = 1
    DAY_OF_MONTH = 2
    MONTH = 3
    DAY_OF_WEEK = 4
    YEAR = 5


class Advance(NamedTuple):
    """Outcome of testing a cursor against a field."""

    ok: bool
    cursor: datetime


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

WEEKDAY_NAMES = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)

YEAR_HORIZON = 100


def ordinal(value: int) -> str:
    """Format ``value`` as an English ordinal (1st, 2nd, 11th, 23rd)."""
    suffix = "th"
    if not 10 < value % 100 < 14:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(value % 10, "th")
    return f"{value}{suffix}"


def _midnight(cursor: datetime) -> datetime:
    return cursor.replace(hour=0, minute=0, second=0, microsecond=0)


# =============================================================================
# Base Field
# =============================================================================


class ScheduleField(ABC):
    """One column of a schedule.

    Attributes:
        id: Registry id, shared with the part id space of the schedule.
        domain: Inclusive bounds of the column.
        root: Current expression of the column.
    """

    role: ClassVar[FieldRole]
    name: ClassVar[str]
    quantifier: ClassVar[str]
    upper_quantifier: ClassVar[str]
    in_on: ClassVar[str] = "in "
    prefix: ClassVar[str] = "the "
    wildcard_text: ClassVar[str] = ""

    def __init__(self, field_id: int, domain: Domain) -> None:
        self.id = field_id
        self.domain = domain
        self.root: FieldPart = Wildcard(domain)

    @property
    def lower(self) -> int:
        return self.domain.lower

    @property
    def upper(self) -> int:
        return self.domain.upper

    @property
    def names(self) -> dict[str, int]:
        """Symbolic names accepted for literals."""
        return {}

    def bound(self, value: int) -> int:
        """Clamp a literal into the domain."""
        return max(self.domain.lower, min(value, self.domain.upper))

    def value_name(self, value: int) -> str:
        """Display text for a literal value."""
        return ordinal(value)

    def full_quantifier(self) -> str:
        """Trailing words after a literal, e.g. ``day of the month``."""
        return f"{self.quantifier} of {self.prefix}{self.upper_quantifier}"

    def format_between(self, low: int, high: int) -> str:
        """English phrase for the range ``low-high``."""
        phrase = f"between {self.prefix}{self.value_name(low)} and {self.value_name(high)}"
        quantifier = self.full_quantifier()
        return f"{phrase} {quantifier}" if quantifier else phrase

    @abstractmethod
    def current_value(self, cursor: datetime) -> int:
        """Calendar component of ``cursor`` in this field's numbering."""

    @abstractmethod
    def _advance_to(self, cursor: datetime, value: int) -> datetime:
        """Set the component to ``value`` and reset every finer component."""

    def _fits(self, cursor: datetime, value: int) -> bool:
        return True

    def test_or_advance(self, cursor: datetime) -> Advance:
        """Satisfy this field without leaving the current parent cycle.

        Returns:
            ``Advance(True, cursor)`` with the component moved to the first
            satisfying value (finer components reset), or
            ``Advance(False, cursor)`` with the cursor untouched when nothing
            satisfies the field before the parent cycle ends.
        """
        current = self.current_value(cursor)
        target = self.root.next_valid(current)

        if target < current or not self._fits(cursor, target):
            return Advance(False, cursor)
        if target == current:
            return Advance(True, cursor)
        return Advance(True, self._advance_to(cursor, target))

    def roll_parent_cycle(self, cursor: datetime) -> datetime:
        """Advance the next coarser unit by one, resetting this and finer units.

        Fields without a parent cycle (day of week, year) return the cursor
        unchanged.
        """
        return cursor

    def matches(self, cursor: datetime) -> bool:
        return self.root.matches(self.current_value(cursor))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id}, {self.root.to_cron()!r})"


# =============================================================================
# Concrete Fields
# =============================================================================


class MinuteField(ScheduleField):
    role = FieldRole.MINUTE
    name = "Minute"
    quantifier = "minute"
    upper_quantifier = "hour"
    in_on = "on "
    wildcard_text = "every minute"

    def value_name(self, value: int) -> str:
        # minute 0 is the 1st minute of the hour
        return ordinal(value + 1)

    def current_value(self, cursor: datetime) -> int:
        return cursor.minute

    def _advance_to(self, cursor: datetime, value: int) -> datetime:
        return cursor.replace(minute=value, second=0, microsecond=0)

    def roll_parent_cycle(self, cursor: datetime) -> datetime:
        return cursor.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


class HourField(ScheduleField):
    role = FieldRole.HOUR
    name = "Hour"
    quantifier = "hour"
    upper_quantifier = "day"
    in_on = "at "
    prefix = ""

    def value_name(self, value: int) -> str:
        if value == 0:
            return "12am"
        if value < 12:
            return f"{value}am"
        if value == 12:
            return "12pm"
        return f"{value - 12}pm"

    def full_quantifier(self) -> str:
        return ""

    def current_value(self, cursor: datetime) -> int:
        return cursor.hour

    def _advance_to(self, cursor: datetime, value: int) -> datetime:
        return cursor.replace(hour=value, minute=0, second=0, microsecond=0)

    def roll_parent_cycle(self, cursor: datetime) -> datetime:
        return _midnight(cursor) + timedelta(days=1)


class DayOfMonthField(ScheduleField):
    role = FieldRole.DAY_OF_MONTH
    name = "Day of Month"
    quantifier = "day"
    upper_quantifier = "month"
    in_on = "on "

    def current_value(self, cursor: datetime) -> int:
        return cursor.day

    def _fits(self, cursor: datetime, value: int) -> bool:
        return value <= calendar.monthrange(cursor.year, cursor.month)[1]

    def _advance_to(self, cursor: datetime, value: int) -> datetime:
        return _midnight(cursor).replace(day=value)

    def roll_parent_cycle(self, cursor: datetime) -> datetime:
        if cursor.month == 12:
            return _midnight(cursor).replace(year=cursor.year + 1, month=1, day=1)
        return _midnight(cursor).replace(month=cursor.month + 1, day=1)


class MonthField(ScheduleField):
    role = FieldRole.MONTH
    name = "Month"
    quantifier = "month"
    upper_quantifier = "year"
    prefix = ""

    _NAMES = {name[:3].upper(): i for i, name in enumerate(MONTH_NAMES, start=1)}

    @property
    def names(self) -> dict[str, int]:
        return self._NAMES

    def value_name(self, value: int) -> str:
        return MONTH_NAMES[max(0, value - 1) % 12]

    def full_quantifier(self) -> str:
        return ""

    def current_value(self, cursor: datetime) -> int:
        return cursor.month

    def _advance_to(self, cursor: datetime, value: int) -> datetime:
        return _midnight(cursor).replace(month=value, day=1)

    def roll_parent_cycle(self, cursor: datetime) -> datetime:
        return _midnight(cursor).replace(year=cursor.year + 1, month=1, day=1)


class DayOfWeekField(ScheduleField):
    """Day of week, numbered from Sunday = 0 (UNIX) or Sunday = 1 (QUARTZ).

    Advancing moves the cursor forward by whole days. Crossing into another
    month is reported as a failure, but the advanced cursor is still handed
    back: the resolver restarts its scan from it without rolling anything.
    """

    role = FieldRole.DAY_OF_WEEK
    name = "Day of Week"
    quantifier = "day"
    upper_quantifier = "week"
    in_on = "on "
    prefix = "a "

    def __init__(self, field_id: int, dialect: Dialect) -> None:
        self.offset = 1 if dialect is Dialect.QUARTZ else 0
        super().__init__(field_id, Domain(self.offset, 6 + self.offset))
        self._names = {
            name[:3].upper(): i + self.offset for i, name in enumerate(WEEKDAY_NAMES)
        }

    @property
    def names(self) -> dict[str, int]:
        return self._names

    def value_name(self, value: int) -> str:
        return WEEKDAY_NAMES[(value - self.offset) % 7]

    def full_quantifier(self) -> str:
        return ""

    def format_between(self, low: int, high: int) -> str:
        return f"from {self.value_name(low)} to {self.value_name(high)}"

    def current_value(self, cursor: datetime) -> int:
        # datetime.weekday() counts from Monday = 0
        return (cursor.weekday() + 1) % 7 + self.offset

    def _advance_to(self, cursor: datetime, value: int) -> datetime:
        days = (value - self.current_value(cursor)) % 7
        return _midnight(cursor) + timedelta(days=days)

    def test_or_advance(self, cursor: datetime) -> Advance:
        current = self.current_value(cursor)
        target = self.root.next_valid(current)

        if target == current:
            return Advance(True, cursor)

        if target > current:
            days = target - current
        else:
            days = 7 - current + abs(target)
        moved = _midnight(cursor) + timedelta(days=days)
        return Advance((moved.year, moved.month) == (cursor.year, cursor.month), moved)


class YearField(ScheduleField):
    """Year column; its domain spans the construction year plus the horizon.

    Literals are only clamped below at zero so that a year already in the
    past stays in the expression and resolves to no trigger at all.
    """

    role = FieldRole.YEAR
    name = "Year"
    quantifier = "year"
    upper_quantifier = "year"
    prefix = ""

    def __init__(self, field_id: int, construction_year: int, horizon: int = YEAR_HORIZON) -> None:
        super().__init__(field_id, Domain(construction_year, construction_year + horizon))

    def bound(self, value: int) -> int:
        return max(value, 0)

    def value_name(self, value: int) -> str:
        return str(value)

    def full_quantifier(self) -> str:
        return ""

    def current_value(self, cursor: datetime) -> int:
        return cursor.year

    def _fits(self, cursor: datetime, value: int) -> bool:
        return value <= MAXYEAR

    def _advance_to(self, cursor: datetime, value: int) -> datetime:
        return _midnight(cursor).replace(year=value, month=1, day=1)


FIELD_CLASSES: dict[FieldRole, type[ScheduleField]] = {
    FieldRole.MINUTE: MinuteField,
    FieldRole.HOUR: HourField,
    FieldRole.DAY_OF_MONTH: DayOfMonthField,
    FieldRole.MONTH: MonthField,
    FieldRole.DAY_OF_WEEK: DayOfWeekField,
    FieldRole.YEAR: YearField,
}


def create_fields(
    dialect: Dialect,
    construction_year: int,
    horizon: int = YEAR_HORIZON,
) -> list[ScheduleField]:
    """Create the six fields in column order with ids 1-6."""
    return [
        MinuteField(1, Domain(0, 59)),
        HourField(2, Domain(0, 23)),
        DayOfMonthField(3, Domain(1, 31)),
        MonthField(4, Domain(1, 12)),
        DayOfWeekField(5, dialect),
        YearField(6, construction_year, horizon),
    ]
