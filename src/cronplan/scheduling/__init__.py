"""Schedule expression engine.

Parses six-column schedule expressions into per-column expression trees,
finds the next trigger instant, renders the trees back to cron text or
English, and exposes an id-addressed edit API over the trees.

Syntax Reference:
    Field         UNIX            QUARTZ          Special Characters
    ──────────────────────────────────────────────────────────────────
    Minute        0-59            0-59            * / , -
    Hour          0-23            0-23            * / , -
    Day of Month  1-31            1-31            * / , - ?
    Month         1-12 or JAN-DEC 1-12 or JAN-DEC * / , -
    Day of Week   0-6 or SUN-SAT  1-7 or SUN-SAT  * / , - ?
    Year          this year +100  this year +100  * / , -

    The year column may be omitted.

Usage:
    >>> from cronplan.scheduling import Schedule
    >>>
    >>> schedule = Schedule("0 9 * * MON-FRI")
    >>> next_run = schedule.next_valid()
    >>> next_5 = schedule.next_n(5)
    >>>
    >>> # Edit by id
    >>> hour = schedule.field(FieldRole.HOUR)
    >>> schedule.add_child(hour.id, "17")
    >>> str(schedule)
    '0 9,17 * * 1-5 *'
"""

from cronplan.scheduling.errors import (
    CronParseError,
    ExclusiveFieldError,
    ParseError,
    ScheduleEditError,
    UnknownPartError,
)
from cronplan.scheduling.fields import (
    Advance,
    DayOfMonthField,
    DayOfWeekField,
    Dialect,
    FieldRole,
    HourField,
    MinuteField,
    MonthField,
    ScheduleField,
    YearField,
)
from cronplan.scheduling.parser import ALIASES, parse, split_expression
from cronplan.scheduling.parts import (
    Compound,
    Domain,
    FieldPart,
    Increment,
    Literal,
    PartKind,
    Range,
    Wildcard,
)
from cronplan.scheduling.presets import PRESETS, get_preset, list_presets
from cronplan.scheduling.schedule import (
    PartInfo,
    Schedule,
    ScheduleIterator,
    is_valid_expression,
    validate_expression,
)

__all__ = [
    # Errors
    "CronParseError",
    "ParseError",
    "ScheduleEditError",
    "UnknownPartError",
    "ExclusiveFieldError",
    # Parts
    "Domain",
    "PartKind",
    "FieldPart",
    "Wildcard",
    "Literal",
    "Range",
    "Increment",
    "Compound",
    # Fields
    "Advance",
    "Dialect",
    "FieldRole",
    "ScheduleField",
    "MinuteField",
    "HourField",
    "DayOfMonthField",
    "MonthField",
    "DayOfWeekField",
    "YearField",
    # Parser
    "ALIASES",
    "parse",
    "split_expression",
    # Schedule
    "Schedule",
    "ScheduleIterator",
    "PartInfo",
    "validate_expression",
    "is_valid_expression",
    # Presets
    "PRESETS",
    "get_preset",
    "list_presets",
]
