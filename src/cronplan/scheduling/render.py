"""Text projections of a schedule.

Two renderings are provided:

* canonical cron text, e.g. ``"0 9 * * 1-5 *"``
* English text, e.g. ``"on the 1st minute of the hour at 9am on a Monday"``

Both are computed from the live part trees on every call and have no effect
on evaluation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cronplan.scheduling.fields import Dialect, FieldRole, ScheduleField, ordinal
from cronplan.scheduling.parts import Compound, FieldPart, Increment, PartKind, Range

if TYPE_CHECKING:
    from cronplan.scheduling.schedule import Schedule


# =============================================================================
# Canonical Text
# =============================================================================


def field_to_cron(schedule: Schedule, field: ScheduleField) -> str:
    """Canonical text of one column.

    Quartz leaves one of the two day columns unspecified with ``?``: the day
    of week when it is a wildcard, otherwise the day of month.
    """
    root = field.root
    if root.is_wildcard and schedule.dialect is Dialect.QUARTZ:
        if field.role is FieldRole.DAY_OF_WEEK:
            return "?"
        if field.role is FieldRole.DAY_OF_MONTH and not schedule.field(
            FieldRole.DAY_OF_WEEK
        ).root.is_wildcard:
            return "?"
    return root.to_cron()


def to_canonical_text(schedule: Schedule) -> str:
    """Reconstruct cron text with the six columns joined by single spaces."""
    return " ".join(field_to_cron(schedule, field) for field in schedule.fields)


# =============================================================================
# Human Text
# =============================================================================


def _join(phrases: list[str]) -> str:
    if len(phrases) <= 1:
        return "".join(phrases)
    return ", ".join(phrases[:-1]) + " and " + phrases[-1]


def _literal_phrase(field: ScheduleField, value: int) -> str:
    phrase = f"{field.in_on}{field.prefix}{field.value_name(value)}"
    quantifier = field.full_quantifier()
    return f"{phrase} {quantifier}" if quantifier else phrase


def _increment_phrase(field: ScheduleField, part: Increment) -> str:
    step = part.step.value
    every = f"every {field.quantifier}" if step == 1 else f"every {ordinal(step)} {field.quantifier}"

    base = part.base
    if base.kind is PartKind.WILDCARD:
        return every
    if base.kind is PartKind.LITERAL:
        return f"{every} starting {_literal_phrase(field, base.value)}"
    return f"{every} {describe_part(field, base)}"


def describe_part(field: ScheduleField, part: FieldPart) -> str:
    """English phrase for a part of ``field``."""
    if part.kind is PartKind.WILDCARD:
        return field.wildcard_text
    if part.kind is PartKind.LITERAL:
        return _literal_phrase(field, part.value)
    if isinstance(part, Range):
        return field.format_between(part.low.value, part.high.value)
    if isinstance(part, Increment):
        return _increment_phrase(field, part)
    if isinstance(part, Compound):
        return _join([p for p in (describe_part(field, m) for m in part.members) if p])
    raise TypeError(f"Unsupported part: {part!r}")


def describe_field(field: ScheduleField) -> str:
    return describe_part(field, field.root)


def to_human_text(schedule: Schedule, newlines: bool = False) -> str:
    """English description, one phrase per restricted column.

    Args:
        schedule: Schedule to describe.
        newlines: Put each column phrase on its own line.
    """
    separator = "\n" if newlines else " "
    phrases = (describe_field(field).strip() for field in schedule.fields)
    return separator.join(p for p in phrases if p)
