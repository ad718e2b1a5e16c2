"""Parser for schedule expressions.

Grammar of one column (checked in this order on each comma-separated token)::

    expr   := token ("," token)*         Compound when more than one token
    token  := base "/" step               Increment
            | literal "-" literal         Range
            | "*" | "?"                   Wildcard
            | integer | name              Literal, clamped into the domain

Splits happen on the first ``/`` or ``-``, so ``10-30/5`` is an increment
over the range ``10-30``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cronplan.scheduling.errors import CronParseError
from cronplan.scheduling.parts import (
    Compound,
    FieldPart,
    Increment,
    Literal,
    PartKind,
    Range,
    Wildcard,
)

if TYPE_CHECKING:
    from cronplan.scheduling.fields import ScheduleField


# Predefined expression aliases
ALIASES: dict[str, str] = {
    "@yearly": "0 0 1 1 * *",
    "@annually": "0 0 1 1 * *",
    "@monthly": "0 0 1 * * *",
    "@weekly": "0 0 * * 0 *",
    "@daily": "0 0 * * * *",
    "@midnight": "0 0 * * * *",
    "@hourly": "0 * * * * *",
}

MIN_COLUMNS = 5
MAX_COLUMNS = 6


def resolve_alias(expression: str) -> str:
    """Resolve predefined aliases."""
    lower = expression.strip().lower()
    if lower in ALIASES:
        return ALIASES[lower]
    return expression.strip()


def split_expression(expression: str) -> list[str]:
    """Split an expression into its columns.

    Five columns are accepted as well as six; the year column then keeps
    its default.

    Raises:
        CronParseError: If the column count is wrong.
    """
    columns = resolve_alias(expression).split()
    if not MIN_COLUMNS <= len(columns) <= MAX_COLUMNS:
        raise CronParseError(
            f"Invalid number of fields: {len(columns)}. "
            f"Expected {MIN_COLUMNS} or {MAX_COLUMNS} fields.",
            expression,
        )
    return columns


def parse(text: str, field: ScheduleField, *, position: int = -1) -> FieldPart:
    """Parse the text of one column into a detached part tree.

    Args:
        text: Column text, e.g. ``"1-5/2,30"``.
        field: Field the column belongs to; supplies domain, clamping and names.
        position: Column index, reported in errors.

    Returns:
        Root of the new tree. Ids and parent links are assigned when the
        tree is adopted by a schedule.

    Raises:
        CronParseError: If a token is not recognized.
    """
    tokens = text.split(",")
    if len(tokens) > 1:
        return Compound(
            (_parse_token(token, field, text, position) for token in tokens),
            field.domain,
        )
    return _parse_token(text, field, text, position)


def _parse_token(
    token: str, field: ScheduleField, text: str, position: int
) -> FieldPart:
    if "/" in token:
        base_text, step_text = token.split("/", 1)
        base = _parse_token(base_text, field, text, position)
        step = _parse_step(step_text, field, text, position)
        return Increment(base, step, field.domain)

    if "-" in token:
        low_text, high_text = token.split("-", 1)
        low = _parse_token(low_text, field, text, position)
        high = _parse_token(high_text, field, text, position)
        if low.kind is not PartKind.LITERAL or high.kind is not PartKind.LITERAL:
            raise CronParseError(f"Invalid range: {token!r}", text, position)
        return Range(low, high, field.domain)

    if token in ("*", "?"):
        return Wildcard(field.domain)

    return Literal(field.bound(_resolve_value(token, field, text, position)), field.domain)


def _parse_step(step_text: str, field: ScheduleField, text: str, position: int) -> Literal:
    if not (step_text.isascii() and step_text.isdigit()):
        raise CronParseError(f"Invalid step: {step_text!r}", text, position)
    step = int(step_text)
    if step <= 0:
        raise CronParseError(f"Step must be positive: {step}", text, position)
    return Literal(field.bound(step), field.domain)


def _resolve_value(token: str, field: ScheduleField, text: str, position: int) -> int:
    """Resolve a value (number or name) to integer."""
    value = token.strip().upper()

    if value in field.names:
        return field.names[value]

    if not (value.isascii() and value.isdigit()):
        raise CronParseError(f"Invalid value: {token!r}", text, position)
    return int(value)
