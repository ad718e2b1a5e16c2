"""Schedule: six fields, a part registry and an id-addressed edit API.

Example:
    >>> schedule = Schedule("0 9 * * MON-FRI")
    >>> schedule.next_valid(datetime(2024, 1, 13, 12, 0))
    datetime.datetime(2024, 1, 15, 9, 0)
    >>> schedule.to_human_text()
    'on the 1st minute of the hour at 9am from Monday to Friday'

Every part of every field tree is registered under an integer id so that an
editor can address it. Ids come from a counter owned by the schedule; the
six fields take ids 1-6 and parts are numbered from 7 upward. A part keeps
its id for as long as it stays in a tree, and retired ids are never reused.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterator

from cronplan.scheduling import render, resolver
from cronplan.scheduling.errors import (
    CronParseError,
    ExclusiveFieldError,
    UnknownPartError,
)
from cronplan.scheduling.fields import (
    YEAR_HORIZON,
    Dialect,
    FieldRole,
    ScheduleField,
    create_fields,
)
from cronplan.scheduling.parser import parse, split_expression
from cronplan.scheduling.parts import (
    Compound,
    FieldPart,
    Increment,
    PartKind,
    Range,
    Wildcard,
)

# Day of month and day of week may not both be restricted through edits.
_EXCLUSIVE = {
    FieldRole.DAY_OF_MONTH: FieldRole.DAY_OF_WEEK,
    FieldRole.DAY_OF_WEEK: FieldRole.DAY_OF_MONTH,
}


@dataclass(frozen=True)
class PartInfo:
    """Structural metadata of a registered part, for editors."""

    id: int
    kind: PartKind
    field_id: int
    field_name: str
    lower: int
    upper: int
    value: int
    text: str
    description: str
    parent_id: int | None
    parent_kind: str | None
    relation: str | None
    in_on: str
    prefix: str
    quantifier: str
    upper_quantifier: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "field_id": self.field_id,
            "field_name": self.field_name,
            "lower": self.lower,
            "upper": self.upper,
            "value": self.value,
            "text": self.text,
            "description": self.description,
            "parent_id": self.parent_id,
            "parent_kind": self.parent_kind,
            "relation": self.relation,
        }


# =============================================================================
# Schedule
# =============================================================================


class Schedule:
    """A parsed six-column schedule.

    Args:
        expression: Cron text with five or six columns, or an alias such as
            ``@daily``. When omitted every column is a wildcard.
        dialect: Day-of-week numbering, ``unix`` (0=SUN) or ``quartz`` (1=SUN).
        construction_year: First year of the year domain (default: this year).
        year_horizon: Years searched past the reference time before a
            schedule is reported as never firing.
        logger: Logger used for resolver and edit notices.

    Raises:
        CronParseError: If the expression is malformed.

    Not safe for concurrent use: callers must serialize edits and evaluation.
    """

    def __init__(
        self,
        expression: str | None = None,
        dialect: Dialect | str = Dialect.UNIX,
        *,
        construction_year: int | None = None,
        year_horizon: int = YEAR_HORIZON,
        logger: logging.Logger | None = None,
    ) -> None:
        self.dialect = Dialect.from_string(dialect)
        self.year_horizon = year_horizon
        self._logger = logger if logger is not None else logging.getLogger(__name__)

        if construction_year is None:
            construction_year = datetime.now().year
        self._fields = create_fields(self.dialect, construction_year, year_horizon)
        self._field_ids = {field.id: field for field in self._fields}
        self._registry: dict[int, FieldPart] = {}
        self._next_id = len(self._fields) + 1

        if expression is not None:
            roots = [
                parse(text, field, position=i)
                for i, (text, field) in enumerate(
                    zip(split_expression(expression), self._fields)
                )
            ]
            for field, root in zip(self._fields, roots):
                field.root = root

        for field in self._fields:
            self._adopt(field.root, field.id)

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    @property
    def fields(self) -> tuple[ScheduleField, ...]:
        """Fields in column order."""
        return tuple(self._fields)

    @property
    def expression(self) -> str:
        """Canonical text of the live trees."""
        return self.to_cron()

    @property
    def parts(self) -> list[FieldPart]:
        """All live parts, ordered by id."""
        return [self._registry[i] for i in sorted(self._registry)]

    def field(self, key: FieldRole | int) -> ScheduleField:
        """Get a field by role or by id."""
        if isinstance(key, FieldRole):
            return self._fields[key.value]
        try:
            return self._field_ids[key]
        except KeyError:
            raise UnknownPartError(key) from None

    def part(self, part_id: int) -> FieldPart:
        """Get a live part by id.

        Raises:
            UnknownPartError: If no live part has this id.
        """
        try:
            return self._registry[part_id]
        except KeyError:
            raise UnknownPartError(part_id) from None

    def field_of(self, part: FieldPart) -> ScheduleField:
        """Field owning a live part."""
        parent_id = part.parent
        while parent_id not in self._field_ids:
            if parent_id is None:
                raise UnknownPartError(part.id)
            parent_id = self.part(parent_id).parent
        return self._field_ids[parent_id]

    def _parent_of(self, part: FieldPart) -> FieldPart | ScheduleField:
        if part.parent in self._field_ids:
            return self._field_ids[part.parent]
        return self.part(part.parent)

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def next_valid(self, reference: datetime | None = None) -> datetime | None:
        """Earliest trigger at or after ``reference`` (default: now).

        Returns:
            The trigger instant, or None if the schedule never fires again.
        """
        if reference is None:
            reference = datetime.now()
        return resolver.next_valid(
            self, reference, horizon=self.year_horizon, log=self._logger
        )

    def next_n(self, n: int, after: datetime | None = None) -> list[datetime]:
        """Get the next ``n`` triggers.

        Args:
            n: Number of triggers to find.
            after: Start of the search (default: now).

        Returns:
            Up to ``n`` trigger instants, fewer when the schedule runs out.
        """
        return list(self.iter(after, limit=n))

    def iter(
        self,
        after: datetime | None = None,
        limit: int | None = None,
    ) -> ScheduleIterator:
        """Create an iterator over trigger instants."""
        return ScheduleIterator(self, after, limit)

    def matches(self, dt: datetime) -> bool:
        """Check whether ``dt`` (seconds ignored) satisfies every field."""
        return all(field.matches(dt) for field in self._fields)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def to_cron(self) -> str:
        return render.to_canonical_text(self)

    to_canonical_text = to_cron

    def to_human_text(self, newlines: bool = False) -> str:
        return render.to_human_text(self, newlines)

    def structure(self) -> tuple[Any, ...]:
        """Id-free shape of all six trees, for structural comparison."""
        return tuple(field.root.structure() for field in self._fields)

    def __str__(self) -> str:
        return self.to_cron()

    def __repr__(self) -> str:
        return f"Schedule({self.to_cron()!r}, dialect={self.dialect.value!r})"

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    def _adopt(self, part: FieldPart, parent_id: int) -> None:
        """Register ``part`` and its descendants, linking them to ``parent_id``.

        Parts already registered keep their ids.
        """
        if self._registry.get(part.id) is not part:
            part.id = self._next_id
            self._next_id += 1
            self._registry[part.id] = part
        part.parent = parent_id
        for child in part.children():
            self._adopt(child, part.id)

    def _retire(self, part: FieldPart) -> None:
        for node in part.walk():
            if self._registry.get(node.id) is node:
                del self._registry[node.id]
            node.parent = None

    def _set_root(self, field: ScheduleField, root: FieldPart) -> None:
        field.root = root
        self._adopt(root, field.id)

    def _check_exclusive(self, field: ScheduleField, result_is_wildcard: bool) -> None:
        if result_is_wildcard:
            return
        reason = self.add_blocked_reason(field.id)
        if reason is not None:
            other = self.field(_EXCLUSIVE[field.role])
            raise ExclusiveFieldError(field.name, other.name)

    def _resolve_target(self, target_id: int) -> tuple[ScheduleField, FieldPart]:
        if target_id in self._field_ids:
            field = self._field_ids[target_id]
            return field, field.root
        part = self.part(target_id)
        return self.field_of(part), part

    # -------------------------------------------------------------------------
    # Edit API
    # -------------------------------------------------------------------------

    def add_blocked_reason(self, field_id: int) -> str | None:
        """Explain why a field may not be restricted right now, if it may not."""
        field = self.field(field_id)
        other_role = _EXCLUSIVE.get(field.role)
        if other_role is None:
            return None
        other = self.field(other_role)
        if other.root.is_wildcard:
            return None
        return f"{field.name} cannot be set while a {other.name.lower()} filter is set"

    def add_child(self, target_id: int, text: str) -> int:
        """Add an expression to a field or part.

        A wildcard root is replaced, a compound gains a member and any other
        target is combined with the new expression into a compound. Range
        endpoints and increment operands address their enclosing part.

        Args:
            target_id: Field id or part id.
            text: Column text to add, e.g. ``"5"`` or ``"1-5"``.

        Returns:
            Id of the part holding the new expression.

        Raises:
            UnknownPartError: If ``target_id`` is not live.
            CronParseError: If ``text`` is malformed.
            ExclusiveFieldError: If day of month and day of week would both
                be restricted.
        """
        field, target = self._resolve_target(target_id)
        new = parse(text, field)

        root = field.root
        self._check_exclusive(field, root.is_wildcard and new.is_wildcard)

        if root.is_wildcard:
            self._retire(root)
            self._set_root(field, new)
            holder = new
        elif isinstance(root, Compound):
            added = root.add(new)
            for member in added:
                self._adopt(member, root.id)
            holder = added[0] if len(added) == 1 else root
        else:
            compound = Compound([root], field.domain)
            added = compound.add(new)
            self._set_root(field, compound)
            holder = added[0] if len(added) == 1 else compound

        self._logger.debug(
            "Added %r to %s (target %d): %s", text, field.name, target.id, field.root.to_cron()
        )
        return holder.id

    def replace(self, part_id: int, text: str) -> int:
        """Replace a part with a newly parsed expression.

        Args:
            part_id: Id of the part to replace (a field id replaces its root).
            text: Column text of the replacement.

        Returns:
            Id of the replacement part (or of its compound when spliced).

        Raises:
            UnknownPartError: If ``part_id`` is not live.
            CronParseError: If ``text`` is malformed or does not fit the
                position, e.g. a range endpoint that is not a single value.
            ExclusiveFieldError: If day of month and day of week would both
                be restricted.
        """
        field, target = self._resolve_target(part_id)
        new = parse(text, field)
        parent = self._parent_of(target)

        if isinstance(parent, ScheduleField):
            self._check_exclusive(field, new.is_wildcard)
            self._retire(target)
            self._set_root(field, new)
            holder = new
        else:
            self._check_fits(parent, target, new, text)
            self._check_exclusive(field, False)
            parent.replace_child(target, new)
            self._retire(target)
            self._adopt(parent, parent.parent)
            holder = parent if new.kind is PartKind.COMPOUND and isinstance(parent, Compound) else new

        self._logger.debug("Replaced part %d of %s: %s", part_id, field.name, field.root.to_cron())
        return holder.id

    def _check_fits(
        self, parent: FieldPart, target: FieldPart, new: FieldPart, text: str
    ) -> None:
        relation = parent.relation(target)
        if isinstance(parent, Range) and new.kind is not PartKind.LITERAL:
            raise CronParseError(f"Range {relation} bound must be a single value: {text!r}", text)
        if isinstance(parent, Increment):
            if relation == "step" and (new.kind is not PartKind.LITERAL or new.value <= 0):
                raise CronParseError(f"Step must be a positive value: {text!r}", text)
            if relation == "base" and new.kind not in (
                PartKind.WILDCARD, PartKind.LITERAL, PartKind.RANGE
            ):
                raise CronParseError(f"Invalid increment base: {text!r}", text)

    def remove(self, part_id: int) -> None:
        """Remove a part.

        A root reverts to a wildcard. A compound left with a single member
        collapses into it and one left empty becomes a wildcard. Removing a
        range endpoint or increment operand removes the enclosing part.

        Raises:
            UnknownPartError: If ``part_id`` is not live.
        """
        field, target = self._resolve_target(part_id)
        parent = self._parent_of(target)

        if isinstance(parent, ScheduleField):
            self._retire(target)
            self._set_root(field, Wildcard(field.domain))
        elif isinstance(parent, Compound):
            parent.remove_child(target)
            self._retire(target)
            if len(parent.members) <= 1:
                self._collapse(field, parent)
        else:
            self.remove(parent.id)
            return

        self._logger.debug("Removed part %d from %s: %s", part_id, field.name, field.root.to_cron())

    def _collapse(self, field: ScheduleField, compound: Compound) -> None:
        survivor = compound.members[0] if compound.members else Wildcard(field.domain)
        compound.members.clear()
        self._retire(compound)
        self._set_root(field, survivor)

    def list_legal_literals(self, target_id: int) -> list[tuple[int, str]]:
        """Values a literal of the addressed field may take, with display text."""
        field, _ = self._resolve_target(target_id)
        return [(value, field.value_name(value)) for value in field.domain]

    def describe(self, part_id: int) -> PartInfo:
        """Structural metadata of a part (a field id describes its root)."""
        field, part = self._resolve_target(part_id)
        parent = self._parent_of(part)
        if isinstance(parent, ScheduleField):
            parent_kind, relation = "field", "child"
        else:
            parent_kind, relation = parent.kind.value, parent.relation(part)

        return PartInfo(
            id=part.id,
            kind=part.kind,
            field_id=field.id,
            field_name=field.name,
            lower=field.lower,
            upper=field.upper,
            value=part.value,
            text=part.to_cron(),
            description=render.describe_part(field, part),
            parent_id=part.parent,
            parent_kind=parent_kind,
            relation=relation,
            in_on=field.in_on,
            prefix=field.prefix,
            quantifier=field.quantifier,
            upper_quantifier=field.upper_quantifier,
        )


# =============================================================================
# Schedule Iterator
# =============================================================================


class ScheduleIterator(Iterator[datetime]):
    """Iterator over trigger instants.

    Each trigger after the first is searched from one minute past the
    previous one.
    """

    def __init__(
        self,
        schedule: Schedule,
        after: datetime | None = None,
        limit: int | None = None,
    ) -> None:
        self._schedule = schedule
        self._current = after if after is not None else datetime.now()
        self._limit = limit
        self._count = 0

    def __iter__(self) -> ScheduleIterator:
        return self

    def __next__(self) -> datetime:
        if self._limit is not None and self._count >= self._limit:
            raise StopIteration

        next_dt = self._schedule.next_valid(self._current)
        if next_dt is None:
            raise StopIteration

        self._current = next_dt + timedelta(minutes=1)
        self._count += 1
        return next_dt


# =============================================================================
# Validation Functions
# =============================================================================


def validate_expression(expression: str, dialect: Dialect | str = Dialect.UNIX) -> list[str]:
    """Validate an expression.

    Returns:
        List of validation errors (empty if valid).
    """
    errors = []

    try:
        Schedule(expression, dialect)
    except CronParseError as e:
        errors.append(str(e))

    return errors


def is_valid_expression(expression: str, dialect: Dialect | str = Dialect.UNIX) -> bool:
    try:
        Schedule(expression, dialect)
        return True
    except CronParseError:
        return False
