"""Expression tree nodes for a single schedule column.

A column such as ``10-30/5,45`` parses into a small tree of field parts::

    Compound
      +-- Increment
      |     +-- Range(Literal(10), Literal(30))   base
      |     +-- Literal(5)                        step
      +-- Literal(45)

Every part answers ``next_valid(start)`` over the integer domain of its
column using a sign-encoded result:

    result >= start   the value to use, found inside the current cycle
    result <  start   nothing left in this cycle; ``abs(result)`` is the
                      first satisfying value of the next cycle

Parts hold their children directly. The link back to a parent is stored as
an integer id (``parent``) that only the owning schedule resolves, so the
tree never holds a reference cycle.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Iterable, Iterator


class PartKind(str, Enum):
    """Variants of field parts."""

    WILDCARD = "wildcard"
    LITERAL = "literal"
    RANGE = "range"
    INCREMENT = "increment"
    COMPOUND = "compound"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Domain:
    """Inclusive integer bounds of a schedule column."""

    lower: int
    upper: int

    def __contains__(self, value: object) -> bool:
        return isinstance(value, int) and self.lower <= value <= self.upper

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.lower, self.upper + 1))

    def __len__(self) -> int:
        return self.upper - self.lower + 1


# =============================================================================
# Base Part
# =============================================================================


class FieldPart(ABC):
    """Base class for all expression tree nodes.

    Attributes:
        domain: Bounds of the owning column.
        id: Registry id assigned by the owning schedule (0 when detached).
        parent: Id of the parent part, or of the owning field for a root.
    """

    kind: ClassVar[PartKind]

    def __init__(self, domain: Domain) -> None:
        self.domain = domain
        self.id = 0
        self.parent: int | None = None

    @abstractmethod
    def next_valid(self, start: int) -> int:
        """Find the first satisfying value at or after ``start``."""

    @abstractmethod
    def floor(self) -> int:
        """Smallest value this part can produce."""

    @abstractmethod
    def ceiling(self) -> int:
        """Largest value this part can produce."""

    @abstractmethod
    def to_cron(self) -> str:
        """Canonical cron text for this subtree."""

    @abstractmethod
    def structure(self) -> tuple[Any, ...]:
        """Id-free nested tuple describing the shape of this subtree."""

    @property
    def value(self) -> int:
        """Integer value of the part (0 for non-literal parts)."""
        return 0

    @property
    def is_wildcard(self) -> bool:
        return self.kind is PartKind.WILDCARD

    def children(self) -> tuple[FieldPart, ...]:
        return ()

    def walk(self) -> Iterator[FieldPart]:
        """Iterate over this part and all of its descendants, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()

    def replace_child(self, target: FieldPart, replacement: FieldPart) -> None:
        raise TypeError(f"{type(self).__name__} has no children to replace")

    def relation(self, part: FieldPart) -> str | None:
        """Describe how ``part`` relates to this part."""
        if part is self:
            return "this"
        if any(child is part for child in self.children()):
            return "child"
        return None

    def matches(self, value: int) -> bool:
        return self.next_valid(value) == value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_cron()!r}, id={self.id})"


# =============================================================================
# Leaf Parts
# =============================================================================


class Wildcard(FieldPart):
    """Matches every value of the domain (``*`` or ``?``)."""

    kind = PartKind.WILDCARD

    def next_valid(self, start: int) -> int:
        return start

    def floor(self) -> int:
        return self.domain.lower

    def ceiling(self) -> int:
        return self.domain.upper

    def to_cron(self) -> str:
        return "*"

    def structure(self) -> tuple[Any, ...]:
        return ("*",)


class Literal(FieldPart):
    """A single integer value, already clamped into the domain."""

    kind = PartKind.LITERAL

    def __init__(self, value: int, domain: Domain) -> None:
        super().__init__(domain)
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def next_valid(self, start: int) -> int:
        return self._value if start <= self._value else -self._value

    def floor(self) -> int:
        return self._value

    def ceiling(self) -> int:
        return self._value

    def to_cron(self) -> str:
        return str(self._value)

    def structure(self) -> tuple[Any, ...]:
        return ("literal", self._value)


# =============================================================================
# Composite Parts
# =============================================================================


class Range(FieldPart):
    """Inclusive range between two literal parts.

    A range whose lower end is greater than its upper end wraps around the
    domain, so ``5-1`` over weekdays covers Friday through Monday.
    """

    kind = PartKind.RANGE

    def __init__(self, low: FieldPart, high: FieldPart, domain: Domain) -> None:
        super().__init__(domain)
        self.low = low
        self.high = high

    @property
    def wraps(self) -> bool:
        return self.low.floor() > self.high.ceiling()

    def next_valid(self, start: int) -> int:
        lo = self.low.floor()
        hi = self.high.ceiling()
        if self.wraps:
            if start <= hi or start >= lo:
                return start
            return lo
        if start < lo:
            return lo
        if start > hi:
            return -lo
        return start

    def floor(self) -> int:
        return self.low.floor()

    def ceiling(self) -> int:
        if self.wraps:
            return self.domain.upper
        return self.high.ceiling()

    def to_cron(self) -> str:
        return f"{self.low.to_cron()}-{self.high.to_cron()}"

    def structure(self) -> tuple[Any, ...]:
        return ("range", self.low.structure(), self.high.structure())

    def children(self) -> tuple[FieldPart, ...]:
        return (self.low, self.high)

    def replace_child(self, target: FieldPart, replacement: FieldPart) -> None:
        if target is self.low:
            self.low = replacement
        elif target is self.high:
            self.high = replacement
        else:
            raise ValueError(f"{target!r} is not an endpoint of {self!r}")

    def relation(self, part: FieldPart) -> str | None:
        if part is self.low:
            return "lower"
        if part is self.high:
            return "upper"
        return super().relation(part)


class Increment(FieldPart):
    """Arithmetic progression ``base/step``.

    The progression starts at the floor of ``base`` and stays within its
    bound: the whole domain for a wildcard, ``lo..hi`` for a range and
    the value itself for a single literal.
    """

    kind = PartKind.INCREMENT

    def __init__(self, base: FieldPart, step: FieldPart, domain: Domain) -> None:
        super().__init__(domain)
        self.base = base
        self.step = step

    def _top(self) -> int:
        return self.base.ceiling()

    def next_valid(self, start: int) -> int:
        first = self.base.floor()
        step = self.step.value
        if start <= first:
            return first
        # ceil((start - first) / step) steps past the first value
        candidate = first + -(-(start - first) // step) * step
        if candidate > self._top():
            return -first
        return candidate

    def floor(self) -> int:
        return self.base.floor()

    def ceiling(self) -> int:
        first = self.base.floor()
        step = self.step.value
        return first + (self._top() - first) // step * step

    def to_cron(self) -> str:
        return f"{self.base.to_cron()}/{self.step.to_cron()}"

    def structure(self) -> tuple[Any, ...]:
        return ("increment", self.base.structure(), self.step.structure())

    def children(self) -> tuple[FieldPart, ...]:
        return (self.base, self.step)

    def replace_child(self, target: FieldPart, replacement: FieldPart) -> None:
        if target is self.base:
            self.base = replacement
        elif target is self.step:
            self.step = replacement
        else:
            raise ValueError(f"{target!r} is not an operand of {self!r}")

    def relation(self, part: FieldPart) -> str | None:
        if part is self.base:
            return "base"
        if part is self.step:
            return "step"
        return super().relation(part)


class Compound(FieldPart):
    """Union of sibling parts (``a,b,c``), kept flat."""

    kind = PartKind.COMPOUND

    def __init__(self, members: Iterable[FieldPart], domain: Domain) -> None:
        super().__init__(domain)
        self.members: list[FieldPart] = []
        for member in members:
            self.add(member)

    def add(self, part: FieldPart) -> list[FieldPart]:
        """Append a member, splicing in the members of a nested compound.

        Returns:
            The parts that became direct members.
        """
        added = list(part.members) if isinstance(part, Compound) else [part]
        self.members.extend(added)
        return added

    def index(self, part: FieldPart) -> int:
        for i, member in enumerate(self.members):
            if member is part:
                return i
        raise ValueError(f"{part!r} is not a member of {self!r}")

    def next_valid(self, start: int) -> int:
        if not self.members:
            return start
        results = [member.next_valid(start) for member in self.members]
        hits = [r for r in results if r >= start]
        if hits:
            return min(hits)
        return -min(abs(r) for r in results)

    def floor(self) -> int:
        return min((m.floor() for m in self.members), default=self.domain.lower)

    def ceiling(self) -> int:
        return max((m.ceiling() for m in self.members), default=self.domain.upper)

    def to_cron(self) -> str:
        return ",".join(member.to_cron() for member in self.members)

    def structure(self) -> tuple[Any, ...]:
        return ("compound", tuple(member.structure() for member in self.members))

    def children(self) -> tuple[FieldPart, ...]:
        return tuple(self.members)

    def replace_child(self, target: FieldPart, replacement: FieldPart) -> None:
        i = self.index(target)
        if isinstance(replacement, Compound):
            self.members[i : i + 1] = replacement.members
        else:
            self.members[i] = replacement

    def remove_child(self, target: FieldPart) -> None:
        del self.members[self.index(target)]

    def relation(self, part: FieldPart) -> str | None:
        if any(member is part for member in self.members):
            return "member"
        return super().relation(part)
