"""Exceptions raised by the scheduling engine."""

from __future__ import annotations


class CronParseError(ValueError):
    """Raised when cron expression parsing fails."""

    def __init__(self, message: str, expression: str = "", position: int = -1) -> None:
        self.expression = expression
        self.position = position
        super().__init__(message)


ParseError = CronParseError


class ScheduleEditError(Exception):
    """Base class for errors raised by the schedule edit API."""


class UnknownPartError(ScheduleEditError, KeyError):
    """Raised when an id does not address a live part or field."""

    def __init__(self, part_id: int) -> None:
        self.part_id = part_id
        super().__init__(f"No live part or field with id {part_id}")

    def __str__(self) -> str:
        return self.args[0]


class ExclusiveFieldError(ScheduleEditError):
    """Raised when day-of-month and day-of-week would both be restricted."""

    def __init__(self, field_name: str, other_name: str) -> None:
        self.field_name = field_name
        self.other_name = other_name
        super().__init__(
            f"{field_name} cannot be set while a {other_name.lower()} filter is set"
        )
