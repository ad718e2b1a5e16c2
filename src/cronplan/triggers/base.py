"""Jobs and common trigger types.

A job owns one or more schedules and fires at the earliest instant any of
them selects. Jobs do not run themselves: a ``JobScheduler`` decides when a
due job runs, and whether it is too late to run at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable

from cronplan.scheduling import Dialect, Schedule


class TriggerStatus(str, Enum):
    """Status of a job scheduler."""

    ACTIVE = "active"
    STOPPED = "stopped"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


class TriggerOutcome(str, Enum):
    """What happened to a due job during one scheduler tick."""

    RAN = "ran"
    MISSED = "missed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass
class TriggerConfig:
    """Timing options of a job scheduler.

    Attributes:
        missed_window: How late a due job may still run. Older occurrences
            are skipped with a warning.
        smallest_interval: Added to the run (or missed) time before the next
            occurrence is computed, so a job fires at most once per interval.
        poll_interval: Longest sleep of the scheduler thread.
        start_delay: Delay before the scheduler thread starts evaluating jobs.
    """

    missed_window: timedelta = timedelta(hours=2)
    smallest_interval: timedelta = timedelta(minutes=1)
    poll_interval: timedelta = timedelta(hours=1)
    start_delay: timedelta = timedelta(minutes=1)


@dataclass
class TriggerResult:
    """Result of handling one due job.

    Attributes:
        job_name: Name of the job.
        outcome: Whether the job ran, missed its window or failed.
        scheduled_for: Occurrence that was due.
        next_run: Next occurrence after handling (None if none remain).
        error: Error message when the job raised.
    """

    job_name: str
    outcome: TriggerOutcome
    scheduled_for: datetime
    next_run: datetime | None = None
    error: str | None = None

    @property
    def ran(self) -> bool:
        return self.outcome is TriggerOutcome.RAN


class Job(ABC):
    """Unit of work run by a ``JobScheduler``.

    Subclasses implement ``run_job``. The scheduler runs jobs on its own
    thread, one at a time; long-running work should hand off to its own
    thread or executor.

    Example:
        >>> class Report(Job):
        ...     def run_job(self) -> None:
        ...         send_report()
        >>> job = Report("0 9 * * MON-FRI", name="report")
    """

    def __init__(
        self,
        *schedules: Schedule | str,
        name: str | None = None,
        dialect: Dialect | str = Dialect.UNIX,
    ) -> None:
        self._name = name
        self._dialect = Dialect.from_string(dialect)
        self._schedules: list[Schedule] = []
        for schedule in schedules:
            self.add_schedule(schedule)

        self.next: datetime | None = None
        self.last: datetime | None = None
        self.run_count = 0

    @property
    def name(self) -> str:
        return self._name or f"{type(self).__name__}_{id(self)}"

    @property
    def schedules(self) -> list[Schedule]:
        """Schedules of this job; call ``calc_next`` after changing them."""
        return self._schedules

    def add_schedule(self, schedule: Schedule | str) -> Schedule:
        if isinstance(schedule, str):
            schedule = Schedule(schedule, self._dialect)
        self._schedules.append(schedule)
        return schedule

    def calc_next(self, now: datetime | None = None) -> datetime | None:
        """Recompute the next occurrence.

        The search starts at ``last`` when the job has run before, otherwise
        at ``now``.

        Returns:
            The earliest occurrence over all schedules, or None.
        """
        reference = self.last or now or datetime.now()
        candidates = [
            dt for dt in (s.next_valid(reference) for s in self._schedules) if dt is not None
        ]
        self.next = min(candidates) if candidates else None
        return self.next

    def run(
        self,
        now: datetime | None = None,
        smallest_interval: timedelta = timedelta(minutes=1),
    ) -> None:
        """Run the job, then schedule the next occurrence.

        Exceptions from ``run_job`` propagate; the next occurrence is still
        computed.
        """
        try:
            self.run_job()
        finally:
            self.run_count += 1
            self.last = (now or datetime.now()) + smallest_interval
            self.calc_next()

    @abstractmethod
    def run_job(self) -> None:
        """Business logic of the job."""

    def __repr__(self) -> str:
        schedules = ", ".join(repr(str(s)) for s in self._schedules)
        return f"{type(self).__name__}({schedules}, name={self.name!r})"


class FunctionJob(Job):
    """Job that calls a function."""

    def __init__(
        self,
        func: Callable[[], Any],
        *schedules: Schedule | str,
        name: str | None = None,
        dialect: Dialect | str = Dialect.UNIX,
    ) -> None:
        super().__init__(*schedules, name=name or getattr(func, "__name__", None), dialect=dialect)
        self._func = func

    def run_job(self) -> None:
        self._func()
