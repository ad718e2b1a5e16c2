"""Job scheduler.

One daemon thread sleeps until the earliest due job (or the poll interval),
then runs every due job in turn. A job that is due but older than the missed
window is skipped: a warning is logged and its next occurrence is computed
from just after the missed one.

Jobs run on the scheduler thread. An exception from a job is logged and
does not stop the loop.

Example:
    >>> scheduler = JobScheduler()
    >>> scheduler.add_job(FunctionJob(backup, "0 2 * * *"))
    >>> ...
    >>> scheduler.shutdown()
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from cronplan.triggers.base import (
    Job,
    TriggerConfig,
    TriggerOutcome,
    TriggerResult,
    TriggerStatus,
)


class JobScheduler:
    """Runs jobs at the instants their schedules select.

    Args:
        config: Timing options (default: ``TriggerConfig()``).
        logger: Logger for run, wait and missed-window notices.
    """

    def __init__(
        self,
        config: TriggerConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config or TriggerConfig()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._jobs: list[Job] = []
        self._condition = threading.Condition(threading.RLock())
        self._thread: threading.Thread | None = None
        self._running = False
        self._status = TriggerStatus.STOPPED

    @property
    def config(self) -> TriggerConfig:
        return self._config

    @property
    def status(self) -> TriggerStatus:
        return self._status

    @property
    def jobs(self) -> list[Job]:
        with self._condition:
            return list(self._jobs)

    # -------------------------------------------------------------------------
    # Job management
    # -------------------------------------------------------------------------

    def add_job(
        self, job: Job, *, now: datetime | None = None, start: bool = True
    ) -> None:
        """Add a job and compute its first occurrence.

        Args:
            job: Job with its schedules configured.
            now: Reference time for the first occurrence (default: now).
            start: Start the scheduler thread if it is not running.
        """
        with self._condition:
            if job not in self._jobs:
                self._jobs.append(job)
                job.calc_next(now)
                self._logger.debug("Added job %s, next run: %s", job.name, job.next)
                self._condition.notify_all()
        if start:
            self.start()

    def remove_job(self, job: Job) -> None:
        """Remove a job. It may still run if it is already being handled."""
        with self._condition:
            if job in self._jobs:
                self._jobs.remove(job)

    def clear(self) -> None:
        with self._condition:
            self._jobs.clear()

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def run_pending(self, now: datetime | None = None) -> list[TriggerResult]:
        """Handle every job that is due at ``now`` (default: current time).

        Returns:
            One result per due job.
        """
        now = now or datetime.now()
        results: list[TriggerResult] = []

        with self._condition:
            for job in list(self._jobs):
                due = job.next
                if due is None or due > now:
                    continue

                if due > now - self._config.missed_window:
                    results.append(self._run_job(job, due, now))
                else:
                    self._logger.warning(
                        "%s missed its scheduled window (due %s)", job.name, due
                    )
                    job.last = due + self._config.smallest_interval
                    job.calc_next()
                    results.append(
                        TriggerResult(job.name, TriggerOutcome.MISSED, due, job.next)
                    )
        return results

    def _run_job(self, job: Job, due: datetime, now: datetime) -> TriggerResult:
        self._logger.info("Running job %s (due %s)", job.name, due)
        try:
            job.run(now, self._config.smallest_interval)
        except Exception as e:
            self._logger.exception("Job %s failed", job.name)
            return TriggerResult(job.name, TriggerOutcome.FAILED, due, job.next, str(e))
        self._logger.debug("Next run of %s: %s", job.name, job.next)
        return TriggerResult(job.name, TriggerOutcome.RAN, due, job.next)

    def seconds_until_next(self, now: datetime | None = None) -> float:
        """Seconds until the earliest due job, capped at the poll interval."""
        now = now or datetime.now()
        wait = self._config.poll_interval.total_seconds()
        with self._condition:
            for job in self._jobs:
                if job.next is not None:
                    wait = min(wait, (job.next - now).total_seconds())
        return max(wait, 0.0)

    # -------------------------------------------------------------------------
    # Thread lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the scheduler thread if it is not already running."""
        with self._condition:
            if self._thread is not None and self._thread.is_alive():
                return
            self._running = True
            self._status = TriggerStatus.ACTIVE
            self._thread = threading.Thread(
                target=self._loop, name="cronplan-scheduler", daemon=True
            )
            self._thread.start()

    def shutdown(self, timeout: float | None = None) -> None:
        """Remove all jobs and stop the scheduler thread."""
        with self._condition:
            self._jobs.clear()
            self._running = False
            self._condition.notify_all()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._status = TriggerStatus.STOPPED

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def is_ok(self) -> bool:
        """True when the thread is alive, or when there is nothing to run."""
        with self._condition:
            return not self._jobs or self.is_alive()

    def _loop(self) -> None:
        try:
            delay = self._config.start_delay.total_seconds()
            with self._condition:
                if delay > 0:
                    self._logger.debug("Scheduler waiting %.1fs before starting", delay)
                    self._condition.wait_for(lambda: not self._running, timeout=delay)
                for job in self._jobs:
                    job.calc_next()

            while True:
                with self._condition:
                    if not self._running:
                        break
                    wait = self.seconds_until_next()
                    if wait > 0:
                        self._logger.debug("Scheduler waiting %.1fs", wait)
                        self._condition.wait(timeout=wait)
                    if not self._running:
                        break
                self.run_pending()
        except Exception:
            self._status = TriggerStatus.ERROR
            self._logger.exception("Scheduler loop stopped")
            raise
        finally:
            with self._condition:
                self._thread = None
