"""Job triggering on top of schedules.

Usage:
    >>> from cronplan.triggers import FunctionJob, JobScheduler
    >>>
    >>> scheduler = JobScheduler()
    >>> scheduler.add_job(FunctionJob(refresh, "*/15 * * * *", name="refresh"))
"""

from cronplan.triggers.base import (
    FunctionJob,
    Job,
    TriggerConfig,
    TriggerOutcome,
    TriggerResult,
    TriggerStatus,
)
from cronplan.triggers.scheduler import JobScheduler

__all__ = [
    "Job",
    "FunctionJob",
    "JobScheduler",
    "TriggerConfig",
    "TriggerOutcome",
    "TriggerResult",
    "TriggerStatus",
]
