"""cronplan - cron schedule engine with an editable expression tree."""

from cronplan.scheduling import (
    CronParseError,
    Dialect,
    ExclusiveFieldError,
    FieldRole,
    ParseError,
    Schedule,
    ScheduleEditError,
    UnknownPartError,
    get_preset,
    is_valid_expression,
    validate_expression,
)
from cronplan.triggers import FunctionJob, Job, JobScheduler, TriggerConfig

__version__ = "0.1.0"

__all__ = [
    "Schedule",
    "Dialect",
    "FieldRole",
    "CronParseError",
    "ParseError",
    "ScheduleEditError",
    "UnknownPartError",
    "ExclusiveFieldError",
    "get_preset",
    "validate_expression",
    "is_valid_expression",
    "Job",
    "FunctionJob",
    "JobScheduler",
    "TriggerConfig",
]
