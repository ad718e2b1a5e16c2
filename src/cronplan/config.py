"""Configuration for cronplan.

Settings are merged from several sources, later sources overriding earlier
ones:

    defaults  <  configuration file  <  environment (CRONPLAN_*)

Configuration files may be YAML, JSON or TOML. Keys sit at the top level or
under a ``cronplan`` table::

    # cronplan.yaml
    dialect: quartz
    year_horizon: 50
    missed_window_seconds: 600

Environment variables use the upper-cased key with a ``CRONPLAN_`` prefix,
e.g. ``CRONPLAN_DIALECT=quartz``.

Usage:
    >>> from cronplan.config import load_config
    >>> config = load_config("cronplan.yaml")
    >>> scheduler = JobScheduler(config.to_trigger_config())
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from cronplan.scheduling.fields import YEAR_HORIZON, Dialect
from cronplan.triggers.base import TriggerConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "CRONPLAN"
DEFAULT_CONFIG_FILES = ("cronplan.yaml", "cronplan.yml", "cronplan.toml", "cronplan.json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(Exception):
    """Base configuration error."""

    pass


class ConfigValidationError(ConfigError):
    """Configuration validation error."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Configuration validation failed: {', '.join(errors)}")


class ConfigSourceError(ConfigError):
    """Configuration source error."""

    pass


# =============================================================================
# Configuration Sources
# =============================================================================


class ConfigSource(ABC):
    """Source of configuration values.

    Sources are merged in priority order; higher priorities override lower.
    """

    def __init__(self, priority: int = 0) -> None:
        self._priority = priority

    @property
    def priority(self) -> int:
        return self._priority

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load configuration from source."""


class EnvConfigSource(ConfigSource):
    """Environment variable configuration source.

    Example:
        CRONPLAN_DIALECT=quartz
        CRONPLAN_YEAR_HORIZON=50

        Will produce:
        {"dialect": "quartz", "year_horizon": 50}

    When ``keys`` is given, variables naming any other setting are skipped.
    """

    def __init__(
        self,
        prefix: str = ENV_PREFIX,
        priority: int = 100,
        environ: Mapping[str, str] | None = None,
        keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(priority)
        self._prefix = f"{prefix}_"
        self._environ = environ
        self._keys = None if keys is None else frozenset(keys)

    def load(self) -> dict[str, Any]:
        environ = os.environ if self._environ is None else self._environ
        result: dict[str, Any] = {}
        for key, value in environ.items():
            if not key.startswith(self._prefix) or key == f"{self._prefix}CONFIG":
                continue
            name = key[len(self._prefix) :].lower()
            if self._keys is not None and name not in self._keys:
                logger.debug("Ignoring unknown environment variable %s", key)
                continue
            result[name] = self._parse_value(value)
        return result

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "on"):
            return True
        if lowered in ("false", "no", "off"):
            return False
        if lowered in ("null", "none", ""):
            return None

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value


class FileConfigSource(ConfigSource):
    """File-based configuration source.

    Supports YAML, JSON, and TOML formats, detected from the file extension.
    """

    def __init__(self, path: str | Path, *, required: bool = False, priority: int = 50) -> None:
        super().__init__(priority)
        self._path = Path(path)
        self._required = required

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        if not self._path.exists():
            if self._required:
                raise ConfigSourceError(f"Configuration file not found: {self._path}")
            return {}

        suffix = self._path.suffix.lower()
        try:
            content = self._path.read_text(encoding="utf-8")
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif suffix == ".json":
                data = json.loads(content)
            elif suffix == ".toml":
                data = tomllib.loads(content)
            else:
                raise ConfigSourceError(f"Unsupported file format: {suffix}")
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigSourceError(f"Failed to load config {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigSourceError(f"Configuration in {self._path} must be a mapping")
        section = data.get("cronplan", data)
        if not isinstance(section, dict):
            raise ConfigSourceError(f"'cronplan' section in {self._path} must be a mapping")
        logger.debug("Loaded configuration from %s", self._path)
        return dict(section)


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class CronplanConfig:
    """Resolved settings.

    Attributes:
        dialect: Default dialect for parsed schedules.
        year_horizon: Years searched before a schedule is reported as never
            firing.
        missed_window_seconds: How late a due job may still run.
        smallest_interval_seconds: Minimum spacing between runs of a job.
        poll_interval_seconds: Longest sleep of the scheduler thread.
        start_delay_seconds: Delay before the scheduler starts evaluating.
        log_level: Logging level name.
    """

    dialect: str = Dialect.UNIX.value
    year_horizon: int = YEAR_HORIZON
    missed_window_seconds: float = 7200.0
    smallest_interval_seconds: float = 60.0
    poll_interval_seconds: float = 3600.0
    start_delay_seconds: float = 60.0
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CronplanConfig:
        """Build a validated configuration from a mapping.

        Raises:
            ConfigValidationError: If keys are unknown or values are invalid.
        """
        known = {f.name: f for f in fields(cls)}
        errors = [f"Unknown setting: {key}" for key in data if key not in known]
        values: dict[str, Any] = {}

        for key, value in data.items():
            if key not in known or value is None:
                continue
            try:
                values[key] = _coerce(value, known[key].type)
            except (TypeError, ValueError):
                errors.append(f"Invalid value for {key}: {value!r}")

        if errors:
            raise ConfigValidationError(errors)
        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        """Raise ConfigValidationError if any setting is out of range."""
        errors: list[str] = []
        try:
            Dialect.from_string(self.dialect)
        except ValueError as e:
            errors.append(str(e))
        if self.year_horizon < 1:
            errors.append(f"year_horizon must be at least 1, got {self.year_horizon}")
        for name in (
            "missed_window_seconds",
            "smallest_interval_seconds",
            "poll_interval_seconds",
            "start_delay_seconds",
        ):
            if getattr(self, name) < 0:
                errors.append(f"{name} must not be negative")
        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")
        if errors:
            raise ConfigValidationError(errors)

    @property
    def dialect_enum(self) -> Dialect:
        return Dialect.from_string(self.dialect)

    def to_trigger_config(self) -> TriggerConfig:
        return TriggerConfig(
            missed_window=timedelta(seconds=self.missed_window_seconds),
            smallest_interval=timedelta(seconds=self.smallest_interval_seconds),
            poll_interval=timedelta(seconds=self.poll_interval_seconds),
            start_delay=timedelta(seconds=self.start_delay_seconds),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _coerce(value: Any, type_name: Any) -> Any:
    # annotations are strings under postponed evaluation
    type_name = getattr(type_name, "__name__", type_name)
    if type_name == "int":
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise ValueError(value)
        return int(value)
    if type_name == "float":
        if isinstance(value, bool):
            raise ValueError(value)
        return float(value)
    if not isinstance(value, str):
        raise TypeError(value)
    return value


def find_config_file(directory: str | Path | None = None) -> Path | None:
    """Find a default configuration file in ``directory`` (default: cwd)."""
    base = Path(directory) if directory is not None else Path.cwd()
    for name in DEFAULT_CONFIG_FILES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def load_config(
    path: str | Path | None = None,
    *,
    use_env: bool = True,
    environ: Mapping[str, str] | None = None,
) -> CronplanConfig:
    """Load configuration from file and environment.

    Args:
        path: Configuration file. When omitted, ``CRONPLAN_CONFIG`` or a
            ``cronplan.*`` file in the working directory is used if present.
        use_env: Apply ``CRONPLAN_*`` environment variables.
        environ: Environment mapping to read instead of ``os.environ``.

    Returns:
        Validated configuration.

    Raises:
        ConfigSourceError: If an explicit file is missing or unreadable.
        ConfigValidationError: If a setting is invalid.
    """
    env = os.environ if environ is None else environ
    sources: list[ConfigSource] = []

    if path is None and use_env:
        path = env.get(f"{ENV_PREFIX}_CONFIG")
    if path is not None:
        sources.append(FileConfigSource(path, required=True))
    else:
        found = find_config_file()
        if found is not None:
            sources.append(FileConfigSource(found))

    if use_env:
        keys = {f.name for f in fields(CronplanConfig)}
        sources.append(EnvConfigSource(environ=env, keys=keys))

    merged: dict[str, Any] = {}
    for source in sorted(sources, key=lambda s: s.priority):
        merged.update(source.load())

    return CronplanConfig.from_dict(merged)
