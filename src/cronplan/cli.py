"""Command-line interface for cronplan."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from cronplan.config import ConfigError, CronplanConfig, load_config
from cronplan.scheduling import (
    PRESETS,
    CronParseError,
    Schedule,
    validate_expression,
)

app = typer.Typer(
    name="cronplan",
    help="Cron schedule engine: next triggers, descriptions and expression structure",
    add_completion=False,
)

ExpressionArg = Annotated[str, typer.Argument(help="Schedule expression, e.g. '0 9 * * MON-FRI'")]
DialectOpt = Annotated[
    Optional[str],
    typer.Option("--dialect", "-d", help="Day-of-week numbering (unix, quartz)"),
]
ConfigOpt = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Configuration file (YAML, JSON or TOML)"),
]
FormatOpt = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format (text, json)"),
]
VerboseOpt = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]


def _setup(config_path: Optional[Path], verbose: bool) -> CronplanConfig:
    try:
        config = load_config(config_path)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper())
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return config


def _schedule(expression: str, dialect: Optional[str], config: CronplanConfig) -> Schedule:
    try:
        return Schedule(
            expression,
            dialect or config.dialect,
            year_horizon=config.year_horizon,
        )
    except (CronParseError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _check_format(format: str) -> None:
    if format not in ("text", "json"):
        typer.echo(f"Error: Unsupported format: {format}", err=True)
        raise typer.Exit(1)


@app.command(name="next")
def next_cmd(
    expression: ExpressionArg,
    after: Annotated[
        Optional[str],
        typer.Option("--after", "-a", help="Reference time in ISO format (default: now)"),
    ] = None,
    count: Annotated[
        int,
        typer.Option("--count", "-n", min=1, help="Number of triggers to show"),
    ] = 1,
    dialect: DialectOpt = None,
    format: FormatOpt = "text",
    config_path: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Show the next trigger times of a schedule."""
    _check_format(format)
    config = _setup(config_path, verbose)
    schedule = _schedule(expression, dialect, config)

    try:
        reference = datetime.fromisoformat(after) if after else datetime.now()
    except ValueError:
        typer.echo(f"Error: Invalid --after time: {after}", err=True)
        raise typer.Exit(1)

    triggers = schedule.next_n(count, reference)

    if format == "json":
        typer.echo(
            json.dumps(
                {
                    "expression": schedule.to_cron(),
                    "after": reference.isoformat(),
                    "triggers": [t.isoformat() for t in triggers],
                },
                indent=2,
            )
        )
        return

    if not triggers:
        typer.echo("Never")
        return
    for trigger in triggers:
        typer.echo(trigger.isoformat(sep=" "))


@app.command(name="describe")
def describe_cmd(
    expression: ExpressionArg,
    newlines: Annotated[
        bool,
        typer.Option("--newlines", help="One line per restricted column"),
    ] = False,
    dialect: DialectOpt = None,
    format: FormatOpt = "text",
    config_path: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Describe a schedule in English."""
    _check_format(format)
    config = _setup(config_path, verbose)
    schedule = _schedule(expression, dialect, config)

    if format == "json":
        typer.echo(
            json.dumps(
                {
                    "expression": schedule.to_cron(),
                    "dialect": schedule.dialect.value,
                    "description": schedule.to_human_text(),
                },
                indent=2,
            )
        )
        return

    typer.echo(schedule.to_cron())
    typer.echo(schedule.to_human_text(newlines=newlines) or "every minute")


@app.command(name="validate")
def validate_cmd(
    expression: ExpressionArg,
    dialect: DialectOpt = None,
    config_path: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Validate a schedule expression."""
    config = _setup(config_path, verbose)
    try:
        errors = validate_expression(expression, dialect or config.dialect)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if errors:
        for error in errors:
            typer.echo(f"Invalid: {error}", err=True)
        raise typer.Exit(1)

    schedule = _schedule(expression, dialect, config)
    typer.echo(f"Valid: {schedule.to_cron()}")


@app.command(name="parts")
def parts_cmd(
    expression: ExpressionArg,
    dialect: DialectOpt = None,
    format: FormatOpt = "text",
    config_path: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """List the addressable parts of a schedule."""
    _check_format(format)
    config = _setup(config_path, verbose)
    schedule = _schedule(expression, dialect, config)
    infos = [schedule.describe(part.id) for part in schedule.parts]

    if format == "json":
        typer.echo(json.dumps([info.to_dict() for info in infos], indent=2))
        return

    typer.echo(f"{'ID':>4}  {'FIELD':<13} {'KIND':<10} {'TEXT':<12} {'PARENT':>6}  RELATION")
    for info in infos:
        typer.echo(
            f"{info.id:>4}  {info.field_name:<13} {info.kind.value:<10} "
            f"{info.text:<12} {info.parent_id:>6}  {info.relation}"
        )


@app.command(name="presets")
def presets_cmd(
    format: FormatOpt = "text",
) -> None:
    """List predefined schedules."""
    _check_format(format)
    if format == "json":
        typer.echo(json.dumps(PRESETS, indent=2))
        return

    width = max(len(name) for name in PRESETS)
    for name, expression in PRESETS.items():
        typer.echo(f"{name:<{width}}  {expression}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
