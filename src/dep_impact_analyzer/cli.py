"""Command line interface.

Purpose
-------
Thin click adapter: validate the project, run the analysis with settings
from layered configuration plus command line overrides, then render or
serialize the report. All analysis logic lives in :mod:`.analyzer`.

Contents
--------
* :data:`cli` – the click command group
* :func:`main` – console-script entry point
* :class:`ExitCode` – process exit codes
"""

from __future__ import annotations

import json
import logging
from enum import IntEnum
from pathlib import Path

import click

from . import __init__conf__
from .analyzer import AnalysisService, report_to_dict, write_report_json
from .config import get_registry_settings
from .config_show import display_config
from .errors import DependencyAnalysisError, InvalidInputError
from .project_validator import summarize_project, validate_project
from .report import render_project_summary, render_report, render_validation_errors

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    VALIDATION_ERROR = 1
    UNEXPECTED_ERROR = 2
    INVALID_INPUT = 3
    ANALYSIS_ERRORS = 4


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__init__conf__.version, prog_name=__init__conf__.shell_command)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Analyze the impact of dependency updates."""
    _configure_logging(verbose)


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=Path), default=".")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON.")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write the JSON report to a file.")
@click.option("--max-concurrent", type=click.IntRange(min=1), help="Maximum simultaneous registry requests.")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Per-request timeout in seconds.")
@click.option("--retry-attempts", type=click.IntRange(min=1), help="Attempts per package, including the first.")
@click.option("--fail-on-errors", is_flag=True, help="Exit with code 4 if any package could not be analyzed.")
def analyze(
    path: Path,
    as_json: bool,
    output: Path | None,
    max_concurrent: int | None,
    timeout: float | None,
    retry_attempts: int | None,
    fail_on_errors: bool,
) -> None:
    """Analyze the npm project at PATH (defaults to the current directory)."""
    validation = validate_project(path)
    summary = summarize_project(validation)
    if summary is None or validation.manifest is None:
        render_validation_errors(validation.errors)
        raise SystemExit(ExitCode.VALIDATION_ERROR)

    try:
        settings = get_registry_settings().with_overrides(
            max_concurrent=max_concurrent,
            timeout=timeout,
            retry_attempts=retry_attempts,
        )
    except ValueError as exc:
        click.secho(f"Invalid registry configuration: {exc}", fg="red", err=True)
        raise SystemExit(ExitCode.INVALID_INPUT) from exc

    if not as_json:
        click.secho("Dependency Impact Analyzer", bold=True)
        render_project_summary(summary)

    try:
        report = AnalysisService(settings=settings).analyze(validation.manifest)
    except InvalidInputError as exc:
        click.secho(f"Invalid input: {exc}", fg="red", err=True)
        raise SystemExit(ExitCode.INVALID_INPUT) from exc
    except DependencyAnalysisError as exc:
        logger.exception("Dependency analysis failed")
        click.secho(f"An unexpected error occurred: {exc}", fg="red", err=True)
        raise SystemExit(ExitCode.UNEXPECTED_ERROR) from exc

    if as_json:
        click.echo(json.dumps(report_to_dict(report), indent=2))
    else:
        render_report(report)

    if output is not None:
        write_report_json(report, output)

    if fail_on_errors and report.summary.errors:
        raise SystemExit(ExitCode.ANALYSIS_ERRORS)


@cli.command("config")
@click.option("--format", "format_", type=click.Choice(["human", "json"]), default="human", show_default=True)
@click.option("--section", help="Only show this configuration section.")
def config_command(format_: str, section: str | None) -> None:
    """Show the merged configuration."""
    display_config(format=format_, section=section)


@cli.command()
def info() -> None:
    """Print package information."""
    __init__conf__.print_info()


def main() -> None:
    """Console-script entry point."""
    cli(prog_name=__init__conf__.shell_command)


__all__ = [
    "ExitCode",
    "cli",
    "main",
]
