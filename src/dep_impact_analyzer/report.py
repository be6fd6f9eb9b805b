"""Console rendering of analysis reports.

Purpose
-------
Present an :class:`AnalysisReport` to a human: summary counts, impact and
security-risk breakdowns, then the outdated, deprecated, high impact and
errored dependencies, and finally the registry performance figures.

Contents
--------
* :func:`render_report` – print a full report
* :func:`render_project_summary` – print the validated project's headline
* :func:`render_validation_errors` – print validation problems

System Role
-----------
Presentation layer for the CLI. Holds no analysis logic; everything shown
is read from the report.
"""

from __future__ import annotations

from collections.abc import Iterable

import click

from .models import (
    AnalysisReport,
    AnalysisResult,
    AnalysisSummary,
    CacheStats,
    DependencyKind,
    ImpactLevel,
    VersionStatus,
)
from .project_validator import ProjectSummary

_DESCRIPTION_WIDTH = 80

_IMPACT_COLOURS = {
    ImpactLevel.HIGH: "red",
    ImpactLevel.MEDIUM: "yellow",
    ImpactLevel.LOW: "green",
    ImpactLevel.UNKNOWN: "white",
}


def _section(title: str) -> None:
    click.echo()
    click.secho(f"{title}:", fg="cyan", bold=True)


def _key_value(key: str, value: object, indent: int = 3) -> None:
    click.echo(f"{' ' * indent}{key}: {click.style(str(value), bold=True)}")


def _item(message: str, indent: int = 3, fg: str | None = None) -> None:
    click.echo(f"{' ' * indent}• {click.style(message, fg=fg) if fg else message}")


def _impact_marker(impact: ImpactLevel) -> str:
    return click.style(f"[{impact.value}]", fg=_IMPACT_COLOURS[impact])


def _truncate(text: str, width: int = _DESCRIPTION_WIDTH) -> str:
    return text if len(text) <= width else f"{text[:width]}..."


def render_validation_errors(errors: Iterable[str]) -> None:
    """Print project validation problems."""
    click.secho("Project validation failed:", fg="red", err=True)
    for error in errors:
        click.echo(f"   • {error}", err=True)


def render_project_summary(summary: ProjectSummary) -> None:
    """Print the headline facts of a validated project."""
    _section("Project Summary")
    _key_value("Name", summary.name)
    _key_value("Version", summary.version)
    _key_value("Path", summary.path)
    _key_value("Dependencies", summary.dependency_count)
    _key_value("Dev Dependencies", summary.dev_dependency_count)
    _key_value("Total to analyze", summary.total_dependencies)


def _render_summary(summary: AnalysisSummary) -> None:
    _key_value("Total Dependencies", summary.total)
    _key_value("Successfully Analyzed", f"{summary.analyzed}/{summary.total}")
    _key_value("Up to Date", summary.up_to_date)
    _key_value("Outdated", summary.outdated)
    if summary.ahead:
        _key_value("Ahead of Latest", summary.ahead)
    if summary.unknown:
        _key_value("Unknown", summary.unknown)
    if summary.errors:
        _key_value("Errors", summary.errors)

    _section("Impact Levels")
    _item(f"High Impact: {summary.impact_levels['high']}", fg="red")
    _item(f"Medium Impact: {summary.impact_levels['medium']}", fg="yellow")
    _item(f"Low Impact: {summary.impact_levels['low']}", fg="green")

    _section("Security Risk Assessment")
    _item(f"High Risk: {summary.security_risks['high']}", fg="red")
    _item(f"Medium Risk: {summary.security_risks['medium']}", fg="yellow")
    _item(f"Low Risk: {summary.security_risks['low']}", fg="green")


def _render_outdated(outdated: list[AnalysisResult]) -> None:
    _section("Outdated Dependencies")
    for result in outdated:
        kind = "prod" if result.kind is DependencyKind.PRODUCTION else "dev"
        _item(
            f"{_impact_marker(result.impact)} ({kind}) {result.name}: "
            f"{result.declared_range} → {result.latest_version} ({result.diff_kind.value})"
        )
        if result.description:
            click.echo(f"     Description: {_truncate(result.description)}")


def _render_deprecated(deprecated: list[AnalysisResult]) -> None:
    _section("Deprecated Dependencies")
    for result in deprecated:
        _item(f"{result.name}: {result.declared_range}", fg="red")
        _item(str(result.deprecated_message), indent=5)


def _render_high_impact(high_impact: list[AnalysisResult]) -> None:
    _section("High Impact Updates")
    for result in high_impact:
        _item(f"{result.name}: {result.declared_range} → {result.latest_version}")
        _item(f"Update Type: {result.diff_kind.value}", indent=5)
        if result.repository_url:
            _item(f"Repository: {result.repository_url}", indent=5)


def _render_errors(errored: list[AnalysisResult]) -> None:
    _section("Analysis Errors")
    for result in errored:
        _item(f"{result.name}: {result.error}", fg="red")


def _render_performance(summary: AnalysisSummary, cache_stats: CacheStats) -> None:
    _section("Performance Metrics")
    _key_value("Success Rate", f"{summary.performance.success_rate}%")
    _key_value("Packages Requested", summary.performance.requested)
    _key_value("Cached Packages", cache_stats.cache_size)


def render_report(report: AnalysisReport) -> None:
    """Print a full analysis report.

    Args:
        report: Report returned by the analysis service.
    """
    results = report.results
    _section("Dependency Analysis Results")
    _render_summary(report.summary)

    outdated = [r for r in results if r.status is VersionStatus.OUTDATED]
    if outdated:
        _render_outdated(outdated)

    deprecated = [r for r in results if r.deprecated_message]
    if deprecated:
        _render_deprecated(deprecated)

    high_impact = [r for r in results if r.impact is ImpactLevel.HIGH]
    if high_impact:
        _render_high_impact(high_impact)

    errored = [r for r in results if r.status is VersionStatus.ERROR]
    if errored:
        _render_errors(errored)

    if report.summary.total:
        _render_performance(report.summary, report.cache_stats)


__all__ = [
    "render_project_summary",
    "render_report",
    "render_validation_errors",
]
