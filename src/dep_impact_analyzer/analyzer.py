"""Analysis service that classifies declared dependencies against the registry.

Purpose
-------
Orchestrate the dependency analysis pipeline: flatten the manifest, fetch
registry metadata for every unique package in one batch, compare each
declared range with the latest release, assess security risk, rank the
results and aggregate a summary.

Contents
--------
* :class:`AnalysisService` - Stateless service holding a registry client
* :func:`assess_security_risk` - Risk rule for one classified dependency
* :func:`sort_results` - Deterministic impact-first ordering
* :func:`build_summary` - Aggregate counts and performance snapshot
* :func:`analyze_manifest` / :func:`analyze_project` - Convenience API
* :func:`write_report_json` - Serialize a report to disk

System Role
-----------
The central component that coordinates all other modules to produce the
final report. This is the main entry point for the library.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import RegistrySettings
from .manifest import flatten_manifest, load_manifest
from .models import (
    AnalysisReport,
    AnalysisResult,
    AnalysisSummary,
    BatchResult,
    CacheStats,
    DependencyDeclaration,
    DiffKind,
    ImpactLevel,
    PerformanceSnapshot,
    RegistryRecord,
    SecurityRisk,
    VersionComparison,
    VersionStatus,
)
from .registry_client import RegistryClient
from .schemas import AnalysisReportSchema
from .version_comparator import baseline_version, compare

logger = logging.getLogger(__name__)

_LEVELS = ("high", "medium", "low", "unknown")


def assess_security_risk(comparison: VersionComparison, record: RegistryRecord) -> SecurityRisk:
    """Classify the security risk of a fetched dependency.

    Deprecation dominates; otherwise a major upgrade still pending is a
    medium risk.

    Args:
        comparison: Version comparison for the dependency.
        record: Registry record for the dependency.

    Returns:
        The security risk.
    """
    if record.is_deprecated:
        return SecurityRisk.HIGH
    if comparison.diff_kind is DiffKind.MAJOR and comparison.status is VersionStatus.OUTDATED:
        return SecurityRisk.MEDIUM
    return SecurityRisk.LOW


def _classified_result(declaration: DependencyDeclaration, record: RegistryRecord) -> AnalysisResult:
    """Build the result for a dependency whose metadata was fetched."""
    comparison = compare(declaration.declared_range, record.latest_version)
    return AnalysisResult(
        name=declaration.name,
        declared_range=declaration.declared_range,
        kind=declaration.kind,
        status=comparison.status,
        diff_kind=comparison.diff_kind,
        impact=comparison.impact,
        security_risk=assess_security_risk(comparison, record),
        baseline_version=baseline_version(declaration.declared_range),
        latest_version=record.latest_version,
        description=record.description,
        repository_url=record.repository_url,
        license=record.license,
        deprecated_message=record.deprecated_message,
        published_at=record.published_at,
    )


def _errored_result(declaration: DependencyDeclaration, batch: BatchResult) -> AnalysisResult:
    """Build the result for a dependency whose fetch failed."""
    failure = batch.errors.get(declaration.name)
    return AnalysisResult(
        name=declaration.name,
        declared_range=declaration.declared_range,
        kind=declaration.kind,
        status=VersionStatus.ERROR,
        diff_kind=DiffKind.NONE,
        impact=ImpactLevel.UNKNOWN,
        security_risk=SecurityRisk.UNKNOWN,
        baseline_version=baseline_version(declaration.declared_range),
        error=failure.message if failure else "No registry data available",
        error_kind=failure.kind if failure else None,
    )


def _build_result(declaration: DependencyDeclaration, batch: BatchResult) -> AnalysisResult:
    record = batch.records.get(declaration.name)
    if record is None:
        return _errored_result(declaration, batch)
    return _classified_result(declaration, record)


def _sort_key(result: AnalysisResult) -> tuple[int, str, str]:
    return (-result.impact.rank, result.name.lower(), result.name)


def sort_results(results: Iterable[AnalysisResult]) -> list[AnalysisResult]:
    """Order results by impact (high first), then by package name.

    Args:
        results: Results in any order.

    Returns:
        A new, deterministically ordered list.
    """
    return sorted(results, key=_sort_key)


def _level_counts(values: Iterable[str]) -> dict[str, int]:
    """Count values into fixed high/medium/low/unknown buckets."""
    counts = Counter(values)
    return {level: counts.get(level, 0) for level in _LEVELS}


def _success_rate(succeeded: int, requested: int) -> int:
    """Return the success percentage rounded half up; 0 when nothing was requested."""
    if requested <= 0:
        return 0
    return math.floor(succeeded * 100 / requested + 0.5)


def build_summary(
    results: list[AnalysisResult],
    batch: BatchResult,
    cache_stats: CacheStats,
) -> AnalysisSummary:
    """Aggregate an analysis result list into a summary.

    Args:
        results: Classified results.
        batch: Batch fetch outcome the results were built from.
        cache_stats: Client cache statistics after the fetch.

    Returns:
        Summary whose impact and security-risk buckets each sum to the
        total.
    """
    statuses = Counter(result.status for result in results)
    errors = statuses[VersionStatus.ERROR]
    return AnalysisSummary(
        total=len(results),
        analyzed=len(results) - errors,
        errors=errors,
        up_to_date=statuses[VersionStatus.UP_TO_DATE],
        outdated=statuses[VersionStatus.OUTDATED],
        ahead=statuses[VersionStatus.AHEAD],
        unknown=statuses[VersionStatus.UNKNOWN],
        impact_levels=_level_counts(result.impact.value for result in results),
        security_risks=_level_counts(result.security_risk.value for result in results),
        performance=PerformanceSnapshot(
            requested=batch.requested,
            succeeded=batch.succeeded,
            failed=batch.failed,
            success_rate=_success_rate(batch.succeeded, batch.requested),
            cache_size=cache_stats.cache_size,
            pending_requests=cache_stats.pending_count,
        ),
    )


@dataclass
class AnalysisService:
    """Turn a manifest plus registry data into a ranked, classified report.

    The service keeps no state between calls apart from its registry
    client, whose cache makes repeated analyses cheap.

    Attributes:
        settings: Registry settings used when no client is supplied.
        client: The registry client; created from ``settings`` if omitted.
    """

    settings: RegistrySettings = field(default_factory=RegistrySettings)
    client: RegistryClient = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        """Create the registry client when none was injected."""
        if self.client is None:
            self.client = RegistryClient(self.settings)

    async def analyze_async(self, manifest: Mapping[str, Any]) -> AnalysisReport:
        """Analyze a manifest asynchronously.

        Args:
            manifest: Parsed manifest with optional ``dependencies`` and
                ``devDependencies`` maps.

        Returns:
            Sorted results, summary and cache statistics.

        Raises:
            InvalidInputError: If the manifest is None or not a mapping.
        """
        declarations = flatten_manifest(manifest)
        if not declarations:
            logger.info("No dependencies declared; nothing to analyze")
            return AnalysisReport(cache_stats=self.client.cache_stats())

        batch = await self.client.fetch_batch(declaration.name for declaration in declarations)
        results = sort_results(_build_result(declaration, batch) for declaration in declarations)
        cache_stats = self.client.cache_stats()
        summary = build_summary(results, batch, cache_stats)

        logger.info("Analysis complete: %d/%d packages analyzed", summary.analyzed, summary.total)
        if summary.errors:
            logger.warning("%d packages had errors during analysis", summary.errors)

        return AnalysisReport(results=results, summary=summary, cache_stats=cache_stats)

    def analyze(self, manifest: Mapping[str, Any]) -> AnalysisReport:
        """Synchronous wrapper for analyze_async.

        Args:
            manifest: Parsed manifest.

        Returns:
            Complete analysis report.
        """
        return asyncio.run(self.analyze_async(manifest))

    def clear_cache(self) -> None:
        """Forget cached registry records and failures."""
        self.client.clear_cache()


def create_service(settings: RegistrySettings | None = None) -> AnalysisService:
    """Create an AnalysisService with the given settings.

    Args:
        settings: Registry settings; library defaults when None.

    Returns:
        Configured service instance.
    """
    return AnalysisService(settings=settings or RegistrySettings())


def analyze_manifest(
    manifest: Mapping[str, Any],
    *,
    settings: RegistrySettings | None = None,
) -> AnalysisReport:
    """Analyze an already parsed manifest and return the full report.

    Example:
        >>> report = analyze_manifest({"dependencies": {"react": "^16.0.0"}})  # doctest: +SKIP
        >>> report.results[0].impact  # doctest: +SKIP
        <ImpactLevel.HIGH: 'high'>
    """
    return create_service(settings).analyze(manifest)


def analyze_project(
    path: Path | str,
    *,
    settings: RegistrySettings | None = None,
) -> AnalysisReport:
    """Load a project's package.json and analyze it.

    Args:
        path: package.json file or the directory holding it.
        settings: Registry settings; library defaults when None.

    Returns:
        Complete analysis report.

    Raises:
        ManifestError: If the manifest cannot be loaded.
    """
    return analyze_manifest(load_manifest(path), settings=settings)


def report_to_dict(report: AnalysisReport) -> dict[str, Any]:
    """Convert a report to a JSON-compatible dictionary."""
    schema = AnalysisReportSchema.model_validate(report, from_attributes=True)
    return schema.model_dump(mode="json")


def write_report_json(report: AnalysisReport, output_path: Path | str) -> None:
    """Write an analysis report to a JSON file.

    Uses Pydantic for type-safe JSON serialization at the output boundary.

    Args:
        report: The report to write.
        output_path: Path to the output JSON file.

    Raises:
        ValueError: If output_path is a directory.
    """
    path = Path(output_path).resolve()

    if path.is_dir():
        raise ValueError(f"Output path must be a file, not a directory: {path}")

    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(report_to_dict(report), f, indent=2)

    logger.info("Wrote %d results to %s", len(report.results), path)


__all__ = [
    "AnalysisService",
    "analyze_manifest",
    "analyze_project",
    "assess_security_risk",
    "build_summary",
    "create_service",
    "report_to_dict",
    "sort_results",
    "write_report_json",
]
