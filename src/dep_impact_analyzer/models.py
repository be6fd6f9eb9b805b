"""Domain models for dependency impact analysis (dataclasses).

Purpose
-------
Define core data structures for the analysis domain layer. These are pure
dataclasses used for internal business logic.

For external data serialization, use the Pydantic schemas in schemas.py.

Contents
--------
* :class:`DependencyKind` - Production or development dependency
* :class:`VersionStatus` - Outcome of comparing a range with the latest release
* :class:`DiffKind` - Highest-order version component that differs
* :class:`ImpactLevel` - Qualitative severity of upgrading
* :class:`SecurityRisk` - Risk classification, elevated by deprecation
* :class:`ErrorKind` - Per-package registry failure classes
* :class:`DependencyDeclaration` - One declared dependency from a manifest
* :class:`RegistryRecord` - Registry metadata subset used by the analysis
* :class:`VersionComparison` - Result of the pure version comparison
* :class:`AnalysisResult` - Classified dependency
* :class:`AnalysisSummary` - Aggregate counts plus performance snapshot
* :class:`AnalysisReport` - Results, summary and cache statistics

Data Flow Pattern
-----------------
Manifest → DependencyDeclaration → RegistryRecord + VersionComparison
→ AnalysisResult → AnalysisSummary → Pydantic (serialize) → Output

System Role
-----------
Provides the canonical data structures that flow through the analysis
pipeline. These dataclasses are dependency-free.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class DependencyKind(str, Enum):
    """Which manifest map a dependency was declared in."""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class VersionStatus(str, Enum):
    """Status of a dependency relative to its latest published release.

    Attributes:
        UP_TO_DATE: The declared range already covers the latest release.
        OUTDATED: The declared baseline trails the latest release.
        AHEAD: The declared baseline exceeds the latest release (pinned
            pre-release or private fork).
        UNKNOWN: Either version could not be parsed.
        ERROR: Registry metadata could not be fetched.
    """

    UP_TO_DATE = "up-to-date"
    OUTDATED = "outdated"
    AHEAD = "ahead"
    UNKNOWN = "unknown"
    ERROR = "error"


class DiffKind(str, Enum):
    """Which version component differs between baseline and latest."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"
    CUSTOM = "custom"


class ImpactLevel(str, Enum):
    """Upgrade impact, ordered by :attr:`rank` for sorting."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        """Return the sort weight (higher is more disruptive)."""
        return _IMPACT_RANK[self]


_IMPACT_RANK = {
    ImpactLevel.HIGH: 3,
    ImpactLevel.MEDIUM: 2,
    ImpactLevel.LOW: 1,
    ImpactLevel.UNKNOWN: 0,
}


class SecurityRisk(str, Enum):
    """Security classification of a dependency.

    ``UNKNOWN`` is only assigned when registry metadata could not be
    fetched, so that every result falls into exactly one bucket.
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


class ErrorKind(str, Enum):
    """Terminal registry failure classes."""

    NOT_FOUND = "not-found"
    RATE_LIMITED = "rate-limited"
    TIMEOUT = "timeout"
    TRANSPORT = "transport-error"


@dataclass(frozen=True, slots=True)
class DependencyDeclaration:
    """A dependency as declared in the manifest.

    Attributes:
        name: Package name exactly as written in the manifest.
        declared_range: Version specifier (e.g. ``"^1.2.0"``); empty when the
            manifest value was not a string.
        kind: Production when present in ``dependencies`` at all.
    """

    name: str
    declared_range: str
    kind: DependencyKind


@dataclass(frozen=True, slots=True)
class RegistryRecord:
    """Subset of a registry packument used by the analysis stage."""

    name: str
    latest_version: str | None
    description: str = ""
    repository_url: str | None = None
    homepage: str | None = None
    license: str | None = None
    deprecated_message: str | None = None
    published_at: datetime | None = None

    @property
    def is_deprecated(self) -> bool:
        """Return True when the registry flags the package as deprecated."""
        return bool(self.deprecated_message)


@dataclass(frozen=True, slots=True)
class FetchFailure:
    """Terminal failure for one package in a batch fetch."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Outcome of fetching a set of package names.

    Attributes:
        records: Resolved records keyed by the requested name.
        errors: Failures keyed by the requested name.
        requested: Number of unique names requested.
        succeeded: Number of names resolved to a record.
        failed: Number of names that ended in an error.
    """

    records: dict[str, RegistryRecord] = field(default_factory=dict)
    errors: dict[str, FetchFailure] = field(default_factory=dict)
    requested: int = 0
    succeeded: int = 0
    failed: int = 0


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of a registry client's cache table."""

    cache_size: int
    pending_count: int


@dataclass(frozen=True, slots=True)
class VersionComparison:
    """Result of comparing a declared range with the latest version."""

    status: VersionStatus
    diff_kind: DiffKind
    impact: ImpactLevel


UNKNOWN_COMPARISON = VersionComparison(
    status=VersionStatus.UNKNOWN,
    diff_kind=DiffKind.NONE,
    impact=ImpactLevel.UNKNOWN,
)


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Classified dependency, one per declaration.

    Registry fields are None when the fetch failed; in that case
    ``error`` holds the failure message verbatim.
    """

    name: str
    declared_range: str
    kind: DependencyKind
    status: VersionStatus
    diff_kind: DiffKind
    impact: ImpactLevel
    security_risk: SecurityRisk
    baseline_version: str | None = None
    latest_version: str | None = None
    description: str | None = None
    repository_url: str | None = None
    license: str | None = None
    deprecated_message: str | None = None
    published_at: datetime | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


def _empty_level_counts() -> dict[str, int]:
    """Return zeroed high/medium/low/unknown buckets."""
    return {"high": 0, "medium": 0, "low": 0, "unknown": 0}


@dataclass(frozen=True, slots=True)
class PerformanceSnapshot:
    """Registry traffic figures for one analysis run.

    ``requested`` counts unique packages looked up, not HTTP attempts.
    """

    requested: int = 0
    succeeded: int = 0
    failed: int = 0
    success_rate: int = 0
    cache_size: int = 0
    pending_requests: int = 0


@dataclass(frozen=True, slots=True)
class AnalysisSummary:
    """Aggregate counts derived from an analysis result list.

    Attributes:
        total: Number of analysed declarations.
        analyzed: Declarations that were not errored (``total - errors``).
        errors: Declarations whose registry fetch failed.
        up_to_date: Declarations whose range covers the latest release.
        outdated: Declarations trailing the latest release.
        ahead: Declarations ahead of the latest release.
        unknown: Declarations whose versions could not be compared.
        impact_levels: Counts per impact level; sums to ``total``.
        security_risks: Counts per security risk; sums to ``total``.
        performance: Registry traffic snapshot.
    """

    total: int = 0
    analyzed: int = 0
    errors: int = 0
    up_to_date: int = 0
    outdated: int = 0
    ahead: int = 0
    unknown: int = 0
    impact_levels: dict[str, int] = field(default_factory=_empty_level_counts)
    security_risks: dict[str, int] = field(default_factory=_empty_level_counts)
    performance: PerformanceSnapshot = field(default_factory=PerformanceSnapshot)


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    """Everything an analysis run hands to the presentation layer."""

    results: list[AnalysisResult] = field(default_factory=list)
    summary: AnalysisSummary = field(default_factory=AnalysisSummary)
    cache_stats: CacheStats = field(default_factory=lambda: CacheStats(cache_size=0, pending_count=0))


__all__ = [
    "AnalysisReport",
    "AnalysisResult",
    "AnalysisSummary",
    "BatchResult",
    "CacheStats",
    "DependencyDeclaration",
    "DependencyKind",
    "DiffKind",
    "ErrorKind",
    "FetchFailure",
    "ImpactLevel",
    "PerformanceSnapshot",
    "RegistryRecord",
    "SecurityRisk",
    "UNKNOWN_COMPARISON",
    "VersionComparison",
    "VersionStatus",
]
