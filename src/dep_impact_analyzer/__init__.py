"""Public package surface for dependency impact analysis and configuration.

This package reports, for an npm project's declared dependencies, how far
each declared version range trails the latest published release and how
disruptive an upgrade would be.

Main API
--------
* :func:`analyze_manifest` - Analyze a parsed package.json
* :func:`analyze_project` - Load a project's package.json and analyze it
* :class:`AnalysisService` - Stateless service holding a cached registry client
* :class:`RegistryClient` - Concurrent, caching, single-flight registry client
* :func:`compare` - Pure declared-range versus latest-version comparison
"""

from __future__ import annotations

from .__init__conf__ import print_info
from .analyzer import AnalysisService, analyze_manifest, analyze_project, write_report_json
from .config import RegistrySettings, get_config, get_registry_settings
from .errors import (
    DependencyAnalysisError,
    InvalidInputError,
    ManifestError,
    PackageNotFoundError,
    RateLimitedError,
    RegistryError,
    RegistryTimeoutError,
    RegistryTransportError,
    VersionParseError,
)
from .models import (
    AnalysisReport,
    AnalysisResult,
    AnalysisSummary,
    DependencyDeclaration,
    DependencyKind,
    DiffKind,
    ErrorKind,
    ImpactLevel,
    RegistryRecord,
    SecurityRisk,
    VersionComparison,
    VersionStatus,
)
from .registry_client import RegistryClient
from .version_comparator import compare

__all__ = [
    "AnalysisReport",
    "AnalysisResult",
    "AnalysisService",
    "AnalysisSummary",
    "DependencyAnalysisError",
    "DependencyDeclaration",
    "DependencyKind",
    "DiffKind",
    "ErrorKind",
    "ImpactLevel",
    "InvalidInputError",
    "ManifestError",
    "PackageNotFoundError",
    "RateLimitedError",
    "RegistryClient",
    "RegistryError",
    "RegistryRecord",
    "RegistrySettings",
    "RegistryTimeoutError",
    "RegistryTransportError",
    "SecurityRisk",
    "VersionComparison",
    "VersionParseError",
    "VersionStatus",
    "analyze_manifest",
    "analyze_project",
    "compare",
    "get_config",
    "get_registry_settings",
    "print_info",
    "write_report_json",
]
