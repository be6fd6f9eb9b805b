"""Pydantic schemas for external data boundaries.

Purpose
-------
Define Pydantic models for data that crosses system boundaries:
- Input: Parsing registry packument JSON
- Output: JSON serialization of analysis reports

These models handle validation, coercion, and serialization at the edges
while internal business logic uses lightweight dataclasses.

Data Flow Pattern
-----------------
Registry JSON → Pydantic (validate) → Dataclass (domain) → Pydantic (serialize) → External Output
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import DependencyKind, DiffKind, ErrorKind, ImpactLevel, SecurityRisk, VersionStatus


def _text_or_none(value: Any) -> str | None:
    """Keep strings; legacy or hand-edited documents may carry other shapes."""
    return value if isinstance(value, str) else None


def _flag_or_text(value: Any) -> str | bool | None:
    return value if isinstance(value, (str, bool)) else None


class PackumentVersionSchema(BaseModel):
    """Schema for one entry of a packument's ``versions`` map."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    deprecated: str | bool | None = None

    @field_validator("deprecated", mode="before")
    @classmethod
    def _lenient_deprecated(cls, value: Any) -> str | bool | None:
        return _flag_or_text(value)


class PackumentSchema(BaseModel):
    """Schema for the registry's full package document (packument).

    Only the fields the analysis reads are declared; ``versions`` is kept
    loosely typed so that thousands of historic versions are not
    validated just to read the latest one. Optional metadata of an
    unexpected shape is dropped rather than rejected, so only a missing
    document structure fails validation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str = ""
    description: str | None = None
    dist_tags: dict[str, str] = Field(default_factory=dict, alias="dist-tags")
    versions: dict[str, Any] = Field(default_factory=dict)
    time: dict[str, Any] = Field(default_factory=dict)
    repository: str | dict[str, Any] | list[Any] | None = None
    homepage: str | None = None
    license: str | dict[str, Any] | list[Any] | None = None
    deprecated: str | bool | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _lenient_name(cls, value: Any) -> str:
        return _text_or_none(value) or ""

    @field_validator("description", "homepage", mode="before")
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        return _text_or_none(value)

    @field_validator("dist_tags", mode="before")
    @classmethod
    def _string_tags(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {tag: version for tag, version in value.items() if isinstance(version, str)}

    @field_validator("versions", "time", mode="before")
    @classmethod
    def _lenient_map(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @field_validator("repository", "license", mode="before")
    @classmethod
    def _lenient_reference(cls, value: Any) -> str | dict[str, Any] | list[Any] | None:
        return value if isinstance(value, (str, dict, list)) else None

    @field_validator("deprecated", mode="before")
    @classmethod
    def _lenient_deprecated(cls, value: Any) -> str | bool | None:
        return _flag_or_text(value)

    @property
    def latest(self) -> str | None:
        """Return the version the ``latest`` dist-tag points at."""
        return self.dist_tags.get("latest") or None

    def latest_manifest(self) -> PackumentVersionSchema:
        """Return the validated ``versions`` entry of the latest release."""
        entry = self.versions.get(self.latest or "")
        if not isinstance(entry, dict):
            return PackumentVersionSchema()
        return PackumentVersionSchema.model_validate(entry)


class AnalysisResultSchema(BaseModel):
    """Pydantic schema for serializing one classified dependency."""

    model_config = ConfigDict(frozen=True, from_attributes=True, use_enum_values=True)

    name: str = Field(description="The name of the package")
    declared_range: str = Field(description="Version range declared in the manifest")
    kind: DependencyKind = Field(description="Production or development dependency")
    status: VersionStatus = Field(description="Comparison outcome")
    diff_kind: DiffKind = Field(description="Highest-order differing version component")
    impact: ImpactLevel = Field(description="Upgrade impact")
    security_risk: SecurityRisk = Field(description="Security risk classification")
    baseline_version: str | None = None
    latest_version: str | None = None
    description: str | None = None
    repository_url: str | None = None
    license: str | None = None
    deprecated_message: str | None = None
    published_at: datetime | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


class PerformanceSnapshotSchema(BaseModel):
    """Schema for the registry traffic snapshot."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    requested: int = 0
    succeeded: int = 0
    failed: int = 0
    success_rate: int = 0
    cache_size: int = 0
    pending_requests: int = 0


class AnalysisSummarySchema(BaseModel):
    """Schema for the aggregate summary."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    total: int = 0
    analyzed: int = 0
    errors: int = 0
    up_to_date: int = 0
    outdated: int = 0
    ahead: int = 0
    unknown: int = 0
    impact_levels: dict[str, int] = Field(default_factory=dict)
    security_risks: dict[str, int] = Field(default_factory=dict)
    performance: PerformanceSnapshotSchema = Field(default_factory=PerformanceSnapshotSchema)


class CacheStatsSchema(BaseModel):
    """Schema for the registry client's cache statistics."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    cache_size: int = 0
    pending_count: int = 0


def _empty_result_list() -> list[AnalysisResultSchema]:
    """Return empty list for default factory."""
    return []


class AnalysisReportSchema(BaseModel):
    """Pydantic schema for complete analysis report serialization."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    results: list[AnalysisResultSchema] = Field(default_factory=_empty_result_list)
    summary: AnalysisSummarySchema = Field(default_factory=AnalysisSummarySchema)
    cache_stats: CacheStatsSchema = Field(default_factory=CacheStatsSchema)


__all__ = [
    "AnalysisReportSchema",
    "AnalysisResultSchema",
    "AnalysisSummarySchema",
    "CacheStatsSchema",
    "PackumentSchema",
    "PackumentVersionSchema",
    "PerformanceSnapshotSchema",
]
