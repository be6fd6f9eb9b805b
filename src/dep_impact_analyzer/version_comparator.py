"""Compare a declared npm version range with the latest published version.

Purpose
-------
Classify how far a declared range trails the registry's latest release and
how disruptive the upgrade would be. Everything in this module is pure and
deterministic, which makes it the natural target for table-driven tests.

Contents
--------
* :func:`compare` - Main entry point returning a :class:`VersionComparison`
* :func:`coerce_version` - Relax a loose version string to ``major.minor.patch``
* :func:`range_satisfies` - npm range matching via ``semantic_version.NpmSpec``
* :func:`version_diff` - Highest-order differing component of two versions
* :func:`impact_for_diff` - Map a diff kind to an impact level

System Role
-----------
Used by the analysis stage for every dependency whose registry metadata
was fetched successfully.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

import semantic_version

from .errors import VersionParseError
from .models import UNKNOWN_COMPARISON, DiffKind, ImpactLevel, VersionComparison, VersionStatus

logger = logging.getLogger(__name__)

# First run of up to three dot-separated numbers anywhere in the string
_RE_VERSION_CORE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_RE_LEADING_NOISE = re.compile(r"^[\sv=]+", re.IGNORECASE)

_IMPACT_BY_DIFF = {
    DiffKind.MAJOR: ImpactLevel.HIGH,
    DiffKind.MINOR: ImpactLevel.MEDIUM,
    DiffKind.PATCH: ImpactLevel.LOW,
}

UP_TO_DATE = VersionComparison(
    status=VersionStatus.UP_TO_DATE,
    diff_kind=DiffKind.NONE,
    impact=ImpactLevel.LOW,
)

AHEAD = VersionComparison(
    status=VersionStatus.AHEAD,
    diff_kind=DiffKind.CUSTOM,
    impact=ImpactLevel.MEDIUM,
)


@lru_cache(maxsize=1024)
def coerce_version(text: str) -> semantic_version.Version:
    """Relax a loosely formatted version string into ``major.minor.patch``.

    Missing minor and patch components default to zero; anything after the
    first numeric run (operators, pre-release tags, build metadata) is
    ignored.

    Args:
        text: Version or range text like ``"^1.2"`` or ``"v3"``.

    Returns:
        The coerced version.

    Raises:
        VersionParseError: If the text contains no numeric version.

    Example:
        >>> str(coerce_version("^16"))
        '16.0.0'
        >>> str(coerce_version(">=1.2.3 <2"))
        '1.2.3'
    """
    match = _RE_VERSION_CORE.search(text or "")
    if match is None:
        raise VersionParseError(f"Cannot coerce {text!r} to a version")
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return semantic_version.Version(major=major, minor=minor, patch=patch)


@lru_cache(maxsize=512)
def _npm_spec(declared_range: str) -> semantic_version.NpmSpec | None:
    """Parse an npm range, returning None when the grammar rejects it."""
    try:
        return semantic_version.NpmSpec(declared_range.strip())
    except ValueError:
        return None


def _exact_version(text: str) -> semantic_version.Version:
    """Parse a published version strictly, falling back to coercion."""
    cleaned = _RE_LEADING_NOISE.sub("", text)
    try:
        return semantic_version.Version(cleaned)
    except ValueError:
        return coerce_version(text)


def range_satisfies(declared_range: str, version: str) -> bool:
    """Check whether an npm range accepts a concrete version.

    Args:
        declared_range: npm range such as ``"^1.0.0"`` or ``">=1 <3 || 4.x"``.
        version: Published version string.

    Returns:
        True if the range accepts the version; False when it does not or
        when either side cannot be parsed.
    """
    spec = _npm_spec(declared_range)
    if spec is None:
        return False
    try:
        return spec.match(_exact_version(version))
    except VersionParseError:
        return False


def version_diff(current: semantic_version.Version, latest: semantic_version.Version) -> DiffKind:
    """Return the highest-order component that differs between two versions."""
    if current.major != latest.major:
        return DiffKind.MAJOR
    if current.minor != latest.minor:
        return DiffKind.MINOR
    if current.patch != latest.patch:
        return DiffKind.PATCH
    return DiffKind.NONE


def impact_for_diff(diff_kind: DiffKind) -> ImpactLevel:
    """Map a diff kind to the impact of upgrading across it."""
    return _IMPACT_BY_DIFF.get(diff_kind, ImpactLevel.UNKNOWN)


def baseline_version(declared_range: str | None) -> str | None:
    """Return the coerced baseline of a declared range, or None."""
    if not declared_range:
        return None
    try:
        return str(coerce_version(declared_range))
    except VersionParseError:
        return None


def compare(declared_range: str | None, latest_version: str | None) -> VersionComparison:
    """Compare a declared range against the latest published version.

    Args:
        declared_range: Range declared in the manifest.
        latest_version: Version the registry's ``latest`` tag points at.

    Returns:
        ``unknown`` when either side is absent or unparsable; ``up-to-date``
        when the range already covers the latest release; ``outdated`` with
        the differing component when the baseline trails; ``ahead``
        otherwise.

    Example:
        >>> compare("^1.0.0", "1.3.0").status.value
        'up-to-date'
        >>> compare("^16.0.0", "18.2.0").impact.value
        'high'
    """
    if not declared_range or not latest_version:
        return UNKNOWN_COMPARISON

    try:
        baseline = coerce_version(declared_range)
        latest = coerce_version(latest_version)
    except VersionParseError as exc:
        logger.debug("Version comparison downgraded to unknown: %s", exc)
        return UNKNOWN_COMPARISON

    if baseline == latest or range_satisfies(declared_range, latest_version):
        return UP_TO_DATE

    if baseline < latest:
        diff_kind = version_diff(baseline, latest)
        return VersionComparison(
            status=VersionStatus.OUTDATED,
            diff_kind=diff_kind,
            impact=impact_for_diff(diff_kind),
        )

    return AHEAD


__all__ = [
    "AHEAD",
    "UP_TO_DATE",
    "baseline_version",
    "coerce_version",
    "compare",
    "impact_for_diff",
    "range_satisfies",
    "version_diff",
]
