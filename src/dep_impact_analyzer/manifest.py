"""Load package.json manifests and flatten their dependency maps.

Purpose
-------
Turn a manifest into the list of dependency declarations the analysis
works on, tolerating missing or malformed dependency sections.

Contents
--------
* :func:`load_manifest` - Load and parse a package.json file
* :func:`flatten_manifest` - Flatten production and development maps
* :class:`DependencySection` - Enum of the manifest sections read

System Role
-----------
The first stage of the analysis pipeline. Reads the manifest and collects
declarations; a name declared in both sections counts as production.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, cast

from .errors import InvalidInputError, ManifestError
from .models import DependencyDeclaration, DependencyKind

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"


class DependencySection(str, Enum):
    """Manifest sections that contain dependencies."""

    DEPENDENCIES = "dependencies"
    DEV_DEPENDENCIES = "devDependencies"


def resolve_manifest_path(path: Path | str) -> Path:
    """Return the manifest file for a project directory or file path."""
    path = Path(path)
    return path / MANIFEST_FILENAME if path.is_dir() else path


def load_manifest(path: Path | str) -> dict[str, Any]:
    """Load and parse a package.json file.

    Args:
        path: Path to the package.json file or to the directory holding it.

    Returns:
        Parsed manifest content.

    Raises:
        ManifestError: If the file is missing, is not valid JSON, or does
            not contain a JSON object.
    """
    manifest_path = resolve_manifest_path(path)
    try:
        with manifest_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise ManifestError(f"No {MANIFEST_FILENAME} found at {manifest_path}") from exc
    except (OSError, ValueError) as exc:
        raise ManifestError(f"Invalid {MANIFEST_FILENAME}: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(f"Invalid {MANIFEST_FILENAME}: top-level value must be an object")
    return cast(dict[str, Any], data)


def _section(manifest: Mapping[str, Any], section: DependencySection) -> Mapping[str, Any]:
    """Return a dependency map, treating missing or malformed ones as empty."""
    deps = manifest.get(section.value)
    if not isinstance(deps, Mapping):
        if deps is not None:
            logger.warning("Ignoring malformed %s section (%s)", section.value, type(deps).__name__)
        return {}
    return cast(Mapping[str, Any], deps)


def _declare(name: str, spec: Any, kind: DependencyKind) -> DependencyDeclaration:
    return DependencyDeclaration(
        name=name,
        declared_range=spec.strip() if isinstance(spec, str) else "",
        kind=kind,
    )


def flatten_manifest(manifest: Any) -> list[DependencyDeclaration]:
    """Flatten production and development dependency maps.

    Production declarations come first, in manifest order, followed by
    development-only declarations.

    Args:
        manifest: Parsed manifest mapping.

    Returns:
        One declaration per unique package name.

    Raises:
        InvalidInputError: If the manifest is None or not a mapping.

    Example:
        >>> decls = flatten_manifest({"dependencies": {"a": "^1"}, "devDependencies": {"a": "^2", "b": "~3"}})
        >>> [(d.name, d.declared_range, d.kind.value) for d in decls]
        [('a', '^1', 'production'), ('b', '~3', 'development')]
    """
    if manifest is None or not isinstance(manifest, Mapping):
        raise InvalidInputError("Invalid package.json data provided")

    manifest = cast(Mapping[str, Any], manifest)
    declarations: dict[str, DependencyDeclaration] = {}

    for name, spec in _section(manifest, DependencySection.DEPENDENCIES).items():
        if isinstance(name, str):
            declarations[name] = _declare(name, spec, DependencyKind.PRODUCTION)

    for name, spec in _section(manifest, DependencySection.DEV_DEPENDENCIES).items():
        if isinstance(name, str) and name not in declarations:
            declarations[name] = _declare(name, spec, DependencyKind.DEVELOPMENT)

    logger.debug("Flattened %d dependency declarations", len(declarations))
    return list(declarations.values())


__all__ = [
    "DependencySection",
    "MANIFEST_FILENAME",
    "flatten_manifest",
    "load_manifest",
    "resolve_manifest_path",
]
