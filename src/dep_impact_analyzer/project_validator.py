"""Check that a directory is an analysable npm project under git.

Every problem found is collected so the user can fix them all at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ManifestError
from .manifest import MANIFEST_FILENAME, DependencySection, load_manifest

logger = logging.getLogger(__name__)

GIT_NO_DIR = "No .git directory found. This project must be a git repository."
GIT_NO_CONFIG = "Git repository appears to be corrupted (no config file found)."
GIT_NO_COMMITS = "Git repository has no commits. Please make an initial commit first."
NPM_NO_PACKAGE_JSON = "No package.json found. This doesn't appear to be an npm project."
NPM_NO_NAME = 'package.json is missing required "name" field'
NPM_NO_DEPENDENCIES = "No dependencies found in package.json. Nothing to analyze."


@dataclass(slots=True)
class ProjectValidation:
    """Outcome of validating a project directory."""

    path: Path
    errors: list[str] = field(default_factory=list)
    manifest: dict[str, Any] | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True, slots=True)
class ProjectSummary:
    """Headline facts about a validated project."""

    name: str
    version: str
    path: Path
    dependency_count: int
    dev_dependency_count: int

    @property
    def total_dependencies(self) -> int:
        return self.dependency_count + self.dev_dependency_count


def _check_manifest(project: Path) -> tuple[list[str], dict[str, Any] | None]:
    if not (project / MANIFEST_FILENAME).is_file():
        return [NPM_NO_PACKAGE_JSON], None

    try:
        manifest = load_manifest(project)
    except ManifestError as exc:
        return [str(exc)], None

    if not manifest.get("name"):
        return [NPM_NO_NAME], None
    has_deps = any(manifest.get(section.value) for section in DependencySection)
    if not has_deps:
        return [NPM_NO_DEPENDENCIES], None
    return [], manifest


def _has_commits(git_dir: Path) -> bool:
    heads = git_dir / "refs" / "heads"
    if heads.is_dir() and any(ref.is_file() for ref in heads.rglob("*")):
        return True
    # Refs of freshly cloned or gc'ed repositories live in packed-refs
    return (git_dir / "packed-refs").is_file()


def _check_git(project: Path) -> list[str]:
    git_dir = project / ".git"
    if not git_dir.is_dir():
        return [GIT_NO_DIR]
    if not (git_dir / "config").is_file():
        return [GIT_NO_CONFIG]
    if not _has_commits(git_dir):
        return [GIT_NO_COMMITS]
    return []


def validate_project(path: Path | str = ".") -> ProjectValidation:
    """Validate that ``path`` holds an npm project inside a git repository.

    Args:
        path: Project directory.

    Returns:
        The validation outcome; ``manifest`` is set when the npm checks pass.
    """
    project = Path(path).resolve()
    manifest_errors, manifest = _check_manifest(project)
    git_errors = _check_git(project)

    validation = ProjectValidation(path=project, errors=[*manifest_errors, *git_errors], manifest=manifest)
    logger.debug("Validated %s: %d problem(s)", project, len(validation.errors))
    return validation


def summarize_project(validation: ProjectValidation) -> ProjectSummary | None:
    """Build a project summary, or None when the validation failed."""
    if not validation.is_valid or validation.manifest is None:
        return None

    manifest = validation.manifest
    deps = manifest.get(DependencySection.DEPENDENCIES.value)
    dev_deps = manifest.get(DependencySection.DEV_DEPENDENCIES.value)
    return ProjectSummary(
        name=str(manifest.get("name") or "Unknown"),
        version=str(manifest.get("version") or "0.0.0"),
        path=validation.path,
        dependency_count=len(deps) if isinstance(deps, dict) else 0,
        dev_dependency_count=len(dev_deps) if isinstance(dev_deps, dict) else 0,
    )


__all__ = [
    "ProjectSummary",
    "ProjectValidation",
    "summarize_project",
    "validate_project",
]
