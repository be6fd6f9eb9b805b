"""Project validator stories: only committed npm projects get analyzed.

Every problem is collected at once, so the tests build small project
trees under tmp_path and inspect the full error list.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from dep_impact_analyzer.project_validator import (
    GIT_NO_COMMITS,
    GIT_NO_CONFIG,
    GIT_NO_DIR,
    NPM_NO_DEPENDENCIES,
    NPM_NO_NAME,
    NPM_NO_PACKAGE_JSON,
    summarize_project,
    validate_project,
)


def _write_manifest(project: Path, manifest: dict[str, Any]) -> None:
    (project / "package.json").write_text(json.dumps(manifest), encoding="utf-8")


def _init_git(project: Path, *, config: bool = True, commit: bool = True) -> None:
    git_dir = project / ".git"
    (git_dir / "refs" / "heads").mkdir(parents=True)
    if config:
        (git_dir / "config").write_text("[core]\n", encoding="utf-8")
    if commit:
        (git_dir / "refs" / "heads" / "main").write_text("0" * 40 + "\n", encoding="utf-8")


# ════════════════════════════════════════════════════════════════════════════
# validate_project
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_committed_npm_project_is_valid(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"name": "demo", "dependencies": {"react": "^18.0.0"}})
    _init_git(tmp_path)

    validation = validate_project(tmp_path)

    assert validation.is_valid
    assert validation.manifest is not None
    assert validation.manifest["name"] == "demo"


@pytest.mark.os_agnostic
def test_empty_directory_reports_npm_and_git_problems(tmp_path: Path) -> None:
    validation = validate_project(tmp_path)

    assert validation.errors == [NPM_NO_PACKAGE_JSON, GIT_NO_DIR]
    assert validation.manifest is None


@pytest.mark.os_agnostic
def test_manifest_without_name_is_rejected(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"dependencies": {"react": "^18.0.0"}})
    _init_git(tmp_path)

    assert validate_project(tmp_path).errors == [NPM_NO_NAME]


@pytest.mark.os_agnostic
def test_manifest_without_dependencies_is_rejected(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"name": "demo", "dependencies": {}})
    _init_git(tmp_path)

    assert validate_project(tmp_path).errors == [NPM_NO_DEPENDENCIES]


@pytest.mark.os_agnostic
def test_dev_dependencies_alone_are_enough(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"name": "demo", "devDependencies": {"jest": "^29.0.0"}})
    _init_git(tmp_path)

    assert validate_project(tmp_path).is_valid


@pytest.mark.os_agnostic
def test_unparsable_manifest_reports_parse_error(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{", encoding="utf-8")
    _init_git(tmp_path)

    [error] = validate_project(tmp_path).errors

    assert error.startswith("Invalid package.json")


@pytest.mark.os_agnostic
def test_git_without_config_is_reported_as_corrupted(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"name": "demo", "dependencies": {"a": "1.0.0"}})
    _init_git(tmp_path, config=False)

    assert validate_project(tmp_path).errors == [GIT_NO_CONFIG]


@pytest.mark.os_agnostic
def test_git_without_commits_is_reported(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"name": "demo", "dependencies": {"a": "1.0.0"}})
    _init_git(tmp_path, commit=False)

    assert validate_project(tmp_path).errors == [GIT_NO_COMMITS]


@pytest.mark.os_agnostic
def test_packed_refs_count_as_commits(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"name": "demo", "dependencies": {"a": "1.0.0"}})
    _init_git(tmp_path, commit=False)
    (tmp_path / ".git" / "packed-refs").write_text("# pack-refs with: peeled\n", encoding="utf-8")

    assert validate_project(tmp_path).is_valid


# ════════════════════════════════════════════════════════════════════════════
# summarize_project
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_summary_counts_dependency_sections(tmp_path: Path) -> None:
    _write_manifest(
        tmp_path,
        {
            "name": "demo",
            "version": "2.1.0",
            "dependencies": {"react": "^18.0.0", "lodash": "^4.17.0"},
            "devDependencies": {"jest": "^29.0.0"},
        },
    )
    _init_git(tmp_path)

    summary = summarize_project(validate_project(tmp_path))

    assert summary is not None
    assert summary.name == "demo"
    assert summary.version == "2.1.0"
    assert summary.dependency_count == 2
    assert summary.dev_dependency_count == 1
    assert summary.total_dependencies == 3


@pytest.mark.os_agnostic
def test_summary_defaults_missing_version(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"name": "demo", "dependencies": {"a": "1.0.0"}})
    _init_git(tmp_path)

    summary = summarize_project(validate_project(tmp_path))

    assert summary is not None
    assert summary.version == "0.0.0"


@pytest.mark.os_agnostic
def test_failed_validation_has_no_summary(tmp_path: Path) -> None:
    assert summarize_project(validate_project(tmp_path)) is None
