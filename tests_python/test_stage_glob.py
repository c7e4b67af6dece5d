"""Tests for include pattern expansion."""

from __future__ import annotations

import importlib
from pathlib import Path

import pytest


@pytest.fixture
def glob_utils(buildstage: object) -> object:
    return importlib.import_module("buildstage.glob_utils")


def test_split_negations(glob_utils: object) -> None:
    positive, negative = glob_utils.split_negations(["a/**", "!a/*.tmp", "", "!"])

    assert positive == ["a/**"]
    assert negative == ["a/*.tmp"]


def test_expand_globs_deduplicates(glob_utils: object, project_root: Path) -> None:
    matches = glob_utils.expand_globs(
        project_root, ["assets/**/*.json", "assets/nested/config.json"]
    )

    assert matches == [Path("assets/nested/config.json")]


def test_expand_globs_rejects_absolute_patterns(
    buildstage: object, glob_utils: object, project_root: Path
) -> None:
    with pytest.raises(buildstage.StageError, match="relative to the project root"):
        glob_utils.expand_globs(project_root, [f"{project_root.as_posix()}/assets/*"])


def test_expand_globs_ignores_missing_plain_paths(
    glob_utils: object, project_root: Path
) -> None:
    assert glob_utils.expand_globs(project_root, ["README.md"]) == []


@pytest.mark.parametrize(
    ("pattern", "expected"),
    [
        pytest.param(
            "assets/**",
            {"assets/nested/config.json", "assets/notes.tmp"},
            id="trailing_globstar",
        ),
        pytest.param("assets/*", {"assets/notes.tmp"}, id="single_segment"),
        pytest.param("assets/*/*.json", {"assets/nested/config.json"}, id="nested_star"),
    ],
)
def test_expand_globs_directory_patterns(
    glob_utils: object, project_root: Path, pattern: str, expected: set[str]
) -> None:
    """Trailing ``**`` yields every file below the directory."""

    matches = glob_utils.expand_globs(project_root, [pattern])

    assert {path.as_posix() for path in matches} == expected


def test_expand_globs_skips_dot_entries_for_wildcards(
    glob_utils: object, project_root: Path
) -> None:
    hidden = project_root / "assets" / ".cache" / "state.json"
    hidden.parent.mkdir()
    hidden.write_text("{}", encoding="utf-8")
    (project_root / "assets" / ".env").write_text("KEY=1", encoding="utf-8")

    wildcard = glob_utils.expand_globs(project_root, ["assets/**"])
    explicit = glob_utils.expand_globs(
        project_root, ["assets/.cache/*.json", "assets/.*"]
    )

    assert Path("assets/.env") not in wildcard, "Wildcards must not match dot files"
    assert Path("assets/.cache/state.json") not in wildcard
    assert set(explicit) == {Path("assets/.cache/state.json"), Path("assets/.env")}


def test_expand_globs_trailing_globstar_honours_negations(
    glob_utils: object, project_root: Path
) -> None:
    matches = glob_utils.expand_globs(project_root, ["assets/**", "!assets/*.tmp"])

    assert matches == [Path("assets/nested/config.json")]
