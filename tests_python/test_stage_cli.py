"""Behavioural tests for the command-line entry point."""

from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path
from types import ModuleType

import pytest

from stage_test_helpers import EMIT_SCRIPT

PACKAGE_SCRIPT = (
    "import pathlib\n"
    "out = pathlib.Path('.serverless')\n"
    "out.mkdir(exist_ok=True)\n"
    "(out / 'demo.zip').write_bytes(b'PK')\n"
)


@pytest.fixture
def stage_cli() -> ModuleType:
    """Import the CLI module."""
    return importlib.import_module("stage")


def _write_config(root: Path, *, packager: bool = True, compiler: bool = True) -> Path:
    lines = [
        "[service]",
        'name = "demo"',
        "",
        "[units.hello]",
        'handler = "src/hello.main"',
    ]
    if compiler:
        command = [sys.executable, "-c", EMIT_SCRIPT, "{out_dir}"]
        lines += ["", "[compiler]", f"command = {json.dumps(command)}"]
    if packager:
        command = [sys.executable, "-c", PACKAGE_SCRIPT]
        lines += ["", "[packager]", f"command = {json.dumps(command)}"]
    config_file = root / "buildstage.toml"
    config_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return config_file


def test_stage_cli_stages_project(
    stage_cli: ModuleType, project_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    stage_cli.stage(_write_config(project_root))

    staging = project_root / ".build"
    assert (staging / "hello.js").is_file(), "Compiled output should be staged"
    assert (staging / "package.json").exists()
    captured = capsys.readouterr()
    assert "Staged 1 compiled file(s)" in captured.err


def test_stage_cli_packages_and_relocates(
    stage_cli: ModuleType, project_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    stage_cli.package(_write_config(project_root))

    relocated = project_root.resolve() / ".serverless" / "demo.zip"
    assert relocated.read_bytes() == b"PK"
    assert not (project_root / ".build").exists(), "Staging should be cleaned up"
    captured = capsys.readouterr()
    assert str(relocated) in captured.out.splitlines()


def test_stage_cli_requires_compiler_section(
    stage_cli: ModuleType, project_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_file = _write_config(project_root, compiler=False)

    with pytest.raises(SystemExit) as exc:
        stage_cli.stage(config_file)

    assert exc.value.code == 1, "CLI should exit with status 1 on configuration errors"
    assert "No [compiler] section" in capsys.readouterr().err


def test_stage_cli_package_requires_packager(
    stage_cli: ModuleType, project_root: Path
) -> None:
    config_file = _write_config(project_root, packager=False)

    with pytest.raises(SystemExit) as exc:
        stage_cli.package(config_file)

    assert exc.value.code == 1
    assert not (project_root / ".build").exists(), "Packaging must not start without a packager"


def test_stage_cli_reports_missing_config(
    stage_cli: ModuleType, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as exc:
        stage_cli.stage(tmp_path / "absent.toml")

    assert exc.value.code == 1
    assert capsys.readouterr().err.startswith("error: ")


def test_stage_cli_package_stdout_lists_only_artefacts(
    stage_cli: ModuleType, project_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Progress output stays on stderr so stdout can be consumed by scripts."""

    stage_cli.package(_write_config(project_root))

    captured = capsys.readouterr()
    relocated = project_root.resolve() / ".serverless" / "demo.zip"
    assert captured.out.splitlines() == [str(relocated)]
    assert "→ " in captured.err, "The packager command echo belongs on stderr"
