"""Configuration loader tests for the staging pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

PROJECT_TOML = """\
[service]
name = "demo"
provider = "aws"

[service.package]
include = ["assets/**/*.json"]
individually = true

[units.hello]
handler = "src/hello.main"
package = { exclude = ["tests/**"] }

[units.world]
handler = "src/world.main"

[compiler]
command = ["tsc", "--outDir", "{out_dir}"]
config_file = "tsconfig.json"

[packager]
command = ["serverless", "package"]
"""


def test_load_config_reads_service_units_and_tools(
    buildstage: object, tmp_path: Path
) -> None:
    config_file = tmp_path / "buildstage.toml"
    config_file.write_text(PROJECT_TOML, encoding="utf-8")

    project = buildstage.load_config(config_file)

    assert project.root == tmp_path.resolve()
    service = project.service
    assert service.name == "demo"
    assert service.package.include == ["assets/**/*.json"]
    assert service.package.individually is True
    assert list(service.units) == ["hello", "world"]
    assert service.units["hello"].package.exclude == ["tests/**"]
    assert service.dependencies_dir == "node_modules"
    assert service.plugin_path == "node_modules/buildstage"
    assert project.compiler.command == ["tsc", "--outDir", "{out_dir}"]
    assert project.compiler.name == "tsc"
    assert project.compiler.extensions == [".ts", ".js"]
    assert project.packager.command == ["serverless", "package"]


def test_load_config_missing_file(buildstage: object, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        buildstage.load_config(tmp_path / "absent.toml")


@pytest.mark.parametrize(
    ("content", "expected_match"),
    [
        pytest.param("[units.a]\nhandler = 'a.main'\n", "Missing configuration key", id="no_service"),
        pytest.param("[service]\nprovider = 'aws'\n", r"name in \[service\]", id="no_name"),
        pytest.param(
            "[service]\nname = 'x'\n[units.a]\nruntime = 'node'\n",
            r"handler in \[units.a\]",
            id="no_handler",
        ),
        pytest.param(
            "[service]\nname = 'x'\n[service.package]\ninclude = [1]\n",
            "service.package.include must be a list of strings",
            id="bad_include",
        ),
        pytest.param("[service]\nname = 'x'\n[compiler]\ncommand = []\n", "must not be empty", id="empty_command"),
        pytest.param("[service\n", "Invalid TOML", id="bad_toml"),
    ],
)
def test_load_config_rejects_invalid_files(
    buildstage: object, tmp_path: Path, content: str, expected_match: str
) -> None:
    config_file = tmp_path / "buildstage.toml"
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(buildstage.ConfigError, match=expected_match):
        buildstage.load_config(config_file)


def test_service_config_custom_plugin_path(buildstage: object) -> None:
    service = buildstage.ServiceConfig(
        name="demo", provider="aws", units={}, dependencies_dir="vendor"
    )

    assert service.plugin_path == "vendor/buildstage"
