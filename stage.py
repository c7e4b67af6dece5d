# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "cyclopts>=2.9",
#   "plumbum>=1.8",
#   "watchdog>=4.0",
# ]
# ///

"""Command-line entry point for the build staging pipeline.

Examples
--------
Compile and stage a project described by ``buildstage.toml``::

    buildstage stage buildstage.toml

Package a single function and move its archive back to ``.serverless``::

    buildstage package buildstage.toml --function hello

Rebuild the staging directory whenever a source file changes::

    buildstage watch buildstage.toml
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import cyclopts

from buildstage import (
    CommandCompiler,
    ConfigError,
    ProjectConfig,
    SessionOptions,
    StageError,
    StagingPlugin,
    assign_artifacts,
    load_config,
    run_packager,
)

app = cyclopts.App(help="Stage compiled output and relocate packaged artefacts.")


def build_plugin(
    config_file: Path, function: str | None = None, *, watch: bool = False
) -> tuple[StagingPlugin, ProjectConfig]:
    """Load ``config_file`` and return a plugin wired to its compiler."""
    project = load_config(Path(config_file))
    if project.compiler is None:
        message = f"No [compiler] section configured in {config_file}"
        raise ConfigError(message)
    plugin = StagingPlugin(
        project.service,
        SessionOptions(function=function, watch=watch),
        compiler=CommandCompiler(project.compiler),
        project_root=project.root,
    )
    return plugin, project


@app.command
def stage(config_file: Path, *, function: str | None = None) -> None:
    """Compile ``config_file``'s service into the staging directory.

    Parameters
    ----------
    config_file:
        Path to the TOML project file.
    function:
        Restrict the build to a single function.
    """
    try:
        plugin, _ = build_plugin(config_file, function)
        emitted = asyncio.run(plugin.compile_and_stage())
    except (FileNotFoundError, StageError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(
        f"Staged {len(emitted)} compiled file(s) into '{plugin.session.staging_root}'.",
        file=sys.stderr,
    )


@app.command
def package(config_file: Path, *, function: str | None = None) -> None:
    """Stage, run the packager, then relocate its archives.

    Parameters
    ----------
    config_file:
        Path to the TOML project file; it must define ``[packager]``.
    function:
        Package only this function.
    """
    try:
        plugin, project = build_plugin(config_file, function)
        relocated = asyncio.run(package_project(plugin, project))
    except (FileNotFoundError, StageError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    for path in relocated:
        print(path)


async def package_project(plugin: StagingPlugin, project: ProjectConfig) -> list[str]:
    """Run the deploy path and return the relocated artefact paths."""
    if project.packager is None:
        message = f"No [packager] section configured for service '{project.service.name}'"
        raise ConfigError(message)
    await plugin.compile_and_stage_for_packaging()
    await run_packager(plugin.session, project.packager)
    staged = assign_artifacts(
        plugin.session, project.service, project.packager.artifact_suffix
    )
    await plugin.relocate_and_cleanup()
    target_dir = plugin.original_root / project.service.packaged_dir
    return [str(target_dir / Path(path).name) for path in staged]


@app.command
def watch(config_file: Path) -> None:
    """Stage once, then rebuild on every change until interrupted.

    Parameters
    ----------
    config_file:
        Path to the TOML project file.
    """
    try:
        plugin, _ = build_plugin(config_file, watch=True)
        asyncio.run(watch_project(plugin))
    except KeyboardInterrupt:
        return
    except (FileNotFoundError, StageError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


async def watch_project(plugin: StagingPlugin) -> None:
    await plugin.compile_and_stage()
    await plugin.start_watch_all()
    await asyncio.Event().wait()


if __name__ == "__main__":
    app()
