"""Run the external packager inside the staging directory."""

from __future__ import annotations

import asyncio
import sys
import typing as typ
from pathlib import Path

from plumbum import local
from plumbum.commands import CommandNotFound, ProcessExecutionError

from .errors import StageError
from .staging.relocation import PackagingTopology, determine_topology

if typ.TYPE_CHECKING:
    from .config import PackagerSettings, ServiceConfig
    from .session import BuildSession

__all__ = ["PackagingError", "assign_artifacts", "run_packager"]


class PackagingError(StageError):
    """Raised when the packager command fails."""


async def run_packager(session: BuildSession, settings: PackagerSettings) -> None:
    """Run ``settings.command`` with the staging directory as working root.

    Raises
    ------
    PackagingError
        Raised when the command is missing or exits non-zero.
    """
    if not settings.command:
        message = "No packager command configured."
        raise PackagingError(message)
    await asyncio.to_thread(_run, session.active_root(), settings.command)


def _run(cwd: Path, command: list[str]) -> None:
    executable, *args = command
    print(f"→ {' '.join(command)}", file=sys.stderr)
    try:
        with local.cwd(cwd):
            local[executable][args]()
    except (ProcessExecutionError, CommandNotFound) as exc:
        message = f"Packager failed: {exc}"
        raise PackagingError(message) from exc


def assign_artifacts(
    session: BuildSession, service: ServiceConfig, suffix: str = ".zip"
) -> list[str]:
    """Record where the packager wrote each archive inside staging.

    Archive names follow the packager convention: ``<unit><suffix>`` when units
    are packaged separately and ``<service><suffix>`` otherwise.

    Returns
    -------
    list[str]
        Artefact paths that were recorded.
    """
    packaged = session.staging_root / service.packaged_dir
    topology = determine_topology(session, service)
    if topology is PackagingTopology.MONOLITHIC:
        service.package.artifact = str(packaged / f"{service.name}{suffix}")
        return [service.package.artifact]

    names = (
        [typ.cast(str, session.selected_unit)]
        if topology is PackagingTopology.SINGLE_UNIT
        else service.all_units()
    )
    recorded: list[str] = []
    for name in names:
        rules = service.units[name].package
        rules.artifact = str(packaged / f"{name}{suffix}")
        recorded.append(rules.artifact)
    return recorded
