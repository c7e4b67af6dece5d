"""Relocate packaged artefacts from staging back to the original root."""

from __future__ import annotations

import asyncio
import enum
import typing as typ
from pathlib import Path, PurePath

from ..fs_utils import copy_path

if typ.TYPE_CHECKING:
    from ..config import PackageRules, ServiceConfig
    from ..session import BuildSession

__all__ = ["PackagingTopology", "determine_topology", "relocate_artifacts"]


class PackagingTopology(enum.Enum):
    """How the packager laid out artefacts for a relocation."""

    SINGLE_UNIT = "single-unit"
    INDIVIDUAL = "individual"
    MONOLITHIC = "monolithic"


def determine_topology(
    session: BuildSession, service: ServiceConfig
) -> PackagingTopology:
    """Return the topology that applies to ``session``.

    Precedence is SINGLE_UNIT > INDIVIDUAL > MONOLITHIC: a selected unit wins
    even when the service also packages units individually.
    """
    if session.selected_unit:
        return PackagingTopology.SINGLE_UNIT
    if service.package.individually:
        return PackagingTopology.INDIVIDUAL
    return PackagingTopology.MONOLITHIC


async def relocate_artifacts(
    session: BuildSession, service: ServiceConfig
) -> PackagingTopology:
    """Copy packaged output to the original root and rewrite artefact paths.

    Parameters
    ----------
    session : BuildSession
        Session whose staging directory holds the packaged output.
    service : ServiceConfig
        Service whose unit and service-level artefact paths are rewritten.

    Returns
    -------
    PackagingTopology
        Topology used to decide which artefact paths were rewritten.

    Raises
    ------
    RedirectionError
        Raised when the session was never activated.
    OSError
        Raised unchanged when copying the packaged output fails.
    """

    root = session.require_original_root()
    source = session.staging_root / service.packaged_dir
    target_dir = root / service.packaged_dir
    if source.exists():
        await asyncio.to_thread(copy_path, source, target_dir)

    topology = determine_topology(session, service)
    if topology is PackagingTopology.SINGLE_UNIT:
        unit = service.units[typ.cast(str, session.selected_unit)]
        _rewrite(unit.package, target_dir)
    elif topology is PackagingTopology.INDIVIDUAL:
        for name in service.all_units():
            _rewrite(service.units[name].package, target_dir)
    else:
        _rewrite(service.package, target_dir)
    return topology


def _rewrite(rules: PackageRules, target_dir: Path) -> None:
    """Point ``rules.artifact`` at ``target_dir``, keeping its basename."""
    if rules.artifact is None:
        return
    rules.artifact = str(target_dir / PurePath(rules.artifact).name)
