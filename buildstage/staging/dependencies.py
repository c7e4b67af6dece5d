"""Materialize the runtime dependency tree and manifest inside staging."""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

from ..fs_utils import copy_path, link_or_copy, links_supported, path_exists, remove_path

if typ.TYPE_CHECKING:
    from ..config import ServiceConfig
    from ..session import BuildSession

__all__ = ["stage_dependencies"]


async def stage_dependencies(
    session: BuildSession, service: ServiceConfig, *, for_packaging: bool = False
) -> list[Path]:
    """Stage ``service``'s dependency tree and manifest for ``session``.

    Parameters
    ----------
    session : BuildSession
        Active session providing the original and staging roots.
    service : ServiceConfig
        Supplies the dependency directory and manifest names.
    for_packaging : bool, default=False
        When ``True`` the staged dependency tree is removed and copied afresh
        from the original root, so the package captures the current state.
        Otherwise an existing tree is kept and a missing one is linked.

    Returns
    -------
    list[Path]
        Destinations created by this call.

    Raises
    ------
    FileNotFoundError
        Raised when a configured source is missing from the original root.
    OSError
        Raised unchanged for any failure other than an unavailable link.
    """

    return await asyncio.to_thread(_stage, session, service, for_packaging)


def _stage(
    session: BuildSession, service: ServiceConfig, for_packaging: bool
) -> list[Path]:
    root = session.require_original_root()
    staging_root = session.staging_root
    staged: list[Path] = []

    if service.dependencies_dir:
        source = root / service.dependencies_dir
        destination = staging_root / service.dependencies_dir
        if for_packaging:
            remove_path(destination)
            if not source.exists():
                message = f"Cannot stage missing source: {source}"
                raise FileNotFoundError(message)
            copy_path(source, destination)
            staged.append(destination)
        elif not path_exists(destination):
            link_or_copy(source, destination, can_link=_can_link(session))
            staged.append(destination)

    if service.manifest_file:
        source = root / service.manifest_file
        destination = staging_root / service.manifest_file
        if not path_exists(destination):
            link_or_copy(source, destination, can_link=_can_link(session))
            staged.append(destination)

    return staged


def _can_link(session: BuildSession) -> bool:
    if session.links_supported is None:
        session.links_supported = links_supported(session.staging_root)
    return session.links_supported
