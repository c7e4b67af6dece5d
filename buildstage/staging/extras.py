"""Copy caller-declared extra files into the staging directory."""

from __future__ import annotations

import asyncio
import shutil
import typing as typ
from pathlib import Path

from ..fs_utils import mirrored_destination, path_exists
from ..glob_utils import expand_globs

if typ.TYPE_CHECKING:
    from ..session import BuildSession

__all__ = ["stage_extras"]


async def stage_extras(
    session: BuildSession, include_globs: typ.Sequence[str]
) -> list[Path]:
    """Copy files matching ``include_globs`` into the staging directory.

    Destinations that already exist are skipped, so the call is safe to repeat
    for every watch-triggered rebuild. A source edited after its first copy is
    not picked up again within the same session.

    Parameters
    ----------
    session : BuildSession
        Active session; globs are expanded against its original root.
    include_globs : Sequence[str]
        Include patterns relative to the original root.

    Returns
    -------
    list[Path]
        Destination paths copied by this call.
    """

    if not include_globs:
        return []
    return await asyncio.to_thread(_copy_extras, session, list(include_globs))


def _copy_extras(session: BuildSession, include_globs: list[str]) -> list[Path]:
    root = session.require_original_root()
    staging_root = session.staging_root
    copied: list[Path] = []
    for relative in expand_globs(root, include_globs, ignore=staging_root):
        destination = mirrored_destination(staging_root, relative)
        if path_exists(destination):
            continue
        shutil.copy2(root / relative, destination)
        copied.append(destination)
    return copied
