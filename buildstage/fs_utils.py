"""Filesystem helpers for staging."""

from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path

from .errors import StageError

__all__ = [
    "copy_path",
    "link_or_copy",
    "links_supported",
    "mirrored_destination",
    "path_exists",
    "remove_path",
]


def mirrored_destination(staging_dir: Path, relative: str | Path) -> Path:
    """Return ``relative`` mirrored beneath ``staging_dir``.

    Parent directories of the returned path are created.

    Parameters
    ----------
    staging_dir : Path
        Root directory under which staged files must reside.
    relative : str | Path
        Path relative to the original project root.

    Returns
    -------
    Path
        Absolute destination located below ``staging_dir``.

    Raises
    ------
    StageError
        Raised when ``relative`` climbs outside ``staging_dir``. The check is
        lexical so symlinked dependency trees inside staging are not followed.
    """

    target = Path(os.path.normpath(staging_dir / relative))
    if not target.is_relative_to(os.path.normpath(staging_dir)):
        message = f"Destination escapes staging directory: {relative}"
        raise StageError(message)
    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def path_exists(path: Path) -> bool:
    """Return ``True`` when ``path`` exists, counting dangling symlinks."""
    return os.path.lexists(path)


def links_supported(directory: Path) -> bool:
    """Return whether symlinks can be created inside ``directory``.

    A probe link is created and removed. Any ``OSError`` counts as a negative
    result, for example an unprivileged Windows account or a filesystem
    without symlink support.
    """

    directory.mkdir(parents=True, exist_ok=True)
    probe = directory / f".link-probe-{uuid.uuid4().hex}"
    try:
        os.symlink(directory, probe, target_is_directory=True)
    except OSError:
        return False
    probe.unlink()
    return True


def copy_path(source: Path, destination: Path) -> None:
    """Copy ``source`` to ``destination``, recursing into directories.

    Existing files below ``destination`` are overwritten.
    """

    if source.is_dir():
        shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
    else:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)


def link_or_copy(source: Path, destination: Path, *, can_link: bool) -> None:
    """Symlink ``destination`` to ``source`` or copy when linking is unavailable.

    Parameters
    ----------
    source : Path
        Existing file or directory to expose inside staging.
    destination : Path
        Path to create.
    can_link : bool
        Result of :func:`links_supported` for the destination filesystem.
        When ``False`` the source is copied instead.

    Raises
    ------
    FileNotFoundError
        Raised when ``source`` does not exist.
    OSError
        Raised unchanged when linking was reported as supported yet fails.
    """

    if not source.exists():
        message = f"Cannot stage missing source: {source}"
        raise FileNotFoundError(message)
    destination.parent.mkdir(parents=True, exist_ok=True)
    if can_link:
        os.symlink(source, destination, target_is_directory=source.is_dir())
        return
    copy_path(source, destination)


def remove_path(path: Path) -> None:
    """Remove ``path`` without following symlinks. Absent paths are ignored."""

    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)
