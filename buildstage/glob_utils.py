"""Glob expansion helpers for include patterns."""

from __future__ import annotations

import typing as typ
from glob import has_magic
from pathlib import Path, PurePosixPath

from .errors import StageError

__all__ = ["expand_globs", "split_negations"]


def split_negations(patterns: typ.Iterable[str]) -> tuple[list[str], list[str]]:
    """Return ``(positive, negative)`` patterns.

    A leading ``!`` marks a negation, as in ``globby``.

    Examples
    --------
    >>> split_negations(["data/**", "!data/*.tmp"])
    (['data/**'], ['data/*.tmp'])
    """
    positive: list[str] = []
    negative: list[str] = []
    for pattern in patterns:
        if pattern.startswith("!"):
            if stripped := pattern[1:]:
                negative.append(stripped)
        elif pattern:
            positive.append(pattern)
    return positive, negative


def expand_globs(
    root: Path, patterns: typ.Iterable[str], *, ignore: Path | None = None
) -> list[Path]:
    """Expand ``patterns`` against ``root`` into relative file paths.

    Parameters
    ----------
    root : Path
        Directory patterns are evaluated against.
    patterns : Iterable[str]
        Relative glob patterns. Plain paths naming a directory include every
        file beneath it, and so does a trailing ``**``. Patterns prefixed with
        ``!`` remove matches. Dot entries only match when named explicitly.
    ignore : Path | None, optional
        Directory whose contents are never matched, typically the staging
        directory itself.

    Returns
    -------
    list[Path]
        De-duplicated matches relative to ``root``, in enumeration order.

    Raises
    ------
    StageError
        Raised when a pattern is absolute and cannot be mirrored.
    """

    positive, negative = split_negations(patterns)
    excluded = {path for pattern in negative for path in _expand_one(root, pattern)}
    ignore_rel = _relative_or_none(root, ignore) if ignore is not None else None

    matches: dict[Path, None] = {}
    for pattern in positive:
        for path in _expand_one(root, pattern):
            if path in excluded:
                continue
            if ignore_rel is not None and path.is_relative_to(ignore_rel):
                continue
            matches.setdefault(path, None)
    return list(matches)


def _expand_one(root: Path, pattern: str) -> list[Path]:
    if Path(pattern).is_absolute() or PurePosixPath(pattern).is_absolute():
        message = f"Include patterns must be relative to the project root: {pattern}"
        raise StageError(message)

    if not has_magic(pattern):
        candidate = root / pattern
        if candidate.is_file():
            return [Path(pattern)]
        if candidate.is_dir():
            return _visible(root, candidate.rglob("*"), pattern)
        return []

    # ``Path.glob`` yields only directories for a trailing ``**`` before 3.13.
    if pattern == "**" or pattern.endswith("/**"):
        pattern = f"{pattern}/*"
    return _visible(root, root.glob(pattern), pattern)


def _visible(root: Path, paths: typ.Iterable[Path], pattern: str) -> list[Path]:
    """Return files from ``paths`` relative to ``root``, hiding dot entries.

    Wildcards do not match names starting with ``.`` unless the pattern spells
    the dot out, as with globby's ``dot: false`` default.
    """
    segments = PurePosixPath(pattern).parts
    if any(segment.startswith(".") and has_magic(segment) for segment in segments):
        return [path.relative_to(root) for path in paths if path.is_file()]

    literal = {segment for segment in segments if not has_magic(segment)}
    matches: list[Path] = []
    for path in paths:
        relative = path.relative_to(root)
        if not path.is_file():
            continue
        if any(part.startswith(".") and part not in literal for part in relative.parts):
            continue
        matches.append(relative)
    return matches


def _relative_or_none(root: Path, path: Path) -> Path | None:
    try:
        return path.relative_to(root)
    except ValueError:
        return None
