"""Compiler protocol and a command-line backed implementation."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import os
import typing as typ
from pathlib import Path, PurePosixPath

from plumbum import local
from plumbum.commands import CommandNotFound, ProcessExecutionError

from .errors import CompilationError, StageError

if typ.TYPE_CHECKING:
    from .config import CompilerSettings, UnitConfig
    from .host import Logger

__all__ = ["CommandCompiler", "Compiler", "CompilerConfig"]


@dataclasses.dataclass(slots=True)
class CompilerConfig:
    """Per-run compiler configuration.

    ``out_dir`` is relative to ``root`` and is overwritten by the pipeline so
    output lands in the staging directory.
    """

    root: Path
    command: list[str]
    out_dir: str = "."


class Compiler(typ.Protocol):
    """Turn entry files into emitted output files."""

    name: str

    async def run(
        self, entry_files: typ.Sequence[str], config: CompilerConfig
    ) -> list[str]: ...

    def extract_entry_files(
        self, root: Path, provider: str, units: typ.Mapping[str, UnitConfig]
    ) -> list[str]: ...

    def load_config(self, root: Path, logger: Logger | None) -> CompilerConfig: ...


class CommandCompiler:
    """Run an external compiler command through :mod:`plumbum`.

    ``{out_dir}`` placeholders in the configured command are rendered with
    :attr:`CompilerConfig.out_dir` and the entry files are appended. Emitted
    files are detected by comparing modification times beneath the output
    directory before and after the run.

    Examples
    --------
    >>> settings = CompilerSettings(command=["tsc", "--outDir", "{out_dir}"])  # doctest: +SKIP
    >>> compiler = CommandCompiler(settings)  # doctest: +SKIP
    >>> config = compiler.load_config(Path("."), None)  # doctest: +SKIP
    >>> config.out_dir = ".build"  # doctest: +SKIP
    >>> asyncio.run(compiler.run(["src/handler.ts"], config))  # doctest: +SKIP
    ['.build/src/handler.js']
    """

    def __init__(self, settings: CompilerSettings) -> None:
        self.settings = settings
        self.name = settings.name

    def load_config(self, root: Path, logger: Logger | None) -> CompilerConfig:
        """Return a fresh :class:`CompilerConfig` rooted at ``root``."""
        config_file = self.settings.config_file
        if config_file and (root / config_file).is_file() and logger is not None:
            logger.log(f"Using local {config_file}")
        return CompilerConfig(root=root, command=list(self.settings.command))

    def extract_entry_files(
        self, root: Path, provider: str, units: typ.Mapping[str, UnitConfig]
    ) -> list[str]:
        """Map each unit's handler to its source file relative to ``root``.

        A handler ``src/handler.main`` resolves to the first existing
        ``src/handler<ext>`` for the configured extensions. The ``google``
        provider declares a single entry through the manifest's ``main`` field
        instead.

        Raises
        ------
        StageError
            Raised when no source file exists for a handler.
        """
        if provider == "google":
            return [self._manifest_entry(root)]

        entries: list[str] = []
        for unit in units.values():
            module = unit.handler.rsplit(".", 1)[0]
            entry = self._resolve_source(root, module)
            if entry is None:
                message = f"No source file found for handler '{unit.handler}' of unit '{unit.name}'"
                raise StageError(message)
            if entry not in entries:
                entries.append(entry)
        return entries

    async def run(
        self, entry_files: typ.Sequence[str], config: CompilerConfig
    ) -> list[str]:
        """Compile ``entry_files`` and return emitted paths relative to the root."""
        return await asyncio.to_thread(self._run, list(entry_files), config)

    def _run(self, entry_files: list[str], config: CompilerConfig) -> list[str]:
        out_dir = config.root / config.out_dir
        before = _snapshot(out_dir)
        executable, *args = (part.format(out_dir=config.out_dir) for part in config.command)
        try:
            command = local[executable][(*args, *entry_files)]
            with local.cwd(config.root):
                command()
        except (ProcessExecutionError, CommandNotFound) as exc:
            message = f"{self.name} failed: {exc}"
            raise CompilationError(message) from exc
        after = _snapshot(out_dir)
        emitted = (path for path, mtime in after.items() if before.get(path) != mtime)
        return sorted(
            PurePosixPath(path.relative_to(config.root)).as_posix() for path in emitted
        )

    def _resolve_source(self, root: Path, module: str) -> str | None:
        for extension in self.settings.extensions:
            candidate = f"{module}{extension}"
            if (root / candidate).is_file():
                return candidate
        return None

    def _manifest_entry(self, root: Path) -> str:
        manifest = root / "package.json"
        try:
            main = json.loads(manifest.read_text(encoding="utf-8"))["main"]
        except (OSError, KeyError, json.JSONDecodeError) as exc:
            message = f"Cannot read entry point from {manifest}: {exc}"
            raise StageError(message) from exc
        module = str(PurePosixPath(main).with_suffix(""))
        entry = self._resolve_source(root, module)
        if entry is None:
            message = f"No source file found for manifest entry '{main}'"
            raise StageError(message)
        return entry


def _snapshot(directory: Path) -> dict[Path, int]:
    """Return modification times of regular files beneath ``directory``."""
    if not directory.is_dir():
        return {}
    stamps: dict[Path, int] = {}
    for current, _dirs, files in os.walk(directory):
        for name in files:
            path = Path(current) / name
            if path.is_symlink():
                continue
            stamps[path] = path.stat().st_mtime_ns
    return stamps
