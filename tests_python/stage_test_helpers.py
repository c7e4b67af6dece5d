"""Shared helpers and collaborator fakes for the staging test suites."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from buildstage import CompilerConfig, PackageRules, ServiceConfig, UnitConfig

# Writes ``<stem>.js`` into the output directory for every entry argument.
EMIT_SCRIPT = (
    "import pathlib, sys\n"
    "out = pathlib.Path(sys.argv[1])\n"
    "out.mkdir(parents=True, exist_ok=True)\n"
    "for entry in sys.argv[2:]:\n"
    "    (out / (pathlib.Path(entry).stem + '.js')).write_text('x')\n"
)

__all__ = [
    "EMIT_SCRIPT",
    "FakeCompiler",
    "FakeInvoker",
    "FakeNotifier",
    "RecordingLogger",
    "make_service",
    "write_project",
]


class RecordingLogger:
    """Collect progress messages in order."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def log(self, message: str) -> None:
        self.messages.append(message)


class FakeCompiler:
    """Write one ``.js`` file per entry into the configured output directory."""

    name = "fakec"

    def __init__(self) -> None:
        self.runs: list[list[str]] = []
        self.loggers: list[object] = []

    def load_config(self, root: Path, logger: object) -> CompilerConfig:
        self.loggers.append(logger)
        return CompilerConfig(root=root, command=["fakec"])

    def extract_entry_files(
        self, root: Path, provider: str, units: typ.Mapping[str, UnitConfig]
    ) -> list[str]:
        return [f"src/{name}.ts" for name in units]

    async def run(
        self, entry_files: typ.Sequence[str], config: CompilerConfig
    ) -> list[str]:
        self.runs.append(list(entry_files))
        emitted: list[str] = []
        for entry in entry_files:
            relative = Path(config.out_dir) / Path(entry).with_suffix(".js")
            target = config.root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(f"// compiled {entry}", encoding="utf-8")
            emitted.append(relative.as_posix())
        return emitted


class FakeNotifier:
    """Record subscriptions and fire bursts on demand."""

    def __init__(self) -> None:
        self.subscriptions: list[tuple[list[str], Path, typ.Callable[[], None]]] = []

    def watch(
        self,
        paths: typ.Collection[str],
        root: Path,
        on_change_burst: typ.Callable[[], None],
    ) -> None:
        self.subscriptions.append((list(paths), root, on_change_burst))

    def fire(self) -> None:
        for _paths, _root, callback in self.subscriptions:
            callback()


class FakeInvoker:
    """Count invocations and record unloaded paths."""

    def __init__(self) -> None:
        self.invocations = 0
        self.unloaded: list[Path] = []

    async def invoke(self) -> None:
        self.invocations += 1

    def unload(self, path: Path) -> None:
        self.unloaded.append(path)


def make_service(
    units: typ.Iterable[str] = ("hello", "world"),
    *,
    individually: bool = False,
    include: typ.Sequence[str] = (),
) -> ServiceConfig:
    """Return a service with one unit per name in ``units``."""
    return ServiceConfig(
        name="demo",
        provider="aws",
        units={
            name: UnitConfig(name=name, handler=f"src/{name}.main")
            for name in units
        },
        package=PackageRules(include=list(include), individually=individually),
    )


def write_project(root: Path) -> None:
    """Populate ``root`` with sources, a dependency tree, a manifest and assets."""
    for name in ("hello", "world"):
        source = root / "src" / f"{name}.ts"
        source.parent.mkdir(parents=True, exist_ok=True)
        source.write_text(f"export const {name} = 1", encoding="utf-8")

    module = root / "node_modules" / "left-pad" / "index.js"
    module.parent.mkdir(parents=True, exist_ok=True)
    module.write_text("module.exports = 1", encoding="utf-8")

    (root / "package.json").write_text('{"name": "demo"}', encoding="utf-8")

    asset = root / "assets" / "nested" / "config.json"
    asset.parent.mkdir(parents=True, exist_ok=True)
    asset.write_text('{"stage": "dev"}', encoding="utf-8")
    (root / "assets" / "notes.tmp").write_text("scratch", encoding="utf-8")
