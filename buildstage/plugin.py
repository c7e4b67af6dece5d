"""Orchestrate compile, stage, package relocation and watch sessions.

:class:`StagingPlugin` is the surface a host drives at lifecycle moments. It
owns one :class:`~buildstage.session.BuildSession` and wires the compiler,
staging steps and watch coordinator together in a fixed order: compile, then
extras, then dependencies. Packaging is followed by relocation and cleanup.

Usage
-----
Stage a service, let the packager run, then relocate::

    plugin = StagingPlugin(service, compiler=compiler, project_root=Path("."))
    await plugin.compile_and_stage_for_packaging()
    # ... packager writes archives into plugin.session.staging_root ...
    await plugin.relocate_and_cleanup()
"""

from __future__ import annotations

import inspect
import typing as typ
from pathlib import Path

from .config import BUILD_FOLDER, SessionOptions
from .errors import ConfigError, StageError
from .host import StderrLogger
from .notifier import FileSystemNotifier
from .session import BuildSession
from .staging import cleanup_session, stage_dependencies, stage_extras
from .watch import WatchCoordinator, WatchMode

if typ.TYPE_CHECKING:
    from .compiler import Compiler
    from .config import ServiceConfig, UnitConfig
    from .host import ChangeNotifier, Invoker, Logger

__all__ = ["StagingPlugin"]

Hook = typ.Callable[[], typ.Awaitable[object]]


class StagingPlugin:
    """Drive a build session for ``service``.

    Parameters
    ----------
    service : ServiceConfig
        Service definition. Unit exclude lists and artefact paths are mutated
        in place.
    options : SessionOptions | None, optional
        Target-unit selector and watch flag.
    compiler : Compiler
        External compiler collaborator.
    project_root : Path
        Caller's working root; the staging directory is created beneath it.
    logger : Logger | None, optional
        Progress sink. Defaults to :class:`~buildstage.host.StderrLogger`.
    notifier : ChangeNotifier | None, optional
        Change notifier used by the watch entry points. Defaults to
        :class:`~buildstage.notifier.FileSystemNotifier`.
    invoker : Invoker | None, optional
        Local invocation collaborator, required by :meth:`start_watch_single`.
    """

    def __init__(
        self,
        service: ServiceConfig,
        options: SessionOptions | None = None,
        *,
        compiler: Compiler,
        project_root: Path,
        logger: Logger | None = None,
        notifier: ChangeNotifier | None = None,
        invoker: Invoker | None = None,
    ) -> None:
        self.service = service
        self.options = options or SessionOptions()
        self.compiler = compiler
        self.logger = logger or StderrLogger()
        self.invoker = invoker
        self.session = BuildSession(
            Path(project_root), selected_unit=self.options.function
        )
        self.watcher = WatchCoordinator(
            self.session, notifier or FileSystemNotifier(), self.logger
        )
        self.hooks: dict[str, Hook] = {
            "before:run:run": self.compile_and_stage,
            "before:offline:start": self._stage_and_watch,
            "before:offline:start:init": self._stage_and_watch,
            "before:package:createDeploymentArtifacts": self.compile_and_stage_for_packaging,
            "after:package:createDeploymentArtifacts": self.relocate_and_cleanup,
            "before:deploy:function:packageFunction": self.compile_and_stage_for_packaging,
            "after:deploy:function:packageFunction": self.relocate_and_cleanup,
            "before:invoke:local:invoke": self.invoke_local,
            "after:invoke:local:invoke": self._after_invoke,
        }

    @property
    def functions(self) -> dict[str, UnitConfig]:
        """Units in scope: only the selected unit when one is chosen."""
        name = self.options.function
        if name is None:
            return dict(self.service.units)
        try:
            return {name: self.service.units[name]}
        except KeyError as exc:
            message = f"Unknown function '{name}' in service '{self.service.name}'"
            raise ConfigError(message) from exc

    @property
    def original_root(self) -> Path:
        return self.session.original_root or self.session.project_root

    def root_file_names(self) -> list[str]:
        """Return the compiler's entry files for the units in scope."""
        return self.compiler.extract_entry_files(
            self.original_root, self.service.provider, self.functions
        )

    def prepare(self) -> None:
        """Exclude this plugin's own module path from every unit in scope."""
        plugin_path = typ.cast(str, self.service.plugin_path)
        for unit in self.functions.values():
            unit.package.exclude = list(
                dict.fromkeys([*unit.package.exclude, plugin_path])
            )

    async def compile(self) -> list[str]:
        """Redirect to staging and compile the entry files into it."""
        self.prepare()
        self.logger.log(f"Compiling with {self.compiler.name}...")
        self.session.activate()

        root = self.session.require_original_root()
        config = self.compiler.load_config(
            root, None if self.session.is_watching else self.logger
        )
        config.out_dir = BUILD_FOLDER
        emitted = await self.compiler.run(self.root_file_names(), config)
        self.logger.log(f"{self.compiler.name} compiled.")
        return emitted

    async def compile_and_stage(self) -> list[str]:
        """Compile, then stage extras and linked dependencies."""
        return await self._stage(for_packaging=False)

    async def compile_and_stage_for_packaging(self) -> list[str]:
        """Compile, then stage extras and a fresh copy of the dependencies."""
        return await self._stage(for_packaging=True)

    async def relocate_and_cleanup(self) -> None:
        """Relocate packaged artefacts and remove the staging directory."""
        await cleanup_session(self.session, self.service)

    async def start_watch_all(self) -> None:
        """Rebuild the staging directory on every change burst."""
        if self.watcher.is_watching:
            return
        self.logger.log(f"Watching {self.compiler.name} files...")
        await self.watcher.start(
            WatchMode.REBUILD,
            self.root_file_names(),
            self.original_root,
            self.compile_and_stage,
        )

    async def start_watch_single(self) -> None:
        """Rebuild and re-invoke the selected unit on every change burst."""
        if self.watcher.is_watching:
            return
        self._require_invoker()
        self.logger.log(f"Watch function {self.options.function}...")
        await self.watcher.start(
            WatchMode.SINGLE_INVOKE,
            self.root_file_names(),
            self.original_root,
            self._rebuild_and_invoke,
        )

    async def invoke_local(self) -> list[str]:
        """Stage before a local invocation, unloading stale modules when watching."""
        emitted = await self.compile_and_stage()
        if self.session.is_watching and self.invoker is not None:
            self._unload(emitted)
        return emitted

    async def _stage(self, *, for_packaging: bool) -> list[str]:
        emitted = await self.compile()
        await stage_extras(self.session, self.service.package.include)
        await stage_dependencies(
            self.session, self.service, for_packaging=for_packaging
        )
        return emitted

    async def _stage_and_watch(self) -> None:
        await self.compile_and_stage()
        await self.start_watch_all()

    async def _after_invoke(self) -> None:
        if self.options.watch:
            await self.start_watch_single()
            self.logger.log("Waiting for changes ...")

    async def _rebuild_and_invoke(self) -> None:
        emitted = await self.compile_and_stage()
        self._unload(emitted)
        result = self._require_invoker().invoke()
        if inspect.isawaitable(result):
            await result

    def _unload(self, emitted: typ.Iterable[str]) -> None:
        invoker = self._require_invoker()
        for filename in emitted:
            invoker.unload(self.original_root / filename)

    def _require_invoker(self) -> Invoker:
        if self.invoker is None:
            message = "A local invoker is required to watch a single function."
            raise StageError(message)
        return self.invoker
