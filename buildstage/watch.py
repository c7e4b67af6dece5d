"""Watch-triggered rebuild coordination."""

from __future__ import annotations

import asyncio
import enum
import typing as typ
from pathlib import Path

if typ.TYPE_CHECKING:
    from .host import ChangeNotifier, Logger
    from .session import BuildSession

__all__ = ["WatchCoordinator", "WatchMode", "WatchState"]


class WatchMode(enum.Enum):
    """What a change burst triggers."""

    REBUILD = "rebuild"
    SINGLE_INVOKE = "single-invoke"


class WatchState(enum.Enum):
    IDLE = "idle"
    WATCHING = "watching"


class WatchCoordinator:
    """Guard a single watch session and serialize the rebuilds it triggers.

    The coordinator moves from ``IDLE`` to ``WATCHING`` once and never back.
    A burst that arrives while a rebuild is running marks a rerun as pending.
    Exactly one more rebuild follows the current one, however many bursts
    arrived in the meantime.
    """

    def __init__(
        self, session: BuildSession, notifier: ChangeNotifier, logger: Logger
    ) -> None:
        self.session = session
        self.notifier = notifier
        self.logger = logger
        self.state = WatchState.IDLE
        self.mode: WatchMode | None = None
        self._on_burst: typ.Callable[[], typ.Awaitable[object]] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task[None] | None = None
        self._pending = False

    @property
    def is_watching(self) -> bool:
        return self.state is WatchState.WATCHING

    async def start(
        self,
        mode: WatchMode,
        paths: typ.Collection[str],
        root: Path,
        on_burst: typ.Callable[[], typ.Awaitable[object]],
    ) -> bool:
        """Begin watching ``paths`` under ``root`` unless already watching.

        Returns
        -------
        bool
            ``True`` when this call registered the subscription.
        """
        if self.is_watching:
            return False
        self.state = WatchState.WATCHING
        self.session.is_watching = True
        self.mode = mode
        self._on_burst = on_burst
        self._loop = asyncio.get_running_loop()
        self.notifier.watch(paths, root, self._notify)
        return True

    async def wait_idle(self) -> None:
        """Wait until no rebuild is running or pending."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)

    def _notify(self) -> None:
        loop = typ.cast(asyncio.AbstractEventLoop, self._loop)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._schedule()
        else:
            loop.call_soon_threadsafe(self._schedule)

    def _schedule(self) -> None:
        if self._task is not None and not self._task.done():
            self._pending = True
            return
        loop = typ.cast(asyncio.AbstractEventLoop, self._loop)
        self._task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        on_burst = typ.cast(typ.Callable[[], typ.Awaitable[object]], self._on_burst)
        while True:
            self._pending = False
            try:
                await on_burst()
            except Exception as exc:  # noqa: BLE001 - keep watching after a failed rebuild
                self.logger.log(f"Rebuild failed: {exc}")
            if not self._pending:
                return
