"""Filesystem change notifier backed by :mod:`watchdog`.

An observer thread watches the parent directories of the requested files.
Events for other files in those directories are ignored. Matching events are
coalesced into bursts, and each burst fires the callback once from a timer
thread. Callers hand the callback back to their own event loop.
"""

from __future__ import annotations

import os
import threading
import typing as typ
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

if typ.TYPE_CHECKING:
    from watchdog.events import FileSystemEvent
    from watchdog.observers.api import BaseObserver

__all__ = ["ChangeBurstHandler", "FileSystemNotifier"]

_CHANGE_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}
)


def _normalise(path: str | bytes | os.PathLike[str]) -> str:
    return os.path.realpath(os.fsdecode(path))


class ChangeBurstHandler(FileSystemEventHandler):
    """Report changes to ``targets`` once per quiet-period burst.

    Parameters
    ----------
    targets : Iterable[str | Path]
        Files whose changes count. Other paths are ignored.
    on_change_burst : Callable[[], None]
        Invoked from a timer thread once ``quiet_period`` seconds pass without
        a further matching event.
    quiet_period : float
        Seconds of silence that close a burst.
    """

    def __init__(
        self,
        targets: typ.Iterable[str | Path],
        on_change_burst: typ.Callable[[], None],
        quiet_period: float,
    ) -> None:
        super().__init__()
        self.targets = frozenset(_normalise(target) for target in targets)
        self.on_change_burst = on_change_burst
        self.quiet_period = quiet_period
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        paths = (event.src_path, getattr(event, "dest_path", ""))
        if not any(path and _normalise(path) in self.targets for path in paths):
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.quiet_period, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Drop a burst that has not fired yet."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        self.on_change_burst()


class FileSystemNotifier:
    """Watch files with a :class:`watchdog.observers.Observer`.

    Parameters
    ----------
    quiet_period : float, default=0.5
        Seconds without changes that close a burst.
    """

    def __init__(self, quiet_period: float = 0.5) -> None:
        self.quiet_period = quiet_period
        self.observer: BaseObserver | None = None
        self.handlers: list[ChangeBurstHandler] = []

    def watch(
        self,
        paths: typ.Collection[str],
        root: Path,
        on_change_burst: typ.Callable[[], None],
    ) -> None:
        """Report change bursts for ``paths`` (relative to ``root``)."""
        handler = ChangeBurstHandler(
            (root / path for path in paths), on_change_burst, self.quiet_period
        )
        observer = self._ensure_observer()
        for directory in sorted({os.path.dirname(t) for t in handler.targets}):
            if os.path.isdir(directory):
                observer.schedule(handler, directory, recursive=False)
        self.handlers.append(handler)

    def close(self) -> None:
        """Stop the observer thread and discard pending bursts."""
        for handler in self.handlers:
            handler.cancel()
        self.handlers.clear()
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def _ensure_observer(self) -> BaseObserver:
        if self.observer is None:
            observer = Observer()
            observer.daemon = True
            observer.start()
            self.observer = observer
        return self.observer
