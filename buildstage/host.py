"""Protocols describing the collaborators supplied by the host."""

from __future__ import annotations

import sys
import typing as typ
from pathlib import Path

__all__ = ["ChangeNotifier", "Invoker", "Logger", "StderrLogger"]


class Logger(typ.Protocol):
    """Receive coarse progress messages."""

    def log(self, message: str) -> None: ...


class Invoker(typ.Protocol):
    """Run a single local invocation of the selected unit.

    ``unload`` discards any in-process state loaded from ``path`` so the next
    invocation executes freshly compiled code.
    """

    def invoke(self) -> typ.Awaitable[None] | None: ...

    def unload(self, path: Path) -> None: ...


class ChangeNotifier(typ.Protocol):
    """Observe files and report coalesced bursts of changes.

    ``on_change_burst`` fires once per burst and may be called from a thread
    other than the caller.
    """

    def watch(
        self,
        paths: typ.Collection[str],
        root: Path,
        on_change_burst: typ.Callable[[], None],
    ) -> None: ...


class StderrLogger:
    """Write progress messages to standard error."""

    def __init__(self, prefix: str = "buildstage") -> None:
        self.prefix = prefix

    def log(self, message: str) -> None:
        print(f"{self.prefix}: {message}", file=sys.stderr)
