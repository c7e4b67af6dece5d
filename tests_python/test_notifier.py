"""Tests for the watchdog-backed change notifier."""

from __future__ import annotations

import threading
import time
from pathlib import Path

from watchdog.events import (
    DirModifiedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileOpenedEvent,
)


def _wait_for(event: threading.Event, timeout: float = 5.0) -> bool:
    return event.wait(timeout)


def test_handler_coalesces_bursts(buildstage: object, tmp_path: Path) -> None:
    """Several quick events should produce a single callback."""

    source = tmp_path / "handler.ts"
    fired = threading.Event()
    bursts: list[int] = []

    def on_burst() -> None:
        bursts.append(1)
        fired.set()

    handler = buildstage.ChangeBurstHandler([source], on_burst, quiet_period=0.1)
    for _ in range(3):
        handler.dispatch(FileModifiedEvent(str(source)))
        time.sleep(0.01)

    assert _wait_for(fired), "A burst should fire after the quiet period"
    time.sleep(0.2)
    assert bursts == [1], "Events within the quiet period form one burst"


def test_handler_ignores_unrelated_events(buildstage: object, tmp_path: Path) -> None:
    source = tmp_path / "handler.ts"
    bursts: list[int] = []
    handler = buildstage.ChangeBurstHandler(
        [source], lambda: bursts.append(1), quiet_period=0.01
    )

    handler.dispatch(FileModifiedEvent(str(tmp_path / "other.ts")))
    handler.dispatch(DirModifiedEvent(str(tmp_path)))
    handler.dispatch(FileOpenedEvent(str(source)))
    time.sleep(0.1)

    assert bursts == [], "Only writes to watched files start a burst"


def test_handler_tracks_atomic_replacement(buildstage: object, tmp_path: Path) -> None:
    """Editors that save via rename report the watched file as the destination."""

    source = tmp_path / "handler.ts"
    fired = threading.Event()
    handler = buildstage.ChangeBurstHandler([source], fired.set, quiet_period=0.01)

    handler.dispatch(FileMovedEvent(str(tmp_path / ".handler.ts.swp"), str(source)))

    assert _wait_for(fired)


def test_handler_cancel_drops_pending_burst(buildstage: object, tmp_path: Path) -> None:
    source = tmp_path / "handler.ts"
    bursts: list[int] = []
    handler = buildstage.ChangeBurstHandler(
        [source], lambda: bursts.append(1), quiet_period=0.1
    )

    handler.dispatch(FileModifiedEvent(str(source)))
    handler.cancel()
    time.sleep(0.2)

    assert bursts == []


def test_notifier_reports_file_changes(buildstage: object, tmp_path: Path) -> None:
    source = tmp_path / "handler.ts"
    source.write_text("v1", encoding="utf-8")
    fired = threading.Event()
    notifier = buildstage.FileSystemNotifier(quiet_period=0.05)

    try:
        notifier.watch(["handler.ts"], tmp_path, fired.set)
        time.sleep(0.1)
        source.write_text("v2", encoding="utf-8")
        assert _wait_for(fired), "Writing a watched file should fire a burst"
    finally:
        notifier.close()

    assert notifier.observer is None, "close() should stop the observer"


def test_notifier_reports_deleted_files(buildstage: object, tmp_path: Path) -> None:
    source = tmp_path / "handler.ts"
    source.write_text("v1", encoding="utf-8")
    fired = threading.Event()
    notifier = buildstage.FileSystemNotifier(quiet_period=0.05)

    try:
        notifier.watch(["handler.ts"], tmp_path, fired.set)
        time.sleep(0.1)
        source.unlink()
        assert _wait_for(fired)
    finally:
        notifier.close()
