"""Shared fixtures for the build staging test suite."""

from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from stage_test_helpers import (
    FakeCompiler,
    FakeInvoker,
    FakeNotifier,
    RecordingLogger,
    write_project,
)


@pytest.fixture(scope="session")
def buildstage() -> object:
    """Load the staging package once for reuse across tests."""
    return importlib.import_module("buildstage")


@pytest.fixture
def staging_relocation(buildstage: object) -> object:
    """Expose the relocation module for unit-level assertions."""

    return importlib.import_module("buildstage.staging.relocation")


@pytest.fixture
def staging_cleanup(buildstage: object) -> object:
    """Expose the cleanup module so tests can patch its collaborators."""

    return importlib.import_module("buildstage.staging.cleanup")


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Create an isolated project with sources, dependencies and assets."""
    root = tmp_path / "project"
    root.mkdir()
    write_project(root)
    return root


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def invoker() -> FakeInvoker:
    return FakeInvoker()
