"""Public interface for the build staging package."""

from .compiler import CommandCompiler, Compiler, CompilerConfig
from .config import (
    BUILD_FOLDER,
    PackageRules,
    ProjectConfig,
    ServiceConfig,
    SessionOptions,
    UnitConfig,
    load_config,
)
from .errors import CompilationError, ConfigError, RedirectionError, StageError
from .host import StderrLogger
from .notifier import ChangeBurstHandler, FileSystemNotifier
from .packager import PackagingError, assign_artifacts, run_packager
from .plugin import StagingPlugin
from .session import BuildSession
from .staging import (
    PackagingTopology,
    cleanup_session,
    determine_topology,
    relocate_artifacts,
    stage_dependencies,
    stage_extras,
)
from .watch import WatchCoordinator, WatchMode

__all__ = [
    "BUILD_FOLDER",
    "BuildSession",
    "ChangeBurstHandler",
    "CommandCompiler",
    "CompilationError",
    "Compiler",
    "CompilerConfig",
    "ConfigError",
    "FileSystemNotifier",
    "PackageRules",
    "PackagingError",
    "PackagingTopology",
    "ProjectConfig",
    "RedirectionError",
    "ServiceConfig",
    "SessionOptions",
    "StageError",
    "StagingPlugin",
    "StderrLogger",
    "UnitConfig",
    "WatchCoordinator",
    "WatchMode",
    "assign_artifacts",
    "cleanup_session",
    "determine_topology",
    "load_config",
    "relocate_artifacts",
    "run_packager",
    "stage_dependencies",
    "stage_extras",
]
