"""Configuration models and loader for the staging pipeline.

This module provides dataclasses describing a service, its deployable units
and the per-session options, together with a loader that parses the TOML
project file.

Usage
-----
Load a project configuration::

    from pathlib import Path
    from buildstage.config import load_config

    project = load_config(Path("buildstage.toml"))
    print(f"Units: {', '.join(project.service.units)}")
"""

from __future__ import annotations

import dataclasses
import typing as typ
from pathlib import Path

import tomllib

from .errors import ConfigError

__all__ = [
    "BUILD_FOLDER",
    "PLUGIN_NAME",
    "PackageRules",
    "PackagerSettings",
    "CompilerSettings",
    "ProjectConfig",
    "ServiceConfig",
    "SessionOptions",
    "UnitConfig",
    "load_config",
]

BUILD_FOLDER = ".build"
PLUGIN_NAME = "buildstage"


@dataclasses.dataclass(slots=True)
class PackageRules:
    """Packaging rules attached to a service or to a single unit.

    Attributes
    ----------
    include : list[str]
        Glob patterns naming extra files to ship alongside compiled output.
    exclude : list[str]
        Glob patterns the packager must leave out.
    artifact : str | None
        Path of the packaged archive. Populated by the packager and rewritten
        by relocation.
    individually : bool
        Whether every unit is packaged into its own archive. Only meaningful
        at service level.
    """

    include: list[str] = dataclasses.field(default_factory=list)
    exclude: list[str] = dataclasses.field(default_factory=list)
    artifact: str | None = None
    individually: bool = False


@dataclasses.dataclass(slots=True)
class UnitConfig:
    """Describe a deployable unit (a single function target)."""

    name: str
    handler: str
    package: PackageRules = dataclasses.field(default_factory=PackageRules)


@dataclasses.dataclass(slots=True)
class ServiceConfig:
    """Service-wide settings consumed by the pipeline.

    Parameters
    ----------
    name : str
        Service name, used to derive the monolithic artefact filename.
    provider : str
        Provider tag passed to the compiler when extracting entry files.
    units : dict[str, UnitConfig]
        Deployable units keyed by name.
    package : PackageRules
        Service-level include globs, artefact path and packaging mode.
    dependencies_dir : str, default="node_modules"
        Runtime dependency tree, relative to the project root. An empty string
        disables dependency staging.
    manifest_file : str, default="package.json"
        Dependency manifest, relative to the project root. An empty string
        disables manifest staging.
    packaged_dir : str, default=".serverless"
        Folder the packager writes archives into.
    plugin_path : str | None, optional
        Module path excluded from every unit's package. Defaults to
        ``<dependencies_dir>/buildstage``.
    """

    name: str
    provider: str
    units: dict[str, UnitConfig]
    package: PackageRules = dataclasses.field(default_factory=PackageRules)
    dependencies_dir: str = "node_modules"
    manifest_file: str = "package.json"
    packaged_dir: str = ".serverless"
    plugin_path: str | None = None

    def __post_init__(self) -> None:
        if self.plugin_path is None:
            base = self.dependencies_dir or "node_modules"
            self.plugin_path = f"{base}/{PLUGIN_NAME}"

    def all_units(self) -> list[str]:
        """Return every declared unit name in declaration order."""
        return list(self.units)


@dataclasses.dataclass(slots=True)
class SessionOptions:
    """Caller-facing switches for one build session."""

    function: str | None = None
    watch: bool = False


@dataclasses.dataclass(slots=True)
class CompilerSettings:
    """Settings for :class:`buildstage.compiler.CommandCompiler`."""

    command: list[str]
    name: str = "compiler"
    extensions: list[str] = dataclasses.field(default_factory=lambda: [".ts", ".js"])
    config_file: str | None = None


@dataclasses.dataclass(slots=True)
class PackagerSettings:
    """Settings for the external packager run by the CLI."""

    command: list[str]
    artifact_suffix: str = ".zip"


@dataclasses.dataclass(slots=True)
class ProjectConfig:
    """Concrete configuration produced by :func:`load_config`."""

    root: Path
    service: ServiceConfig
    compiler: CompilerSettings | None = None
    packager: PackagerSettings | None = None


def load_config(config_file: Path) -> ProjectConfig:
    """Load the project configuration from ``config_file``.

    Parameters
    ----------
    config_file : Path
        Path to the TOML project file. Its parent directory becomes the
        project root.

    Returns
    -------
    ProjectConfig
        Service definition plus optional compiler and packager settings.

    Raises
    ------
    FileNotFoundError
        Raised when ``config_file`` does not exist.
    ConfigError
        Raised when required keys are missing or have the wrong type.
    """
    config_file = Path(config_file)
    if not config_file.is_file():
        message = f"Configuration file not found at {config_file}"
        raise FileNotFoundError(message)

    data = _load_toml(config_file)
    service_cfg = _table(data, "service", config_file)
    _require_keys(service_cfg, {"name"}, "service", config_file)
    units = _make_units(data.get("units", {}), config_file)
    package = _make_rules(service_cfg.get("package", {}), "service.package", config_file)

    service = ServiceConfig(
        name=service_cfg["name"],
        provider=service_cfg.get("provider", "aws"),
        units=units,
        package=package,
        dependencies_dir=service_cfg.get("dependencies_dir", "node_modules"),
        manifest_file=service_cfg.get("manifest_file", "package.json"),
        packaged_dir=service_cfg.get("packaged_dir", ".serverless"),
        plugin_path=service_cfg.get("plugin_path"),
    )
    return ProjectConfig(
        root=config_file.resolve().parent,
        service=service,
        compiler=_make_compiler(data.get("compiler"), config_file),
        packager=_make_packager(data.get("packager"), config_file),
    )


def _load_toml(path: Path) -> dict[str, typ.Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        message = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(message) from exc


def _table(data: dict[str, typ.Any], key: str, config_path: Path) -> dict[str, typ.Any]:
    try:
        section = data[key]
    except KeyError as exc:
        message = f"Missing configuration key in {config_path}: {exc}"
        raise ConfigError(message) from exc
    if not isinstance(section, dict):
        message = f"[{key}] must be a table in {config_path}"
        raise ConfigError(message)
    return section


def _make_units(
    entries: object, config_path: Path
) -> dict[str, UnitConfig]:
    if not isinstance(entries, dict):
        message = f"[units] must be a table of unit definitions in {config_path}"
        raise ConfigError(message)
    units: dict[str, UnitConfig] = {}
    for name, entry in entries.items():
        label = f"units.{name}"
        if not isinstance(entry, dict):
            message = f"[{label}] must be a table in {config_path}"
            raise ConfigError(message)
        _require_keys(entry, {"handler"}, label, config_path)
        units[name] = UnitConfig(
            name=name,
            handler=entry["handler"],
            package=_make_rules(entry.get("package", {}), f"{label}.package", config_path),
        )
    return units


def _make_rules(entry: object, label: str, config_path: Path) -> PackageRules:
    if not isinstance(entry, dict):
        message = f"[{label}] must be a table in {config_path}"
        raise ConfigError(message)
    return PackageRules(
        include=_string_list(entry.get("include"), f"{label}.include", config_path),
        exclude=_string_list(entry.get("exclude"), f"{label}.exclude", config_path),
        artifact=entry.get("artifact"),
        individually=bool(entry.get("individually", False)),
    )


def _make_compiler(entry: object, config_path: Path) -> CompilerSettings | None:
    if entry is None:
        return None
    if not isinstance(entry, dict):
        message = f"[compiler] must be a table in {config_path}"
        raise ConfigError(message)
    _require_keys(entry, {"command"}, "compiler", config_path)
    command = _string_list(entry["command"], "compiler.command", config_path)
    if not command:
        message = f"[compiler] command must not be empty in {config_path}"
        raise ConfigError(message)
    settings = CompilerSettings(
        command=command,
        name=entry.get("name", Path(command[0]).name),
        config_file=entry.get("config_file"),
    )
    if "extensions" in entry:
        settings.extensions = _string_list(
            entry["extensions"], "compiler.extensions", config_path
        )
    return settings


def _make_packager(entry: object, config_path: Path) -> PackagerSettings | None:
    if entry is None:
        return None
    if not isinstance(entry, dict):
        message = f"[packager] must be a table in {config_path}"
        raise ConfigError(message)
    _require_keys(entry, {"command"}, "packager", config_path)
    return PackagerSettings(
        command=_string_list(entry["command"], "packager.command", config_path),
        artifact_suffix=entry.get("artifact_suffix", ".zip"),
    )


def _require_keys(
    section: dict[str, typ.Any], keys: set[str], label: str, config_path: Path
) -> None:
    """Ensure ``section`` defines ``keys``.

    Examples
    --------
    >>> _require_keys(  # doctest: +SKIP
    ...     {'name': 'demo'},
    ...     {'name'},
    ...     'service',
    ...     Path('cfg'),
    ... )
    """
    if missing := sorted(key for key in keys if key not in section):
        joined = ", ".join(missing)
        message = (
            "Missing required key(s) "
            f"{joined} in [{label}] section of {config_path}"
        )
        raise ConfigError(message)


def _string_list(value: object, label: str, config_path: Path) -> list[str]:
    """Return ``value`` as a list of strings, accepting a bare string."""

    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        message = f"{label} must be a list of strings in {config_path}"
        raise ConfigError(message)
    return list(value)
