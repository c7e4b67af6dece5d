"""Build session state and active-root redirection."""

from __future__ import annotations

import dataclasses
from pathlib import Path

from .config import BUILD_FOLDER
from .errors import RedirectionError

__all__ = ["BuildSession"]


@dataclasses.dataclass(slots=True)
class BuildSession:
    """Unit of work for one compile/package cycle.

    A session presents one logical project root that is physically two
    directories: the caller's project root and the ``.build`` staging folder
    beneath it. :meth:`activate` and :meth:`deactivate` are the only methods
    that change which of the two is active. Everything else reads
    :meth:`active_root`.

    Attributes
    ----------
    project_root : Path
        Working root of the caller when the session was created.
    original_root : Path | None
        Recorded exactly once by :meth:`activate`. ``None`` until then.
    is_watching : bool
        Set when a watch loop starts. Never reset.
    selected_unit : str | None
        Unit name limiting the session to a single deployable unit.
    links_supported : bool | None
        Cached result of the link capability probe.

    Examples
    --------
    >>> session = BuildSession(Path("/srv/app"))
    >>> session.activate()
    >>> session.active_root()
    PosixPath('/srv/app/.build')
    """

    project_root: Path
    original_root: Path | None = None
    is_watching: bool = False
    selected_unit: str | None = None
    links_supported: bool | None = None
    _redirected: bool = dataclasses.field(default=False, repr=False)

    @property
    def staging_root(self) -> Path:
        """Staging directory, always a direct child of the original root."""
        return (self.original_root or self.project_root) / BUILD_FOLDER

    @property
    def is_redirected(self) -> bool:
        """Return ``True`` while the staging directory is the active root."""
        return self._redirected

    def active_root(self) -> Path:
        """Return the root that compilers and packagers should read."""
        if self._redirected:
            return self.staging_root
        return self.original_root or self.project_root

    def require_original_root(self) -> Path:
        """Return :attr:`original_root` or raise :class:`RedirectionError`."""
        if self.original_root is None:
            message = "Original project root was never recorded; activate() must run first."
            raise RedirectionError(message)
        return self.original_root

    def activate(self) -> None:
        """Redirect the active root to :attr:`staging_root`.

        Repeated calls are no-ops once the original root is recorded.
        """
        if self.original_root is not None:
            return
        self.original_root = self.project_root
        self._redirected = True

    def deactivate(self) -> None:
        """Restore the original root as the active root.

        Raises
        ------
        RedirectionError
            Raised when :meth:`activate` never recorded an original root.
        """
        self.require_original_root()
        self._redirected = False
