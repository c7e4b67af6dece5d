"""Tear down a build session after packaging."""

from __future__ import annotations

import asyncio
import shutil
import typing as typ

from .relocation import relocate_artifacts

if typ.TYPE_CHECKING:
    from ..config import ServiceConfig
    from ..session import BuildSession

__all__ = ["cleanup_session"]


async def cleanup_session(session: BuildSession, service: ServiceConfig) -> None:
    """Relocate artefacts, restore the original root and delete staging.

    The steps run strictly in that order. If relocation raises, the session
    stays redirected and the staging directory is left in place.
    """

    await relocate_artifacts(session, service)
    session.deactivate()
    if session.staging_root.exists():
        await asyncio.to_thread(shutil.rmtree, session.staging_root)
