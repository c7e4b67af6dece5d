"""Staging steps: dependencies, extras, relocation and cleanup."""

from .cleanup import cleanup_session
from .dependencies import stage_dependencies
from .extras import stage_extras
from .relocation import PackagingTopology, determine_topology, relocate_artifacts

__all__ = [
    "PackagingTopology",
    "cleanup_session",
    "determine_topology",
    "relocate_artifacts",
    "stage_dependencies",
    "stage_extras",
]
