"""
Artifacts Module - Black Box Interface

Purpose: Stage the program binary so every node can fetch it
Interface: ArtifactDistributor.publish(), download_commands()
Hidden: Object storage, key naming, node-side fetch commands

Only used by the distribution variant; plain runs expect the executable
to already be present on every node.
"""

from .distribution import ArtifactDistributor, ArtifactSpec, download_commands
from .interfaces import ArtifactStore

__all__ = ["ArtifactDistributor", "ArtifactSpec", "ArtifactStore", "download_commands"]
