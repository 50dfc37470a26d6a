"""Artifact storage interfaces following Black Box Design principles."""
from typing import Protocol


class ArtifactStore(Protocol):
    """Protocol for program binary storage."""

    def upload(self, local_path: str, key: str) -> None:
        """
        Upload a local file under ``key``.

        Raises:
            ArtifactError: If the upload fails
        """
        ...

    def download(self, key: str, local_path: str) -> None:
        """
        Download the object stored under ``key`` to ``local_path``.

        Raises:
            ArtifactError: If the download fails
        """
        ...

    def object_uri(self, key: str) -> str:
        """URI a node can fetch ``key`` from (e.g. ``s3://bucket/key``)."""
        ...
