"""
Artifact distribution.

The program binary is uploaded once from the operator's machine, then every
node pulls it with the AWS CLI as the first step of its dispatched script.
"""

import logging
import os
import shlex
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from awsmpirun.errors import ArtifactError

from .interfaces import ArtifactStore

logger = logging.getLogger("awsmpirun.artifacts")


class ArtifactSpec(BaseModel):
    """Where the program binary comes from and where it is stored."""

    model_config = ConfigDict(frozen=True)

    local_path: str = Field(..., description="Binary on the operator's machine", min_length=1)
    bucket: str = Field(..., description="Bucket the binary is staged in", min_length=3)
    key: Optional[str] = Field(None, description="Object key, defaults to the file name")

    @property
    def object_key(self) -> str:
        return self.key or os.path.basename(self.local_path)


def download_commands(uri: str, destination: str) -> List[str]:
    """Shell lines that fetch an artifact onto a node and make it executable."""
    return [
        f"aws s3 cp {shlex.quote(uri)} {shlex.quote(destination)}",
        f"chmod +x {shlex.quote(destination)}",
    ]


class ArtifactDistributor:
    def __init__(self, store: ArtifactStore):
        self.store = store

    def publish(self, spec: ArtifactSpec) -> str:
        """
        Upload the binary described by ``spec``.

        Returns:
            URI nodes should download the binary from

        Raises:
            ArtifactError: If the local file is missing or the upload fails
        """
        if not os.path.isfile(spec.local_path):
            raise ArtifactError(f"failed to open file {spec.local_path}: no such file")

        key = spec.object_key
        try:
            self.store.upload(spec.local_path, key)
        except ArtifactError:
            raise
        except Exception as e:
            raise ArtifactError(f"failed to upload file: {e}") from e

        uri = self.store.object_uri(key)
        logger.info(f"Published {spec.local_path} as {uri}")
        return uri
