"""
Run configuration.

A RunConfig is built once at startup and handed to every component.
It is frozen; components never read flags or environment directly.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from awsmpirun.modules.artifacts import ArtifactSpec


class RunConfig(BaseModel):
    """Immutable settings for one run."""

    model_config = ConfigDict(frozen=True)

    num_instances: int = Field(default=1, description="Requested fleet size", ge=1)
    vpc_id: str = Field(..., description="VPC the fleet is discovered in", min_length=1)
    executable_path: str = Field(
        ..., description="Path of the executable on every node", min_length=1
    )
    port: int = Field(default=50051, description="Port peers listen on", ge=1, le=65535)
    command_timeout: int = Field(
        default=600, description="Remote execution timeout in seconds", ge=30, le=172800
    )
    poll_interval: float = Field(default=2.0, description="Seconds between status queries", ge=0)
    max_poll_duration: Optional[float] = Field(
        None, description="Give up polling a node after this many seconds (unbounded if unset)", gt=0
    )
    document_name: str = Field(default="AWS-RunShellScript", description="SSM document to run")
    working_directory: Optional[str] = Field(None, description="Directory to run the program in")
    output_file: str = Field(default="output.txt", description="Node-side copy of program output")
    artifact: Optional[ArtifactSpec] = Field(
        None, description="Upload this binary and fetch it on every node before running"
    )

    @field_validator("vpc_id")
    @classmethod
    def validate_vpc_id(cls, v):
        """VPC ids look like vpc-0123abcd."""
        if not v.startswith("vpc-"):
            raise ValueError(f"Invalid VPC id: {v}")
        return v
