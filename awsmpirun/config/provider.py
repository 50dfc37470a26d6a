"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

# Used when neither AWS_REGION nor AWS_DEFAULT_REGION is set
DEFAULT_REGION = "us-west-2"


@dataclass(frozen=True)
class AwsConfig:
    """AWS client configuration."""
    region: str
    max_attempts: int


@dataclass(frozen=True)
class ExecutionDefaults:
    """Defaults for run settings that the CLI may override."""
    port: int
    command_timeout: int
    poll_interval: float
    max_poll_duration: Optional[float]


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_aws_config(self) -> AwsConfig:
        """Get AWS client configuration."""
        ...

    def get_execution_defaults(self) -> ExecutionDefaults:
        """Get execution defaults."""
        ...

    def get_log_level(self) -> str:
        """Get the logging level name."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_aws_config(self) -> AwsConfig:
        """Get AWS configuration from environment variables."""
        region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or DEFAULT_REGION
        return AwsConfig(
            region=region,
            max_attempts=int(os.getenv("AWSMPIRUN_MAX_ATTEMPTS", "5")),
        )

    def get_execution_defaults(self) -> ExecutionDefaults:
        """Get execution defaults from environment variables."""
        max_poll_duration = os.getenv("AWSMPIRUN_MAX_POLL_DURATION")
        return ExecutionDefaults(
            port=int(os.getenv("AWSMPIRUN_PORT", "50051")),
            command_timeout=int(os.getenv("AWSMPIRUN_COMMAND_TIMEOUT", "600")),
            poll_interval=float(os.getenv("AWSMPIRUN_POLL_INTERVAL", "2")),
            max_poll_duration=float(max_poll_duration) if max_poll_duration else None,
        )

    def get_log_level(self) -> str:
        """Get the logging level from the environment."""
        return os.getenv("LOG_LEVEL", "INFO").upper()
