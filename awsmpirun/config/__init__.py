"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: RunConfig, EnvConfigProvider.get_aws_config(), get_execution_defaults()
Hidden: Environment parsing, defaults, validation logic
"""

from .provider import (
    DEFAULT_REGION,
    AwsConfig,
    ConfigProvider,
    EnvConfigProvider,
    ExecutionDefaults,
)
from .run import RunConfig

__all__ = [
    "DEFAULT_REGION",
    "AwsConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "ExecutionDefaults",
    "RunConfig",
]
