import logging
from typing import Any, Dict

import boto3
from botocore.config import Config

from awsmpirun.config.provider import AwsConfig

logger = logging.getLogger("awsmpirun.aws")


class AwsClientFactory:
    """
    Creates boto3 clients for one region, at most one per service.

    boto3 clients are thread-safe, so a single client is shared by every
    per-node task.
    """

    def __init__(self, aws_config: AwsConfig, session: Any = None):
        self.aws_config = aws_config
        self._session = session
        self._clients: Dict[str, Any] = {}

    def client(self, service_name: str) -> Any:
        if service_name not in self._clients:
            create = self._session.client if self._session is not None else boto3.client
            self._clients[service_name] = create(
                service_name,
                region_name=self.aws_config.region,
                config=Config(retries={"max_attempts": self.aws_config.max_attempts, "mode": "standard"}),
            )
            logger.debug(f"Created {service_name} client in {self.aws_config.region}")
        return self._clients[service_name]

    def ec2(self) -> Any:
        return self.client("ec2")

    def ssm(self) -> Any:
        return self.client("ssm")

    def s3(self) -> Any:
        return self.client("s3")


def error_code(exc: Exception) -> str:
    """Error code of a botocore ClientError, or the exception class name."""
    response = getattr(exc, "response", None) or {}
    return str(response.get("Error", {}).get("Code") or type(exc).__name__)
