"""
AWS Module - Black Box Interface

Purpose: AWS-backed collaborators for discovery, execution and artifact storage
Interface: Ec2InstanceProvider, SsmCommandService, S3ArtifactStore, AwsClientFactory
Hidden: boto3 clients, pagination, retry configuration, error code translation

Each adapter implements one protocol from the fleet, execution or artifacts
module and can be swapped for another cloud or a test double.
"""

from .clients import AwsClientFactory
from .ec2 import Ec2InstanceProvider
from .s3 import S3ArtifactStore
from .ssm import SsmCommandService

__all__ = ["AwsClientFactory", "Ec2InstanceProvider", "S3ArtifactStore", "SsmCommandService"]
