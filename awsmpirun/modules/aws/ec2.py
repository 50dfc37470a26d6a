import logging
from typing import Any, List

from botocore.exceptions import BotoCoreError, ClientError

from awsmpirun.errors import DiscoveryError
from awsmpirun.modules.fleet.models import NodeInfo

logger = logging.getLogger("awsmpirun.aws.ec2")


class Ec2InstanceProvider:
    """InstanceLifecycleProvider backed by EC2 DescribeInstances."""

    def __init__(self, ec2_client: Any):
        self.client = ec2_client

    def list_running_nodes(self, segment_id: str) -> List[NodeInfo]:
        """
        List running instances in a VPC.

        Instances without any IP address cannot be reached by peers and are
        skipped.

        Raises:
            DiscoveryError: If DescribeInstances fails
        """
        filters = [
            {"Name": "vpc-id", "Values": [segment_id]},
            {"Name": "instance-state-name", "Values": ["running"]},
        ]

        nodes: List[NodeInfo] = []
        try:
            paginator = self.client.get_paginator("describe_instances")
            for page in paginator.paginate(Filters=filters):
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        node = self._to_node(instance)
                        if node is not None:
                            nodes.append(node)
        except (BotoCoreError, ClientError) as e:
            raise DiscoveryError(f"failed to describe instances: {e}") from e

        return nodes

    @staticmethod
    def _to_node(instance: dict):
        instance_id = instance.get("InstanceId")
        private_ip = instance.get("PrivateIpAddress") or ""
        public_ip = instance.get("PublicIpAddress") or ""
        if not instance_id:
            return None
        if not private_ip and not public_ip:
            logger.debug(f"Skipping {instance_id}: no IP address")
            return None
        return NodeInfo(node_id=instance_id, private_address=private_ip, public_address=public_ip)
