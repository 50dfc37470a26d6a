import logging
from typing import List

from awsmpirun.errors import DiscoveryError, InsufficientCapacityError

from .interfaces import InstanceLifecycleProvider
from .models import NodeInfo

logger = logging.getLogger("awsmpirun.discovery")


class NodeDiscovery:
    def __init__(self, provider: InstanceLifecycleProvider):
        """
        Initialize discovery.

        Args:
            provider: Instance lifecycle provider used to list running nodes
        """
        self.provider = provider

    def discover(self, segment_id: str) -> List[NodeInfo]:
        """
        Return running nodes in a segment, ordered by node id.

        The ordering is lexical on node id so that repeated calls against the
        same inventory produce the same rank assignment.

        Raises:
            DiscoveryError: If the provider query fails
        """
        try:
            nodes = self.provider.list_running_nodes(segment_id)
        except DiscoveryError:
            raise
        except Exception as e:
            raise DiscoveryError(f"failed to describe instances: {e}") from e

        unranked = [node for node in nodes if not node.is_ranked]
        if len(unranked) != len(nodes):
            logger.warning("Provider returned pre-ranked nodes; ranks will be reassigned")

        candidates = sorted(nodes, key=lambda node: node.node_id)
        logger.info(f"Discovered {len(candidates)} running nodes in {segment_id}")
        return candidates

    def require(self, segment_id: str, count: int) -> List[NodeInfo]:
        """
        Discover nodes and fail fast when fewer than ``count`` are running.

        Raises:
            DiscoveryError: If the provider query fails
            InsufficientCapacityError: If fewer than ``count`` nodes are running
        """
        candidates = self.discover(segment_id)
        if len(candidates) < count:
            raise InsufficientCapacityError(requested=count, available=len(candidates))
        return candidates
