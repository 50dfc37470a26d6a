"""Instance lifecycle interfaces following Black Box Design principles."""
from typing import List, Protocol

from .models import NodeInfo


class InstanceLifecycleProvider(Protocol):
    """Protocol for node inventories - allows swappable implementations."""

    def list_running_nodes(self, segment_id: str) -> List[NodeInfo]:
        """
        List nodes currently running in a network segment.

        Args:
            segment_id: Network segment (VPC) identifier

        Returns:
            Unranked NodeInfo records, in any order

        Raises:
            DiscoveryError: If the inventory could not be queried
        """
        ...
