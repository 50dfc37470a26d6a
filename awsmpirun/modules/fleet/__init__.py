"""
Fleet Module - Black Box Interface

Purpose: Discover running nodes and turn them into a ranked fleet
Interface: NodeDiscovery.discover(), NodeDiscovery.require(), assign_ranks()
Hidden: Inventory queries, ordering policy, rank bookkeeping

Can be backed by EC2 or any inventory that implements InstanceLifecycleProvider.
"""

from .discovery import NodeDiscovery
from .interfaces import InstanceLifecycleProvider
from .models import (
    AggregateResult,
    ExecutionHandle,
    ExecutionStatus,
    Fleet,
    InvocationStatus,
    NodeInfo,
    NodeOutcome,
)
from .ranking import assign_ranks, select_candidates

__all__ = [
    "AggregateResult",
    "ExecutionHandle",
    "ExecutionStatus",
    "Fleet",
    "InstanceLifecycleProvider",
    "InvocationStatus",
    "NodeDiscovery",
    "NodeInfo",
    "NodeOutcome",
    "assign_ranks",
    "select_candidates",
]
