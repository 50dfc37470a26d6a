"""
awsmpirun shared data models.

These models describe the nodes of a run and everything that is passed
between the discovery, dispatch, polling and aggregation stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from awsmpirun.errors import FleetInvariantError, RunFailedError


class ExecutionStatus(str, Enum):
    """Status of one node's invocation."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.SUCCESS, ExecutionStatus.FAILED)


@dataclass(frozen=True)
class NodeInfo:
    """A running compute node. ``rank`` is None until the fleet is ranked."""

    node_id: str
    private_address: str = ""
    public_address: str = ""
    rank: Optional[int] = None

    @property
    def is_ranked(self) -> bool:
        return self.rank is not None

    @property
    def routable_address(self) -> str:
        """Private address if known, otherwise the public one."""
        return self.private_address or self.public_address


class Fleet:
    """
    Fixed-size ordered set of ranked nodes for one run.

    Ranks must be exactly 0..N-1, each used once, in fleet order.
    The node with rank 0 is the leader.
    """

    def __init__(self, nodes: Sequence[NodeInfo]):
        self._nodes: Tuple[NodeInfo, ...] = tuple(nodes)
        self._validate()

    def _validate(self) -> None:
        if not self._nodes:
            raise FleetInvariantError("A fleet must contain at least one node")

        ranks = [node.rank for node in self._nodes]
        if ranks != list(range(len(self._nodes))):
            raise FleetInvariantError(f"Fleet ranks must be 0..{len(self._nodes) - 1}, got {ranks}")

        ids = [node.node_id for node in self._nodes]
        if len(set(ids)) != len(ids):
            raise FleetInvariantError(f"Duplicate node ids in fleet: {ids}")

    @property
    def size(self) -> int:
        return len(self._nodes)

    @property
    def leader(self) -> NodeInfo:
        return self._nodes[0]

    @property
    def node_ids(self) -> List[str]:
        return [node.node_id for node in self._nodes]

    def by_id(self) -> Dict[str, NodeInfo]:
        return {node.node_id: node for node in self._nodes}

    def __iter__(self) -> Iterator[NodeInfo]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, rank: int) -> NodeInfo:
        return self._nodes[rank]

    def __repr__(self) -> str:
        return f"Fleet({self.node_ids!r})"


@dataclass(frozen=True)
class ExecutionHandle:
    """Reference to one dispatched invocation."""

    node_id: str
    command_id: str


@dataclass(frozen=True)
class InvocationStatus:
    """One status reading from the remote command service."""

    status: ExecutionStatus
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    # Service-specific status string (e.g. "TimedOut"), kept for error messages
    raw_status: Optional[str] = None


@dataclass(frozen=True)
class NodeOutcome:
    """Terminal result for one node."""

    node_id: str
    status: ExecutionStatus
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    @classmethod
    def failed(cls, node_id: str, error: str, stderr: Optional[str] = None) -> "NodeOutcome":
        return cls(node_id=node_id, status=ExecutionStatus.FAILED, stderr=stderr, error=error)


@dataclass(frozen=True)
class AggregateResult:
    """Combined outcome of a run."""

    overall_success: bool
    per_node_error: Mapping[str, Optional[str]] = field(default_factory=dict)
    leader_output: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "per_node_error", MappingProxyType(dict(self.per_node_error)))

    @property
    def failed_nodes(self) -> Dict[str, str]:
        """Node id -> recorded cause, for every node that did not succeed."""
        return {
            node_id: error
            for node_id, error in self.per_node_error.items()
            if error is not None
        }

    def summary(self) -> str:
        if self.overall_success:
            return f"All {len(self.per_node_error)} nodes succeeded"
        lines = [f"{len(self.failed_nodes)} of {len(self.per_node_error)} nodes failed:"]
        for node_id, error in self.failed_nodes.items():
            lines.append(f"  {node_id}: {error}")
        return "\n".join(lines)

    def raise_for_failure(self) -> None:
        if not self.overall_success:
            raise RunFailedError(self)
