"""
Error taxonomy for awsmpirun.

Fatal/pre-flight errors abort a run before anything is dispatched.
Per-node errors are recorded against a single node and never abort siblings.
ThrottledError is transient and retried by the poller.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from awsmpirun.modules.fleet.models import AggregateResult


class AwsMpiRunError(Exception):
    """Base class for all awsmpirun errors."""


class DiscoveryError(AwsMpiRunError):
    """The instance lifecycle provider could not list running nodes."""


class InsufficientCapacityError(AwsMpiRunError):
    """Fewer running nodes than the requested fleet size."""

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough instances in the VPC. Requested: {requested}, Available: {available}"
        )


class FleetInvariantError(AwsMpiRunError):
    """A fleet or address table violates its invariants. Always a bug."""


class ArtifactError(AwsMpiRunError):
    """The artifact store rejected an upload or download."""


class SubmissionError(AwsMpiRunError):
    """A remote execution request for one node could not be submitted."""

    def __init__(self, node_id: str, message: str):
        self.node_id = node_id
        super().__init__(message)


class QueryError(AwsMpiRunError):
    """A status query for one node's invocation failed."""

    def __init__(self, node_id: str, message: str):
        self.node_id = node_id
        super().__init__(message)


class ThrottledError(QueryError):
    """The status query was rate limited and should be retried."""


class RunFailedError(AwsMpiRunError):
    """At least one node did not reach Success."""

    def __init__(self, result: "AggregateResult", message: Optional[str] = None):
        self.result = result
        super().__init__(message or result.summary())
