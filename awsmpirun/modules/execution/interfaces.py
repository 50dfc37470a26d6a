"""Remote command interfaces following Black Box Design principles."""
from typing import Protocol

from awsmpirun.modules.fleet.models import ExecutionHandle, InvocationStatus


class RemoteCommandService(Protocol):
    """
    Protocol for remote command execution.

    Implementations must be safe to call from several threads at once;
    the dispatcher and poller share one instance across all node tasks.
    """

    def submit(self, node_id: str, script: str, timeout: int) -> ExecutionHandle:
        """
        Start ``script`` on one node.

        Args:
            node_id: Target node
            script: Shell script to run
            timeout: Execution timeout enforced by the service, in seconds

        Returns:
            Handle for the new invocation

        Raises:
            SubmissionError: If the request was rejected
        """
        ...

    def get_status(self, handle: ExecutionHandle) -> InvocationStatus:
        """
        Read the current status of an invocation.

        Raises:
            ThrottledError: If the query was rate limited
            QueryError: For any other query failure
        """
        ...
