"""
Completion polling.

Each dispatched node is polled by its own task until it reaches a terminal
status:

    PENDING / IN_PROGRESS --sleep--> query again
    throttled query       --sleep--> query again (never counted as failure)
    other query error     ---------> FAILED
    SUCCESS               ---------> SUCCESS (stdout/stderr captured)
    FAILED                ---------> FAILED (stderr captured)
"""

import asyncio
import logging
from typing import Dict, Mapping, Optional

from awsmpirun.errors import QueryError, ThrottledError
from awsmpirun.modules.fleet.models import ExecutionHandle, ExecutionStatus, NodeOutcome

from .interfaces import RemoteCommandService

logger = logging.getLogger("awsmpirun.poller")


class CompletionPoller:
    def __init__(
        self,
        command_service: RemoteCommandService,
        poll_interval: float = 2.0,
        max_poll_duration: Optional[float] = None,
    ):
        """
        Initialize poller.

        Args:
            command_service: Remote command service shared by all node tasks
            poll_interval: Seconds to wait between status queries
            max_poll_duration: Per-node limit in seconds; None polls until the
                service reports a terminal status
        """
        self.command_service = command_service
        self.poll_interval = poll_interval
        self.max_poll_duration = max_poll_duration

    async def poll_all(self, handles: Mapping[str, ExecutionHandle]) -> Dict[str, NodeOutcome]:
        """
        Poll every handle concurrently until all are terminal.

        Returns:
            Node id -> terminal outcome
        """
        outcomes = await asyncio.gather(*(self.poll(handle) for handle in handles.values()))
        return {outcome.node_id: outcome for outcome in outcomes}

    async def poll(self, handle: ExecutionHandle) -> NodeOutcome:
        """Poll one invocation until it is terminal."""
        loop = asyncio.get_running_loop()
        deadline = None
        if self.max_poll_duration is not None:
            deadline = loop.time() + self.max_poll_duration

        throttled = 0
        while True:
            if deadline is not None and loop.time() >= deadline:
                logger.warning(f"Gave up polling {handle.node_id} after {self.max_poll_duration}s")
                return NodeOutcome.failed(
                    handle.node_id,
                    f"command did not finish within {self.max_poll_duration}s",
                )

            try:
                reading = await asyncio.to_thread(self.command_service.get_status, handle)
            except ThrottledError:
                throttled += 1
                logger.debug(f"Status query for {handle.node_id} throttled ({throttled}x), retrying")
                await asyncio.sleep(self.poll_interval)
                continue
            except QueryError as e:
                logger.error(f"Failed to get command invocation for {handle.node_id}: {e}")
                return NodeOutcome.failed(handle.node_id, f"failed to get command invocation: {e}")
            except Exception as e:
                logger.exception(f"Unexpected error querying {handle.node_id}")
                return NodeOutcome.failed(handle.node_id, f"unexpected status query error: {e}")

            if not reading.status.is_terminal:
                await asyncio.sleep(self.poll_interval)
                continue

            if reading.status == ExecutionStatus.SUCCESS:
                logger.info(f"Command {handle.command_id} succeeded on {handle.node_id}")
                return NodeOutcome(
                    node_id=handle.node_id,
                    status=ExecutionStatus.SUCCESS,
                    stdout=reading.stdout,
                    stderr=reading.stderr,
                )

            raw = reading.raw_status or reading.status.value
            logger.warning(f"Command {handle.command_id} on {handle.node_id} ended with {raw}")
            return NodeOutcome.failed(
                handle.node_id,
                f"command failed with status {raw}: {reading.stderr or ''}".rstrip(),
                stderr=reading.stderr,
            )
