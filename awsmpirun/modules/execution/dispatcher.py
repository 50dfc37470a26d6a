import asyncio
import logging
from typing import Dict, Mapping, Optional, Sequence

from awsmpirun.config.run import RunConfig
from awsmpirun.errors import SubmissionError
from awsmpirun.modules.environment.composer import NodeEnvironment
from awsmpirun.modules.fleet.models import ExecutionHandle, Fleet, NodeInfo

from .interfaces import RemoteCommandService

logger = logging.getLogger("awsmpirun.dispatch")


class DispatchLedger:
    """
    Handles and submission errors collected during dispatch.

    Written concurrently by per-node tasks; every update goes through
    the same lock.
    """

    def __init__(self):
        self._handles: Dict[str, ExecutionHandle] = {}
        self._errors: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def record_handle(self, handle: ExecutionHandle) -> None:
        async with self._lock:
            self._errors.pop(handle.node_id, None)
            self._handles[handle.node_id] = handle

    async def record_error(self, node_id: str, error: str) -> None:
        async with self._lock:
            self._handles.pop(node_id, None)
            self._errors[node_id] = error

    @property
    def handles(self) -> Dict[str, ExecutionHandle]:
        return dict(self._handles)

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)


class CommandDispatcher:
    def __init__(self, command_service: RemoteCommandService, config: RunConfig):
        """
        Initialize dispatcher.

        Args:
            command_service: Remote command service shared by all node tasks
            config: Run configuration (executable path, timeout, output file)
        """
        self.command_service = command_service
        self.config = config

    def build_script(
        self, environment: NodeEnvironment, setup_commands: Sequence[str] = ()
    ) -> str:
        return environment.to_script(
            self.config.executable_path,
            output_file=self.config.output_file,
            working_directory=self.config.working_directory,
            setup_commands=setup_commands,
        )

    async def dispatch(
        self,
        fleet: Fleet,
        environments: Mapping[str, NodeEnvironment],
        setup_commands: Sequence[str] = (),
    ) -> DispatchLedger:
        """
        Submit the program to every node concurrently.

        Every node gets exactly one attempt; a failure on one node does not
        cancel the others. Returns once all attempts have finished.

        Args:
            fleet: Ranked fleet
            environments: Node id -> environment, one per fleet node
            setup_commands: Shell lines run before the program on every node

        Returns:
            DispatchLedger with a handle or an error for every node
        """
        ledger = DispatchLedger()
        tasks = [
            self._dispatch_one(node, environments.get(node.node_id), setup_commands, ledger)
            for node in fleet
        ]
        await asyncio.gather(*tasks)

        logger.info(
            f"Dispatch finished: {len(ledger.handles)} submitted, {len(ledger.errors)} failed"
        )
        return ledger

    async def _dispatch_one(
        self,
        node: NodeInfo,
        environment: Optional[NodeEnvironment],
        setup_commands: Sequence[str],
        ledger: DispatchLedger,
    ) -> None:
        if environment is None:
            await ledger.record_error(node.node_id, "no environment composed for node")
            return

        script = self.build_script(environment, setup_commands)
        try:
            handle = await asyncio.to_thread(
                self.command_service.submit,
                node.node_id,
                script,
                self.config.command_timeout,
            )
        except SubmissionError as e:
            logger.error(f"Failed to execute program on instance {node.node_id}: {e}")
            await ledger.record_error(node.node_id, str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected error submitting to instance {node.node_id}")
            await ledger.record_error(node.node_id, f"unexpected submission error: {e}")
            return

        logger.info(f"Submitted rank {node.rank} to {node.node_id} as command {handle.command_id}")
        await ledger.record_handle(handle)
