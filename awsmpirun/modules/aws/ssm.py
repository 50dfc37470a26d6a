"""SSM Run Command implementation of RemoteCommandService."""

import logging
import threading
from typing import Any, Dict

from botocore.exceptions import BotoCoreError, ClientError

from awsmpirun.errors import QueryError, SubmissionError, ThrottledError
from awsmpirun.modules.fleet.models import ExecutionHandle, ExecutionStatus, InvocationStatus

from .clients import error_code

logger = logging.getLogger("awsmpirun.aws.ssm")

DEFAULT_DOCUMENT = "AWS-RunShellScript"

THROTTLING_CODES = {
    "ThrottlingException",
    "Throttling",
    "TooManyRequestsException",
    "RequestLimitExceeded",
}

# Returned for a short while after SendCommand, before the invocation is visible
NOT_YET_VISIBLE_CODES = {"InvocationDoesNotExist"}

# Consecutive not-yet-visible readings tolerated per command (about a minute at 2s)
DEFAULT_MAX_NOT_VISIBLE = 30

STATUS_MAP = {
    "Pending": ExecutionStatus.PENDING,
    "Delayed": ExecutionStatus.PENDING,
    "InProgress": ExecutionStatus.IN_PROGRESS,
    "Cancelling": ExecutionStatus.IN_PROGRESS,
    "Success": ExecutionStatus.SUCCESS,
}


class SsmCommandService:
    def __init__(
        self,
        ssm_client: Any,
        document_name: str = DEFAULT_DOCUMENT,
        max_not_visible: int = DEFAULT_MAX_NOT_VISIBLE,
    ):
        """
        Initialize SSM command service.

        Args:
            ssm_client: boto3 SSM client
            document_name: Shell document to run scripts with
            max_not_visible: Consecutive InvocationDoesNotExist answers reported
                as Pending before the query counts as failed
        """
        self.client = ssm_client
        self.document_name = document_name
        self.max_not_visible = max_not_visible
        self._not_visible: Dict[str, int] = {}
        self._lock = threading.Lock()

    def submit(self, node_id: str, script: str, timeout: int) -> ExecutionHandle:
        try:
            response = self.client.send_command(
                DocumentName=self.document_name,
                InstanceIds=[node_id],
                Parameters={
                    "commands": script.splitlines(),
                    "executionTimeout": [str(timeout)],
                },
                TimeoutSeconds=timeout,
                Comment="awsmpirun",
            )
        except (BotoCoreError, ClientError) as e:
            raise SubmissionError(node_id, f"{error_code(e)}: {e}") from e

        command_id = (response.get("Command") or {}).get("CommandId")
        if not command_id:
            raise SubmissionError(node_id, "SendCommand returned no command id")
        return ExecutionHandle(node_id=node_id, command_id=command_id)

    def get_status(self, handle: ExecutionHandle) -> InvocationStatus:
        try:
            invocation = self.client.get_command_invocation(
                CommandId=handle.command_id,
                InstanceId=handle.node_id,
            )
        except ClientError as e:
            code = error_code(e)
            if code in THROTTLING_CODES:
                raise ThrottledError(handle.node_id, str(e)) from e
            if code in NOT_YET_VISIBLE_CODES:
                return self._not_yet_visible(handle, code, e)
            raise QueryError(handle.node_id, str(e)) from e
        except BotoCoreError as e:
            raise QueryError(handle.node_id, str(e)) from e

        self._clear_not_visible(handle)
        raw_status = invocation.get("Status") or ""
        return InvocationStatus(
            status=STATUS_MAP.get(raw_status, ExecutionStatus.FAILED),
            stdout=invocation.get("StandardOutputContent"),
            stderr=invocation.get("StandardErrorContent"),
            raw_status=raw_status,
        )

    def _not_yet_visible(self, handle: ExecutionHandle, code: str, exc: ClientError) -> InvocationStatus:
        with self._lock:
            seen = self._not_visible.get(handle.command_id, 0) + 1
            self._not_visible[handle.command_id] = seen

        if seen > self.max_not_visible:
            self._clear_not_visible(handle)
            raise QueryError(
                handle.node_id,
                f"{code}: command {handle.command_id} not visible after {self.max_not_visible} queries",
            ) from exc

        logger.debug(f"Command {handle.command_id} not yet visible on {handle.node_id} ({seen}x)")
        return InvocationStatus(status=ExecutionStatus.PENDING, raw_status=code)

    def _clear_not_visible(self, handle: ExecutionHandle) -> None:
        with self._lock:
            self._not_visible.pop(handle.command_id, None)
