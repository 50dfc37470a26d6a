"""
Shared pytest fixtures for awsmpirun tests.

This module provides:
- FakeInstanceProvider: in-memory node inventory
- FakeCommandService: scripted remote command service
- Fleet and RunConfig builders
"""

import os
import sys
import threading
from collections import defaultdict
from typing import Dict, List, Optional, Union

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from awsmpirun.config import RunConfig
from awsmpirun.errors import DiscoveryError, QueryError, SubmissionError, ThrottledError
from awsmpirun.modules.fleet import (
    ExecutionHandle,
    ExecutionStatus,
    InvocationStatus,
    NodeInfo,
    assign_ranks,
)


# =============================================================================
# Builders
# =============================================================================

def make_nodes(count: int, prefix: str = "i-") -> List[NodeInfo]:
    """Unranked nodes i-000, i-001, ... with private and public addresses."""
    return [
        NodeInfo(
            node_id=f"{prefix}{index:03d}",
            private_address=f"10.0.0.{index + 10}",
            public_address=f"54.0.0.{index + 10}",
        )
        for index in range(count)
    ]


def make_fleet(count: int):
    return assign_ranks(make_nodes(count), count)


SUCCESS = ExecutionStatus.SUCCESS
IN_PROGRESS = ExecutionStatus.IN_PROGRESS


def reading(status: ExecutionStatus, stdout: str = "", stderr: str = "", raw: Optional[str] = None):
    return InvocationStatus(status=status, stdout=stdout, stderr=stderr, raw_status=raw)


# =============================================================================
# Fake collaborators
# =============================================================================

class FakeInstanceProvider:
    """InstanceLifecycleProvider with a fixed inventory."""

    def __init__(self, nodes: Optional[List[NodeInfo]] = None, error: Optional[Exception] = None):
        self.nodes = list(nodes or [])
        self.error = error
        self.calls: List[str] = []

    def list_running_nodes(self, segment_id: str) -> List[NodeInfo]:
        self.calls.append(segment_id)
        if self.error is not None:
            raise self.error
        return list(self.nodes)


Scripted = Union[InvocationStatus, Exception]


class FakeCommandService:
    """
    RemoteCommandService with scripted behaviour per node.

    Status readings are consumed in order; the last one repeats forever.
    Nodes without a script report SUCCESS with empty output. Calls arrive
    from worker threads, so bookkeeping is lock protected.

    Usage:
        service = FakeCommandService()
        service.fail_submission("i-001", "AccessDenied")
        service.script("i-000", ThrottledError("i-000", "slow down"), reading(SUCCESS, "done"))
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._scripts: Dict[str, List[Scripted]] = {}
        self._submit_errors: Dict[str, str] = {}
        self.submitted: Dict[str, str] = {}
        self.timeouts: Dict[str, int] = {}
        self.status_calls: Dict[str, int] = defaultdict(int)

    def fail_submission(self, node_id: str, message: str = "InvalidInstanceId: not managed") -> "FakeCommandService":
        self._submit_errors[node_id] = message
        return self

    def script(self, node_id: str, *readings: Scripted) -> "FakeCommandService":
        self._scripts[node_id] = list(readings)
        return self

    def submit(self, node_id: str, script: str, timeout: int) -> ExecutionHandle:
        with self._lock:
            if node_id in self._submit_errors:
                raise SubmissionError(node_id, self._submit_errors[node_id])
            self.submitted[node_id] = script
            self.timeouts[node_id] = timeout
        return ExecutionHandle(node_id=node_id, command_id=f"cmd-{node_id}")

    def get_status(self, handle: ExecutionHandle) -> InvocationStatus:
        with self._lock:
            self.status_calls[handle.node_id] += 1
            script = self._scripts.get(handle.node_id)
            if not script:
                item: Scripted = reading(SUCCESS)
            elif len(script) > 1:
                item = script.pop(0)
            else:
                item = script[0]
        if isinstance(item, Exception):
            raise item
        return item


class FakeArtifactStore:
    """ArtifactStore that records uploads."""

    def __init__(self, bucket: str = "artifacts", error: Optional[Exception] = None):
        self.bucket = bucket
        self.error = error
        self.uploads: List[tuple] = []
        self.downloads: List[tuple] = []

    def upload(self, local_path: str, key: str) -> None:
        if self.error is not None:
            raise self.error
        self.uploads.append((local_path, key))

    def download(self, key: str, local_path: str) -> None:
        self.downloads.append((key, local_path))

    def object_uri(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def nodes():
    return make_nodes(3)


@pytest.fixture
def fleet():
    return make_fleet(3)


@pytest.fixture
def command_service():
    return FakeCommandService()


@pytest.fixture
def run_config():
    """Three-node run that polls without waiting."""
    return RunConfig(
        num_instances=3,
        vpc_id="vpc-0abc123",
        executable_path="/opt/mpi/program",
        poll_interval=0,
    )


@pytest.fixture
def throttled():
    """Factory for throttling errors."""
    def _make(node_id: str = "i-000"):
        return ThrottledError(node_id, "ThrottlingException: Rate exceeded")
    return _make


@pytest.fixture
def query_failure():
    """Factory for non-throttling query errors."""
    def _make(node_id: str = "i-000"):
        return QueryError(node_id, "AccessDeniedException: not authorized")
    return _make


@pytest.fixture
def discovery_failure():
    return DiscoveryError("failed to describe instances: UnauthorizedOperation")


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "aws_mock: Tests using mocked boto3 clients"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
