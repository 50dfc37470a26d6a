"""
End-to-end runs of MpiRunner against fake collaborators.
"""

import os
import sys
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from awsmpirun.config import AwsConfig, RunConfig
from awsmpirun.errors import (
    ArtifactError,
    DiscoveryError,
    FleetInvariantError,
    InsufficientCapacityError,
)
from awsmpirun.main import MpiRunner, build_runner
from awsmpirun.modules.artifacts import ArtifactSpec
from awsmpirun.modules.fleet import ExecutionStatus, NodeInfo
from conftest import (
    IN_PROGRESS,
    SUCCESS,
    FakeArtifactStore,
    FakeCommandService,
    FakeInstanceProvider,
    make_nodes,
    reading,
)


class TestMpiRunner:
    """Test full runs."""

    @pytest.mark.asyncio
    async def test_three_nodes_succeed(self, run_config, throttled):
        """Test a healthy run returns the leader's output"""
        service = FakeCommandService()
        service.script("i-000", reading(IN_PROGRESS), throttled(), reading(SUCCESS, stdout="done"))
        service.script("i-001", reading(SUCCESS, stdout="follower"))
        service.script("i-002", reading(IN_PROGRESS), reading(SUCCESS))
        runner = MpiRunner(run_config, FakeInstanceProvider(make_nodes(3)), service)

        result = await runner.run()

        assert result.overall_success
        assert result.leader_output == "done"
        assert result.per_node_error == {"i-000": None, "i-001": None, "i-002": None}

    @pytest.mark.asyncio
    async def test_environment_reaches_every_node(self, run_config, command_service):
        runner = MpiRunner(run_config, FakeInstanceProvider(make_nodes(3)), command_service)

        await runner.run()

        leader_script = command_service.submitted["i-000"]
        assert "export MPI_RANK=0" in leader_script
        assert "export MPI_ADDRESS_0=0.0.0.0:50051" in leader_script
        assert "export MPI_ADDRESS_1=10.0.0.11:50051" in leader_script
        assert "export MPI_RANK=2" in command_service.submitted["i-002"]

    @pytest.mark.asyncio
    async def test_leader_dispatch_failure(self):
        """Test a run where the leader could not be started"""
        config = RunConfig(num_instances=2, vpc_id="vpc-1", executable_path="/bin/prog", poll_interval=0)
        service = FakeCommandService().fail_submission("i-000", "InvalidInstanceId: not managed")
        runner = MpiRunner(config, FakeInstanceProvider(make_nodes(2)), service)

        result = await runner.run()

        assert not result.overall_success
        assert result.leader_output is None
        assert result.per_node_error == {"i-000": "InvalidInstanceId: not managed", "i-001": None}
        assert service.status_calls["i-000"] == 0

    @pytest.mark.asyncio
    async def test_follower_fails_on_node(self, run_config):
        service = FakeCommandService()
        service.script("i-002", reading(ExecutionStatus.FAILED, stderr="exit status 1", raw="Failed"))
        runner = MpiRunner(run_config, FakeInstanceProvider(make_nodes(3)), service)

        result = await runner.run()

        assert not result.overall_success
        assert result.failed_nodes == {"i-002": "command failed with status Failed: exit status 1"}
        assert result.leader_output == ""

    @pytest.mark.asyncio
    async def test_insufficient_capacity_dispatches_nothing(self, command_service):
        """Test a run asking for more nodes than are running"""
        config = RunConfig(num_instances=5, vpc_id="vpc-1", executable_path="/bin/prog")
        runner = MpiRunner(config, FakeInstanceProvider(make_nodes(3)), command_service)

        with pytest.raises(InsufficientCapacityError, match="Requested: 5, Available: 3"):
            await runner.run()

        assert command_service.submitted == {}

    @pytest.mark.asyncio
    async def test_discovery_error_aborts(self, run_config, command_service, discovery_failure):
        runner = MpiRunner(run_config, FakeInstanceProvider(error=discovery_failure), command_service)

        with pytest.raises(DiscoveryError):
            await runner.run()

        assert command_service.submitted == {}

    @pytest.mark.asyncio
    async def test_unaddressable_peer_aborts_before_dispatch(self, command_service):
        config = RunConfig(num_instances=2, vpc_id="vpc-1", executable_path="/bin/prog")
        provider = FakeInstanceProvider([NodeInfo("i-a", "10.0.0.1"), NodeInfo("i-b")])
        runner = MpiRunner(config, provider, command_service)

        with pytest.raises(FleetInvariantError):
            await runner.run()

        assert command_service.submitted == {}

    @pytest.mark.asyncio
    async def test_extra_nodes_are_not_used(self, command_service):
        config = RunConfig(num_instances=2, vpc_id="vpc-1", executable_path="/bin/prog", poll_interval=0)
        runner = MpiRunner(config, FakeInstanceProvider(make_nodes(4)), command_service)

        result = await runner.run()

        assert set(command_service.submitted) == {"i-000", "i-001"}
        assert set(result.per_node_error) == {"i-000", "i-001"}


class TestArtifactStaging:
    """Test runs that upload the binary first."""

    @pytest.fixture
    def binary(self, tmp_path):
        path = tmp_path / "program"
        path.write_bytes(b"\x7fELF")
        return str(path)

    @pytest.mark.asyncio
    async def test_nodes_download_before_running(self, binary, command_service):
        config = RunConfig(
            num_instances=2,
            vpc_id="vpc-1",
            executable_path="/opt/mpi/program",
            poll_interval=0,
            artifact=ArtifactSpec(local_path=binary, bucket="artifacts"),
        )
        store = FakeArtifactStore("artifacts")
        runner = MpiRunner(config, FakeInstanceProvider(make_nodes(2)), command_service, store)

        result = await runner.run()

        assert result.overall_success
        assert store.uploads == [(binary, "program")]
        lines = command_service.submitted["i-001"].splitlines()
        assert lines[-3] == "aws s3 cp s3://artifacts/program /opt/mpi/program"
        assert lines[-2] == "chmod +x /opt/mpi/program"

    @pytest.mark.asyncio
    async def test_upload_failure_aborts(self, binary, command_service):
        config = RunConfig(
            vpc_id="vpc-1",
            executable_path="/opt/mpi/program",
            artifact=ArtifactSpec(local_path=binary, bucket="artifacts"),
        )
        store = FakeArtifactStore(error=ArtifactError("failed to upload file: AccessDenied"))
        runner = MpiRunner(config, FakeInstanceProvider(make_nodes(1)), command_service, store)

        with pytest.raises(ArtifactError):
            await runner.run()

        assert command_service.submitted == {}

    def test_store_required_for_artifact(self, binary, command_service):
        config = RunConfig(
            vpc_id="vpc-1",
            executable_path="/opt/mpi/program",
            artifact=ArtifactSpec(local_path=binary, bucket="artifacts"),
        )

        with pytest.raises(ValueError, match="artifact store"):
            MpiRunner(config, FakeInstanceProvider(), command_service)


@pytest.mark.aws_mock
class TestBuildRunner:
    """Test wiring of AWS collaborators."""

    @patch("awsmpirun.modules.aws.clients.boto3")
    def test_clients_share_region(self, boto3_mock, run_config):
        boto3_mock.client.side_effect = lambda name, **kwargs: MagicMock(name=name)

        runner = build_runner(run_config, AwsConfig(region="eu-central-1", max_attempts=3))

        services = [call.args[0] for call in boto3_mock.client.call_args_list]
        assert sorted(services) == ["ec2", "ssm"]
        for call in boto3_mock.client.call_args_list:
            assert call.kwargs["region_name"] == "eu-central-1"
        assert runner.artifact_store is None

    @patch("awsmpirun.modules.aws.clients.boto3")
    def test_s3_client_only_with_artifact(self, boto3_mock, tmp_path):
        binary = tmp_path / "program"
        binary.write_text("#!/bin/sh\n")
        config = RunConfig(
            vpc_id="vpc-1",
            executable_path="/opt/program",
            artifact=ArtifactSpec(local_path=str(binary), bucket="artifacts"),
        )

        runner = build_runner(config, AwsConfig(region="us-west-2", max_attempts=5))

        services = sorted(call.args[0] for call in boto3_mock.client.call_args_list)
        assert services == ["ec2", "s3", "ssm"]
        assert runner.artifact_store.bucket == "artifacts"
