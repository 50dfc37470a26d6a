"""
awsmpirun - Main Orchestration

This is the thin orchestration layer that:
1. Discovers and ranks the fleet
2. Composes every node's environment
3. Dispatches, polls and aggregates

All business logic is in the modules, following black box principles.
"""

import logging
from typing import List, Optional

from awsmpirun.config.provider import AwsConfig
from awsmpirun.config.run import RunConfig
from awsmpirun.modules.artifacts import ArtifactDistributor, ArtifactStore, download_commands
from awsmpirun.modules.aws import (
    AwsClientFactory,
    Ec2InstanceProvider,
    S3ArtifactStore,
    SsmCommandService,
)
from awsmpirun.modules.environment import EnvironmentComposer
from awsmpirun.modules.execution import CommandDispatcher, CompletionPoller, RemoteCommandService
from awsmpirun.modules.fleet import AggregateResult, InstanceLifecycleProvider, NodeDiscovery, assign_ranks
from awsmpirun.modules.results import aggregate_results

logger = logging.getLogger("awsmpirun.main")


class MpiRunner:
    """Runs one program across a fleet, end to end."""

    def __init__(
        self,
        config: RunConfig,
        instance_provider: InstanceLifecycleProvider,
        command_service: RemoteCommandService,
        artifact_store: Optional[ArtifactStore] = None,
    ):
        """
        Initialize runner with explicitly injected collaborators.

        Args:
            config: Immutable run configuration
            instance_provider: Lists running nodes
            command_service: Starts and tracks remote invocations
            artifact_store: Stages the binary; required when config.artifact is set
        """
        if config.artifact is not None and artifact_store is None:
            raise ValueError("An artifact store is required to distribute an artifact")

        self.config = config
        self.discovery = NodeDiscovery(instance_provider)
        self.composer = EnvironmentComposer(port=config.port)
        self.dispatcher = CommandDispatcher(command_service, config)
        self.poller = CompletionPoller(
            command_service,
            poll_interval=config.poll_interval,
            max_poll_duration=config.max_poll_duration,
        )
        self.artifact_store = artifact_store

    async def run(self) -> AggregateResult:
        """
        Execute the program on the fleet.

        Returns:
            AggregateResult for the run

        Raises:
            DiscoveryError: If running nodes could not be listed
            InsufficientCapacityError: If too few nodes are running
            FleetInvariantError: If an environment could not be composed
            ArtifactError: If the binary could not be staged
        """
        candidates = self.discovery.require(self.config.vpc_id, self.config.num_instances)
        fleet = assign_ranks(candidates, self.config.num_instances)
        logger.info(f"Fleet of {fleet.size}: leader {fleet.leader.node_id}")

        environments = self.composer.compose(fleet)
        setup_commands = self._stage_artifact()

        ledger = await self.dispatcher.dispatch(fleet, environments, setup_commands)
        outcomes = await self.poller.poll_all(ledger.handles)

        result = aggregate_results(fleet, ledger.errors, outcomes)
        if result.overall_success:
            logger.info("Program executed successfully on all instances")
        else:
            logger.error(f"Run failed on {len(result.failed_nodes)} of {fleet.size} nodes")
        return result

    def _stage_artifact(self) -> List[str]:
        spec = self.config.artifact
        if spec is None:
            return []
        uri = ArtifactDistributor(self.artifact_store).publish(spec)
        return download_commands(uri, self.config.executable_path)


def build_runner(config: RunConfig, aws_config: AwsConfig) -> MpiRunner:
    """Wire the AWS-backed collaborators for a run."""
    clients = AwsClientFactory(aws_config)
    artifact_store = None
    if config.artifact is not None:
        artifact_store = S3ArtifactStore(clients.s3(), config.artifact.bucket)

    return MpiRunner(
        config,
        instance_provider=Ec2InstanceProvider(clients.ec2()),
        command_service=SsmCommandService(clients.ssm(), document_name=config.document_name),
        artifact_store=artifact_store,
    )
