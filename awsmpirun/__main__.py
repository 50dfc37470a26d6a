import asyncio
import logging
import logging.config as log_config
import sys
from dataclasses import replace

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from awsmpirun.config import EnvConfigProvider, RunConfig
from awsmpirun.errors import AwsMpiRunError, RunFailedError
from awsmpirun.logging_config import get_logging_config
from awsmpirun.main import build_runner
from awsmpirun.modules.artifacts import ArtifactSpec
from awsmpirun.modules.fleet import AggregateResult

load_dotenv()

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("awsmpirun.cli")

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def print_failure_table(result: AggregateResult) -> None:
    table = Table(title="Failed Nodes")
    table.add_column("Instance", style="cyan")
    table.add_column("Cause", style="red")
    for node_id, error in result.failed_nodes.items():
        table.add_row(escape(node_id), escape(error))
    err_console.print(table)
    err_console.print(
        f"[bold red]{len(result.failed_nodes)} of {len(result.per_node_error)} instances failed[/bold red]"
    )


@click.command(name="awsmpirun")
@click.option("-n", "--num-instances", type=click.IntRange(min=1), default=1, show_default=True,
              help="Number of EC2 instances")
@click.option("-v", "--vpc", "vpc_id", required=True, help="VPC ID")
@click.option("-e", "--exec", "executable_path", required=True,
              help="Path to the executable on the instances")
@click.option("--port", type=click.IntRange(1, 65535), default=None, help="Port every rank listens on")
@click.option("--timeout", "command_timeout", type=click.IntRange(30, 172800), default=None,
              help="Remote execution timeout in seconds")
@click.option("--poll-interval", type=click.FloatRange(min=0), default=None,
              help="Seconds between status queries")
@click.option("--max-poll-duration", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Stop polling a node after this many seconds")
@click.option("--region", default=None, help="AWS region (defaults to AWS_REGION)")
@click.option("--working-dir", "working_directory", default=None,
              help="Directory to run the executable in")
@click.option("--output-file", default="output.txt", show_default=True,
              help="Node-side file that keeps a copy of the program output")
@click.option("--upload", "upload_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Local binary to upload and install at --exec on every instance")
@click.option("--bucket", default=None, help="S3 bucket used with --upload")
@click.option("--key", default=None, help="S3 key used with --upload (defaults to the file name)")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None)
def main(
    num_instances: int,
    vpc_id: str,
    executable_path: str,
    port,
    command_timeout,
    poll_interval,
    max_poll_duration,
    region,
    working_directory,
    output_file: str,
    upload_path,
    bucket,
    key,
    log_level,
):
    """Run a program across existing EC2 instances in a VPC, MPI style.

    Every instance gets MPI_RANK, MPI_SIZE and MPI_ADDRESS_<rank> for each
    rank; the output of rank 0 is printed when all instances succeed.
    """
    provider = EnvConfigProvider()
    log_config.dictConfig(get_logging_config((log_level or provider.get_log_level()).upper()))

    if upload_path and not bucket:
        raise click.UsageError("--upload requires --bucket")

    defaults = provider.get_execution_defaults()
    aws_config = provider.get_aws_config()
    if region:
        aws_config = replace(aws_config, region=region)

    try:
        config = RunConfig(
            num_instances=num_instances,
            vpc_id=vpc_id,
            executable_path=executable_path,
            port=port if port is not None else defaults.port,
            command_timeout=command_timeout if command_timeout is not None else defaults.command_timeout,
            poll_interval=poll_interval if poll_interval is not None else defaults.poll_interval,
            max_poll_duration=max_poll_duration if max_poll_duration is not None else defaults.max_poll_duration,
            working_directory=working_directory,
            output_file=output_file,
            artifact=ArtifactSpec(local_path=upload_path, bucket=bucket, key=key) if upload_path else None,
        )
    except ValidationError as e:
        raise click.UsageError(str(e))

    logger.info(f"Running {executable_path} on {num_instances} instances in {vpc_id} ({aws_config.region})")

    try:
        runner = build_runner(config, aws_config)
        result = asyncio.run(runner.run())
        result.raise_for_failure()
    except RunFailedError as e:
        err_console.print("[red]Error executing program:[/red]")
        print_failure_table(e.result)
        sys.exit(1)
    except AwsMpiRunError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    console.print("[bold green]Output from rank 0:[/bold green]")
    click.echo(result.leader_output)
    console.print("[green]Program executed successfully on all instances.[/green]")


if __name__ == "__main__":
    main()
