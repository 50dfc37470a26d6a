"""
Per-node environment composition.

Every node gets its own rank, the fleet size, and one MPI_ADDRESS_<rank>
entry per rank in the fleet. Peers are reached on their private address
(public if no private address is known); a node's own entry is the
wildcard address so the local process binds to every interface.
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from awsmpirun.errors import FleetInvariantError
from awsmpirun.modules.fleet.models import Fleet, NodeInfo

WILDCARD_ADDRESS = "0.0.0.0"
DEFAULT_PORT = 50051

AddressTable = Dict[int, str]


def build_address_table(fleet: Fleet, local: NodeInfo, port: int = DEFAULT_PORT) -> AddressTable:
    """
    Map every rank in ``fleet`` to a "host:port" endpoint as seen from ``local``.

    Raises:
        FleetInvariantError: If a peer has no address or the table is incomplete
    """
    table: AddressTable = {}
    for node in fleet:
        if node.node_id == local.node_id:
            host = WILDCARD_ADDRESS
        else:
            host = node.routable_address
            if not host:
                raise FleetInvariantError(f"Node {node.node_id} (rank {node.rank}) has no address")
        table[node.rank] = f"{host}:{port}"

    if sorted(table) != list(range(fleet.size)):
        raise FleetInvariantError(
            f"Address table for {local.node_id} covers ranks {sorted(table)}, "
            f"expected 0..{fleet.size - 1}"
        )
    return table


@dataclass(frozen=True)
class NodeEnvironment:
    """Environment context injected into one node's process."""

    node_id: str
    rank: int
    size: int
    addresses: AddressTable = field(default_factory=dict)

    def variables(self) -> Dict[str, str]:
        """Environment variables in export order."""
        env = {
            "MPI_RANK": str(self.rank),
            "MPI_SIZE": str(self.size),
        }
        for rank in sorted(self.addresses):
            env[f"MPI_ADDRESS_{rank}"] = self.addresses[rank]
        return env

    def to_script(
        self,
        executable_path: str,
        output_file: str = "output.txt",
        working_directory: Optional[str] = None,
        setup_commands: Sequence[str] = (),
    ) -> str:
        """
        Render the bash script that runs the program on this node.

        Program output goes to stdout (captured by the command service) and
        to ``output_file`` on the node.
        """
        lines: List[str] = ["#!/bin/bash", "set -o pipefail"]
        if working_directory:
            lines.append(f"cd {shlex.quote(working_directory)} || exit 1")
        for name, value in self.variables().items():
            lines.append(f"export {name}={shlex.quote(value)}")
        lines.extend(setup_commands)
        lines.append(f"{shlex.quote(executable_path)} 2>&1 | tee {shlex.quote(output_file)}")
        return "\n".join(lines) + "\n"


class EnvironmentComposer:
    def __init__(self, port: int = DEFAULT_PORT):
        """
        Initialize composer.

        Args:
            port: Port every rank listens on
        """
        self.port = port

    def compose_for(self, fleet: Fleet, node: NodeInfo) -> NodeEnvironment:
        return NodeEnvironment(
            node_id=node.node_id,
            rank=node.rank,
            size=fleet.size,
            addresses=build_address_table(fleet, node, self.port),
        )

    def compose(self, fleet: Fleet) -> Dict[str, NodeEnvironment]:
        """
        Build the environment of every node in the fleet.

        All tables are built up front so an invariant violation on any node
        aborts the run before anything is dispatched.
        """
        return {node.node_id: self.compose_for(fleet, node) for node in fleet}
