"""
Environment Module - Black Box Interface

Purpose: Give every node its rank, the fleet size and the address of every peer
Interface: EnvironmentComposer.compose(), NodeEnvironment.to_script()
Hidden: Address selection policy, variable naming, shell quoting
"""

from .composer import (
    DEFAULT_PORT,
    WILDCARD_ADDRESS,
    AddressTable,
    EnvironmentComposer,
    NodeEnvironment,
    build_address_table,
)

__all__ = [
    "DEFAULT_PORT",
    "WILDCARD_ADDRESS",
    "AddressTable",
    "EnvironmentComposer",
    "NodeEnvironment",
    "build_address_table",
]
