"""
Execution Module - Black Box Interface

Purpose: Launch the program on every node and wait for it to finish
Interface: CommandDispatcher.dispatch(), CompletionPoller.poll_all()
Hidden: Per-node tasks, shared ledger locking, poll state machine, throttling retries

Works with any RemoteCommandService (SSM Run Command, SSH, test doubles).
"""

from .dispatcher import CommandDispatcher, DispatchLedger
from .interfaces import RemoteCommandService
from .poller import CompletionPoller

__all__ = ["CommandDispatcher", "CompletionPoller", "DispatchLedger", "RemoteCommandService"]
