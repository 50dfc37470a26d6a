"""
Results Module - Black Box Interface

Purpose: Combine per-node outcomes into the result of a run
Interface: aggregate_results()
Hidden: Failure precedence, leader output selection

Pure combination step: never retries or re-dispatches.
"""

from .aggregator import NO_RESULT, aggregate_results

__all__ = ["NO_RESULT", "aggregate_results"]
