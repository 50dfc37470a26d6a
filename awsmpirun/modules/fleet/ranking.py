"""Rank assignment. Pure functions, no I/O."""

from dataclasses import replace
from typing import List, Sequence

from .models import Fleet, NodeInfo


def select_candidates(candidates: Sequence[NodeInfo], size: int) -> List[NodeInfo]:
    """Take the first ``size`` candidates in order."""
    if size < 1:
        raise ValueError(f"Fleet size must be at least 1, got {size}")
    if len(candidates) < size:
        raise ValueError(f"Need {size} candidates, got {len(candidates)}")
    return list(candidates[:size])


def assign_ranks(candidates: Sequence[NodeInfo], size: int) -> Fleet:
    """
    Build a fleet from the first ``size`` candidates.

    The i-th candidate gets rank i, so rank 0 (the leader) is always the
    first candidate in the given ordering.
    """
    selected = select_candidates(candidates, size)
    return Fleet([replace(node, rank=rank) for rank, node in enumerate(selected)])
