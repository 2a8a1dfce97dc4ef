"""Classify how two branch tips relate through their merge base."""

from enum import Enum
from typing import Callable, Optional


# (commit_a, commit_b) -> merge base commit, or None when histories are disjoint
MergeBaseLookup = Callable[[str, str], Optional[str]]


class Divergence(Enum):
    """Relationship of a local tip to its remote tracking tip."""
    EQUAL = "equal"
    AHEAD = "ahead"        # Local has commits the remote lacks
    BEHIND = "behind"      # Remote has commits local lacks
    DIVERGED = "diverged"  # Both sides have unique commits

    @property
    def needs_pull(self) -> bool:
        return self in (Divergence.BEHIND, Divergence.DIVERGED)

    @property
    def needs_push(self) -> bool:
        return self in (Divergence.AHEAD, Divergence.DIVERGED)


def classify(local: str, remote: str, merge_base: MergeBaseLookup) -> Divergence:
    """Classify the local tip against the remote tip.

    Args:
        local: Commit id of the local branch tip
        remote: Commit id of the remote tracking tip
        merge_base: Lookup returning the merge base of two commits, or None
            when they share no ancestor

    Returns:
        Divergence of local relative to remote. Disjoint histories are
        reported as DIVERGED.
    """
    if local == remote:
        return Divergence.EQUAL

    base = merge_base(local, remote)
    if base is None:
        return Divergence.DIVERGED
    if base == local:
        return Divergence.BEHIND
    if base == remote:
        return Divergence.AHEAD
    return Divergence.DIVERGED
