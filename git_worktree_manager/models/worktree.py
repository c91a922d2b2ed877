"""Worktree data models."""

import os
from dataclasses import dataclass
from typing import Optional

REF_PREFIXES = ("refs/heads/", "refs/remotes/", "refs/tags/")


def strip_ref_prefix(ref: str) -> str:
    """Remove a leading refs/heads/, refs/remotes/ or refs/tags/ prefix."""
    for prefix in REF_PREFIXES:
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


@dataclass(frozen=True)
class WorktreeRecord:
    """One checkout of the repository as reported by `git worktree list`."""

    path: str
    branch: Optional[str]  # Fully-qualified ref, None when detached
    commit: str
    is_main: bool = False  # Original checkout, decided from on-disk metadata
    is_locked: bool = False
    is_prunable: bool = False
    is_bare: bool = False
    lock_reason: Optional[str] = None
    prune_reason: Optional[str] = None

    @property
    def name(self) -> str:
        """Final segment of the worktree path."""
        stripped = self.path.rstrip("/\\")
        segment = os.path.basename(stripped.replace("\\", "/"))
        return segment or self.path

    @property
    def display_name(self) -> str:
        """Branch without its ref prefix, or the abbreviated commit when detached.

        An empty branch string is returned as-is rather than treated as detached.
        """
        if self.branch is not None:
            return strip_ref_prefix(self.branch)
        return self.commit[:7]

    @property
    def ref(self) -> str:
        """Git ref naming this worktree's checkout for diff and merge commands."""
        if self.branch and self.branch.strip():
            return self.branch
        return self.commit

    def __str__(self) -> str:
        """String representation of worktree."""
        markers = ""
        if self.is_main:
            markers += " (main)"
        if self.is_locked:
            markers += " [locked]"
        if self.is_prunable:
            markers += " [prunable]"
        return f"{self.display_name} @ {self.path}{markers}"
