"""Data models for git-worktree-manager."""

from .worktree import WorktreeRecord, strip_ref_prefix
from .result import (
    OperationResult,
    Success,
    Failure,
    RequiresInitialCommit,
    WorktreeOperationResult,
)

__all__ = [
    "WorktreeRecord",
    "strip_ref_prefix",
    "OperationResult",
    "Success",
    "Failure",
    "RequiresInitialCommit",
    "WorktreeOperationResult",
]
