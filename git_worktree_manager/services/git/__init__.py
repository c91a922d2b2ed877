"""Git-related services for git-worktree-manager."""

from .command import CommandExecutor, CommandResult
from .detection import is_main_worktree
from .porcelain import MainDetectionPolicy, parse_worktree_list
from .worktrees import WorktreeService

__all__ = [
    "CommandExecutor",
    "CommandResult",
    "is_main_worktree",
    "MainDetectionPolicy",
    "parse_worktree_list",
    "WorktreeService",
]
