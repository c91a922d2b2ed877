"""Core functionality for git-worktree-manager"""

from .worktree_manager import WorktreeManager

__all__ = ["WorktreeManager"]
