"""Custom exceptions for git-worktree-manager"""

from typing import Optional


class WorktreeManagerError(Exception):
    """Base exception for all git-worktree-manager errors."""
    pass


class GitOperationError(WorktreeManagerError):
    """Raised when a Git command exits non-zero inside a worktree operation.

    Never escapes the engine: operations convert it to a Failure result.
    """

    def __init__(self, operation: str, path: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.path = path
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if path:
            error_msg += f" for '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class OperationCancelledError(WorktreeManagerError):
    """Raised when the result of a cancelled operation handle is requested."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' was cancelled")
