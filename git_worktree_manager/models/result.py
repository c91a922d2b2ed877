"""Result types returned by worktree operations."""

from dataclasses import dataclass
from typing import Optional, Union


class OperationResult:
    """Base for the closed set of operation outcomes.

    Exactly one of Success, Failure or RequiresInitialCommit is produced per
    operation.
    """

    @property
    def is_success(self) -> bool:
        return isinstance(self, Success)

    @property
    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    def success_message(self) -> Optional[str]:
        return self.message if isinstance(self, Success) else None

    def success_details(self) -> Optional[str]:
        return self.details if isinstance(self, Success) else None

    def error_message(self) -> Optional[str]:
        """Error text for Failure and RequiresInitialCommit, None on success."""
        if isinstance(self, Failure):
            return self.error
        if isinstance(self, RequiresInitialCommit):
            return self.message
        return None

    def error_details(self) -> Optional[str]:
        return self.details if isinstance(self, Failure) else None


@dataclass(frozen=True)
class Success(OperationResult):
    """Operation completed successfully."""

    message: str = "Operation completed successfully"
    details: Optional[str] = None


@dataclass(frozen=True)
class Failure(OperationResult):
    """Operation failed; not recovered automatically."""

    error: str
    details: Optional[str] = None


@dataclass(frozen=True)
class RequiresInitialCommit(OperationResult):
    """Repository has no commits, so no worktree can be created yet."""

    message: str = "Repository has no commits"


WorktreeOperationResult = Union[Success, Failure, RequiresInitialCommit]
