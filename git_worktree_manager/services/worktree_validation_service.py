"""Validation rules guarding mutating worktree operations.

Every check returns None when the input is acceptable, or a message
describing the first problem found.
"""

import os
import re
import sys
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from git_worktree_manager.config import DEFAULT_MAX_PATH_LENGTH
from git_worktree_manager.models.worktree import WorktreeRecord

PathLike = Union[str, Path]

# Windows device names (case-insensitive, with or without an extension)
RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)

# Characters and sequences rejected by `git check-ref-format`
_INVALID_REF_CHARS = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]")


def is_case_insensitive_filesystem() -> bool:
    """Whether the platform compares paths case-insensitively by default."""
    return sys.platform.startswith(("win", "cygwin", "darwin"))


def normalize_path(path: PathLike) -> str:
    """Resolve symlinks where possible, otherwise return an absolute normalized path."""
    try:
        return str(Path(path).resolve())
    except (OSError, RuntimeError):
        return os.path.normpath(os.path.abspath(str(path)))


def is_same_path(first: PathLike, second: PathLike, case_insensitive: Optional[bool] = None) -> bool:
    """Compare two paths after normalization, honoring filesystem case rules."""
    if case_insensitive is None:
        case_insensitive = is_case_insensitive_filesystem()
    a, b = normalize_path(first), normalize_path(second)
    if case_insensitive:
        return a.lower() == b.lower()
    return a == b


def final_segment(path: PathLike) -> str:
    """Last path component, ignoring trailing separators."""
    text = str(path).rstrip("/\\")
    return os.path.basename(text.replace("\\", "/"))


class WorktreeValidationService:
    """Stateless checks applied before worktree commands run."""

    @staticmethod
    def validate_branch_name(branch: Optional[str]) -> Optional[str]:
        """Reject empty or malformed branch names.

        Args:
            branch: Short branch name such as "feature/x"

        Returns:
            Violation message, or None if valid
        """
        if branch is None or not branch.strip():
            return "Branch name cannot be empty"

        name = branch.strip()
        problems = (
            name.startswith("-")
            or name.startswith("/")
            or name.endswith("/")
            or name.startswith(".")
            or name.endswith(".")
            or name.endswith(".lock")
            or "/." in name
            or ".." in name
            or "//" in name
            or "@{" in name
            or name == "@"
            or _INVALID_REF_CHARS.search(name) is not None
        )
        if problems:
            return f"'{name}' is not a valid branch name"
        return None

    @staticmethod
    def validate_path_not_empty(path: Optional[PathLike]) -> Optional[str]:
        """Reject a missing or blank worktree path."""
        if path is None or not str(path).strip():
            return "Worktree path cannot be empty"
        return None

    @staticmethod
    def validate_path_length(path: PathLike, limit: int = DEFAULT_MAX_PATH_LENGTH) -> Optional[str]:
        """Reject paths longer than limit characters."""
        length = len(str(path))
        if length > limit:
            return (
                f"Path is too long ({length} characters). "
                f"Maximum is {limit} characters for Windows compatibility."
            )
        return None

    @staticmethod
    def validate_reserved_name(path: PathLike) -> Optional[str]:
        """Reject a final segment that is a Windows device name.

        Only exact matches count: "nul.txt" is rejected, "CONSOLE" and "COM10"
        are not.
        """
        directory_name = final_segment(path)
        stem = directory_name.rsplit(".", 1)[0] if "." in directory_name else directory_name
        if stem.upper() in RESERVED_NAMES:
            return f"Directory name '{directory_name}' is a reserved Windows filename and cannot be used."
        return None

    @staticmethod
    def validate_unique_path(
        path: PathLike, existing: Iterable[WorktreeRecord], case_insensitive: Optional[bool] = None
    ) -> Optional[str]:
        """Reject a path already registered as a worktree."""
        for worktree in existing:
            if is_same_path(path, worktree.path, case_insensitive):
                return f"A worktree already exists at '{worktree.path}'."
        return None

    @staticmethod
    def validate_unique_name(
        path: PathLike,
        existing: Iterable[WorktreeRecord],
        case_insensitive: Optional[bool] = None,
        ignore: Optional[PathLike] = None,
    ) -> Optional[str]:
        """Reject a final segment equal to any existing worktree's name.

        Matches across parent directories, so /a/feature and /b/feature collide.

        Args:
            path: Requested worktree path
            existing: Current worktree records
            case_insensitive: Compare names ignoring case; None detects from the platform
            ignore: Worktree path excluded from the comparison (the one being moved)
        """
        if case_insensitive is None:
            case_insensitive = is_case_insensitive_filesystem()
        target_name = final_segment(path)
        if not target_name:
            return None

        for worktree in existing:
            if ignore is not None and is_same_path(ignore, worktree.path, case_insensitive):
                continue
            name = worktree.name
            matches = name.lower() == target_name.lower() if case_insensitive else name == target_name
            if matches:
                return f"A worktree named '{target_name}' already exists at '{worktree.path}'."
        return None

    @staticmethod
    def validate_target_absent(path: PathLike) -> Optional[str]:
        """Reject a destination that already exists on disk."""
        if os.path.lexists(str(path)):
            return f"A directory with this name already exists: {path}"
        return None

    @staticmethod
    def validate_not_main(
        path: PathLike, existing: Iterable[WorktreeRecord], case_insensitive: Optional[bool] = None
    ) -> Optional[str]:
        """Reject operations targeting the main worktree."""
        for worktree in existing:
            if worktree.is_main and is_same_path(path, worktree.path, case_insensitive):
                return f"'{worktree.path}' is the main worktree and cannot be moved or deleted."
        return None

    @staticmethod
    def validate_new_name(name: Optional[str]) -> Optional[str]:
        """Reject a rename target that is blank or contains path separators."""
        if name is None or not name.strip():
            return "The new worktree name is invalid: it cannot be empty."
        if "/" in name or "\\" in name:
            return "The new worktree name is invalid: avoid path separators."
        return None

    @staticmethod
    def run_checks(*checks: Callable[[], Optional[str]]) -> Optional[str]:
        """Evaluate checks in order and return the first violation."""
        for check in checks:
            violation = check()
            if violation:
                return violation
        return None
