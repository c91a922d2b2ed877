"""Shared constants for git-worktree-manager."""

from dataclasses import dataclass
from typing import List


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("name", "Worktree"),
    ColumnDefinition("ref", "Branch / Commit"),
    ColumnDefinition("commit", "HEAD"),
    ColumnDefinition("flags", "Flags"),
    ColumnDefinition("path", "Path"),
]


SYMBOL_CURRENT = " *"
SHORT_COMMIT_LENGTH = 7


class WorktreeStyleType:
    """Style types for worktree rows."""

    MAIN = "main"
    CURRENT = "current"
    LOCKED = "locked"
    PRUNABLE = "prunable"
    NORMAL = "normal"


# Rich color names
CLI_COLORS = {
    WorktreeStyleType.MAIN: "cyan",
    WorktreeStyleType.CURRENT: "green",
    WorktreeStyleType.LOCKED: "yellow",
    WorktreeStyleType.PRUNABLE: "red",
    WorktreeStyleType.NORMAL: None,
}


# Result colors by outcome
RESULT_COLORS = {
    "success": "green",
    "requires_initial_commit": "yellow",
    "failure": "red",
}
