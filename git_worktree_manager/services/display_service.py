"""Display and formatting service for worktree information"""
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_worktree_manager.constants import (
    CLI_COLORS,
    COLUMNS,
    RESULT_COLORS,
    SHORT_COMMIT_LENGTH,
    SYMBOL_CURRENT,
    WorktreeStyleType,
)
from git_worktree_manager.models.result import Failure, RequiresInitialCommit, Success, WorktreeOperationResult
from git_worktree_manager.models.worktree import WorktreeRecord
from git_worktree_manager.logging_config import get_logger

logger = get_logger(__name__)


def get_worktree_style_type(worktree: WorktreeRecord, current: Optional[WorktreeRecord]) -> str:
    """Pick the row style, most significant state first."""
    if worktree.is_prunable:
        return WorktreeStyleType.PRUNABLE
    if worktree.is_locked:
        return WorktreeStyleType.LOCKED
    if current is not None and worktree.path == current.path:
        return WorktreeStyleType.CURRENT
    if worktree.is_main:
        return WorktreeStyleType.MAIN
    return WorktreeStyleType.NORMAL


def format_flags(worktree: WorktreeRecord) -> str:
    flags = []
    if worktree.is_main:
        flags.append("main")
    if worktree.is_bare:
        flags.append("bare")
    if worktree.branch is None and not worktree.is_bare:
        flags.append("detached")
    if worktree.is_locked:
        flags.append(f"locked ({worktree.lock_reason})" if worktree.lock_reason else "locked")
    if worktree.is_prunable:
        flags.append("prunable")
    return ", ".join(flags)


class DisplayService:
    """Renders worktree listings and operation results with rich."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose

    def display_worktree_table(
        self, worktrees: Sequence[WorktreeRecord], current: Optional[WorktreeRecord] = None
    ) -> None:
        """Display a table of worktrees, marking the one enclosing the project root."""
        if not worktrees:
            self.console.print("[yellow]No worktrees found.[/yellow]")
            return

        table = Table()
        for col in COLUMNS:
            table.add_column(col.label)

        for worktree in worktrees:
            style = CLI_COLORS.get(get_worktree_style_type(worktree, current))
            is_current = current is not None and worktree.path == current.path
            cells = {
                "name": escape(worktree.name) + (SYMBOL_CURRENT if is_current else ""),
                "ref": escape(worktree.display_name),
                "commit": worktree.commit[:SHORT_COMMIT_LENGTH],
                "flags": escape(format_flags(worktree)),
                "path": escape(worktree.path),
            }
            table.add_row(*(cells[col.key] for col in COLUMNS), style=style)

        self.console.print(table)
        if self.verbose:
            self.console.print(f"\n{len(worktrees)} worktree(s); * = current")

    def display_result(self, result: WorktreeOperationResult, show_details: bool = True) -> None:
        """Print an operation result colored by outcome."""
        if isinstance(result, Success):
            self._print_colored("success", result.message)
            if show_details and result.details:
                self._print_plain(result.details)
        elif isinstance(result, RequiresInitialCommit):
            self._print_colored("requires_initial_commit", result.message)
            self.console.print("Re-run with --initial-commit to create an empty first commit.")
        elif isinstance(result, Failure):
            self._print_colored("failure", f"Error: {result.error}")
            if result.details:
                self._print_plain(result.details)
        else:
            logger.error(f"Unknown result type: {type(result).__name__}")

    def _print_colored(self, outcome: str, text: str) -> None:
        # soft_wrap keeps long paths and diff lines intact
        self.console.print(f"[{RESULT_COLORS[outcome]}]{escape(text)}[/]", highlight=False, soft_wrap=True)

    def _print_plain(self, text: str) -> None:
        """Print git output verbatim."""
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)
