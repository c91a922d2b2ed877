"""Command-line argument parsing for git-worktree-manager."""

import argparse
from typing import List, Optional

from git_worktree_manager.__version__ import __version__
from git_worktree_manager.config import MAIN_DETECTION_FILESYSTEM, MAIN_DETECTION_LISTING


def build_parser() -> argparse.ArgumentParser:
    """Build the parser with one subcommand per worktree operation."""
    parser = argparse.ArgumentParser(
        prog="git-worktree-manager",
        description="Create, inspect, compare and merge Git worktrees",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-manager {__version__}")
    parser.add_argument(
        "--repo",
        metavar="PATH",
        default=None,
        help="Project root inside the repository (default: current directory)",
    )
    parser.add_argument("--git", dest="git_executable", default="git", help="Git executable to run")
    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        default=None,
        help="Kill git commands running longer than this (default: no limit)",
    )
    parser.add_argument(
        "--main-detection",
        choices=[MAIN_DETECTION_FILESYSTEM, MAIN_DETECTION_LISTING],
        default=MAIN_DETECTION_FILESYSTEM,
        help="Identify the main worktree from .git metadata or from git's listing order",
    )
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Number of worker threads (default: auto-detect based on CPU and threading mode)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    subparsers.add_parser("list", help="List worktrees")

    create = subparsers.add_parser("create", help="Create a worktree")
    create.add_argument("branch", help="Branch to check out")
    create.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Worktree directory (default: <project>-<branch> next to the project)",
    )
    create.add_argument(
        "--existing",
        action="store_true",
        help="Check out an existing branch instead of creating it from HEAD",
    )
    create.add_argument(
        "--initial-commit",
        action="store_true",
        help="Create an empty initial commit if the repository has none",
    )
    create.add_argument("--message", default=None, help="Message for the initial commit")

    delete = subparsers.add_parser("delete", help="Remove a worktree")
    delete.add_argument("path", help="Worktree directory")
    delete.add_argument(
        "--force", action="store_true", help="Remove even with uncommitted changes or a lock"
    )

    move = subparsers.add_parser("move", help="Move a worktree")
    move.add_argument("old_path", help="Current worktree directory")
    move.add_argument("new_path", help="Destination directory")

    rename = subparsers.add_parser("rename", help="Rename a worktree directory in place")
    rename.add_argument("path", help="Worktree directory")
    rename.add_argument("new_name", help="New directory name")

    compare = subparsers.add_parser("compare", help="Diff two worktrees")
    compare.add_argument("source", help="Worktree providing the changes")
    compare.add_argument("target", help="Worktree to compare against")
    compare.add_argument("--stat", action="store_true", help="Only show the summary")

    merge = subparsers.add_parser("merge", help="Merge one worktree's branch into another")
    merge.add_argument("source", help="Worktree contributing changes")
    merge.add_argument("target", help="Worktree receiving the merge")
    merge.add_argument("--ff-only", action="store_true", help="Refuse anything but a fast-forward")

    subparsers.add_parser("prune", help="Remove metadata of worktrees whose directories are gone")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
