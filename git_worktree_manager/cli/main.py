"""Command-line entry point for git-worktree-manager"""

import os
import sys
from typing import List, Optional

from rich.console import Console

from git_worktree_manager.cli.args import parse_args
from git_worktree_manager.config import Config
from git_worktree_manager.core import WorktreeManager
from git_worktree_manager.exceptions import GitOperationError, OperationCancelledError
from git_worktree_manager.logging_config import setup_logging
from git_worktree_manager.models.result import Failure, Success
from git_worktree_manager.services.display_service import DisplayService
from git_worktree_manager.services.git import WorktreeService
from git_worktree_manager.utils.threading import get_optimal_worker_count, get_python_threading_mode

console = Console()


def _default_worktree_path(project_root: str, branch: str) -> str:
    """Sibling directory of the project named <project>-<branch>."""
    parent = os.path.dirname(project_root.rstrip(os.sep)) or project_root
    return os.path.join(parent, WorktreeService.suggest_directory_name(project_root, branch))


def _run_command(args, manager: WorktreeManager, display: DisplayService, project_root: str) -> int:
    """Dispatch the parsed subcommand and return the exit code."""
    if args.command == "list":
        try:
            snapshot = manager.refresh().result()
        except GitOperationError as e:
            display.display_result(Failure("Failed to list worktrees", e.message or str(e)))
            return 1
        display.display_worktree_table(snapshot.worktrees, snapshot.current)
        return 0

    if args.command == "create":
        path = args.path or _default_worktree_path(project_root, args.branch)
        handle = manager.create_worktree(
            path,
            args.branch,
            create_branch=not args.existing,
            allow_create_initial_commit=args.initial_commit,
            initial_commit_message=args.message,
        )
    elif args.command == "delete":
        handle = manager.delete_worktree(args.path, force=args.force)
    elif args.command == "move":
        handle = manager.move_worktree(args.old_path, args.new_path)
    elif args.command == "rename":
        handle = manager.rename_worktree(args.path, args.new_name)
    elif args.command == "compare":
        handle = manager.compare_worktrees(args.source, args.target)
    elif args.command == "merge":
        handle = manager.merge_worktree(args.source, args.target, fast_forward_only=args.ff_only)
    elif args.command == "prune":
        handle = manager.prune_worktrees()
    else:
        console.print(f"[red]Unknown command: {args.command}[/red]")
        return 1

    result = handle.result()
    display.display_result(result, show_details=not getattr(args, "stat", False))
    return 0 if isinstance(result, Success) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)

        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

        config = Config(
            git_executable=parsed_args.git_executable,
            command_timeout=parsed_args.timeout,
            max_workers=parsed_args.workers,
            main_detection=parsed_args.main_detection,
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
        )

        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            console.print("[yellow]Threading Information:[/yellow]")
            console.print(f"  Threading mode: {get_python_threading_mode()}")
            console.print(f"  Workers: {get_optimal_worker_count(config.max_workers)}")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        project_root = os.path.abspath(parsed_args.repo or os.getcwd())
        display = DisplayService(console, verbose=parsed_args.verbose)

        with WorktreeManager(project_root, config) as manager:
            if not manager.service.is_git_available():
                console.print(f"[red]Error: '{config.git_executable}' could not be run[/red]", soft_wrap=True)
                return 1
            if not manager.service.is_git_repository():
                console.print(f"[red]Error: {project_root} is not inside a git working tree[/red]", soft_wrap=True)
                return 1
            return _run_command(parsed_args, manager, display, project_root)
    except (KeyboardInterrupt, OperationCancelledError):
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]", soft_wrap=True)
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
