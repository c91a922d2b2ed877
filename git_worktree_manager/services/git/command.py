"""Git command execution for git-worktree-manager."""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

import git

from git_worktree_manager.logging_config import get_logger

logger = get_logger(__name__)

# Shell conventions for "command not found" and generic launch failures
EXIT_COMMAND_NOT_FOUND = 127
EXIT_LAUNCH_FAILED = 1


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one Git invocation."""

    exit_code: int
    output: str  # stdout and stderr merged
    stdout: str = ""
    stderr: str = ""
    command: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def error_text(self) -> str:
        """Best error description: stderr, then any output, then a placeholder."""
        return self.stderr.strip() or self.output.strip() or "Unknown error"


class CommandExecutor:
    """Runs the Git binary as a subprocess and reports a CommandResult.

    Missing executables, missing working directories and non-zero exits are
    returned as results, never raised.
    """

    def __init__(self, executable: str = "git", timeout: Optional[float] = None):
        """Initialize the executor.

        Args:
            executable: Name or path of the Git binary
            timeout: Seconds after which the subprocess is killed; None waits forever
        """
        self.executable = executable
        self.timeout = timeout

    def run(self, working_dir: Optional[str], *args: str) -> CommandResult:
        """Run `<executable> <args...>` in working_dir and capture its output.

        Args:
            working_dir: Directory to run in; None uses the current directory
            *args: Arguments passed to the executable

        Returns:
            CommandResult with exit code and merged output
        """
        command = (self.executable, *[str(arg) for arg in args])
        cwd = str(working_dir) if working_dir is not None else None
        logger.debug(f"Running {' '.join(command)} (cwd={cwd or os.getcwd()})")

        if cwd is not None and not os.path.isdir(cwd):
            message = f"Working directory does not exist: {cwd}"
            logger.debug(message)
            return CommandResult(EXIT_LAUNCH_FAILED, message, stderr=message, command=command)

        try:
            status, stdout, stderr = git.Git(cwd).execute(
                list(command),
                with_extended_output=True,
                with_exceptions=False,
                kill_after_timeout=self.timeout,
            )
        except git.exc.GitCommandNotFound as e:
            message = f"Executable '{self.executable}' could not be started: {e}"
            logger.debug(message)
            return CommandResult(EXIT_COMMAND_NOT_FOUND, message, stderr=message, command=command)
        except (OSError, git.exc.GitCommandError) as e:
            message = f"Failed to run '{' '.join(command)}': {e}"
            logger.debug(message)
            return CommandResult(EXIT_LAUNCH_FAILED, message, stderr=message, command=command)

        stdout = stdout or ""
        stderr = stderr or ""
        output = "\n".join(part for part in (stdout, stderr) if part)
        exit_code = status if status is not None else EXIT_LAUNCH_FAILED

        if exit_code != 0:
            logger.debug(f"'{' '.join(command)}' exited {exit_code}: {stderr.strip()}")
        return CommandResult(exit_code, output, stdout=stdout, stderr=stderr, command=command)
