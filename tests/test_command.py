"""Tests for the git command executor"""
from unittest.mock import patch

import git

from git_worktree_manager.services.git.command import (
    EXIT_COMMAND_NOT_FOUND,
    EXIT_LAUNCH_FAILED,
    CommandExecutor,
    CommandResult,
)


class TestCommandExecutor:
    """Test running git through the executor."""

    def test_successful_command(self, git_repo):
        """Test that stdout and exit code are captured."""
        result = CommandExecutor().run(git_repo.working_dir, "rev-parse", "--abbrev-ref", "HEAD")
        assert result.ok
        assert result.exit_code == 0
        assert result.stdout.strip() == "main"
        assert result.command == ("git", "rev-parse", "--abbrev-ref", "HEAD")

    def test_failing_command(self, git_repo):
        """Test that a non-zero exit is returned with git's error text."""
        result = CommandExecutor().run(git_repo.working_dir, "rev-parse", "--verify", "no-such-ref")
        assert not result.ok
        assert result.exit_code != 0
        assert result.error_text() != "Unknown error"

    def test_missing_executable(self, temp_dir):
        """Test that an executable that cannot be found is reported, not raised."""
        executor = CommandExecutor(str(temp_dir / "no-such-git"))
        result = executor.run(str(temp_dir), "--version")
        assert result.exit_code == EXIT_COMMAND_NOT_FOUND
        assert "no-such-git" in result.output

    def test_missing_working_directory(self, temp_dir):
        """Test that a working directory that does not exist is reported, not raised."""
        result = CommandExecutor().run(str(temp_dir / "gone"), "status")
        assert result.exit_code == EXIT_LAUNCH_FAILED
        assert "does not exist" in result.output

    def test_launch_error_reported(self, temp_dir):
        """Test that OS errors while starting the process become a result."""
        with patch.object(git.Git, "execute", side_effect=OSError("permission denied")):
            result = CommandExecutor().run(str(temp_dir), "--version")
        assert result.exit_code == EXIT_LAUNCH_FAILED
        assert "permission denied" in result.output

    def test_none_working_dir_uses_cwd(self):
        """Test that no working directory still runs the command."""
        result = CommandExecutor().run(None, "--version")
        assert result.ok
        assert result.stdout.startswith("git version")

    def test_output_merges_streams(self):
        """Test that output combines stdout and stderr."""
        with patch.object(git.Git, "execute", return_value=(1, "out", "err")):
            result = CommandExecutor().run(None, "status")
        assert result.output == "out\nerr"
        assert result.error_text() == "err"


class TestCommandResult:
    """Test result helpers."""

    def test_error_text_fallbacks(self):
        """Test that error text falls back from stderr to output to a placeholder."""
        assert CommandResult(1, "merged", stdout="merged").error_text() == "merged"
        assert CommandResult(1, "").error_text() == "Unknown error"
        assert CommandResult(1, "x", stderr="  boom \n").error_text() == "boom"
