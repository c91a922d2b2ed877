"""Pytest fixtures for git-worktree-manager tests"""
import tempfile
from pathlib import Path

import pytest
import git

from git_worktree_manager.services.git import WorktreeService


def _configure_identity(repo: git.Repo) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # Resolve so paths match what git reports (e.g. /private/var on macOS)
        yield Path(tmpdir).resolve()


@pytest.fixture
def mock_config():
    """Create a mock configuration dictionary."""
    return {
        'verbose': False,
        'debug': False,
        'main_detection': 'filesystem',
        'max_workers': 4,
    }


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with one commit on main."""
    repo_path = temp_dir / "project"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    _configure_identity(repo)

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch('-M', 'main')

    yield repo

    repo.close()


@pytest.fixture
def empty_git_repo(temp_dir):
    """Create a Git repository without any commits."""
    repo_path = temp_dir / "empty"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    _configure_identity(repo)

    yield repo

    repo.close()


@pytest.fixture
def service(git_repo, mock_config):
    """WorktreeService bound to the git_repo fixture."""
    return WorktreeService(git_repo.working_dir, mock_config)


@pytest.fixture
def linked_worktree(git_repo, temp_dir):
    """Add a linked worktree on a new branch feature/a next to the project."""
    path = temp_dir / "project-feature-a"
    git_repo.git.worktree("add", "-b", "feature/a", str(path), "HEAD")
    return path


@pytest.fixture
def commit_file():
    """Return a helper that writes a file in a worktree and commits it with the git CLI."""
    def _commit(worktree_path: Path, name: str, content: str, message: str) -> None:
        (worktree_path / name).write_text(content)
        worktree = git.Git(str(worktree_path))
        worktree.add(name)
        worktree.commit("-m", message)
    return _commit
