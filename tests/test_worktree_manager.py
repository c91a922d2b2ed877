"""Tests for the asynchronous WorktreeManager facade"""
import threading
from unittest.mock import Mock

import pytest

from git_worktree_manager.core import WorktreeManager
from git_worktree_manager.exceptions import GitOperationError
from git_worktree_manager.models import Failure, Success, WorktreeRecord
from git_worktree_manager.services.git import WorktreeService

MAIN = WorktreeRecord("/work/project", "refs/heads/main", "abc", is_main=True)
FEATURE = WorktreeRecord("/work/project-feature", "refs/heads/feature", "def")


@pytest.fixture
def manager(git_repo, mock_config):
    with WorktreeManager(git_repo.working_dir, mock_config) as manager:
        yield manager


@pytest.fixture
def fake_service():
    service = Mock(spec=WorktreeService)
    service.read_worktrees.return_value = [MAIN]
    service.get_current_worktree.return_value = MAIN
    return service


class TestRefresh:
    """Test cache refreshes."""

    def test_initial_snapshot_empty(self, manager):
        """Test that nothing is cached before the first refresh."""
        assert manager.worktrees == ()
        assert manager.current_worktree is None
        assert manager.snapshot.version == 0

    def test_refresh_populates_cache(self, manager, git_repo):
        """Test that a refresh publishes the listing and current worktree."""
        snapshot = manager.refresh().result(timeout=10)
        assert snapshot is manager.snapshot
        assert [wt.path for wt in manager.worktrees] == [git_repo.working_dir]
        assert manager.current_worktree.path == git_repo.working_dir

    def test_failed_refresh_keeps_snapshot(self, fake_service):
        """Test that a listing failure leaves the last good snapshot in place."""
        with WorktreeManager("/work/project", service=fake_service) as manager:
            good = manager.refresh().result(timeout=5)
            fake_service.read_worktrees.side_effect = GitOperationError("list worktrees", "/work/project", "boom")

            with pytest.raises(GitOperationError):
                manager.refresh().result(timeout=5)

        assert manager.snapshot is good
        assert manager.worktrees == (MAIN,)

    def test_listener_notified(self, fake_service):
        """Test that listeners receive each published snapshot."""
        seen = []
        with WorktreeManager("/work/project", service=fake_service) as manager:
            manager.add_listener(seen.append)
            manager.refresh().result(timeout=5)
            fake_service.read_worktrees.return_value = [MAIN, FEATURE]
            manager.refresh().result(timeout=5)
            manager.remove_listener(seen.append)
            manager.refresh().result(timeout=5)

        assert [len(s.worktrees) for s in seen] == [1, 2]
        assert seen[0].version < seen[1].version

    def test_listener_can_wait_for_refresh(self, fake_service):
        """Test that a listener may start a refresh and wait for it without blocking publication."""
        outcome = []

        def refresh_once(snapshot):
            if outcome:
                return
            outcome.append("called")
            try:
                manager.refresh().result(timeout=3)
                outcome.append("refreshed")
            except Exception as e:
                outcome.append(f"failed: {type(e).__name__}")

        with WorktreeManager("/work/project", {"max_workers": 4}, service=fake_service) as manager:
            manager.add_listener(refresh_once)
            manager.refresh().result(timeout=10)

        assert outcome == ["called", "refreshed"]
        assert manager.snapshot.version == 2

    def test_mutation_succeeds_when_refresh_fails(self, fake_service):
        """Test that a failed follow-up refresh does not turn a Success into an error."""
        fake_service.prune_worktrees.return_value = Success("Pruned stale worktree metadata")
        fake_service.read_worktrees.side_effect = GitOperationError("list worktrees", "/work/project", "boom")
        with WorktreeManager("/work/project", service=fake_service) as manager:
            result = manager.prune_worktrees().result(timeout=5)

        assert result == Success("Pruned stale worktree metadata")
        assert manager.snapshot.version == 0


class TestMutations:
    """Test that mutating operations refresh the cache before completing."""

    def test_create_refreshes_before_callbacks(self, manager, temp_dir):
        """Test that success callbacks already see the new worktree."""
        path = temp_dir / "project-feature-x"
        seen_in_callback = []
        called = threading.Event()

        def on_success(result):
            seen_in_callback.extend(wt.path for wt in manager.worktrees)
            called.set()

        handle = manager.create_worktree(str(path), "feature/x")
        handle.on_success(on_success)

        result = handle.result(timeout=30)
        assert called.wait(10)
        assert isinstance(result, Success)
        assert str(path) in [wt.path for wt in manager.worktrees]
        assert str(path) in seen_in_callback

    def test_delete_refreshes(self, manager, linked_worktree):
        """Test that a deleted worktree disappears from the cache."""
        manager.refresh().result(timeout=10)
        assert str(linked_worktree) in [wt.path for wt in manager.worktrees]

        result = manager.delete_worktree(str(linked_worktree)).result(timeout=30)

        assert isinstance(result, Success)
        assert str(linked_worktree) not in [wt.path for wt in manager.worktrees]

    def test_failure_does_not_refresh(self, fake_service):
        """Test that a failed mutation leaves the cache untouched."""
        fake_service.delete_worktree.return_value = Failure("Failed to delete worktree", "fatal")
        with WorktreeManager("/work/project", service=fake_service) as manager:
            result = manager.delete_worktree("/work/project-feature").result(timeout=5)

        assert isinstance(result, Failure)
        fake_service.read_worktrees.assert_not_called()
        assert manager.snapshot.version == 0

    @pytest.mark.parametrize("method,args,kwargs,service_method", [
        ("create_worktree", ("/w", "b"), {}, "create_worktree"),
        ("delete_worktree", ("/w",), {"force": True}, "delete_worktree"),
        ("move_worktree", ("/a", "/b"), {}, "move_worktree"),
        ("rename_worktree", ("/a", "b"), {}, "rename_worktree"),
        ("merge_worktree", ("/a", "/b"), {"fast_forward_only": True}, "merge_worktree"),
        ("prune_worktrees", (), {}, "prune_worktrees"),
    ])
    def test_mutations_refresh_on_success(self, fake_service, method, args, kwargs, service_method):
        """Test that each mutating operation refreshes after a Success."""
        getattr(fake_service, service_method).return_value = Success("done")
        with WorktreeManager("/work/project", service=fake_service) as manager:
            result = getattr(manager, method)(*args, **kwargs).result(timeout=5)

        assert result == Success("done")
        fake_service.read_worktrees.assert_called_once()
        assert manager.worktrees == (MAIN,)

    def test_compare_does_not_refresh(self, fake_service):
        """Test that read-only operations leave the cache alone."""
        fake_service.compare_worktrees.return_value = Success("No differences between a and b")
        with WorktreeManager("/work/project", service=fake_service) as manager:
            manager.compare_worktrees(MAIN, FEATURE).result(timeout=5)

        fake_service.compare_worktrees.assert_called_once_with(MAIN, FEATURE)
        fake_service.read_worktrees.assert_not_called()


class TestQueries:
    """Test query operations through handles."""

    def test_list_and_checks(self, manager, git_repo):
        """Test that queries resolve to the service's answers."""
        records = manager.list_worktrees().result(timeout=10)
        assert [r.path for r in records] == [git_repo.working_dir]
        assert manager.get_current_worktree().result(timeout=10).path == git_repo.working_dir
        assert manager.has_commits().result(timeout=10) is True
        assert manager.is_git_available().result(timeout=10) is True
        assert manager.is_git_repository().result(timeout=10) is True
