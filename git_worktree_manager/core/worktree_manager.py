"""Asynchronous front end to the worktree engine"""

from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Union

from git_worktree_manager.config import Config
from git_worktree_manager.exceptions import GitOperationError
from git_worktree_manager.models.result import Success
from git_worktree_manager.models.worktree import WorktreeRecord
from git_worktree_manager.services.git import WorktreeService
from git_worktree_manager.services.state_cache import CacheSnapshot, SnapshotListener, WorktreeStateCache
from git_worktree_manager.services.task_dispatcher import CallbackExecutor, OperationHandle, TaskDispatcher
from git_worktree_manager.utils.threading import get_python_threading_mode
from git_worktree_manager.logging_config import get_logger

logger = get_logger(__name__)

WorktreeRef = Union[WorktreeRecord, str, Path]


class WorktreeManager:
    """Runs worktree operations off the caller's thread and keeps a cached listing.

    Every operation returns an OperationHandle. Mutating operations refresh the
    cache after a Success before their handle completes, so callbacks always
    see the post-operation listing.
    """

    def __init__(
        self,
        repo_path: Union[str, Path],
        config: Union[Config, dict, None] = None,
        service: Optional[WorktreeService] = None,
        callback_executor: Optional[CallbackExecutor] = None,
    ):
        """Initialize the manager.

        Args:
            repo_path: Path to the project root inside the repository
            config: Configuration dict or Config object
            service: Synchronous service to drive; built from config when omitted
            callback_executor: Where handle callbacks run; inline on the worker when None
        """
        self.repo_path = str(repo_path)
        self.config = Config.coerce(config)
        self.service = service or WorktreeService(self.repo_path, self.config)
        self.cache = WorktreeStateCache()
        self.dispatcher = TaskDispatcher(self.config.max_workers, callback_executor)
        logger.debug(
            f"Worktree manager for {self.repo_path} using {self.dispatcher.max_workers} workers "
            f"({get_python_threading_mode()})"
        )

    # Cached state

    @property
    def snapshot(self) -> CacheSnapshot:
        return self.cache.snapshot

    @property
    def worktrees(self) -> Tuple[WorktreeRecord, ...]:
        return self.cache.snapshot.worktrees

    @property
    def current_worktree(self) -> Optional[WorktreeRecord]:
        return self.cache.snapshot.current

    def add_listener(self, listener: SnapshotListener) -> None:
        """Subscribe to every newly published snapshot."""
        self.cache.add_listener(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        self.cache.remove_listener(listener)

    def refresh(self) -> OperationHandle:
        """Re-list worktrees and publish the result.

        The handle resolves to the published snapshot. When git cannot list the
        worktrees it fails with GitOperationError and the previous snapshot stays
        published.
        """
        return self.dispatcher.submit("refresh", self._refresh)

    def _refresh(self) -> CacheSnapshot:
        ticket = self.cache.begin_refresh()
        try:
            worktrees = self.service.read_worktrees()
        except GitOperationError as e:
            logger.warning(f"Worktree refresh failed; keeping snapshot {self.cache.snapshot.version}: {e}")
            raise

        current = self.service.get_current_worktree(worktrees)
        self.cache.publish(ticket, worktrees, current)
        return self.cache.snapshot

    # Operations

    def list_worktrees(self) -> OperationHandle:
        return self._submit("list worktrees", self.service.list_worktrees)

    def get_current_worktree(self) -> OperationHandle:
        return self._submit("get current worktree", self.service.get_current_worktree)

    def has_commits(self) -> OperationHandle:
        return self._submit("check commits", self.service.has_commits)

    def is_git_available(self) -> OperationHandle:
        return self._submit("check git", self.service.is_git_available)

    def is_git_repository(self) -> OperationHandle:
        return self._submit("check repository", self.service.is_git_repository)

    def create_worktree(
        self,
        path: Union[str, Path],
        branch: str,
        create_branch: bool = True,
        allow_create_initial_commit: bool = False,
        initial_commit_message: Optional[str] = None,
    ) -> OperationHandle:
        return self._submit(
            "create worktree",
            self.service.create_worktree,
            path,
            branch,
            create_branch=create_branch,
            allow_create_initial_commit=allow_create_initial_commit,
            initial_commit_message=initial_commit_message,
            mutating=True,
        )

    def delete_worktree(self, path: Union[str, Path], force: bool = False) -> OperationHandle:
        return self._submit("delete worktree", self.service.delete_worktree, path, force=force, mutating=True)

    def move_worktree(self, old_path: Union[str, Path], new_path: Union[str, Path]) -> OperationHandle:
        return self._submit("move worktree", self.service.move_worktree, old_path, new_path, mutating=True)

    def rename_worktree(self, path: Union[str, Path], new_name: str) -> OperationHandle:
        return self._submit("rename worktree", self.service.rename_worktree, path, new_name, mutating=True)

    def compare_worktrees(self, source: WorktreeRef, target: WorktreeRef) -> OperationHandle:
        return self._submit("compare worktrees", self.service.compare_worktrees, source, target)

    def merge_worktree(
        self, source: WorktreeRef, target: WorktreeRef, fast_forward_only: bool = False
    ) -> OperationHandle:
        return self._submit(
            "merge worktree",
            self.service.merge_worktree,
            source,
            target,
            fast_forward_only=fast_forward_only,
            mutating=True,
        )

    def prune_worktrees(self) -> OperationHandle:
        return self._submit("prune worktrees", self.service.prune_worktrees, mutating=True)

    def _submit(self, name: str, fn: Callable[..., Any], *args, mutating: bool = False, **kwargs) -> OperationHandle:
        if not mutating:
            return self.dispatcher.submit(name, fn, *args, **kwargs)

        def run_and_refresh():
            result = fn(*args, **kwargs)
            if isinstance(result, Success):
                try:
                    self._refresh()
                except GitOperationError:
                    # Logged by _refresh; the mutation itself succeeded
                    pass
            return result

        return self.dispatcher.submit(name, run_and_refresh)

    def shutdown(self, wait: bool = True) -> None:
        self.dispatcher.shutdown(wait=wait)

    def __enter__(self) -> "WorktreeManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)
