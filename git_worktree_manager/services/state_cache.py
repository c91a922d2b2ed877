"""Versioned in-memory cache of the most recent worktree listing."""

from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Deque, Iterable, List, Optional, Tuple

from git_worktree_manager.models.worktree import WorktreeRecord
from git_worktree_manager.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheSnapshot:
    """Immutable view of the worktree listing at one refresh."""

    version: int = 0
    worktrees: Tuple[WorktreeRecord, ...] = ()
    current: Optional[WorktreeRecord] = None

    @property
    def main_worktree(self) -> Optional[WorktreeRecord]:
        return next((wt for wt in self.worktrees if wt.is_main), None)


SnapshotListener = Callable[[CacheSnapshot], None]


class WorktreeStateCache:
    """Holds the published snapshot and orders concurrent refreshes.

    Every refresh takes a ticket before it lists worktrees. When it finishes,
    the result is published only if no refresh with a later ticket has been
    published already, so a slow refresh can never overwrite a newer one.

    Listeners run without the lock held. Snapshots published while listeners
    are being called are queued and delivered, in version order, by the thread
    already delivering; a listener may therefore start and wait for another
    refresh without blocking it.
    """

    def __init__(self):
        self._snapshot = CacheSnapshot()
        self._next_ticket = 0
        self._lock = Lock()  # Guards tickets, publishing and the delivery queue
        self._listeners: List[SnapshotListener] = []
        self._undelivered: Deque[CacheSnapshot] = deque()
        self._delivering = False

    @property
    def snapshot(self) -> CacheSnapshot:
        """Currently published snapshot; reading never blocks."""
        return self._snapshot

    def begin_refresh(self) -> int:
        """Allocate the ticket for a new refresh."""
        with self._lock:
            self._next_ticket += 1
            return self._next_ticket

    def publish(
        self,
        ticket: int,
        worktrees: Iterable[WorktreeRecord],
        current: Optional[WorktreeRecord] = None,
    ) -> bool:
        """Publish a refresh result.

        Args:
            ticket: Value returned by begin_refresh() for this refresh
            worktrees: Listing produced by the refresh
            current: Worktree enclosing the project root

        Returns:
            True if published, False if a newer refresh was already published
        """
        with self._lock:
            if ticket <= self._snapshot.version:
                logger.debug(
                    f"Discarding stale refresh {ticket} (published version is {self._snapshot.version})"
                )
                return False

            self._snapshot = CacheSnapshot(ticket, tuple(worktrees), current)
            logger.debug(f"Published worktree snapshot {ticket} with {len(self._snapshot.worktrees)} entries")
            self._undelivered.append(self._snapshot)
            if self._delivering:
                return True
            self._delivering = True

        self._deliver_pending()
        return True

    def clear(self) -> None:
        """Publish an empty snapshot that supersedes every outstanding refresh."""
        self.publish(self.begin_refresh(), ())

    def add_listener(self, listener: SnapshotListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _deliver_pending(self) -> None:
        """Call listeners for queued snapshots until the queue is empty."""
        try:
            while True:
                with self._lock:
                    if not self._undelivered:
                        self._delivering = False
                        return
                    snapshot = self._undelivered.popleft()
                    listeners = list(self._listeners)
                for listener in listeners:
                    try:
                        listener(snapshot)
                    except Exception as e:
                        logger.error(f"Snapshot listener {listener!r} failed: {e}")
        except BaseException:
            # Let the next publish deliver what is left
            with self._lock:
                self._delivering = False
            raise
