"""Runs worktree operations on a thread pool and delivers their outcomes."""

from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, List, Optional, Tuple

from git_worktree_manager.exceptions import OperationCancelledError
from git_worktree_manager.utils.threading import get_optimal_worker_count
from git_worktree_manager.logging_config import get_logger

logger = get_logger(__name__)

# Receives a zero-argument callable and arranges for it to run, e.g. on a UI thread
CallbackExecutor = Callable[[Callable[[], None]], Any]


def _run_inline(fn: Callable[[], None]) -> None:
    fn()


class OperationHandle:
    """Handle to an operation running on the dispatcher.

    Callbacks fire once when the operation completes. Cancelling prevents a
    queued operation from starting; once it has started, cancelling only
    stops callbacks and result() from delivering its outcome.
    """

    def __init__(self, name: str, future: Future, callback_executor: Optional[CallbackExecutor] = None):
        self.name = name
        self._future = future
        self._callback_executor = callback_executor or _run_inline
        self._lock = Lock()
        self._cancelled = False
        self._delivered = False
        self._success_callbacks: List[Callable[[Any], None]] = []
        self._failure_callbacks: List[Callable[[BaseException], None]] = []
        self._done_callbacks: List[Callable[["OperationHandle"], None]] = []
        future.add_done_callback(self._on_future_done)

    def __repr__(self) -> str:
        return f"OperationHandle({self.name!r}, done={self.done()}, cancelled={self.cancelled()})"

    def result(self, timeout: Optional[float] = None) -> Any:
        """Wait for the operation and return its result.

        Raises:
            OperationCancelledError: If the handle was cancelled
            concurrent.futures.TimeoutError: If timeout elapses first
            Exception: Whatever the operation raised
        """
        if self._cancelled:
            raise OperationCancelledError(self.name)
        try:
            value = self._future.result(timeout)
        except CancelledError:
            raise OperationCancelledError(self.name)
        if self._cancelled:
            raise OperationCancelledError(self.name)
        return value

    def cancel(self) -> bool:
        """Cancel the operation.

        Returns:
            False if the outcome was already delivered, True otherwise
        """
        with self._lock:
            if self._delivered or self._future.done():
                return False
            self._cancelled = True
            self._success_callbacks.clear()
            self._failure_callbacks.clear()
            self._done_callbacks.clear()
        if self._future.cancel():
            logger.debug(f"Operation '{self.name}' cancelled before it started")
        else:
            logger.debug(f"Operation '{self.name}' cancelled while running; its outcome will be discarded")
        return True

    def cancelled(self) -> bool:
        return self._cancelled

    def done(self) -> bool:
        return self._future.done()

    def on_success(self, callback: Callable[[Any], None]) -> "OperationHandle":
        """Call callback(result) when the operation returns normally."""
        self._register(self._success_callbacks, callback)
        return self

    def on_failure(self, callback: Callable[[BaseException], None]) -> "OperationHandle":
        """Call callback(exception) when the operation raises."""
        self._register(self._failure_callbacks, callback)
        return self

    def add_done_callback(self, callback: Callable[["OperationHandle"], None]) -> "OperationHandle":
        """Call callback(handle) when the operation finishes either way."""
        self._register(self._done_callbacks, callback)
        return self

    def _register(self, callbacks: list, callback: Callable) -> None:
        with self._lock:
            if self._cancelled:
                return
            if not self._future.done():
                callbacks.append(callback)
                return
        # Already completed: deliver right away rather than waiting for _on_future_done
        self._deliver(self._pending_for(callback, callbacks))

    def _pending_for(self, callback: Callable, callbacks: list) -> List[Tuple[Callable, Any]]:
        error = self._future.exception()
        if callbacks is self._done_callbacks:
            return [(callback, self)]
        if callbacks is self._success_callbacks:
            return [] if error is not None else [(callback, self._future.result())]
        return [(callback, error)] if error is not None else []

    def _on_future_done(self, future: Future) -> None:
        if future.cancelled():
            return
        with self._lock:
            if self._cancelled:
                return
            self._delivered = True
            error = future.exception()
            if error is None:
                value = future.result()
                pending = [(cb, value) for cb in self._success_callbacks]
            else:
                pending = [(cb, error) for cb in self._failure_callbacks]
            pending += [(cb, self) for cb in self._done_callbacks]
            self._success_callbacks.clear()
            self._failure_callbacks.clear()
            self._done_callbacks.clear()
        self._deliver(pending)

    def _deliver(self, pending: List[Tuple[Callable, Any]]) -> None:
        for callback, argument in pending:
            try:
                self._callback_executor(lambda cb=callback, arg=argument: self._invoke(cb, arg))
            except Exception as e:
                logger.error(f"Could not schedule callback for operation '{self.name}': {e}")

    def _invoke(self, callback: Callable, argument: Any) -> None:
        if self._cancelled:
            return
        try:
            callback(argument)
        except Exception as e:
            logger.error(f"Callback for operation '{self.name}' raised: {e}")


class TaskDispatcher:
    """Thread pool running one task per worktree operation."""

    def __init__(self, max_workers: Optional[int] = None, callback_executor: Optional[CallbackExecutor] = None):
        """Initialize the dispatcher.

        Args:
            max_workers: Pool size; auto-detected when None
            callback_executor: Where handle callbacks run; inline on the worker when None
        """
        self.max_workers = get_optimal_worker_count(max_workers)
        self.callback_executor = callback_executor
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="worktree-op"
        )
        logger.debug(f"Task dispatcher started with {self.max_workers} workers")

    def submit(self, operation_name: str, fn: Callable[..., Any], *args, **kwargs) -> OperationHandle:
        """Schedule fn(*args, **kwargs) and return a handle to it."""
        future = self._executor.submit(self._run, operation_name, fn, args, kwargs)
        return OperationHandle(operation_name, future, self.callback_executor)

    @staticmethod
    def _run(operation_name: str, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        logger.debug(f"Starting operation '{operation_name}'")
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logger.error(f"Operation '{operation_name}' raised {type(e).__name__}: {e}")
            raise
        finally:
            logger.debug(f"Finished operation '{operation_name}'")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "TaskDispatcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)
