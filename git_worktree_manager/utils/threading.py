"""Worker pool sizing that accounts for free-threaded Python builds."""

import os
import sys
from typing import Optional

# Upper bounds for the operation pool
MAX_WORKERS_GIL = 32
MAX_WORKERS_FREE_THREADING = 64


def is_free_threading_enabled() -> bool:
    """True on Python 3.13+ builds running with the GIL disabled."""
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    if is_gil_enabled is None:
        return False
    return not is_gil_enabled()


def get_python_threading_mode() -> str:
    """Describe the interpreter's threading mode for debug logs."""
    if not hasattr(sys, "_is_gil_enabled"):
        return "GIL-enabled (Python < 3.13)"
    return "free-threading" if is_free_threading_enabled() else "GIL-enabled"


def get_optimal_worker_count(user_specified: Optional[int] = None) -> int:
    """Pick the number of threads for running worktree operations.

    Operations spend nearly all of their time waiting on git subprocesses, so
    the pool is sized above the CPU count.

    Args:
        user_specified: Explicit worker count; used as-is when positive

    Returns:
        Number of worker threads
    """
    if user_specified is not None and user_specified > 0:
        return user_specified

    cpu_count = os.cpu_count() or 1
    if is_free_threading_enabled():
        return min(MAX_WORKERS_FREE_THREADING, cpu_count * 2)
    return min(MAX_WORKERS_GIL, cpu_count + 4)
