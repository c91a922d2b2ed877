"""
git-worktree-manager - Git worktree orchestration engine with a command-line front end
"""

from .__version__ import __version__
from .config import Config
from .core import WorktreeManager
from .models import Failure, RequiresInitialCommit, Success, WorktreeRecord
from .services.git import WorktreeService

__all__ = [
    "Config",
    "Failure",
    "RequiresInitialCommit",
    "Success",
    "WorktreeManager",
    "WorktreeRecord",
    "WorktreeService",
    "__version__",
]
