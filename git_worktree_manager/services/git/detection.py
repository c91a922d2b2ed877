"""Main-worktree detection from on-disk Git metadata.

A main worktree owns a real `.git` directory. A linked worktree has a `.git`
file whose `gitdir:` pointer leads into `<main>/.git/worktrees/<id>`. The
listing order reported by `git worktree list` is not trusted for this.
"""

import os
from pathlib import Path
from typing import Optional, Union

from git_worktree_manager.logging_config import get_logger

logger = get_logger(__name__)

GITDIR_DIRECTIVE = "gitdir:"
WORKTREES_SEGMENT = "worktrees"


def is_main_worktree(
    path: Union[str, Path], is_bare: bool = False, default_if_unknown: bool = False
) -> bool:
    """Decide whether path is the repository's main worktree.

    Args:
        path: Worktree root directory
        is_bare: True when the listing reported a bare repository
        default_if_unknown: Answer used when the metadata cannot be interpreted

    Returns:
        True for the main worktree, False for a linked worktree or bare repository
    """
    if is_bare:
        return False

    root = Path(path)
    git_entry = root / ".git"

    try:
        if git_entry.is_symlink():
            target = Path(os.readlink(git_entry))
            if not target.is_absolute():
                target = root / target
            # Judged by where the link leads, directory or gitdir file alike
            pointer = target
        elif git_entry.is_dir():
            return True
        elif git_entry.is_file():
            pointer = _read_gitdir_pointer(git_entry)
            if pointer is None:
                return default_if_unknown
            if not pointer.is_absolute():
                pointer = root / pointer
        else:
            return default_if_unknown

        resolved = _resolve_pointer(pointer)
    except (OSError, ValueError) as e:
        logger.debug(f"Could not inspect {git_entry}: {e}")
        return default_if_unknown

    return not has_worktrees_segment(resolved)


def _read_gitdir_pointer(git_file: Path) -> Optional[Path]:
    """Return the path named by the first `gitdir:` line, or None."""
    try:
        contents = git_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Could not read {git_file}: {e}")
        return None

    for line in contents.splitlines():
        line = line.strip()
        if line.lower().startswith(GITDIR_DIRECTIVE):
            value = line[len(GITDIR_DIRECTIVE):].strip()
            return Path(value) if value else None
    return None


def _resolve_pointer(pointer: Path) -> Path:
    """Normalize the pointer, following it when it is a symbolic link."""
    if pointer.is_symlink():
        return pointer.resolve()
    return Path(os.path.normpath(pointer))


def has_worktrees_segment(path: Path) -> bool:
    """True when any segment of path equals `worktrees`, ignoring case."""
    return any(part.lower() == WORKTREES_SEGMENT for part in path.parts)
