"""Parser for `git worktree list --porcelain` output."""

from enum import Enum
from typing import Any, Dict, List, Union

from git_worktree_manager.models.worktree import WorktreeRecord
from git_worktree_manager.services.git.detection import is_main_worktree
from git_worktree_manager.logging_config import get_logger

logger = get_logger(__name__)


class MainDetectionPolicy(Enum):
    """Which source decides the main worktree."""
    FILESYSTEM = "filesystem"  # On-disk `.git` metadata wins over listing order
    LISTING = "listing"  # First listed record is main


def parse_worktree_list(
    output: str, policy: Union[MainDetectionPolicy, str] = MainDetectionPolicy.FILESYSTEM
) -> List[WorktreeRecord]:
    """Parse porcelain output into worktree records.

    Format (records separated by a blank line):
        worktree /path/to/worktree
        HEAD <commit>
        branch refs/heads/<name>   | detached | bare
        locked [reason]
        prunable [reason]

    Args:
        output: Raw stdout of `git worktree list --porcelain`
        policy: How the main worktree is identified

    Returns:
        Records in listing order
    """
    policy = MainDetectionPolicy(policy)
    entries: List[Dict[str, Any]] = []
    current: Dict[str, Any] = {}

    for raw_line in output.splitlines():
        line = raw_line.strip()

        if not line:
            # Empty line marks end of worktree entry
            if current:
                entries.append(current)
                current = {}
            continue

        key, _, value = line.partition(" ")
        if key == "worktree":
            if current:
                # A new record started without the separating blank line
                entries.append(current)
            current = {"path": value}
        elif key == "HEAD":
            current["commit"] = value
        elif key == "branch":
            current["branch"] = value
        elif key == "detached":
            current["branch"] = None
        elif key == "bare":
            current["bare"] = True
        elif key == "locked":
            current["locked"] = True
            current["lock_reason"] = value or None
        elif key == "prunable":
            current["prunable"] = True
            current["prune_reason"] = value or None

    # Handle last entry if no trailing blank line
    if current:
        entries.append(current)

    entries = [entry for entry in entries if entry.get("path")]
    main_flags = _classify(entries, policy)

    records = [
        WorktreeRecord(
            path=entry["path"],
            branch=entry.get("branch"),
            commit=entry.get("commit", ""),
            is_main=is_main,
            is_locked=entry.get("locked", False),
            is_prunable=entry.get("prunable", False),
            is_bare=entry.get("bare", False),
            lock_reason=entry.get("lock_reason"),
            prune_reason=entry.get("prune_reason"),
        )
        for entry, is_main in zip(entries, main_flags)
    ]

    logger.debug(f"Parsed {len(records)} worktrees")
    for record in records:
        logger.debug(f"  {record}")
    return records


def _classify(entries: List[Dict[str, Any]], policy: MainDetectionPolicy) -> List[bool]:
    """Compute is_main per entry, keeping at most one main record."""
    if not entries:
        return []

    if policy is MainDetectionPolicy.LISTING:
        first = entries[0]
        if not first.get("bare", False):
            return [True] + [False] * (len(entries) - 1)
        # A bare first record cannot be main; fall back to the metadata
        flags = [
            is_main_worktree(entry["path"], entry.get("bare", False), default_if_unknown=False)
            for entry in entries
        ]
    else:
        flags = [
            is_main_worktree(
                entry["path"],
                is_bare=entry.get("bare", False),
                default_if_unknown=(index == 0),
            )
            for index, entry in enumerate(entries)
        ]

    main_indexes = [index for index, flag in enumerate(flags) if flag]
    if len(main_indexes) > 1:
        logger.warning(
            f"Multiple worktrees look like the main checkout: "
            f"{[entries[i]['path'] for i in main_indexes]}; keeping {entries[main_indexes[0]]['path']}"
        )
        keep = main_indexes[0]
        return [index == keep for index in range(len(flags))]

    if not main_indexes and policy is MainDetectionPolicy.FILESYSTEM and not entries[0].get("bare", False):
        logger.warning(
            f"No worktree metadata identifies the main checkout; assuming {entries[0]['path']}"
        )
        return [index == 0 for index in range(len(flags))]

    if main_indexes and main_indexes[0] != 0:
        logger.warning(
            f"Listing order disagrees with on-disk metadata: main worktree is "
            f"{entries[main_indexes[0]]['path']}, not {entries[0]['path']}"
        )
    return flags
