"""Worktree operations service for git-worktree-manager."""

import os
import re
from pathlib import Path
from typing import List, Optional, Union

from git_worktree_manager.config import Config
from git_worktree_manager.exceptions import GitOperationError
from git_worktree_manager.models.result import (
    Failure,
    RequiresInitialCommit,
    Success,
    WorktreeOperationResult,
)
from git_worktree_manager.models.worktree import WorktreeRecord
from git_worktree_manager.services.git.command import CommandExecutor, CommandResult
from git_worktree_manager.services.git.porcelain import parse_worktree_list
from git_worktree_manager.services.worktree_validation_service import (
    WorktreeValidationService,
    final_segment,
    is_case_insensitive_filesystem,
    is_same_path,
    normalize_path,
)
from git_worktree_manager.logging_config import get_logger

logger = get_logger(__name__)

WorktreeRef = Union[WorktreeRecord, str, Path]


class WorktreeService:
    """Service for managing git worktrees.

    Every method is synchronous and re-reads the worktree registry before it
    acts. Methods never raise; failures come back as a Failure result (or an
    empty list / None for queries).
    """

    def __init__(
        self,
        repo_path: Union[str, Path],
        config: Union[Config, dict, None] = None,
        executor: Optional[CommandExecutor] = None,
    ):
        """Initialize the worktree service.

        Args:
            repo_path: Path to the project root inside the repository
            config: Configuration dict or Config object
            executor: Command executor; built from config when omitted
        """
        self.repo_path = str(repo_path)
        self.config = Config.coerce(config)
        self.executor = executor or CommandExecutor(
            self.config.git_executable, timeout=self.config.command_timeout
        )
        self.validator = WorktreeValidationService

    @property
    def case_insensitive(self) -> bool:
        if self.config.case_insensitive_paths is not None:
            return self.config.case_insensitive_paths
        return is_case_insensitive_filesystem()

    def _project_path(self) -> Optional[str]:
        """Project root if it still exists on disk."""
        return self.repo_path if os.path.isdir(self.repo_path) else None

    def _absolute(self, path: Union[str, Path]) -> str:
        """Interpret relative paths against the project root, as git does."""
        text = str(path)
        if os.path.isabs(text):
            return text
        return os.path.normpath(os.path.join(self.repo_path, text))

    def _run(self, working_dir: Optional[str], *args: str) -> CommandResult:
        return self.executor.run(working_dir, *args)

    def _run_checked(self, operation: str, working_dir: Optional[str], *args: str) -> CommandResult:
        """Run a command and raise GitOperationError on a non-zero exit."""
        result = self._run(working_dir, *args)
        if not result.ok:
            raise GitOperationError(operation, working_dir, result.error_text())
        return result

    # Queries

    def read_worktrees(self) -> List[WorktreeRecord]:
        """Get all worktrees, raising when they cannot be listed.

        Raises:
            GitOperationError: If the project path is gone or git fails
        """
        project_path = self._project_path()
        if project_path is None:
            raise GitOperationError("list worktrees", self.repo_path, "Project path does not exist")

        result = self._run_checked("list worktrees", project_path, "worktree", "list", "--porcelain")
        return parse_worktree_list(result.stdout, self.config.main_detection)

    def list_worktrees(self) -> List[WorktreeRecord]:
        """Get all worktrees of the repository.

        Returns:
            Worktree records in listing order, empty if git fails or the
            project is not a repository
        """
        try:
            return self.read_worktrees()
        except GitOperationError as e:
            logger.warning(f"Failed to list worktrees: {e}")
            return []
        except Exception as e:
            logger.error(f"Error listing worktrees: {e}")
            return []

    def get_current_worktree(self, worktrees: Optional[List[WorktreeRecord]] = None) -> Optional[WorktreeRecord]:
        """Find the worktree enclosing the project root.

        Args:
            worktrees: Listing to search; fetched fresh when omitted

        Returns:
            The deepest worktree containing the project root, or None
        """
        project_path = self._project_path()
        if project_path is None:
            return None
        if worktrees is None:
            worktrees = self.list_worktrees()

        project = normalize_path(project_path)
        if self.case_insensitive:
            project = project.lower()

        best: Optional[WorktreeRecord] = None
        best_length = -1
        for worktree in worktrees:
            candidate = normalize_path(worktree.path)
            if self.case_insensitive:
                candidate = candidate.lower()
            try:
                encloses = os.path.commonpath([project, candidate]) == candidate
            except ValueError:
                # Different drives on Windows
                encloses = False
            if encloses and len(candidate) > best_length:
                best, best_length = worktree, len(candidate)
        return best

    def resolve_worktree(
        self, worktree: WorktreeRef, worktrees: Optional[List[WorktreeRecord]] = None
    ) -> Optional[WorktreeRecord]:
        """Look up the current record for a record or path.

        Args:
            worktree: Record (matched by path) or path
            worktrees: Listing to search; fetched fresh when omitted
        """
        if worktrees is None:
            worktrees = self.list_worktrees()
        path = worktree.path if isinstance(worktree, WorktreeRecord) else self._absolute(worktree)
        return next(
            (wt for wt in worktrees if is_same_path(path, wt.path, self.case_insensitive)),
            None,
        )

    def has_commits(self) -> bool:
        """Check if the repository has any commits."""
        project_path = self._project_path()
        if project_path is None:
            return False
        return self._run(project_path, "rev-parse", "--verify", "--quiet", "HEAD").ok

    def is_git_available(self) -> bool:
        """Check if the configured git executable runs."""
        return self._run(None, "--version").ok

    def is_git_repository(self) -> bool:
        """Check if the project root is inside a git working tree."""
        project_path = self._project_path()
        if project_path is None:
            return False
        result = self._run(project_path, "rev-parse", "--is-inside-work-tree")
        return result.ok and result.stdout.strip() == "true"

    @staticmethod
    def suggest_directory_name(project_path: Optional[Union[str, Path]], branch_name: str) -> str:
        """Suggest a worktree directory name such as "myproject-feature-x".

        Args:
            project_path: Project root whose folder name is used as prefix
            branch_name: Branch the worktree will check out
        """
        project_name = final_segment(project_path) if project_path else ""
        project_name = project_name or "project"
        # Keep characters valid in file names; collapse the rest (slashes included) to hyphens
        sanitized = re.sub(r"[^A-Za-z0-9._-]+", "-", branch_name).strip("-.")
        return f"{project_name}-{sanitized}"

    # Mutations

    def create_worktree(
        self,
        path: Union[str, Path],
        branch: str,
        create_branch: bool = True,
        allow_create_initial_commit: bool = False,
        initial_commit_message: Optional[str] = None,
    ) -> WorktreeOperationResult:
        """Create a new worktree at path checking out branch.

        Args:
            path: Directory for the new worktree
            branch: Branch to check out
            create_branch: Create the branch from HEAD (True) or check out an existing one
            allow_create_initial_commit: Seed an empty commit when the repository has none
            initial_commit_message: Message for that commit; defaults to the configured one

        Returns:
            Success, Failure, or RequiresInitialCommit when the repository is empty
        """
        project_path = self._project_path()
        if project_path is None:
            return Failure("Project path not found", self.repo_path)

        try:
            violation = self.validator.run_checks(
                lambda: self.validator.validate_branch_name(branch),
                lambda: self.validator.validate_path_not_empty(path),
            )
            if violation:
                return Failure(violation)

            target = self._absolute(path)
            worktrees = self.read_worktrees()
            violation = self.validator.run_checks(
                lambda: self.validator.validate_path_length(target, self.config.max_path_length),
                lambda: self.validator.validate_reserved_name(target),
                lambda: self.validator.validate_unique_path(target, worktrees, self.case_insensitive),
                lambda: self.validator.validate_unique_name(target, worktrees, self.case_insensitive),
                lambda: self.validator.validate_target_absent(target),
            )
            if violation:
                logger.warning(f"Refusing to create worktree at {target}: {violation}")
                return Failure(violation)

            initial_commit_created = False
            if not self.has_commits():
                if not allow_create_initial_commit:
                    return RequiresInitialCommit("Repository has no commits")
                message = initial_commit_message or self.config.initial_commit_message
                self._run_checked("create initial commit", project_path, "commit", "--allow-empty", "-m", message)
                logger.info(f"Created initial commit in repository at {project_path}")
                initial_commit_created = True

            branch = branch.strip()
            if create_branch:
                args = ["worktree", "add", "-b", branch, target, "HEAD"]
            else:
                args = ["worktree", "add", target, branch]

            result = self._run(project_path, *args)
            if not result.ok:
                logger.warning(f"Failed to create worktree: {result.error_text()}")
                return Failure("Failed to create worktree", result.error_text())

            logger.info(f"Created worktree at {target} for branch {branch}")
            if initial_commit_created:
                return Success(f"Created initial commit and worktree '{branch}' at {target}")
            return Success(f"Created worktree '{branch}' at {target}")
        except GitOperationError as e:
            logger.warning(str(e))
            return Failure(f"Failed to {e.operation}", e.message)
        except Exception as e:
            logger.error(f"Error creating worktree: {e}")
            return Failure("Error creating worktree", str(e) or "Unknown error")

    def delete_worktree(self, path: Union[str, Path], force: bool = False) -> WorktreeOperationResult:
        """Remove the worktree at path.

        Args:
            path: Path to the worktree directory
            force: Force removal even if working tree is dirty or locked
        """
        project_path = self._project_path()
        if project_path is None:
            return Failure("Failed to delete worktree: project path not found", self.repo_path)

        try:
            target = self._absolute(path)
            violation = self.validator.validate_not_main(target, self.read_worktrees(), self.case_insensitive)
            if violation:
                logger.warning(f"Refusing to delete {target}: {violation}")
                return Failure(violation)

            args = ["worktree", "remove"]
            if force:
                args.append("--force")
            args.append(target)

            result = self._run(project_path, *args)
            if not result.ok:
                logger.warning(f"Failed to delete worktree at {target}: {result.error_text()}")
                return Failure("Failed to delete worktree", result.error_text())

            logger.info(f"Deleted worktree at {target}")
            return Success(f"Deleted worktree at {target}")
        except GitOperationError as e:
            logger.warning(str(e))
            return Failure("Failed to delete worktree", e.message)
        except Exception as e:
            logger.error(f"Error deleting worktree: {e}")
            return Failure("Error deleting worktree", str(e) or "Unknown error")

    def move_worktree(self, old_path: Union[str, Path], new_path: Union[str, Path]) -> WorktreeOperationResult:
        """Move a worktree to a new location.

        Args:
            old_path: Current worktree directory
            new_path: Destination directory (must not exist)
        """
        project_path = self._project_path()
        if project_path is None:
            return Failure("Failed to move worktree: project path not found", self.repo_path)

        try:
            source = self._absolute(old_path)
            worktrees = self.read_worktrees()
            violation = self.validator.validate_not_main(source, worktrees, self.case_insensitive)
            if violation:
                logger.warning(f"Refusing to move {source}: {violation}")
                return Failure(violation, "Git requires the main worktree to stay where it is.")

            violation = self.validator.validate_path_not_empty(new_path)
            if violation:
                return Failure(violation)

            destination = self._absolute(new_path)
            violation = self.validator.run_checks(
                lambda: self.validator.validate_path_length(destination, self.config.max_path_length),
                lambda: self.validator.validate_reserved_name(destination),
                lambda: self.validator.validate_unique_path(destination, worktrees, self.case_insensitive),
                lambda: self.validator.validate_unique_name(
                    destination, worktrees, self.case_insensitive, ignore=source
                ),
                lambda: self.validator.validate_target_absent(destination),
            )
            if violation:
                logger.warning(f"Refusing to move {source} to {destination}: {violation}")
                return Failure(violation)

            result = self._run(project_path, "worktree", "move", source, destination)
            if not result.ok:
                logger.warning(f"Failed to move worktree: {result.error_text()}")
                return Failure("Failed to move worktree", result.error_text())

            logger.info(f"Moved worktree from {source} to {destination}")
            return Success(f"Moved worktree from {source} to {destination}")
        except GitOperationError as e:
            logger.warning(str(e))
            return Failure("Failed to move worktree", e.message)
        except Exception as e:
            logger.error(f"Error moving worktree: {e}")
            return Failure("Error moving worktree", str(e) or "Unknown error")

    def rename_worktree(self, path: Union[str, Path], new_name: str) -> WorktreeOperationResult:
        """Rename a worktree directory in place (same parent, new leaf name)."""
        violation = self.validator.validate_new_name(new_name)
        if violation:
            return Failure(violation)

        source = self._absolute(path)
        parent = os.path.dirname(source.rstrip("/\\"))
        if not parent:
            return Failure("Cannot determine the parent directory of the worktree", source)
        return self.move_worktree(source, os.path.join(parent, new_name.strip()))

    def prune_worktrees(self) -> WorktreeOperationResult:
        """Prune administrative data of worktrees whose directories are gone."""
        project_path = self._project_path()
        if project_path is None:
            return Failure("Failed to prune worktrees: project path not found", self.repo_path)

        result = self._run(project_path, "worktree", "prune")
        if not result.ok:
            logger.warning(f"Failed to prune worktrees: {result.error_text()}")
            return Failure("Failed to prune worktrees", result.error_text())

        logger.info("Pruned orphaned worktree metadata")
        return Success("Pruned stale worktree metadata")

    # Comparison and merge

    def compare_worktrees(self, source: WorktreeRef, target: WorktreeRef) -> WorktreeOperationResult:
        """Diff the checkouts of two worktrees.

        Both worktrees must be known, present on disk and free of uncommitted
        changes.

        Args:
            source: Worktree providing the changes
            target: Worktree to compare against

        Returns:
            Success with the `diff --stat` summary as message and the full diff
            as details, or Failure
        """
        project_path = self._project_path()
        if project_path is None:
            return Failure("Failed to compare worktrees", "Project path not found")

        try:
            worktrees = self.read_worktrees()
            resolved = self._resolve_pair(source, target, worktrees)
            if isinstance(resolved, Failure):
                return Failure("Failed to compare worktrees", resolved.error)
            source_wt, target_wt = resolved

            dirty = []
            for worktree in (source_wt, target_wt):
                if not os.path.isdir(worktree.path):
                    return Failure("Failed to compare worktrees", f"Worktree path does not exist: {worktree.path}")

                status = self._run(worktree.path, "status", "--porcelain")
                if not status.ok:
                    return Failure(
                        "Failed to compare worktrees",
                        f"Unable to inspect {worktree.display_name}: {status.error_text()}",
                    )
                if status.stdout.strip():
                    dirty.append(worktree)

            if dirty:
                summary = "\n".join(f'"{wt.display_name}" at {wt.path}' for wt in dirty)
                return Failure("Uncommitted changes detected.", f"Commit, stash, or discard changes in:\n{summary}")

            diff_range = f"{source_wt.ref}..{target_wt.ref}"
            stat = self._run_checked("compare worktrees", project_path, "diff", "--stat", "--no-color", diff_range)
            diff = self._run_checked("compare worktrees", project_path, "diff", "--no-color", diff_range)

            stat_text = stat.stdout.strip()
            diff_text = diff.stdout.strip()
            if not stat_text:
                summary = f"No differences between {source_wt.display_name} and {target_wt.display_name}"
            else:
                summary = stat_text
            return Success(summary, diff_text or None)
        except GitOperationError as e:
            return Failure("Failed to compare worktrees", e.message)
        except Exception as e:
            logger.error(f"Error comparing worktrees: {e}")
            return Failure("Error comparing worktrees", str(e) or "Unknown error")

    def merge_worktree(
        self, source: WorktreeRef, target: WorktreeRef, fast_forward_only: bool = False
    ) -> WorktreeOperationResult:
        """Merge the source worktree's checkout into the target worktree.

        A merge that stops on conflicts is aborted so the target is left as it was.

        Args:
            source: Worktree contributing changes
            target: Worktree receiving the merge
            fast_forward_only: Refuse anything but a fast-forward
        """
        try:
            worktrees = self.read_worktrees()
            resolved = self._resolve_pair(source, target, worktrees)
            if isinstance(resolved, Failure):
                return Failure("Failed to merge worktrees", resolved.error)
            source_wt, target_wt = resolved

            if not os.path.isdir(target_wt.path):
                return Failure(f"Target worktree path does not exist: {target_wt.path}")

            args = ["merge", "--no-edit"]
            if fast_forward_only:
                args.append("--ff-only")
            args.append(source_wt.ref)

            result = self._run(target_wt.path, *args)
            if not result.ok:
                details = result.error_text()
                if self._run(target_wt.path, "rev-parse", "-q", "--verify", "MERGE_HEAD").ok:
                    abort = self._run(target_wt.path, "merge", "--abort")
                    if abort.ok:
                        details += "\nMerge aborted; the target worktree was left unchanged."
                    else:
                        details += f"\nMerge could not be aborted: {abort.error_text()}"
                logger.warning(f"Failed to merge {source_wt.display_name} into {target_wt.display_name}: {details}")
                return Failure(f"Failed to merge {source_wt.display_name} into {target_wt.display_name}", details)

            logger.info(f"Merged {source_wt.display_name} into {target_wt.display_name}")
            return Success(
                f"Merged {source_wt.display_name} into {target_wt.display_name}",
                result.output.strip() or None,
            )
        except GitOperationError as e:
            logger.warning(str(e))
            return Failure("Failed to merge worktrees", e.message)
        except Exception as e:
            logger.error(f"Error merging worktree: {e}")
            return Failure("Error merging worktree", str(e) or "Unknown error")

    def _resolve_pair(self, source: WorktreeRef, target: WorktreeRef, worktrees: List[WorktreeRecord]):
        """Resolve source and target against a listing, or return a Failure."""
        source_wt = self.resolve_worktree(source, worktrees)
        if source_wt is None:
            return Failure(f"'{_describe(source)}' is not a known worktree")
        target_wt = self.resolve_worktree(target, worktrees)
        if target_wt is None:
            return Failure(f"'{_describe(target)}' is not a known worktree")
        return source_wt, target_wt


def _describe(worktree: WorktreeRef) -> str:
    return worktree.path if isinstance(worktree, WorktreeRecord) else str(worktree)
