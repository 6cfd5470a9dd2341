"""Worktree registration queries for git-worktree-keeper."""

import os
from typing import Optional, Dict, Any, List

import git

from git_worktree_keeper.constants import METADATA_DIR
from git_worktree_keeper.exceptions import GitOperationError
from git_worktree_keeper.models.worktree import WorktreeInfo
from git_worktree_keeper.services.git.repo import open_repo, command_output
from git_worktree_keeper.utils.logging import get_logger
from git_worktree_keeper.utils.paths import normalize_path

logger = get_logger(__name__)


class WorktreeService:
    """Service for inspecting the worktrees registered against a metadata store."""

    def __init__(self, repo_path: str):
        """Initialize the worktree service.

        Args:
            repo_path: Path to the metadata store, or to a repository root
                containing one
        """
        self.repo_path = repo_path

    def _get_repo(self) -> git.Repo:
        return open_repo(self.repo_path)

    def get_worktree_info(self) -> List[WorktreeInfo]:
        """Get detailed information about all registered worktrees.

        Results are never cached: registration checks must observe worktrees
        added by concurrent processes.

        Returns:
            List of WorktreeInfo objects in the order git reports them

        Raises:
            GitOperationError: If git cannot list worktrees
        """
        repo = self._get_repo()
        try:
            # Use --porcelain for machine-readable output
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            output = command_output(e)
            logger.error(f"Could not list worktrees for {self.repo_path}: {output}")
            raise GitOperationError("worktree_list", self.repo_path, output=output) from e
        finally:
            repo.close()

        worktree_list = self.parse_porcelain(output)
        logger.debug(f"Found {len(worktree_list)} worktrees")
        for wt in worktree_list:
            logger.debug(f"  {wt}")
        return worktree_list

    @staticmethod
    def parse_porcelain(output: str) -> List[WorktreeInfo]:
        """Parse ``git worktree list --porcelain`` output.

        Format:
            worktree /path/to/worktree
            HEAD commit_sha
            branch refs/heads/branch-name   (or "detached", or "bare")
            (blank line between worktrees)
        """
        worktree_list: List[WorktreeInfo] = []
        current: Dict[str, Any] = {}

        def finish_entry():
            path = current.get("path", "")
            if path:
                worktree_list.append(
                    WorktreeInfo(
                        path=path,
                        branch_name=current.get("branch", ""),
                        commit_sha=current.get("HEAD", ""),
                        is_main=not worktree_list,
                        is_bare=current.get("bare", False),
                        is_detached=current.get("detached", False),
                    )
                )
            current.clear()

        for line in output.split("\n"):
            line = line.strip()

            if not line:
                finish_entry()
                continue

            if line.startswith("worktree "):
                if current:
                    finish_entry()
                current["path"] = line.split(" ", 1)[1].strip()
            elif line.startswith("HEAD "):
                current["HEAD"] = line.split(" ", 1)[1]
            elif line.startswith("branch "):
                branch_ref = line.split(" ", 1)[1]
                if branch_ref.startswith("refs/heads/"):
                    current["branch"] = branch_ref[len("refs/heads/"):]
            elif line == "detached":
                current["detached"] = True
            elif line == "bare":
                current["bare"] = True

        # Last entry may lack a trailing blank line
        finish_entry()
        return worktree_list

    def is_registered(self, candidate_path: str) -> bool:
        """Check whether ``candidate_path`` is a registered worktree.

        Both sides are compared in normalized form (absolute, symlinks
        resolved), so relative paths and symlinked parents match the path git
        recorded.

        Raises:
            GitOperationError: If git cannot list worktrees
        """
        worktree = self.find_worktree(candidate_path)
        if worktree is not None:
            logger.debug(f"Worktree {candidate_path} is registered as {worktree.path}")
        return worktree is not None

    def list_worktrees(self) -> List[str]:
        """List worktree names relative to the repository root.

        The repository root and its metadata directory are skipped; worktrees
        outside the root are reported by their directory name.
        """
        repo_root = normalize_path(self.repo_path)
        if os.path.basename(repo_root) == METADATA_DIR:
            repo_root = os.path.dirname(repo_root)
        metadata_path = os.path.join(repo_root, METADATA_DIR)

        names: List[str] = []
        for worktree in self.get_worktree_info():
            path = normalize_path(worktree.path)
            if path in (repo_root, metadata_path):
                continue

            if path.startswith(repo_root + os.sep):
                name = os.path.relpath(path, repo_root).replace(os.sep, "/")
            else:
                name = os.path.basename(path)

            if not name or name == METADATA_DIR or name in names:
                continue
            names.append(name)
        return names

    def has_worktrees(self) -> bool:
        """True if at least one worktree (besides the root itself) is registered."""
        return bool(self.list_worktrees())

    def find_worktree(self, candidate_path: str) -> Optional[WorktreeInfo]:
        """Return the registered worktree at ``candidate_path``, if any."""
        target = normalize_path(candidate_path)
        for worktree in self.get_worktree_info():
            if normalize_path(worktree.path) == target:
                return worktree
        return None
