"""Branch query service for git-worktree-keeper."""

from typing import List, Set

import git

from git_worktree_keeper.constants import REMOTE_NAME, REMOTE_PREFIX, SYMBOLIC_REF_MARKER
from git_worktree_keeper.exceptions import GitOperationError
from git_worktree_keeper.services.git.repo import open_repo, command_output
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


class BranchQueries:
    """Service for querying branch information."""

    def __init__(self, repo_path: str):
        """Initialize the branch queries service.

        Args:
            repo_path: Path to a working copy, repository root or metadata store
        """
        self.repo_path = repo_path

    def _get_repo(self) -> git.Repo:
        return open_repo(self.repo_path)

    def list_branches(self) -> List[str]:
        """List every branch visible from the repository.

        Local and remote-tracking names are merged, the remote prefix is
        stripped, and symbolic refs (``origin/HEAD``) are discarded.

        Returns:
            Sorted, deduplicated branch names

        Raises:
            GitOperationError: If git cannot list branches
        """
        repo = self._get_repo()
        try:
            remote_output = self._branch_names(repo, "-r")
            local_output = self._branch_names(repo)
        finally:
            repo.close()

        branches: Set[str] = set()
        for line in remote_output + local_output:
            name = self.normalize_branch_name(line)
            if name:
                branches.add(name)

        logger.debug(f"Found {len(branches)} branches in {self.repo_path}")
        return sorted(branches)

    def _branch_names(self, repo: git.Repo, *flags: str) -> List[str]:
        try:
            output = repo.git.branch(*flags, "--format=%(refname:short)")
        except git.exc.GitCommandError as e:
            output = command_output(e)
            scope = "remote" if flags else "local"
            logger.error(f"Failed to list {scope} branches in {self.repo_path}: {output}")
            raise GitOperationError(
                "list_branches", self.repo_path, f"Failed to list {scope} branches", output
            ) from e
        return output.splitlines()

    @staticmethod
    def normalize_branch_name(name: str) -> str:
        """Strip the remote prefix; return "" for names that aren't branches."""
        name = name.strip()
        if name.startswith(REMOTE_PREFIX):
            name = name[len(REMOTE_PREFIX):]
        if name in ("", "HEAD", REMOTE_NAME) or SYMBOLIC_REF_MARKER in name:
            return ""
        return name

    def list_local_branches(self) -> List[str]:
        """List local branch names only, in git's order."""
        repo = self._get_repo()
        try:
            return [line.strip() for line in self._branch_names(repo) if line.strip()]
        finally:
            repo.close()
