"""Remote tracking setup for bare clones."""

import os
from typing import List, Optional

import git

from git_worktree_keeper.constants import FETCH_REFSPEC, METADATA_DIR, REMOTE_NAME, REMOTE_PREFIX
from git_worktree_keeper.exceptions import GitOperationError, RemoteRepairFailedError
from git_worktree_keeper.services.git.branch_queries import BranchQueries
from git_worktree_keeper.services.git.repo import open_repo, command_output
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


class RemoteService:
    """Repairs remote tracking in a freshly bare-cloned metadata store.

    ``git clone --bare`` leaves out the fetch refspec and turns every remote
    branch into a local branch. ``configure_bare_remote`` installs the
    refspec, fetches once so ``refs/remotes/origin/*`` exist, then deletes the
    now-redundant local branches. A local branch is only redundant when
    ``origin/<branch>`` exists and already contains its tip; anything else
    (unpushed branches, branches ahead of origin) is kept.
    """

    def __init__(self, metadata_path: str):
        """Initialize the remote service.

        Args:
            metadata_path: Path to the bare metadata store
        """
        self.metadata_path = metadata_path

    def configure_bare_remote(self, default_branch: str) -> List[str]:
        """Install the fetch mapping, fetch, and prune stale local branches.

        Args:
            default_branch: The one local branch to keep

        Returns:
            Local branches that were kept: not fully pushed, or not deletable
            (e.g. checked out by a worktree). Neither fails the repair.

        Raises:
            RemoteRepairFailedError: If setting the refspec or fetching fails.
                Re-running the repair is safe.
        """
        repo = open_repo(self.metadata_path)
        try:
            self._run_step(repo, "set_fetch_refspec", "config", f"remote.{REMOTE_NAME}.fetch", FETCH_REFSPEC)
            self._run_step(repo, "fetch", "fetch", REMOTE_NAME)
        finally:
            repo.close()

        skipped = self._delete_redundant_branches(default_branch)
        logger.info(f"Configured remote tracking for {self.metadata_path}")
        return skipped

    def _run_step(self, repo: git.Repo, step: str, command: str, *args: str) -> None:
        logger.debug(f"[{step}] git {command} {' '.join(args)}")
        try:
            repo.git.execute(["git", command, *args])
        except git.exc.GitCommandError as e:
            output = command_output(e)
            logger.error(f"Remote repair step '{step}' failed for {self.metadata_path}: {output}")
            raise RemoteRepairFailedError(step, self.metadata_path, output=output) from e

    def _delete_redundant_branches(self, default_branch: str) -> List[str]:
        try:
            local_branches = BranchQueries(self.metadata_path).list_local_branches()
        except GitOperationError as e:
            logger.warning(f"Could not list local branches, skipping cleanup: {e}")
            return []

        skipped: List[str] = []
        repo = open_repo(self.metadata_path)
        try:
            for branch in local_branches:
                if branch == default_branch:
                    continue
                if not self._is_pushed(repo, branch):
                    logger.info(f"Keeping local branch {branch}: commits not on {REMOTE_PREFIX}{branch}")
                    skipped.append(branch)
                    continue
                try:
                    repo.git.branch("-D", branch)
                    logger.debug(f"Deleted redundant local branch {branch}")
                except git.exc.GitCommandError as e:
                    # Expected when a concurrently created worktree holds the branch
                    logger.debug(f"Skipping branch {branch}: {command_output(e)}")
                    skipped.append(branch)
        finally:
            repo.close()
        return skipped

    @staticmethod
    def _is_pushed(repo: git.Repo, branch: str) -> bool:
        """True if origin/<branch> exists and contains the local tip."""
        remote_ref = f"refs/remotes/{REMOTE_NAME}/{branch}"
        try:
            repo.git.rev_parse("--verify", "--quiet", remote_ref)
            repo.git.merge_base("--is-ancestor", f"refs/heads/{branch}", remote_ref)
        except git.exc.GitCommandError:
            return False
        return True


def clone_bare(url: str, dest: str, depth: Optional[int] = None) -> str:
    """Bare-clone ``url`` into ``<dest>/.git``.

    The caller must run ``RemoteService.configure_bare_remote`` afterwards.

    Returns:
        Path to the new metadata store

    Raises:
        GitOperationError: If the clone fails
    """
    os.makedirs(dest, exist_ok=True)
    metadata_path = os.path.join(dest, METADATA_DIR)

    kwargs = {"bare": True}
    if depth and depth > 0:
        kwargs["depth"] = depth

    logger.debug(f"Cloning {url} into {metadata_path}")
    try:
        repo = git.Repo.clone_from(url, metadata_path, **kwargs)
    except git.exc.GitCommandError as e:
        output = command_output(e)
        logger.error(f"git clone failed for {url}: {output}")
        raise GitOperationError("clone", url, f"git clone failed (exit {e.status})", output) from e
    repo.close()

    logger.info(f"Cloned {url} into {metadata_path}")
    return metadata_path
