"""Idempotent worktree creation for git-worktree-keeper."""

import os
from dataclasses import replace
from threading import Lock
from typing import Dict, Optional

import git

from git_worktree_keeper.constants import ALREADY_EXISTS_MARKER, REMOTE_NAME, REMOTE_PREFIX
from git_worktree_keeper.exceptions import (
    GitOperationError,
    WorktreeConflictError,
    WorktreeCreationFailedError,
)
from git_worktree_keeper.models.worktree import (
    WorktreeRequest,
    TrackingRequest,
    DetachedRequest,
    FeatureRequest,
)
from git_worktree_keeper.services.git.repo import open_repo, command_output
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.utils.logging import get_logger
from git_worktree_keeper.utils.paths import normalize_path

logger = get_logger(__name__)

# One lock per normalized worktree path, shared by every orchestrator in the process
_path_locks: Dict[str, Lock] = {}
_path_locks_guard = Lock()


def _lock_for(abs_path: str) -> Lock:
    with _path_locks_guard:
        return _path_locks.setdefault(normalize_path(abs_path), Lock())


class WorktreeOrchestrator:
    """Creates worktrees against one metadata store.

    Every creation is idempotent: asking for a worktree that is already
    registered at the same (normalized) path succeeds without touching git,
    and losing a race to a concurrent creator of the same path also succeeds.
    """

    def __init__(self, metadata_path: str, worktree_service: Optional[WorktreeService] = None):
        """Initialize the orchestrator.

        Args:
            metadata_path: Path to the bare metadata store
            worktree_service: Registrar to consult (dependency injection)
        """
        self.metadata_path = metadata_path
        self.worktree_service = worktree_service or WorktreeService(metadata_path)

    def create(self, worktree_path: str, request: WorktreeRequest) -> bool:
        """Create the worktree described by ``request`` at ``worktree_path``.

        Args:
            worktree_path: Target directory, absolute or relative to the cwd
            request: TrackingRequest, DetachedRequest or FeatureRequest

        Returns:
            True if a worktree was created, False if it was already registered

        Raises:
            WorktreeConflictError: If the path exists but is not a registered worktree
            WorktreeCreationFailedError: If git failed for any other reason
        """
        abs_path = os.path.abspath(worktree_path)

        try:
            os.makedirs(os.path.dirname(abs_path), exist_ok=True)
        except OSError as e:
            raise WorktreeCreationFailedError(abs_path, f"Failed to create parent directory: {e}") from e

        with _lock_for(abs_path):
            created = self._create_unlocked(abs_path, request)
        if created:
            logger.info(f"Created worktree for {request.ref} at {abs_path}")
        return created

    def _create_unlocked(self, abs_path: str, request: WorktreeRequest) -> bool:
        if self._is_registered(abs_path):
            logger.debug(f"Worktree already registered at {abs_path}, nothing to do")
            return False

        repo = open_repo(self.metadata_path)
        try:
            args = self._resolve_start_point(repo, request).add_args(abs_path)
            logger.debug(f"Running git worktree add {' '.join(args)}")
            repo.git.worktree("add", *args)
        except git.exc.GitCommandError as e:
            output = command_output(e)
            if ALREADY_EXISTS_MARKER in output:
                if self._registered_after_race(abs_path):
                    logger.debug(f"Worktree at {abs_path} was created concurrently")
                    return False
                if os.path.exists(abs_path):
                    logger.error(f"Path {abs_path} exists but is not a registered worktree")
                    raise WorktreeConflictError(abs_path, output) from e

            logger.error(f"Failed to create worktree at {abs_path}: {output}")
            raise WorktreeCreationFailedError(
                abs_path, f"git worktree add failed (exit {e.status})", output
            ) from e
        finally:
            repo.close()

        return True

    def create_tracking(self, worktree_path: str, branch: str) -> bool:
        """Check out an existing ``branch`` at ``worktree_path``."""
        return self.create(worktree_path, TrackingRequest(branch))

    def create_detached(self, worktree_path: str, start_point: str) -> bool:
        """Check out ``start_point`` at ``worktree_path`` with no branch."""
        return self.create(worktree_path, DetachedRequest(start_point))

    def create_feature(self, worktree_path: str, branch: str, base: str) -> bool:
        """Create ``branch`` from ``base`` and check it out at ``worktree_path``."""
        return self.create(worktree_path, FeatureRequest(branch, base))

    @staticmethod
    def _resolve_start_point(repo: git.Repo, request: WorktreeRequest) -> WorktreeRequest:
        """Point detached and feature requests at origin/<ref> when no local branch exists.

        After remote tracking repair most branches only exist as remote refs;
        tracking requests rely on git's own remote guess instead.
        """
        if isinstance(request, DetachedRequest):
            ref = request.start_point
        elif isinstance(request, FeatureRequest):
            ref = request.base
        else:
            return request

        if _ref_exists(repo, f"refs/heads/{ref}") or not _ref_exists(repo, f"refs/remotes/{REMOTE_NAME}/{ref}"):
            return request

        remote_ref = f"{REMOTE_PREFIX}{ref}"
        logger.debug(f"No local branch {ref}, starting from {remote_ref}")
        if isinstance(request, DetachedRequest):
            return replace(request, start_point=remote_ref)
        return replace(request, base=remote_ref)

    def _is_registered(self, abs_path: str) -> bool:
        try:
            return self.worktree_service.is_registered(abs_path)
        except GitOperationError as e:
            raise WorktreeCreationFailedError(
                abs_path, "Failed to inspect existing worktrees", e.output
            ) from e

    def _registered_after_race(self, abs_path: str) -> bool:
        # A failed re-check falls through to the original git error
        try:
            return self.worktree_service.is_registered(abs_path)
        except GitOperationError as e:
            logger.debug(f"Could not re-check worktree registration for {abs_path}: {e}")
            return False


def _ref_exists(repo: git.Repo, ref: str) -> bool:
    try:
        repo.git.rev_parse("--verify", "--quiet", ref)
    except git.exc.GitCommandError:
        return False
    return True
