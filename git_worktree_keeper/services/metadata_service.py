"""Repository metadata lookup used to pick a default branch."""
from typing import Optional

from git_worktree_keeper.exceptions import GitHubAPIError
from git_worktree_keeper.models.repository import RepoMetadata
from git_worktree_keeper.services.cache_service import CacheService
from git_worktree_keeper.services.github_service import GitHubService
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


class MetadataService:
    """Cache first, GitHub API second. Never raises; None means "unknown"."""

    def __init__(self, cache_service: CacheService, github_service: Optional[GitHubService] = None):
        self.cache_service = cache_service
        self.github_service = github_service

    def default_branch_for(self, full_name: Optional[str]) -> Optional[str]:
        """Default branch for ``owner/repo``, or None if it can't be determined."""
        if not full_name:
            return None

        cached = self.cache_service.get(full_name)
        if cached:
            logger.debug(f"Default branch for {full_name} from cache: {cached.default_branch}")
            return cached.default_branch

        if self.github_service is None:
            return None

        try:
            default_branch = self.github_service.get_default_branch(full_name)
        except GitHubAPIError as e:
            logger.warning(f"Could not look up {full_name}: {e}")
            return None

        if default_branch:
            self.cache_service.set(RepoMetadata(full_name=full_name, default_branch=default_branch))
        return default_branch
