"""Git operations service"""
from typing import List, Optional

from git_worktree_keeper.models.worktree import (
    WorktreeRequest,
    TrackingRequest,
    DetachedRequest,
    FeatureRequest,
)
from git_worktree_keeper.services.git import (
    BareConverter,
    RemoteService,
    WorktreeService,
    WorktreeOrchestrator,
    BranchQueries,
    clone_bare,
)


class GitService:
    """Single entry point for every git operation the keeper performs.

    Each call opens the repository it is given; no state is shared between
    calls, so concurrent worktree creation against one store is safe as far
    as git's own locking allows.
    """

    def convert_to_bare(self, path: str) -> str:
        """Convert the checkout at ``path`` into ``<path>/.git`` (bare)."""
        return BareConverter(path).convert()

    def configure_bare_remote(self, metadata_path: str, default_branch: str) -> List[str]:
        """Repair remote tracking after a bare clone; returns the local branches kept."""
        return RemoteService(metadata_path).configure_bare_remote(default_branch)

    def clone_bare(self, url: str, dest: str, depth: Optional[int] = None) -> str:
        """Bare-clone ``url`` into ``<dest>/.git``."""
        return clone_bare(url, dest, depth=depth)

    def list_branches(self, path: str) -> List[str]:
        """Sorted branch universe (local + remote-tracking, prefix stripped)."""
        return BranchQueries(path).list_branches()

    def is_worktree_registered(self, metadata_path: str, candidate_path: str) -> bool:
        return WorktreeService(metadata_path).is_registered(candidate_path)

    def list_worktrees(self, repo_path: str) -> List[str]:
        return WorktreeService(repo_path).list_worktrees()

    def has_worktrees(self, repo_path: str) -> bool:
        return WorktreeService(repo_path).has_worktrees()

    def create_worktree_from_request(
        self, metadata_path: str, worktree_path: str, request: WorktreeRequest
    ) -> bool:
        """Create a worktree of any mode; True if created, False if it already existed."""
        return WorktreeOrchestrator(metadata_path).create(worktree_path, request)

    def create_worktree(self, metadata_path: str, worktree_path: str, branch: str) -> bool:
        return self.create_worktree_from_request(metadata_path, worktree_path, TrackingRequest(branch))

    def create_detached_worktree(self, metadata_path: str, worktree_path: str, start_point: str) -> bool:
        return self.create_worktree_from_request(metadata_path, worktree_path, DetachedRequest(start_point))

    def create_feature_worktree(
        self, metadata_path: str, worktree_path: str, feature_branch: str, base_branch: str
    ) -> bool:
        return self.create_worktree_from_request(
            metadata_path, worktree_path, FeatureRequest(feature_branch, base_branch)
        )
