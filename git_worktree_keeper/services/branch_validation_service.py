"""Branch validation service for git-worktree-keeper."""

from typing import List, Optional

from git_worktree_keeper.constants import (
    FALLBACK_DEFAULT_BRANCH,
    PREFERRED_DEFAULT_BRANCHES,
    REMOTE_PREFIX,
    REVIEW_WORKTREE_NAME,
)
from git_worktree_keeper.exceptions import BranchNotFoundError, InvalidBranchNameError
from git_worktree_keeper.models.worktree import FeatureRequest


class BranchValidationService:
    """Name policy for the worktrees a caller asks for."""

    @staticmethod
    def resolve_feature_request(
        default_branch: str,
        feature_branch: Optional[str],
        base_branch: Optional[str] = None,
    ) -> Optional[FeatureRequest]:
        """
        Validate a requested feature worktree.

        Args:
            default_branch: The repository's default branch
            feature_branch: Requested new branch name (may be empty)
            base_branch: Branch to start from; defaults to ``default_branch``

        Returns:
            FeatureRequest, or None when no feature worktree was requested

        Raises:
            InvalidBranchNameError: If the name is reserved or is the default branch,
                or a base was given without a name
        """
        feature_branch = (feature_branch or "").strip()
        base_branch = (base_branch or "").strip()

        if not feature_branch:
            if base_branch:
                raise InvalidBranchNameError("A feature base requires a feature branch name")
            return None

        if not base_branch:
            base_branch = default_branch

        if feature_branch == REVIEW_WORKTREE_NAME:
            raise InvalidBranchNameError(f"Feature branch name {feature_branch!r} is reserved")

        if feature_branch == default_branch:
            raise InvalidBranchNameError(
                f"Feature branch name {feature_branch!r} conflicts with the default branch worktree"
            )

        return FeatureRequest(feature_branch, base_branch)

    @staticmethod
    def validate_selection(available: List[str], selected: List[str]) -> List[str]:
        """
        Check that every selected branch exists.

        Returns:
            Selected names with any remote prefix stripped

        Raises:
            BranchNotFoundError: For the first unknown branch
        """
        known = set(available)
        cleaned = []
        for branch in selected:
            name = branch.strip()
            if name.startswith(REMOTE_PREFIX):
                name = name[len(REMOTE_PREFIX):]
            if name not in known:
                raise BranchNotFoundError(name)
            cleaned.append(name)
        return cleaned

    @staticmethod
    def resolve_default_branch(explicit: Optional[str], branches: List[str]) -> str:
        """
        Pick the default branch from what the repository actually has.

        Order: ``explicit`` if it exists, then main, then master, then the
        first branch, then ``explicit`` anyway, then "main".
        """
        explicit = (explicit or "").strip()
        names = [b.strip() for b in branches if b.strip()]

        if explicit and explicit in names:
            return explicit

        for preferred in PREFERRED_DEFAULT_BRANCHES:
            if preferred in names:
                return preferred

        if names:
            return names[0]

        return explicit or FALLBACK_DEFAULT_BRANCH
