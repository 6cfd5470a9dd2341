"""Worktree data models."""

from dataclasses import dataclass
from typing import List, Union


@dataclass
class WorktreeInfo:
    """Information about a git worktree."""

    path: str
    branch_name: str  # Empty when detached or bare
    commit_sha: str
    is_main: bool  # First entry reported by git (the main worktree or bare store)
    is_bare: bool = False
    is_detached: bool = False

    def __str__(self) -> str:
        """String representation of worktree."""
        if self.is_bare:
            ref = "(bare)"
        elif self.is_detached:
            ref = f"(detached {self.commit_sha[:8]})"
        else:
            ref = self.branch_name
        main_marker = " (main)" if self.is_main else ""
        return f"{ref} @ {self.path}{main_marker}"


@dataclass(frozen=True)
class TrackingRequest:
    """Check out an existing branch; the worktree advances with it."""

    branch: str

    @property
    def ref(self) -> str:
        return self.branch

    def add_args(self, worktree_path: str) -> List[str]:
        return [worktree_path, self.branch]


@dataclass(frozen=True)
class DetachedRequest:
    """Check out a fixed starting point with no branch."""

    start_point: str

    @property
    def ref(self) -> str:
        return self.start_point

    def add_args(self, worktree_path: str) -> List[str]:
        return ["--detach", worktree_path, self.start_point]


@dataclass(frozen=True)
class FeatureRequest:
    """Create ``branch`` from ``base`` and check it out."""

    branch: str
    base: str

    @property
    def ref(self) -> str:
        return self.branch

    def add_args(self, worktree_path: str) -> List[str]:
        return ["-b", self.branch, worktree_path, self.base]


WorktreeRequest = Union[TrackingRequest, DetachedRequest, FeatureRequest]
