"""Data models for git-worktree-keeper."""

from .worktree import (
    WorktreeInfo,
    WorktreeRequest,
    TrackingRequest,
    DetachedRequest,
    FeatureRequest,
)
from .repository import RepoMetadata

__all__ = [
    "WorktreeInfo",
    "WorktreeRequest",
    "TrackingRequest",
    "DetachedRequest",
    "FeatureRequest",
    "RepoMetadata",
]
