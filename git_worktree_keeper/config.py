"""Configuration handling for git-worktree-keeper"""

import os
from dataclasses import dataclass, field
from typing import Optional, List

from git_worktree_keeper.constants import CLONE_DIR_ENV


@dataclass
class Config:
    """Configuration for git-worktree-keeper with validation."""

    # Layout
    clone_dir: Optional[str] = field(default_factory=lambda: os.environ.get(CLONE_DIR_ENV))
    default_branch: Optional[str] = None

    # Planned worktrees
    create_default_worktree: bool = True
    create_review_worktree: bool = True
    feature_branch: Optional[str] = None
    feature_base: Optional[str] = None
    worktrees: List[str] = field(default_factory=list)  # Explicit branch selection
    all_worktrees: bool = False
    no_worktrees: bool = False

    # Remote tracking repair after conversion
    fetch: bool = True
    depth: Optional[int] = None  # Shallow clone depth for clone

    # Execution modes
    quiet: bool = False
    verbose: bool = False
    debug: bool = False

    # GitHub integration
    github_token: Optional[str] = None
    cache_ttl_hours: int = 24

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_clone_dir()
        self._validate_default_branch()
        self._validate_feature()
        self._validate_worktree_modes()
        self._validate_cache_ttl()
        self._validate_depth()

    def _validate_clone_dir(self):
        """Expand ~ in clone_dir."""
        if self.clone_dir:
            self.clone_dir = os.path.expanduser(self.clone_dir.strip())
        else:
            self.clone_dir = None

    def _validate_default_branch(self):
        """Normalize an empty default_branch to None."""
        if self.default_branch is not None:
            self.default_branch = self.default_branch.strip() or None

    def _validate_feature(self):
        """Validate feature_base is only set together with feature_branch."""
        self.feature_branch = (self.feature_branch or "").strip() or None
        self.feature_base = (self.feature_base or "").strip() or None
        if self.feature_base and not self.feature_branch:
            raise ValueError("feature_base requires feature_branch")

    def _validate_worktree_modes(self):
        """Validate the worktree selection modes don't conflict."""
        if not isinstance(self.worktrees, list):
            raise ValueError("worktrees must be a list")
        selected = sum([bool(self.worktrees), self.all_worktrees, self.no_worktrees])
        if selected > 1:
            raise ValueError("worktrees, all_worktrees and no_worktrees are mutually exclusive")

    def _validate_cache_ttl(self):
        """Validate cache_ttl_hours is positive."""
        if self.cache_ttl_hours <= 0:
            raise ValueError(f"cache_ttl_hours must be positive, got {self.cache_ttl_hours}")

    def _validate_depth(self):
        """Validate depth is positive when set."""
        if self.depth is not None and self.depth <= 0:
            raise ValueError(f"depth must be positive, got {self.depth}")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "clone_dir": self.clone_dir,
            "default_branch": self.default_branch,
            "create_default_worktree": self.create_default_worktree,
            "create_review_worktree": self.create_review_worktree,
            "feature_branch": self.feature_branch,
            "feature_base": self.feature_base,
            "worktrees": self.worktrees,
            "all_worktrees": self.all_worktrees,
            "no_worktrees": self.no_worktrees,
            "fetch": self.fetch,
            "depth": self.depth,
            "quiet": self.quiet,
            "verbose": self.verbose,
            "debug": self.debug,
            "github_token": self.github_token,
            "cache_ttl_hours": self.cache_ttl_hours,
        }

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary."""
        known_fields = set(cls.__dataclass_fields__)
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
