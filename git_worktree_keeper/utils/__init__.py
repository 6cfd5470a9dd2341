"""Utility functions for git-worktree-keeper.

This package provides utility modules:
- logging: Logging configuration and logger creation
- paths: Path normalization for worktree comparisons
"""

from .logging import setup_logging, get_logger, ColoredFormatter
from .paths import normalize_path, worktree_path_for, repo_path_for

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "ColoredFormatter",
    # Paths
    "normalize_path",
    "worktree_path_for",
    "repo_path_for",
]
