"""
git-worktree-keeper - Convert checkouts into bare repositories with worktrees
"""

from .__version__ import __version__
from .core import WorktreeKeeper
from .cli.main import main

__all__ = ["WorktreeKeeper", "main", "__version__"]
