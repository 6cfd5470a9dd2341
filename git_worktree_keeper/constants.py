"""Shared constants for git-worktree-keeper."""

from typing import List


# Repository layout
METADATA_DIR = ".git"
REVIEW_WORKTREE_NAME = "review"

# Remote tracking
REMOTE_NAME = "origin"
REMOTE_PREFIX = f"{REMOTE_NAME}/"
FETCH_REFSPEC = f"+refs/heads/*:refs/remotes/{REMOTE_NAME}/*"
SYMBOLIC_REF_MARKER = "->"

# Default branch resolution
FALLBACK_DEFAULT_BRANCH = "main"
PREFERRED_DEFAULT_BRANCHES: List[str] = ["main", "master"]

# git worktree add prints this when the target path is taken
ALREADY_EXISTS_MARKER = "already exists"

# Console status symbols
SYMBOL_CREATED = "✓"
SYMBOL_SKIPPED = "✗"

CLONE_DIR_ENV = "GIT_WORKTREE_KEEPER_CLONE_DIR"
