"""Path helpers shared by the worktree services."""

import os
from typing import Optional


def normalize_path(path: str) -> str:
    """Return the absolute, symlink-resolved form of ``path``.

    Two spellings of the same location (relative vs absolute, or through a
    symlinked parent directory) normalize to the same string. Components that
    don't exist yet are kept as written.
    """
    return os.path.realpath(os.path.abspath(os.path.expanduser(path)))


def worktree_path_for(repo_root: str, name: str) -> str:
    """Path of the worktree called ``name`` under ``repo_root``.

    Names containing ``/`` (e.g. ``feature/x``) become nested directories.
    """
    return os.path.join(repo_root.strip(), *name.strip().split("/"))


def repo_path_for(clone_dir: Optional[str], full_name: str) -> Optional[str]:
    """Local root for ``owner/repo`` under ``clone_dir``, or None if unresolvable."""
    if not clone_dir:
        return None
    parts = full_name.strip().split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return os.path.join(os.path.expanduser(clone_dir), parts[0], parts[1])
