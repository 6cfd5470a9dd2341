"""Helpers for opening repositories and reading git diagnostics."""

import re

import git

from git_worktree_keeper.exceptions import NotFoundError, NotAGitRepoError

_STREAM_WRAPPER = re.compile(r"^(?:stderr|stdout): '(.*)'$", re.DOTALL)


def open_repo(path: str) -> git.Repo:
    """Open a fresh git.Repo for ``path``.

    A new instance per call keeps callers thread-safe; GitPython repos are
    lightweight and only read the existing metadata.

    Raises:
        NotFoundError: If ``path`` does not exist
        NotAGitRepoError: If ``path`` holds no repository metadata
    """
    try:
        return git.Repo(path)
    except git.exc.NoSuchPathError as e:
        raise NotFoundError(str(path)) from e
    except git.exc.InvalidGitRepositoryError as e:
        raise NotAGitRepoError(str(path)) from e


def command_output(error: git.exc.GitCommandError) -> str:
    """Return what git printed for a failed command, stderr first.

    GitPython wraps each stream as ``stderr: '...'``; the wrapper is removed so
    the text matches what git printed.
    """
    parts = []
    for stream in (error.stderr, error.stdout):
        text = (stream or "").strip()
        if not text:
            continue
        match = _STREAM_WRAPPER.match(text)
        parts.append(match.group(1).strip() if match else text)
    if not parts:
        return f"git exited with status {error.status}"
    return "\n".join(parts)
