"""GitHub API integration service"""
import os
import re
from typing import Optional, TYPE_CHECKING
from urllib.parse import urlparse

from github import Github, Auth, GithubException

from git_worktree_keeper.exceptions import GitHubAPIError
from git_worktree_keeper.services.token_provider import TokenProvider
from git_worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from github.Repository import Repository

logger = get_logger(__name__)

_OWNER_REPO = re.compile(r"^[\w.-]+/[\w.-]+$")


def _is_full_name(value: str) -> bool:
    """``owner/repo`` shape, excluding relative paths such as ``../origin``."""
    return bool(_OWNER_REPO.match(value)) and not any(part in (".", "..") for part in value.split("/"))


class GitHubService:
    """Looks up hosted repository metadata through the GitHub API."""

    def __init__(self, token_provider: TokenProvider, github: Optional[Github] = None):
        """Initialize the service.

        Args:
            token_provider: Source of the API token (dependency injection)
            github: Pre-built client, mainly for tests
        """
        self.token_provider = token_provider
        self._github = github

    @staticmethod
    def parse_repo_full_name(remote_url: str) -> Optional[str]:
        """Extract ``owner/repo`` from a GitHub SSH or HTTPS URL, or an ``owner/repo`` string."""
        remote_url = (remote_url or "").strip()
        if not remote_url:
            return None

        if _is_full_name(remote_url) and "github.com" not in remote_url:
            path = remote_url
        elif "github.com" not in remote_url:
            return None
        elif remote_url.startswith("git@"):
            # Handle SSH URL format (git@github.com:org/repo.git)
            path = remote_url.split("github.com:", 1)[-1]
        else:
            # Handle HTTPS URL format (https://github.com/org/repo.git)
            path = urlparse(remote_url).path.strip("/")

        if path.endswith(".git"):
            path = path[:-4]

        return path if _is_full_name(path) else None

    @staticmethod
    def clone_url(repo_input: str) -> str:
        """Turn ``owner/repo``, a URL or a local path into something git can clone."""
        repo_input = repo_input.strip()
        if repo_input.startswith("file://") or os.path.isabs(repo_input):
            return repo_input
        if repo_input.startswith(("git@", "https://", "http://")):
            return repo_input if repo_input.endswith(".git") else repo_input + ".git"

        if _is_full_name(repo_input):
            parts = repo_input.split("/")
            return f"git@github.com:{parts[0]}/{parts[1]}.git"

        raise ValueError(f"Invalid repo format: {repo_input} (expected owner/repo or full URL)")

    def _client(self) -> Optional[Github]:
        if self._github is None:
            token = self.token_provider.get_token()
            if not token:
                logger.debug("[GitHub] No GitHub token found. Skipping API lookup")
                return None
            self._github = Github(auth=Auth.Token(token))
        return self._github

    def get_default_branch(self, full_name: str) -> Optional[str]:
        """Default branch of ``full_name`` according to GitHub.

        Returns:
            Branch name, or None when no token is configured

        Raises:
            GitHubAPIError: If the API call fails
        """
        client = self._client()
        if client is None:
            return None
        try:
            gh_repo: "Repository" = client.get_repo(full_name)
            logger.debug(f"[GitHub] {full_name} default branch: {gh_repo.default_branch}")
            return gh_repo.default_branch
        except GithubException as e:
            raise GitHubAPIError("get_repo", f"{full_name}: {e}") from e
