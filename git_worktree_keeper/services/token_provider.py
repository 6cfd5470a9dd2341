"""GitHub token lookup with an in-process memo."""

import os
import subprocess
from threading import Lock
from typing import Callable, List, Optional

from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

Runner = Callable[[List[str]], "subprocess.CompletedProcess"]


def _run(cmd: List[str]) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, capture_output=True, text=True, timeout=10)


class TokenProvider:
    """Resolves a GitHub token: gh CLI, then configured token, then GITHUB_TOKEN.

    The gh CLI is asked at most once per provider; its answer (including "no
    token") is memoized. Pass a different ``runner`` in tests.
    """

    def __init__(self, config_token: Optional[str] = None, runner: Optional[Runner] = None):
        self.config_token = config_token
        self._runner = runner or _run
        self._gh_token: Optional[str] = None
        self._gh_checked = False
        self._lock = Lock()

    def _gh_cli_token(self) -> Optional[str]:
        with self._lock:
            if self._gh_checked:
                return self._gh_token

            token = None
            try:
                result = self._runner(["gh", "auth", "token"])
                if result.returncode == 0 and result.stdout.strip():
                    token = result.stdout.strip()
                else:
                    logger.debug("gh auth token returned no token")
            except (OSError, subprocess.SubprocessError) as e:
                logger.debug(f"gh CLI unavailable: {e}")

            self._gh_token = token
            self._gh_checked = True
            return token

    def get_token(self) -> Optional[str]:
        """Return the first available token, or None."""
        token = self._gh_cli_token()
        if token:
            return token
        if self.config_token:
            return self.config_token
        return os.environ.get("GITHUB_TOKEN") or None

    def clear(self) -> None:
        """Forget the memoized gh CLI answer."""
        with self._lock:
            self._gh_token = None
            self._gh_checked = False
