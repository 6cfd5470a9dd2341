"""Custom exceptions for git-worktree-keeper"""

from typing import Optional


class WorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""
    pass


class GitOperationError(WorktreeKeeperError):
    """Exception raised for errors in Git operations.

    The git diagnostic output, when available, is appended verbatim so the
    operator can see the real cause.
    """

    def __init__(
        self,
        operation: str,
        target: Optional[str] = None,
        message: Optional[str] = None,
        output: Optional[str] = None,
    ):
        self.operation = operation
        self.target = target
        self.message = message
        self.output = output.strip() if output else None

        error_msg = f"Git operation '{operation}' failed"
        if target:
            error_msg += f" for '{target}'"
        if message:
            error_msg += f": {message}"
        if self.output:
            error_msg += f"\n{self.output}"

        super().__init__(error_msg)


class NotFoundError(GitOperationError):
    """Exception raised when a path or ref does not exist."""

    def __init__(self, target: str, message: str = "Path does not exist"):
        super().__init__("locate", target, message)


class NotAGitRepoError(GitOperationError):
    """Exception raised when the metadata directory is missing."""

    def __init__(self, target: str):
        super().__init__("locate", target, "Not a git repository")


class ConversionFailedError(GitOperationError):
    """Exception raised when a bare conversion step fails.

    The original repository is untouched unless ``step`` is ``clear_root``
    or ``swap``.
    """

    def __init__(self, step: str, target: str, message: Optional[str] = None, output: Optional[str] = None):
        self.step = step
        super().__init__(f"convert:{step}", target, message, output)


class RemoteRepairFailedError(GitOperationError):
    """Exception raised when remote tracking setup fails. Safe to retry."""

    def __init__(self, step: str, target: str, message: Optional[str] = None, output: Optional[str] = None):
        self.step = step
        super().__init__(f"repair:{step}", target, message, output)


class WorktreeConflictError(GitOperationError):
    """Exception raised when the target path exists but is not a registered worktree."""

    def __init__(self, target: str, output: Optional[str] = None):
        super().__init__(
            "worktree_add",
            target,
            "Path already exists and is not a registered worktree",
            output,
        )


class WorktreeCreationFailedError(GitOperationError):
    """Exception raised when creating a worktree fails for any other reason."""

    def __init__(self, target: str, message: Optional[str] = None, output: Optional[str] = None):
        super().__init__("worktree_add", target, message, output)


class BranchNotFoundError(GitOperationError):
    """Exception raised when a branch is not found."""

    def __init__(self, branch: str):
        super().__init__("find_branch", branch, "Branch not found")


class InvalidBranchNameError(WorktreeKeeperError):
    """Exception raised when a requested worktree branch name is not allowed."""
    pass


class GitHubAPIError(WorktreeKeeperError):
    """Exception raised for errors in GitHub API operations."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"GitHub API operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)
