"""Git-related services for git-worktree-keeper."""

from .converter import BareConverter
from .remote import RemoteService, clone_bare
from .worktrees import WorktreeService
from .orchestrator import WorktreeOrchestrator
from .branch_queries import BranchQueries

__all__ = [
    "BareConverter",
    "RemoteService",
    "clone_bare",
    "WorktreeService",
    "WorktreeOrchestrator",
    "BranchQueries",
]
