"""Core functionality for git-worktree-keeper"""

import os
from typing import List, Optional, Union

from rich.console import Console

from git_worktree_keeper.config import Config
from git_worktree_keeper.constants import (
    METADATA_DIR,
    REMOTE_NAME,
    REVIEW_WORKTREE_NAME,
    SYMBOL_CREATED,
    SYMBOL_SKIPPED,
)
from git_worktree_keeper.exceptions import (
    InvalidBranchNameError,
    NotAGitRepoError,
    RemoteRepairFailedError,
    WorktreeKeeperError,
)
from git_worktree_keeper.models.worktree import (
    WorktreeRequest,
    TrackingRequest,
    DetachedRequest,
    FeatureRequest,
)
from git_worktree_keeper.services.branch_validation_service import BranchValidationService
from git_worktree_keeper.services.cache_service import CacheService
from git_worktree_keeper.services.git.repo import open_repo
from git_worktree_keeper.services.git_service import GitService
from git_worktree_keeper.services.github_service import GitHubService
from git_worktree_keeper.services.metadata_service import MetadataService
from git_worktree_keeper.services.token_provider import TokenProvider
from git_worktree_keeper.utils.logging import get_logger
from git_worktree_keeper.utils.paths import worktree_path_for, repo_path_for

console = Console()
logger = get_logger(__name__)


class WorktreeKeeper:
    """Converts, clones and extends bare-repository-with-worktrees layouts."""

    def __init__(
        self,
        config: Union[Config, dict, None] = None,
        git_service: Optional[GitService] = None,
        metadata_service: Optional[MetadataService] = None,
    ):
        """Initialize WorktreeKeeper.

        Args:
            config: Configuration dict or Config object
            git_service: Git facade (dependency injection)
            metadata_service: Repository metadata lookup (dependency injection)
        """
        if config is None:
            config = Config()
        elif isinstance(config, dict):
            config = Config.from_dict(config)
        self.config = config
        self.quiet = config.quiet

        self.git_service = git_service or GitService()
        if metadata_service is None:
            token_provider = TokenProvider(config.github_token)
            metadata_service = MetadataService(
                CacheService(ttl_hours=config.cache_ttl_hours),
                GitHubService(token_provider),
            )
        self.metadata_service = metadata_service

    def _console_print(self, *args, **kwargs):
        """Print to console unless running quietly."""
        if not self.quiet:
            console.print(*args, **kwargs)

    # ------------------------------------------------------------------
    # Default branch resolution
    # ------------------------------------------------------------------

    def _origin_full_name(self, path: str) -> Optional[str]:
        try:
            repo = open_repo(path)
        except WorktreeKeeperError:
            return None
        try:
            for remote in repo.remotes:
                if remote.name == REMOTE_NAME:
                    return GitHubService.parse_repo_full_name(remote.url)
        except Exception as e:
            logger.debug(f"Could not read origin url for {path}: {e}")
        finally:
            repo.close()
        return None

    def resolve_default_branch(self, path: str, branches: List[str], full_name: Optional[str] = None) -> str:
        """Explicit config, then hosted metadata, then what the branch list suggests."""
        explicit = self.config.default_branch
        if not explicit:
            explicit = self.metadata_service.default_branch_for(full_name or self._origin_full_name(path))
        default_branch = BranchValidationService.resolve_default_branch(explicit, branches)
        logger.debug(f"Using default branch {default_branch}")
        return default_branch

    # ------------------------------------------------------------------
    # Worktree creation
    # ------------------------------------------------------------------

    def _create_worktree(self, metadata_path: str, worktree_path: str, request: WorktreeRequest) -> bool:
        if isinstance(request, DetachedRequest):
            description = f"review worktree from {request.start_point!r}"
        elif isinstance(request, FeatureRequest):
            description = f"feature worktree {request.branch!r} from {request.base!r}"
        else:
            description = f"worktree for {request.branch!r}"

        self._console_print(f"Creating {description} at {worktree_path}...")
        created = self.git_service.create_worktree_from_request(metadata_path, worktree_path, request)
        if created:
            self._console_print(f"[green]{SYMBOL_CREATED}[/green] Worktree created: {worktree_path}")
        else:
            self._console_print(f"[dim]Worktree already exists: {worktree_path}[/dim]")
        return created

    def create_planned_worktrees(
        self,
        metadata_path: str,
        repo_root: str,
        default_branch: str,
        feature: Optional[FeatureRequest] = None,
    ) -> List[str]:
        """Create the default, review and (optional) feature worktrees.

        Failures propagate; the worktrees created so far are kept.

        Returns:
            Paths of the planned worktrees
        """
        paths = []
        if self.config.create_default_worktree:
            path = worktree_path_for(repo_root, default_branch)
            self._create_worktree(metadata_path, path, TrackingRequest(default_branch))
            paths.append(path)

        if self.config.create_review_worktree:
            path = worktree_path_for(repo_root, REVIEW_WORKTREE_NAME)
            self._create_worktree(metadata_path, path, DetachedRequest(default_branch))
            paths.append(path)

        if feature is not None:
            path = worktree_path_for(repo_root, feature.branch)
            self._create_worktree(metadata_path, path, feature)
            paths.append(path)

        return paths

    def create_branch_worktrees(self, metadata_path: str, repo_root: str, branches: List[str]) -> List[str]:
        """Create a tracking worktree per branch, skipping the ones that fail.

        Returns:
            Paths of the worktrees that exist afterwards
        """
        self._console_print(f"Creating worktrees for {len(branches)} branches...")
        paths = []
        for branch in branches:
            path = worktree_path_for(repo_root, branch)
            try:
                self._create_worktree(metadata_path, path, TrackingRequest(branch))
            except WorktreeKeeperError as e:
                logger.warning(f"Failed to create worktree for {branch}: {e}")
                self._console_print(f"[yellow]{SYMBOL_SKIPPED} Failed to create worktree for {branch}: {e}[/yellow]")
                continue
            paths.append(path)
        return paths

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def convert(self, path: str) -> str:
        """Convert the checkout at ``path`` and create worktrees per config.

        Everything that can be validated is validated before the
        conversion, since the conversion itself cannot be undone.

        Returns:
            Path to the metadata store
        """
        repo_root = os.path.abspath(path)

        branches = self.git_service.list_branches(repo_root)
        default_branch = self.resolve_default_branch(repo_root, branches)
        feature = BranchValidationService.resolve_feature_request(
            default_branch, self.config.feature_branch, self.config.feature_base
        )
        selected = []
        if self.config.worktrees:
            selected = BranchValidationService.validate_selection(branches, self.config.worktrees)

        self._console_print(f"Converting {repo_root} to bare repository...")
        metadata_path = self.git_service.convert_to_bare(repo_root)
        self._console_print(f"[green]{SYMBOL_CREATED}[/green] Successfully converted to bare repository")

        if self.config.no_worktrees:
            self._console_print("Worktree creation skipped (--no-worktrees)")
            return metadata_path

        if self.config.fetch:
            try:
                self.git_service.configure_bare_remote(metadata_path, default_branch)
            except RemoteRepairFailedError as e:
                # Local branches are still intact when the repair fails
                logger.warning(f"Remote tracking repair failed: {e}")
                self._console_print(
                    f"[yellow]Warning: remote tracking repair failed; "
                    f"re-run 'git-worktree-keeper repair {metadata_path}'[/yellow]\n{e}"
                )

        if self.config.all_worktrees:
            self.create_branch_worktrees(metadata_path, repo_root, self.git_service.list_branches(metadata_path))
        elif selected:
            self.create_branch_worktrees(metadata_path, repo_root, selected)
        else:
            self.create_planned_worktrees(metadata_path, repo_root, default_branch, feature)

        self._console_print(f"\n[green]{SYMBOL_CREATED}[/green] Bare repository conversion complete!")
        return metadata_path

    def clone(self, repo_input: str, dest: Optional[str] = None) -> str:
        """Bare-clone ``repo_input`` (``owner/repo`` or URL) and create worktrees.

        Returns:
            Repository root
        """
        url = GitHubService.clone_url(repo_input)
        full_name = GitHubService.parse_repo_full_name(url)

        if not dest:
            dest = repo_path_for(self.config.clone_dir, full_name) if full_name else None
        if not dest:
            name = url.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
            dest = name[:-4] if name.endswith(".git") else name
        repo_root = os.path.abspath(dest)

        self._console_print(f"Cloning {url} to {repo_root}")
        metadata_path = self.git_service.clone_bare(url, repo_root, depth=self.config.depth)

        branches = self.git_service.list_branches(metadata_path)
        default_branch = self.resolve_default_branch(metadata_path, branches, full_name)
        self.git_service.configure_bare_remote(metadata_path, default_branch)

        feature = BranchValidationService.resolve_feature_request(
            default_branch, self.config.feature_branch, self.config.feature_base
        )
        if not self.config.no_worktrees:
            self.create_planned_worktrees(metadata_path, repo_root, default_branch, feature)

        self._console_print("Clone successful!")
        return repo_root

    def add_worktree(self, repo_root: str, name: str, base: Optional[str] = None) -> str:
        """Create a feature worktree ``name`` from ``base`` in a converted root.

        Returns:
            Path of the new worktree
        """
        repo_root = os.path.abspath(repo_root)
        metadata_path = os.path.join(repo_root, METADATA_DIR)
        if not os.path.isdir(metadata_path):
            raise NotAGitRepoError(repo_root)

        name = (name or "").strip()
        if not name:
            raise InvalidBranchNameError("Worktree name cannot be empty")
        if name in self.git_service.list_worktrees(repo_root):
            raise InvalidBranchNameError(f"Worktree {name!r} already exists")

        branches = self.git_service.list_branches(metadata_path)
        default_branch = self.resolve_default_branch(metadata_path, branches)
        feature = BranchValidationService.resolve_feature_request(default_branch, name, base)
        BranchValidationService.validate_selection(branches, [feature.base])

        path = worktree_path_for(repo_root, feature.branch)
        self._create_worktree(metadata_path, path, feature)
        return path

    def repair(self, metadata_path: str, default_branch: Optional[str] = None) -> List[str]:
        """Re-run remote tracking repair; returns local branches that were kept."""
        if not default_branch:
            branches = self.git_service.list_branches(metadata_path)
            default_branch = self.resolve_default_branch(metadata_path, branches)
        skipped = self.git_service.configure_bare_remote(metadata_path, default_branch)
        self._console_print(f"[green]{SYMBOL_CREATED}[/green] Remote tracking configured for {metadata_path}")
        return skipped
