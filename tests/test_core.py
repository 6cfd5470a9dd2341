"""Integration tests for WorktreeKeeper flows"""
import os
from pathlib import Path
from unittest.mock import Mock

import pytest
import git

from git_worktree_keeper.core import WorktreeKeeper
from git_worktree_keeper.exceptions import (
    BranchNotFoundError,
    InvalidBranchNameError,
    NotAGitRepoError,
)
from git_worktree_keeper.services.git.branch_queries import BranchQueries
from git_worktree_keeper.services.metadata_service import MetadataService


def _branch_at(path):
    repo = git.Repo(str(path))
    try:
        return None if repo.head.is_detached else repo.active_branch.name
    finally:
        repo.close()


@pytest.fixture
def keeper_factory(mock_config, metadata_service):
    def make(**overrides):
        return WorktreeKeeper({**mock_config, **overrides}, metadata_service=metadata_service)
    return make


@pytest.fixture
def repo_root(git_repo_with_branches):
    root = Path(git_repo_with_branches.working_dir)
    git_repo_with_branches.close()
    return root


class TestConvert:
    """Test the convert flow."""

    def test_planned_worktrees(self, keeper_factory, repo_root):
        metadata_path = keeper_factory().convert(str(repo_root))

        assert metadata_path == str(repo_root / ".git")
        assert sorted(os.listdir(repo_root)) == [".git", "main", "review"]
        assert _branch_at(repo_root / "main") == "main"
        assert _branch_at(repo_root / "review") is None

    def test_remote_tracking_repaired(self, keeper_factory, repo_root):
        metadata_path = keeper_factory().convert(str(repo_root))
        queries = BranchQueries(metadata_path)
        assert queries.list_local_branches() == ["main"]
        assert queries.list_branches() == ["feature-a", "feature/nested", "main"]

    def test_no_fetch_keeps_local_branches(self, keeper_factory, repo_root):
        metadata_path = keeper_factory(fetch=False).convert(str(repo_root))
        assert sorted(BranchQueries(metadata_path).list_local_branches()) == [
            "feature-a", "feature/nested", "main"
        ]

    def test_feature_worktree(self, keeper_factory, repo_root):
        keeper_factory(feature_branch="feature/x").convert(str(repo_root))
        assert _branch_at(repo_root / "feature" / "x") == "feature/x"

    def test_feature_from_base(self, keeper_factory, repo_root):
        keeper_factory(feature_branch="topic", feature_base="feature-a").convert(str(repo_root))
        assert (repo_root / "topic" / "a.txt").exists()

    def test_skip_default_and_review(self, keeper_factory, repo_root):
        keeper = keeper_factory(create_default_worktree=False, create_review_worktree=False)
        keeper.convert(str(repo_root))
        assert os.listdir(repo_root) == [".git"]

    def test_no_worktrees(self, keeper_factory, repo_root):
        keeper_factory(no_worktrees=True).convert(str(repo_root))
        assert os.listdir(repo_root) == [".git"]

    def test_selected_worktrees(self, keeper_factory, repo_root):
        keeper_factory(worktrees=["origin/feature-a"]).convert(str(repo_root))
        assert sorted(os.listdir(repo_root)) == [".git", "feature-a"]
        assert _branch_at(repo_root / "feature-a") == "feature-a"

    def test_all_worktrees(self, keeper_factory, repo_root):
        keeper_factory(all_worktrees=True).convert(str(repo_root))
        assert _branch_at(repo_root / "main") == "main"
        assert _branch_at(repo_root / "feature-a") == "feature-a"
        assert _branch_at(repo_root / "feature" / "nested") == "feature/nested"

    def test_reserved_feature_rejected_before_conversion(self, keeper_factory, repo_root):
        with pytest.raises(InvalidBranchNameError):
            keeper_factory(feature_branch="review").convert(str(repo_root))
        assert (repo_root / "README.md").exists()

    def test_unknown_selection_rejected_before_conversion(self, keeper_factory, repo_root):
        with pytest.raises(BranchNotFoundError):
            keeper_factory(worktrees=["ghost"]).convert(str(repo_root))
        assert (repo_root / "README.md").exists()

    def test_repair_failure_still_creates_worktrees(self, keeper_factory, git_repo):
        git_repo.create_remote("origin", str(Path(git_repo.working_dir).parent / "nowhere.git"))
        root = Path(git_repo.working_dir)

        keeper_factory().convert(str(root))

        assert _branch_at(root / "main") == "main"

    def test_default_branch_from_metadata(self, mock_config, repo_root):
        metadata_service = Mock(spec=MetadataService)
        metadata_service.default_branch_for.return_value = "feature-a"
        keeper = WorktreeKeeper({**mock_config, "fetch": False}, metadata_service=metadata_service)

        assert keeper.resolve_default_branch(str(repo_root), ["feature-a", "main"], "o/r") == "feature-a"
        metadata_service.default_branch_for.assert_called_once_with("o/r")

    def test_relative_origin_skips_metadata_lookup(self, mock_config, git_repo):
        git_repo.create_remote("origin", "../origin.git")
        metadata_service = Mock(spec=MetadataService)
        metadata_service.default_branch_for.return_value = None
        keeper = WorktreeKeeper(mock_config, metadata_service=metadata_service)

        assert keeper.resolve_default_branch(git_repo.working_dir, ["main"]) == "main"
        metadata_service.default_branch_for.assert_called_once_with(None)

    def test_explicit_default_branch_wins(self, keeper_factory, repo_root):
        keeper_factory(default_branch="feature-a", fetch=False).convert(str(repo_root))
        assert _branch_at(repo_root / "feature-a") == "feature-a"
        assert not (repo_root / "main").exists()


class TestConvertKeepsUnpushedWork:
    """Converting a clone must not lose commits that exist only locally."""

    @staticmethod
    def _commit(repo, name, message):
        (Path(repo.working_dir) / name).write_text(f"{message}\n")
        repo.index.add([name])
        return repo.index.commit(message).hexsha

    def test_unpushed_branch_survives(self, keeper_factory, origin_clone):
        origin_clone.git.checkout("-b", "wip")
        sha = self._commit(origin_clone, "wip.txt", "Work in progress")
        origin_clone.git.checkout("main")
        root = origin_clone.working_dir
        origin_clone.close()

        metadata_path = keeper_factory().convert(root)

        assert "wip" in BranchQueries(metadata_path).list_local_branches()
        repo = git.Repo(metadata_path)
        try:
            assert repo.commit("wip").hexsha == sha
        finally:
            repo.close()

    def test_branch_ahead_of_origin_survives(self, keeper_factory, origin_clone):
        origin_clone.git.checkout("develop")
        sha = self._commit(origin_clone, "ahead.txt", "Local only")
        origin_clone.git.checkout("main")
        root = origin_clone.working_dir
        origin_clone.close()

        metadata_path = keeper_factory().convert(root)

        repo = git.Repo(metadata_path)
        try:
            assert repo.commit("refs/heads/develop").hexsha == sha
            assert repo.commit("refs/remotes/origin/develop").hexsha != sha
        finally:
            repo.close()

    def test_pushed_branch_removed(self, keeper_factory, origin_clone):
        origin_clone.git.checkout("develop")
        origin_clone.git.checkout("main")
        root = origin_clone.working_dir
        origin_clone.close()

        metadata_path = keeper_factory().convert(root)

        assert BranchQueries(metadata_path).list_local_branches() == ["main"]
        assert BranchQueries(metadata_path).list_branches() == ["develop", "main"]


class TestClone:
    """Test the clone flow against a local origin."""

    def test_clone(self, keeper_factory, origin_repo, temp_dir):
        root = keeper_factory().clone(str(origin_repo), dest=str(temp_dir / "cloned"))

        assert root == str(temp_dir / "cloned")
        assert sorted(os.listdir(root)) == [".git", "main", "review"]
        queries = BranchQueries(os.path.join(root, ".git"))
        assert queries.list_local_branches() == ["main"]
        assert queries.list_branches() == ["develop", "main"]

    def test_clone_with_feature(self, keeper_factory, origin_repo, temp_dir):
        root = keeper_factory(feature_branch="topic", feature_base="develop").clone(
            str(origin_repo), dest=str(temp_dir / "cloned")
        )
        assert (Path(root) / "topic" / "dev.txt").exists()

    def test_clone_without_worktrees(self, keeper_factory, origin_repo, temp_dir):
        root = keeper_factory(no_worktrees=True).clone(str(origin_repo), dest=str(temp_dir / "cloned"))
        assert os.listdir(root) == [".git"]


class TestAddWorktree:
    """Test adding feature worktrees to a converted root."""

    @pytest.fixture
    def converted(self, keeper_factory, repo_root):
        keeper_factory().convert(str(repo_root))
        return repo_root

    def test_add(self, keeper_factory, converted):
        path = keeper_factory().add_worktree(str(converted), "feature/y")
        assert path == str(converted / "feature" / "y")
        assert _branch_at(path) == "feature/y"

    def test_add_from_base(self, keeper_factory, converted):
        path = keeper_factory().add_worktree(str(converted), "topic", base="feature-a")
        assert os.path.exists(os.path.join(path, "a.txt"))

    def test_existing_name(self, keeper_factory, converted):
        with pytest.raises(InvalidBranchNameError):
            keeper_factory().add_worktree(str(converted), "review")

    def test_empty_name(self, keeper_factory, converted):
        with pytest.raises(InvalidBranchNameError):
            keeper_factory().add_worktree(str(converted), "  ")

    def test_unknown_base(self, keeper_factory, converted):
        with pytest.raises(BranchNotFoundError):
            keeper_factory().add_worktree(str(converted), "topic", base="ghost")

    def test_not_converted(self, keeper_factory, temp_dir):
        with pytest.raises(NotAGitRepoError):
            keeper_factory().add_worktree(str(temp_dir), "topic")


class TestRepair:
    """Test the standalone repair flow."""

    def test_repair_guesses_default(self, keeper_factory, repo_root):
        metadata_path = keeper_factory(fetch=False, no_worktrees=True).convert(str(repo_root))

        skipped = keeper_factory().repair(metadata_path)

        assert skipped == []
        assert BranchQueries(metadata_path).list_local_branches() == ["main"]
