"""Tests for idempotent worktree creation"""
import os
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest
import git

from git_worktree_keeper.exceptions import (
    GitOperationError,
    WorktreeConflictError,
    WorktreeCreationFailedError,
)
from git_worktree_keeper.models.worktree import DetachedRequest, FeatureRequest, TrackingRequest
from git_worktree_keeper.services.git.orchestrator import WorktreeOrchestrator
from git_worktree_keeper.services.git.worktrees import WorktreeService


def _head(path):
    repo = git.Repo(str(path))
    try:
        return repo.head.is_detached, repo.head.commit.hexsha, (
            None if repo.head.is_detached else repo.active_branch.name
        )
    finally:
        repo.close()


def _commit_of(metadata_path, ref):
    repo = git.Repo(str(metadata_path))
    try:
        return repo.commit(ref).hexsha
    finally:
        repo.close()


@pytest.fixture
def orchestrator(bare_store):
    return WorktreeOrchestrator(str(bare_store / ".git"))


class TestRequests:
    """Test git worktree add argument lists."""

    def test_tracking_args(self):
        assert TrackingRequest("main").add_args("/r/main") == ["/r/main", "main"]

    def test_detached_args(self):
        assert DetachedRequest("main").add_args("/r/review") == ["--detach", "/r/review", "main"]

    def test_feature_args(self):
        assert FeatureRequest("feature/x", "main").add_args("/r/feature/x") == [
            "-b", "feature/x", "/r/feature/x", "main"
        ]


class TestTrackingWorktree:
    """Test worktrees that follow an existing branch."""

    def test_create(self, orchestrator, bare_store):
        assert orchestrator.create_tracking(str(bare_store / "main"), "main") is True

        detached, _, branch = _head(bare_store / "main")
        assert not detached
        assert branch == "main"

    def test_create_twice(self, orchestrator, bare_store):
        assert orchestrator.create_tracking(str(bare_store / "main"), "main") is True
        assert orchestrator.create_tracking(str(bare_store / "main"), "main") is False

    def test_remote_only_branch(self, orchestrator, bare_store):
        """A branch known only as origin/<name> gets a local tracking branch."""
        assert orchestrator.create_tracking(str(bare_store / "feature-a"), "feature-a") is True
        assert _head(bare_store / "feature-a")[2] == "feature-a"

    def test_unknown_branch(self, orchestrator, bare_store):
        with pytest.raises(WorktreeCreationFailedError) as exc_info:
            orchestrator.create_tracking(str(bare_store / "nope"), "does-not-exist")
        assert exc_info.value.output

    def test_branch_checked_out_elsewhere(self, orchestrator, bare_store):
        orchestrator.create_tracking(str(bare_store / "main"), "main")
        with pytest.raises(WorktreeCreationFailedError):
            orchestrator.create_tracking(str(bare_store / "main-again"), "main")


class TestDetachedWorktree:
    """Test detached review worktrees."""

    def test_create_twice(self, orchestrator, bare_store):
        path = str(bare_store / "review")

        assert orchestrator.create_detached(path, "main") is True
        assert orchestrator.create_detached(path, "main") is False

        detached, sha, _ = _head(path)
        assert detached
        assert sha == _commit_of(bare_store / ".git", "main")

    def test_relative_spelling_is_same_worktree(self, orchestrator, bare_store, monkeypatch):
        orchestrator.create_detached(str(bare_store / "review"), "main")
        monkeypatch.chdir(bare_store)
        assert orchestrator.create_detached("review", "main") is False

    def test_symlinked_spelling_is_same_worktree(self, orchestrator, bare_store, temp_dir):
        orchestrator.create_detached(str(bare_store / "review"), "main")
        link = temp_dir / "link"
        os.symlink(bare_store, link)
        assert orchestrator.create_detached(str(link / "review"), "main") is False

    def test_does_not_move_with_branch(self, orchestrator, bare_store):
        orchestrator.create_detached(str(bare_store / "review"), "main")
        orchestrator.create_tracking(str(bare_store / "main"), "main")

        repo = git.Repo(str(bare_store / "main"))
        try:
            repo.config_writer().set_value("user", "name", "Test User").release()
            repo.config_writer().set_value("user", "email", "test@example.com").release()
            (bare_store / "main" / "new.txt").write_text("new\n")
            repo.git.add("new.txt")
            repo.git.commit("-m", "Advance main")
        finally:
            repo.close()

        assert _head(bare_store / "review")[1] != _commit_of(bare_store / ".git", "main")


class TestFeatureWorktree:
    """Test feature worktrees on new branches."""

    def test_create(self, orchestrator, bare_store):
        path = bare_store / "feature" / "x"
        assert orchestrator.create_feature(str(path), "feature/x", "main") is True

        detached, sha, branch = _head(path)
        assert not detached
        assert branch == "feature/x"
        assert sha == _commit_of(bare_store / ".git", "main")

    def test_create_twice(self, orchestrator, bare_store):
        path = str(bare_store / "feature" / "x")
        assert orchestrator.create_feature(path, "feature/x", "main") is True
        assert orchestrator.create_feature(path, "feature/x", "main") is False

    def test_base_only_on_remote(self, orchestrator, bare_store):
        """A base deleted locally by the repair resolves to origin/<base>."""
        path = bare_store / "topic"
        assert orchestrator.create_feature(str(path), "topic", "feature-a") is True

        assert _head(path)[2] == "topic"
        assert (path / "a.txt").exists()

    def test_detached_from_remote_only_branch(self, orchestrator, bare_store):
        path = bare_store / "review"
        assert orchestrator.create_detached(str(path), "feature-a") is True
        assert _head(path)[1] == _commit_of(bare_store / ".git", "origin/feature-a")

    def test_existing_branch_at_other_path(self, orchestrator, bare_store):
        orchestrator.create_feature(str(bare_store / "f1"), "f1", "main")
        with pytest.raises(WorktreeCreationFailedError):
            orchestrator.create_feature(str(bare_store / "f2"), "f1", "main")


class TestConflicts:
    """Test paths occupied by something other than a worktree."""

    def test_existing_directory(self, orchestrator, bare_store):
        occupied = bare_store / "review"
        occupied.mkdir()
        (occupied / "stray.txt").write_text("not a worktree\n")

        with pytest.raises(WorktreeConflictError):
            orchestrator.create_detached(str(occupied), "main")
        assert (occupied / "stray.txt").read_text() == "not a worktree\n"

    def test_parent_directories_created(self, orchestrator, bare_store):
        path = bare_store / "deep" / "nested" / "wt"
        assert orchestrator.create_detached(str(path), "main") is True
        assert path.is_dir()


class TestConcurrentCreation:
    """Test losing a race to another creator of the same path."""

    def test_race_lost_is_success(self, orchestrator, bare_store):
        path = str(bare_store / "review")
        # Another process created the worktree after our registration check
        orchestrator.create_detached(path, "main")

        registrar = Mock(spec=WorktreeService)
        registrar.is_registered.side_effect = [False, True]
        racing = WorktreeOrchestrator(str(bare_store / ".git"), worktree_service=registrar)

        assert racing.create_detached(path, "main") is False
        assert registrar.is_registered.call_count == 2

    def test_recheck_failure_reports_conflict(self, orchestrator, bare_store):
        path = str(bare_store / "review")
        orchestrator.create_detached(path, "main")

        registrar = Mock(spec=WorktreeService)
        registrar.is_registered.side_effect = [False, GitOperationError("worktree_list")]
        racing = WorktreeOrchestrator(str(bare_store / ".git"), worktree_service=registrar)

        with pytest.raises(WorktreeConflictError):
            racing.create_detached(path, "main")

    def test_initial_check_failure(self, bare_store):
        registrar = Mock(spec=WorktreeService)
        registrar.is_registered.side_effect = GitOperationError("worktree_list", output="boom")
        orchestrator = WorktreeOrchestrator(str(bare_store / ".git"), worktree_service=registrar)

        with pytest.raises(WorktreeCreationFailedError) as exc_info:
            orchestrator.create_detached(str(bare_store / "review"), "main")
        assert exc_info.value.output == "boom"

    def test_parallel_creators_of_one_path(self, bare_store):
        metadata_path = str(bare_store / ".git")
        path = str(bare_store / "review")

        def create(_):
            return WorktreeOrchestrator(metadata_path).create_detached(path, "main")

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(create, range(8)))

        assert results.count(True) == 1
        assert results.count(False) == 7
        assert WorktreeService(metadata_path).list_worktrees() == ["review"]
