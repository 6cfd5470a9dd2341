"""Pytest fixtures for git-worktree-keeper tests"""
import os
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest
import git

from git_worktree_keeper.services.cache_service import CacheService
from git_worktree_keeper.services.git import BareConverter, RemoteService
from git_worktree_keeper.services.metadata_service import MetadataService


def _configure_user(repo):
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()


def _commit_file(repo, name, content, message):
    path = Path(repo.working_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    repo.index.commit(message)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing (symlinks resolved)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def mock_config():
    """Create a configuration dictionary for quiet, offline runs."""
    return {
        'verbose': False,
        'debug': False,
        'quiet': True,
        'fetch': True,
        'github_token': None,
    }


@pytest.fixture
def metadata_service(temp_dir):
    """Metadata lookup backed by a throwaway cache and no GitHub client."""
    return MetadataService(CacheService(cache_dir=temp_dir / "cache"), github_service=None)


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with one commit on main."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    _configure_user(repo)
    _commit_file(repo, "README.md", "# Test Repository\n", "Initial commit")

    # Rename master to main if needed
    repo.git.branch('-M', 'main')

    yield repo

    repo.close()


@pytest.fixture
def git_repo_with_branches(git_repo):
    """Git repository with main, feature-a and feature/nested branches."""
    repo = git_repo

    repo.git.checkout('-b', 'feature-a')
    _commit_file(repo, "a.txt", "Feature A\n", "Add feature A")

    repo.git.checkout('main')
    repo.git.checkout('-b', 'feature/nested')
    _commit_file(repo, "nested.txt", "Nested\n", "Add nested feature")

    repo.git.checkout('main')

    yield repo


@pytest.fixture
def origin_repo(temp_dir):
    """Bare repository acting as a remote, with main and develop branches."""
    seed_path = temp_dir / "seed"
    seed_path.mkdir()
    seed = git.Repo.init(seed_path)
    _configure_user(seed)
    _commit_file(seed, "README.md", "# Origin\n", "Initial commit")
    seed.git.branch('-M', 'main')
    seed.git.checkout('-b', 'develop')
    _commit_file(seed, "dev.txt", "Develop\n", "Develop work")
    seed.git.checkout('main')

    origin_path = temp_dir / "origin.git"
    origin = git.Repo.clone_from(str(seed_path), str(origin_path), bare=True)
    origin.close()
    seed.close()

    return origin_path


@pytest.fixture
def origin_clone(temp_dir, origin_repo):
    """Ordinary working clone of origin_repo (has origin/HEAD)."""
    repo = git.Repo.clone_from(str(origin_repo), str(temp_dir / "work"))
    _configure_user(repo)
    yield repo
    repo.close()


@pytest.fixture
def converted_repo(git_repo_with_branches):
    """Root of git_repo_with_branches after bare conversion (no repair)."""
    root = Path(git_repo_with_branches.working_dir)
    git_repo_with_branches.close()
    BareConverter(str(root)).convert()
    return root


@pytest.fixture
def bare_store(converted_repo):
    """Converted root with remote tracking repaired; main is the only local branch."""
    RemoteService(str(converted_repo / ".git")).configure_bare_remote("main")
    return converted_repo


@pytest.fixture
def mock_runner():
    """Fake subprocess runner answering ``gh auth token``."""
    result = Mock()
    result.returncode = 0
    result.stdout = "gh_token_value\n"
    return Mock(return_value=result)


@pytest.fixture
def mock_github():
    """Create a mock GitHub API object."""
    github = Mock()

    repo = Mock()
    repo.full_name = "test/repo"
    repo.default_branch = "develop"

    github.get_repo = Mock(return_value=repo)
    return github
