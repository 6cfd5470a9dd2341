"""In-place conversion of a working copy into a bare metadata store."""

import os
import shutil
import tempfile
from typing import Optional

import git

from git_worktree_keeper.constants import METADATA_DIR, REMOTE_NAME
from git_worktree_keeper.exceptions import (
    ConversionFailedError,
    NotFoundError,
    NotAGitRepoError,
)
from git_worktree_keeper.services.git.repo import open_repo, command_output
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


class BareConverter:
    """Converts a standard checkout into ``<root>/.git`` as a bare repository.

    The bare copy is staged next to the root (same parent directory, so the
    final move is a same-volume rename) and fully cloned before anything in
    the root is deleted. Working files are gone afterwards; history reachable
    from existing refs survives.
    """

    def __init__(self, path: str):
        """Initialize the converter.

        Args:
            path: Repository root holding a working copy and its .git directory
        """
        self.path = os.path.abspath(path)
        self.metadata_path = os.path.join(self.path, METADATA_DIR)

    def convert(self) -> str:
        """Run the conversion.

        Returns:
            Path to the new metadata store

        Raises:
            NotFoundError: If the root does not exist
            NotAGitRepoError: If the root has no .git directory
            ConversionFailedError: If any step fails. Before ``clear_root`` the
                root is untouched; from ``clear_root`` on the staged bare copy
                is kept and named in the error.
        """
        self._validate()

        staging_path = self._reserve_staging_path()
        cleanup_staging = True
        try:
            self._stage_bare_clone(staging_path)

            # From here on the staged copy may be the only copy of history
            cleanup_staging = False
            self._clear_root(staging_path)
            self._swap_in(staging_path)
        finally:
            if cleanup_staging:
                logger.debug(f"Removing staging directory {staging_path}")
                shutil.rmtree(staging_path, ignore_errors=True)

        logger.info(f"Converted {self.path} to a bare repository")
        return self.metadata_path

    def _validate(self) -> None:
        if not os.path.exists(self.path):
            raise NotFoundError(self.path)
        if not os.path.exists(self.metadata_path):
            raise NotAGitRepoError(self.path)

        repo = open_repo(self.path)
        try:
            if repo.bare:
                raise ConversionFailedError("validate", self.path, "Repository is already bare")
        finally:
            repo.close()

    def _reserve_staging_path(self) -> str:
        parent = os.path.dirname(self.path)
        prefix = f".{os.path.basename(self.path)}.bare-"
        try:
            staging_path = tempfile.mkdtemp(prefix=prefix, dir=parent)
            # Only the unique name is needed; git clone creates the directory
            os.rmdir(staging_path)
        except OSError as e:
            raise ConversionFailedError(
                "reserve_temp", self.path, f"Failed to create temporary directory: {e}"
            ) from e
        logger.debug(f"Reserved staging path {staging_path}")
        return staging_path

    def _stage_bare_clone(self, staging_path: str) -> None:
        origin_url = self._origin_url()

        logger.debug(f"Bare-cloning {self.path} into {staging_path}")
        try:
            staged = git.Repo.clone_from(self.path, staging_path, bare=True)
        except git.exc.GitCommandError as e:
            output = command_output(e)
            logger.error(f"Bare clone of {self.path} failed: {output}")
            raise ConversionFailedError(
                "bare_clone", self.path, "Failed to create bare clone", output
            ) from e

        try:
            if origin_url:
                # The local clone points origin at the root itself; keep the real upstream
                staged.git.remote("set-url", REMOTE_NAME, origin_url)
                logger.debug(f"Restored {REMOTE_NAME} url {origin_url}")
        except git.exc.GitCommandError as e:
            raise ConversionFailedError(
                "stage_remote", self.path, f"Failed to restore {REMOTE_NAME} url", command_output(e)
            ) from e
        finally:
            staged.close()

    def _origin_url(self) -> Optional[str]:
        repo = open_repo(self.path)
        try:
            for remote in repo.remotes:
                if remote.name == REMOTE_NAME:
                    return remote.url
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not read {REMOTE_NAME} url: {command_output(e)}")
        finally:
            repo.close()
        return None

    def _clear_root(self, staging_path: str) -> None:
        try:
            with os.scandir(self.path) as entries:
                for entry in list(entries):
                    if entry.is_dir(follow_symlinks=False):
                        shutil.rmtree(entry.path)
                    else:
                        os.remove(entry.path)
        except OSError as e:
            raise ConversionFailedError(
                "clear_root",
                self.path,
                f"Failed to remove {getattr(e, 'filename', None) or self.path}: {e}; "
                f"bare copy kept at {staging_path}",
            ) from e

    def _swap_in(self, staging_path: str) -> None:
        try:
            os.rename(staging_path, self.metadata_path)
        except OSError as e:
            raise ConversionFailedError(
                "swap",
                self.path,
                f"Failed to move bare repository into {self.metadata_path}: {e}; "
                f"bare copy kept at {staging_path}",
            ) from e
