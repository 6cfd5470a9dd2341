"""Cache service for hosted repository metadata."""
import json
from pathlib import Path
from typing import Dict, Optional
from datetime import datetime, timezone
from contextlib import contextmanager

from git_worktree_keeper.models.repository import RepoMetadata
from git_worktree_keeper.utils.logging import get_logger

# Import fcntl for POSIX file locking (Unix/Linux/macOS)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

logger = get_logger(__name__)


class CacheService:
    """JSON file of ``owner/repo`` -> RepoMetadata entries with a TTL."""

    def __init__(self, cache_dir: Optional[Path] = None, ttl_hours: int = 24):
        """Initialize the cache service.

        Args:
            cache_dir: Directory holding the cache file
            ttl_hours: Entries older than this are treated as missing
        """
        self.cache_dir = Path(cache_dir) if cache_dir else Path.home() / ".git-worktree-keeper" / "cache"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache_file = self.cache_dir / "repos.json"
        self.ttl_hours = ttl_hours

    @contextmanager
    def _acquire_cache_lock(self, file_handle, operation: str = "read"):
        """Acquire file lock for cache operations.

        Args:
            file_handle: Open file handle to lock
            operation: Type of operation ("read" or "write")
        """
        if not HAS_FCNTL:
            logger.debug("File locking not available on this platform")
            yield
            return

        try:
            # Acquire exclusive lock for writes, shared lock for reads
            lock_type = fcntl.LOCK_EX if operation == "write" else fcntl.LOCK_SH
            fcntl.flock(file_handle.fileno(), lock_type)
            yield
        finally:
            try:
                fcntl.flock(file_handle.fileno(), fcntl.LOCK_UN)
            except OSError as e:
                logger.debug(f"Error releasing lock: {e}")

    def _load_raw(self) -> Dict[str, Dict]:
        if not self.cache_file.exists():
            logger.debug("No cache file found")
            return {}

        try:
            with open(self.cache_file, 'r') as f:
                with self._acquire_cache_lock(f, operation="read"):
                    cache_data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in cache file: {e}")
            return {}
        except OSError as e:
            logger.warning(f"Failed to load cache: {e}")
            return {}

        if not isinstance(cache_data, dict) or not isinstance(cache_data.get("repos"), dict):
            logger.warning("Cache validation failed, ignoring cache")
            return {}
        return cache_data["repos"]

    def get(self, full_name: str) -> Optional[RepoMetadata]:
        """Return the unexpired entry for ``full_name``, if any."""
        data = self._load_raw().get(full_name)
        if not data:
            return None
        try:
            metadata = RepoMetadata.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to deserialize cached repo {full_name}: {e}")
            return None
        if metadata.is_expired(self.ttl_hours):
            logger.debug(f"Cache entry for {full_name} expired")
            return None
        return metadata

    def set(self, metadata: RepoMetadata) -> None:
        """Merge ``metadata`` into the cache file with an atomic write."""
        repos = self._load_raw()
        repos[metadata.full_name] = metadata.to_dict()
        cache_data = {
            "last_updated": datetime.now(timezone.utc).isoformat(),
            "repos": repos,
        }

        # Atomic write: write to temp file, then rename
        temp_file = self.cache_file.with_suffix('.tmp')
        try:
            with open(temp_file, 'w') as f:
                with self._acquire_cache_lock(f, operation="write"):
                    json.dump(cache_data, f, indent=2)
                    f.flush()
            temp_file.replace(self.cache_file)
            logger.debug(f"Saved cache with {len(repos)} repos")
        except OSError as e:
            logger.warning(f"Failed to save cache: {e}")
        finally:
            if temp_file.exists():
                temp_file.unlink(missing_ok=True)
