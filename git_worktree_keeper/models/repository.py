"""Repository metadata model."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class RepoMetadata:
    """Cached metadata about a hosted repository."""
    full_name: str  # owner/repo
    default_branch: str
    cached_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self, ttl_hours: int, now: Optional[datetime] = None) -> bool:
        """True once the entry is older than ``ttl_hours``."""
        now = now or datetime.now(timezone.utc)
        age = now - self.cached_at
        return age.total_seconds() > ttl_hours * 3600

    def to_dict(self) -> dict:
        return {
            "full_name": self.full_name,
            "default_branch": self.default_branch,
            "cached_at": self.cached_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RepoMetadata":
        cached_at = datetime.fromisoformat(data["cached_at"])
        if cached_at.tzinfo is None:
            cached_at = cached_at.replace(tzinfo=timezone.utc)
        return cls(
            full_name=data["full_name"],
            default_branch=data["default_branch"],
            cached_at=cached_at,
        )
