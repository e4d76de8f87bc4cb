"""Release models for the deployment tool"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..constants import RELEASE_ID_FORMAT


@dataclass(frozen=True)
class Release:
    """One versioned copy of the application's runtime tree"""
    id: str
    path: Path

    @property
    def exists(self) -> bool:
        """Whether the release directory is present on disk"""
        return self.path.is_dir()

    @property
    def created_at(self) -> Optional[datetime]:
        """Creation time decoded from the identifier, if it is a timestamp"""
        # Older releases may use the 14 digit second-resolution form
        padded = self.id.ljust(20, "0")
        try:
            return datetime.strptime(padded, RELEASE_ID_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        created = self.created_at
        return {
            'id': self.id,
            'path': str(self.path),
            'created_at': created.isoformat() if created else None,
        }


@dataclass
class PruneResult:
    """Result of a retention pass"""
    kept: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)  # id -> error

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'kept': self.kept,
            'removed': self.removed,
            'failed': self.failed,
        }
