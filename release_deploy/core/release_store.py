# release_deploy/core/release_store.py
"""Versioned release directories and the current pointer"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from ..api.exceptions import ReleaseNotFoundError, SwitchFailure
from ..constants import (
    CURRENT_LINK_NAME,
    RELEASE_ID_FORMAT,
    RELEASES_DIR,
)
from ..models import PruneResult, Release
from ..utils.file_utils import atomic_symlink, safe_remove

logger = logging.getLogger(__name__)


def _utc_release_id() -> str:
    return datetime.now(timezone.utc).strftime(RELEASE_ID_FORMAT)


class ReleaseStore:
    """Manages releases under one application root

    Layout::

        <app_root>/
        ├── current -> releases/20250101120000000000
        └── releases/
            ├── 20241231093000000000/
            └── 20250101120000000000/
    """

    def __init__(self, app_root: Path, clock: Callable[[], str] = _utc_release_id):
        """Initialize release store

        Args:
            app_root: Application root directory
            clock: Source of new release identifiers
        """
        self.app_root = Path(app_root)
        self.releases_dir = self.app_root / RELEASES_DIR
        self.current_link = self.app_root / CURRENT_LINK_NAME
        self._clock = clock

    def ensure_layout(self) -> None:
        """Create the application root and releases directory"""
        self.releases_dir.mkdir(parents=True, exist_ok=True)

    def release(self, release_id: str) -> Release:
        """Get a release handle by id (the directory may not exist)"""
        return Release(id=release_id, path=self.releases_dir / release_id)

    def get_release(self, release_id: str) -> Release:
        """Get an existing release by id

        Raises:
            ReleaseNotFoundError: If no such release directory exists
        """
        release = self.release(release_id)
        if not release.exists or release_id.startswith('.'):
            raise ReleaseNotFoundError(release_id)
        return release

    def list_releases(self) -> List[Release]:
        """List releases, newest first

        Returns:
            Releases ordered by identifier, descending
        """
        if not self.releases_dir.is_dir():
            return []

        releases = [
            self.release(entry.name)
            for entry in self.releases_dir.iterdir()
            if not entry.name.startswith('.') and entry.is_dir() and not entry.is_symlink()
        ]
        return sorted(releases, key=lambda r: r.id, reverse=True)

    def create_release(self) -> Release:
        """Create an empty release directory with a fresh identifier

        The identifier is strictly greater than every existing one even if
        the clock goes backwards or two deploys land in the same instant.

        Returns:
            The new release
        """
        self.ensure_layout()
        existing = self.list_releases()
        candidate = self._clock()
        newest = existing[0].id if existing else None

        if newest is not None and candidate <= newest:
            candidate = self._next_id(newest)

        while True:
            path = self.releases_dir / candidate
            try:
                path.mkdir()
            except FileExistsError:
                candidate = self._next_id(candidate)
                continue
            logger.info(f"Created release {candidate} at {path}")
            return Release(id=candidate, path=path)

    @staticmethod
    def _next_id(release_id: str) -> str:
        if release_id.isdigit():
            return str(int(release_id) + 1).zfill(len(release_id))
        return f"{release_id}1"

    def get_current(self) -> Optional[Release]:
        """Get the release named by the current pointer

        The release is returned even if its directory has been removed
        behind our back; check ``Release.exists`` when that matters.

        Returns:
            Current release or None if there is no pointer
        """
        if not self.current_link.is_symlink():
            return None

        target = Path(os.readlink(self.current_link))
        return self.release(target.name)

    def set_current(self, release: Release) -> None:
        """Atomically point current at a release

        Args:
            release: Release to make live

        Raises:
            SwitchFailure: If the release is missing or the link cannot be replaced
        """
        if not release.path.is_dir():
            raise SwitchFailure(
                "Release directory does not exist",
                release=release.id,
                path=str(release.path)
            )

        relative_target = Path(RELEASES_DIR) / release.id
        try:
            atomic_symlink(relative_target, self.current_link)
        except OSError as e:
            raise SwitchFailure(
                f"Failed to update current pointer: {e}",
                release=release.id,
                link=str(self.current_link)
            ) from e

        logger.info(f"Linked {self.current_link} -> {relative_target}")

    def previous_release(self, release: Release) -> Optional[Release]:
        """Get the release immediately preceding another one

        Args:
            release: Reference release

        Returns:
            The newest release older than ``release``, or None
        """
        for candidate in self.list_releases():
            if candidate.id < release.id:
                return candidate
        return None

    def prune(self, keep: int) -> PruneResult:
        """Delete old releases

        Kept: the current release regardless of age, and the ``keep`` most
        recent non-current releases. The release immediately preceding the
        current one (rollback target) is also kept when it falls outside
        that window. A release that cannot be deleted is logged and skipped.

        Args:
            keep: Number of non-current releases to retain

        Returns:
            PruneResult listing kept, removed and failed releases
        """
        if keep < 0:
            raise ValueError("keep must not be negative")

        result = PruneResult()
        releases = self.list_releases()
        current = self.get_current()
        current_id = current.id if current else None
        previous = self.previous_release(current) if current else None
        previous_id = previous.id if previous else None

        retained_others = 0
        for release in releases:
            if release.id == current_id:
                result.kept.append(release.id)
                continue
            if retained_others < keep:
                retained_others += 1
                result.kept.append(release.id)
                continue
            if release.id == previous_id:
                result.kept.append(release.id)
                continue

            logger.info(f"Removing old release {release.id}")
            if safe_remove(release.path):
                result.removed.append(release.id)
            else:
                result.failed[release.id] = f"could not remove {release.path}"
                logger.warning(f"Skipping release {release.id}: removal failed")

        return result
