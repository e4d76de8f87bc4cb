"""Tests for release_deploy.core.deploy_lock."""

from __future__ import annotations

from pathlib import Path

import pytest

from release_deploy.api.exceptions import ConcurrentDeploymentDetected
from release_deploy.core.deploy_lock import DeployLock


class TestDeployLock:
    """Tests for the flock based application lock."""

    def test_acquire_and_release(self, tmp_path: Path) -> None:
        lock = DeployLock(tmp_path / "api" / ".deploy.lock")

        with lock:
            assert lock.is_held
            assert lock.lock_path.exists()

        assert not lock.is_held

    def test_second_holder_fails_fast(self, tmp_path: Path) -> None:
        path = tmp_path / "api" / ".deploy.lock"
        first = DeployLock(path)
        second = DeployLock(path)

        with first:
            with pytest.raises(ConcurrentDeploymentDetected) as exc_info:
                second.acquire()

        assert not second.is_held
        assert exc_info.value.error_code == "RD009"
        assert "holder=pid" in str(exc_info.value)

    def test_lock_reusable_after_release(self, tmp_path: Path) -> None:
        path = tmp_path / "api" / ".deploy.lock"

        with DeployLock(path):
            pass
        with DeployLock(path) as lock:
            assert lock.is_held

    def test_released_when_body_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "api" / ".deploy.lock"
        lock = DeployLock(path)

        with pytest.raises(RuntimeError):
            with lock:
                raise RuntimeError("boom")

        assert not lock.is_held
        with DeployLock(path):
            pass

    def test_different_apps_do_not_conflict(self, tmp_path: Path) -> None:
        with DeployLock(tmp_path / "api" / ".deploy.lock"):
            with DeployLock(tmp_path / "web" / ".deploy.lock") as other:
                assert other.is_held
