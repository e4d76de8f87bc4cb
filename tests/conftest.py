"""Shared fixtures for release-deploy tests."""

from __future__ import annotations

import tarfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from release_deploy.models import DeploymentConfig, HealthCheckResult
from release_deploy.utils.process_utils import CommandResult


class FakeRunner:
    """Records commands instead of running them.

    ``returncodes`` maps a command prefix (joined with spaces) to the exit
    status to report; everything else succeeds. ``on_call`` can touch the
    filesystem to imitate side effects such as a git clone.
    """

    def __init__(
        self,
        returncodes: Optional[Dict[str, int]] = None,
        on_call: Optional[Callable[[List[str], Optional[Path]], None]] = None,
    ) -> None:
        self.returncodes = returncodes or {}
        self.on_call = on_call
        self.calls: List[List[str]] = []
        self.cwds: List[Optional[Path]] = []

    async def __call__(self, args: Sequence[str], cwd=None, env=None, log_level=None) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        self.cwds.append(Path(cwd) if cwd else None)
        if self.on_call:
            self.on_call(args, Path(cwd) if cwd else None)

        command = " ".join(args)
        returncode = 0
        for prefix, code in self.returncodes.items():
            if command.startswith(prefix):
                returncode = code
                break
        output = "boom\n" if returncode else "ok\n"
        return CommandResult(args=args, returncode=returncode, output=output)


class FakeHealth:
    """Health verifier answering from a script of results."""

    def __init__(self, *results: bool) -> None:
        self.results = list(results) or [True]
        self.calls: List[str] = []

    async def check(self, url: str, timeout: float) -> HealthCheckResult:
        self.calls.append(url)
        ok = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        return HealthCheckResult(
            url=url,
            success=ok,
            attempts=1 if ok else 5,
            elapsed=0.0 if ok else timeout,
            last_status=200 if ok else 503,
        )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def artifact_dir(tmp_path: Path) -> Path:
    """A small application tree."""
    src = tmp_path / "build"
    (src / "bin").mkdir(parents=True)
    (src / "app.py").write_text("print('hello')\n", encoding="utf-8")
    (src / "bin" / "run").write_text("#!/bin/sh\nexec python app.py\n", encoding="utf-8")
    return src


@pytest.fixture
def artifact_tarball(tmp_path: Path, artifact_dir: Path) -> Path:
    """The application tree packed as build.tar.gz."""
    archive = tmp_path / "build.tar.gz"
    with tarfile.open(archive, "w:gz") as tar:
        for entry in sorted(artifact_dir.rglob("*")):
            tar.add(entry, arcname=str(entry.relative_to(artifact_dir)), recursive=False)
    return archive


@pytest.fixture
def deploy_root(tmp_path: Path) -> Path:
    root = tmp_path / "www"
    root.mkdir()
    return root


@pytest.fixture
def make_config(deploy_root: Path, artifact_tarball: Path) -> Callable[..., DeploymentConfig]:
    """Build a DeploymentConfig from the flat keys used by config files."""

    def _make(**overrides) -> DeploymentConfig:
        data = {
            "app": "api",
            "root": str(deploy_root),
            "artifact": str(artifact_tarball),
            "health_url": "http://127.0.0.1:9000/health",
            "timeout": 10,
            "keep": 2,
        }
        data.update(overrides)
        return DeploymentConfig.from_dict(data)

    return _make
