"""Tests for the release-deploy command line interface."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import List
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from release_deploy.cli.main import cli
from release_deploy.core.health_verifier import HealthVerifier
from release_deploy.core.release_store import ReleaseStore
from release_deploy.models import HealthCheckResult
from release_deploy.services.deploy_service import DeployService

URL = "http://127.0.0.1:9000/health"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _health(ok: bool) -> AsyncMock:
    return AsyncMock(return_value=HealthCheckResult(
        url=URL, success=ok, attempts=1 if ok else 5, last_status=200 if ok else 503
    ))


def _deploy_args(root: Path, artifact: Path, *extra: str) -> List[str]:
    return [
        "deploy",
        "--app", "api",
        "--root", str(root),
        "--artifact", str(artifact),
        "--health-url", URL,
        "--timeout", "5",
        "-y",
        *extra,
    ]


def _invoke(args: List[str], healthy: bool = True):
    with patch.object(HealthVerifier, "check", new=_health(healthy)):
        return CliRunner().invoke(cli, args)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# ---------------------------------------------------------------------------
# deploy
# ---------------------------------------------------------------------------


class TestDeployCommand:
    """Exit codes and output of 'deploy'."""

    def test_success(self, deploy_root: Path, artifact_tarball: Path) -> None:
        result = _invoke(_deploy_args(deploy_root, artifact_tarball))

        assert result.exit_code == 0, result.output
        assert "Deployed api release" in result.output
        assert (deploy_root / "api" / "current" / "app.py").is_file()

    def test_rolled_back_exit_code(self, deploy_root: Path, artifact_tarball: Path) -> None:
        _invoke(_deploy_args(deploy_root, artifact_tarball))

        result = _invoke(_deploy_args(deploy_root, artifact_tarball), healthy=False)

        assert result.exit_code == 3, result.output
        assert "rolled back" in result.output

    def test_failure_without_previous(self, deploy_root: Path, artifact_tarball: Path) -> None:
        result = _invoke(_deploy_args(deploy_root, artifact_tarball), healthy=False)

        assert result.exit_code == 2, result.output
        assert "No previous release" in result.output

    def test_pre_hook_failure_exit_code(self, deploy_root: Path, artifact_tarball: Path) -> None:
        result = _invoke(_deploy_args(deploy_root, artifact_tarball, "--pre", "exit 9"))

        assert result.exit_code == 2, result.output
        assert not (deploy_root / "api" / "current").exists()

    def test_missing_health_url(self, runner: CliRunner, deploy_root: Path,
                                artifact_tarball: Path) -> None:
        result = runner.invoke(cli, [
            "deploy", "--app", "api", "--root", str(deploy_root),
            "--artifact", str(artifact_tarball), "-y",
        ])

        assert result.exit_code == 1
        assert "health-url" in result.output

    def test_artifact_and_repo_conflict(self, runner: CliRunner, deploy_root: Path,
                                        artifact_tarball: Path) -> None:
        result = runner.invoke(cli, _deploy_args(
            deploy_root, artifact_tarball, "--repo", "https://example.com/api.git"
        ))

        assert result.exit_code == 1
        assert "mutually exclusive" in result.output

    @pytest.mark.parametrize("extra", [
        ["--timeout", "abc"],
        ["--keep", "many"],
        ["--no-such-flag"],
    ])
    def test_usage_errors_exit_with_config_code(self, runner: CliRunner, deploy_root: Path,
                                                artifact_tarball: Path, extra: List[str]) -> None:
        result = runner.invoke(cli, _deploy_args(deploy_root, artifact_tarball, *extra))

        assert result.exit_code == 1, result.output
        assert not (deploy_root / "api").exists()

    def test_nonexistent_artifact_is_usage_error(self, runner: CliRunner, deploy_root: Path,
                                                 tmp_path: Path) -> None:
        result = runner.invoke(cli, _deploy_args(deploy_root, tmp_path / "nope.tar.gz"))

        assert result.exit_code == 1, result.output
        assert "nope.tar.gz" in result.output

    def test_config_file_with_flag_override(self, tmp_path: Path, deploy_root: Path,
                                            artifact_tarball: Path) -> None:
        config = tmp_path / "api.yml"
        config.write_text(
            f"app: api\nroot: {deploy_root}\nhealth_url: {URL}\nkeep: 1\n",
            encoding="utf-8",
        )

        for _ in range(3):
            result = _invoke([
                "deploy", "--config", str(config), "--artifact", str(artifact_tarball), "-y",
            ])
            assert result.exit_code == 0, result.output

        assert len(ReleaseStore(deploy_root / "api").list_releases()) == 2

    def test_interrupted(self, deploy_root: Path, artifact_tarball: Path) -> None:
        with patch.object(DeployService, "deploy", new=AsyncMock(side_effect=asyncio.CancelledError())):
            result = CliRunner().invoke(cli, _deploy_args(deploy_root, artifact_tarball))

        assert result.exit_code == 130
        assert "interrupted" in result.output


# ---------------------------------------------------------------------------
# releases / switch
# ---------------------------------------------------------------------------


class TestReleaseCommands:
    """'releases' and 'switch'."""

    def test_releases_table(self, runner: CliRunner, deploy_root: Path,
                            artifact_tarball: Path) -> None:
        _invoke(_deploy_args(deploy_root, artifact_tarball))
        current = ReleaseStore(deploy_root / "api").get_current()

        result = runner.invoke(cli, ["releases", "--app", "api", "--root", str(deploy_root)])

        assert result.exit_code == 0, result.output
        assert current.id in result.output

    def test_releases_json(self, runner: CliRunner, deploy_root: Path,
                           artifact_tarball: Path) -> None:
        _invoke(_deploy_args(deploy_root, artifact_tarball))
        _invoke(_deploy_args(deploy_root, artifact_tarball))

        result = runner.invoke(cli, [
            "releases", "--app", "api", "--root", str(deploy_root), "--json",
        ])

        data = json.loads(result.output)
        assert data["app"] == "api"
        assert len(data["releases"]) == 2
        assert data["current"] == data["releases"][0]["id"]

    def test_releases_empty(self, runner: CliRunner, deploy_root: Path) -> None:
        result = runner.invoke(cli, ["releases", "--app", "api", "--root", str(deploy_root)])

        assert result.exit_code == 0
        assert "No releases found" in result.output

    def test_switch(self, runner: CliRunner, deploy_root: Path, artifact_tarball: Path) -> None:
        _invoke(_deploy_args(deploy_root, artifact_tarball))
        store = ReleaseStore(deploy_root / "api")
        first = store.get_current()
        _invoke(_deploy_args(deploy_root, artifact_tarball))
        assert store.get_current() != first

        result = runner.invoke(cli, [
            "switch", "--app", "api", "--root", str(deploy_root), "--release", first.id, "-y",
        ])

        assert result.exit_code == 0, result.output
        assert store.get_current() == first

    def test_switch_unknown_release(self, runner: CliRunner, deploy_root: Path) -> None:
        result = runner.invoke(cli, [
            "switch", "--app", "api", "--root", str(deploy_root),
            "--release", "20000101000000000000", "-y",
        ])

        assert result.exit_code == 1
        assert "Release not found" in result.output

    def test_switch_without_release_is_usage_error(self, runner: CliRunner, deploy_root: Path) -> None:
        result = runner.invoke(cli, ["switch", "--app", "api", "--root", str(deploy_root), "-y"])

        assert result.exit_code == 1
        assert "--release" in result.output

    def test_unknown_command_is_usage_error(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["rollout"])

        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# doctor
# ---------------------------------------------------------------------------


class TestDoctorCommand:
    """'doctor' diagnostics with tool lookups patched."""

    def test_all_required_checks_pass(self, runner: CliRunner, tmp_path: Path) -> None:
        with patch("release_deploy.cli.commands.doctor.command_exists", return_value=True), \
                patch("release_deploy.cli.commands.doctor.is_git_available", return_value=True), \
                patch("release_deploy.core.supervisor.command_exists", return_value=True):
            result = runner.invoke(cli, ["doctor", "--root", str(tmp_path / "new-root")])

        assert result.exit_code == 0, result.output
        assert "All required checks passed" in result.output

    def test_optional_tools_missing_still_pass(self, runner: CliRunner, tmp_path: Path) -> None:
        with patch("release_deploy.cli.commands.doctor.command_exists",
                   side_effect=lambda name: name == "bash"), \
                patch("release_deploy.cli.commands.doctor.is_git_available", return_value=False):
            result = runner.invoke(cli, ["doctor", "--root", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "SKIP" in result.output

    def test_missing_shell_fails(self, runner: CliRunner, tmp_path: Path) -> None:
        with patch("release_deploy.cli.commands.doctor.command_exists", return_value=False), \
                patch("release_deploy.cli.commands.doctor.is_git_available", return_value=False):
            result = runner.invoke(cli, ["doctor", "--root", str(tmp_path)])

        assert result.exit_code == 1
        assert "check(s) failed" in result.output
