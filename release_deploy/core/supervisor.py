# release_deploy/core/supervisor.py
"""Supervision backends that start a release"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from ..api.exceptions import SupervisorFailure
from ..constants import RELEASE_COMPOSE_FILE, SupervisorKind
from ..models import DeploymentConfig, Release, SupervisorSpec
from ..utils.file_utils import copy_file
from ..utils.process_utils import CommandRunner, command_exists, run_command

logger = logging.getLogger(__name__)


class Supervisor(ABC):
    """Abstract base class for supervision backends"""

    kind: SupervisorKind = SupervisorKind.NONE

    def __init__(self, spec: SupervisorSpec, runner: CommandRunner = run_command):
        """
        Initialize supervisor

        Args:
            spec: Supervisor selection from the deployment configuration
            runner: Command runner
        """
        self.spec = spec
        self._runner = runner

    @abstractmethod
    async def start(self, release: Release, rollback: bool = False) -> None:
        """
        Start or restart the application for a release

        Args:
            release: Release that current now points at
            rollback: True when restoring a previous release

        Raises:
            SupervisorFailure: If any step fails
        """
        pass

    def describe(self) -> str:
        return self.spec.describe()

    def _prefix(self, args: Sequence[str]) -> List[str]:
        return (['sudo', '-n'] if self.spec.sudo else []) + list(args)

    async def _run_step(self, args: Sequence[str], release: Release,
                        cwd: Optional[Path] = None) -> None:
        try:
            result = await self._runner(self._prefix(args), cwd=cwd)
        except OSError as e:
            raise SupervisorFailure(
                f"Could not run {args[0]}: {e}",
                release=release.id,
                backend=self.kind.value
            ) from e

        if not result.success:
            raise SupervisorFailure(
                f"{self.kind.value} command failed",
                release=release.id,
                command=result.command,
                exit_code=result.returncode,
                output=result.tail(5) or None
            )


class NullSupervisor(Supervisor):
    """No process manager; something else follows the current pointer"""

    kind = SupervisorKind.NONE

    async def start(self, release: Release, rollback: bool = False) -> None:
        logger.info("No process manager configured; assuming external supervisor")


class SystemdSupervisor(Supervisor):
    """Service managed by a systemd unit"""

    kind = SupervisorKind.SYSTEMD

    async def start(self, release: Release, rollback: bool = False) -> None:
        unit = self.spec.unit
        logger.info(f"Reloading systemd and restarting unit {unit}")
        await self._run_step(['systemctl', 'daemon-reload'], release)
        await self._run_step(['systemctl', 'restart', unit], release)


class ComposeSupervisor(Supervisor):
    """Stack managed by docker compose

    The manifest is copied into the release so the stack definition travels
    with it; a rollback reuses the copy already stored in that release.
    """

    kind = SupervisorKind.COMPOSE

    @staticmethod
    def compose_command() -> List[str]:
        """Prefer the compose plugin, fall back to the standalone binary"""
        if command_exists('docker'):
            return ['docker', 'compose']
        if command_exists('docker-compose'):
            return ['docker-compose']
        return ['docker', 'compose']

    def materialize_manifest(self, release: Release, rollback: bool = False) -> Path:
        """Place the compose manifest inside the release directory

        Args:
            release: Target release
            rollback: Keep an existing copy instead of overwriting it

        Returns:
            Path of the manifest inside the release
        """
        destination = release.path / RELEASE_COMPOSE_FILE
        if rollback and destination.is_file():
            logger.info(f"Reusing compose manifest stored in release {release.id}")
            return destination

        source = Path(self.spec.compose_file)
        if not source.is_file():
            raise SupervisorFailure(
                "Compose manifest not found",
                release=release.id,
                path=str(source)
            )
        try:
            copy_file(source, destination)
        except OSError as e:
            raise SupervisorFailure(
                f"Could not copy compose manifest: {e}",
                release=release.id
            ) from e
        return destination

    async def start(self, release: Release, rollback: bool = False) -> None:
        manifest = self.materialize_manifest(release, rollback)
        project = self.spec.compose_project
        base = self.compose_command() + ['-p', project, '-f', manifest.name]

        logger.info(f"Starting compose project {project} from release {release.id}")
        await self._run_step(base + ['pull'], release, cwd=release.path)
        await self._run_step(base + ['up', '-d', '--build'], release, cwd=release.path)


_SUPERVISORS = {
    SupervisorKind.NONE: NullSupervisor,
    SupervisorKind.SYSTEMD: SystemdSupervisor,
    SupervisorKind.COMPOSE: ComposeSupervisor,
}


def create_supervisor(config: DeploymentConfig, runner: CommandRunner = run_command) -> Supervisor:
    """
    Create the supervisor selected by the configuration

    Args:
        config: Deployment configuration
        runner: Command runner

    Returns:
        Supervisor instance
    """
    supervisor_class = _SUPERVISORS[config.supervisor.kind]
    return supervisor_class(config.supervisor, runner)
