"""Deployer API for deployment operations"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core import ReleaseStore
from ..models import DeployOutcome, DeploymentConfig, Release
from ..services import ConfigService, DeployService
from ..utils.async_utils import run_async


class Deployer:
    """Deployer class for deployment operations

    Example::

        deployer = Deployer.from_options(
            app="api",
            artifact="/tmp/build.tar.gz",
            health_url="http://127.0.0.1:9000/health",
            keep=2,
        )
        outcome = deployer.deploy()
        if outcome.is_rolled_back:
            ...
    """

    def __init__(self, config: DeploymentConfig):
        """
        Initialize deployer

        Args:
            config: Validated deployment configuration
        """
        self.config = config
        self.store = ReleaseStore(config.app_root)

    @classmethod
    def from_options(cls,
                     config_path: Optional[Union[str, Path]] = None,
                     for_deploy: bool = True,
                     **options: Any) -> 'Deployer':
        """
        Build a deployer from a configuration file and/or keyword options

        Args:
            config_path: Optional YAML configuration file
            for_deploy: Require a health URL and an artifact source
            **options: Configuration keys (app, root, artifact, repo, ...)

        Returns:
            Deployer

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        config = ConfigService().build(config_path, options, for_deploy=for_deploy)
        return cls(config)

    def service(self) -> DeployService:
        """Create a deploy service for this configuration"""
        return DeployService(self.config, store=self.store)

    async def deploy_async(self) -> DeployOutcome:
        """Async version of deploy()"""
        return await self.service().deploy()

    def deploy(self) -> DeployOutcome:
        """
        Deploy a new release

        Returns:
            DeployOutcome: COMPLETED, ROLLED_BACK or FAILED
        """
        return run_async(self.deploy_async())

    def switch(self, release_id: str, restart: bool = True) -> Release:
        """
        Switch current to an existing release

        Args:
            release_id: Release identifier
            restart: Re-invoke the configured supervisor

        Returns:
            Release now live

        Raises:
            ReleaseNotFoundError: If the release does not exist
        """
        return run_async(self.service().switch(release_id, restart))

    def list_releases(self) -> List[Release]:
        """List releases, newest first"""
        return self.store.list_releases()

    def current_release(self) -> Optional[Release]:
        """Get the live release"""
        return self.store.get_current()

    def status(self) -> Dict[str, Any]:
        """Summary of the application root"""
        current = self.store.get_current()
        return {
            "app": self.config.app,
            "app_root": str(self.config.app_root),
            "current": current.id if current else None,
            "releases": [r.id for r in self.store.list_releases()],
        }


def deploy(config_path: Optional[Union[str, Path]] = None, **options: Any) -> DeployOutcome:
    """
    Deploy an application

    This is a convenience function that creates a Deployer instance
    and performs the deployment.

    Args:
        config_path: Optional YAML configuration file
        **options: Configuration keys (app, root, artifact, repo, health_url, ...)

    Returns:
        DeployOutcome: Deployment outcome

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    return Deployer.from_options(config_path, **options).deploy()
