# release_deploy/api/__init__.py
"""API layer for release-deploy"""

from .exceptions import (
    ReleaseDeployError,
    ConfigurationError,
    StageFailure,
    InvalidArtifact,
    HookFailure,
    SwitchFailure,
    SupervisorFailure,
    HealthTimeout,
    RollbackUnavailable,
    ConcurrentDeploymentDetected,
    ReleaseNotFoundError,
)
from .deployer import Deployer, deploy

__all__ = [
    # Main classes
    "Deployer",

    # Convenience functions
    "deploy",

    # Exceptions
    "ReleaseDeployError",
    "ConfigurationError",
    "StageFailure",
    "InvalidArtifact",
    "HookFailure",
    "SwitchFailure",
    "SupervisorFailure",
    "HealthTimeout",
    "RollbackUnavailable",
    "ConcurrentDeploymentDetected",
    "ReleaseNotFoundError",
]
