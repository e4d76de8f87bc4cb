"""Release Deploy - versioned releases with atomic switch and automatic rollback.

Materializes an application version into a timestamped release directory,
points ``current`` at it atomically, starts it under systemd or docker
compose, verifies an HTTP health endpoint, and rolls back on failure.
"""

from .__version__ import __version__, __version_info__, __author__, __email__, __license__

# Core API
from .api.deployer import Deployer, deploy

# Data models
from .models import DeploymentConfig, DeployOutcome, OutcomeStatus, Release

# Exceptions
from .api.exceptions import (
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

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__email__",
    "__license__",

    # Main classes
    "Deployer",

    # Core API functions
    "deploy",

    # Data models
    "DeploymentConfig",
    "DeployOutcome",
    "OutcomeStatus",
    "Release",

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
