# release_deploy/models/__init__.py
"""Data models for release-deploy"""

from .release import Release, PruneResult
from .config import ArtifactSource, SupervisorSpec, DeploymentConfig
from .result import (
    DeployState,
    OutcomeStatus,
    ErrorDetail,
    StepRecord,
    HealthCheckResult,
    HookResult,
    DeployOutcome,
)

__all__ = [
    # Release models
    "Release",
    "PruneResult",

    # Config models
    "ArtifactSource",
    "SupervisorSpec",
    "DeploymentConfig",

    # Result models
    "DeployState",
    "OutcomeStatus",
    "ErrorDetail",
    "StepRecord",
    "HealthCheckResult",
    "HookResult",
    "DeployOutcome",
]
