"""Core functionality for release-deploy"""

from .release_store import ReleaseStore
from .deploy_lock import DeployLock
from .artifact_stager import ArtifactStager
from .hook_runner import HookRunner
from .supervisor import (
    Supervisor,
    NullSupervisor,
    SystemdSupervisor,
    ComposeSupervisor,
    create_supervisor,
)
from .health_verifier import HealthVerifier
from .validation_engine import ValidationEngine, ValidationResult

__all__ = [
    "ReleaseStore",
    "DeployLock",
    "ArtifactStager",
    "HookRunner",
    "Supervisor",
    "NullSupervisor",
    "SystemdSupervisor",
    "ComposeSupervisor",
    "create_supervisor",
    "HealthVerifier",
    "ValidationEngine",
    "ValidationResult",
]
