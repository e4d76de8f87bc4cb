"""Exception definitions for release-deploy"""

from typing import Any, Dict, Optional

from ..constants import ErrorCode


class ReleaseDeployError(Exception):
    """Base exception for release-deploy

    Extra keyword arguments are kept as diagnostic context (release id,
    step name, command, exit status) and rendered after the message.
    """

    def __init__(self, message: str, error_code: str = None, **context: Any):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(ReleaseDeployError):
    """Bad, missing or conflicting configuration"""

    def __init__(self, message: str, **context: Any):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, **context)


class StageFailure(ReleaseDeployError):
    """Artifact acquisition or build error"""

    def __init__(self, message: str, error_code: str = ErrorCode.STAGE_FAILURE, **context: Any):
        super().__init__(message, error_code, **context)


class InvalidArtifact(StageFailure):
    """Artifact path is neither a recognised archive nor a directory"""

    def __init__(self, path: str, **context: Any):
        super().__init__(
            f"Invalid artifact path: {path}",
            ErrorCode.INVALID_ARTIFACT,
            **context
        )
        self.path = path


class HookFailure(ReleaseDeployError):
    """Hook command exited non-zero or terminated abnormally"""

    def __init__(self, command: str, exit_code: int, **context: Any):
        super().__init__(
            f"Hook command failed with exit status {exit_code}",
            ErrorCode.HOOK_FAILURE,
            command=command,
            exit_code=exit_code,
            **context
        )
        self.command = command
        self.exit_code = exit_code


class SwitchFailure(ReleaseDeployError):
    """Current pointer could not be updated"""

    def __init__(self, message: str, **context: Any):
        super().__init__(message, ErrorCode.SWITCH_FAILURE, **context)


class SupervisorFailure(ReleaseDeployError):
    """Supervisor start, restart or compose-up error"""

    def __init__(self, message: str, **context: Any):
        super().__init__(message, ErrorCode.SUPERVISOR_FAILURE, **context)


class HealthTimeout(ReleaseDeployError):
    """No successful health probe within the deadline"""

    def __init__(self, url: str, timeout: float, attempts: int,
                 last_error: Optional[str] = None, **context: Any):
        super().__init__(
            f"Health check of {url} did not succeed within {timeout:g}s",
            ErrorCode.HEALTH_TIMEOUT,
            attempts=attempts,
            last_error=last_error,
            **context
        )
        self.url = url
        self.timeout = timeout
        self.attempts = attempts


class RollbackUnavailable(ReleaseDeployError):
    """Health failed but there is no earlier release to restore"""

    def __init__(self, release_id: str, **context: Any):
        super().__init__(
            f"No previous release to roll back to from {release_id}",
            ErrorCode.ROLLBACK_UNAVAILABLE,
            release=release_id,
            **context
        )
        self.release_id = release_id


class ConcurrentDeploymentDetected(ReleaseDeployError):
    """Another deployment holds the application lock"""

    def __init__(self, app_root: str, holder: Optional[str] = None):
        super().__init__(
            f"Another deployment is in progress for {app_root}",
            ErrorCode.CONCURRENT_DEPLOYMENT,
            holder=holder
        )
        self.app_root = app_root


class ReleaseNotFoundError(ReleaseDeployError):
    """Release id not present in the release store"""

    def __init__(self, release_id: str):
        super().__init__(f"Release not found: {release_id}", ErrorCode.RELEASE_NOT_FOUND)
        self.release_id = release_id
