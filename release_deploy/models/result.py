"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..constants import ExitCode
from .release import PruneResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeployState(Enum):
    """Deployment controller states"""
    STAGING = "staging"
    PRE_HOOK = "pre_hook"
    SWITCHING = "switching"
    STARTING = "starting"
    HEALTH_CHECKING = "health_checking"
    SUCCEEDED = "succeeded"
    ROLLING_BACK = "rolling_back"
    COMPLETED = "completed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"


class OutcomeStatus(Enum):
    """Terminal outcome of one deployment run"""
    COMPLETED = "completed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"


@dataclass
class ErrorDetail:
    """Detailed error information"""

    code: str
    message: str
    step: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_exception(cls, error: Exception, step: Optional[DeployState] = None) -> 'ErrorDetail':
        """Build from a ReleaseDeployError or any other exception"""
        return cls(
            code=getattr(error, "error_code", None) or "RD000",
            message=getattr(error, "message", None) or str(error),
            step=step.value if step else None,
            context=dict(getattr(error, "context", {}) or {}),
        )

    def __str__(self) -> str:
        parts = [self.message]
        if self.step:
            parts.append(f"step={self.step}")
        parts.extend(f"{key}={value}" for key, value in self.context.items())
        return ", ".join(parts) if len(parts) > 1 else self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "code": self.code,
            "message": self.message,
            "step": self.step,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass
class StepRecord:
    """One state visited by the controller"""

    state: DeployState
    started_at: datetime = field(default_factory=_utcnow)
    ended_at: Optional[datetime] = None
    ok: Optional[bool] = None
    detail: str = ""

    @property
    def duration(self) -> Optional[float]:
        if self.ended_at:
            return (self.ended_at - self.started_at).total_seconds()
        return None

    def finish(self, ok: bool, detail: str = "") -> None:
        self.ended_at = _utcnow()
        self.ok = ok
        if detail:
            self.detail = detail


@dataclass
class HealthCheckResult:
    """Result of polling a health endpoint"""

    url: str
    success: bool
    attempts: int = 0
    elapsed: float = 0.0
    last_status: Optional[int] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "url": self.url,
            "success": self.success,
            "attempts": self.attempts,
            "elapsed": round(self.elapsed, 3),
            "last_status": self.last_status,
            "last_error": self.last_error,
        }


@dataclass
class HookResult:
    """Result of running a hook command"""

    command: str
    exit_code: int
    output: str = ""
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass
class DeployOutcome:
    """Result of one deployment controller run"""

    app: str
    status: Optional[OutcomeStatus] = None
    state: DeployState = DeployState.STAGING
    release_id: Optional[str] = None
    restored_release_id: Optional[str] = None
    previous_release_id: Optional[str] = None
    error: Optional[ErrorDetail] = None
    warnings: List[str] = field(default_factory=list)
    steps: List[StepRecord] = field(default_factory=list)
    health: Optional[HealthCheckResult] = None
    prune: Optional[PruneResult] = None
    start_time: datetime = field(default_factory=_utcnow)
    end_time: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        return self.status == OutcomeStatus.COMPLETED

    @property
    def is_rolled_back(self) -> bool:
        return self.status == OutcomeStatus.ROLLED_BACK

    @property
    def is_failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    @property
    def exit_code(self) -> int:
        """CLI exit status for this outcome"""
        if self.status == OutcomeStatus.COMPLETED:
            return ExitCode.SUCCESS
        if self.status == OutcomeStatus.ROLLED_BACK:
            return ExitCode.ROLLED_BACK
        return ExitCode.DEPLOY_FAILED

    @property
    def duration(self) -> Optional[float]:
        """Get run duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def enter(self, state: DeployState) -> StepRecord:
        """Record a transition into a new state"""
        self.state = state
        record = StepRecord(state=state)
        self.steps.append(record)
        return record

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def complete(self, status: OutcomeStatus, state: DeployState,
                 error: Optional[ErrorDetail] = None) -> 'DeployOutcome':
        """Mark the run as finished"""
        self.status = status
        self.state = state
        if error is not None:
            self.error = error
        self.end_time = _utcnow()
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "app": self.app,
            "status": self.status.value if self.status else None,
            "state": self.state.value,
            "release_id": self.release_id,
            "restored_release_id": self.restored_release_id,
            "previous_release_id": self.previous_release_id,
            "error": self.error.to_dict() if self.error else None,
            "warnings": self.warnings,
            "steps": [
                {"state": s.state.value, "ok": s.ok, "detail": s.detail, "duration": s.duration}
                for s in self.steps
            ],
            "health": self.health.to_dict() if self.health else None,
            "prune": self.prune.to_dict() if self.prune else None,
            "duration": self.duration,
            "exit_code": self.exit_code,
        }
