"""Configuration data models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import (
    ArtifactKind,
    SupervisorKind,
    CURRENT_LINK_NAME,
    DEFAULT_GIT_REF,
    DEFAULT_KEEP,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_ROOT,
    DEFAULT_SHELL,
    DEFAULT_TIMEOUT,
    DEPLOYMENT_LOCK_FILE,
    RELEASES_DIR,
)


@dataclass(frozen=True)
class ArtifactSource:
    """Where a release's file tree comes from"""

    kind: ArtifactKind
    path: Optional[str] = None
    repo_url: Optional[str] = None
    ref: str = DEFAULT_GIT_REF

    @classmethod
    def from_path(cls, path: str) -> 'ArtifactSource':
        """Archive or directory source, guessed from the path

        Existing directories are directory sources; anything else is treated
        as an archive and checked when staging.
        """
        if Path(path).is_dir():
            return cls(kind=ArtifactKind.DIRECTORY, path=path)
        return cls(kind=ArtifactKind.ARCHIVE, path=path)

    @classmethod
    def from_repo(cls, repo_url: str, ref: Optional[str] = None) -> 'ArtifactSource':
        return cls(kind=ArtifactKind.GIT, repo_url=repo_url, ref=ref or DEFAULT_GIT_REF)

    def describe(self) -> str:
        """Human readable summary"""
        if self.kind == ArtifactKind.GIT:
            return f"git {self.repo_url}@{self.ref}"
        return f"{self.kind.value} {self.path}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        if self.kind == ArtifactKind.GIT:
            return {"repo": self.repo_url, "ref": self.ref}
        return {"artifact": self.path}


@dataclass(frozen=True)
class SupervisorSpec:
    """Which supervision backend starts the application"""

    kind: SupervisorKind = SupervisorKind.NONE
    unit: Optional[str] = None
    compose_file: Optional[str] = None
    compose_project: Optional[str] = None
    sudo: bool = False

    def describe(self) -> str:
        """Human readable summary"""
        if self.kind == SupervisorKind.SYSTEMD:
            return f"systemd unit {self.unit}"
        if self.kind == SupervisorKind.COMPOSE:
            return f"compose {self.compose_file} (project {self.compose_project})"
        return "none (external supervisor)"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {}
        if self.unit:
            data["systemd"] = self.unit
        if self.compose_file:
            data["compose"] = self.compose_file
        if self.compose_project:
            data["compose_project"] = self.compose_project
        if self.sudo:
            data["sudo"] = True
        return data


@dataclass(frozen=True)
class DeploymentConfig:
    """Immutable settings for one deployment run"""

    app: str
    health_url: Optional[str]
    artifact: Optional[ArtifactSource]
    root: Path = Path(DEFAULT_ROOT)
    timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    keep: int = DEFAULT_KEEP
    env_file: Optional[str] = None
    pre_hook: Optional[str] = None
    post_hook: Optional[str] = None
    supervisor: SupervisorSpec = field(default_factory=SupervisorSpec)
    shell: str = DEFAULT_SHELL

    @property
    def app_root(self) -> Path:
        return Path(self.root) / self.app

    @property
    def releases_dir(self) -> Path:
        return self.app_root / RELEASES_DIR

    @property
    def current_link(self) -> Path:
        return self.app_root / CURRENT_LINK_NAME

    @property
    def lock_path(self) -> Path:
        return self.app_root / DEPLOYMENT_LOCK_FILE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the flat mapping used by configuration files"""
        data: Dict[str, Any] = {
            "app": self.app,
            "root": str(self.root),
            "health_url": self.health_url,
            "timeout": self.timeout,
            "poll_interval": self.poll_interval,
            "request_timeout": self.request_timeout,
            "keep": self.keep,
            "shell": self.shell,
        }
        if self.artifact:
            data.update(self.artifact.to_dict())
        for key in ("env_file", "pre_hook", "post_hook"):
            value = getattr(self, key)
            if value:
                data[key] = value
        data.update(self.supervisor.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeploymentConfig':
        """Create from the flat mapping used by configuration files and flags

        Conflicting sources are not rejected here; see ValidationEngine.
        """
        artifact = None
        if data.get("artifact"):
            artifact = ArtifactSource.from_path(str(data["artifact"]))
        elif data.get("repo"):
            artifact = ArtifactSource.from_repo(data["repo"], data.get("ref"))

        unit = data.get("systemd")
        compose_file = data.get("compose")
        if compose_file:
            kind = SupervisorKind.COMPOSE
        elif unit:
            kind = SupervisorKind.SYSTEMD
        else:
            kind = SupervisorKind.NONE
        supervisor = SupervisorSpec(
            kind=kind,
            unit=unit,
            compose_file=compose_file,
            compose_project=data.get("compose_project") or (data.get("app") if compose_file else None),
            sudo=bool(data.get("sudo", False)),
        )

        return cls(
            app=data.get("app") or "",
            health_url=data.get("health_url"),
            artifact=artifact,
            root=Path(data.get("root") or DEFAULT_ROOT),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
            poll_interval=float(data.get("poll_interval", DEFAULT_POLL_INTERVAL)),
            request_timeout=float(data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)),
            keep=int(data.get("keep", DEFAULT_KEEP)),
            env_file=data.get("env_file"),
            pre_hook=data.get("pre_hook"),
            post_hook=data.get("post_hook"),
            supervisor=supervisor,
            shell=data.get("shell") or DEFAULT_SHELL,
        )
