# release_deploy/core/validation_engine.py
"""Validation engine for deployment configuration"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
from urllib.parse import urlparse

import jsonschema

from ..api.exceptions import ConfigurationError
from ..constants import APP_NAME_PATTERN, ArtifactKind, SupervisorKind
from ..models import DeploymentConfig

# Schema for configuration files; CLI flags are typed by click instead
CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "app": {"type": "string", "minLength": 1},
        "root": {"type": "string", "minLength": 1},
        "artifact": {"type": "string", "minLength": 1},
        "repo": {"type": "string", "minLength": 1},
        "ref": {"type": "string", "minLength": 1},
        "health_url": {"type": "string", "minLength": 1},
        "timeout": {"type": "number", "exclusiveMinimum": 0},
        "poll_interval": {"type": "number", "exclusiveMinimum": 0},
        "request_timeout": {"type": "number", "exclusiveMinimum": 0},
        "keep": {"type": "integer", "minimum": 1},
        "env_file": {"type": "string"},
        "pre_hook": {"type": "string"},
        "post_hook": {"type": "string"},
        "systemd": {"type": "string", "minLength": 1},
        "compose": {"type": "string", "minLength": 1},
        "compose_project": {"type": "string", "minLength": 1},
        "sudo": {"type": "boolean"},
        "shell": {"type": "string", "minLength": 1},
    },
}


@dataclass
class ValidationResult:
    """Validation result container"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add error message"""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add warning message"""
        self.warnings.append(message)

    def merge(self, other: 'ValidationResult') -> None:
        """Merge another result into this one"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.is_valid:
            self.is_valid = False

    def raise_if_invalid(self) -> None:
        """Raise ConfigurationError listing every error"""
        if not self.is_valid:
            raise ConfigurationError("; ".join(self.errors))

    def __str__(self) -> str:
        lines = []

        if self.errors:
            lines.append("Errors:")
            for error in self.errors:
                lines.append(f"  ✗ {error}")

        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  ⚠ {warning}")

        if self.is_valid and not self.errors and not self.warnings:
            lines.append("✓ All validations passed")

        return '\n'.join(lines)


class ValidationEngine:
    """Checks configuration once, before any side effect"""

    def validate_mapping(self, data: Dict[str, Any]) -> ValidationResult:
        """
        Validate a flat configuration mapping (file contents merged with flags)

        Catches type errors and mutually exclusive options that are no
        longer visible once the mapping becomes a DeploymentConfig.

        Args:
            data: Configuration mapping

        Returns:
            ValidationResult
        """
        result = ValidationResult()

        try:
            jsonschema.validate(data, CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            location = ".".join(str(p) for p in e.absolute_path) or "configuration"
            result.add_error(f"Invalid {location}: {e.message}")
            return result

        if data.get("artifact") and data.get("repo"):
            result.add_error("--artifact and --repo are mutually exclusive")
        if data.get("systemd") and data.get("compose"):
            result.add_error("--systemd and --compose are mutually exclusive")
        if data.get("compose_project") and not data.get("compose"):
            result.add_warning("compose_project is ignored without compose")
        if data.get("ref") and not data.get("repo"):
            result.add_warning("ref is ignored without repo")

        return result

    def validate_target(self, config: DeploymentConfig) -> ValidationResult:
        """
        Validate what every command needs: the application and its supervisor

        Args:
            config: Configuration to check

        Returns:
            ValidationResult
        """
        result = ValidationResult()

        if not config.app:
            result.add_error("Missing required --app")
        elif not APP_NAME_PATTERN.match(config.app):
            result.add_error(f"Invalid application name: '{config.app}'")

        if config.keep < 1:
            result.add_error("--keep must be at least 1")

        supervisor = config.supervisor
        if supervisor.unit and supervisor.compose_file:
            result.add_error("--systemd and --compose are mutually exclusive")
        elif supervisor.kind == SupervisorKind.SYSTEMD and not supervisor.unit:
            result.add_error("systemd supervisor requires a unit name")
        elif supervisor.kind == SupervisorKind.COMPOSE:
            if not supervisor.compose_file:
                result.add_error("compose supervisor requires a manifest")
            elif not Path(supervisor.compose_file).is_file():
                result.add_error(f"Compose manifest not found: {supervisor.compose_file}")
            if not supervisor.compose_project:
                result.add_error("compose supervisor requires a project name")

        return result

    def validate_config(self, config: DeploymentConfig) -> ValidationResult:
        """
        Validate a deployment configuration

        Args:
            config: Configuration to check

        Returns:
            ValidationResult
        """
        result = self.validate_target(config)

        if not config.health_url:
            result.add_error("Missing required --health-url")
        else:
            parsed = urlparse(config.health_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                result.add_error(f"Health URL must be http(s): '{config.health_url}'")

        if config.artifact is None:
            result.add_error("Provide --artifact or --repo")
        elif config.artifact.kind == ArtifactKind.GIT:
            if not config.artifact.repo_url:
                result.add_error("Git source requires a repository URL")
        elif not config.artifact.path:
            result.add_error("Artifact path is empty")
        elif not Path(config.artifact.path).exists():
            result.add_error(f"Artifact not found: {config.artifact.path}")

        if config.timeout <= 0:
            result.add_error("--timeout must be positive")
        if config.poll_interval <= 0:
            result.add_error("--poll-interval must be positive")
        if config.request_timeout <= 0:
            result.add_error("request_timeout must be positive")

        if config.env_file and not Path(config.env_file).is_file():
            result.add_warning(f"Environment file not found, it will be skipped: {config.env_file}")

        return result

    def ensure_valid(self, config: DeploymentConfig) -> DeploymentConfig:
        """
        Validate and return the configuration

        Raises:
            ConfigurationError: If validation fails
        """
        self.validate_config(config).raise_if_invalid()
        return config
