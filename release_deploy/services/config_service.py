"""Configuration loading service"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..api.exceptions import ConfigurationError
from ..core.validation_engine import ValidationEngine
from ..models import DeploymentConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Builds a validated DeploymentConfig from a YAML file and flag overrides

    Values given on the command line win over the file. Unset flags (None)
    never override file values.
    """

    def __init__(self, validation_engine: Optional[ValidationEngine] = None):
        """Initialize config service

        Args:
            validation_engine: Validation engine instance
        """
        self.validation_engine = validation_engine or ValidationEngine()

    def load_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load a configuration file

        Environment variables (``$VAR`` / ``${VAR}``) are expanded before
        parsing.

        Args:
            config_path: YAML file path

        Returns:
            Configuration mapping

        Raises:
            ConfigurationError: If the file is missing or not a YAML mapping
        """
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found: {path}")

        with open(path, 'r') as f:
            content = f.read()

        # Simple environment variable expansion
        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {path}")

        logger.debug(f"Loaded configuration from {path}")
        # Accept dashed keys, matching the CLI flag spelling
        return {str(key).replace('-', '_'): value for key, value in data.items()}

    def build(self,
              config_path: Optional[Union[str, Path]] = None,
              overrides: Optional[Dict[str, Any]] = None,
              for_deploy: bool = True) -> DeploymentConfig:
        """Merge file and flags, validate, and build the configuration

        Args:
            config_path: Optional YAML file
            overrides: Values from command line flags
            for_deploy: Also require a health URL and an artifact source;
                commands that only address existing releases pass False

        Returns:
            Validated DeploymentConfig

        Raises:
            ConfigurationError: If anything is missing, invalid or conflicting
        """
        data: Dict[str, Any] = self.load_file(config_path) if config_path else {}

        overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        # An artifact source given on the command line replaces the file's
        if "artifact" in overrides or "repo" in overrides:
            data.pop("artifact", None)
            data.pop("repo", None)
        if "systemd" in overrides or "compose" in overrides:
            data.pop("systemd", None)
            data.pop("compose", None)
        data.update(overrides)

        mapping_result = self.validation_engine.validate_mapping(data)
        mapping_result.raise_if_invalid()

        config = DeploymentConfig.from_dict(data)
        if for_deploy:
            result = self.validation_engine.validate_config(config)
        else:
            result = self.validation_engine.validate_target(config)
        result.merge(mapping_result)
        for warning in result.warnings:
            logger.warning(warning)
        result.raise_if_invalid()

        return config
