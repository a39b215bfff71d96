"""YAML configuration parser for identity-sync."""

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import ValidationError

from identity_sync.utils.errors import ConfigurationError, ErrorContext

from .models import DesiredConfig, ResourceConfig


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, errors: Optional[List[Dict]] = None, **kwargs):
        self.errors = errors or []
        super().__init__(message, **kwargs)

    def __str__(self) -> str:
        """Format validation errors for display."""
        if not self.errors:
            return self.message

        error_lines = [self.message, ""]
        for error in self.errors:
            location = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            error_lines.append(f"  • {location}: {msg}")

        return "\n".join(error_lines)


class Config:
    """Desired-state configuration loaded from identity-sync.yaml."""

    def __init__(self, config_path: str):
        """Initialize configuration manager.

        Args:
            config_path: Path to identity-sync.yaml configuration file
        """
        self.config_path = Path(config_path)
        self.data: Dict = {}
        self.desired: Optional[DesiredConfig] = None

    def load(self) -> "Config":
        """Load and validate configuration from YAML file.

        Returns:
            Self for method chaining

        Raises:
            ConfigValidationError: If configuration is invalid
            FileNotFoundError: If configuration file doesn't exist
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "r") as f:
                self.data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Failed to parse YAML: {e}",
                context=ErrorContext(operation='load'),
                cause=e,
                suggestions=[f"Check the YAML syntax of {self.config_path}"],
            )

        validation_errors = self.validate()
        if validation_errors:
            raise ConfigValidationError(
                f"Configuration validation failed with {len(validation_errors)} error(s)",
                validation_errors,
            )

        self.desired = DesiredConfig(**self.data)
        return self

    def validate(self) -> List[Dict]:
        """Validate configuration against schema.

        Each resource is validated on its own first so that every broken
        resource is reported, not just the first.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not isinstance(self.data, dict):
            return [{"loc": [], "msg": "Configuration must be a mapping"}]

        resources = self.data.get("resources", [])
        if not isinstance(resources, list):
            return [{"loc": ["resources"], "msg": "Resources must be a list"}]

        for idx, resource_data in enumerate(resources):
            if not isinstance(resource_data, dict):
                errors.append({"loc": ["resources", idx], "msg": "Resource must be a mapping"})
                continue
            try:
                ResourceConfig(**resource_data)
            except ValidationError as e:
                for error in e.errors():
                    errors.append(
                        {
                            "loc": ["resources", idx] + list(error["loc"]),
                            "msg": error["msg"],
                        }
                    )

        if errors:
            return errors

        try:
            DesiredConfig(**self.data)
        except ValidationError as e:
            for error in e.errors():
                errors.append({"loc": list(error["loc"]), "msg": error["msg"]})

        return errors

    @property
    def resources(self) -> List[ResourceConfig]:
        return self.desired.resources if self.desired else []

    def get_resource(self, resource_type: str, name: str) -> Optional[ResourceConfig]:
        """Get a resource configuration by type and name.

        Returns:
            Resource configuration or None if not found
        """
        for resource in self.resources:
            if resource.type == resource_type and resource.name == name:
                return resource
        return None

    def to_dict(self) -> Dict:
        """Convert configuration to dictionary."""
        return self.desired.model_dump() if self.desired else {}
