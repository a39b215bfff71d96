"""Desired-state configuration for identity-sync."""

from .models import DesiredConfig, ResourceConfig
from .parser import Config, ConfigValidationError

__all__ = [
    "DesiredConfig",
    "ResourceConfig",
    "Config",
    "ConfigValidationError",
]
