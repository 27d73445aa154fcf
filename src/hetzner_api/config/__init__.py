"""Configuration management."""

from hetzner_api.config.settings import (
    ConfigurationError,
    HetznerSettings,
    cloud_config,
    describe,
    get_settings,
    require_credentials,
    robot_config,
)

__all__ = [
    "ConfigurationError",
    "HetznerSettings",
    "cloud_config",
    "describe",
    "get_settings",
    "require_credentials",
    "robot_config",
]
