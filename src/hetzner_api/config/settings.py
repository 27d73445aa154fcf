"""Client configuration using pydantic-settings.

Settings are read from ``HETZNER_*`` environment variables. A ``.env`` file at
the project root is loaded first if present, so local credentials never have
to be exported by hand.

Usage:
    from hetzner_api.config import cloud_config, robot_config

    config = cloud_config()
    if config is not None:
        async with CloudClient(config) as cloud:
            ...
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from hetzner_api.clients.cloud import DEFAULT_CLOUD_URL, CloudConfig
from hetzner_api.clients.robot import DEFAULT_ROBOT_URL, RobotConfig

logger = logging.getLogger(__name__)

# Load .env file from project root
_env_path = Path(__file__).resolve().parents[3] / ".env"
if _env_path.exists():
    load_dotenv(_env_path)
    logger.debug(f"Loaded environment from {_env_path}")


class ConfigurationError(Exception):
    """Raised when the environment does not configure any usable API."""

    pass


class HetznerSettings(BaseSettings):
    """Credentials and tuning for the Hetzner clients.

    All settings can be overridden via environment variables.
    The prefix HETZNER_ is used for all settings.

    Example:
        export HETZNER_CLOUD_TOKEN=...
        export HETZNER_ROBOT_USER=#ws+abc
        export HETZNER_ROBOT_PASSWORD=...
        export HETZNER_MODE=read_write
    """

    model_config = SettingsConfigDict(
        env_prefix="HETZNER_",
        case_sensitive=False,
    )

    # Cloud API
    cloud_token: str | None = None
    cloud_url: str = DEFAULT_CLOUD_URL

    # Robot API
    robot_user: str | None = None
    robot_password: str | None = None
    robot_url: str = DEFAULT_ROBOT_URL
    robot_max_concurrent: int = 2
    robot_max_attempts: int = 3

    # Shared
    mode: Literal["read_only", "read_write"] = "read_only"
    timeout: float = 30.0

    @property
    def read_only(self) -> bool:
        """Whether mutating calls should be refused."""
        return self.mode == "read_only"

    @property
    def has_cloud(self) -> bool:
        return bool(self.cloud_token)

    @property
    def has_robot(self) -> bool:
        return bool(self.robot_user and self.robot_password)


@lru_cache
def get_settings() -> HetznerSettings:
    """Get cached settings instance.

    Returns:
        HetznerSettings loaded from environment.
    """
    return HetznerSettings()


def cloud_config(settings: HetznerSettings | None = None) -> CloudConfig | None:
    """Build the Cloud client configuration, or None without a token."""
    settings = settings or get_settings()
    if not settings.has_cloud:
        return None
    assert settings.cloud_token is not None
    return CloudConfig(
        token=settings.cloud_token,
        base_url=settings.cloud_url,
        timeout=settings.timeout,
    )


def robot_config(settings: HetznerSettings | None = None) -> RobotConfig | None:
    """Build the Robot client configuration, or None without credentials."""
    settings = settings or get_settings()
    if not settings.has_robot:
        return None
    assert settings.robot_user is not None
    assert settings.robot_password is not None
    return RobotConfig(
        user=settings.robot_user,
        password=settings.robot_password,
        base_url=settings.robot_url,
        timeout=settings.timeout,
        max_attempts=settings.robot_max_attempts,
        max_concurrent=settings.robot_max_concurrent,
    )


def require_credentials(settings: HetznerSettings | None = None) -> HetznerSettings:
    """Ensure at least one API is configured.

    Raises:
        ConfigurationError: If neither Cloud nor Robot credentials are set.
    """
    settings = settings or get_settings()
    if not settings.has_cloud and not settings.has_robot:
        raise ConfigurationError(
            "No API credentials configured. Set HETZNER_CLOUD_TOKEN and/or "
            "HETZNER_ROBOT_USER and HETZNER_ROBOT_PASSWORD."
        )
    return settings


def describe(settings: HetznerSettings | None = None) -> str:
    """Render a redacted summary of the active configuration."""
    settings = settings or get_settings()
    lines = [f"Mode: {settings.mode}"]

    if settings.has_cloud:
        lines.append(f"Cloud API: configured ({settings.cloud_url})")
    else:
        lines.append("Cloud API: not configured")

    if settings.has_robot:
        lines.append(
            f"Robot API: configured as {settings.robot_user} ({settings.robot_url})"
        )
    else:
        lines.append("Robot API: not configured")

    return "\n".join(lines)
