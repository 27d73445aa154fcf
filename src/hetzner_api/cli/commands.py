"""Command implementations for the Hetzner CLI.

Each command builds the client it needs from settings, performs one call (or
one paginated walk) and returns the text to print. Failures are left to the
entry point, which renders them with format_error.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from hetzner_api.clients.cloud import CloudClient, with_rate_limit_warning
from hetzner_api.clients.robot import RobotClient
from hetzner_api.config import ConfigurationError, cloud_config, robot_config

if TYPE_CHECKING:
    from hetzner_api.config import HetznerSettings

logger = logging.getLogger(__name__)


def parse_pairs(pairs: list[str] | None) -> dict[str, str]:
    """Parse ``key=value`` arguments into a dict.

    Only the first ``=`` separates key from value, so values may contain ``=``.

    Raises:
        ValueError: If an item has no ``=`` or an empty key
    """
    result: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got '{pair}'")
        result[key] = value
    return result


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def _require_cloud(settings: HetznerSettings) -> CloudClient:
    config = cloud_config(settings)
    if config is None:
        raise ConfigurationError("Cloud API is not configured (HETZNER_CLOUD_TOKEN)")
    return CloudClient(config)


def _require_robot(settings: HetznerSettings) -> RobotClient:
    config = robot_config(settings)
    if config is None:
        raise ConfigurationError(
            "Robot API is not configured (HETZNER_ROBOT_USER, HETZNER_ROBOT_PASSWORD)"
        )
    return RobotClient(config)


async def cloud_get(
    settings: HetznerSettings, path: str, params: dict[str, str]
) -> str:
    """GET a single Cloud resource."""
    async with _require_cloud(settings) as cloud:
        result = await cloud.request(path, params=params)
        return with_rate_limit_warning(_dump(result), cloud)


async def cloud_list(
    settings: HetznerSettings, path: str, key: str, params: dict[str, str]
) -> str:
    """Collect every item of a paginated Cloud collection."""
    async with _require_cloud(settings) as cloud:
        items = await cloud.request_all(path, key, params=params)
        return with_rate_limit_warning(_dump(items), cloud)


async def cloud_wait_action(
    settings: HetznerSettings, action_id: int, timeout: float | None
) -> str:
    """Poll a Cloud action until it finishes."""
    async with _require_cloud(settings) as cloud:
        action = await cloud.poll_action(action_id, timeout)
        return with_rate_limit_warning(_dump(action.to_dict()), cloud)


async def robot_get(
    settings: HetznerSettings, path: str, params: dict[str, str]
) -> str:
    """GET a Robot resource."""
    async with _require_robot(settings) as robot:
        return _dump(await robot.request(path, params=params))


async def robot_post(
    settings: HetznerSettings, path: str, fields: dict[str, str]
) -> str:
    """POST form fields to a Robot endpoint.

    Raises:
        ConfigurationError: If the settings are in read-only mode
    """
    if settings.read_only:
        raise ConfigurationError(
            "Refusing to POST in read_only mode. Set HETZNER_MODE=read_write."
        )
    async with _require_robot(settings) as robot:
        logger.info("Robot POST %s with %d field(s)", path, len(fields))
        return _dump(await robot.request(path, method="POST", body=fields))
