"""Shared pytest fixtures for Hetzner API tests.

Fixtures are organized into categories:
- Environment isolation
- Sample API payloads (actions, paginated pages)
- Response builders and mock HTTP clients
- Client configurations

Usage:
    # In any test file, fixtures are automatically available:
    async def test_example(mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(body={"server": {}})
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import AsyncMock

import pytest

from hetzner_api.clients.cloud import CloudConfig
from hetzner_api.clients.robot import RobotConfig
from hetzner_api.utils.http_client import HTTPClient, HTTPResponse

# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_hetzner_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove HETZNER_* variables and reset cached settings around each test."""
    import os

    from hetzner_api.config import get_settings

    for key in list(os.environ):
        if key.startswith("HETZNER_"):
            monkeypatch.delenv(key, raising=False)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Sample Payload Fixtures
# =============================================================================


@pytest.fixture
def sample_action_data() -> dict[str, Any]:
    """A finished Cloud action as returned by GET /actions/{id}."""
    return {
        "id": 13,
        "command": "start_server",
        "status": "success",
        "progress": 100,
        "started": "2016-01-30T23:55:00+00:00",
        "finished": "2016-01-30T23:56:00+00:00",
        "resources": [{"id": 42, "type": "server"}],
        "error": None,
    }


@pytest.fixture
def running_action_data(sample_action_data: dict[str, Any]) -> dict[str, Any]:
    """The same action while still running."""
    return {
        **sample_action_data,
        "status": "running",
        "progress": 40,
        "finished": None,
    }


@pytest.fixture
def make_page() -> Callable[..., dict[str, Any]]:
    """Factory for a paginated list response.

    Usage:
        page = make_page("servers", [{"id": 1}], page=1, next_page=2)
    """

    def _make(
        key: str,
        items: list[Any],
        *,
        page: int = 1,
        next_page: int | None = None,
        per_page: int = 50,
    ) -> dict[str, Any]:
        return {
            key: items,
            "meta": {
                "pagination": {
                    "page": page,
                    "per_page": per_page,
                    "previous_page": page - 1 if page > 1 else None,
                    "next_page": next_page,
                    "last_page": None,
                    "total_entries": None,
                }
            },
        }

    return _make


# =============================================================================
# HTTP Fixtures
# =============================================================================


@pytest.fixture
def make_response() -> Callable[..., HTTPResponse]:
    """Factory for HTTPResponse objects.

    Usage:
        response = make_response(429, headers={"Retry-After": "2"})
        response = make_response(body={"server": {"id": 1}})
    """

    def _make(
        status: int = 200,
        body: Any = None,
        *,
        headers: dict[str, str] | None = None,
        raw: bytes | None = None,
        url: str = "https://api.example.com",
        reason: str = "",
    ) -> HTTPResponse:
        if raw is None:
            raw = json.dumps(body).encode() if body is not None else b""
        return HTTPResponse(
            status=status,
            headers=headers or {},
            content=raw,
            url=url,
            reason=reason,
        )

    return _make


@pytest.fixture
def mock_http_client() -> AsyncMock:
    """Async mock standing in for the shared HTTPClient."""
    return AsyncMock(spec=HTTPClient)


# =============================================================================
# Client Configuration Fixtures
# =============================================================================


@pytest.fixture
def robot_config() -> RobotConfig:
    """Robot configuration with test credentials."""
    return RobotConfig(
        user="#ws+test",
        password="secret",
        base_url="https://robot.example.com",
    )


@pytest.fixture
def cloud_config() -> CloudConfig:
    """Cloud configuration with a test token."""
    return CloudConfig(token="test-token", base_url="https://cloud.example.com/v1")
