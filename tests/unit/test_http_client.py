"""Tests for the HTTP client utility."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from hetzner_api.errors import ErrorKind, NetworkError, RequestTimeoutError
from hetzner_api.utils.http_client import HTTPClient, HTTPClientConfig, HTTPResponse


def _mock_aiohttp_response(
    status: int = 200,
    body: bytes = b"{}",
    headers: dict[str, str] | None = None,
    url: str = "https://api.example.com/data",
) -> AsyncMock:
    response = AsyncMock()
    response.status = status
    response.headers = headers or {}
    response.url = url
    response.reason = "OK"
    response.read = AsyncMock(return_value=body)
    return response


class TestHTTPClientConfig:
    """Tests for HTTPClientConfig dataclass."""

    def test_default_values(self) -> None:
        """Test that default configuration values are set correctly."""
        config = HTTPClientConfig()

        assert config.timeout == 30.0
        assert config.connect_timeout == 10.0
        assert config.user_agent == "hetzner-api/0.1"
        assert config.max_connections == 100
        assert config.max_connections_per_host == 10
        assert config.verify_ssl is True

    def test_config_is_immutable(self) -> None:
        """Test that HTTPClientConfig is frozen (immutable)."""
        config = HTTPClientConfig()

        with pytest.raises(AttributeError):
            config.timeout = 999.0  # type: ignore[misc]

    def test_default_headers_property(self) -> None:
        """Test that default_headers returns correct values."""
        headers = HTTPClientConfig(user_agent="TestAgent/1.0").default_headers

        assert headers["User-Agent"] == "TestAgent/1.0"
        assert headers["Accept"] == "application/json"


class TestHTTPResponse:
    """Tests for HTTPResponse dataclass."""

    def test_json_parsing(self) -> None:
        """Test parsing response content as JSON."""
        response = HTTPResponse(
            status=200,
            headers={},
            content=b'{"name": "test", "value": 123}',
            url="https://example.com",
        )

        assert response.json() == {"name": "test", "value": 123}

    def test_invalid_json_raises(self) -> None:
        """Test that invalid JSON raises ValueError."""
        response = HTTPResponse(
            status=200, headers={}, content=b"<html>", url="https://example.com"
        )

        with pytest.raises(ValueError, match="Invalid JSON response"):
            response.json()

    def test_json_or_none(self) -> None:
        """Test json_or_none swallows decode failures."""
        response = HTTPResponse(
            status=502, headers={}, content=b"Bad Gateway", url="https://example.com"
        )

        assert response.json_or_none() is None

    def test_is_success(self) -> None:
        """Test 2xx detection."""
        for status in (200, 201, 204, 299):
            response = HTTPResponse(status=status, headers={}, content=b"", url="")
            assert response.is_success

        for status in (199, 300, 404, 429, 500):
            response = HTTPResponse(status=status, headers={}, content=b"", url="")
            assert not response.is_success

    def test_is_empty(self) -> None:
        """Test empty detection for 204 and zero-length bodies."""
        assert HTTPResponse(status=204, headers={}, content=b"", url="").is_empty
        assert HTTPResponse(status=200, headers={}, content=b"", url="").is_empty
        assert not HTTPResponse(status=200, headers={}, content=b"{}", url="").is_empty

    def test_header_lookup_is_case_insensitive(self) -> None:
        """Test header() ignores case."""
        response = HTTPResponse(
            status=200,
            headers={"RateLimit-Remaining": "42"},
            content=b"",
            url="",
        )

        assert response.header("ratelimit-remaining") == "42"
        assert response.header("RATELIMIT-REMAINING") == "42"
        assert response.header("X-Missing") is None

    def test_retry_after_header(self) -> None:
        """Test parsing Retry-After header."""
        response = HTTPResponse(
            status=429, headers={"retry-after": "2"}, content=b"", url=""
        )

        assert response.retry_after == 2.0

    def test_retry_after_missing_or_invalid(self) -> None:
        """Test Retry-After is None when absent or not a number."""
        assert HTTPResponse(status=429, headers={}, content=b"", url="").retry_after is None

        dated = HTTPResponse(
            status=429,
            headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"},
            content=b"",
            url="",
        )
        assert dated.retry_after is None


@pytest.mark.asyncio
class TestHTTPClient:
    """Tests for HTTPClient class."""

    async def test_client_context_manager(self) -> None:
        """Test that client works as async context manager."""
        async with HTTPClient() as client:
            assert client.is_open

        assert not client.is_open

    async def test_client_close_is_idempotent(self) -> None:
        """Test that calling close multiple times is safe."""
        client = HTTPClient()
        await client._create_session()
        assert client.is_open

        await client.close()
        await client.close()
        assert not client.is_open

    async def test_request_success(self) -> None:
        """Test successful request returns a populated HTTPResponse."""
        mock_response = _mock_aiohttp_response(
            body=b'{"servers": []}',
            headers={"RateLimit-Remaining": "3599"},
        )

        with patch.object(aiohttp.ClientSession, "request") as mock_request:
            mock_request.return_value.__aenter__.return_value = mock_response

            async with HTTPClient() as client:
                response = await client.request("GET", "https://api.example.com/data")

            assert response.status == 200
            assert response.json() == {"servers": []}
            assert response.header("ratelimit-remaining") == "3599"
            assert response.reason == "OK"

    async def test_error_status_is_returned_not_raised(self) -> None:
        """Test that HTTP error statuses are left to the caller."""
        mock_response = _mock_aiohttp_response(status=404, body=b'{"error": {}}')

        with patch.object(aiohttp.ClientSession, "request") as mock_request:
            mock_request.return_value.__aenter__.return_value = mock_response

            async with HTTPClient() as client:
                response = await client.request("GET", "https://api.example.com/x")

            assert response.status == 404
            assert not response.is_success

    async def test_request_passes_options(self) -> None:
        """Test headers, params, data and timeout are forwarded to aiohttp."""
        mock_response = _mock_aiohttp_response()

        with patch.object(aiohttp.ClientSession, "request") as mock_request:
            mock_request.return_value.__aenter__.return_value = mock_response

            async with HTTPClient() as client:
                await client.request(
                    "POST",
                    "https://api.example.com/data",
                    headers={"Authorization": "Basic abc"},
                    params={"q": "test"},
                    data="a=1&b=2",
                    timeout=5.0,
                )

            call_args = mock_request.call_args
            assert call_args[0] == ("POST", "https://api.example.com/data")
            call_kwargs = call_args[1]
            assert call_kwargs["headers"]["Authorization"] == "Basic abc"
            assert call_kwargs["params"] == {"q": "test"}
            assert call_kwargs["data"] == "a=1&b=2"
            assert call_kwargs["timeout"].total == 5.0
            assert "json" not in call_kwargs

    async def test_request_with_json(self) -> None:
        """Test JSON bodies are forwarded."""
        mock_response = _mock_aiohttp_response(status=201)

        with patch.object(aiohttp.ClientSession, "request") as mock_request:
            mock_request.return_value.__aenter__.return_value = mock_response

            async with HTTPClient() as client:
                await client.request(
                    "POST", "https://api.example.com/create", json={"name": "web1"}
                )

            assert mock_request.call_args[1]["json"] == {"name": "web1"}

    async def test_timeout_error_handling(self) -> None:
        """Test that timeouts become RequestTimeoutError."""
        with patch.object(aiohttp.ClientSession, "request") as mock_request:
            mock_request.return_value.__aenter__.side_effect = asyncio.TimeoutError()

            async with HTTPClient() as client:
                with pytest.raises(RequestTimeoutError) as exc_info:
                    await client.request("GET", "https://api.example.com/slow")

            assert exc_info.value.kind is ErrorKind.TIMEOUT
            assert "30s" in str(exc_info.value)

    async def test_server_timeout_error_handling(self) -> None:
        """Test that aiohttp read timeouts also become RequestTimeoutError."""
        with patch.object(aiohttp.ClientSession, "request") as mock_request:
            mock_request.return_value.__aenter__.side_effect = (
                aiohttp.ServerTimeoutError("Timeout on reading data from socket")
            )

            async with HTTPClient() as client:
                with pytest.raises(RequestTimeoutError):
                    await client.request("GET", "https://api.example.com/slow")

    async def test_connection_error_handling(self) -> None:
        """Test that connection failures become NetworkError."""
        with patch.object(aiohttp.ClientSession, "request") as mock_request:
            mock_request.return_value.__aenter__.side_effect = (
                aiohttp.ClientConnectionError("Connection refused")
            )

            async with HTTPClient() as client:
                with pytest.raises(NetworkError) as exc_info:
                    await client.request("GET", "https://api.example.com/data")

            assert exc_info.value.kind is ErrorKind.NETWORK
            assert isinstance(exc_info.value.cause, aiohttp.ClientConnectionError)
