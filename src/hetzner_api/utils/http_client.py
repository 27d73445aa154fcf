"""HTTP client utility with connection pooling and async support.

This module provides the transport shared by the Robot and Cloud clients. It
uses aiohttp with a pooled connector and converts transport failures into the
package's transient error classes:

- any timeout (connect, read or total) -> RequestTimeoutError
- any other aiohttp.ClientError         -> NetworkError

HTTP error statuses are *not* raised here; classification of responses is the
job of the API clients.

Example usage:
    async with HTTPClient() as client:
        response = await client.request("GET", "https://api.hetzner.cloud/v1/servers")
        data = response.json()

    # Or with custom configuration
    config = HTTPClientConfig(timeout=60, user_agent="MyApp/1.0")
    async with HTTPClient(config) as client:
        response = await client.request("GET", url)
"""

from __future__ import annotations

import asyncio
import json as jsonlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiohttp

from hetzner_api.errors import NetworkError, RequestTimeoutError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HTTPClientConfig:
    """Configuration for the HTTP client.

    Attributes:
        timeout: Hard per-request timeout in seconds
        connect_timeout: Connection timeout in seconds
        user_agent: User-Agent header value
        max_connections: Maximum number of connections in the pool
        max_connections_per_host: Maximum connections per host
        verify_ssl: Whether to verify SSL certificates
    """

    timeout: float = 30.0
    connect_timeout: float = 10.0
    user_agent: str = "hetzner-api/0.1"
    max_connections: int = 100
    max_connections_per_host: int = 10
    verify_ssl: bool = True

    @property
    def default_headers(self) -> dict[str, str]:
        """Get default headers for all requests."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }


@dataclass
class HTTPResponse:
    """Wrapper for HTTP response data.

    Attributes:
        status: HTTP status code
        headers: Response headers
        content: Raw response content as bytes
        url: Final URL after redirects
        reason: HTTP reason phrase
    """

    status: int
    headers: dict[str, str]
    content: bytes
    url: str
    reason: str = ""

    @classmethod
    async def from_aiohttp_response(
        cls, response: aiohttp.ClientResponse
    ) -> HTTPResponse:
        """Create HTTPResponse from aiohttp response.

        Args:
            response: The aiohttp ClientResponse object

        Returns:
            HTTPResponse with all data extracted
        """
        content = await response.read()
        return cls(
            status=response.status,
            headers=dict(response.headers),
            content=content,
            url=str(response.url),
            reason=response.reason or "",
        )

    def header(self, name: str) -> str | None:
        """Look up a header case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def json(self) -> Any:
        """Parse response content as JSON.

        Returns:
            Parsed JSON data

        Raises:
            ValueError: If content is not valid JSON
        """
        try:
            return jsonlib.loads(self.content.decode("utf-8"))
        except (UnicodeDecodeError, jsonlib.JSONDecodeError) as e:
            raise ValueError(f"Invalid JSON response: {e}") from e

    def json_or_none(self) -> Any:
        """Parse response content as JSON, returning None if it is not JSON."""
        try:
            return self.json()
        except ValueError:
            return None

    @property
    def is_success(self) -> bool:
        """Check if response indicates success (2xx status)."""
        return 200 <= self.status < 300

    @property
    def is_empty(self) -> bool:
        """Check if the response carries no payload (204 or zero-length body)."""
        return self.status == 204 or not self.content

    @property
    def retry_after(self) -> float | None:
        """Get Retry-After header value if present.

        Returns:
            Seconds to wait before retry, or None if not specified
        """
        retry_after = self.header("Retry-After")
        if retry_after is None:
            return None
        try:
            return float(retry_after)
        except ValueError:
            return None


class HTTPClient:
    """Async HTTP client with connection pooling.

    This client manages a connection pool for efficient HTTP requests.
    It should be used as an async context manager to ensure proper
    resource cleanup.

    Example:
        async with HTTPClient() as client:
            response = await client.request("GET", url)
            if response.is_success:
                data = response.json()
    """

    def __init__(self, config: HTTPClientConfig | None = None) -> None:
        """Initialize the HTTP client.

        Args:
            config: Optional configuration. Uses defaults if not provided.
        """
        self.config = config or HTTPClientConfig()
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HTTPClient:
        """Enter async context and create session."""
        await self._create_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context and cleanup resources."""
        await self.close()

    async def _create_session(self) -> None:
        """Create the aiohttp session with connection pooling."""
        if self._session is not None:
            return

        connector = aiohttp.TCPConnector(
            limit=self.config.max_connections,
            limit_per_host=self.config.max_connections_per_host,
            ssl=self.config.verify_ssl,
        )

        timeout = aiohttp.ClientTimeout(
            total=self.config.timeout,
            connect=self.config.connect_timeout,
        )

        self._session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers=self.config.default_headers,
        )

        logger.debug(
            "Created HTTP session with pool size %d", self.config.max_connections
        )

    async def close(self) -> None:
        """Close the session and release resources."""
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("Closed HTTP session")

    @property
    def is_open(self) -> bool:
        """Check if the session is open."""
        return self._session is not None and not self._session.closed

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists and return it.

        Returns:
            The active aiohttp session

        Raises:
            RuntimeError: If session is not initialized
        """
        if self._session is None:
            await self._create_session()
        if self._session is None:
            raise RuntimeError("HTTP session not initialized")
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        data: bytes | str | None = None,
        json: Any = None,
        timeout: float | None = None,
    ) -> HTTPResponse:
        """Perform an HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: The URL to request
            headers: Additional headers to send
            params: Query parameters to append to URL
            data: Raw data to send in body
            json: JSON data to send in body
            timeout: Override default timeout for this request

        Returns:
            HTTPResponse with response data, whatever its status

        Raises:
            RequestTimeoutError: If the request times out
            NetworkError: If the connection fails
        """
        session = await self._ensure_session()

        kwargs: dict[str, Any] = {}
        if headers:
            kwargs["headers"] = dict(headers)
        if params:
            kwargs["params"] = dict(params)
        if data is not None:
            kwargs["data"] = data
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        logger.debug("HTTP %s %s", method, url)

        try:
            async with session.request(method, url, **kwargs) as response:
                http_response = await HTTPResponse.from_aiohttp_response(response)
                logger.debug("HTTP %s %s -> %d", method, url, http_response.status)
                return http_response

        # aiohttp's timeout errors also derive from asyncio.TimeoutError
        except asyncio.TimeoutError as e:
            logger.warning("Timeout for %s %s", method, url)
            raise RequestTimeoutError(
                f"Request timed out after {timeout or self.config.timeout:g}s: {url}",
                cause=e,
            ) from e

        except aiohttp.ClientError as e:
            logger.warning("Network error for %s %s: %s", method, url, e)
            raise NetworkError(f"Network error for {url}: {e}", cause=e) from e
