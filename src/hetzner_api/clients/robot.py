"""Client for the Hetzner Robot API (dedicated servers).

The Robot API uses HTTP Basic auth, form-encoded request bodies and JSON
responses. It enforces strict rate limits without advertising them in
headers, so this client protects itself reactively:

- at most ``max_concurrent`` calls are in flight (AdmissionQueue, FIFO)
- 429/403 responses, timeouts and connection failures are retried with
  exponential backoff, honouring Retry-After when present (RetryHandler)
- any other error status fails immediately with ApiError

Example usage:
    config = RobotConfig(user="#ws+abc", password="secret")

    async with RobotClient(config) as robot:
        servers = await robot.request("/server")
        await robot.request(
            "/firewall/123",
            method="POST",
            body={"status": "active", "rules": {"input": [{"action": "accept"}]}},
        )
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp

from hetzner_api.clients.admission import AdmissionQueue
from hetzner_api.clients.form import clean_params, encode_form
from hetzner_api.clients.retry_handler import RetryConfig, RetryHandler
from hetzner_api.errors import ApiError, RateLimitError
from hetzner_api.utils.http_client import HTTPClient, HTTPClientConfig

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULT_ROBOT_URL = "https://robot-ws.your-server.de"

# Statuses the Robot API uses to signal throttling
RATE_LIMIT_STATUSES: frozenset[int] = frozenset({429, 403})


@dataclass(frozen=True, slots=True)
class RobotConfig:
    """Configuration for the Robot client.

    Attributes:
        user: Robot webservice user name
        password: Robot webservice password
        base_url: API base URL
        timeout: Hard per-attempt timeout in seconds
        max_attempts: Total attempts per call, including the first
        max_concurrent: Maximum calls in flight at once
        rate_limit_statuses: HTTP statuses treated as a retryable rate-limit signal
    """

    user: str
    password: str = field(repr=False)
    base_url: str = DEFAULT_ROBOT_URL
    timeout: float = 30.0
    max_attempts: int = 3
    max_concurrent: int = 2
    rate_limit_statuses: frozenset[int] = field(
        default_factory=lambda: RATE_LIMIT_STATUSES
    )


class RobotClient:
    """Rate-limit aware Robot API client.

    Every call goes through the admission queue, and each admitted call
    retries transient failures within a single attempt budget.
    """

    def __init__(
        self,
        config: RobotConfig,
        *,
        http_client: HTTPClient | None = None,
        retry_handler: RetryHandler | None = None,
        queue: AdmissionQueue | None = None,
    ) -> None:
        """Initialize the Robot client.

        Args:
            config: Robot configuration
            http_client: Optional custom HTTP client
            retry_handler: Optional custom retry handler
            queue: Optional custom admission queue
        """
        self.config = config
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._auth = aiohttp.BasicAuth(config.user, config.password)

        self._retry_handler = retry_handler or RetryHandler(
            RetryConfig(max_attempts=config.max_attempts)
        )
        self._queue = queue or AdmissionQueue(max_concurrent=config.max_concurrent)

        logger.debug(
            "Initialized RobotClient for %s with max_concurrent=%d, max_attempts=%d",
            config.base_url,
            config.max_concurrent,
            config.max_attempts,
        )

    async def __aenter__(self) -> RobotClient:
        """Enter async context and initialize HTTP client."""
        if self._http_client is None:
            self._http_client = HTTPClient(HTTPClientConfig(timeout=self.config.timeout))
            await self._http_client._create_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context and cleanup resources."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.close()
            self._http_client = None

    @property
    def queue(self) -> AdmissionQueue:
        """The admission queue gating this client's calls."""
        return self._queue

    def _ensure_client(self) -> HTTPClient:
        if self._http_client is None:
            raise RuntimeError(
                "Robot HTTP client not initialized. "
                "Use 'async with RobotClient(...)' context manager."
            )
        return self._http_client

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Call the Robot API.

        Args:
            path: URL path (appended to base_url)
            method: HTTP method
            body: Nested body, form-encoded with bracket paths
            params: Query parameters

        Returns:
            Decoded JSON response, or an empty dict for empty responses

        Raises:
            ApiError: For non-retryable error statuses
            RetriesExhaustedError: If every attempt failed transiently
        """
        payload = encode_form(body) if body is not None else None
        operation_name = f"Robot {method} {path}"

        async def attempt() -> Any:
            return await self._attempt(path, method, payload, clean_params(params))

        return await self._queue.run(
            lambda: self._retry_handler.execute(
                attempt, operation_name=operation_name, path=path
            )
        )

    async def _attempt(
        self,
        path: str,
        method: str,
        payload: str | None,
        params: dict[str, str],
    ) -> Any:
        """Perform a single attempt and classify its outcome."""
        client = self._ensure_client()
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

        headers = {"Authorization": self._auth.encode()}
        if payload is not None:
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        response = await client.request(
            method,
            url,
            headers=headers,
            params=params,
            data=payload,
            timeout=self.config.timeout,
        )

        if response.status in self.config.rate_limit_statuses:
            raise RateLimitError(
                f"Rate limited with status {response.status}",
                status=response.status,
                retry_after=response.retry_after,
            )

        if not response.is_success:
            raise ApiError.from_body(
                response.status,
                response.json_or_none(),
                reason=response.reason,
                api="Robot",
                default_code="UNKNOWN",
                path=path,
            )

        if response.is_empty:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                response.status, "INVALID_RESPONSE", str(e), api="Robot", path=path
            ) from e
