"""Client for the Hetzner Cloud API (api.hetzner.cloud/v1).

The Cloud API uses Bearer token auth and JSON bodies. Unlike the Robot API it
reports its quota in response headers, so this client makes a single attempt
per call and leaves throttling to the caller, who can read the last
rate-limit snapshot after every response.

On top of the single-attempt request the client provides:

- request_all: walks a paginated collection and returns every item
- poll_action: waits for an asynchronous action to reach success or error

Example usage:
    async with CloudClient(CloudConfig(token="...")) as cloud:
        servers = await cloud.request_all("/servers", "servers")

        result = await cloud.request(
            f"/servers/{server_id}/actions/poweron", method="POST"
        )
        action = await cloud.poll_action(result["action"]["id"])

        if warning := cloud.rate_limit_warning():
            print(warning)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from hetzner_api.clients.form import clean_params
from hetzner_api.clients.rate_limit import RateLimitTracker
from hetzner_api.errors import ApiError, PollTimeoutError
from hetzner_api.models.cloud import Action, PaginationMeta
from hetzner_api.utils.http_client import HTTPClient, HTTPClientConfig

if TYPE_CHECKING:
    from collections.abc import Mapping

    from hetzner_api.models.cloud import RateLimitSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CLOUD_URL = "https://api.hetzner.cloud/v1"


@dataclass(frozen=True, slots=True)
class CloudConfig:
    """Configuration for the Cloud client.

    Attributes:
        token: API token sent as Bearer credentials
        base_url: API base URL
        timeout: Per-call timeout in seconds
        per_page: Page size used when walking collections
        poll_initial_delay: First delay between action polls in seconds
        poll_backoff: Growth factor applied to the poll delay
        poll_max_delay: Cap on the poll delay in seconds
        poll_timeout: Default overall budget for poll_action in seconds
    """

    token: str = field(repr=False)
    base_url: str = DEFAULT_CLOUD_URL
    timeout: float = 30.0
    per_page: int = 50
    poll_initial_delay: float = 1.0
    poll_backoff: float = 1.5
    poll_max_delay: float = 5.0
    poll_timeout: float = 300.0


def action_ids(response: Mapping[str, Any]) -> list[int]:
    """Extract the IDs of actions referenced by a mutating call's response.

    Handles both ``{"action": {...}}`` and ``{"actions": [...]}`` payloads.
    """
    ids: list[int] = []
    action = response.get("action")
    if isinstance(action, dict) and "id" in action:
        ids.append(int(action["id"]))
    for item in response.get("actions") or []:
        if isinstance(item, dict) and "id" in item:
            ids.append(int(item["id"]))
    return ids


def with_rate_limit_warning(text: str, client: CloudClient) -> str:
    """Append the client's rate-limit advisory to output text, if it has one."""
    warning = client.rate_limit_warning()
    if warning is None:
        return text
    return f"{text}\n\n{warning}"


class CloudClient:
    """Bearer-auth Cloud API client with pagination and action polling.

    Calls are single-attempt; 429 responses surface as ApiError.
    """

    def __init__(
        self,
        config: CloudConfig,
        *,
        http_client: HTTPClient | None = None,
        tracker: RateLimitTracker | None = None,
    ) -> None:
        """Initialize the Cloud client.

        Args:
            config: Cloud configuration
            http_client: Optional custom HTTP client
            tracker: Optional custom rate-limit tracker
        """
        self.config = config
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._tracker = tracker or RateLimitTracker()

        logger.debug("Initialized CloudClient for %s", config.base_url)

    async def __aenter__(self) -> CloudClient:
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

    def _ensure_client(self) -> HTTPClient:
        if self._http_client is None:
            raise RuntimeError(
                "Cloud HTTP client not initialized. "
                "Use 'async with CloudClient(...)' context manager."
            )
        return self._http_client

    @property
    def rate_limit(self) -> RateLimitSnapshot | None:
        """Rate-limit snapshot from the most recent response, None if it had none."""
        return self._tracker.last

    def rate_limit_warning(self) -> str | None:
        """Advisory text when remaining capacity is low, else None."""
        return self._tracker.warning()

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Make a single HTTP request to the Cloud API.

        Args:
            path: URL path (appended to base_url)
            method: HTTP method
            body: JSON-serializable request body
            params: Query parameters; None and empty values are dropped

        Returns:
            Decoded JSON response, or an empty dict for empty responses

        Raises:
            ApiError: For any non-2xx status, including 429
            RequestTimeoutError: If the call times out
            NetworkError: If the connection fails
        """
        client = self._ensure_client()
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

        headers = {"Authorization": f"Bearer {self.config.token}"}
        if body is not None:
            headers["Content-Type"] = "application/json"

        response = await client.request(
            method,
            url,
            headers=headers,
            params=clean_params(params),
            json=body,
            timeout=self.config.timeout,
        )

        self._tracker.update(response.headers)

        if not response.is_success:
            raise ApiError.from_body(
                response.status,
                response.json_or_none(),
                reason=response.reason,
                path=path,
            )

        if response.is_empty:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(response.status, "invalid_response", str(e), path=path) from e

    async def request_all(
        self,
        path: str,
        key: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[Any]:
        """Walk a paginated list endpoint and return all items.

        Pages are fetched strictly in sequence; items keep server order.

        Args:
            path: List endpoint path
            key: Response key holding the item array (e.g. "servers")
            params: Extra query parameters (filters, sort)

        Returns:
            Every item from every page
        """
        items: list[Any] = []
        page = 1

        while True:
            result = await self.request(
                path,
                params={**(params or {}), "page": page, "per_page": self.config.per_page},
            )

            page_items = result.get(key)
            if isinstance(page_items, list):
                items.extend(page_items)

            pagination = PaginationMeta.from_response(result)
            if pagination is None or pagination.next_page is None:
                break

            if pagination.next_page <= page:
                logger.warning(
                    "%s: server returned next_page=%d on page %d, stopping",
                    path,
                    pagination.next_page,
                    page,
                )
                break

            page = pagination.next_page

        logger.debug("%s: collected %d %s over %d page(s)", path, len(items), key, page)
        return items

    async def poll_action(self, action_id: int, timeout: float | None = None) -> Action:
        """Poll an action until it completes (success or error).

        An action finishing with status ``error`` is returned, not raised.

        Args:
            action_id: Action ID
            timeout: Overall budget in seconds (defaults to config.poll_timeout)

        Returns:
            The action in its terminal state

        Raises:
            PollTimeoutError: If the action is still running when the budget ends
        """
        if timeout is None:
            timeout = self.config.poll_timeout

        start = time.monotonic()
        delay = self.config.poll_initial_delay

        while time.monotonic() - start < timeout:
            path = f"/actions/{action_id}"
            result = await self.request(path)
            action = self._parse_action(result, path)

            if action.is_terminal:
                logger.debug(
                    "Action %d (%s) finished with status %s",
                    action_id,
                    action.command,
                    action.status.value,
                )
                return action

            logger.debug(
                "Action %d (%s) at %d%%, checking again in %.1fs",
                action_id,
                action.command,
                action.progress,
                delay,
            )
            await asyncio.sleep(delay)
            delay = min(delay * self.config.poll_backoff, self.config.poll_max_delay)

        raise PollTimeoutError(action_id, timeout)

    @staticmethod
    def _parse_action(result: Any, path: str) -> Action:
        """Parse the ``action`` object of a poll response.

        Raises:
            ApiError: If the response carries no usable action object
        """
        data = result.get("action") if isinstance(result, dict) else None
        if not isinstance(data, dict):
            raise ApiError(
                200, "invalid_response", "Response contains no action object", path=path
            )
        try:
            return Action.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ApiError(
                200, "invalid_response", f"Malformed action object: {e}", path=path
            ) from e

    async def wait_for_actions(
        self, response: Mapping[str, Any], timeout: float | None = None
    ) -> list[Action]:
        """Poll every action referenced by a mutating call's response.

        Actions are polled one after another, each with its own budget.

        Args:
            response: Decoded response containing ``action`` or ``actions``
            timeout: Per-action budget in seconds

        Returns:
            Terminal actions, in the order the response lists them
        """
        return [
            await self.poll_action(action_id, timeout) for action_id in action_ids(response)
        ]
