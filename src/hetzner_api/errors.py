"""Error taxonomy shared by the Robot and Cloud clients.

Every failure raised by this package derives from HetznerError and carries an
ErrorKind tag, so callers can branch on ``err.kind`` instead of inspecting
exception classes:

    try:
        servers = await cloud.request_all("/servers", "servers")
    except HetznerError as e:
        if e.kind is ErrorKind.POLL_TIMEOUT:
            ...
        print(format_error(e))

Transient errors (rate limiting, timeouts, connection failures) derive from
TransientError and are retried by RetryHandler. Everything else propagates
immediately.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Classification of a failed call."""

    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    NETWORK = "network"
    API = "api"
    RETRIES_EXHAUSTED = "retries_exhausted"
    POLL_TIMEOUT = "poll_timeout"

    @property
    def is_transient(self) -> bool:
        """Whether errors of this kind are retried internally."""
        return self in (ErrorKind.RATE_LIMITED, ErrorKind.TIMEOUT, ErrorKind.NETWORK)


class HetznerError(Exception):
    """Base exception for all API client errors."""

    kind: ErrorKind = ErrorKind.API

    def __init__(
        self,
        message: str,
        path: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error description
            path: Request path the error relates to
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message


class TransientError(HetznerError):
    """Error that may succeed if the call is repeated."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class RateLimitError(TransientError):
    """Raised when the server rejects a call because of rate limiting."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        status: int = 429,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status = status


class RequestTimeoutError(TransientError):
    """Raised when a single call exceeds its timeout."""

    kind = ErrorKind.TIMEOUT


class NetworkError(TransientError):
    """Raised when the connection to the server fails."""

    kind = ErrorKind.NETWORK


class ApiError(HetznerError):
    """Non-retryable error response returned by the API.

    Attributes:
        api: Which API produced the error ("Cloud" or "Robot")
        status: HTTP status code
        code: Upstream error code (e.g. "not_found", "SERVER_NOT_FOUND")
        details: Upstream error details, if any
    """

    kind = ErrorKind.API

    def __init__(
        self,
        status: int,
        code: str,
        message: str,
        *,
        api: str = "Cloud",
        details: Any = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.api = api
        self.status = status
        self.code = code
        self.details = details

    def __str__(self) -> str:
        text = f"[{self.api}:{self.status}:{self.code}] {self.message}"
        if self.path:
            text += f" ({self.path})"
        return text

    @classmethod
    def from_body(
        cls,
        status: int,
        body: Any,
        *,
        reason: str,
        api: str = "Cloud",
        default_code: str = "unknown",
        path: str | None = None,
    ) -> ApiError:
        """Build an ApiError from a decoded ``{"error": {...}}`` body.

        Args:
            status: HTTP status code
            body: Decoded JSON body, or None if it could not be decoded
            reason: HTTP reason phrase used when the body has no message
            api: Which API produced the error
            default_code: Code used when the body has none
            path: Request path

        Returns:
            ApiError preserving the upstream code, message and details
        """
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            error = {}
        return cls(
            status,
            str(error.get("code") or default_code),
            str(error.get("message") or reason),
            api=api,
            details=error.get("details"),
            path=path,
        )


class RetriesExhaustedError(HetznerError):
    """Raised when all retry attempts have been exhausted."""

    kind = ErrorKind.RETRIES_EXHAUSTED

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Exception | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, cause=last_error, **kwargs)
        self.attempts = attempts
        self.last_error = last_error


class PollTimeoutError(HetznerError):
    """Raised when an action does not reach a terminal state in time.

    The action may still be running server-side.
    """

    kind = ErrorKind.POLL_TIMEOUT

    def __init__(self, action_id: int, timeout: float) -> None:
        super().__init__(
            f"Action {action_id} did not complete within {timeout:g}s",
            path=f"/actions/{action_id}",
        )
        self.action_id = action_id
        self.timeout = timeout


def format_error(error: BaseException) -> str:
    """Format any error into a user-readable string.

    Args:
        error: The exception to render

    Returns:
        Single- or multi-line message suitable for tool output
    """
    if isinstance(error, ApiError):
        text = f"Error {error.status} ({error.code}): {error.message}"
        if error.details:
            text += f"\nDetails: {json.dumps(error.details)}"
        return text
    if isinstance(error, HetznerError):
        return str(error)
    return f"Error: {error}"
