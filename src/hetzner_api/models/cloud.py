"""Data models for Cloud API responses.

This module defines dataclass models for the pieces of Cloud API responses
the clients interpret themselves: pagination metadata, asynchronous actions
and rate-limit state. Resource payloads (servers, volumes, ...) are passed
through as decoded JSON.

Example usage:
    action = Action.from_dict(response["action"])
    if action.is_terminal and not action.is_successful:
        print(action.error.message)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ActionStatus(Enum):
    """Status of a server-side asynchronous action."""

    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """Terminal states never transition again."""
        return self is not ActionStatus.RUNNING


@dataclass(frozen=True, slots=True)
class ActionResource:
    """Resource affected by an action."""

    id: int
    type: str


@dataclass(frozen=True, slots=True)
class ActionError:
    """Error reported by an action that finished with status ``error``."""

    code: str
    message: str


@dataclass(frozen=True, slots=True)
class Action:
    """Server-side record of an asynchronous mutating operation.

    Attributes:
        id: Action ID
        command: Command the action executes (e.g. "start_server")
        status: Current status
        progress: Progress in percent (0-100)
        started: When the action started
        finished: When the action finished, None while running
        resources: Resources the action affects
        error: Error details if status is ERROR
    """

    id: int
    command: str
    status: ActionStatus
    progress: int = 0
    started: datetime | None = None
    finished: datetime | None = None
    resources: tuple[ActionResource, ...] = ()
    error: ActionError | None = None

    @property
    def is_terminal(self) -> bool:
        """Check if the action reached success or error."""
        return self.status.is_terminal

    @property
    def is_successful(self) -> bool:
        """Check if the action completed successfully."""
        return self.status is ActionStatus.SUCCESS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        """Create an Action from its JSON representation.

        Args:
            data: Decoded ``action`` object from the API

        Returns:
            Parsed Action
        """
        error = data.get("error")
        return cls(
            id=int(data["id"]),
            command=data.get("command", ""),
            status=ActionStatus(data["status"]),
            progress=int(data.get("progress") or 0),
            started=_parse_timestamp(data.get("started")),
            finished=_parse_timestamp(data.get("finished")),
            resources=tuple(
                ActionResource(id=int(r["id"]), type=r["type"])
                for r in data.get("resources") or []
            ),
            error=(
                ActionError(code=error.get("code", ""), message=error.get("message", ""))
                if error
                else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the API's JSON shape."""
        return {
            "id": self.id,
            "command": self.command,
            "status": self.status.value,
            "progress": self.progress,
            "started": self.started.isoformat() if self.started else None,
            "finished": self.finished.isoformat() if self.finished else None,
            "resources": [{"id": r.id, "type": r.type} for r in self.resources],
            "error": (
                {"code": self.error.code, "message": self.error.message}
                if self.error
                else None
            ),
        }


@dataclass(frozen=True, slots=True)
class PaginationMeta:
    """Pagination block found under ``meta.pagination`` in list responses."""

    page: int
    per_page: int
    last_page: int | None = None
    total_entries: int | None = None
    previous_page: int | None = None
    next_page: int | None = None

    @property
    def has_next(self) -> bool:
        """Check if the server advertises another page."""
        return self.next_page is not None

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> PaginationMeta | None:
        """Extract pagination metadata from a list response.

        Args:
            response: Decoded list response

        Returns:
            PaginationMeta, or None if the response carries no pagination block
        """
        meta = response.get("meta")
        pagination = meta.get("pagination") if isinstance(meta, dict) else None
        if not isinstance(pagination, dict):
            return None
        return cls(
            page=int(pagination.get("page") or 1),
            per_page=int(pagination.get("per_page") or 0),
            last_page=pagination.get("last_page"),
            total_entries=pagination.get("total_entries"),
            previous_page=pagination.get("previous_page"),
            next_page=pagination.get("next_page"),
        )


@dataclass(frozen=True, slots=True)
class RateLimitSnapshot:
    """Last observed rate-limit state.

    Attributes:
        limit: Requests allowed per window
        remaining: Requests left in the current window
        reset: Epoch seconds when the window resets
    """

    limit: int
    remaining: int
    reset: int
    observed_at: datetime = field(
        default_factory=lambda: datetime.now(UTC), compare=False
    )

    @property
    def reset_at(self) -> datetime:
        """Reset time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.reset, tz=UTC)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)
