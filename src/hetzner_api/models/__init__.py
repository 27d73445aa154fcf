"""Data models for API responses."""

from hetzner_api.models.cloud import (
    Action,
    ActionError,
    ActionResource,
    ActionStatus,
    PaginationMeta,
    RateLimitSnapshot,
)

__all__ = [
    "Action",
    "ActionError",
    "ActionResource",
    "ActionStatus",
    "PaginationMeta",
    "RateLimitSnapshot",
]
