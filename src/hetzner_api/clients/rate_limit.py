"""Rate-limit tracking for the Cloud API.

The Cloud API reports its quota on every response through three headers:

    RateLimit-Limit: 3600
    RateLimit-Remaining: 3599
    RateLimit-Reset: 1731340800

The Cloud client does not retry on 429. Instead it keeps the latest snapshot so
callers can throttle themselves; RateLimitTracker holds that snapshot and
renders an advisory when remaining capacity runs low.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hetzner_api.models.cloud import RateLimitSnapshot

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

LIMIT_HEADER = "ratelimit-limit"
REMAINING_HEADER = "ratelimit-remaining"
RESET_HEADER = "ratelimit-reset"

# Advisory threshold for remaining requests
LOW_REMAINING_THRESHOLD = 100


def parse_rate_limit_headers(headers: Mapping[str, str]) -> RateLimitSnapshot | None:
    """Parse rate-limit headers into a snapshot.

    Args:
        headers: Response headers (matched case-insensitively)

    Returns:
        RateLimitSnapshot, or None if any header is missing or not an integer
    """
    lowered = {key.lower(): value for key, value in headers.items()}
    try:
        return RateLimitSnapshot(
            limit=int(lowered[LIMIT_HEADER]),
            remaining=int(lowered[REMAINING_HEADER]),
            reset=int(lowered[RESET_HEADER]),
        )
    except (KeyError, ValueError):
        return None


class RateLimitTracker:
    """Holds the most recent rate-limit snapshot.

    Writes are last-write-wins; the snapshot is advisory only.
    """

    def __init__(self, threshold: int = LOW_REMAINING_THRESHOLD) -> None:
        self.threshold = threshold
        self._last: RateLimitSnapshot | None = None

    @property
    def last(self) -> RateLimitSnapshot | None:
        """The last snapshot observed, if any."""
        return self._last

    def update(self, headers: Mapping[str, str]) -> RateLimitSnapshot | None:
        """Refresh the snapshot from response headers.

        Every response overwrites the snapshot; headers without rate-limit
        data clear it.
        """
        self._last = parse_rate_limit_headers(headers)
        if self._last is not None and self._last.remaining < self.threshold:
            logger.debug(
                "Rate limit low: %d/%d remaining",
                self._last.remaining,
                self._last.limit,
            )
        return self._last

    @property
    def is_low(self) -> bool:
        """Check if remaining capacity is below the advisory threshold."""
        return self._last is not None and self._last.remaining < self.threshold

    def warning(self) -> str | None:
        """Render an advisory string when remaining capacity is low.

        Returns:
            Warning text, or None if capacity is fine or unknown
        """
        if not self.is_low:
            return None
        assert self._last is not None
        return (
            f"Rate limit: {self._last.remaining}/{self._last.limit} requests "
            f"remaining. Resets at {self._last.reset_at.isoformat()}."
        )
