"""Tests for rate-limit header parsing and tracking."""

from __future__ import annotations

from datetime import UTC, datetime

from hetzner_api.clients.rate_limit import (
    LOW_REMAINING_THRESHOLD,
    RateLimitTracker,
    parse_rate_limit_headers,
)
from hetzner_api.models import RateLimitSnapshot


def _headers(limit: str = "3600", remaining: str = "3599", reset: str = "1731340800") -> dict[str, str]:
    return {
        "RateLimit-Limit": limit,
        "RateLimit-Remaining": remaining,
        "RateLimit-Reset": reset,
    }


class TestParseRateLimitHeaders:
    """Tests for parse_rate_limit_headers()."""

    def test_parses_all_headers(self) -> None:
        snapshot = parse_rate_limit_headers(_headers())

        assert snapshot == RateLimitSnapshot(limit=3600, remaining=3599, reset=1731340800)

    def test_case_insensitive(self) -> None:
        headers = {
            "ratelimit-limit": "10",
            "RATELIMIT-REMAINING": "5",
            "Ratelimit-Reset": "0",
        }

        snapshot = parse_rate_limit_headers(headers)

        assert snapshot is not None
        assert snapshot.remaining == 5

    def test_missing_header(self) -> None:
        headers = _headers()
        del headers["RateLimit-Reset"]

        assert parse_rate_limit_headers(headers) is None

    def test_non_integer_value(self) -> None:
        assert parse_rate_limit_headers(_headers(remaining="lots")) is None


class TestRateLimitTracker:
    """Tests for RateLimitTracker."""

    def test_starts_empty(self) -> None:
        tracker = RateLimitTracker()

        assert tracker.last is None
        assert not tracker.is_low
        assert tracker.warning() is None

    def test_update_replaces_snapshot(self) -> None:
        tracker = RateLimitTracker()

        tracker.update(_headers(remaining="3000"))
        tracker.update(_headers(remaining="2999"))

        assert tracker.last is not None
        assert tracker.last.remaining == 2999

    def test_update_without_headers_clears_snapshot(self) -> None:
        """Test a response without quota headers leaves no stale snapshot."""
        tracker = RateLimitTracker()
        tracker.update(_headers(remaining="50"))

        result = tracker.update({"Content-Type": "application/json"})

        assert result is None
        assert tracker.last is None
        assert tracker.warning() is None

    def test_update_with_partial_headers_clears_snapshot(self) -> None:
        tracker = RateLimitTracker()
        tracker.update(_headers(remaining="50"))
        partial = _headers(remaining="40")
        del partial["RateLimit-Limit"]

        assert tracker.update(partial) is None

    def test_low_remaining_produces_warning(self) -> None:
        """Test remaining=50 yields an advisory."""
        tracker = RateLimitTracker()
        tracker.update(_headers(remaining="50", reset="1731340800"))

        warning = tracker.warning()

        assert tracker.is_low
        assert warning is not None
        assert "50/3600" in warning
        reset = datetime.fromtimestamp(1731340800, tz=UTC).isoformat()
        assert reset in warning

    def test_plenty_remaining_has_no_warning(self) -> None:
        """Test remaining=500 yields no advisory."""
        tracker = RateLimitTracker()
        tracker.update(_headers(remaining="500"))

        assert not tracker.is_low
        assert tracker.warning() is None

    def test_threshold_is_exclusive(self) -> None:
        tracker = RateLimitTracker()
        tracker.update(_headers(remaining=str(LOW_REMAINING_THRESHOLD)))

        assert tracker.warning() is None

    def test_custom_threshold(self) -> None:
        tracker = RateLimitTracker(threshold=1000)
        tracker.update(_headers(remaining="500"))

        assert tracker.is_low
