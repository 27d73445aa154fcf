"""API clients for Hetzner Cloud and Robot."""

from hetzner_api.clients.admission import AdmissionQueue, QueuedTask
from hetzner_api.clients.cloud import (
    CloudClient,
    CloudConfig,
    action_ids,
    with_rate_limit_warning,
)
from hetzner_api.clients.form import clean_params, encode_form, flatten
from hetzner_api.clients.rate_limit import RateLimitTracker, parse_rate_limit_headers
from hetzner_api.clients.retry_handler import (
    RetryConfig,
    RetryHandler,
    next_delay,
)
from hetzner_api.clients.robot import RobotClient, RobotConfig

__all__ = [
    # Clients
    "CloudClient",
    "CloudConfig",
    "RobotClient",
    "RobotConfig",
    # Building blocks
    "AdmissionQueue",
    "QueuedTask",
    "RateLimitTracker",
    "RetryConfig",
    "RetryHandler",
    # Helpers
    "action_ids",
    "clean_params",
    "encode_form",
    "flatten",
    "next_delay",
    "parse_rate_limit_headers",
    "with_rate_limit_warning",
]
