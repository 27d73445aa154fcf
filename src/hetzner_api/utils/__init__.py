"""Utility functions and helpers."""

from hetzner_api.utils.http_client import HTTPClient, HTTPClientConfig, HTTPResponse

__all__ = [
    "HTTPClient",
    "HTTPClientConfig",
    "HTTPResponse",
]
