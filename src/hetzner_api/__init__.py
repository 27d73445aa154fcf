"""Async clients for the Hetzner Cloud and Robot APIs."""

__version__ = "0.1.0"
