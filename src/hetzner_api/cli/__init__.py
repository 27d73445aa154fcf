"""Hetzner API CLI module.

Provides command-line access to the Cloud and Robot clients.

Usage:
    python -m hetzner_api.cli config
    python -m hetzner_api.cli cloud list /servers servers --param label_selector=env=prod
    python -m hetzner_api.cli robot get /server
"""
