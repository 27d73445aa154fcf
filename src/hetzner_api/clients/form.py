"""Request parameter encoding: bracket-path forms and query strings.

The Robot API accepts nested structures in ``application/x-www-form-urlencoded``
bodies by naming fields with bracket paths:

    {"rules": {"input": [{"action": "accept"}]}}  ->  rules[input][0][action]=accept

Pairs are emitted in source order. Array indices are positional on the server
side, so the order must never be sorted or otherwise rearranged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode


def to_form_value(value: Any) -> str:
    """Render a scalar the way the API expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def flatten(value: Any, prefix: str = "") -> list[tuple[str, str]]:
    """Flatten a nested value into ordered ``(key, value)`` form pairs.

    Args:
        value: Scalar, list/tuple or mapping to flatten
        prefix: Key path of ``value``; empty at the top level

    Returns:
        Ordered list of pairs. None values are omitted entirely.
    """
    if value is None:
        return []

    pairs: list[tuple[str, str]] = []

    if isinstance(value, Mapping):
        for key, item in value.items():
            pairs.extend(flatten(item, f"{prefix}[{key}]" if prefix else str(key)))
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            pairs.extend(flatten(item, f"{prefix}[{index}]"))
    else:
        pairs.append((prefix, to_form_value(value)))

    return pairs


def encode_form(body: Mapping[str, Any]) -> str:
    """Encode a nested mapping as an x-www-form-urlencoded string."""
    return urlencode(flatten(body))


def clean_params(params: Mapping[str, Any] | None) -> dict[str, str]:
    """Drop None and empty-string values from query parameters.

    Args:
        params: Raw query parameters

    Returns:
        Parameters with every value rendered as a string
    """
    if not params:
        return {}
    return {
        key: to_form_value(value)
        for key, value in params.items()
        if value is not None and value != ""
    }
