"""Helpers for safe debug logging.

Requests carry a bearer token in the ``Authorization`` header. This module
provides a small utility to redact sensitive fields before emitting DEBUG
logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "authtoken",
        "token",
        "accesstoken",
        "refreshtoken",
        "password",
        "cookie",
        "setcookie",
    }
)

_MAX_DEPTH = 20


def _is_sensitive(key: object) -> bool:
    # "auth_token", "Auth-Token" and "authToken" all match "authtoken".
    folded = str(key).lower().replace("_", "").replace("-", "")
    return folded in _SENSITIVE_KEYS


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of a header map or decoded JSON body."""
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _truncate(value, max_string)
    if isinstance(value, Mapping):
        return {
            str(key): "<redacted>"
            if _is_sensitive(key)
            else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    return _truncate(repr(value), max_string)
