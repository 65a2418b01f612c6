"""Bearer credential access for authenticated sources.

The token itself is issued and stored by an external auth subsystem; this
module only reads it. Nothing here caches the token: it may appear (or be
revoked) at any point after the dashboard starts.
"""

from __future__ import annotations

import os
from typing import Protocol


class TokenSource(Protocol):
    """Anything that can report the current bearer token, or ``None``."""

    def get_token(self) -> str | None:
        ...


class TokenStore:
    """In-memory token holder populated by the auth subsystem."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def get_token(self) -> str | None:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class EnvTokenSource:
    """Read the token from an environment variable on every call."""

    def __init__(self, variable: str = "ARBIDASH_AUTH_TOKEN") -> None:
        self.variable = variable

    def get_token(self) -> str | None:
        return os.environ.get(self.variable)


class CredentialGate:
    """Decide whether an authenticated fetch is permitted right now."""

    def __init__(self, source: TokenSource) -> None:
        self._source = source

    def token(self) -> str | None:
        """Current token with surrounding whitespace stripped; blank is ``None``."""
        value = self._source.get_token()
        if value is None:
            return None
        value = value.strip()
        return value or None

    def is_authorized(self) -> bool:
        return self.token() is not None
