"""Custom exception hierarchy for arbidash.

These exceptions are raised by the transport and normalization layers only.
Source fetchers convert them into typed fetch failures so they never escape
a refresh cycle.
"""

from __future__ import annotations


class ArbiDashError(Exception):
    """Base exception for all arbidash errors."""


class ArbiDashConfigError(ArbiDashError):
    """Invalid or missing configuration."""


class ArbiDashTransportError(ArbiDashError):
    """HTTP-level failure (network, timeout, non-2xx)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ArbiDashPayloadError(ArbiDashError):
    """Response body could not be decoded or normalized."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class ArbiDashApiError(ArbiDashError):
    """The server answered but rejected the request (``success: false``)."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)
