"""Client configuration for arbidash."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from arbidash._constants import (
    BASE_URL,
    DEFAULT_AUTH_POLL_INTERVAL,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TICK_INTERVAL,
)
from arbidash.exceptions import ArbiDashConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ArbiDashConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class DashboardConfig:
    """Dashboard configuration.

    Parameters
    ----------
    base_url : str
        Root URL of the arbitrage signal API, without trailing slash.
    refresh_interval : float
        Seconds between refresh cycles when no server deadline is known.
    auth_poll_interval : float
        Seconds between credential checks while no token is present.
    tick_interval : float
        Seconds between countdown recomputations.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    sync_with_server : bool
        Fetch ``/api/arbitrage/status`` each cycle and adopt the server's
        announced ``nextRefreshTime`` as the deadline when it is usable.
    """

    base_url: str = BASE_URL
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    auth_poll_interval: float = DEFAULT_AUTH_POLL_INTERVAL
    tick_interval: float = DEFAULT_TICK_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    sync_with_server: bool = True

    def __post_init__(self) -> None:
        for name in ("refresh_interval", "auth_poll_interval", "tick_interval", "request_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ArbiDashConfigError(f"{name} must be positive, got {value}")
        # Paths are joined with a leading slash.
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> DashboardConfig:
        """Create configuration from ``ARBIDASH_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("ARBIDASH_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url

        _ENV_FLOAT_MAP = {
            "ARBIDASH_REFRESH_INTERVAL": "refresh_interval",
            "ARBIDASH_AUTH_POLL_INTERVAL": "auth_poll_interval",
            "ARBIDASH_TICK_INTERVAL": "tick_interval",
            "ARBIDASH_REQUEST_TIMEOUT": "request_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        if "sync_with_server" not in overrides:
            config_kwargs["sync_with_server"] = _env_bool(env.get("ARBIDASH_SYNC_WITH_SERVER"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
