"""Deadline and countdown policy.

Pure functions only; the scheduler supplies the clock readings.
"""

from __future__ import annotations

import math


def resolve_deadline(
    *,
    refreshed_at: float,
    refresh_interval: float,
    server_deadline: float | None = None,
) -> float:
    """Pick the deadline for the next cycle.

    Policy:
    - A server-announced deadline later than *refreshed_at* is adopted.
    - Otherwise the deadline is ``refreshed_at + refresh_interval``.
    """
    if server_deadline is not None and server_deadline > refreshed_at:
        return server_deadline
    return refreshed_at + refresh_interval


def countdown_seconds(deadline: float | None, now: float) -> int:
    """Whole seconds left until *deadline*, never negative."""
    if deadline is None:
        return 0
    return max(0, math.ceil(deadline - now))


def is_due(deadline: float | None, now: float) -> bool:
    return deadline is not None and now >= deadline


def format_countdown(seconds: int) -> str:
    """Render a countdown as ``"{minutes}m {seconds}s"``."""
    seconds = max(0, seconds)
    return f"{seconds // 60}m {seconds % 60}s"
