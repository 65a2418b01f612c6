"""Normalization helpers.

Centralizes defensive parsing of the loosely typed values the arbitrage
API returns (numbers as strings, ``"--"`` / ``"N/A"`` placeholders, epoch
milliseconds).
"""

from __future__ import annotations

import math
from typing import Any

#: Strings the API sends in place of a missing number.
PLACEHOLDER_STRINGS = frozenset({"", "--", "N/A", "n/a"})

# Anything above this is epoch milliseconds (year 5138 in seconds).
_EPOCH_MS_THRESHOLD = 1e11


def safe_float(value: Any) -> float | None:
    """Parse *value* as a finite float; placeholders and bools give ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if value in PLACEHOLDER_STRINGS:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_timestamp_seconds(value: Any) -> float | None:
    """Epoch seconds from a seconds or milliseconds timestamp; ``<= 0`` is ``None``."""
    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    return ts / 1000.0 if ts > _EPOCH_MS_THRESHOLD else ts
