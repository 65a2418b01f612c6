"""Tracked best-exchange pair model.

Mapped from one entry of the ``/api/arbitrage/arbitrack`` response, which is
an object keyed by asset symbol.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from arbidash._constants import NOT_AVAILABLE
from arbidash.ingestion.normalize import safe_float, safe_str
from arbidash.models._base import ArbiDashBaseModel


class TrackedPair(ArbiDashBaseModel):
    """Cheapest and most expensive exchange for one asset.

    Missing exchanges and prices default to ``"N/A"``; a missing profit
    percentage defaults to ``0``. A price of ``0`` is kept as is.
    """

    coin1: str
    """Asset symbol (the key in the tracking payload)."""
    min_exchange: str = NOT_AVAILABLE
    """Exchange with the lowest price."""
    min_price1: float | str = NOT_AVAILABLE
    """Lowest price."""
    max_exchange: str = NOT_AVAILABLE
    """Exchange with the highest price."""
    max_price1: float | str = NOT_AVAILABLE
    """Highest price."""
    profit_percentage: float = Field(default=0.0)
    """Spread between the two prices in percent."""

    @field_validator("min_exchange", "max_exchange", mode="before")
    @classmethod
    def _coerce_exchange(cls, value: Any) -> str:
        return safe_str(value) or NOT_AVAILABLE

    @field_validator("min_price1", "max_price1", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> float | str:
        parsed = safe_float(value)
        return NOT_AVAILABLE if parsed is None else parsed

    @field_validator("profit_percentage", mode="before")
    @classmethod
    def _coerce_percentage(cls, value: Any) -> float:
        parsed = safe_float(value)
        return 0.0 if parsed is None else parsed

    @classmethod
    def from_entry(cls, symbol: str, info: Any) -> TrackedPair:
        """Build a record from one ``symbol -> info`` entry of the payload."""
        data: dict[str, Any] = info if isinstance(info, dict) else {}
        return cls.model_validate(
            {
                "coin1": str(symbol),
                "minExchange": data.get("lowestExchange"),
                "minPrice1": data.get("lowestPrice"),
                "maxExchange": data.get("highestExchange"),
                "maxPrice1": data.get("highestPrice"),
                "profitPercentage": data.get("profitPercentage"),
                "raw": data,
            }
        )
