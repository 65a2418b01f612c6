"""Per-asset market sentiment model."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, ConfigDict, Field, field_validator, model_validator

from arbidash._constants import SENTIMENT_SIGNAL_THRESHOLD
from arbidash.ingestion.normalize import safe_float, safe_str
from arbidash.models._base import ArbiDashBaseModel


class SentimentSignal(StrEnum):
    BUY = "Buy"
    SELL = "Sell"
    HOLD = "Hold"


def classify_sentiment(score: float) -> SentimentSignal:
    """Map an overall sentiment score in ``[-1, 1]`` to a trading signal."""
    if score > SENTIMENT_SIGNAL_THRESHOLD:
        return SentimentSignal.BUY
    if score < -SENTIMENT_SIGNAL_THRESHOLD:
        return SentimentSignal.SELL
    return SentimentSignal.HOLD


class SentimentRecord(ArbiDashBaseModel):
    """Sentiment for one asset.

    The record is permissive: keys the model does not name are kept and
    dumped back unchanged. ``signal`` is derived from ``overall_sentiment``
    unless the server supplied one.
    """

    model_config = ConfigDict(extra="allow")

    symbol: str | None = Field(default=None, validation_alias=AliasChoices("symbol", "coin", "asset"))
    overall_sentiment: float | None = None
    signal: str | None = None

    @field_validator("symbol", mode="before")
    @classmethod
    def _coerce_symbol(cls, value: Any) -> str | None:
        # Some payloads nest the asset as {"symbol": ..., "name": ...}.
        if isinstance(value, dict):
            value = value.get("symbol")
        return safe_str(value)

    @field_validator("signal", mode="before")
    @classmethod
    def _coerce_signal(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("overall_sentiment", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> float | None:
        return safe_float(value)

    @model_validator(mode="after")
    def _derive_signal(self) -> SentimentRecord:
        if self.signal is None and self.overall_sentiment is not None:
            object.__setattr__(self, "signal", str(classify_sentiment(self.overall_sentiment)))
        return self
