"""Data models for arbitrage API payloads."""

from arbidash.models._base import ArbiDashBaseModel
from arbidash.models.sentiment import SentimentRecord, SentimentSignal, classify_sentiment
from arbidash.models.status import RefreshStatus
from arbidash.models.tracking import TrackedPair

__all__ = [
    "ArbiDashBaseModel",
    "RefreshStatus",
    "SentimentRecord",
    "SentimentSignal",
    "TrackedPair",
    "classify_sentiment",
]
