"""Server refresh status model (``/api/arbitrage/status``)."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from arbidash.ingestion.normalize import normalize_timestamp_seconds
from arbidash.models._base import ArbiDashBaseModel


class RefreshStatus(ArbiDashBaseModel):
    """Refresh schedule announced by the server."""

    next_refresh_time: float | None = None
    """Epoch seconds of the server's next refresh (sent as epoch ms)."""

    @field_validator("next_refresh_time", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> float | None:
        return normalize_timestamp_seconds(value)
