"""In-memory snapshot store.

This is the only component allowed to write the dashboard snapshot. Refresh
cycles hand it a :class:`~arbidash.aggregator.CycleResult`; everything else
reads snapshots or subscribes to them.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from arbidash.aggregator import CycleResult
from arbidash.models.sentiment import SentimentRecord
from arbidash.models.tracking import TrackedPair
from arbidash.sources import SourceName
from arbidash.state.policy import countdown_seconds, format_countdown

_logger = logging.getLogger(__name__)

# Sources without a snapshot field (status) only feed the deadline.
_FIELD_FOR_SOURCE: dict[SourceName, str] = {
    SourceName.PAIRS: "pair_data",
    SourceName.TRACKING: "track_data",
    SourceName.SENTIMENT: "sentiment_data",
}

Listener = Callable[["Snapshot"], None]


class Snapshot(BaseModel):
    """Externally visible dashboard state.

    ``model_dump(by_alias=True)`` yields the camelCase keys the view layer
    renders (``pairData``, ``trackData``, ``countdownSeconds`` ...).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    pair_data: tuple[Any, ...] = ()
    track_data: tuple[TrackedPair, ...] = ()
    sentiment_data: tuple[SentimentRecord, ...] = ()
    error: str | None = None
    initialized: bool = False
    refreshing: bool = False
    last_refresh_at: float | None = None
    next_refresh_at: float | None = None
    countdown_seconds: int = 0

    @property
    def countdown_display(self) -> str:
        return format_countdown(self.countdown_seconds)


class SnapshotStore:
    """Holds the latest snapshot and notifies subscribers on every change."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._snapshot = Snapshot()
        self._listeners: list[Listener] = []

    def get_snapshot(self) -> Snapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, snapshot: Snapshot) -> Snapshot:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.warning("Snapshot listener %r failed", listener, exc_info=True)
        return snapshot

    def mark_refreshing(self) -> Snapshot:
        """Flag that a cycle is in flight."""
        return self._publish(self._snapshot.model_copy(update={"refreshing": True}))

    def commit(
        self,
        result: CycleResult,
        *,
        refreshed_at: float | None = None,
        next_refresh_at: float | None = None,
    ) -> Snapshot:
        """Merge a cycle result into the snapshot.

        Merge semantics:
        - a source that succeeded overwrites its field;
        - a source that failed or was not invoked keeps the prior value;
        - ``error`` becomes the cycle's aggregate message (``None`` on success);
        - ``initialized`` becomes ``True`` and stays there.
        """
        now = self._clock()
        current = self._snapshot
        deadline = next_refresh_at if next_refresh_at is not None else current.next_refresh_at

        update: dict[str, Any] = {
            "error": result.error,
            "initialized": True,
            "refreshing": False,
            "last_refresh_at": refreshed_at if refreshed_at is not None else now,
            "next_refresh_at": deadline,
            "countdown_seconds": countdown_seconds(deadline, now),
        }
        for source, data in result.succeeded().items():
            field_name = _FIELD_FOR_SOURCE.get(source)
            if field_name is not None:
                update[field_name] = tuple(data)

        return self._publish(current.model_copy(update=update))

    def fail(self, error: str, *, next_refresh_at: float | None = None) -> Snapshot:
        """Record a cycle that produced no result; all data fields are kept."""
        now = self._clock()
        deadline = next_refresh_at if next_refresh_at is not None else self._snapshot.next_refresh_at
        update: dict[str, Any] = {
            "error": error,
            "initialized": True,
            "refreshing": False,
            "last_refresh_at": now,
            "next_refresh_at": deadline,
            "countdown_seconds": countdown_seconds(deadline, now),
        }
        return self._publish(self._snapshot.model_copy(update=update))

    def tick(self, now: float | None = None) -> int:
        """Recompute the countdown from the clock and notify subscribers."""
        if now is None:
            now = self._clock()
        remaining = countdown_seconds(self._snapshot.next_refresh_at, now)
        self._publish(self._snapshot.model_copy(update={"countdown_seconds": remaining}))
        return remaining
