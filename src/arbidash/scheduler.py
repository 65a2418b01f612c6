"""Refresh cadence and countdown state machine.

States and the timer each one owns:

- ``AWAITING_CREDENTIAL``: credential poll timer (``auth_poll_interval``).
- ``REFRESHING``: no timer; one aggregator cycle is in flight.
- ``COUNTING_DOWN``: countdown tick timer (``tick_interval``). The tick
  itself starts the next cycle once the deadline has passed.
- ``IDLE``: nothing armed (before ``start()`` / after ``stop()``).

Timers are acquired on state entry and released on every exit path. A cycle
is never cancelled; triggers that arrive while one is in flight join it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from arbidash._constants import DEFAULT_AUTH_POLL_INTERVAL, DEFAULT_REFRESH_INTERVAL, DEFAULT_TICK_INTERVAL
from arbidash.aggregator import Aggregator
from arbidash.credentials import CredentialGate
from arbidash.models.status import RefreshStatus
from arbidash.sources import SourceName
from arbidash.state.policy import is_due, resolve_deadline
from arbidash.state.store import Snapshot, SnapshotStore

_logger = logging.getLogger(__name__)


class SchedulerState(StrEnum):
    AWAITING_CREDENTIAL = "awaiting_credential"
    IDLE = "idle"
    REFRESHING = "refreshing"
    COUNTING_DOWN = "counting_down"


class RefreshScheduler:
    """Drive refresh cycles on a fixed cadence with a wall-clock countdown.

    Usage::

        scheduler = RefreshScheduler(aggregator, store, gate)
        async with scheduler:
            ...
            snapshot = await scheduler.force_refresh()
    """

    def __init__(
        self,
        aggregator: Aggregator,
        store: SnapshotStore,
        gate: CredentialGate,
        *,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        auth_poll_interval: float = DEFAULT_AUTH_POLL_INTERVAL,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._aggregator = aggregator
        self._store = store
        self._gate = gate
        self._refresh_interval = refresh_interval
        self._auth_poll_interval = auth_poll_interval
        self._tick_interval = tick_interval
        self._clock = clock

        self._state = SchedulerState.IDLE
        self._running = False
        self._credential_seen = False
        self._deadline: float | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._tick_task: asyncio.Task[None] | None = None
        self._cycle_task: asyncio.Task[Snapshot] | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def deadline(self) -> float | None:
        """Epoch seconds at which the next cycle starts."""
        return self._deadline

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RefreshScheduler:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Start refreshing, or wait for a credential when none is present."""
        if self._running:
            return
        self._running = True
        if self._credential_seen or self._gate.is_authorized():
            self._credential_seen = True
            self._start_cycle()
        else:
            self._enter_awaiting_credential()

    async def stop(self) -> None:
        """Release all timers and let an in-flight cycle settle."""
        self._running = False
        self._release_poll()
        self._release_tick()
        cycle = self._cycle_task
        if cycle is not None:
            await asyncio.shield(cycle)
        self._state = SchedulerState.IDLE

    async def force_refresh(self) -> Snapshot:
        """Refresh now, superseding the current deadline.

        While a cycle is already in flight this joins it instead of starting
        a second one. Returns the snapshot committed by that cycle.
        """
        return await asyncio.shield(self._start_cycle())

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _release_poll(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _release_tick(self) -> None:
        task, self._tick_task = self._tick_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _enter_awaiting_credential(self) -> None:
        self._state = SchedulerState.AWAITING_CREDENTIAL
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_credential())

    def _enter_counting_down(self) -> None:
        self._state = SchedulerState.COUNTING_DOWN
        self._store.tick()
        self._tick_task = asyncio.get_running_loop().create_task(self._countdown())

    async def _poll_credential(self) -> None:
        while True:
            await asyncio.sleep(self._auth_poll_interval)
            if self._gate.is_authorized():
                _logger.debug("Credential detected; starting first refresh")
                self._credential_seen = True
                self._start_cycle()
                return

    async def _countdown(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            now = self._clock()
            self._store.tick(now)
            if is_due(self._deadline, now):
                _logger.debug("Deadline reached; refreshing")
                self._start_cycle()
                return

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def _start_cycle(self) -> asyncio.Task[Snapshot]:
        if self._cycle_task is not None:
            _logger.debug("Refresh already in flight; joining it")
            return self._cycle_task
        self._release_poll()
        self._release_tick()
        self._state = SchedulerState.REFRESHING
        self._store.mark_refreshing()
        self._cycle_task = asyncio.get_running_loop().create_task(self._run_cycle())
        return self._cycle_task

    async def _run_cycle(self) -> Snapshot:
        try:
            result = await self._aggregator.run_cycle()
            refreshed_at = self._clock()
            status = result.succeeded().get(SourceName.STATUS)
            server_deadline = status.next_refresh_time if isinstance(status, RefreshStatus) else None
            self._deadline = resolve_deadline(
                refreshed_at=refreshed_at,
                refresh_interval=self._refresh_interval,
                server_deadline=server_deadline,
            )
            _logger.debug(
                "Cycle committed; next refresh in %.1fs (%s deadline)",
                self._deadline - refreshed_at,
                "server" if self._deadline == server_deadline else "local",
            )
            return self._store.commit(result, refreshed_at=refreshed_at, next_refresh_at=self._deadline)
        except Exception as exc:
            _logger.warning("Refresh cycle failed", exc_info=True)
            self._deadline = self._clock() + self._refresh_interval
            return self._store.fail(f"refresh failed: {exc}", next_refresh_at=self._deadline)
        finally:
            self._cycle_task = None
            self._after_cycle()

    def _after_cycle(self) -> None:
        if not self._running:
            self._state = SchedulerState.IDLE
            return
        if not self._credential_seen:
            if not self._gate.is_authorized():
                self._enter_awaiting_credential()
                return
            # Last cycle ran public sources only.
            _logger.debug("Credential detected during refresh; refreshing again")
            self._credential_seen = True
            self._start_cycle()
            return
        if self._deadline is None:
            self._deadline = self._clock() + self._refresh_interval
        self._enter_counting_down()
