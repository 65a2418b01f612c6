"""High-level async dashboard facade."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import aiohttp

from arbidash._transport import HttpTransport, Transport
from arbidash.aggregator import Aggregator
from arbidash.config import DashboardConfig
from arbidash.credentials import CredentialGate, TokenSource
from arbidash.exceptions import ArbiDashError
from arbidash.scheduler import RefreshScheduler, SchedulerState
from arbidash.sources import SOURCES, SourceFetcher, SourceName
from arbidash.state.store import Snapshot, SnapshotStore

_logger = logging.getLogger(__name__)


class Dashboard:
    """Keeps a dashboard snapshot fresh for a view layer.

    Usage::

        tokens = TokenStore()
        async with Dashboard(DashboardConfig.from_env(), tokens) as dashboard:
            unsubscribe = dashboard.subscribe(render)
            ...
            await dashboard.force_refresh()

    The view layer only needs :meth:`get_snapshot`, :meth:`subscribe` and
    :meth:`force_refresh`.
    """

    def __init__(
        self,
        config: DashboardConfig,
        token_source: TokenSource,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._clock = clock
        self.gate = CredentialGate(token_source)
        self.store = SnapshotStore(clock=clock)
        self._scheduler: RefreshScheduler | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Dashboard:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    def _build_scheduler(self, transport: Transport) -> RefreshScheduler:
        names = [SourceName.PAIRS, SourceName.TRACKING, SourceName.SENTIMENT]
        if self._config.sync_with_server:
            names.append(SourceName.STATUS)
        fetchers = [SourceFetcher(SOURCES[name], transport, self.gate) for name in names]
        return RefreshScheduler(
            Aggregator(fetchers, self.gate),
            self.store,
            self.gate,
            refresh_interval=self._config.refresh_interval,
            auth_poll_interval=self._config.auth_poll_interval,
            tick_interval=self._config.tick_interval,
            clock=self._clock,
        )

    async def start(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            return
        transport = self._transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = HttpTransport(self._config, self._http_session)
        self._scheduler = self._build_scheduler(transport)
        _logger.debug("Starting dashboard against %s", self._config.base_url)
        await self._scheduler.start()

    async def stop(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # View-layer API
    # ------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        if self._scheduler is None:
            return SchedulerState.IDLE
        return self._scheduler.state

    def get_snapshot(self) -> Snapshot:
        return self.store.get_snapshot()

    def subscribe(self, listener: Callable[[Snapshot], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    async def force_refresh(self) -> Snapshot:
        if self._scheduler is None:
            raise ArbiDashError("Dashboard not started. Use 'async with Dashboard(...) as dashboard:'")
        return await self._scheduler.force_refresh()
