from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

import pytest

from arbidash.aggregator import Aggregator, CycleResult
from arbidash.credentials import CredentialGate, TokenStore
from arbidash.models.status import RefreshStatus
from arbidash.scheduler import RefreshScheduler, SchedulerState
from arbidash.sources import SOURCES, FetchError, FetchErrorKind, FetchFailure, FetchSuccess, SourceFetcher, SourceName
from arbidash.state.store import Snapshot, SnapshotStore


class _GatedBackend:
    """Records endpoints; sentiment reads wait for ``release``."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.endpoints: list[str] = []

    async def get_json(self, endpoint: str, *, token: str | None = None) -> Any:
        self.endpoints.append(endpoint)
        if endpoint == SOURCES[SourceName.SENTIMENT].path:
            await self.release.wait()
            return {"success": True, "data": []}
        if endpoint == SOURCES[SourceName.PAIRS].path:
            return []
        return {}


class _FailingAggregator:
    async def run_cycle(self) -> CycleResult:
        raise RuntimeError("aggregator exploded")


class _FakeAggregator:
    """Counts cycles and tracks how many run at the same time."""

    def __init__(self, result: CycleResult | None = None, *, blocking: bool = False) -> None:
        self.result = result or CycleResult(results={SourceName.SENTIMENT: FetchSuccess(["s"])})
        self.release = asyncio.Event()
        if not blocking:
            self.release.set()
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def run_cycle(self) -> CycleResult:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.release.wait()
            return self.result
        finally:
            self.active -= 1


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    give_up = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > give_up:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


def _scheduler(
    aggregator: _FakeAggregator,
    tokens: TokenStore,
    *,
    store: SnapshotStore | None = None,
    refresh_interval: float = 60.0,
    clock: Callable[[], float] = time.time,
) -> RefreshScheduler:
    return RefreshScheduler(
        aggregator,  # type: ignore[arg-type]
        store or SnapshotStore(clock=clock),
        CredentialGate(tokens),
        refresh_interval=refresh_interval,
        auth_poll_interval=0.01,
        tick_interval=0.01,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_waits_for_credential_then_refreshes_and_drops_poll_timer() -> None:
    tokens = TokenStore()
    aggregator = _FakeAggregator()
    scheduler = _scheduler(aggregator, tokens)

    await scheduler.start()
    await asyncio.sleep(0.05)
    assert scheduler.state == SchedulerState.AWAITING_CREDENTIAL
    assert aggregator.calls == 0

    tokens.set("tok")
    await _wait_for(lambda: scheduler.state == SchedulerState.COUNTING_DOWN)

    assert aggregator.calls == 1
    assert scheduler._poll_task is None  # noqa: SLF001

    # Losing the credential later must not re-arm the poll timer.
    tokens.clear()
    await scheduler.force_refresh()
    await asyncio.sleep(0.05)
    assert scheduler.state == SchedulerState.COUNTING_DOWN
    assert scheduler._poll_task is None  # noqa: SLF001

    await scheduler.stop()


@pytest.mark.asyncio
async def test_starts_refreshing_immediately_with_credential() -> None:
    aggregator = _FakeAggregator()
    scheduler = _scheduler(aggregator, TokenStore("tok"))

    async with scheduler:
        await _wait_for(lambda: scheduler.state == SchedulerState.COUNTING_DOWN)
        assert aggregator.calls == 1

    assert scheduler.state == SchedulerState.IDLE


@pytest.mark.asyncio
async def test_force_refresh_during_inflight_cycle_joins_it() -> None:
    aggregator = _FakeAggregator(blocking=True)
    scheduler = _scheduler(aggregator, TokenStore("tok"))

    await scheduler.start()
    await _wait_for(lambda: aggregator.calls == 1)
    assert scheduler.state == SchedulerState.REFRESHING

    first = asyncio.create_task(scheduler.force_refresh())
    second = asyncio.create_task(scheduler.force_refresh())
    await asyncio.sleep(0.02)
    assert aggregator.calls == 1

    aggregator.release.set()
    snapshots = await asyncio.gather(first, second)

    assert snapshots[0] is snapshots[1]
    assert aggregator.calls == 1
    assert aggregator.max_active == 1
    await scheduler.stop()


@pytest.mark.asyncio
async def test_force_refresh_while_counting_down_supersedes_deadline() -> None:
    clock_value = [1_000.0]
    aggregator = _FakeAggregator()
    scheduler = _scheduler(aggregator, TokenStore("tok"), clock=lambda: clock_value[0])

    await scheduler.start()
    await _wait_for(lambda: scheduler.state == SchedulerState.COUNTING_DOWN)
    assert scheduler.deadline == 1_060.0

    clock_value[0] = 1_010.0
    snapshot = await scheduler.force_refresh()

    assert aggregator.calls == 2
    assert scheduler.deadline == 1_070.0
    assert snapshot.countdown_seconds == 60
    await scheduler.stop()


@pytest.mark.asyncio
async def test_countdown_tick_restarts_cycle_at_deadline() -> None:
    aggregator = _FakeAggregator()
    store = SnapshotStore()
    countdowns: list[int] = []
    store.subscribe(lambda snapshot: countdowns.append(snapshot.countdown_seconds))
    scheduler = _scheduler(aggregator, TokenStore("tok"), store=store, refresh_interval=0.05)

    await scheduler.start()
    await _wait_for(lambda: aggregator.calls >= 3)
    await scheduler.stop()

    assert aggregator.max_active == 1
    assert countdowns
    assert all(value >= 0 for value in countdowns)


@pytest.mark.asyncio
async def test_server_deadline_is_adopted() -> None:
    result = CycleResult(
        results={
            SourceName.SENTIMENT: FetchSuccess([]),
            SourceName.STATUS: FetchSuccess(RefreshStatus(next_refresh_time=1_120.0)),
        }
    )
    aggregator = _FakeAggregator(result)
    scheduler = _scheduler(aggregator, TokenStore("tok"), clock=lambda: 1_000.0)

    snapshot = await scheduler.force_refresh()

    assert scheduler.deadline == 1_120.0
    assert snapshot.next_refresh_at == 1_120.0
    assert snapshot.countdown_seconds == 120


@pytest.mark.asyncio
async def test_stale_server_deadline_falls_back_to_interval() -> None:
    result = CycleResult(results={SourceName.STATUS: FetchSuccess(RefreshStatus(next_refresh_time=900.0))})
    aggregator = _FakeAggregator(result)
    scheduler = _scheduler(aggregator, TokenStore("tok"), clock=lambda: 1_000.0, refresh_interval=30.0)

    await scheduler.force_refresh()

    assert scheduler.deadline == 1_030.0


@pytest.mark.asyncio
async def test_failed_cycle_surfaces_error_and_keeps_counting_down() -> None:
    failure = FetchFailure(FetchError(FetchErrorKind.HTTP_STATUS, "pairs: HTTP 500", status=500))
    aggregator = _FakeAggregator(CycleResult(results={SourceName.PAIRS: failure}))
    scheduler = _scheduler(aggregator, TokenStore("tok"))

    await scheduler.start()
    await _wait_for(lambda: scheduler.state == SchedulerState.COUNTING_DOWN)

    snapshot: Snapshot = scheduler._store.get_snapshot()  # noqa: SLF001
    assert snapshot.error == "pairs: HTTP 500"
    assert snapshot.initialized is True
    assert scheduler._tick_task is not None  # noqa: SLF001
    await scheduler.stop()


@pytest.mark.asyncio
async def test_stop_releases_timers() -> None:
    aggregator = _FakeAggregator()
    scheduler = _scheduler(aggregator, TokenStore("tok"))
    await scheduler.start()
    await _wait_for(lambda: scheduler.state == SchedulerState.COUNTING_DOWN)
    tick_task = scheduler._tick_task  # noqa: SLF001

    await scheduler.stop()
    await asyncio.sleep(0.01)

    assert scheduler.state == SchedulerState.IDLE
    assert scheduler._tick_task is None  # noqa: SLF001
    assert tick_task is not None and tick_task.cancelled()


@pytest.mark.asyncio
async def test_stop_while_awaiting_credential_releases_poll() -> None:
    scheduler = _scheduler(_FakeAggregator(), TokenStore())
    await scheduler.start()
    poll_task = scheduler._poll_task  # noqa: SLF001

    await scheduler.stop()
    await asyncio.sleep(0.01)

    assert scheduler.state == SchedulerState.IDLE
    assert poll_task is not None and poll_task.cancelled()


@pytest.mark.asyncio
async def test_stop_waits_for_inflight_cycle() -> None:
    aggregator = _FakeAggregator(blocking=True)
    scheduler = _scheduler(aggregator, TokenStore("tok"))
    await scheduler.start()
    await _wait_for(lambda: aggregator.calls == 1)

    stopping = asyncio.create_task(scheduler.stop())
    await asyncio.sleep(0.02)
    assert not stopping.done()

    aggregator.release.set()
    await stopping

    assert scheduler.state == SchedulerState.IDLE
    assert scheduler._store.get_snapshot().initialized is True  # noqa: SLF001
    assert scheduler._tick_task is None  # noqa: SLF001


@pytest.mark.asyncio
async def test_force_refresh_without_credential_returns_to_waiting() -> None:
    aggregator = _FakeAggregator()
    scheduler = _scheduler(aggregator, TokenStore())
    await scheduler.start()

    snapshot = await scheduler.force_refresh()

    assert snapshot.sentiment_data == ("s",)
    assert scheduler.state == SchedulerState.AWAITING_CREDENTIAL
    await scheduler.stop()


@pytest.mark.asyncio
async def test_credential_arriving_during_public_cycle_triggers_full_refresh() -> None:
    tokens = TokenStore()
    gate = CredentialGate(tokens)
    backend = _GatedBackend()
    fetchers = [SourceFetcher(spec, backend, gate) for spec in SOURCES.values()]
    scheduler = RefreshScheduler(
        Aggregator(fetchers, gate),
        SnapshotStore(),
        gate,
        refresh_interval=300.0,
        auth_poll_interval=0.01,
        tick_interval=0.01,
    )
    await scheduler.start()

    forced = asyncio.create_task(scheduler.force_refresh())
    await _wait_for(lambda: backend.endpoints == [SOURCES[SourceName.SENTIMENT].path])
    tokens.set("tok")
    backend.release.set()
    await forced

    await _wait_for(lambda: scheduler.state == SchedulerState.COUNTING_DOWN)
    assert SOURCES[SourceName.PAIRS].path in backend.endpoints
    assert SOURCES[SourceName.TRACKING].path in backend.endpoints
    assert backend.endpoints.count(SOURCES[SourceName.SENTIMENT].path) == 2
    assert scheduler._poll_task is None  # noqa: SLF001
    await scheduler.stop()


@pytest.mark.asyncio
async def test_aggregator_exception_is_surfaced_and_countdown_resumes() -> None:
    store = SnapshotStore(clock=lambda: 1_000.0)
    scheduler = RefreshScheduler(
        _FailingAggregator(),  # type: ignore[arg-type]
        store,
        CredentialGate(TokenStore("tok")),
        refresh_interval=30.0,
        auth_poll_interval=0.01,
        tick_interval=0.01,
        clock=lambda: 1_000.0,
    )

    await scheduler.start()
    await _wait_for(lambda: scheduler.state == SchedulerState.COUNTING_DOWN)

    snapshot = store.get_snapshot()
    assert snapshot.refreshing is False
    assert snapshot.initialized is True
    assert snapshot.error is not None and "aggregator exploded" in snapshot.error
    assert scheduler.deadline == 1_030.0

    await scheduler.stop()
    assert scheduler.state == SchedulerState.IDLE
