"""arbidash - Refresh orchestration for a crypto-arbitrage signal dashboard."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("arbidash")
except PackageNotFoundError:
    __version__ = "0+local"
from arbidash.aggregator import Aggregator, CycleResult
from arbidash.config import DashboardConfig
from arbidash.credentials import CredentialGate, EnvTokenSource, TokenSource, TokenStore
from arbidash.dashboard import Dashboard
from arbidash.exceptions import (
    ArbiDashApiError,
    ArbiDashConfigError,
    ArbiDashError,
    ArbiDashPayloadError,
    ArbiDashTransportError,
)
from arbidash.models import RefreshStatus, SentimentRecord, SentimentSignal, TrackedPair
from arbidash.scheduler import RefreshScheduler, SchedulerState
from arbidash.sources import (
    FetchError,
    FetchErrorKind,
    FetchFailure,
    FetchResult,
    FetchSuccess,
    SourceFetcher,
    SourceName,
)
from arbidash.state.store import Snapshot, SnapshotStore

__all__ = [
    "__version__",
    "Aggregator",
    "ArbiDashApiError",
    "ArbiDashConfigError",
    "ArbiDashError",
    "ArbiDashPayloadError",
    "ArbiDashTransportError",
    "CredentialGate",
    "CycleResult",
    "Dashboard",
    "DashboardConfig",
    "EnvTokenSource",
    "FetchError",
    "FetchErrorKind",
    "FetchFailure",
    "FetchResult",
    "FetchSuccess",
    "RefreshScheduler",
    "RefreshStatus",
    "SchedulerState",
    "SentimentRecord",
    "SentimentSignal",
    "Snapshot",
    "SnapshotStore",
    "SourceFetcher",
    "SourceName",
    "TokenSource",
    "TokenStore",
    "TrackedPair",
]
