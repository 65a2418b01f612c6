"""Per-cycle fan-out over the active sources."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from arbidash.credentials import CredentialGate
from arbidash.sources import FetchFailure, FetchResult, FetchSuccess, SourceFetcher, SourceName

_logger = logging.getLogger(__name__)

# Fixed order for error messages so they do not depend on completion order.
_SOURCE_ORDER: tuple[SourceName, ...] = (
    SourceName.PAIRS,
    SourceName.TRACKING,
    SourceName.SENTIMENT,
    SourceName.STATUS,
)


@dataclass(frozen=True)
class CycleResult:
    """Outcome of one refresh cycle.

    ``results`` only contains the sources that were invoked; a source left
    out because no credential was present is simply absent.
    """

    results: Mapping[SourceName, FetchResult] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results.values())

    @property
    def invoked(self) -> frozenset[SourceName]:
        return frozenset(self.results)

    def succeeded(self) -> dict[SourceName, Any]:
        """Data of every source that succeeded."""
        return {name: result.data for name, result in self.results.items() if isinstance(result, FetchSuccess)}

    def failures(self) -> dict[SourceName, FetchFailure]:
        return {name: result for name, result in self.results.items() if isinstance(result, FetchFailure)}

    @property
    def error(self) -> str | None:
        """Failure messages joined in source order, or ``None`` when all succeeded."""
        failures = self.failures()
        if not failures:
            return None
        return "; ".join(failures[name].error.message for name in _SOURCE_ORDER if name in failures)


class Aggregator:
    """Run every permitted source fetcher for a cycle concurrently."""

    def __init__(
        self,
        fetchers: Iterable[SourceFetcher],
        gate: CredentialGate,
    ) -> None:
        self._fetchers: dict[SourceName, SourceFetcher] = {fetcher.name: fetcher for fetcher in fetchers}
        self._gate = gate

    def active_fetchers(self) -> list[SourceFetcher]:
        """Public sources always; authenticated ones only while authorized."""
        authorized = self._gate.is_authorized()
        return [
            fetcher
            for fetcher in self._fetchers.values()
            if authorized or not fetcher.spec.requires_auth
        ]

    async def run_cycle(self) -> CycleResult:
        active = self.active_fetchers()
        skipped = set(self._fetchers) - {fetcher.name for fetcher in active}
        if skipped:
            _logger.debug("No credential; omitting %s", ", ".join(sorted(skipped)))

        outcomes = await asyncio.gather(*(fetcher.fetch() for fetcher in active))
        result = CycleResult(results=dict(zip((fetcher.name for fetcher in active), outcomes, strict=True)))

        if result.ok:
            _logger.debug("Cycle succeeded for %s", ", ".join(sorted(result.invoked)))
        else:
            _logger.warning("Cycle finished with failures: %s", result.error)
        return result
