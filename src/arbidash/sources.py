"""Remote data sources and their fetchers.

A :class:`SourceFetcher` performs one named read and converts every failure
into a :class:`FetchFailure`. It never raises (cancellation excepted), so
one failing source cannot abort the others fetched in the same cycle.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from arbidash._constants import PAIRS_PATH, SENTIMENT_PATH, STATUS_PATH, TRACKING_PATH
from arbidash._transport import Transport
from arbidash.credentials import CredentialGate
from arbidash.exceptions import ArbiDashApiError, ArbiDashPayloadError, ArbiDashTransportError
from arbidash.ingestion.payloads import normalize_pairs, normalize_sentiment, normalize_status, normalize_tracking

_logger = logging.getLogger(__name__)


class SourceName(StrEnum):
    PAIRS = "pairs"
    TRACKING = "tracking"
    SENTIMENT = "sentiment"
    STATUS = "status"


class FetchErrorKind(StrEnum):
    UNAUTHORIZED = "unauthorized"
    HTTP_STATUS = "http_status"
    MALFORMED_PAYLOAD = "malformed_payload"
    NETWORK_FAILURE = "network_failure"
    API_REJECTED = "api_rejected"


@dataclass(frozen=True, slots=True)
class FetchError:
    kind: FetchErrorKind
    message: str
    status: int | None = None


@dataclass(frozen=True, slots=True)
class FetchSuccess:
    data: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class FetchFailure:
    error: FetchError

    @property
    def ok(self) -> bool:
        return False


FetchResult = FetchSuccess | FetchFailure


@dataclass(frozen=True, slots=True)
class SourceSpec:
    """Static description of one remote source."""

    name: SourceName
    path: str
    requires_auth: bool
    normalizer: Callable[[Any], Any]


SOURCES: dict[SourceName, SourceSpec] = {
    SourceName.PAIRS: SourceSpec(SourceName.PAIRS, PAIRS_PATH, True, normalize_pairs),
    SourceName.TRACKING: SourceSpec(SourceName.TRACKING, TRACKING_PATH, True, normalize_tracking),
    SourceName.SENTIMENT: SourceSpec(SourceName.SENTIMENT, SENTIMENT_PATH, False, normalize_sentiment),
    SourceName.STATUS: SourceSpec(SourceName.STATUS, STATUS_PATH, True, normalize_status),
}


class SourceFetcher:
    """Fetch and normalize a single source."""

    def __init__(self, spec: SourceSpec, transport: Transport, gate: CredentialGate) -> None:
        self.spec = spec
        self._transport = transport
        self._gate = gate

    @property
    def name(self) -> SourceName:
        return self.spec.name

    def _fail(self, kind: FetchErrorKind, message: str, status: int | None = None) -> FetchFailure:
        _logger.warning("%s fetch failed (%s): %s", self.spec.name, kind, message)
        return FetchFailure(FetchError(kind=kind, message=f"{self.spec.name}: {message}", status=status))

    async def fetch(self) -> FetchResult:
        token: str | None = None
        if self.spec.requires_auth:
            token = self._gate.token()
            if token is None:
                return self._fail(FetchErrorKind.UNAUTHORIZED, "no credential available")

        try:
            payload = await self._transport.get_json(self.spec.path, token=token)
            data = self.spec.normalizer(payload)
        except ArbiDashTransportError as exc:
            if exc.status_code is not None:
                return self._fail(FetchErrorKind.HTTP_STATUS, str(exc), exc.status_code)
            return self._fail(FetchErrorKind.NETWORK_FAILURE, str(exc))
        except ArbiDashApiError as exc:
            return self._fail(FetchErrorKind.API_REJECTED, str(exc))
        except (ArbiDashPayloadError, ValidationError) as exc:
            return self._fail(FetchErrorKind.MALFORMED_PAYLOAD, str(exc))
        except Exception as exc:
            _logger.debug("Unexpected %s fetch error", self.spec.name, exc_info=True)
            return self._fail(FetchErrorKind.NETWORK_FAILURE, f"unexpected error: {exc}")

        _logger.debug("%s fetch succeeded", self.spec.name)
        return FetchSuccess(data)
