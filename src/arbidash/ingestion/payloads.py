"""Payload shape classification and per-source normalizers.

The API answers in a handful of shapes. Each shape is classified once by
:func:`classify_payload` and handled by exactly one pure function:

- ``ARRAY``    -> :func:`unwrap_array`
- ``RESULTS``  -> :func:`unwrap_results` (``{"results": [...]}``)
- ``KEYED``    -> :func:`keyed_to_records` (``{"BTC": {...}, ...}``)
- ``ENVELOPE`` -> :func:`unwrap_envelope` (``{"success": ..., "data": [...]}``)

The per-source normalizers below pick which shapes they accept. None of
this module performs I/O.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from arbidash._constants import PAIRS_PATH, SENTIMENT_PATH, STATUS_PATH, TRACKING_PATH
from arbidash.exceptions import ArbiDashApiError, ArbiDashPayloadError
from arbidash.models.sentiment import SentimentRecord
from arbidash.models.status import RefreshStatus
from arbidash.models.tracking import TrackedPair

_logger = logging.getLogger(__name__)


class PayloadShape(StrEnum):
    ARRAY = "array"
    RESULTS = "results"
    KEYED = "keyed"
    ENVELOPE = "envelope"


def classify_payload(payload: Any) -> PayloadShape | None:
    """Return the shape of a decoded JSON payload, or ``None`` for scalars."""
    if isinstance(payload, list):
        return PayloadShape.ARRAY
    if isinstance(payload, dict):
        if isinstance(payload.get("results"), list):
            return PayloadShape.RESULTS
        if isinstance(payload.get("success"), bool):
            return PayloadShape.ENVELOPE
        return PayloadShape.KEYED
    return None


def unwrap_array(payload: list[Any]) -> list[Any]:
    return list(payload)


def unwrap_results(payload: dict[str, Any]) -> list[Any]:
    return list(payload["results"])


def keyed_to_records(payload: dict[str, Any]) -> list[TrackedPair]:
    """Convert a symbol-keyed map into records, one per key, in key order.

    Entries that cannot form a record (a blank or placeholder symbol) are
    skipped with a warning.
    """
    records: list[TrackedPair] = []
    for symbol, info in payload.items():
        try:
            records.append(TrackedPair.from_entry(symbol, info))
        except ValidationError as exc:
            _logger.warning("Skipping %s entry %r: %s", TRACKING_PATH, symbol, exc)
    return records


def unwrap_envelope(payload: dict[str, Any], *, endpoint: str = "") -> list[Any]:
    """Unwrap ``{"success": bool, "data": [...], "message": str}``.

    ``success: false`` raises :class:`ArbiDashApiError` with the server's
    message. A successful envelope without ``data`` is an empty list.
    """
    if not payload["success"]:
        message = payload.get("message") or "request rejected"
        raise ArbiDashApiError(f"{endpoint} rejected: {message}", endpoint=endpoint)
    data = payload.get("data")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ArbiDashPayloadError(
            f"{endpoint} envelope data is {type(data).__name__}, expected list",
            endpoint=endpoint,
        )
    return list(data)


def normalize_pairs(payload: Any) -> list[Any]:
    """Pair spreads: a bare array or ``{"results": [...]}``."""
    shape = classify_payload(payload)
    if shape == PayloadShape.ARRAY:
        return unwrap_array(payload)
    if shape == PayloadShape.RESULTS:
        return unwrap_results(payload)
    raise ArbiDashPayloadError(
        f"{PAIRS_PATH} returned unexpected {shape or type(payload).__name__} payload",
        endpoint=PAIRS_PATH,
    )


def normalize_tracking(payload: Any) -> list[TrackedPair]:
    """Tracked pairs: a symbol-keyed map.

    Any other shape yields an empty list rather than an error.
    """
    shape = classify_payload(payload)
    if shape == PayloadShape.KEYED:
        return keyed_to_records(payload)
    _logger.warning("Ignoring %s payload of shape %s", TRACKING_PATH, shape or type(payload).__name__)
    return []


def normalize_sentiment(payload: Any) -> list[SentimentRecord]:
    """Sentiment: ``{"success", "data", "message"}`` envelope, or a bare list.

    Records are ordered by ``overallSentiment``, highest first.
    """
    shape = classify_payload(payload)
    if shape == PayloadShape.ENVELOPE:
        items = unwrap_envelope(payload, endpoint=SENTIMENT_PATH)
    elif shape == PayloadShape.ARRAY:
        items = unwrap_array(payload)
    elif shape == PayloadShape.RESULTS:
        items = unwrap_results(payload)
    else:
        raise ArbiDashPayloadError(
            f"{SENTIMENT_PATH} returned unexpected {shape or type(payload).__name__} payload",
            endpoint=SENTIMENT_PATH,
        )
    records = [SentimentRecord.model_validate(item) for item in items if isinstance(item, dict)]
    # Most bullish first; unscored records last, in payload order.
    return sorted(
        records,
        key=lambda record: (record.overall_sentiment is None, -(record.overall_sentiment or 0.0)),
    )


def normalize_status(payload: Any) -> RefreshStatus:
    """Refresh status: ``{"nextRefreshTime": <epoch ms>}``."""
    if not isinstance(payload, dict):
        raise ArbiDashPayloadError(
            f"{STATUS_PATH} returned {type(payload).__name__}, expected object",
            endpoint=STATUS_PATH,
        )
    return RefreshStatus.model_validate(payload)
