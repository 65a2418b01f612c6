"""HTTP transport for the arbitrage signal API."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from arbidash._constants import USER_AGENT
from arbidash._redact import redact_for_log
from arbidash.config import DashboardConfig
from arbidash.exceptions import ArbiDashPayloadError, ArbiDashTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by source fetchers.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str, *, token: str | None = None) -> Any:
        ...


class HttpTransport:
    """JSON-over-HTTP transport with optional bearer authorization."""

    def __init__(self, config: DashboardConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_json(self, endpoint: str, *, token: str | None = None) -> Any:
        """GET *endpoint* and return the decoded JSON body.

        Raises :class:`ArbiDashTransportError` for connection failures,
        timeouts and non-2xx statuses, and :class:`ArbiDashPayloadError`
        when the body is not JSON.
        """
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if token:
            headers["authorization"] = f"Bearer {token}"

        url = f"{self._config.base_url}{endpoint}"
        _logger.debug("GET %s headers=%s", url, redact_for_log(headers))

        try:
            async with self._http.get(url, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise ArbiDashTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except ArbiDashTransportError:
            raise
        except TimeoutError as exc:
            raise ArbiDashTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise ArbiDashTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ArbiDashPayloadError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc
