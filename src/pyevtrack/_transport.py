"""HTTP transport for the console backend and the telemetry provider."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyevtrack._constants import USER_AGENT
from pyevtrack._redact import redact_for_log
from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import TrackingTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        timeout: float,
        endpoint: str = "",
    ) -> Any:
        ...


class HttpTransport:
    """aiohttp-backed JSON transport.

    Every failure mode (network error, timeout, non-2xx status, body that
    is not JSON) is raised as :class:`TrackingTransportError` so endpoint
    modules can map it onto their own error taxonomy.
    """

    def __init__(self, config: TrackingConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        timeout: float,
        endpoint: str = "",
    ) -> Any:
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
            **headers,
        }
        endpoint = endpoint or url

        _logger.debug("GET %s", url)
        if self._config.api_trace_enabled:
            _logger.debug("GET %s headers=%s", url, redact_for_log(request_headers))

        try:
            async with self._http.get(
                url,
                headers=request_headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise TrackingTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except TrackingTransportError:
            raise
        except TimeoutError as exc:
            raise TrackingTransportError(
                f"Request to {endpoint} timed out after {timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TrackingTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except (UnicodeDecodeError, LookupError) as exc:
            # Undecodable body or unknown charset in Content-Type.
            raise TrackingTransportError(
                f"Undecodable response from {endpoint}: {exc}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            return {}

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TrackingTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("Response %s body=%s", endpoint, redact_for_log(body))
        return body
