"""Latest-position polling ingestion.

Fixed cadence, no backoff: one fetch immediately on start, then one per
``poll_interval`` whether or not the previous tick succeeded.  Each tick
runs as its own task so a slow request never delays the next tick.
The underlying HTTP endpoint lives in :mod:`pyevtrack._api.telemetry`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pyevtrack._api.telemetry import fetch_latest_position
from pyevtrack._transport import Transport
from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import TelemetryFetchError
from pyevtrack.models.credential import TrackingCredential
from pyevtrack.models.location import Invalid, LocationSample
from pyevtrack.state.events import ChannelSignal, ChannelSource

_logger = logging.getLogger(__name__)


class PollingFetcher:
    """Periodic latest-position lookups for one device."""

    def __init__(
        self,
        *,
        config: TrackingConfig,
        transport: Transport,
        on_sample: Callable[[LocationSample, ChannelSource], Any],
        on_signal: Callable[[ChannelSource, ChannelSignal], Any],
        interval: float | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._on_sample = on_sample
        self._on_signal = on_signal
        self._interval = config.poll_interval if interval is None else interval
        self._runner: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._stopped = False

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    async def fetch_once(self, credential: TrackingCredential) -> LocationSample | Invalid:
        """One latest-position lookup.

        Raises
        ------
        TelemetryFetchError
            When the request fails; callers decide whether to keep going.
        """
        return await fetch_latest_position(self._config, credential, self._transport)

    def start(self, credential: TrackingCredential) -> asyncio.Task[None]:
        """Start the cadence and return its cancelable task."""
        if self._stopped:
            raise RuntimeError("PollingFetcher cannot be restarted after stop()")
        if self._runner is None:
            self._runner = asyncio.get_running_loop().create_task(
                self._run(credential),
                name=f"pyevtrack-poll-{credential.device_handle}",
            )
        return self._runner

    async def stop(self) -> None:
        """Cancel the cadence.

        In-flight requests are left to finish; their results are discarded.
        """
        self._stopped = True
        runner = self._runner
        if runner is None:
            return
        runner.cancel()
        try:
            await runner
        except asyncio.CancelledError:
            pass

    async def _run(self, credential: TrackingCredential) -> None:
        loop = asyncio.get_running_loop()
        while not self._stopped:
            tick = loop.create_task(self._tick(credential))
            self._inflight.add(tick)
            tick.add_done_callback(self._inflight.discard)
            await asyncio.sleep(self._interval)

    async def _tick(self, credential: TrackingCredential) -> None:
        try:
            result = await self.fetch_once(credential)
        except TelemetryFetchError as exc:
            if self._stopped:
                return
            _logger.warning("Telemetry poll for device %s failed: %s", credential.device_handle, exc)
            self._on_signal(ChannelSource.POLL, ChannelSignal.FAILED)
            return
        except Exception:
            if self._stopped:
                return
            _logger.warning(
                "Telemetry poll for device %s failed unexpectedly",
                credential.device_handle,
                exc_info=True,
            )
            self._on_signal(ChannelSource.POLL, ChannelSignal.FAILED)
            return

        if self._stopped:
            _logger.debug("Discarding poll result received after teardown")
            return

        self._on_signal(ChannelSource.POLL, ChannelSignal.HEALTHY)
        if isinstance(result, Invalid):
            return
        self._on_sample(result, ChannelSource.POLL)
