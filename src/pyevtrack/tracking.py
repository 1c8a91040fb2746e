"""Tracking session: one viewer following one vehicle.

Wires the credential grant, push subscriber, polling fetcher and
reconciler together and gives them a single teardown boundary.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from pyevtrack._api.credential import CredentialGrant
from pyevtrack._mqtt import TelemetryMqttRuntime
from pyevtrack._transport import Transport
from pyevtrack.config import TrackingConfig
from pyevtrack.ingestion.polling import PollingFetcher
from pyevtrack.ingestion.push import PushState, PushSubscriber
from pyevtrack.models.credential import TrackingCredential
from pyevtrack.models.state import TrackedVehicleState
from pyevtrack.state.events import ChannelSource
from pyevtrack.state.reconciler import LocationReconciler

_logger = logging.getLogger(__name__)


class TrackingSession:
    """Live position tracking for one vehicle.

    Usage::

        async with TrackingClient(config, auth) as client:
            async with await client.track(vehicle_id) as session:
                state = session.state
    """

    def __init__(
        self,
        *,
        config: TrackingConfig,
        transport: Transport,
        grant: CredentialGrant,
        on_update: Callable[[TrackedVehicleState], Any] | None = None,
        clock: Callable[[], float] = time.monotonic,
        push_runtime_factory: Callable[..., Any] | None = None,
    ) -> None:
        self._config = config
        self._grant = grant
        self._started = False
        self._closed = False
        self._reconciler = LocationReconciler(
            grant.vehicle_id,
            poll_interval=config.poll_interval,
            push_enabled=config.mqtt_enabled,
            clock=clock,
            on_change=on_update,
        )
        self._poller = PollingFetcher(
            config=config,
            transport=transport,
            on_sample=self._reconciler.on_candidate,
            on_signal=self._reconciler.on_channel_status,
        )
        self._push_runtime_factory = push_runtime_factory
        self._push: PushSubscriber | None = None

    @property
    def vehicle_id(self) -> str:
        return self._grant.vehicle_id

    @property
    def credential(self) -> TrackingCredential:
        return self._grant.credential

    @property
    def state(self) -> TrackedVehicleState:
        return self._reconciler.get_state()

    @property
    def push_state(self) -> PushState:
        return self._push.state if self._push is not None else PushState.DISCONNECTED

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Seed the display and start both channels."""
        if self._closed:
            raise RuntimeError("TrackingSession is closed")
        if self._started:
            return
        self._started = True

        if self._grant.initial_sample is not None:
            self._reconciler.on_candidate(self._grant.initial_sample, ChannelSource.SEED)

        credential = self._grant.credential
        if self._config.mqtt_enabled:
            self._push = PushSubscriber(
                config=self._config,
                loop=asyncio.get_running_loop(),
                on_sample=self._reconciler.on_candidate,
                on_signal=self._reconciler.on_channel_status,
                runtime_factory=self._push_runtime_factory or TelemetryMqttRuntime,
            )
            self._push.start(credential)

        self._poller.start(credential)
        _logger.debug(
            "Tracking session started vehicle=%s device=%s push=%s interval=%.1fs",
            self.vehicle_id,
            credential.device_handle,
            self.push_state,
            self._poller.interval,
        )

    async def close(self) -> None:
        """Tear down both channels; late results become no-ops."""
        if self._closed:
            return
        self._closed = True
        self._reconciler.close()
        push = self._push
        if push is not None:
            # paho's loop_stop joins the network thread.
            await asyncio.get_running_loop().run_in_executor(None, push.stop)
        await self._poller.stop()
        _logger.debug("Tracking session closed vehicle=%s", self.vehicle_id)

    async def __aenter__(self) -> TrackingSession:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
