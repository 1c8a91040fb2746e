"""Push channel ingestion.

Owns the subscriber state machine::

    Disconnected -> Connecting -> Subscribed -> {Subscribed, Reconnecting, Disconnected}

and translates MQTT runtime events into reconciler inputs.  Transport
trouble is only ever reported as a status signal; the polling channel keeps
the session useful while the push channel recovers.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pyevtrack._mqtt import (
    MqttConnectionEvent,
    MqttMessage,
    TelemetryMqttRuntime,
    build_mqtt_bootstrap,
)
from pyevtrack._redact import redact_for_log
from pyevtrack.config import TrackingConfig
from pyevtrack.ingestion.payload import normalize
from pyevtrack.models.credential import TrackingCredential
from pyevtrack.models.location import Invalid, LocationSample
from pyevtrack.state.events import ChannelSignal, ChannelSource

_logger = logging.getLogger(__name__)


class PushState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    RECONNECTING = "reconnecting"


class PushSubscriber:
    """Live telemetry over the provider's MQTT topic for one device."""

    def __init__(
        self,
        *,
        config: TrackingConfig,
        loop: asyncio.AbstractEventLoop,
        on_sample: Callable[[LocationSample, ChannelSource], Any],
        on_signal: Callable[[ChannelSource, ChannelSignal], Any],
        runtime_factory: Callable[..., TelemetryMqttRuntime] = TelemetryMqttRuntime,
    ) -> None:
        self._config = config
        self._loop = loop
        self._on_sample = on_sample
        self._on_signal = on_signal
        self._runtime_factory = runtime_factory
        self._runtime: TelemetryMqttRuntime | None = None
        self._state = PushState.DISCONNECTED
        self._stopped = False
        self._topic: str | None = None

    @property
    def state(self) -> PushState:
        return self._state

    @property
    def topic(self) -> str | None:
        return self._topic

    def start(self, credential: TrackingCredential) -> None:
        """Open the transport and subscribe to the device topic."""
        if self._stopped:
            raise RuntimeError("PushSubscriber cannot be restarted after stop()")
        if self._state != PushState.DISCONNECTED:
            return

        bootstrap = build_mqtt_bootstrap(self._config, credential)
        self._topic = bootstrap.topic
        runtime = self._runtime_factory(
            loop=self._loop,
            on_message=self._handle_message,
            on_connection=self._handle_connection,
            keepalive=self._config.mqtt_keepalive,
            reconnect_delay=self._config.mqtt_reconnect_delay,
            connect_timeout=self._config.mqtt_connect_timeout,
            logger=_logger,
        )
        self._transition(PushState.CONNECTING, ChannelSignal.CONNECTING)
        try:
            runtime.start(bootstrap)
        except Exception:
            _logger.warning("MQTT runtime start failed for topic %s", bootstrap.topic, exc_info=True)
            runtime.stop()
            self._state = PushState.DISCONNECTED
            self._on_signal(ChannelSource.PUSH, ChannelSignal.FAILED)
            return
        self._runtime = runtime

    def stop(self) -> None:
        """Terminal teardown: unsubscribe and release the transport."""
        self._stopped = True
        self._state = PushState.DISCONNECTED
        runtime = self._runtime
        self._runtime = None
        if runtime is None:
            return
        try:
            runtime.stop()
        except Exception:
            _logger.debug("MQTT runtime stop failed", exc_info=True)

    def _transition(self, state: PushState, signal: ChannelSignal) -> None:
        if state != self._state:
            _logger.debug("Push channel %s -> %s topic=%s", self._state, state, self._topic)
        self._state = state
        self._on_signal(ChannelSource.PUSH, signal)

    def _handle_connection(self, event: MqttConnectionEvent) -> None:
        if self._stopped:
            return
        if event == MqttConnectionEvent.CONNECTED:
            self._transition(PushState.SUBSCRIBED, ChannelSignal.HEALTHY)
        elif event == MqttConnectionEvent.DISCONNECTED:
            self._transition(PushState.RECONNECTING, ChannelSignal.RECONNECTING)
        elif event == MqttConnectionEvent.CONNECT_FAILED:
            self._transition(PushState.RECONNECTING, ChannelSignal.FAILED)

    def _handle_message(self, message: MqttMessage) -> None:
        if self._stopped:
            _logger.debug("Discarding MQTT message received after teardown")
            return
        result = normalize(message.payload)
        if isinstance(result, Invalid):
            _logger.warning(
                "MQTT message on %s has no valid position (%s): %s",
                message.topic,
                result.reason,
                redact_for_log(message.payload),
            )
            return
        self._on_sample(result, ChannelSource.PUSH)
