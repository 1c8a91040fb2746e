"""Internal MQTT bootstrap, parsing, and runtime helpers."""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, cast

import paho.mqtt.client as mqtt

from pyevtrack._constants import MQTT_DEVICE_TOPIC
from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import TrackingError
from pyevtrack.models.credential import TrackingCredential


@dataclass(frozen=True)
class MqttBootstrap:
    """Broker/session data required to connect to the provider's MQTT."""

    broker_host: str
    broker_port: int
    transport: str
    ws_path: str
    tls: bool
    topic: str
    client_id: str
    username: str
    password: str


@dataclass(frozen=True)
class MqttMessage:
    """Decoded MQTT telemetry message."""

    topic: str
    payload: dict[str, Any]


class MqttConnectionEvent(StrEnum):
    CONNECTED = "connected"
    CONNECT_FAILED = "connect_failed"
    DISCONNECTED = "disconnected"


def device_topic(device_handle: str) -> str:
    return MQTT_DEVICE_TOPIC.format(device=device_handle)


def build_mqtt_bootstrap(config: TrackingConfig, credential: TrackingCredential) -> MqttBootstrap:
    """Build MQTT connection details from a tracking credential.

    The provider authenticates MQTT clients by token: the scoped token is
    the username and the password stays empty.
    """
    return MqttBootstrap(
        broker_host=config.mqtt_host,
        broker_port=config.mqtt_port,
        transport=config.mqtt_transport,
        ws_path=config.mqtt_ws_path,
        tls=config.mqtt_tls,
        topic=device_topic(credential.device_handle),
        client_id=f"pyevtrack-{secrets.token_hex(6)}",
        username=credential.provider_token,
        password="",
    )


def decode_mqtt_payload(payload: bytes) -> dict[str, Any]:
    """Parse MQTT payload bytes into a JSON object."""
    parsed = json.loads(payload.decode("utf-8"))
    if not isinstance(parsed, dict):
        raise TrackingError("MQTT payload is not a JSON object")
    return parsed


class TelemetryMqttRuntime:
    """Threaded paho-mqtt runtime that emits parsed events onto an asyncio loop.

    paho's network thread owns the socket and retries the connection on a
    fixed delay; every callback is marshalled onto *loop* with
    ``call_soon_threadsafe`` so consumers never run on the network thread.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_message: Callable[[MqttMessage], None],
        on_connection: Callable[[MqttConnectionEvent], None],
        keepalive: int = 60,
        reconnect_delay: float = 3.0,
        connect_timeout: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_message = on_message
        self._on_connection = on_connection
        self._keepalive = keepalive
        self._reconnect_delay = reconnect_delay
        self._connect_timeout = connect_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def _post(self, callback: Callable[[Any], None], arg: Any) -> None:
        if not self._running or self._loop.is_closed():
            return
        try:
            self._loop.call_soon_threadsafe(callback, arg)
        except RuntimeError:
            self._logger.debug("MQTT event dropped; event loop is closed")

    def start(self, bootstrap: MqttBootstrap) -> None:
        """Connect and subscribe with provided broker details."""
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s transport=%s topic=%s client_id=%s",
            bootstrap.broker_host,
            bootstrap.broker_port,
            bootstrap.transport,
            bootstrap.topic,
            bootstrap.client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=bootstrap.client_id,
            protocol=mqtt.MQTTv5,
            transport=bootstrap.transport,
        )
        client.enable_logger(self._logger)
        client.username_pw_set(bootstrap.username, bootstrap.password)
        if bootstrap.transport == "websockets":
            client.ws_set_options(path=bootstrap.ws_path)
        if bootstrap.tls:
            client.tls_set()
        client.reconnect_delay_set(
            min_delay=max(1, int(self._reconnect_delay)),
            max_delay=max(1, int(self._reconnect_delay)),
        )
        client.connect_timeout = self._connect_timeout

        self._topic = bootstrap.topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                self._post(self._on_connection, MqttConnectionEvent.CONNECT_FAILED)
                return
            self._logger.debug("MQTT connected successfully reason=%s", reason_code)
            if self._topic:
                self._logger.debug("MQTT subscribing topic=%s", self._topic)
                c.subscribe(self._topic, qos=0)
            self._post(self._on_connection, MqttConnectionEvent.CONNECTED)

        def on_subscribe(
            _c: mqtt.Client,
            _userdata: Any,
            _mid: int,
            reason_code_list: Any,
            _properties: Any,
        ) -> None:
            for reason_code in reason_code_list or []:
                if getattr(reason_code, "is_failure", False):
                    self._logger.warning("MQTT subscribe to %s rejected: %s", self._topic, reason_code)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                parsed = decode_mqtt_payload(msg.payload)
            except Exception:
                self._logger.warning("MQTT payload parse failure topic=%s", msg.topic, exc_info=True)
                return
            self._logger.debug("Received PUBLISH topic=%s keys=%s", msg.topic, sorted(parsed))
            self._post(self._on_message, MqttMessage(topic=msg.topic, payload=parsed))

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)
                self._post(self._on_connection, MqttConnectionEvent.DISCONNECTED)

        def on_connect_fail(_client: mqtt.Client, _userdata: Any) -> None:
            if self._running:
                self._logger.debug("MQTT connection attempt failed")
                self._post(self._on_connection, MqttConnectionEvent.CONNECT_FAILED)

        client.on_connect = on_connect
        client.on_subscribe = on_subscribe
        client.on_message = on_message
        client.on_disconnect = on_disconnect
        client.on_connect_fail = on_connect_fail

        self._client = client
        self._running = True
        client.connect_async(bootstrap.broker_host, bootstrap.broker_port, keepalive=self._keepalive)
        client.loop_start()
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Unsubscribe, disconnect and stop the network loop if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        topic = self._topic
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                if topic and client.is_connected():
                    client.unsubscribe(topic)
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
