"""Client configuration for pyevtrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyevtrack._constants import API_BASE_URL, MQTT_HOST, MQTT_PORT, MQTT_WS_PATH, PROVIDER_BASE_URL
from pyevtrack.exceptions import TrackingConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class TrackingConfig:
    """Tracking configuration.

    Parameters
    ----------
    api_base_url : str
        Base URL of the console backend that issues tracking credentials.
    provider_base_url : str
        Base URL of the telemetry provider REST gateway.
    mqtt_host : str
        Telemetry provider MQTT broker host.
    mqtt_port : int
        MQTT broker port.
    mqtt_transport : str
        ``"websockets"`` or ``"tcp"``.
    mqtt_ws_path : str
        Websocket path used when ``mqtt_transport`` is ``"websockets"``.
    mqtt_tls : bool
        Whether to wrap the MQTT connection in TLS.
    mqtt_enabled : bool
        Enable the push channel.  When disabled, only polling feeds the
        displayed position.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_reconnect_delay : float
        Fixed delay between MQTT reconnect attempts, in seconds.
    mqtt_connect_timeout : float
        Seconds to wait for the MQTT handshake.
    poll_interval : float
        Seconds between latest-position polls.  Also the threshold used
        to decide when a failing push channel degrades the session.
    credential_timeout : float
        Seconds before credential acquisition gives up.
    request_timeout : float
        Total timeout for a single telemetry poll, in seconds.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    """

    api_base_url: str = API_BASE_URL
    provider_base_url: str = PROVIDER_BASE_URL
    mqtt_host: str = MQTT_HOST
    mqtt_port: int = MQTT_PORT
    mqtt_transport: str = "websockets"
    mqtt_ws_path: str = MQTT_WS_PATH
    mqtt_tls: bool = True
    mqtt_enabled: bool = True
    mqtt_keepalive: int = 60
    mqtt_reconnect_delay: float = 3.0
    mqtt_connect_timeout: float = 30.0
    poll_interval: float = 8.0
    credential_timeout: float = 15.0
    request_timeout: float = 10.0
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise TrackingConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.mqtt_reconnect_delay <= 0:
            raise TrackingConfigError(f"mqtt_reconnect_delay must be positive, got {self.mqtt_reconnect_delay}")
        if self.mqtt_transport not in ("websockets", "tcp"):
            raise TrackingConfigError(f"mqtt_transport must be 'websockets' or 'tcp', got {self.mqtt_transport!r}")
        if self.credential_timeout <= 0 or self.request_timeout <= 0:
            raise TrackingConfigError("credential_timeout and request_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackingConfig:
        """Create configuration from environment variables.

        Reads optional ``EVTRACK_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TrackingConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "EVTRACK_API_BASE_URL": "api_base_url",
            "EVTRACK_PROVIDER_BASE_URL": "provider_base_url",
            "EVTRACK_MQTT_HOST": "mqtt_host",
            "EVTRACK_MQTT_TRANSPORT": "mqtt_transport",
            "EVTRACK_MQTT_WS_PATH": "mqtt_ws_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "EVTRACK_MQTT_PORT": ("mqtt_port", int),
            "EVTRACK_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
            "EVTRACK_MQTT_RECONNECT_DELAY": ("mqtt_reconnect_delay", float),
            "EVTRACK_MQTT_CONNECT_TIMEOUT": ("mqtt_connect_timeout", float),
            "EVTRACK_POLL_INTERVAL": ("poll_interval", float),
            "EVTRACK_CREDENTIAL_TIMEOUT": ("credential_timeout", float),
            "EVTRACK_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = cast(val)
            except ValueError as exc:
                raise TrackingConfigError(f"{env_key} must be numeric, got {val!r}") from exc

        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("EVTRACK_MQTT_TLS"), True)

        if "mqtt_enabled" not in overrides:
            config_kwargs["mqtt_enabled"] = _env_bool(env.get("EVTRACK_MQTT_ENABLED"), True)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("EVTRACK_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
