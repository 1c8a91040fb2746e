from __future__ import annotations

import pytest

from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import TrackingConfigError


def test_defaults_target_provider_endpoints() -> None:
    config = TrackingConfig()

    assert config.provider_base_url == "https://flespi.io"
    assert config.mqtt_host == "mqtt.flespi.io"
    assert config.mqtt_port == 443
    assert config.mqtt_transport == "websockets"
    assert config.poll_interval == 8.0
    assert config.mqtt_reconnect_delay == 3.0
    assert config.mqtt_connect_timeout == 30.0
    assert config.mqtt_enabled is True


def test_from_env_reads_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EVTRACK_API_BASE_URL", "https://console.example.com/api")
    monkeypatch.setenv("EVTRACK_POLL_INTERVAL", "5")
    monkeypatch.setenv("EVTRACK_MQTT_PORT", "8883")
    monkeypatch.setenv("EVTRACK_MQTT_TRANSPORT", "tcp")
    monkeypatch.setenv("EVTRACK_MQTT_ENABLED", "no")
    monkeypatch.setenv("EVTRACK_API_TRACE_ENABLED", "1")

    config = TrackingConfig.from_env()

    assert config.api_base_url == "https://console.example.com/api"
    assert config.poll_interval == 5.0
    assert config.mqtt_port == 8883
    assert config.mqtt_transport == "tcp"
    assert config.mqtt_enabled is False
    assert config.api_trace_enabled is True


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EVTRACK_POLL_INTERVAL", "5")
    monkeypatch.setenv("EVTRACK_MQTT_ENABLED", "false")

    config = TrackingConfig.from_env(poll_interval=2.5, mqtt_enabled=True)

    assert config.poll_interval == 2.5
    assert config.mqtt_enabled is True


def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EVTRACK_POLL_INTERVAL", "soon")

    with pytest.raises(TrackingConfigError, match="EVTRACK_POLL_INTERVAL"):
        TrackingConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"poll_interval": 0},
        {"mqtt_reconnect_delay": -1},
        {"mqtt_transport": "quic"},
        {"request_timeout": 0},
    ],
)
def test_invalid_values_are_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(TrackingConfigError):
        TrackingConfig(**kwargs)  # type: ignore[arg-type]
