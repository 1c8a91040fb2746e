from __future__ import annotations

from pyevtrack._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "deviceId": 42,
        "tmpToken": "provider-secret",
        "providerToken": "provider-secret",
        "headers": {"Authorization": "Bearer console-token", "accept": "application/json"},
        "password": "pw",
        "nested": [{"token": "abc"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["deviceId"] == 42
    assert redacted["tmpToken"] == "<redacted>"
    assert redacted["providerToken"] == "<redacted>"
    assert redacted["headers"]["Authorization"] == "<redacted>"
    assert redacted["headers"]["accept"] == "application/json"
    assert redacted["password"] == "<redacted>"
    assert redacted["nested"][0]["token"] == "<redacted>"
    assert payload["tmpToken"] == "provider-secret"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_summarizes_bytes() -> None:
    assert redact_for_log(b"\x00\x01\x02") == "<bytes:3b>"


def test_redact_for_log_masks_auth_scheme_values_under_any_key() -> None:
    redacted = redact_for_log({"x-forwarded-auth": "Bearer console-token", "note": ["FlespiToken abc"]})

    assert redacted["x-forwarded-auth"] == "Bearer <redacted>"
    assert redacted["note"] == ["FlespiToken <redacted>"]
