"""Helpers for safe debug logging.

Tracking credentials carry short-lived provider tokens and the console
bearer token travels in headers and cookies.  This module redacts those
fields before payloads are emitted to DEBUG/WARNING logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "token",
        "tmptoken",
        "tmp_token",
        "providertoken",
        "provider_token",
        "bearer_token",
        "accesstoken",
        "refreshtoken",
        "password",
        "authorization",
        "cookie",
    }
)

# Credentials that leak into free-form strings (error messages, header dumps).
_AUTH_SCHEMES: tuple[str, ...] = ("Bearer ", "FlespiToken ")


def _mask_auth_scheme(value: str) -> str:
    for scheme in _AUTH_SCHEMES:
        if value.startswith(scheme):
            return f"{scheme}<redacted>"
    return value


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        value = _mask_auth_scheme(value)
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
