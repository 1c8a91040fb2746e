"""Tracking credential model."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pyevtrack.ingestion.normalize import normalize_timestamp_seconds, safe_str

_TOKEN_KEYS: tuple[str, ...] = ("provider_token", "providerToken", "tmpToken", "token", "tmp_token")


def _handle_str(value: Any) -> str | None:
    # Handles go verbatim into URLs and topics, so 42.0 must read "42".
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return safe_str(value)


class TrackingCredential(BaseModel):
    """Short-lived, provider-scoped credential for one device.

    Issued by the console backend per tracking session.  Held in memory
    only and discarded when the session ends or the token expires.

    Parameters
    ----------
    provider_token : str
        Opaque bearer for the telemetry provider (REST and MQTT).
    device_id : str or None
        Provider-side device handle.
    device_imei : str or None
        Fallback handle used when ``device_id`` is unavailable.
    expires_at : float
        Absolute expiry in epoch seconds, ``0`` when unknown.
    license_plate : str or None
        Display label for the tracked vehicle, when the backend sends it.
    raw : dict
        Original tracking payload.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    provider_token: str = Field(
        validation_alias=AliasChoices(*_TOKEN_KEYS),
    )
    device_id: str | None = Field(default=None, validation_alias=AliasChoices("device_id", "deviceId"))
    device_imei: str | None = Field(default=None, validation_alias=AliasChoices("device_imei", "deviceImei", "imei"))
    expires_at: float = Field(default=0.0, validation_alias=AliasChoices("expires_at", "expiresAt", "exp"))
    license_plate: str | None = Field(default=None, validation_alias=AliasChoices("license_plate", "licensePlate"))
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _pick_first_token(cls, data: Any) -> Any:
        # Blank token fields are skipped rather than shadowing a later spelling.
        if not isinstance(data, Mapping):
            return data
        for key in _TOKEN_KEYS:
            token = safe_str(data.get(key))
            if token is not None:
                return {**data, "provider_token": token}
        return data

    @field_validator("provider_token", mode="before")
    @classmethod
    def _require_token(cls, value: Any) -> str:
        token = safe_str(value)
        if token is None:
            raise ValueError("provider token is missing")
        return token

    @field_validator("device_id", mode="before")
    @classmethod
    def _coerce_device_id(cls, value: Any) -> str | None:
        # The backend sends 0 when no provider device is linked.
        if value == 0 or value == "0":
            return None
        return _handle_str(value)

    @field_validator("device_imei", mode="before")
    @classmethod
    def _coerce_imei(cls, value: Any) -> str | None:
        return _handle_str(value)

    @field_validator("license_plate", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("expires_at", mode="before")
    @classmethod
    def _coerce_expiry(cls, value: Any) -> float:
        return normalize_timestamp_seconds(value) or 0.0

    @model_validator(mode="after")
    def _require_device_handle(self) -> TrackingCredential:
        if self.device_id is None and self.device_imei is None:
            raise ValueError("either device_id or device_imei is required")
        return self

    @property
    def device_handle(self) -> str:
        """Handle used for provider URLs and topics (``device_id`` first)."""
        handle = self.device_id or self.device_imei
        assert handle is not None  # noqa: S101
        return handle

    def is_expired(self, now: float | None = None) -> bool:
        """Whether the token has passed ``expires_at``.

        A credential with unknown expiry (``0``) never expires on its own.
        """
        if self.expires_at <= 0:
            return False
        current = time.time() if now is None else now
        return current >= self.expires_at
