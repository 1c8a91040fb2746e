"""Canonical location sample model."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocationSample(BaseModel):
    """A producer-agnostic GPS fix.

    Parameters
    ----------
    latitude : float
        Signed decimal degrees.  Always finite.
    longitude : float
        Signed decimal degrees.  Always finite.
    speed : float or None
        Non-negative speed in provider units (typically km/h).
    timestamp : float or None
        Epoch seconds of capture, when the source reported one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    latitude: float
    longitude: float
    speed: float | None = Field(default=None, ge=0)
    timestamp: float | None = None

    @field_validator("latitude", "longitude")
    @classmethod
    def _require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinate must be finite")
        return value

    def same_fix(self, other: LocationSample | None) -> bool:
        """Whether *other* carries the same latitude, longitude and timestamp."""
        if other is None:
            return False
        return (
            self.latitude == other.latitude
            and self.longitude == other.longitude
            and self.timestamp == other.timestamp
        )


class Invalid(BaseModel):
    """Explicit marker for a payload with no usable coordinate pair."""

    model_config = ConfigDict(frozen=True)

    reason: str = ""
