"""Tracked vehicle read model consumed by the presentation surface."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from pyevtrack.models.location import LocationSample
from pyevtrack.state.events import ChannelSource


class ChannelStatus(StrEnum):
    IDLE = "Idle"
    CONNECTING = "Connecting"
    LIVE = "Live"
    RECONNECTING = "Reconnecting"
    DEGRADED = "Degraded"
    ERROR = "Error"


_STATUS_TEXT: dict[ChannelStatus, str] = {
    ChannelStatus.IDLE: "Idle",
    ChannelStatus.CONNECTING: "Connecting...",
    ChannelStatus.LIVE: "Live",
    ChannelStatus.RECONNECTING: "Reconnecting...",
    ChannelStatus.DEGRADED: "Degraded: live push unavailable, polling only",
    ChannelStatus.ERROR: "Error: no telemetry signal",
}


class TrackedVehicleState(BaseModel):
    """Snapshot of one tracking session.

    ``current_position`` is the last accepted sample and is kept across
    status changes so a map can keep showing it; whether that marker is
    trustworthy is expressed by ``waiting_for_signal``.
    """

    model_config = ConfigDict(frozen=True)

    vehicle_id: str
    current_position: LocationSample | None = None
    channel_status: ChannelStatus = ChannelStatus.IDLE
    position_source: ChannelSource | None = None
    updated_at: datetime | None = None
    accepted_samples: int = 0

    @property
    def waiting_for_signal(self) -> bool:
        """Whether the surface must show a "waiting for signal" affordance."""
        return self.channel_status != ChannelStatus.LIVE

    @property
    def status_text(self) -> str:
        return _STATUS_TEXT[self.channel_status]
