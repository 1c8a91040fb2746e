"""Typed models for tracking credentials, samples and session state."""

from pyevtrack.models.credential import TrackingCredential
from pyevtrack.models.location import Invalid, LocationSample
from pyevtrack.models.state import ChannelStatus, TrackedVehicleState

__all__ = [
    "ChannelStatus",
    "Invalid",
    "LocationSample",
    "TrackedVehicleState",
    "TrackingCredential",
]
