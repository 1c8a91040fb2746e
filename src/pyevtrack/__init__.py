"""pyevtrack - Async real-time vehicle position tracking for EV rental fleets."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyevtrack")
except PackageNotFoundError:
    __version__ = "0+local"
from pyevtrack.client import TrackingClient
from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import (
    TelemetryFetchError,
    TrackingConfigError,
    TrackingError,
    TrackingNotFoundError,
    TrackingTransportError,
    TrackingUnauthorizedError,
    TrackingUpstreamError,
)
from pyevtrack.models import (
    ChannelStatus,
    Invalid,
    LocationSample,
    TrackedVehicleState,
    TrackingCredential,
)
from pyevtrack.session import AuthSession
from pyevtrack.tracking import TrackingSession

__all__ = [
    "__version__",
    "AuthSession",
    "ChannelStatus",
    "Invalid",
    "LocationSample",
    "TelemetryFetchError",
    "TrackedVehicleState",
    "TrackingClient",
    "TrackingConfig",
    "TrackingConfigError",
    "TrackingCredential",
    "TrackingError",
    "TrackingNotFoundError",
    "TrackingSession",
    "TrackingTransportError",
    "TrackingUnauthorizedError",
    "TrackingUpstreamError",
]
