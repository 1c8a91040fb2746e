"""Custom exception hierarchy for pyevtrack."""

from __future__ import annotations


class TrackingError(Exception):
    """Base exception for all pyevtrack errors."""


class TrackingConfigError(TrackingError):
    """Invalid or missing configuration."""


class TrackingTransportError(TrackingError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class TelemetryFetchError(TrackingTransportError):
    """A single latest-position poll against the telemetry provider failed.

    Recovered locally by the polling loop: the tick is skipped and the
    cadence continues.  Never surfaced to callers as a blocking error.
    """


class TrackingUnauthorizedError(TrackingError):
    """No valid console session, or the session was rejected (HTTP 401/403)."""


class TrackingNotFoundError(TrackingError):
    """The vehicle has no tracking capability provisioned (HTTP 404)."""

    def __init__(self, message: str, *, vehicle_id: str = "") -> None:
        self.vehicle_id = vehicle_id
        super().__init__(message)


class TrackingUpstreamError(TrackingError):
    """Credential issuance failed or returned an unusable body.

    Surfaced as "tracking unavailable".  The library never retries
    credential acquisition on its own; callers may retry manually.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
