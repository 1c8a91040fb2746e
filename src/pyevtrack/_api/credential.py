"""Tracking credential endpoint (credential broker).

Endpoint:
  - GET /Vehicle/tracking/{vehicleId}

The console backend exchanges the caller's bearer token for a short-lived
telemetry provider token plus the device handle of the vehicle's tracker.
The response body may also carry the vehicle's last known coordinates,
which are used to prime the display.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from pyevtrack._api._envelope import ApiEnvelope
from pyevtrack._constants import CREDENTIAL_ENDPOINT
from pyevtrack._redact import redact_for_log
from pyevtrack._transport import Transport
from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import (
    TrackingNotFoundError,
    TrackingTransportError,
    TrackingUnauthorizedError,
    TrackingUpstreamError,
)
from pyevtrack.ingestion.normalize import lookup_path
from pyevtrack.ingestion.payload import normalize_first
from pyevtrack.models.credential import TrackingCredential
from pyevtrack.models.location import LocationSample
from pyevtrack.session import AuthSession

_logger = logging.getLogger(__name__)

_PAYLOAD_WRAPPERS: tuple[str, ...] = ("tempTrackingPayload", "tmpTrackingPayload")


@dataclass(frozen=True)
class CredentialGrant:
    """Result of a successful credential exchange."""

    vehicle_id: str
    credential: TrackingCredential
    initial_sample: LocationSample | None = None


def _unwrap_tracking_payload(body: Mapping[str, Any], envelope: ApiEnvelope) -> Mapping[str, Any]:
    """Locate the tracking payload inside the backend response.

    Order: ``data.tempTrackingPayload``, ``data.tmpTrackingPayload``,
    ``data``, then the same wrappers at the top level, then the body.
    """
    data = envelope.data_object
    if data is not None:
        for key in _PAYLOAD_WRAPPERS:
            wrapped = data.get(key)
            if isinstance(wrapped, Mapping):
                return wrapped
        return data
    for key in _PAYLOAD_WRAPPERS:
        wrapped = body.get(key)
        if isinstance(wrapped, Mapping):
            return wrapped
    return body


def _extract_license_plate(body: Mapping[str, Any]) -> Any:
    return lookup_path(body, ("data", "licensePlate")) or body.get("licensePlate")


def _extract_initial_sample(body: Mapping[str, Any], payload: Mapping[str, Any]) -> LocationSample | None:
    """Opportunistic last-known position embedded in the response.

    Coordinates attached to the tracking payload win over the generic
    vehicle fields elsewhere in the body.
    """
    return normalize_first(
        (
            payload,
            payload.get("lastKnownLocation"),
            lookup_path(body, ("data",)),
            lookup_path(body, ("data", "vehicle")),
            lookup_path(body, ("data", "trackingInfo")),
            body,
        )
    )


def _map_transport_error(exc: TrackingTransportError, *, vehicle_id: str, endpoint: str) -> Exception:
    status = exc.status_code
    if status in (401, 403):
        return TrackingUnauthorizedError(f"Console session rejected by {endpoint} (HTTP {status})")
    if status == 404:
        return TrackingNotFoundError(
            f"Vehicle {vehicle_id} has no tracking device provisioned",
            vehicle_id=vehicle_id,
        )
    return TrackingUpstreamError(
        f"Tracking credential request failed: {exc}",
        status_code=status,
        endpoint=endpoint,
    )


async def fetch_tracking_credential(
    config: TrackingConfig,
    auth: AuthSession | None,
    transport: Transport,
    vehicle_id: str,
) -> CredentialGrant:
    """Exchange the console session for a scoped tracking credential.

    Parameters
    ----------
    config : TrackingConfig
        Client configuration.
    auth : AuthSession or None
        Console session.  ``None`` fails closed.
    transport : Transport
        HTTP transport.
    vehicle_id : str
        Console vehicle UUID.

    Returns
    -------
    CredentialGrant
        The credential plus any last-known position found in the response.

    Raises
    ------
    TrackingUnauthorizedError
        No session, or the backend rejected it.
    TrackingNotFoundError
        The vehicle has no tracking capability.
    TrackingUpstreamError
        The request failed, timed out, or returned an unusable body.
    """
    vehicle_id = vehicle_id.strip()
    if not vehicle_id:
        raise ValueError("vehicle_id must be non-empty")
    if auth is None:
        raise TrackingUnauthorizedError("No console session; log in before tracking a vehicle")

    endpoint = CREDENTIAL_ENDPOINT.format(vehicle_id=quote(vehicle_id, safe=""))
    url = f"{config.api_base_url.rstrip('/')}{endpoint}"

    try:
        body = await transport.get_json(
            url,
            headers={"Authorization": auth.authorization_header},
            timeout=config.credential_timeout,
            endpoint=endpoint,
        )
    except TrackingTransportError as exc:
        _logger.warning("Tracking credential request for vehicle %s failed: %s", vehicle_id, exc)
        raise _map_transport_error(exc, vehicle_id=vehicle_id, endpoint=endpoint) from exc

    if not isinstance(body, Mapping):
        raise TrackingUpstreamError(
            f"Tracking credential response from {endpoint} is not an object",
            endpoint=endpoint,
        )

    envelope = ApiEnvelope.from_body(body)
    payload = _unwrap_tracking_payload(body, envelope)

    fields: dict[str, Any] = {**payload, "raw": dict(payload)}
    license_plate = _extract_license_plate(body)
    if license_plate is not None:
        fields["licensePlate"] = license_plate

    try:
        credential = TrackingCredential.model_validate(fields)
    except ValidationError as exc:
        _logger.warning(
            "Tracking payload for vehicle %s missing token or device handle: %s",
            vehicle_id,
            redact_for_log(payload),
        )
        detail = f" ({envelope.message})" if envelope.message else ""
        raise TrackingUpstreamError(
            f"Tracking credential response lacks a provider token or device handle{detail}",
            endpoint=endpoint,
        ) from exc

    initial_sample = _extract_initial_sample(body, payload)
    _logger.debug(
        "Tracking credential for vehicle %s: device=%s expires_at=%s seeded=%s",
        vehicle_id,
        credential.device_handle,
        credential.expires_at,
        initial_sample is not None,
    )
    return CredentialGrant(vehicle_id=vehicle_id, credential=credential, initial_sample=initial_sample)
