"""Telemetry provider latest-position endpoint.

Endpoint:
  - GET /gw/devices/{device}/telemetry/position
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from pyevtrack._constants import PROVIDER_AUTH_SCHEME, TELEMETRY_POSITION_ENDPOINT
from pyevtrack._redact import redact_for_log
from pyevtrack._transport import Transport
from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import TelemetryFetchError, TrackingTransportError
from pyevtrack.ingestion.payload import extract_telemetry_position, normalize
from pyevtrack.models.credential import TrackingCredential
from pyevtrack.models.location import Invalid, LocationSample

_logger = logging.getLogger(__name__)


async def fetch_latest_position(
    config: TrackingConfig,
    credential: TrackingCredential,
    transport: Transport,
) -> LocationSample | Invalid:
    """Fetch and normalize the device's latest reported position.

    Parameters
    ----------
    config : TrackingConfig
        Client configuration.
    credential : TrackingCredential
        Scoped provider credential.
    transport : Transport
        HTTP transport.

    Returns
    -------
    LocationSample or Invalid
        ``Invalid`` when the provider answered but carried no usable fix.

    Raises
    ------
    TelemetryFetchError
        On an expired credential, transport failure, timeout or non-2xx.
    """
    endpoint = TELEMETRY_POSITION_ENDPOINT.format(device=quote(credential.device_handle, safe=""))
    if credential.is_expired():
        raise TelemetryFetchError("Tracking credential expired", endpoint=endpoint)

    url = f"{config.provider_base_url.rstrip('/')}{endpoint}"
    try:
        body = await transport.get_json(
            url,
            headers={"Authorization": f"{PROVIDER_AUTH_SCHEME} {credential.provider_token}"},
            timeout=config.request_timeout,
            endpoint=endpoint,
        )
    except TrackingTransportError as exc:
        raise TelemetryFetchError(str(exc), status_code=exc.status_code, endpoint=endpoint) from exc

    result = normalize(extract_telemetry_position(body))
    if isinstance(result, Invalid):
        _logger.debug(
            "Telemetry for device %s has no usable position (%s): %s",
            credential.device_handle,
            result.reason,
            redact_for_log(body),
        )
    return result
