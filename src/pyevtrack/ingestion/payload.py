"""Telemetry payload normalization.

The telemetry provider reports positions in several incompatible shapes
depending on the channel (push message, REST telemetry, console
convenience fields) and on device firmware:

* flat dotted keys: ``{"position.latitude": 10.7, "position.longitude": 106.7}``
* nested objects: ``{"position": {"latitude": 10.7, "longitude": 106.7}}``
  (also under ``location`` and ``currentLocation``)
* bare pairs: ``{"latitude": ..., "longitude": ...}`` or ``{"lat": ..., "lng": ...}``

:func:`normalize` tries an ordered list of :class:`CoordinateEncoding`
strategies and stops at the first one whose latitude *and* longitude both
coerce to finite numbers.  It never fabricates coordinates: a payload with
no usable pair yields :class:`~pyevtrack.models.location.Invalid`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from pyevtrack.ingestion.normalize import (
    first_present,
    lookup_path,
    normalize_timestamp_seconds,
    safe_float,
    safe_non_negative,
)
from pyevtrack.models.location import Invalid, LocationSample

Path = tuple[str, ...]


@dataclass(frozen=True)
class CoordinateEncoding:
    """One known way the provider spells a coordinate pair.

    ``speed`` and ``timestamp`` list sibling paths checked before the
    payload-wide fallbacks.
    """

    name: str
    latitude: Path
    longitude: Path
    speed: tuple[Path, ...] = ()
    timestamp: tuple[Path, ...] = ()


def _flat(prefix: str, lat_key: str, lng_key: str) -> CoordinateEncoding:
    return CoordinateEncoding(
        name=f"flat:{prefix}.{lat_key}",
        latitude=(f"{prefix}.{lat_key}",),
        longitude=(f"{prefix}.{lng_key}",),
        speed=((f"{prefix}.speed",),),
        timestamp=((f"{prefix}.timestamp",),),
    )


def _nested(container: str, lat_key: str, lng_key: str) -> CoordinateEncoding:
    return CoordinateEncoding(
        name=f"nested:{container}.{lat_key}",
        latitude=(container, lat_key),
        longitude=(container, lng_key),
        speed=((container, "speed"),),
        timestamp=((container, "timestamp"), (container, "ts"), (container, "time")),
    )


def _bare(lat_key: str, lng_key: str) -> CoordinateEncoding:
    return CoordinateEncoding(
        name=f"bare:{lat_key}",
        latitude=(lat_key,),
        longitude=(lng_key,),
        speed=(("speed",),),
    )


#: Tried in order; the first pair that parses wins.
COORDINATE_ENCODINGS: tuple[CoordinateEncoding, ...] = (
    _flat("position", "latitude", "longitude"),
    _flat("position", "lat", "lng"),
    _flat("gps", "latitude", "longitude"),
    _flat("gps", "lat", "lng"),
    _nested("position", "latitude", "longitude"),
    _nested("position", "lat", "lng"),
    _nested("location", "latitude", "longitude"),
    _nested("location", "lat", "lng"),
    _nested("currentLocation", "latitude", "longitude"),
    _nested("currentLocation", "lat", "lng"),
    _bare("latitude", "longitude"),
    _bare("lat", "lng"),
    _bare("lastLatitude", "lastLongitude"),
    _bare("lastLat", "lastLng"),
)

_FALLBACK_SPEED_PATHS: tuple[Path, ...] = (
    ("position.speed",),
    ("speed",),
    ("gps.speed",),
)

_FALLBACK_TIMESTAMP_PATHS: tuple[Path, ...] = (
    ("timestamp",),
    ("ts",),
    ("time",),
    ("position.timestamp",),
    ("server.timestamp",),
)


def _match_encoding(
    payload: Mapping[str, Any],
    encodings: Sequence[CoordinateEncoding],
) -> tuple[CoordinateEncoding, float, float] | None:
    for encoding in encodings:
        lat = safe_float(lookup_path(payload, encoding.latitude))
        if lat is None:
            continue
        lng = safe_float(lookup_path(payload, encoding.longitude))
        if lng is None:
            continue
        return encoding, lat, lng
    return None


def _extract_speed(payload: Mapping[str, Any], encoding: CoordinateEncoding) -> float | None:
    for path in (*encoding.speed, *_FALLBACK_SPEED_PATHS):
        speed = safe_non_negative(lookup_path(payload, path))
        if speed is not None:
            return speed
    return None


def _extract_timestamp(payload: Mapping[str, Any], encoding: CoordinateEncoding) -> float | None:
    for path in (*encoding.timestamp, *_FALLBACK_TIMESTAMP_PATHS):
        ts = normalize_timestamp_seconds(lookup_path(payload, path))
        if ts is not None:
            return ts
    return None


def normalize(
    raw: Any,
    *,
    encodings: Sequence[CoordinateEncoding] = COORDINATE_ENCODINGS,
) -> LocationSample | Invalid:
    """Convert an arbitrary telemetry payload into a :class:`LocationSample`.

    Never raises.  Returns :class:`Invalid` when *raw* is not a mapping or
    when no encoding yields two finite coordinates.
    """
    if not isinstance(raw, Mapping):
        return Invalid(reason=f"payload is {type(raw).__name__}, not an object")

    matched = _match_encoding(raw, encodings)
    if matched is None:
        return Invalid(reason="no recognized coordinate pair")

    encoding, lat, lng = matched
    try:
        return LocationSample(
            latitude=lat,
            longitude=lng,
            speed=_extract_speed(raw, encoding),
            timestamp=_extract_timestamp(raw, encoding),
        )
    except ValidationError as exc:
        return Invalid(reason=f"{encoding.name}: {exc.errors()[0].get('msg', 'invalid')}")


def normalize_first(candidates: Sequence[Any]) -> LocationSample | None:
    """Return the first candidate payload that normalizes to a sample."""
    for candidate in candidates:
        result = normalize(candidate)
        if isinstance(result, LocationSample):
            return result
    return None


def extract_telemetry_position(body: Any) -> Any:
    """Unwrap the provider's REST telemetry response.

    The gateway answers ``{"result": [{"telemetry": {"position": {"value":
    {...}, "ts": ...}}}]}``.  The ``value`` object is merged over its
    telemetry entry so entry-level ``ts``/``speed`` act as fallbacks.
    Bodies that do not carry the ``result`` wrapper are returned as-is so
    already-flat payloads still reach :func:`normalize`.
    """
    if not isinstance(body, Mapping):
        return body

    result = body.get("result")
    if not isinstance(result, list):
        return body
    if not result:
        return None

    entry = first_present(result[0], (("telemetry", "position"), ("position",)))
    if not isinstance(entry, Mapping):
        return result[0]

    merged: dict[str, Any] = {key: value for key, value in entry.items() if key != "value"}
    value = entry.get("value")
    if isinstance(value, Mapping):
        merged.update(value)
    return merged
