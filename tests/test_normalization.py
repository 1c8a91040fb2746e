from __future__ import annotations

import math

import pytest

from pyevtrack.ingestion.normalize import (
    lookup_path,
    normalize_timestamp_seconds,
    safe_float,
    safe_non_negative,
)
from pyevtrack.ingestion.payload import (
    CoordinateEncoding,
    extract_telemetry_position,
    normalize,
    normalize_first,
)
from pyevtrack.models.location import Invalid, LocationSample


def test_safe_float_accepts_numbers_and_numeric_strings() -> None:
    assert safe_float(1) == 1.0
    assert safe_float(10.5) == 10.5
    assert safe_float(" 106.700 ") == 106.7
    assert safe_float("-3e2") == -300.0


@pytest.mark.parametrize(
    "value",
    [None, True, False, "", "   ", "abc", "nan", "inf", math.nan, math.inf, -(10**400), [], {}],
)
def test_safe_float_rejects_non_numeric(value: object) -> None:
    assert safe_float(value) is None


def test_safe_non_negative_rejects_negative() -> None:
    assert safe_non_negative("-1") is None
    assert safe_non_negative(0) == 0.0


def test_normalize_timestamp_seconds() -> None:
    assert normalize_timestamp_seconds(None) is None
    assert normalize_timestamp_seconds(0) is None
    assert normalize_timestamp_seconds(-5) is None
    assert normalize_timestamp_seconds(1_771_000_000) == 1_771_000_000.0
    assert normalize_timestamp_seconds(1_771_000_000_500) == pytest.approx(1_771_000_000.5)


def test_lookup_path_treats_dotted_keys_literally() -> None:
    payload = {"position.latitude": 1.0, "position": {"latitude": 2.0}}
    assert lookup_path(payload, ("position.latitude",)) == 1.0
    assert lookup_path(payload, ("position", "latitude")) == 2.0
    assert lookup_path(payload, ("position", "latitude", "deeper")) is None
    assert lookup_path(payload, ("missing",)) is None


def test_normalize_flat_dotted_string_payload() -> None:
    result = normalize({"position.latitude": "10.776", "position.longitude": "106.700", "position.speed": 12})

    assert isinstance(result, LocationSample)
    assert result.latitude == 10.776
    assert result.longitude == 106.7
    assert result.speed == 12.0


def test_normalize_flat_short_keys_and_gps_prefix() -> None:
    assert normalize({"position.lat": 1, "position.lng": 2}) == LocationSample(latitude=1, longitude=2)
    assert normalize({"gps.latitude": 3, "gps.longitude": 4}) == LocationSample(latitude=3, longitude=4)
    assert normalize({"gps.lat": 5, "gps.lng": 6}) == LocationSample(latitude=5, longitude=6)


@pytest.mark.parametrize("container", ["position", "location", "currentLocation"])
def test_normalize_nested_containers(container: str) -> None:
    result = normalize({container: {"latitude": 10.5, "longitude": 106.5, "speed": 30, "timestamp": 1771000000}})

    assert result == LocationSample(latitude=10.5, longitude=106.5, speed=30, timestamp=1771000000)

    short = normalize({container: {"lat": "10.5", "lng": "106.5"}})
    assert short == LocationSample(latitude=10.5, longitude=106.5)


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"latitude": 1.5, "longitude": 2.5}, (1.5, 2.5)),
        ({"lat": 3.5, "lng": 4.5}, (3.5, 4.5)),
        ({"lastLatitude": "5.5", "lastLongitude": "6.5"}, (5.5, 6.5)),
        ({"lastLat": 7.5, "lastLng": 8.5}, (7.5, 8.5)),
    ],
)
def test_normalize_bare_pairs(payload: dict[str, object], expected: tuple[float, float]) -> None:
    result = normalize(payload)
    assert isinstance(result, LocationSample)
    assert (result.latitude, result.longitude) == expected


def test_normalize_reports_zero_coordinates_when_source_reports_them() -> None:
    assert normalize({"lat": 0, "lng": 0}) == LocationSample(latitude=0.0, longitude=0.0)


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"latitude": None, "longitude": None},
        {"lat": "abc", "lng": "106.7"},
        {"latitude": math.nan, "longitude": 1.0},
        {"latitude": "inf", "longitude": 1.0},
        {"latitude": True, "longitude": False},
        {"position": {"latitude": 10.0}},
        {"speed": 12},
        {"latitude": 10**400, "longitude": 106.7},
    ],
)
def test_normalize_without_usable_pair_is_invalid(payload: dict[str, object]) -> None:
    result = normalize(payload)
    assert isinstance(result, Invalid)
    assert result.reason


@pytest.mark.parametrize("raw", [None, "10.7,106.7", [10.7, 106.7], 42])
def test_normalize_non_object_is_invalid(raw: object) -> None:
    assert isinstance(normalize(raw), Invalid)


def test_normalize_falls_through_to_next_encoding() -> None:
    payload = {
        "position.latitude": None,
        "position.longitude": None,
        "position": {"latitude": 10.0},
        "latitude": 11.0,
        "longitude": 107.0,
    }

    result = normalize(payload)

    assert result == LocationSample(latitude=11.0, longitude=107.0)


def test_normalize_flat_wins_over_nested_and_bare() -> None:
    payload = {
        "position.latitude": 1.0,
        "position.longitude": 2.0,
        "position": {"latitude": 3.0, "longitude": 4.0},
        "lat": 5.0,
        "lng": 6.0,
    }

    result = normalize(payload)

    assert isinstance(result, LocationSample)
    assert (result.latitude, result.longitude) == (1.0, 2.0)


def test_normalize_drops_invalid_speed_and_converts_ms_timestamp() -> None:
    result = normalize({"lat": 1, "lng": 2, "speed": -4, "timestamp": 1_771_000_000_000})

    assert isinstance(result, LocationSample)
    assert result.speed is None
    assert result.timestamp == 1_771_000_000.0


def test_normalize_timestamp_fallbacks() -> None:
    result = normalize({"position.latitude": 1, "position.longitude": 2, "server.timestamp": 1771000005})
    assert isinstance(result, LocationSample)
    assert result.timestamp == 1771000005.0

    nested = normalize({"position": {"lat": 1, "lng": 2, "ts": 1771000006}})
    assert isinstance(nested, LocationSample)
    assert nested.timestamp == 1771000006.0


def test_normalize_accepts_custom_encodings() -> None:
    encodings = (CoordinateEncoding(name="custom", latitude=("y",), longitude=("x",)),)

    assert normalize({"y": 1, "x": 2}, encodings=encodings) == LocationSample(latitude=1, longitude=2)
    assert isinstance(normalize({"lat": 1, "lng": 2}, encodings=encodings), Invalid)


def test_normalize_first_skips_unusable_candidates() -> None:
    assert normalize_first([None, {"speed": 1}, {"lat": 1, "lng": 2}]) == LocationSample(latitude=1, longitude=2)
    assert normalize_first([None, {}]) is None


def test_extract_telemetry_position_unwraps_gateway_result() -> None:
    body = {
        "result": [
            {
                "id": 42,
                "telemetry": {
                    "position": {
                        "ts": 1771000000,
                        "value": {"latitude": 10.776, "longitude": 106.7, "speed": 12},
                    }
                },
            }
        ]
    }

    payload = extract_telemetry_position(body)

    assert payload == {"ts": 1771000000, "latitude": 10.776, "longitude": 106.7, "speed": 12}
    assert normalize(payload) == LocationSample(latitude=10.776, longitude=106.7, speed=12, timestamp=1771000000)


def test_extract_telemetry_position_passthrough_and_empty_result() -> None:
    flat = {"position.latitude": 1, "position.longitude": 2}
    assert extract_telemetry_position(flat) is flat
    assert extract_telemetry_position({"result": []}) is None
    assert isinstance(normalize(extract_telemetry_position({"result": []})), Invalid)
