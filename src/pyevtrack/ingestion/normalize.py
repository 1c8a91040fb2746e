"""Normalization helpers.

Centralizes defensive parsing of loosely-typed provider values.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from pyevtrack._constants import MS_TIMESTAMP_THRESHOLD

_MISSING = object()


def safe_float(value: Any) -> float | None:
    """Coerce a number or numeric string to a finite float.

    Booleans, ``None``, empty/non-numeric strings, NaN, infinities and
    integers beyond float range all yield ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_non_negative(value: Any) -> float | None:
    parsed = safe_float(value)
    if parsed is None or parsed < 0:
        return None
    return parsed


def safe_str(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text if text else None


def normalize_timestamp_seconds(value: Any) -> float | None:
    """Normalize provider timestamps to epoch seconds.

    - Empty/missing/non-numeric -> None
    - <= 0 -> None
    - Milliseconds (> 1e11) -> seconds
    """
    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    if ts > MS_TIMESTAMP_THRESHOLD:
        ts /= 1000.0
    return ts


def lookup_path(payload: Any, path: Sequence[str]) -> Any:
    """Walk nested mappings along *path*.

    Each element is a literal key, so a flat dotted key such as
    ``"position.latitude"`` is a one-element path while the nested
    encoding of the same value is ``("position", "latitude")``.
    Returns ``None`` when any step is missing or not a mapping.
    """
    current: Any = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key, _MISSING)
        if current is _MISSING:
            return None
    return current


def first_present(payload: Any, paths: Sequence[Sequence[str]]) -> Any:
    """Return the first value along *paths* that is not ``None``."""
    for path in paths:
        value = lookup_path(payload, path)
        if value is not None:
            return value
    return None
