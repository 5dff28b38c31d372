"""Unit normalisation and great-circle distance.

Upstream quantities arrive as {"value": ..., "unitCode": "wmoUnit:..."}.
normalise() converts them once into the engine's units:

    temperature → °F        speed    → mph
    distance    → miles     rainfall → inches
    pressure    → inHg      humidity → %      direction → degrees

A null value stays None.  An unrecognised unit code raises ValueError,
which the client reports as a malformed response.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Callable, Optional

EARTH_RADIUS_MILES = 3959.0


class Quantity(str, Enum):
    TEMPERATURE = "temperature"
    SPEED = "speed"
    DISTANCE = "distance"
    RAINFALL = "rainfall"
    PRESSURE = "pressure"
    PERCENT = "percent"
    ANGLE = "angle"


# ── Conversions ──────────────────────────────────────────────────────────────

def celsius_to_fahrenheit(c: float) -> float:
    return c * 9 / 5 + 32


def ms_to_mph(ms: float) -> float:
    return ms * 2.237


def kmh_to_mph(kmh: float) -> float:
    return kmh * 0.621371


def meters_to_miles(m: float) -> float:
    return m * 0.000621371


def mm_to_inches(mm: float) -> float:
    return mm * 0.0393701


def pa_to_inhg(pa: float) -> float:
    return pa * 0.00029530


def _same(v: float) -> float:
    return v


# (quantity, unit code suffix) → converter into the engine's unit
_CONVERTERS: dict[tuple[Quantity, str], Callable[[float], float]] = {
    (Quantity.TEMPERATURE, "degC"): celsius_to_fahrenheit,
    (Quantity.TEMPERATURE, "degF"): _same,
    (Quantity.SPEED, "m_s-1"): ms_to_mph,
    (Quantity.SPEED, "km_h-1"): kmh_to_mph,
    (Quantity.SPEED, "mi_h-1"): _same,
    (Quantity.DISTANCE, "m"): meters_to_miles,
    (Quantity.DISTANCE, "km"): lambda km: km * 0.621371,
    (Quantity.DISTANCE, "mi"): _same,
    (Quantity.RAINFALL, "mm"): mm_to_inches,
    (Quantity.RAINFALL, "m"): lambda m: mm_to_inches(m * 1000.0),
    (Quantity.RAINFALL, "in"): _same,
    (Quantity.PRESSURE, "Pa"): pa_to_inhg,
    (Quantity.PRESSURE, "hPa"): lambda hpa: pa_to_inhg(hpa * 100.0),
    (Quantity.PERCENT, "percent"): _same,
    (Quantity.ANGLE, "degree_(angle)"): _same,
}


def normalise(measurement: Any, quantity: Quantity) -> Optional[float]:
    """Convert an upstream {"value", "unitCode"} object into engine units.

    Returns None when the measurement or its value is missing.

    Raises:
        ValueError: If the unit code is not recognised for *quantity*, or
            the value is not numeric.
    """
    if measurement is None:
        return None
    if not isinstance(measurement, dict):
        raise ValueError(f"{quantity.value} measurement is not an object: {measurement!r}")

    value = measurement.get("value")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{quantity.value} value is not numeric: {value!r}")

    unit_code = str(measurement.get("unitCode", ""))
    # "wmoUnit:degC" → "degC"; bare codes are accepted too
    suffix = unit_code.split(":", 1)[-1]
    converter = _CONVERTERS.get((quantity, suffix))
    if converter is None:
        raise ValueError(f"unsupported {quantity.value} unit {unit_code!r}")
    return converter(float(value))


# ── Distance ─────────────────────────────────────────────────────────────────

def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points, in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c
