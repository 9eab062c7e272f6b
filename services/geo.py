"""Coordinate cleanup and great-circle distance."""

from __future__ import annotations

import math
from typing import Iterable, List

from models.records import SensorReading

EARTH_RADIUS_METERS = 6_371_000.0


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into ``[-180, 180)``."""
    # Python's % is floored, so the result is never negative.
    return ((lon + 180.0) % 360.0 + 360.0) % 360.0 - 180.0


def is_valid_reading(reading: SensorReading) -> bool:
    if not (math.isfinite(reading.latitude) and math.isfinite(reading.longitude)):
        return False
    return -90.0 <= reading.latitude <= 90.0


def normalize(readings: Iterable[SensorReading]) -> List[SensorReading]:
    """Drop readings with unusable coordinates and wrap the rest into range.

    Latitudes outside ``[-90, 90]`` and non-finite coordinates are discarded
    rather than repaired. Input order is preserved.
    """
    cleaned: List[SensorReading] = []
    for reading in readings:
        if not is_valid_reading(reading):
            continue
        cleaned.append(
            SensorReading(
                id=reading.id,
                latitude=reading.latitude,
                longitude=normalize_longitude(reading.longitude),
            )
        )
    return cleaned


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters on a spherical Earth."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a just past 1 near antipodal points.
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def distance_between(first: SensorReading, second: SensorReading) -> float:
    return haversine_meters(first.latitude, first.longitude, second.latitude, second.longitude)
