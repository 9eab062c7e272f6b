"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single detection reported by one sensor."""

    id: int
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class Match:
    """A committed pairing of a sensor 1 reading with a sensor 2 reading."""

    id1: int
    id2: int
    distance_meters: float
