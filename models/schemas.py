"""Pydantic schemas for input validation and run reports."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SensorRecordPayload(BaseModel):
    """One element of the sensor 2 JSON array."""

    model_config = ConfigDict(strict=True)

    id: int
    latitude: float
    longitude: float


class RowError(BaseModel):
    """Details about a record that was skipped while reading an input."""

    source: str
    row_number: int = Field(..., ge=1)
    reason: str


class StreamSummary(BaseModel):
    """How many readings a stream supplied and how many survived cleanup."""

    total: int = Field(..., ge=0)
    valid: int = Field(..., ge=0)


class MatchRecord(BaseModel):
    id1: int
    id2: int
    distance_meters: float = Field(..., ge=0)


class CorrelationReport(BaseModel):
    """Full record of a single correlation run."""

    sensor1: StreamSummary
    sensor2: StreamSummary
    threshold_meters: float
    strategy: str
    matches: List[MatchRecord] = Field(default_factory=list)
    errors: List[RowError] = Field(default_factory=list)
    processing_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from read to match."
    )

    @property
    def match_count(self) -> int:
        return len(self.matches)


class BatchJob(BaseModel):
    """A single sensor pair listed in a batch manifest."""

    sensor1: Path
    sensor2: Path
    output: Path
