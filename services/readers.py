"""Input adapters turning sensor files into readings."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError

from models.records import SensorReading
from models.schemas import BatchJob, RowError, SensorRecordPayload

logger = logging.getLogger(__name__)

_FIELD_SEPARATOR = re.compile(r"[\t, ]+")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|nan|inf|infinity)",
    re.IGNORECASE,
)

PathLike = Union[str, Path]


class InputFormatError(ValueError):
    """Raised when an input file is structurally unusable."""


@dataclass
class ParsedStream:
    """Readings recovered from one input plus the records that were skipped."""

    source: str
    readings: List[SensorReading] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    def skip(self, row_number: int, reason: str) -> None:
        self.errors.append(RowError(source=self.source, row_number=row_number, reason=reason))
        logger.warning(
            "Skipping row",
            extra={"source": self.source, "row_number": row_number, "reason": reason},
        )


def _require_file(path: Path, kind: str) -> None:
    if not path.is_file():
        raise FileNotFoundError(f"{kind} file not found: {path}")


def _load_json_array(path: Path, kind: str) -> list:
    _require_file(path, kind)
    try:
        document = json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as exc:
        raise InputFormatError(f"{kind} file {path} is not valid JSON: {exc.msg}") from exc
    if not isinstance(document, list):
        raise InputFormatError(f"{kind} root is not an array.")
    return document


def _parse_row(parts: List[str]) -> SensorReading:
    id_raw, lat_raw, lon_raw = parts[0], parts[1], parts[2]
    if not _INTEGER.fullmatch(id_raw):
        raise ValueError("invalid id")
    if not _FLOAT.fullmatch(lat_raw):
        raise ValueError("invalid latitude")
    if not _FLOAT.fullmatch(lon_raw):
        raise ValueError("invalid longitude")
    return SensorReading(id=int(id_raw), latitude=float(lat_raw), longitude=float(lon_raw))


def read_sensor1_csv(path: PathLike) -> ParsedStream:
    """Parse sensor 1 readings from a delimited text file.

    The first line is a header and is ignored. Fields may be separated by
    tabs, commas or spaces in any mix. Numbers must be plain ASCII. Rows
    that cannot be parsed, including rows with undecodable bytes, are
    skipped and reported on the returned stream.
    """
    csv_path = Path(path)
    _require_file(csv_path, "CSV")

    stream = ParsedStream(source=csv_path.name)
    with csv_path.open("r", encoding="utf-8-sig", errors="replace", newline="") as handle:
        next(handle, None)
        for row_number, line in enumerate(handle, start=2):
            if not line.strip():
                continue

            parts = [part for part in _FIELD_SEPARATOR.split(line.strip()) if part]
            if len(parts) < 3:
                stream.skip(row_number, "expected id, latitude and longitude")
                continue

            try:
                reading = _parse_row(parts)
            except ValueError as exc:
                stream.skip(row_number, str(exc))
                continue

            stream.readings.append(reading)

    return stream


def read_sensor2_json(path: PathLike) -> ParsedStream:
    """Parse sensor 2 readings from a JSON array of objects.

    Each element needs integer ``id`` and numeric ``latitude``/``longitude``
    fields. A document that is not valid JSON, or whose root is not an
    array, raises :class:`InputFormatError`.
    """
    json_path = Path(path)
    document = _load_json_array(json_path, "JSON")

    stream = ParsedStream(source=json_path.name)
    for position, element in enumerate(document, start=1):
        try:
            payload = SensorRecordPayload.model_validate(element)
        except ValidationError as exc:
            fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
            reason = f"invalid fields: {', '.join(fields)}" if fields else "not an object"
            stream.skip(position, reason)
            continue
        stream.readings.append(
            SensorReading(id=payload.id, latitude=payload.latitude, longitude=payload.longitude)
        )

    return stream


def read_batch_manifest(path: PathLike) -> List[BatchJob]:
    """Load the list of sensor pairs for a batch run.

    Relative paths in the manifest resolve against the manifest's directory.
    """
    manifest_path = Path(path)
    document = _load_json_array(manifest_path, "Manifest")

    base = manifest_path.parent
    jobs: List[BatchJob] = []
    for position, element in enumerate(document, start=1):
        try:
            job = BatchJob.model_validate(element)
        except ValidationError as exc:
            raise InputFormatError(f"Manifest entry {position} is invalid: {exc}") from exc
        jobs.append(
            BatchJob(
                sensor1=base / job.sensor1,
                sensor2=base / job.sensor2,
                output=base / job.output,
            )
        )
    return jobs
