from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import typer

from models.schemas import CorrelationReport, MatchRecord

CSV_HEADER = "sensor1_id,sensor2_id"


def match_lines(matches: Iterable[MatchRecord], with_distance: bool = False) -> List[str]:
    """Render matches as CSV lines, header first."""
    if with_distance:
        lines = [f"{CSV_HEADER},distance_meters"]
        lines.extend(f"{m.id1},{m.id2},{m.distance_meters:.3f}" for m in matches)
        return lines
    lines = [CSV_HEADER]
    lines.extend(f"{m.id1},{m.id2}" for m in matches)
    return lines


def write_matches(
    report: CorrelationReport,
    output: Optional[Path] = None,
    with_distance: bool = False,
) -> None:
    """Write the match CSV to ``output``, or to stdout when no path is given."""
    lines = match_lines(report.matches, with_distance=with_distance)
    if output is None:
        for line in lines:
            typer.echo(line)
        return
    output.write_text("\n".join(lines) + "\n", encoding="utf-8")


def echo_summary(report: CorrelationReport, err: bool = False) -> None:
    typer.echo(f"Sensor1 total: {report.sensor1.total}, valid: {report.sensor1.valid}", err=err)
    typer.echo(f"Sensor2 total: {report.sensor2.total}, valid: {report.sensor2.valid}", err=err)
    typer.echo(f"Matches found: {report.match_count}", err=err)
    if report.errors:
        typer.echo(f"Skipped records: {len(report.errors)}", err=err)
