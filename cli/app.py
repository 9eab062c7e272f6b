from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer

from cli.render import echo_summary, write_matches
from logging_config import configure_logging, resolve_log_level
from services.correlator import build_default_correlator
from services.matcher import MatchStrategy
from services.readers import read_batch_manifest
from settings import get_settings

app = typer.Typer(
    help="Correlate anomaly detections from two sensors by geographic proximity.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    try:
        level = resolve_log_level(log_level or get_settings().log_level)
    except ValueError as exc:
        _fail(str(exc))
    configure_logging(level)


@app.command("correlate")
def correlate_command(
    sensor1: Path = typer.Argument(..., dir_okay=False, help="Sensor 1 readings (delimited text)."),
    sensor2: Path = typer.Argument(..., dir_okay=False, help="Sensor 2 readings (JSON array)."),
    output: Optional[Path] = typer.Argument(
        None, dir_okay=False, help="Where to write the match CSV (defaults to stdout)."
    ),
    threshold: Optional[float] = typer.Option(
        None,
        "--threshold",
        "-t",
        help="Maximum match distance in meters (defaults to CORRELATION_THRESHOLD_METERS or 100).",
    ),
    strategy: Optional[MatchStrategy] = typer.Option(
        None,
        "--strategy",
        "-s",
        case_sensitive=False,
        help="Assignment strategy (defaults to CORRELATION_STRATEGY or greedy).",
    ),
    with_distance: bool = typer.Option(
        False,
        "--with-distance",
        help="Add a distance_meters column to the output.",
    ),
) -> None:
    """Match readings from two sensors and emit the paired ids."""
    service = build_default_correlator(strategy=strategy)
    try:
        report = service.correlate(sensor1, sensor2, threshold_meters=threshold)
    except (OSError, ValueError) as exc:
        _fail(str(exc))

    if output is None:
        echo_summary(report, err=True)
        write_matches(report, with_distance=with_distance)
        return

    echo_summary(report)
    try:
        write_matches(report, output, with_distance=with_distance)
    except OSError as exc:
        _fail(f"Could not write {output}: {exc}")


@app.command("batch")
def batch_command(
    manifest: Path = typer.Argument(
        ..., dir_okay=False, help="JSON array of {sensor1, sensor2, output} entries."
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Concurrent jobs (defaults to CORRELATION_WORKER_COUNT or 4).",
    ),
    strategy: Optional[MatchStrategy] = typer.Option(
        None,
        "--strategy",
        "-s",
        case_sensitive=False,
        help="Assignment strategy (defaults to CORRELATION_STRATEGY or greedy).",
    ),
    with_distance: bool = typer.Option(
        False,
        "--with-distance",
        help="Add a distance_meters column to each output.",
    ),
) -> None:
    """Correlate several independent sensor pairs concurrently."""
    try:
        jobs = read_batch_manifest(manifest)
    except (OSError, ValueError) as exc:
        _fail(str(exc))

    service = build_default_correlator(strategy=strategy, workers=workers)
    outcomes = service.run_many(
        jobs,
        writer=lambda report, path: write_matches(report, path, with_distance=with_distance),
    )

    failures = 0
    for outcome in outcomes:
        job = outcome.job
        if outcome.report is not None:
            typer.secho(
                f"ok      {job.sensor1.name} + {job.sensor2.name} -> {job.output} "
                f"({outcome.report.match_count} matches)",
                fg=typer.colors.GREEN,
            )
        else:
            failures += 1
            typer.secho(
                f"failed  {job.sensor1.name} + {job.sensor2.name}: {outcome.error}",
                fg=typer.colors.RED,
                err=True,
            )

    if failures:
        raise typer.Exit(code=1)
