"""Orchestration of correlation runs: read, clean, match."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from models.schemas import BatchJob, CorrelationReport, MatchRecord, StreamSummary
from services.geo import normalize
from services.matcher import Matcher, MatchStrategy
from services.readers import PathLike, read_sensor1_csv, read_sensor2_json
from settings import get_settings

logger = logging.getLogger(__name__)

ReportWriter = Callable[[CorrelationReport, Path], None]


@dataclass
class JobOutcome:
    """Result of one job in a batch: either a report or the fatal error."""

    job: BatchJob
    report: Optional[CorrelationReport] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class CorrelationService:
    """Coordinates the readers, the normalizer and the matcher."""

    def __init__(
        self,
        matcher: Matcher,
        threshold_meters: float = 100.0,
        workers: int = 4,
    ) -> None:
        self.matcher = matcher
        self.threshold_meters = threshold_meters
        self.executor = ThreadPoolExecutor(max_workers=workers)

    def correlate(
        self,
        sensor1_path: PathLike,
        sensor2_path: PathLike,
        threshold_meters: Optional[float] = None,
    ) -> CorrelationReport:
        """Run one correlation. Missing or malformed input files propagate."""
        threshold = self.threshold_meters if threshold_meters is None else threshold_meters
        start_time = time.perf_counter()

        sensor1 = read_sensor1_csv(sensor1_path)
        sensor2 = read_sensor2_json(sensor2_path)

        clean1 = normalize(sensor1.readings)
        clean2 = normalize(sensor2.readings)
        for stream, cleaned in ((sensor1, clean1), (sensor2, clean2)):
            logger.info(
                "Readings cleaned",
                extra={
                    "source": stream.source,
                    "total": len(stream.readings),
                    "valid": len(cleaned),
                },
            )

        matches = self.matcher.match(clean1, clean2, threshold)
        processing_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "Correlation finished",
            extra={
                "match_count": len(matches),
                "threshold_meters": threshold,
                "strategy": self.matcher.strategy.value,
                "processing_ms": processing_ms,
            },
        )

        return CorrelationReport(
            sensor1=StreamSummary(total=len(sensor1.readings), valid=len(clean1)),
            sensor2=StreamSummary(total=len(sensor2.readings), valid=len(clean2)),
            threshold_meters=threshold,
            strategy=self.matcher.strategy.value,
            matches=[
                MatchRecord(id1=m.id1, id2=m.id2, distance_meters=m.distance_meters)
                for m in matches
            ],
            errors=sensor1.errors + sensor2.errors,
            processing_ms=processing_ms,
        )

    def run_many(
        self,
        jobs: Sequence[BatchJob],
        writer: ReportWriter,
    ) -> List[JobOutcome]:
        """Correlate independent sensor pairs concurrently.

        Each job's report is handed to ``writer`` together with the job's
        output path. A fatal input error fails only that job. Outcomes are
        returned in job order.
        """
        futures = [self.executor.submit(self._run_job, job, writer) for job in jobs]
        return [future.result() for future in futures]

    def shutdown(self) -> None:
        """Release worker threads."""
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _run_job(self, job: BatchJob, writer: ReportWriter) -> JobOutcome:
        try:
            report = self.correlate(job.sensor1, job.sensor2)
            writer(report, job.output)
        except (OSError, ValueError) as exc:
            logger.error(
                "Batch job failed",
                extra={"job": job.sensor1.name, "reason": str(exc)},
            )
            return JobOutcome(job=job, error=str(exc))
        return JobOutcome(job=job, report=report)


@lru_cache
def build_default_correlator(
    strategy: Optional[Union[str, MatchStrategy]] = None,
    workers: Optional[int] = None,
) -> CorrelationService:
    """Factory that wires the service from settings."""
    settings = get_settings()
    matcher = Matcher(MatchStrategy(strategy or settings.strategy))
    worker_count = workers or settings.workers
    return CorrelationService(
        matcher=matcher,
        threshold_meters=settings.threshold_meters,
        workers=worker_count,
    )
