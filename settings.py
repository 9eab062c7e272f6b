from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache


_THRESHOLD_ENV = "CORRELATION_THRESHOLD_METERS"
_STRATEGY_ENV = "CORRELATION_STRATEGY"
_WORKER_COUNT_ENV = "CORRELATION_WORKER_COUNT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_KNOWN_STRATEGIES = {"greedy", "optimal"}


@dataclass(frozen=True)
class Settings:
    threshold_meters: float
    strategy: str
    workers: int
    log_level: str


def _read_threshold(default: float) -> float:
    value = os.getenv(_THRESHOLD_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) else default


def _read_strategy(default: str) -> str:
    value = os.getenv(_STRATEGY_ENV)
    if value is None:
        return default
    candidate = value.strip().lower()
    return candidate if candidate in _KNOWN_STRATEGIES else default


def _read_worker_count(default: int) -> int:
    value = os.getenv(_WORKER_COUNT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        threshold_meters=_read_threshold(100.0),
        strategy=_read_strategy("greedy"),
        workers=_read_worker_count(4),
        log_level=_read_log_level("INFO"),
    )
