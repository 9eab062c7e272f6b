from __future__ import annotations

from typing import Iterable

import pytest

from services.correlator import build_default_correlator
from services.matcher import MatchStrategy
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


@pytest.fixture(autouse=True)
def _fresh_caches():
    caches = (get_settings, build_default_correlator)
    _clear_caches(caches)
    yield
    _clear_caches(caches)


def test_defaults_apply_without_environment(monkeypatch) -> None:
    for name in (
        "CORRELATION_THRESHOLD_METERS",
        "CORRELATION_STRATEGY",
        "CORRELATION_WORKER_COUNT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.threshold_meters == 100.0
    assert settings.strategy == "greedy"
    assert settings.workers == 4
    assert settings.log_level == "INFO"


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("CORRELATION_THRESHOLD_METERS", "250.5")
    monkeypatch.setenv("CORRELATION_STRATEGY", " Optimal ")
    monkeypatch.setenv("CORRELATION_WORKER_COUNT", "2")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    service = build_default_correlator()

    try:
        assert service.threshold_meters == 250.5
        assert service.matcher.strategy is MatchStrategy.optimal
        assert service.executor._max_workers == 2
        assert get_settings().log_level == "DEBUG"
    finally:
        service.shutdown()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("CORRELATION_THRESHOLD_METERS", "far"),
        ("CORRELATION_THRESHOLD_METERS", "nan"),
        ("CORRELATION_STRATEGY", "hungarian"),
        ("CORRELATION_WORKER_COUNT", "0"),
        ("CORRELATION_WORKER_COUNT", "  "),
    ],
)
def test_invalid_values_fall_back_to_defaults(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    settings = get_settings()

    assert settings.threshold_meters == 100.0
    assert settings.strategy == "greedy"
    assert settings.workers == 4


def test_explicit_arguments_beat_settings(monkeypatch) -> None:
    monkeypatch.setenv("CORRELATION_STRATEGY", "optimal")
    monkeypatch.setenv("CORRELATION_WORKER_COUNT", "3")

    service = build_default_correlator(strategy="greedy", workers=1)

    try:
        assert service.matcher.strategy is MatchStrategy.greedy
        assert service.executor._max_workers == 1
    finally:
        service.shutdown()
