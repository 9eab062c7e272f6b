from __future__ import annotations

import logging

import pytest

from logging_config import ContextualFormatter, resolve_log_level


@pytest.mark.parametrize(
    ("level", "expected"),
    [("debug", logging.DEBUG), (" WARNING ", logging.WARNING), (logging.ERROR, logging.ERROR)],
)
def test_resolve_log_level_accepts_known_levels(level, expected: int) -> None:
    assert resolve_log_level(level) == expected


def test_resolve_log_level_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        resolve_log_level("chatty")


def test_formatter_appends_correlation_context() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")
    record = logging.LogRecord("services.readers", logging.WARNING, __file__, 1, "Skipping row", None, None)
    record.source = "sensor1.csv"
    record.row_number = 4
    record.reason = "invalid latitude"
    record.match_count = None

    assert formatter.format(record) == (
        "Skipping row | source=sensor1.csv row_number=4 reason=invalid latitude"
    )
