"""
Logging setup: trace ids in the format, structured extras on records.
"""
from __future__ import annotations

import io
import logging

import pytest

from utils.logger import TraceIdFilter, get_logger, log_structured, setup_logging


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_trace_id_rendered_or_dashed(restore_root_logging) -> None:
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)
    log = get_logger("tests.logger")
    log_structured(log, logging.INFO, "with trace", trace_id="abc-123", amount_count=3)
    log.info("without trace")
    lines = stream.getvalue().splitlines()
    assert "[abc-123]: with trace" in lines[0]
    assert "[-]: without trace" in lines[1]


def test_level_respected(restore_root_logging) -> None:
    stream = io.StringIO()
    setup_logging("warning", stream=stream)
    get_logger("tests.logger").info("hidden")
    assert stream.getvalue() == ""


def test_filter_keeps_existing_trace_id() -> None:
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    record.trace_id = "t-9"
    assert TraceIdFilter().filter(record)
    assert record.trace_id == "t-9"


def test_structured_extras_on_record(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="tests.logger"):
        log_structured(get_logger("tests.logger"), logging.INFO, "counts", trace_id="t", token_count=4)
    assert caplog.records[0].token_count == 4
