from __future__ import annotations

import logging
from pathlib import Path

import pytest

from roundtrip_engine.logging import LOGGER_NAME, LogService, get_log_service, reset_logging
from roundtrip_engine.logging.log_service import LOG_FILENAME


@pytest.fixture
def fresh_logging():
    reset_logging()
    yield
    reset_logging()


def test_file_handler_writes_to_log_dir(tmp_path: Path, fresh_logging) -> None:
    service = LogService(name="worker-0", console=False, log_dir=tmp_path, level="DEBUG")
    service.log_system("chunk 0 to 10 verified")

    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.flush()
    text = (tmp_path / LOG_FILENAME).read_text(encoding="utf-8")
    assert "RoundTrip.worker-0: chunk 0 to 10 verified" in text


def test_records_propagate_under_pytest(
    tmp_path: Path, fresh_logging, caplog: pytest.LogCaptureFixture
) -> None:
    service = LogService(name="coordinator", log_dir=tmp_path)

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        service.log_system("Run failed", level="error")

    assert any(r.levelname == "ERROR" and r.message == "Run failed" for r in caplog.records)


def test_log_exception_attaches_traceback(
    tmp_path: Path, fresh_logging, caplog: pytest.LogCaptureFixture
) -> None:
    service = LogService(log_dir=tmp_path)

    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            service.log_exception("Worker crashed", exc)

    record = caplog.records[-1]
    assert record.message == "Worker crashed: boom"
    assert record.exc_info is not None


def test_get_log_service_is_cached(fresh_logging) -> None:
    assert get_log_service("cli") is get_log_service("cli")
    assert get_log_service("cli") is not get_log_service("coordinator")
