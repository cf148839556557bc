from __future__ import annotations

import json

import pytest
from loguru import logger as loguru_logger

from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger


@pytest.fixture
def records():
    captured = []
    sink_id = loguru_logger.add(lambda msg: captured.append(msg.record), level="DEBUG")
    yield captured
    loguru_logger.remove(sink_id)


def test_loguru_logger_emits_type_field(records) -> None:
    LoguruLogger().info("visit.start", url="https://example.com/")

    record = records[-1]
    assert record["level"].name == "INFO"
    event, payload = record["message"].split(" ", 1)
    assert event == "visit.start"
    assert json.loads(payload) == {"url": "https://example.com/", "type": "visit.start"}
    assert record["extra"]["url"] == "https://example.com/"


def test_bind_attaches_fields(records) -> None:
    bound = LoguruLogger().bind(hop=2)

    bound.warning("redirect.no_location", status=301)

    assert records[-1]["extra"]["hop"] == 2
    assert records[-1]["extra"]["status"] == 301
    assert LoguruLogger().bound == {}


def test_console_logging_writes_to_stderr(capsys, monkeypatch) -> None:
    monkeypatch.setenv("HTTPSTAT_LOG_LEVEL", "info")
    setup_console_logging()

    LoguruLogger().info("run.start")
    LoguruLogger().debug("hidden")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "run.start" in captured.err
    assert "hidden" not in captured.err
