from __future__ import annotations

import pytest
from loguru import logger as loguru_logger

from infrastructure.logging.loguru_logger import LoguruLogger


@pytest.fixture
def records():
    captured = []
    sink_id = loguru_logger.add(lambda msg: captured.append(msg.record), level="DEBUG")
    yield captured
    loguru_logger.remove(sink_id)


def test_loguru_logger_forwards_event_and_fields(records) -> None:
    LoguruLogger().bind(step="FindUser").info("step.failed", stage="perform")

    assert len(records) == 1
    record = records[0]
    assert record["level"].name == "INFO"
    assert record["extra"]["event"] == "step.failed"
    assert record["extra"]["step"] == "FindUser"
    assert record["extra"]["stage"] == "perform"
    assert record["message"] == "step.failed step=FindUser stage=perform"


def test_loguru_logger_levels(records) -> None:
    log = LoguruLogger()
    log.debug("a")
    log.warning("b")
    log.error("c")

    assert [r["level"].name for r in records] == ["DEBUG", "WARNING", "ERROR"]


def test_loguru_logger_bind_does_not_mutate_parent(records) -> None:
    parent = LoguruLogger()
    child = parent.bind(step="ChargeCard")

    parent.info("organizer.compensate")

    assert child.bound == {"step": "ChargeCard"}
    assert "step" not in records[0]["extra"]
