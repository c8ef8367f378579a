# tests/conftest.py
from __future__ import annotations

import pytest

from infrastructure import runtime
from infrastructure.config.settings import Settings
from infrastructure.execution.in_memory_execution_log_store import InMemoryExecutionLogStore
from infrastructure.logging.execution_log_logger import ExecutionLogLogger


@pytest.fixture(autouse=True)
def log_store():
    """Every test runs against default settings and an in-memory event log."""
    store = InMemoryExecutionLogStore()
    runtime.configure(settings=Settings(), logger=ExecutionLogLogger(run_id="test", log_store=store))
    yield store
    runtime.reset()
