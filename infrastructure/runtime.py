# infrastructure/runtime.py
from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Optional

from application.executor.step_executor import StepExecutor
from application.ports.logger import LoggerPort
from infrastructure.config.settings import Settings, load_settings
from infrastructure.execution.in_memory_execution_log_store import InMemoryExecutionLogStore
from infrastructure.logging.composite_logger import CompositeLogger
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.execution_log_logger import ExecutionLogLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger


@dataclass(frozen=True)
class Runtime:
    settings: Settings
    executor: StepExecutor
    log_store: Optional[InMemoryExecutionLogStore] = None


RECORDED_RUN_ID = "runtime"

_runtime: Optional[Runtime] = None
_lock = Lock()


def build_logger(settings: Settings) -> LoggerPort:
    if settings.logger == "console":
        return ConsoleLogger(level=settings.log_level)
    return LoguruLogger()


def build_runtime(settings: Settings, logger: Optional[LoggerPort] = None) -> Runtime:
    logger = logger or build_logger(settings)
    log_store = None
    if settings.record_events:
        # keep every event in memory as well, readable through runtime.log_store
        log_store = InMemoryExecutionLogStore()
        logger = CompositeLogger((logger, ExecutionLogLogger(run_id=RECORDED_RUN_ID, log_store=log_store)))
    executor = StepExecutor(logger=logger, raise_rollback_errors=settings.raise_rollback_errors)
    return Runtime(settings=settings, executor=executor, log_store=log_store)


def get_runtime() -> Runtime:
    global _runtime
    with _lock:
        if _runtime is None:
            _runtime = build_runtime(load_settings())
        return _runtime


def configure(
    settings: Optional[Settings] = None,
    logger: Optional[LoggerPort] = None,
    setup_logging: bool = False,
) -> Runtime:
    """Replace the process-wide runtime (host applications and tests)."""
    global _runtime
    settings = settings or load_settings()
    if setup_logging:
        setup_console_logging(level=settings.log_level)
    runtime = build_runtime(settings, logger=logger)
    with _lock:
        _runtime = runtime
    return runtime


def reset() -> None:
    global _runtime
    with _lock:
        _runtime = None
