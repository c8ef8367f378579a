# infrastructure/logging/composite_logger.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

from application.ports.logger import LoggerPort


@dataclass(frozen=True)
class CompositeLogger(LoggerPort):
    """Sends each event to every wrapped logger, in order."""

    loggers: Tuple[LoggerPort, ...]

    def bind(self, **fields: Any) -> "CompositeLogger":
        return CompositeLogger(tuple(child.bind(**fields) for child in self.loggers))

    def debug(self, event: str, **fields: Any) -> None:
        for child in self.loggers:
            child.debug(event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        for child in self.loggers:
            child.info(event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        for child in self.loggers:
            child.warning(event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        for child in self.loggers:
            child.error(event, **fields)
