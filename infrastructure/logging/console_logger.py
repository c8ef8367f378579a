# infrastructure/logging/console_logger.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict

from application.ports.logger import LoggerPort

_RANK = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


@dataclass(frozen=True)
class ConsoleLogger(LoggerPort):
    bound: Dict[str, Any] = field(default_factory=dict)
    level: str = "DEBUG"

    def bind(self, **fields: Any) -> "ConsoleLogger":
        merged = dict(self.bound)
        merged.update(fields)
        return ConsoleLogger(bound=merged, level=self.level)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("DEBUG", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("INFO", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("WARNING", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("ERROR", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        if _RANK[level] < _RANK.get(self.level.upper(), 0):
            return
        payload = dict(self.bound)
        payload.update(fields)
        payload.setdefault("type", event)
        payload.setdefault("level", level.lower())
        print(f"{event} {json.dumps(payload, ensure_ascii=False, default=str)}")
