# infrastructure/execution/in_memory_execution_log_store.py
from __future__ import annotations

from threading import Lock
from typing import Dict, List

from application.ports.execution_log_store import ExecutionLogStorePort
from domain.execution_log import ExecutionLogEntry


class InMemoryExecutionLogStore(ExecutionLogStorePort):
    def __init__(self) -> None:
        self._logs: Dict[str, List[ExecutionLogEntry]] = {}
        self._lock = Lock()

    def append(self, run_id: str, entry: ExecutionLogEntry) -> None:
        with self._lock:
            self._logs.setdefault(run_id, []).append(entry)

    def list(self, run_id: str) -> List[ExecutionLogEntry]:
        with self._lock:
            return list(self._logs.get(run_id, []))

    def events(self, run_id: str) -> List[str]:
        return [entry.event for entry in self.list(run_id)]

    def clear(self, run_id: str) -> None:
        with self._lock:
            self._logs.pop(run_id, None)
