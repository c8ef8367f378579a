# application/ports/execution_log_store.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from domain.execution_log import ExecutionLogEntry


class ExecutionLogStorePort(ABC):
    @abstractmethod
    def append(self, run_id: str, entry: ExecutionLogEntry) -> None:
        ...

    @abstractmethod
    def list(self, run_id: str) -> List[ExecutionLogEntry]:
        ...

    @abstractmethod
    def clear(self, run_id: str) -> None:
        ...
