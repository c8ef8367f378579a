# application/outcome.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Stage(str, Enum):
    BEFORE = "before"
    PERFORM = "perform"
    AFTER = "after"
    DONE = "done"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Where a single step's run stopped and whether it undid itself."""

    ok: bool
    stage: Stage
    rolled_back: bool = False
    step: Any = None
