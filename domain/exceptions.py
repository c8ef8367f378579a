# domain/exceptions.py
from __future__ import annotations

from typing import List, Optional


class StepflowError(Exception):
    """Base class for every error raised by the step machinery itself."""


class ConfigurationError(StepflowError):
    pass


class HookRegistrationError(StepflowError, TypeError):
    def __init__(self, entry: object):
        super().__init__(
            f"Hook must be a callable or a method name, got {type(entry).__name__}: {entry!r}"
        )
        self.entry = entry


class HookResolutionError(StepflowError, AttributeError):
    def __init__(self, step_type: str, method_name: str):
        super().__init__(f"{step_type} has no hook method named {method_name!r}")
        self.step_type = step_type
        self.method_name = method_name


class FieldOverwriteError(StepflowError, KeyError):
    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Context field {self.key!r} is already set (strict mode)"


class CompensationError(StepflowError):
    """
    Raised after compensation when one or more rollbacks failed and the
    configuration asks for rollback errors to surface.
    """

    def __init__(self, errors: List[BaseException], cause: Optional[BaseException] = None):
        names = ", ".join(type(e).__name__ for e in errors)
        super().__init__(f"{len(errors)} rollback(s) failed during compensation: {names}")
        self.errors = list(errors)
        self.cause = cause
