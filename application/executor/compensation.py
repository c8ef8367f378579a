# application/executor/compensation.py
from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from application.ports.logger import LoggerPort

if TYPE_CHECKING:
    from application.steps.base import Step


def compensate(
    performed: Sequence["Step"],
    logger: LoggerPort,
    surface_errors: bool = False,
) -> List[Exception]:
    """
    Roll back completed steps, most recent first.

    A rollback that raises does not stop the remaining ones; its error is
    returned so the caller can decide whether to surface it. Errors that will
    be surfaced are logged at error level, the rest at warning level.
    """
    report = logger.error if surface_errors else logger.warning
    errors: List[Exception] = []
    for step in reversed(performed):
        step_name = type(step).__name__
        logger.info("organizer.rollback", step=step_name)
        try:
            step.rollback()
        except Exception as e:
            report(
                "organizer.rollback_error",
                step=step_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            errors.append(e)
    return errors
