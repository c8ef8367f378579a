# application/steps/organizer.py
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from application.executor.compensation import compensate
from application.ports.logger import LoggerPort
from application.steps.base import Step, StepFactory
from domain.exceptions import CompensationError


class Organizer(Step):
    """
    A step made of other steps, run in order against one shared context.

    When a step fails (or raises) the steps that already completed are rolled
    back in reverse order. The failing step itself is left alone: it either
    never finished its effect or already undid it from its after-hooks.
    Organizers nest; a completed inner organizer is undone by rolling back its
    own completed steps.
    """

    steps: Sequence[StepFactory] = ()

    def __init__(self, context: Optional[Mapping[str, Any]] = None, **fields: Any):
        super().__init__(context, **fields)
        self.performed: List[Step] = []
        self.rollback_errors: List[Exception] = []

    @classmethod
    def organize(cls, *steps: StepFactory) -> None:
        cls.steps = tuple(steps)

    def perform(self) -> None:
        log = self._log()
        for factory in self.steps:
            step_name = getattr(factory, "__name__", repr(factory))
            log.debug("organizer.step", step=step_name, index=len(self.performed))
            try:
                instance = factory(self.context)
                instance.perform_with_hooks()
            except Exception as e:
                log.info("organizer.halt", step=step_name, reason="error", error_type=type(e).__name__)
                self._compensate(log, cause=e)
                raise

            if self.context.failure:
                log.info("organizer.halt", step=step_name, reason="failure")
                self._compensate(log)
                return

            self.performed.append(instance)

    def rollback(self) -> None:
        self._compensate(self._log())

    def _compensate(self, log: LoggerPort, cause: Optional[Exception] = None) -> None:
        performed, self.performed = self.performed, []
        log.info("organizer.compensate", steps=len(performed))
        surface = self._executor().raise_rollback_errors
        errors = compensate(performed, log, surface_errors=surface)
        if not errors:
            return
        self.rollback_errors.extend(errors)
        if surface:
            raise CompensationError(errors, cause) from cause

    def _log(self) -> LoggerPort:
        return self._executor().logger.bind(organizer=type(self).__name__)
