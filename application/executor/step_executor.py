# application/executor/step_executor.py
from __future__ import annotations

import time
from typing import TYPE_CHECKING, Iterable

from application.outcome import ExecutionOutcome, Stage
from application.ports.logger import LoggerPort
from domain.hooks import Hook, MethodHook, default_registry

if TYPE_CHECKING:
    from application.steps.base import Step


class StepExecutor:
    """
    Runs one step through setup, before-hooks, perform and after-hooks.

    Every entry is checked against the context as soon as it returns: an
    explicit failure stops the run, an exception stops it and propagates.
    The step is rolled back only when the stop happens in the after-hook
    stage, since only then has ``perform`` finished. If that rollback raises
    while an after-hook error is already propagating, the after-hook error
    still wins and the rollback failure is logged and added to it as a note.
    """

    def __init__(self, logger: LoggerPort, raise_rollback_errors: bool = False):
        self._logger = logger
        self._raise_rollback_errors = raise_rollback_errors

    @property
    def logger(self) -> LoggerPort:
        return self._logger

    @property
    def raise_rollback_errors(self) -> bool:
        return self._raise_rollback_errors

    def perform_with_hooks(self, step: "Step") -> ExecutionOutcome:
        step_type = type(step)
        registry = getattr(step, "hook_registry", None) or default_registry()

        # snapshot: registrations made while this run is in flight don't apply to it
        before: tuple = registry.before_hooks(step_type)
        if callable(getattr(step, "setup", None)):
            before = (MethodHook("setup"),) + before
        after = registry.after_hooks(step_type)

        log = self._logger.bind(step=step_type.__name__)
        log.debug("step.start", before_hooks=len(before), after_hooks=len(after))
        t0 = time.perf_counter()

        stage = Stage.BEFORE
        failed = False
        try:
            failed = self._run_hooks(step, before)
            if not failed:
                stage = Stage.PERFORM
                step.perform()
                failed = step.context.failure
            if not failed:
                stage = Stage.AFTER
                failed = self._run_hooks(step, after)
        except Exception as e:
            log.error(
                "step.error",
                stage=stage.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            if stage is Stage.AFTER:
                try:
                    self._rollback(log, step)
                except Exception as rollback_error:
                    log.error(
                        "step.rollback_error",
                        error_type=type(rollback_error).__name__,
                        error=str(rollback_error),
                    )
                    e.add_note(f"rollback also failed: {type(rollback_error).__name__}: {rollback_error}")
            raise

        if not failed:
            return self._finish(log, t0, step, Stage.DONE)

        log.info("step.failed", stage=stage.value)
        rolled_back = stage is Stage.AFTER
        if rolled_back:
            self._rollback(log, step)
        return self._finish(log, t0, step, stage, rolled_back=rolled_back)

    def _run_hooks(self, step: "Step", hooks: Iterable[Hook]) -> bool:
        """Invoke hooks in order; True as soon as one leaves the context failed."""
        for hook in hooks:
            hook.invoke(step)
            if step.context.failure:
                return True
        return False

    def _rollback(self, log: LoggerPort, step: "Step") -> None:
        log.info("step.rollback")
        step.rollback()

    def _finish(
        self,
        log: LoggerPort,
        t0: float,
        step: "Step",
        stage: Stage,
        rolled_back: bool = False,
    ) -> ExecutionOutcome:
        ok = stage is Stage.DONE
        log.debug(
            "step.end",
            ok=ok,
            stage=stage.value,
            elapsed_ms=int((time.perf_counter() - t0) * 1000),
        )
        return ExecutionOutcome(ok=ok, stage=stage, rolled_back=rolled_back, step=step)
