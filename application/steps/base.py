# application/steps/base.py
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Tuple

from application.outcome import ExecutionOutcome
from domain.context import Context
from domain.hooks import Hook, HookEntry, HookRegistry, default_registry

if TYPE_CHECKING:
    from application.executor.step_executor import StepExecutor
    from infrastructure.runtime import Runtime


StepFactory = Callable[[Context], "Step"]


def _runtime() -> "Runtime":
    from infrastructure.runtime import get_runtime

    return get_runtime()


class Step:
    """
    One unit of business logic working on a shared ``Context``.

    Subclasses override ``perform`` and, when the effect can be undone,
    ``rollback``. ``setup`` runs ahead of the registered before-hooks and can
    stop the run by failing the context.

    Callers normally go through the class-level entry points::

        result = AuthenticateUser.run(email="a@b.com", password="x")
        if result.context.success:
            ...
    """

    hook_registry: HookRegistry = default_registry()
    executor: Optional["StepExecutor"] = None

    def __init__(self, context: Optional[Mapping[str, Any]] = None, **fields: Any):
        strict = False if isinstance(context, Context) else _runtime().settings.strict_context
        self.context: Context = Context.build(context, strict=strict, **fields)
        self.outcome: Optional[ExecutionOutcome] = None

    # ---- entry points ----

    @classmethod
    def run(cls, context: Optional[Mapping[str, Any]] = None, **fields: Any) -> "Step":
        instance = cls(context, **fields)
        instance.perform_with_hooks()
        return instance

    @classmethod
    def run_rollback(cls, context: Optional[Mapping[str, Any]] = None, **fields: Any) -> "Step":
        instance = cls(context, **fields)
        instance.rollback()
        return instance

    # ---- hook configuration ----

    @classmethod
    def before(cls, *hooks: HookEntry) -> Any:
        cls.hook_registry.register_before(cls, *hooks)
        return hooks[0] if len(hooks) == 1 else None

    @classmethod
    def after(cls, *hooks: HookEntry) -> Any:
        cls.hook_registry.register_after(cls, *hooks)
        return hooks[0] if len(hooks) == 1 else None

    @classmethod
    def before_hooks(cls) -> Tuple[Hook, ...]:
        return cls.hook_registry.before_hooks(cls)

    @classmethod
    def after_hooks(cls) -> Tuple[Hook, ...]:
        return cls.hook_registry.after_hooks(cls)

    # ---- lifecycle ----

    def setup(self) -> None:
        pass

    def perform(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    def perform_with_hooks(self) -> ExecutionOutcome:
        self.outcome = self._executor().perform_with_hooks(self)
        return self.outcome

    def fail(self, payload: Optional[Mapping[str, Any]] = None, **fields: Any) -> None:
        self.context.fail(payload, **fields)

    def _executor(self) -> "StepExecutor":
        return type(self).executor or _runtime().executor

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.context!r})"
