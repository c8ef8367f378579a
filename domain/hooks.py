# domain/hooks.py
from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, List, Optional, Tuple, Union
from weakref import WeakKeyDictionary

from domain.exceptions import HookRegistrationError, HookResolutionError


@dataclass(frozen=True)
class CallableHook:
    fn: Callable[[Any], Any]

    def invoke(self, step: Any) -> Any:
        return self.fn(step)

    @property
    def label(self) -> str:
        return getattr(self.fn, "__name__", repr(self.fn))


@dataclass(frozen=True)
class MethodHook:
    name: str

    def invoke(self, step: Any) -> Any:
        method = getattr(step, self.name, None)
        if method is None or not callable(method):
            raise HookResolutionError(type(step).__name__, self.name)
        return method()

    @property
    def label(self) -> str:
        return self.name


Hook = Union[CallableHook, MethodHook]
HookEntry = Union[Hook, str, Callable[[Any], Any]]


def as_hook(entry: HookEntry) -> Hook:
    if isinstance(entry, (CallableHook, MethodHook)):
        return entry
    if isinstance(entry, str):
        if not entry:
            raise HookRegistrationError(entry)
        return MethodHook(entry)
    if callable(entry):
        return CallableHook(entry)
    raise HookRegistrationError(entry)


@dataclass
class _HookLists:
    before: List[Hook]
    after: List[Hook]


class HookRegistry:
    """
    Before/after hook lists, one pair per step type.

    Types are independent: a subclass starts with empty lists even if its
    parent has hooks. Before-hooks run in registration order. Each
    ``register_after`` call puts its batch in front of the hooks already
    registered, so the latest batch runs first.
    """

    def __init__(self) -> None:
        self._hooks: "WeakKeyDictionary[type, _HookLists]" = WeakKeyDictionary()
        self._lock = Lock()

    def _lists(self, step_type: type) -> _HookLists:
        lists = self._hooks.get(step_type)
        if lists is None:
            lists = _HookLists(before=[], after=[])
            self._hooks[step_type] = lists
        return lists

    def register_before(self, step_type: type, *entries: HookEntry) -> Tuple[Hook, ...]:
        hooks = [as_hook(e) for e in entries]
        with self._lock:
            self._lists(step_type).before.extend(hooks)
        return tuple(hooks)

    def register_after(self, step_type: type, *entries: HookEntry) -> Tuple[Hook, ...]:
        hooks = [as_hook(e) for e in entries]
        with self._lock:
            lists = self._lists(step_type)
            lists.after[0:0] = hooks
        return tuple(hooks)

    def before_hooks(self, step_type: type) -> Tuple[Hook, ...]:
        with self._lock:
            lists = self._hooks.get(step_type)
            return tuple(lists.before) if lists else ()

    def after_hooks(self, step_type: type) -> Tuple[Hook, ...]:
        with self._lock:
            lists = self._hooks.get(step_type)
            return tuple(lists.after) if lists else ()

    def clear(self, step_type: Optional[type] = None) -> None:
        with self._lock:
            if step_type is None:
                self._hooks.clear()
            else:
                self._hooks.pop(step_type, None)


_default_registry = HookRegistry()


def default_registry() -> HookRegistry:
    return _default_registry
