# domain/context.py
from __future__ import annotations

import copy
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Mapping, Optional

from domain.exceptions import FieldOverwriteError


class Context(MutableMapping):
    """
    Shared state bag handed from step to step.

    Holds arbitrary fields (insertion ordered) plus a failure flag. Once
    ``fail`` has been called the context stays failed for the rest of the run.
    Fields are reachable as items (``ctx["user"]``), through ``get``/``set``,
    or as attributes (``ctx.user``); attribute reads of unknown fields give
    ``None``.
    """

    __slots__ = ("_fields", "_failed", "_strict")

    def __init__(self, fields: Optional[Mapping[str, Any]] = None, *, strict: bool = False):
        object.__setattr__(self, "_fields", dict(fields or {}))
        object.__setattr__(self, "_failed", False)
        object.__setattr__(self, "_strict", strict)

    @classmethod
    def build(
        cls,
        initial: Optional[Mapping[str, Any]] = None,
        *,
        strict: bool = False,
        **fields: Any,
    ) -> "Context":
        # an existing context is adopted as-is so a chain of steps shares it
        if isinstance(initial, Context) and not fields:
            return initial

        merged: Dict[str, Any] = dict(initial or {})
        merged.update(fields)
        if isinstance(initial, Context):
            # extending a context keeps its flag and mode
            ctx = cls(merged, strict=strict or initial.strict)
            object.__setattr__(ctx, "_failed", initial.failed)
            return ctx
        return cls(merged, strict=strict)

    # ---- flag ----

    @property
    def failed(self) -> bool:
        return self._failed

    @property
    def success(self) -> bool:
        return not self._failed

    @property
    def failure(self) -> bool:
        return self._failed

    @property
    def strict(self) -> bool:
        return self._strict

    def fail(self, payload: Optional[Mapping[str, Any]] = None, **fields: Any) -> None:
        """Mark the run as failed and merge ``payload`` into the fields."""
        object.__setattr__(self, "_failed", True)
        if payload:
            self._fields.update(payload)
        if fields:
            self._fields.update(fields)

    # ---- field access ----

    @property
    def fields(self) -> Dict[str, Any]:
        return self._fields

    def get(self, key: str, default: Any = None) -> Any:
        return self._fields.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if self._strict and key in self._fields and self._fields[key] is not value:
            raise FieldOverwriteError(key)
        self._fields[key] = value

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._fields)

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if self._strict and key in self._fields:
            raise FieldOverwriteError(key)
        del self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._fields.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            raise AttributeError(f"Context field names may not start with '_': {name}")
        self.set(name, value)

    def __delattr__(self, name: str) -> None:
        try:
            self.__delitem__(name)
        except FieldOverwriteError:
            raise
        except KeyError:
            raise AttributeError(name) from None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Context):
            return self._fields == other._fields and self._failed == other._failed
        if isinstance(other, Mapping):
            return self._fields == dict(other)
        return NotImplemented

    def __copy__(self) -> "Context":
        dup = type(self)(self._fields, strict=self._strict)
        object.__setattr__(dup, "_failed", self._failed)
        return dup

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Context":
        dup = type(self)(copy.deepcopy(self._fields, memo), strict=self._strict)
        object.__setattr__(dup, "_failed", self._failed)
        memo[id(self)] = dup
        return dup

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "failure" if self._failed else "success"
        return f"Context({self._fields!r}, {state})"
