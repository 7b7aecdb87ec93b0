"""Shared type variables, sentinels and context variables."""

from __future__ import annotations

from collections.abc import Callable
from contextvars import ContextVar
from operator import attrgetter
from typing import Any, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class _NoMatch:
    """Sentinel returned by case projections when the variant does not match."""

    _instance: _NoMatch | None = None

    def __new__(cls) -> _NoMatch:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH: Any = _NoMatch()

# Context variables for tracing and test mode
_trace_hook: ContextVar[Any] = ContextVar("trace_hook", default=None)
_trace_config: ContextVar[Any] = ContextVar("trace_config", default=None)
_trace_depth: ContextVar[int] = ContextVar("trace_depth", default=0)
_test_mode: ContextVar[bool] = ContextVar("test_mode", default=False)


# =============================================================================
# Projections
# =============================================================================


def _identity(value: Any) -> Any:
    return value


class Field:
    """
    Marks an attribute name or accessor as a projection of the validated value.

    Only needed where a bare value would otherwise be taken as a constant,
    e.g. the right-hand side of a comparison:

        Equals("password", Field("confirmation"))
    """

    def __init__(self, key: str | Callable[[Any], Any]):
        self.key = key
        self._get: Callable[[Any], Any] = key if callable(key) else attrgetter(key)

    def __call__(self, value: Any) -> Any:
        return self._get(value)

    def __repr__(self) -> str:
        return f"Field({self.key!r})"


def as_projection(projection: Any) -> Callable[[Any], Any]:
    """Resolve an attribute name, callable or None (identity) into an accessor."""
    if projection is None:
        return _identity
    if isinstance(projection, str):
        return attrgetter(projection)
    if callable(projection):
        return projection
    raise TypeError(f"Cannot use {projection!r} as a projection")


def as_operand(operand: Any) -> Callable[[Any], Any]:
    """Callables and Fields project the value; anything else is a constant."""
    if callable(operand):
        return operand
    return lambda _: operand
