"""Sum-type case validation and the test-mode switch for its warning."""

from __future__ import annotations

import inspect
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import Any

from validations._core import Many, Validator, coerce
from validations._errors import Failed
from validations._types import NO_MATCH, T, _test_mode

logger = logging.getLogger(__name__)


# =============================================================================
# Test Mode
# =============================================================================


@contextmanager
def use_test_mode(enabled: bool = True):
    """
    Context manager marking the current scope as test execution.

    In test mode the unhandled-case warning is not logged; the validation
    failure is still raised.

    Example:
        with use_test_mode():
            run_suite()
    """
    token = _test_mode.set(enabled)
    try:
        yield
    finally:
        _test_mode.reset(token)


def set_test_mode(enabled: bool) -> None:
    """Set test mode for the current context, for harness setup and teardown."""
    _test_mode.set(enabled)


def is_test_mode() -> bool:
    return _test_mode.get()


# =============================================================================
# Case
# =============================================================================


def _extractor(projection: Any) -> Callable[[Any], Any]:
    if isinstance(projection, type):
        variant = projection
        return lambda value: value if isinstance(value, variant) else NO_MATCH
    if callable(projection):
        return projection
    raise TypeError(f"Cannot use {projection!r} as a case projection")


def _is_no_match(payload: Any, none_is_match: bool) -> bool:
    return payload is NO_MATCH or (payload is None and not none_is_match)


def _caller_location(stacklevel: int) -> str:
    frame = inspect.currentframe()
    for _ in range(stacklevel + 1):
        if frame is None:
            break
        frame = frame.f_back
    if frame is None:
        return "<unknown>"
    return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"


def unhandled_case(location: str, value: Any) -> Failed:
    """
    Build the failure for a value whose variant a Case does not handle.

    Outside of test mode this also logs a warning, since a Case that never
    matches usually means a missing branch rather than bad input.
    """
    message = (
        f'A "Case" validation at "{location}" does not handle the current case.'
        f"\n\nCurrent case is: {value!r}"
    )
    if not is_test_mode():
        logger.warning(
            "Unhandled case at %s for value %r; add a Case for this variant "
            "or combine cases with one_of()",
            location,
            value,
        )
    return Failed(message)


class Case(Validator[T]):
    """
    Validate the payload of one variant of a sum type.

    `projection` returns the payload when the value is the expected variant
    and NO_MATCH (or None) otherwise. A class may be passed instead, in which
    case the value itself is the payload when it is an instance. Pass
    none_is_match=True when None is a legitimate payload; only NO_MATCH then
    means another variant.

    A non-matching value fails with a message naming where the Case was
    built, and logs a warning unless test mode is on. Combine the cases of
    one type with one_of() so every variant is handled.

    Example:
        @dataclass
        class Circle:
            radius: float

        @dataclass
        class Square:
            side: float

        shape_validator = one_of(
            Case(Circle, Validate("radius", GreaterThan(0))),
            Case(Square, Validate("side", GreaterThan(0))),
        )
    """

    composite = True

    def __init__(
        self,
        projection: type | Callable[[Any], Any],
        *validators: Any,
        location: str | None = None,
        stacklevel: int = 1,
        none_is_match: bool = False,
    ):
        if not validators:
            raise TypeError("Case() requires at least one validator")
        self.projection = projection
        self._extract = _extractor(projection)
        self.validator = coerce(validators[0]) if len(validators) == 1 else Many(validators)
        self.location = location or _caller_location(stacklevel)
        self.none_is_match = none_is_match

    def _validate(self, value: T) -> None:
        payload = self._extract(value)
        if _is_no_match(payload, self.none_is_match):
            raise unhandled_case(self.location, value)
        self.validator.validate(payload)

    def __repr__(self) -> str:
        name = getattr(self.projection, "__name__", "projection")
        return f"Case({name})"
