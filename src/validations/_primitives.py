"""Leaf validators: comparisons, collections, booleans, patterns and email."""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from typing import Any, Literal

from validations._core import Many, Not, Pair, Policy, Validator
from validations._errors import Failed
from validations._types import T, _identity, as_operand, as_projection

NOT_EMPTY_FAILED = "Expected to not be empty."
NOT_NONE_FAILED = "Expected not None."


def _sides(name: str, args: tuple[Any, ...]) -> tuple[Callable, Callable]:
    """
    Split comparison arguments into left and right accessors.

    One argument compares the value itself against it. Two arguments project
    the left side from the value; the right side is a constant unless it is
    callable.
    """
    if len(args) == 1:
        return _identity, as_operand(args[0])
    if len(args) == 2:
        return as_projection(args[0]), as_operand(args[1])
    raise TypeError(f"{name}() takes 1 or 2 arguments ({len(args)} given)")


# =============================================================================
# Comparisons
# =============================================================================


class _Comparison(Validator[T]):
    """Base for two-sided comparisons evaluated against the value."""

    op_name: str = ""

    def __init__(self, *args: Any):
        self.args = args
        self.lhs, self.rhs = _sides(type(self).__name__, args)

    def _compare(self, lhs: Any, rhs: Any) -> bool:
        raise NotImplementedError

    def _validate(self, value: T) -> None:
        lhs, rhs = self.lhs(value), self.rhs(value)
        if not self._compare(lhs, rhs):
            raise Failed(f"{lhs} is not {self.op_name} {rhs}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(a) for a in self.args)})"


class Equals(_Comparison[T]):
    """
    Passes when both sides are equal.

    Example:
        Equals(5).validate(5)
        Equals("name", "blob").validate(user)
        Equals("password", Field("confirmation")).validate(form)
    """

    op_name = "equal to"

    def _compare(self, lhs: Any, rhs: Any) -> bool:
        return lhs == rhs


class GreaterThan(_Comparison[T]):
    """Passes when the left side is strictly greater than the right side."""

    op_name = "greater than"

    def _compare(self, lhs: Any, rhs: Any) -> bool:
        return operator.gt(lhs, rhs)


class LessThan(_Comparison[T]):
    """Passes when the left side is strictly less than the right side."""

    op_name = "less than"

    def _compare(self, lhs: Any, rhs: Any) -> bool:
        return operator.lt(lhs, rhs)


class _OrEquals(Validator[T]):
    """A strict comparison or Equals, combined under ONE_OF."""

    strict: type[_Comparison] = _Comparison

    def __init__(self, *args: Any):
        self.args = args
        self.inner: Validator[T] = Pair(
            self.strict(*args), Equals(*args), Policy.ONE_OF
        )

    def _validate(self, value: T) -> None:
        self.inner.validate(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(a) for a in self.args)})"


class GreaterThanOrEquals(_OrEquals[T]):
    """
    GreaterThan or Equals.

    On failure this reports the one-of message, not a comparison message.
    """

    strict = GreaterThan


class LessThanOrEquals(_OrEquals[T]):
    """LessThan or Equals."""

    strict = LessThan


# =============================================================================
# Collections
# =============================================================================


class Contains(Validator[T]):
    """
    Passes when the collection contains the element.

    Example:
        Contains("@").validate("blob@example.com")
        Contains(lambda p: p.right, collection=lambda p: p.left).validate(pair)
    """

    def __init__(self, element: Any, collection: Any = None):
        self.element = element
        self._element = as_operand(element)
        self._collection = as_projection(collection)

    def _validate(self, value: T) -> None:
        element = self._element(value)
        if element not in self._collection(value):
            raise Failed(f"Does not contain {element}")

    def __repr__(self) -> str:
        return f"Contains({self.element!r})"


class Empty(Validator[T]):
    """Passes when the collection has no items."""

    def __init__(self, collection: Any = None):
        self._collection = as_projection(collection)

    def _validate(self, value: T) -> None:
        if len(self._collection(value)) != 0:
            raise Failed("Expected to be empty.")

    def __repr__(self) -> str:
        return "Empty()"


class NotEmpty(Not[T]):
    """Passes when the collection has at least one item; Not(Empty())."""

    composite = False

    def __init__(self, collection: Any = None):
        super().__init__(Empty(collection), message=NOT_EMPTY_FAILED)

    def __repr__(self) -> str:
        return "NotEmpty()"


# =============================================================================
# Booleans
# =============================================================================


class BoolValidator(Validator[T]):
    """
    Passes when a boolean (or a boolean projection of the value) matches.

    Example:
        BoolValidator(expecting=True).validate(True)
        BoolValidator(expecting=False, projection="is_banned").validate(user)
    """

    def __init__(self, expecting: bool, projection: Any = None):
        self.expecting = expecting
        self._projection = as_projection(projection)

    def get_message(self) -> str:
        return f"Failed bool evaluation, expected {self.expecting}"

    def _validate(self, value: T) -> None:
        if self._projection(value) != self.expecting:
            raise Failed(self.get_message())

    def __repr__(self) -> str:
        return f"BoolValidator({self.expecting})"


class IsTrue(BoolValidator[T]):
    """Passes when the value is True."""

    def __init__(self, projection: Any = None):
        super().__init__(True, projection)

    def get_message(self) -> str:
        return "Expected to evaluate to true."

    def __repr__(self) -> str:
        return "IsTrue()"


class IsFalse(BoolValidator[T]):
    """Passes when the value is False."""

    def __init__(self, projection: Any = None):
        super().__init__(False, projection)

    def get_message(self) -> str:
        return "Expected to evaluate to false."

    def __repr__(self) -> str:
        return "IsFalse()"


# =============================================================================
# Patterns
# =============================================================================


class Regex(Validator[str]):
    """
    Passes when the whole string matches the pattern.

    Partial matches fail: Regex(r"\\d+") rejects "12a".
    """

    def __init__(self, pattern: str | re.Pattern[str], flags: int = 0):
        self.pattern = re.compile(pattern, flags) if isinstance(pattern, str) else pattern

    def _validate(self, value: str) -> None:
        if self.pattern.fullmatch(value) is None:
            raise Failed("Did not match expected pattern.")

    def __repr__(self) -> str:
        return f"Regex({self.pattern.pattern!r})"


Pattern = Regex


# =============================================================================
# Constants
# =============================================================================


class Always(Validator[Any]):
    """Always passes without looking at the value."""

    def _validate(self, value: Any) -> None:
        return None

    def __repr__(self) -> str:
        return "Always()"


Success = Always


class Fail(Validator[Any]):
    """Always fails; useful for exercising combinator plumbing."""

    def _validate(self, value: Any) -> None:
        raise Failed("Fail validation error.")

    def __repr__(self) -> str:
        return "Fail()"


class Never(Validator[Any]):
    """Always fails."""

    def _validate(self, value: Any) -> None:
        raise Failed("Never validation error.")

    def __repr__(self) -> str:
        return "Never()"


# =============================================================================
# Presence
# =============================================================================


class NotNil(Validator[Any]):
    """Fails when the value is None."""

    def _validate(self, value: Any) -> None:
        if value is None:
            raise Failed(NOT_NONE_FAILED)

    def __repr__(self) -> str:
        return "NotNil()"


class IsNil(Validator[Any]):
    """Fails unless the value is None."""

    def _validate(self, value: Any) -> None:
        if value is not None:
            raise Failed("Expected None.")

    def __repr__(self) -> str:
        return "IsNil()"


# =============================================================================
# Email
# =============================================================================

EMAIL_PATTERNS: dict[str, str] = {
    "default": (
        r"(?:[a-zA-Z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-zA-Z0-9!#$%&'*+/=?^_`{|}~-]+)*"
        r'|"(?:[\x01-\x08\x0b\x0c\x0e-\x1f\x21\x23-\x5b\x5d-\x7f]'
        r'|\\[\x01-\x09\x0b\x0c\x0e-\x7f])*")'
        r"@(?:(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?\.)+"
        r"[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?"
        r"|\[(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
        r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?"
        r"|[a-zA-Z0-9-]*[a-zA-Z0-9]:(?:[\x01-\x08\x0b\x0c\x0e-\x1f\x21-\x5a\x53-\x7f]"
        r"|\\[\x01-\x09\x0b\x0c\x0e-\x7f])+)\])"
    ),
    # \w is Unicode-aware, so letters from any script are accepted.
    "international": (
        r"(?!\.)(?!.*\.{2})[\w.!#$%&'*+/=?^`{|}~-]+"
        r"@(?!\.)[\w.-]+(?:\.[^\W\d_]{2,63})+"
    ),
}

MAX_EMAIL_LENGTH = 320
MAX_LOCAL_PART_LENGTH = 64


def _local_part_length(value: str) -> int:
    return len(value.split("@")[0])


class Email(Validator[str]):
    """
    Validates an email address.

    Empty strings fail early. Otherwise the pattern, the total length (at
    most 320) and the local part length (at most 64) are all checked and
    every failure is reported.

    Example:
        Email().validate("blob@example.com")
        Email(style="international").validate("blöb@exämple.com")
    """

    def __init__(self, style: Literal["default", "international"] = "default"):
        if style not in EMAIL_PATTERNS:
            raise ValueError(f"Unknown email style: {style!r}")
        from validations._mapping import MapValue

        self.style = style
        self.inner: Validator[str] = Many(
            [
                NotEmpty(),
                Many(
                    [
                        Regex(EMAIL_PATTERNS[style]),
                        LessThanOrEquals(len, MAX_EMAIL_LENGTH),
                        MapValue(
                            _local_part_length,
                            LessThanOrEquals(MAX_LOCAL_PART_LENGTH),
                        ),
                    ],
                    Policy.ACCUMULATE,
                ),
            ]
        )

    def _validate(self, value: str) -> None:
        self.inner.validate(value)

    def __repr__(self) -> str:
        return f"Email({self.style!r})"
