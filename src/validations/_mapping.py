"""Combinators that project the value, pick validators lazily or rewrite errors."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from validations._core import Many, Validator, coerce
from validations._errors import Failed, ManyFailed
from validations._primitives import NOT_NONE_FAILED
from validations._types import T, U, as_projection


def _run_downstream(downstream: Any, value: Any) -> None:
    """
    Run a validator, or a function of the value, against the value.

    The function may return a validator to run, or act as a predicate:
    None and True pass, False fails like a Validation would.
    """
    if isinstance(downstream, Validator):
        downstream.validate(value)
        return
    built = downstream(value)
    if built is None or isinstance(built, bool):
        if built is False:
            raise Failed(f"Check failed: {getattr(downstream, '__name__', 'validation')}")
        return
    coerce(built).validate(value)


def _raise_replacement(replacement: Any, error: Exception) -> None:
    if isinstance(replacement, BaseException):
        raise replacement from error
    result = replacement(error)
    if isinstance(result, BaseException):
        raise result from error
    if isinstance(result, str):
        raise Failed(result) from error
    raise TypeError(
        f"map_error replacement must return an exception or str, got {result!r}"
    )


# =============================================================================
# Value Mapping
# =============================================================================


class Map(Validator[T]):
    """
    Run the upstream validator, then a validator chosen from the value.

    Both run against the same value; nothing is transformed. `downstream`
    may be a validator, a function returning one, or a predicate.

    Example:
        NotNil().map(lambda _: GreaterThan(10))
        NotNil().map(lambda x: x > 10)
    """

    composite = True

    def __init__(
        self,
        upstream: Validator[T],
        downstream: Validator[T] | Callable[[T], Validator[T]],
    ):
        from validations._async import AsyncValidator

        if isinstance(downstream, AsyncValidator):
            raise TypeError(
                f"{downstream!r} is asynchronous; use .to_async().map() instead"
            )
        self.upstream = coerce(upstream)
        self.downstream = downstream

    def _validate(self, value: T) -> None:
        self.upstream.validate(value)
        _run_downstream(self.downstream, value)

    def __repr__(self) -> str:
        return f"Map({self.upstream!r})"


class MapValue(Validator[T]):
    """
    Transform the value, then validate only the transformed value.

    Example:
        MapValue(len, LessThanOrEquals(320)).validate("blob@example.com")
        MapValue(int, GreaterThan(0)).validate("42")
    """

    composite = True

    def __init__(self, transform: Callable[[T], U], downstream: Validator[U]):
        self.transform = transform
        self.downstream = coerce(downstream)

    def _validate(self, value: T) -> None:
        self.downstream.validate(self.transform(value))

    def __repr__(self) -> str:
        name = getattr(self.transform, "__name__", "transform")
        return f"MapValue({name}, {self.downstream!r})"


class Lazy(Validator[T]):
    """
    Build the validator from the value at evaluation time.

    `build` may also return a bool (or None) and act as a plain predicate.

    Example:
        Lazy(lambda n: Equals(10) if n > 5 else Equals(2))
    """

    composite = True

    def __init__(self, build: Callable[[T], Any]):
        self.build = build

    def _validate(self, value: T) -> None:
        _run_downstream(self.build, value)

    def __repr__(self) -> str:
        return "Lazy()"


class Validate(Validator[T]):
    """
    Validate a projection of the value.

    `projection` is an attribute name or a callable. Several validators run
    in order and stop at the first failure. With no validator the projected
    value must be Validatable and validates itself.

    Example:
        Validate("name", NotEmpty())
        Validate(lambda u: u.age, GreaterThanOrEquals(18), LessThan(130))
        Validate("address")  # Address is Validatable
    """

    composite = True

    def __init__(self, projection: str | Callable[[T], Any], *validators: Any):
        self.projection = projection
        self._get = as_projection(projection)
        if not validators:
            self.validator: Validator[Any] | None = None
        elif len(validators) == 1:
            self.validator = coerce(validators[0])
        else:
            self.validator = Many(validators)

    def _validate(self, value: T) -> None:
        child = self._get(value)
        if self.validator is not None:
            self.validator.validate(child)
            return

        from validations._validatable import Validatable

        if not isinstance(child, Validatable):
            raise TypeError(
                f"Validate({self.projection!r}) needs a validator or a Validatable "
                f"value, got {type(child).__name__}"
            )
        child.validate()

    def __repr__(self) -> str:
        return f"Validate({self.projection!r})"


# =============================================================================
# Optional Values
# =============================================================================


class OptionalValue(Validator[Any]):
    """
    Pass when the value is None, otherwise delegate.

    Example:
        GreaterThan(10).optional().validate(None)  # passes
    """

    composite = True

    def __init__(self, downstream: Validator[Any]):
        self.downstream = coerce(downstream)

    def _validate(self, value: Any) -> None:
        if value is None:
            return
        self.downstream.validate(value)

    def __repr__(self) -> str:
        return f"OptionalValue({self.downstream!r})"


class MapOptional(Validator[Any]):
    """
    Fail when the value is None, otherwise delegate.

    The opposite policy of OptionalValue: absence is a failure and the
    downstream validator is never reached.
    """

    composite = True

    def __init__(self, downstream: Validator[Any]):
        self.downstream = coerce(downstream)

    def _validate(self, value: Any) -> None:
        if value is None:
            raise Failed(NOT_NONE_FAILED)
        self.downstream.validate(value)

    def __repr__(self) -> str:
        return f"MapOptional({self.downstream!r})"


# =============================================================================
# Error Mapping
# =============================================================================


class MapError(Validator[T]):
    """
    Replace any error raised by the upstream validator.

    `replacement` is either an exception to raise, or a function of the
    caught error. The function may raise its own error (which propagates
    as-is), return an exception to raise, or return a message string.

    Example:
        Equals(1).map_error(Failed("Expected one"))
        Equals(1).map_error(lambda e: Failed(f"Wrapped: {e}"))
    """

    composite = True

    def __init__(
        self,
        upstream: Validator[T],
        replacement: BaseException | Callable[[BaseException], Any],
    ):
        self.upstream = coerce(upstream)
        self.replacement = replacement

    def _validate(self, value: T) -> None:
        try:
            self.upstream.validate(value)
        except Exception as e:
            _raise_replacement(self.replacement, e)

    def __repr__(self) -> str:
        return f"MapError({self.upstream!r})"


class ErrorLabel(Validator[T]):
    """
    Nest any error raised by the upstream validator under a label.

    The error becomes ManyFailed([error], label=label, inline=inline).
    `inline` only changes how the label renders.

    Example:
        Validate("name", NotEmpty()).error_label("Name")
        # Name:
        #   Expected to not be empty.

        Validate("name", NotEmpty()).error_label("Name", inline=True)
        # Name: Expected to not be empty.
    """

    composite = True

    def __init__(self, upstream: Validator[T], label: Any, inline: bool = False):
        self.upstream = coerce(upstream)
        self.label = label
        self.inline = inline

    def _validate(self, value: T) -> None:
        try:
            self.upstream.validate(value)
        except Exception as e:
            raise ManyFailed([e], label=self.label, inline=self.inline) from e

    def __repr__(self) -> str:
        return f"ErrorLabel({self.label!r})"
