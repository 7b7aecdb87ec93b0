"""Core validator base class, closure-backed validators and sequence policies."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, ClassVar, Generic, overload

from validations._errors import Failed, ManyFailed, ValidationError
from validations._tracing import TraceConfig, _traced_validate
from validations._types import T, _trace_config, _trace_hook
from validations._validation import ValidationResult

ONE_OF_FAILED = "Did not pass any of the validations."
NOT_FAILED = "Not validator did not succeed."


# =============================================================================
# Validator Base
# =============================================================================


class Validator(ABC, Generic[T]):
    """
    Base class for all synchronous validators.

    A validator checks a value and either returns (success) or raises a
    ValidationError describing the failure. Validators are immutable; every
    composition returns a new validator.

    Validators can be composed using operators:
        &  = sequence, stops at the first failure
        |  = one of, stops at the first success
        ~  = not (inverts success/failure)

    Tracing:
        Use `with use_tracing(hook):` to trace all validate() calls within scope.
    """

    composite: ClassVar[bool] = False

    @abstractmethod
    def _validate(self, value: T) -> None:
        """Internal validation - subclasses implement this."""
        ...

    def validate(self, value: T) -> None:
        """
        Validate the value, raising a ValidationError on failure.

        If tracing is enabled via use_tracing(), this will automatically
        trace the validation.
        """
        hook = _trace_hook.get()
        if hook is not None:
            config = _trace_config.get() or TraceConfig()
            _traced_validate(self, value, hook, config, self._validate)
            return
        self._validate(value)

    def check(self, value: T) -> ValidationResult:
        """Validate without raising; foreign exceptions still propagate."""
        try:
            self.validate(value)
        except ValidationError as e:
            return ValidationResult(ok=False, error=e, value=value)
        return ValidationResult(ok=True, error=None, value=value)

    def is_valid(self, value: T) -> bool:
        return self.check(value).ok

    def __call__(self, value: T) -> None:
        """Shorthand for validate()."""
        self.validate(value)

    def __and__(self, other: Validator[T]) -> Validator[T]:
        """a & b = validate b only if a passes."""
        if _is_async(other):
            return NotImplemented
        return _chain(self, coerce(other), Policy.EARLY_EXIT)

    def __or__(self, other: Validator[T]) -> Validator[T]:
        """a | b = validate b only if a fails."""
        if _is_async(other):
            return NotImplemented
        return _chain(self, coerce(other), Policy.ONE_OF)

    def __invert__(self) -> Validator[T]:
        """~a = pass only when a fails."""
        return Not(self)

    def or_(self, other: Validator[T] | Callable[[T], Any]) -> Validator[T]:
        """Pass if either this validator or the other one passes."""
        return Pair(self, coerce(other), Policy.ONE_OF)

    def map(self, downstream: Validator[T] | Callable[[T], Validator[T]]) -> Validator[T]:
        """
        Validate with this validator, then with a validator chosen from the value.

        Example:
            NotNil().map(lambda _: GreaterThan(10))
            NotNil().map(lambda x: x > 10)
        """
        from validations._mapping import Map

        return Map(self, downstream)

    def map_error(
        self, replacement: BaseException | Callable[[BaseException], Any]
    ) -> Validator[T]:
        """Replace any error raised by this validator."""
        from validations._mapping import MapError

        return MapError(self, replacement)

    def error_label(self, label: Any, inline: bool = False) -> Validator[T]:
        """Nest any error raised by this validator under a label."""
        from validations._mapping import ErrorLabel

        return ErrorLabel(self, label, inline)

    def optional(self) -> Validator[T | None]:
        """Pass when the value is None, validate it otherwise."""
        from validations._mapping import OptionalValue

        return OptionalValue(self)

    def erase(self) -> AnyValidator[T]:
        """Hide the concrete composition behind an AnyValidator."""
        return AnyValidator(self)

    def to_async(self) -> Any:
        """Lift this validator into an AsyncValidator."""
        from validations._async import Lifted

        return Lifted(self)


# =============================================================================
# Closure-backed Validators
# =============================================================================


class Validation(Validator[T]):
    """
    A validator backed by a function.

    The function fails by raising. Returning False is also a failure and
    produces a Failed error using `message` (or "Check failed: <name>").

    Example:
        def is_blob(value):
            if value != "blob":
                raise Failed(f"{value} is not blob!")

        Validation(is_blob).validate("blob")
        Validation(lambda x: x > 0, message="must be positive").validate(1)
    """

    def __init__(
        self,
        fn: Callable[[T], Any],
        name: str | None = None,
        message: str | Callable[[T], str] | None = None,
    ):
        if inspect.iscoroutinefunction(fn):
            raise TypeError(
                "Validation() cannot wrap a coroutine function; use AsyncValidation()"
            )
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "validation")
        self._message = message

    def get_message(self, value: T) -> str:
        """Get the failure message for this validation."""
        if self._message is None:
            return f"Check failed: {self.name}"
        if callable(self._message):
            return self._message(value)
        try:
            return self._message.format(value=value)
        except (KeyError, AttributeError, IndexError):
            return self._message

    def _validate(self, value: T) -> None:
        if self.fn(value) is False:
            raise Failed(self.get_message(value))

    def __repr__(self) -> str:
        return f"Validation({self.name})"


@overload
def validator(
    fn: Callable[[T], Any], *, message: str | Callable[[T], str] | None = None
) -> Validation[T]: ...


@overload
def validator(
    fn: None = None, *, message: str | Callable[[T], str] | None = None
) -> Callable[[Callable[[T], Any]], Validation[T]]: ...


def validator(
    fn: Callable[[T], Any] | None = None,
    *,
    message: str | Callable[[T], str] | None = None,
) -> Validation[T] | Callable[[Callable[[T], Any]], Validation[T]]:
    """
    Decorator to create a validator from a function.

    Example:
        @validator(message="{value} must be even")
        def is_even(x):
            return x % 2 == 0

        @validator
        def is_blob(name):
            if name != "blob":
                raise Failed(f"{name} is not blob")
    """

    def decorator(f: Callable[[T], Any]) -> Validation[T]:
        return Validation(f, f.__name__, message)

    if fn is not None:
        return decorator(fn)
    return decorator


class AnyValidator(Validator[T]):
    """
    A type-erased validator exposing only validate().

    Erasing an AnyValidator again returns the same instance.

    Example:
        erased = Many([NotEmpty(), Contains("@")]).erase()
        erased.erase() is erased  # True
    """

    def __init__(self, validator: Validator[T] | Callable[[T], Any]):
        if isinstance(validator, AnyValidator):
            self._fn: Callable[[T], Any] = validator._fn
        elif isinstance(validator, Validator):
            self._fn = validator.validate
        else:
            self._fn = coerce(validator).validate

    def _validate(self, value: T) -> None:
        self._fn(value)

    def erase(self) -> AnyValidator[T]:
        return self

    def __repr__(self) -> str:
        return "AnyValidator()"


def erase(validator: Validator[T]) -> AnyValidator[T]:
    """Type-erase a validator; idempotent for already-erased validators."""
    return validator.erase()


def _is_async(value: Any) -> bool:
    from validations._async import AsyncValidator

    return isinstance(value, AsyncValidator)


def coerce(value: Any) -> Validator[Any]:
    """
    Turn a validator-like value into a Validator.

    Validators are returned unchanged, bools become BoolValidator and plain
    callables become Validation. Async validators are rejected since they
    cannot run in a synchronous context; only `sync & async` and
    `sync | async` lift, into an async pair.
    """
    if isinstance(value, Validator):
        return value
    if _is_async(value):
        raise TypeError(
            f"{value!r} is asynchronous and cannot be used in a synchronous "
            "validator; lift the synchronous side with .to_async() instead"
        )
    if isinstance(value, bool):
        from validations._primitives import BoolValidator

        return BoolValidator(expecting=value)
    if callable(value):
        return Validation(value)
    raise TypeError(f"Cannot use {value!r} as a validator")


# =============================================================================
# Sequence Policies
# =============================================================================


class Policy(Enum):
    """How a sequence of validators is combined."""

    EARLY_EXIT = "early_exit"
    ACCUMULATE = "accumulate"
    ONE_OF = "one_of"


def _run_policy(policy: Policy, validators: Iterable[Validator[T]], value: T) -> None:
    if policy is Policy.EARLY_EXIT:
        for v in validators:
            v.validate(value)
        return

    if policy is Policy.ACCUMULATE:
        # Any Exception is collected so one child cannot abort the sweep.
        errors: list[BaseException] = []
        for v in validators:
            try:
                v.validate(value)
            except Exception as e:
                errors.append(e)
        if errors:
            raise ManyFailed(errors)
        return

    for v in validators:
        try:
            v.validate(value)
        except ValidationError:
            continue
        return
    raise Failed(ONE_OF_FAILED)


class Pair(Validator[T]):
    """Two validators combined under a policy."""

    composite = True

    def __init__(
        self,
        first: Validator[T],
        second: Validator[T],
        policy: Policy = Policy.EARLY_EXIT,
    ):
        self.first = coerce(first)
        self.second = coerce(second)
        self.policy = policy

    @property
    def validators(self) -> tuple[Validator[T], ...]:
        return (self.first, self.second)

    def _validate(self, value: T) -> None:
        _run_policy(self.policy, self.validators, value)

    def __repr__(self) -> str:
        return f"Pair({self.policy.name})"


class Many(Validator[T]):
    """
    An ordered sequence of validators combined under a policy.

    Insertion order is evaluation order. For ONE_OF it is preference order
    and an empty sequence always fails.

    Example:
        Many([GreaterThan(0), LessThan(20)]).validate(1)
        Many([GreaterThan(0), LessThan(20)], Policy.ONE_OF).validate(21)
    """

    composite = True

    def __init__(
        self,
        validators: Iterable[Validator[T]],
        policy: Policy = Policy.EARLY_EXIT,
    ):
        self.validators: tuple[Validator[T], ...] = tuple(
            coerce(v) for v in validators
        )
        self.policy = policy

    def _validate(self, value: T) -> None:
        _run_policy(self.policy, self.validators, value)

    def __repr__(self) -> str:
        return f"Many({self.policy.name}, {len(self.validators)})"


def _chain(left: Validator[T], right: Validator[T], policy: Policy) -> Validator[T]:
    """Combine two validators, flattening a left-hand chain of the same policy."""
    if isinstance(left, (Pair, Many)) and left.policy is policy:
        return Many([*left.validators, right], policy)
    return Pair(left, right, policy)


class Conditional(Validator[T]):
    """
    Exactly one of two branches, chosen when the validator is built.

    Example:
        Conditional(first=Equals("Blob")) if only_blobs else Conditional(second=Always())
    """

    composite = True

    def __init__(
        self,
        first: Validator[T] | None = None,
        second: Validator[T] | None = None,
    ):
        if (first is None) == (second is None):
            raise ValueError("Conditional requires exactly one of first or second")
        self.first = None if first is None else coerce(first)
        self.second = None if second is None else coerce(second)

    @property
    def active(self) -> Validator[T]:
        return self.first if self.first is not None else self.second  # type: ignore[return-value]

    def _validate(self, value: T) -> None:
        self.active.validate(value)

    def __repr__(self) -> str:
        branch = "first" if self.first is not None else "second"
        return f"Conditional({branch})"


class OptionalBranch(Validator[T]):
    """A validator that may be absent; an absent validator always passes."""

    composite = True

    def __init__(self, validator: Validator[T] | None = None):
        self.validator = None if validator is None else coerce(validator)

    def _validate(self, value: T) -> None:
        if self.validator is not None:
            self.validator.validate(value)

    def __repr__(self) -> str:
        return f"OptionalBranch({'present' if self.validator else 'absent'})"


class Not(Validator[T]):
    """
    Passes only when the inner validator fails.

    The inner error is discarded; failure always reports the same message.
    """

    composite = True

    def __init__(self, inner: Validator[T], message: str = NOT_FAILED):
        self.inner = coerce(inner)
        self.message = message

    def _validate(self, value: T) -> None:
        try:
            self.inner.validate(value)
        except ValidationError:
            return
        raise Failed(self.message)

    def __repr__(self) -> str:
        return f"Not({self.inner!r})"


# =============================================================================
# Builder Helpers
# =============================================================================


def sequence(*validators: Validator[T]) -> Many[T]:
    """Validate in order, stopping at the first failure."""
    return Many(validators, Policy.EARLY_EXIT)


def accumulating(*validators: Validator[T]) -> Many[T]:
    """
    Validate with every validator and collect all failures.

    Example:
        user_validator = accumulating(
            Validate("name", NotEmpty()),
            Validate("email", accumulating(NotEmpty(), Contains("@"))),
        )
    """
    return Many(validators, Policy.ACCUMULATE)


def one_of(*validators: Validator[T]) -> Many[T]:
    """Pass as soon as one validator passes; fail if none do."""
    return Many(validators, Policy.ONE_OF)


def optional_branch(condition: bool, validator: Validator[T]) -> OptionalBranch[T]:
    """Include the validator only when the condition holds."""
    return OptionalBranch(validator if condition else None)


def either(
    condition: bool, first: Validator[T], second: Validator[T]
) -> Conditional[T]:
    """Use `first` when the condition holds, `second` otherwise."""
    if condition:
        return Conditional(first=first)
    return Conditional(second=second)
