"""
Async validators.

An AsyncValidator has the same surface as a Validator, but validate() is a
coroutine so checks may await external resources. Children still run one
at a time, in order.

Synchronous validators can be lifted with .to_async() and are lifted
automatically when passed to async combinators. The reverse is not
possible: async validators are rejected by synchronous combinators. The
operators are the exception, so `sync & async` and `sync | async` build
an async pair.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, ClassVar, Generic, overload

from validations._case import _caller_location, _extractor, _is_no_match, unhandled_case
from validations._core import NOT_FAILED, ONE_OF_FAILED, Policy, Validator, coerce
from validations._errors import Failed, ManyFailed, ValidationError
from validations._mapping import _raise_replacement
from validations._primitives import NOT_NONE_FAILED
from validations._tracing import TraceConfig, _async_traced_validate
from validations._types import T, U, _trace_config, _trace_hook, as_projection
from validations._validation import ValidationResult

# =============================================================================
# Async Validator Base
# =============================================================================


class AsyncValidator(ABC, Generic[T]):
    """
    Base class for async validators.

    Same operators and fluent methods as Validator, with async
    validate()/check()/is_valid().

    Example:
        async def username_available(name):
            if await db.user_exists(name):
                raise Failed(f"{name} is taken")

        validator = NotEmpty().to_async() & AsyncValidation(username_available)
        await validator.validate("blob")
    """

    composite: ClassVar[bool] = False

    @abstractmethod
    async def _validate(self, value: T) -> None:
        """Internal async validation - subclasses implement this."""
        ...

    async def validate(self, value: T) -> None:
        """Validate the value, raising a ValidationError on failure."""
        hook = _trace_hook.get()
        if hook is not None:
            config = _trace_config.get() or TraceConfig()
            await _async_traced_validate(self, value, hook, config, self._validate)
            return
        await self._validate(value)

    async def check(self, value: T) -> ValidationResult:
        try:
            await self.validate(value)
        except ValidationError as e:
            return ValidationResult(ok=False, error=e, value=value)
        return ValidationResult(ok=True, error=None, value=value)

    async def is_valid(self, value: T) -> bool:
        return (await self.check(value)).ok

    async def __call__(self, value: T) -> None:
        await self.validate(value)

    def __and__(self, other: Any) -> AsyncValidator[T]:
        return _async_chain(self, _as_async(other), Policy.EARLY_EXIT)

    def __rand__(self, other: Any) -> AsyncValidator[T]:
        return _async_chain(_as_async(other), self, Policy.EARLY_EXIT)

    def __or__(self, other: Any) -> AsyncValidator[T]:
        return _async_chain(self, _as_async(other), Policy.ONE_OF)

    def __ror__(self, other: Any) -> AsyncValidator[T]:
        return _async_chain(_as_async(other), self, Policy.ONE_OF)

    def __invert__(self) -> AsyncValidator[T]:
        return AsyncNot(self)

    def or_(self, other: Any) -> AsyncValidator[T]:
        return AsyncPair(self, other, Policy.ONE_OF)

    def map(self, downstream: Any) -> AsyncValidator[T]:
        return AsyncMap(self, downstream)

    def map_error(
        self, replacement: BaseException | Callable[[BaseException], Any]
    ) -> AsyncValidator[T]:
        return AsyncMapError(self, replacement)

    def error_label(self, label: Any, inline: bool = False) -> AsyncValidator[T]:
        return AsyncErrorLabel(self, label, inline)

    def optional(self) -> AsyncValidator[T | None]:
        return AsyncOptionalValue(self)

    def erase(self) -> AnyAsyncValidator[T]:
        return AnyAsyncValidator(self)


def _as_async(value: Any) -> AsyncValidator[Any]:
    """Coerce a validator-like value into an AsyncValidator, lifting sync ones."""
    if isinstance(value, AsyncValidator):
        return value
    if isinstance(value, Validator):
        return Lifted(value)
    if isinstance(value, bool):
        return Lifted(coerce(value))
    if callable(value):
        return AsyncValidation(value)
    raise TypeError(f"Cannot use {value!r} as a validator")


class Lifted(AsyncValidator[T]):
    """
    A synchronous validator running in an async context.

    Errors are exactly those of the wrapped validator.
    """

    composite = True

    def __init__(self, validator: Validator[T]):
        self.validator = validator

    async def _validate(self, value: T) -> None:
        self.validator.validate(value)

    def __repr__(self) -> str:
        return f"Lifted({self.validator!r})"


def lift(validator: Validator[T]) -> AsyncValidator[T]:
    """Lift a synchronous validator into an AsyncValidator."""
    return validator.to_async()


# =============================================================================
# Closure-backed Async Validators
# =============================================================================


class AsyncValidation(AsyncValidator[T]):
    """
    An async validator backed by a function.

    The function may be sync or async. It fails by raising; returning False
    fails with `message` (or "Check failed: <name>").
    """

    def __init__(
        self,
        fn: Callable[[T], Any],
        name: str | None = None,
        message: str | Callable[[T], str] | None = None,
    ):
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "validation")
        self._message = message

    def get_message(self, value: T) -> str:
        if self._message is None:
            return f"Check failed: {self.name}"
        if callable(self._message):
            return self._message(value)
        try:
            return self._message.format(value=value)
        except (KeyError, AttributeError, IndexError):
            return self._message

    async def _validate(self, value: T) -> None:
        result = self.fn(value)
        if inspect.isawaitable(result):
            result = await result
        if result is False:
            raise Failed(self.get_message(value))

    def __repr__(self) -> str:
        return f"AsyncValidation({self.name})"


@overload
def async_validator(
    fn: Callable[[T], Any], *, message: str | Callable[[T], str] | None = None
) -> AsyncValidation[T]: ...


@overload
def async_validator(
    fn: None = None, *, message: str | Callable[[T], str] | None = None
) -> Callable[[Callable[[T], Any]], AsyncValidation[T]]: ...


def async_validator(
    fn: Callable[[T], Any] | None = None,
    *,
    message: str | Callable[[T], str] | None = None,
) -> AsyncValidation[T] | Callable[[Callable[[T], Any]], AsyncValidation[T]]:
    """
    Decorator to create an async validator from a function.

    Example:
        @async_validator(message="{value} is already registered")
        async def email_is_free(email):
            return not await db.email_exists(email)
    """

    def decorator(f: Callable[[T], Any]) -> AsyncValidation[T]:
        return AsyncValidation(f, f.__name__, message)

    if fn is not None:
        return decorator(fn)
    return decorator


class AnyAsyncValidator(AsyncValidator[T]):
    """Type-erased async validator; erasing it again returns the same instance."""

    def __init__(self, validator: Any):
        if isinstance(validator, AnyAsyncValidator):
            self._fn: Callable[[T], Awaitable[None]] = validator._fn
        else:
            self._fn = _as_async(validator).validate

    async def _validate(self, value: T) -> None:
        await self._fn(value)

    def erase(self) -> AnyAsyncValidator[T]:
        return self

    def __repr__(self) -> str:
        return "AnyAsyncValidator()"


# =============================================================================
# Async Sequence Policies
# =============================================================================


async def _async_run_policy(
    policy: Policy, validators: Iterable[AsyncValidator[T]], value: T
) -> None:
    if policy is Policy.EARLY_EXIT:
        for v in validators:
            await v.validate(value)
        return

    if policy is Policy.ACCUMULATE:
        errors: list[BaseException] = []
        for v in validators:
            try:
                await v.validate(value)
            except Exception as e:
                errors.append(e)
        if errors:
            raise ManyFailed(errors)
        return

    for v in validators:
        try:
            await v.validate(value)
        except ValidationError:
            continue
        return
    raise Failed(ONE_OF_FAILED)


class AsyncPair(AsyncValidator[T]):
    composite = True

    def __init__(self, first: Any, second: Any, policy: Policy = Policy.EARLY_EXIT):
        self.first = _as_async(first)
        self.second = _as_async(second)
        self.policy = policy

    @property
    def validators(self) -> tuple[AsyncValidator[T], ...]:
        return (self.first, self.second)

    async def _validate(self, value: T) -> None:
        await _async_run_policy(self.policy, self.validators, value)

    def __repr__(self) -> str:
        return f"Pair({self.policy.name})"


class AsyncMany(AsyncValidator[T]):
    """
    An ordered sequence of async validators combined under a policy.

    Children are awaited one after another, never concurrently.
    """

    composite = True

    def __init__(self, validators: Iterable[Any], policy: Policy = Policy.EARLY_EXIT):
        self.validators: tuple[AsyncValidator[T], ...] = tuple(
            _as_async(v) for v in validators
        )
        self.policy = policy

    async def _validate(self, value: T) -> None:
        await _async_run_policy(self.policy, self.validators, value)

    def __repr__(self) -> str:
        return f"Many({self.policy.name}, {len(self.validators)})"


def _async_chain(
    left: AsyncValidator[T], right: AsyncValidator[T], policy: Policy
) -> AsyncValidator[T]:
    if isinstance(left, (AsyncPair, AsyncMany)) and left.policy is policy:
        return AsyncMany([*left.validators, right], policy)
    return AsyncPair(left, right, policy)


class AsyncConditional(AsyncValidator[T]):
    composite = True

    def __init__(self, first: Any = None, second: Any = None):
        if (first is None) == (second is None):
            raise ValueError("Conditional requires exactly one of first or second")
        self.first = None if first is None else _as_async(first)
        self.second = None if second is None else _as_async(second)

    @property
    def active(self) -> AsyncValidator[T]:
        return self.first if self.first is not None else self.second  # type: ignore[return-value]

    async def _validate(self, value: T) -> None:
        await self.active.validate(value)

    def __repr__(self) -> str:
        branch = "first" if self.first is not None else "second"
        return f"Conditional({branch})"


class AsyncOptionalBranch(AsyncValidator[T]):
    composite = True

    def __init__(self, validator: Any = None):
        self.validator = None if validator is None else _as_async(validator)

    async def _validate(self, value: T) -> None:
        if self.validator is not None:
            await self.validator.validate(value)

    def __repr__(self) -> str:
        return f"OptionalBranch({'present' if self.validator else 'absent'})"


class AsyncNot(AsyncValidator[T]):
    composite = True

    def __init__(self, inner: Any, message: str = NOT_FAILED):
        self.inner = _as_async(inner)
        self.message = message

    async def _validate(self, value: T) -> None:
        try:
            await self.inner.validate(value)
        except ValidationError:
            return
        raise Failed(self.message)

    def __repr__(self) -> str:
        return f"Not({self.inner!r})"


# =============================================================================
# Async Mapping
# =============================================================================


async def _run_downstream_async(downstream: Any, value: Any) -> None:
    """Async counterpart of the sync downstream runner; builders may be async."""
    if isinstance(downstream, (AsyncValidator, Validator)):
        await _as_async(downstream).validate(value)
        return
    built = downstream(value)
    if inspect.isawaitable(built):
        built = await built
    if built is None or isinstance(built, bool):
        if built is False:
            raise Failed(f"Check failed: {getattr(downstream, '__name__', 'validation')}")
        return
    await _as_async(built).validate(value)


class AsyncMap(AsyncValidator[T]):
    """Run upstream, then a (possibly async-built) validator chosen from the value."""

    composite = True

    def __init__(self, upstream: Any, downstream: Any):
        self.upstream = _as_async(upstream)
        self.downstream = downstream

    async def _validate(self, value: T) -> None:
        await self.upstream.validate(value)
        await _run_downstream_async(self.downstream, value)

    def __repr__(self) -> str:
        return f"Map({self.upstream!r})"


class AsyncMapValue(AsyncValidator[T]):
    """Transform the value (sync or async transform), then validate the result."""

    composite = True

    def __init__(self, transform: Callable[[T], U | Awaitable[U]], downstream: Any):
        self.transform = transform
        self.downstream = _as_async(downstream)

    async def _validate(self, value: T) -> None:
        mapped = self.transform(value)
        if inspect.isawaitable(mapped):
            mapped = await mapped
        await self.downstream.validate(mapped)

    def __repr__(self) -> str:
        name = getattr(self.transform, "__name__", "transform")
        return f"MapValue({name}, {self.downstream!r})"


class AsyncLazy(AsyncValidator[T]):
    composite = True

    def __init__(self, build: Callable[[T], Any]):
        self.build = build

    async def _validate(self, value: T) -> None:
        await _run_downstream_async(self.build, value)

    def __repr__(self) -> str:
        return "Lazy()"


class AsyncValidate(AsyncValidator[T]):
    """
    Validate a projection of the value asynchronously.

    With no validator the projected value must be AsyncValidatable or
    Validatable.
    """

    composite = True

    def __init__(self, projection: str | Callable[[T], Any], *validators: Any):
        self.projection = projection
        self._get = as_projection(projection)
        if not validators:
            self.validator: AsyncValidator[Any] | None = None
        elif len(validators) == 1:
            self.validator = _as_async(validators[0])
        else:
            self.validator = AsyncMany(validators)

    async def _validate(self, value: T) -> None:
        child = self._get(value)
        if self.validator is not None:
            await self.validator.validate(child)
            return

        from validations._validatable import AsyncValidatable, Validatable

        if isinstance(child, AsyncValidatable):
            await child.validate()
        elif isinstance(child, Validatable):
            child.validate()
        else:
            raise TypeError(
                f"Validate({self.projection!r}) needs a validator or a Validatable "
                f"value, got {type(child).__name__}"
            )

    def __repr__(self) -> str:
        return f"Validate({self.projection!r})"


class AsyncOptionalValue(AsyncValidator[Any]):
    composite = True

    def __init__(self, downstream: Any):
        self.downstream = _as_async(downstream)

    async def _validate(self, value: Any) -> None:
        if value is None:
            return
        await self.downstream.validate(value)

    def __repr__(self) -> str:
        return f"OptionalValue({self.downstream!r})"


class AsyncMapOptional(AsyncValidator[Any]):
    composite = True

    def __init__(self, downstream: Any):
        self.downstream = _as_async(downstream)

    async def _validate(self, value: Any) -> None:
        if value is None:
            raise Failed(NOT_NONE_FAILED)
        await self.downstream.validate(value)

    def __repr__(self) -> str:
        return f"MapOptional({self.downstream!r})"


class AsyncMapError(AsyncValidator[T]):
    composite = True

    def __init__(
        self,
        upstream: Any,
        replacement: BaseException | Callable[[BaseException], Any],
    ):
        self.upstream = _as_async(upstream)
        self.replacement = replacement

    async def _validate(self, value: T) -> None:
        try:
            await self.upstream.validate(value)
        except Exception as e:
            _raise_replacement(self.replacement, e)

    def __repr__(self) -> str:
        return f"MapError({self.upstream!r})"


class AsyncErrorLabel(AsyncValidator[T]):
    composite = True

    def __init__(self, upstream: Any, label: Any, inline: bool = False):
        self.upstream = _as_async(upstream)
        self.label = label
        self.inline = inline

    async def _validate(self, value: T) -> None:
        try:
            await self.upstream.validate(value)
        except Exception as e:
            raise ManyFailed([e], label=self.label, inline=self.inline) from e

    def __repr__(self) -> str:
        return f"ErrorLabel({self.label!r})"


class AsyncCase(AsyncValidator[T]):
    """Async counterpart of Case; the payload validator may be sync or async."""

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
            raise TypeError("AsyncCase() requires at least one validator")
        self.projection = projection
        self._extract = _extractor(projection)
        self.validator = (
            _as_async(validators[0]) if len(validators) == 1 else AsyncMany(validators)
        )
        self.location = location or _caller_location(stacklevel)
        self.none_is_match = none_is_match

    async def _validate(self, value: T) -> None:
        payload = self._extract(value)
        if _is_no_match(payload, self.none_is_match):
            raise unhandled_case(self.location, value)
        await self.validator.validate(payload)

    def __repr__(self) -> str:
        name = getattr(self.projection, "__name__", "projection")
        return f"Case({name})"


# =============================================================================
# Async Builder Helpers
# =============================================================================


def async_sequence(*validators: Any) -> AsyncMany[Any]:
    return AsyncMany(validators, Policy.EARLY_EXIT)


def async_accumulating(*validators: Any) -> AsyncMany[Any]:
    return AsyncMany(validators, Policy.ACCUMULATE)


def async_one_of(*validators: Any) -> AsyncMany[Any]:
    return AsyncMany(validators, Policy.ONE_OF)


def async_optional_branch(condition: bool, validator: Any) -> AsyncOptionalBranch[Any]:
    return AsyncOptionalBranch(validator if condition else None)


def async_either(condition: bool, first: Any, second: Any) -> AsyncConditional[Any]:
    if condition:
        return AsyncConditional(first=first)
    return AsyncConditional(second=second)
