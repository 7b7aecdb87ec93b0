"""Tracing hooks for validator evaluation."""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Awaitable, Callable
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from validations._errors import ValidationError
from validations._types import _trace_config, _trace_depth, _trace_hook

# Optional OpenTelemetry imports - only needed if using OpenTelemetryHook
try:
    from opentelemetry.trace import Link as _Link
    from opentelemetry.trace import Status as _Status
    from opentelemetry.trace import StatusCode as _StatusCode
    from opentelemetry.trace import set_span_in_context as _set_span_in_context

    _HAS_OPENTELEMETRY = True
except ImportError:
    _HAS_OPENTELEMETRY = False
    _Link = None
    _Status = None
    _StatusCode = None
    _set_span_in_context = None


# =============================================================================
# Hook Protocol & Configuration
# =============================================================================


@runtime_checkable
class TraceHook(Protocol):
    """
    Protocol for trace hooks.

    A hook sees every traced validator enter and leave. A validation failure
    arrives as on_exit(ok=False); any other exception arrives as on_error.

    Example:
        class FailureCollector:
            def __init__(self):
                self.failed = []

            def on_enter(self, name, value, depth):
                return value

            def on_exit(self, span, name, ok, duration_ms, depth):
                if not ok:
                    self.failed.append((name, span))

            def on_error(self, span, name, error, duration_ms, depth):
                self.failed.append((name, error))
    """

    def on_enter(self, name: str, value: Any, depth: int) -> Any:
        """
        Called before a validator runs.

        Args:
            name: Name/description of the validator
            value: Value being validated
            depth: Nesting depth (0 = root)

        Returns:
            Span token to pass to on_exit (can be None)
        """
        ...

    def on_exit(
        self, span: Any, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        """
        Called after a validator passes or fails with a validation error.

        Args:
            span: Token returned from on_enter
            name: Name/description of the validator
            ok: Whether validation passed
            duration_ms: Execution time in milliseconds
            depth: Nesting depth
        """
        ...

    def on_error(
        self, span: Any, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        """
        Called if a validator raises an exception that is not a validation error.

        Args:
            span: Token returned from on_enter
            name: Name/description of the validator
            error: The exception that was raised
            duration_ms: Execution time in milliseconds
            depth: Nesting depth
        """
        ...


@dataclass
class TraceConfig:
    """
    Configuration for tracing behavior.

    Attributes:
        nested: If True, trace child validators as well as the root
        max_depth: Maximum depth to trace (None = unlimited)
        include_leaf_only: If True, only trace leaf validators
    """

    nested: bool = True
    max_depth: int | None = None
    include_leaf_only: bool = False


@contextmanager
def use_tracing(hook: TraceHook, config: TraceConfig | None = None):
    """
    Context manager to enable tracing for all validations in scope.

    Args:
        hook: TraceHook implementation to receive trace events
        config: Optional TraceConfig to customize tracing behavior

    Example:
        with use_tracing(LoggingHook(logger)):
            user_validator.validate(user)  # This will be traced

        with use_tracing(PrintHook(), TraceConfig(max_depth=2)):
            complex_validator.validate(data)
    """
    hook_token = _trace_hook.set(hook)
    config_token = _trace_config.set(config or TraceConfig())
    try:
        yield
    finally:
        _trace_hook.reset(hook_token)
        _trace_config.reset(config_token)


def _should_trace(validator: Any, config: TraceConfig, depth: int) -> bool:
    if config.max_depth is not None and depth > config.max_depth:
        return False
    if not config.nested and depth > 0:
        return False
    if config.include_leaf_only and getattr(validator, "composite", False):
        return False
    return True


def _traced_validate(
    validator: Any,
    value: Any,
    hook: TraceHook,
    config: TraceConfig,
    run: Callable[[Any], None],
) -> None:
    """Run a validator, reporting the outcome to the hook."""
    depth = _trace_depth.get()
    if not _should_trace(validator, config, depth):
        token = _trace_depth.set(depth + 1)
        try:
            run(value)
        finally:
            _trace_depth.reset(token)
        return

    name = repr(validator)
    span = hook.on_enter(name, value, depth)
    start = time.perf_counter()
    token = _trace_depth.set(depth + 1)
    try:
        run(value)
    except ValidationError:
        hook.on_exit(span, name, False, (time.perf_counter() - start) * 1000, depth)
        raise
    except Exception as e:
        hook.on_error(span, name, e, (time.perf_counter() - start) * 1000, depth)
        raise
    finally:
        _trace_depth.reset(token)
    hook.on_exit(span, name, True, (time.perf_counter() - start) * 1000, depth)


async def _async_traced_validate(
    validator: Any,
    value: Any,
    hook: TraceHook,
    config: TraceConfig,
    run: Callable[[Any], Awaitable[None]],
) -> None:
    """Async counterpart of _traced_validate."""
    depth = _trace_depth.get()
    if not _should_trace(validator, config, depth):
        token = _trace_depth.set(depth + 1)
        try:
            await run(value)
        finally:
            _trace_depth.reset(token)
        return

    name = repr(validator)
    span = hook.on_enter(name, value, depth)
    start = time.perf_counter()
    token = _trace_depth.set(depth + 1)
    try:
        await run(value)
    except ValidationError:
        hook.on_exit(span, name, False, (time.perf_counter() - start) * 1000, depth)
        raise
    except Exception as e:
        hook.on_error(span, name, e, (time.perf_counter() - start) * 1000, depth)
        raise
    finally:
        _trace_depth.reset(token)
    hook.on_exit(span, name, True, (time.perf_counter() - start) * 1000, depth)


# =============================================================================
# Built-in Trace Hooks
# =============================================================================


class PrintHook:
    """
    Trace hook that prints an indented outline of the evaluation.

    Each validator prints one line on entry and one with its outcome, so a
    failing field is easy to spot in a large form validator.

    Example:
        with use_tracing(PrintHook()):
            Validate("email", NotEmpty(), Email()).check(signup)

        # Output:
        # validating Validate('email')
        #   validating Many(EARLY_EXIT, 2)
        #     validating NotEmpty()
        #     NotEmpty() passed (0.01ms)
        #     validating Email()
        #     Email() FAILED (0.02ms)
        #   Many(EARLY_EXIT, 2) FAILED (0.05ms)
        # Validate('email') FAILED (0.06ms)
    """

    def __init__(self, indent: str = "  ", show_value: bool = False, stream=None):
        self.indent = indent
        self.show_value = show_value
        self.stream = stream

    def _print(self, depth: int, text: str) -> None:
        print(f"{self.indent * depth}{text}", file=self.stream or sys.stdout)

    def on_enter(self, name: str, value: Any, depth: int) -> None:
        if self.show_value:
            self._print(depth, f"validating {name} against {value!r}")
        else:
            self._print(depth, f"validating {name}")

    def on_exit(
        self, span: None, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        outcome = "passed" if ok else "FAILED"
        self._print(depth, f"{name} {outcome} ({duration_ms:.2f}ms)")

    def on_error(
        self, span: None, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        self._print(
            depth, f"{name} raised {type(error).__name__}: {error} ({duration_ms:.2f}ms)"
        )


class LoggingHook:
    """
    Trace hook that reports validator outcomes to a logger.

    Entry and outcome records are emitted at `level`. An exception that is
    not a validation failure is logged at ERROR with its traceback.

    Example:
        logging.basicConfig(level=logging.DEBUG)

        with use_tracing(LoggingHook()):
            signup_validator.check(signup)

        # DEBUG:validations.trace:validating Validate('email') (depth=0)
        # DEBUG:validations.trace:Validate('email') failed (0.06ms)
    """

    def __init__(
        self, logger: logging.Logger | None = None, level: int = logging.DEBUG
    ):
        self.logger = logger or logging.getLogger("validations.trace")
        self.level = level

    def on_enter(self, name: str, value: Any, depth: int) -> None:
        self.logger.log(self.level, "validating %s (depth=%d)", name, depth)

    def on_exit(
        self, span: None, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        self.logger.log(
            self.level,
            "%s %s (%.2fms)",
            name,
            "passed" if ok else "failed",
            duration_ms,
        )

    def on_error(
        self, span: None, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        self.logger.error(
            "%s raised %s (%.2fms)",
            name,
            type(error).__name__,
            duration_ms,
            exc_info=error,
        )


# Combinator reprs; every other validator is a leaf check.
_COMBINATOR_PREFIXES = (
    "Pair(",
    "Many(",
    "Not(",
    "Conditional(",
    "OptionalBranch(",
    "OptionalValue(",
    "MapOptional(",
    "Map(",
    "MapValue(",
    "MapError(",
    "ErrorLabel(",
    "Validate(",
    "Case(",
    "Lazy(",
    "Lifted(",
    "AnyValidator(",
    "AnyAsyncValidator(",
)


class OpenTelemetryHook:
    """
    Trace hook that records each validator as an OpenTelemetry span.

    Spans nest the way validators do. Every span carries:

        validation.validator   the validator's repr
        validation.kind        "combinator" or "check"
        validation.depth       nesting depth (0 = root)
        validation.outcome     "passed", "failed" or "error"
        validation.duration_ms execution time

    A failed validation sets the span status to ERROR; an unexpected
    exception is also recorded on the span. Spans deeper than
    `max_span_depth` are skipped, and sibling spans can be linked so
    sequential checks stay connected in trace viewers.

    Requires: pip install opentelemetry-api

    Example:
        tracer = trace.get_tracer("signup")
        with use_tracing(OpenTelemetryHook(tracer, max_span_depth=2)):
            signup_validator.check(signup)
    """

    def __init__(
        self,
        tracer,
        *,
        max_span_depth: int | None = None,
        link_sibling_spans: bool = True,
    ):
        if not _HAS_OPENTELEMETRY:
            raise ImportError(
                "OpenTelemetry is not installed. "
                "Install it with: pip install opentelemetry-api"
            )
        self.tracer = tracer
        self.max_span_depth = max_span_depth
        self.link_sibling_spans = link_sibling_spans

        self._open_spans: list[Any] = []
        self._previous_sibling: dict[int, Any] = {}

    def on_enter(self, name: str, value: Any, depth: int) -> Any:
        assert _set_span_in_context is not None
        assert _Link is not None

        if self.max_span_depth is not None and depth > self.max_span_depth:
            return None

        context = None
        if self._open_spans:
            context = _set_span_in_context(self._open_spans[-1])
        links = None
        if self.link_sibling_spans and depth in self._previous_sibling:
            links = [_Link(self._previous_sibling[depth].get_span_context())]

        span = self.tracer.start_span(name, context=context, links=links)
        kind = "combinator" if name.startswith(_COMBINATOR_PREFIXES) else "check"
        span.set_attribute("validation.validator", name)
        span.set_attribute("validation.kind", kind)
        span.set_attribute("validation.depth", depth)

        self._open_spans.append(span)
        self._previous_sibling[depth] = span
        return span

    def on_exit(
        self, span: Any, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        if span is None:
            return
        assert _Status is not None
        assert _StatusCode is not None

        if ok:
            self._close(span, "passed", duration_ms)
            return
        span.set_status(_Status(_StatusCode.ERROR, "validation failed"))
        self._close(span, "failed", duration_ms)

    def on_error(
        self, span: Any, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        if span is None:
            return
        assert _Status is not None
        assert _StatusCode is not None

        span.record_exception(error)
        span.set_status(_Status(_StatusCode.ERROR, f"{type(error).__name__}: {error}"))
        self._close(span, "error", duration_ms)

    def _close(self, span: Any, outcome: str, duration_ms: float) -> None:
        span.set_attribute("validation.outcome", outcome)
        span.set_attribute("validation.duration_ms", duration_ms)
        span.end()
        self._open_spans.pop()
