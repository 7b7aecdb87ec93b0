"""
Validations - Composable Validator Combinators

A Python library for building validators out of small, reusable checks.
Validators raise a ValidationError describing every failure, can be
combined with operators or builder helpers, and run synchronously or
inside asyncio.

Operators:
    &  = sequence (stops at the first failure)
    |  = one of (stops at the first success)
    ~  = not (inverts success/failure)

Example:
    from dataclasses import dataclass
    from typing import ClassVar

    from validations import Email, NotEmpty, Validatable, Validate, accumulating

    @dataclass
    class User(Validatable):
        name: str
        email: str

        validator: ClassVar = accumulating(
            Validate("name", NotEmpty()).error_label("Name", inline=True),
            Validate("email", Email()).error_label("Email", inline=True),
        )

    User(name="blob", email="blob@example.com").validate()

    result = User(name="", email="blob.example.com").check()
    print(result.error)
    # - Name: Expected to not be empty.
    # - Email: - Did not match expected pattern.
"""

from __future__ import annotations

from validations._async import (
    AnyAsyncValidator,
    AsyncCase,
    AsyncConditional,
    AsyncErrorLabel,
    AsyncLazy,
    AsyncMany,
    AsyncMap,
    AsyncMapError,
    AsyncMapOptional,
    AsyncMapValue,
    AsyncNot,
    AsyncOptionalBranch,
    AsyncOptionalValue,
    AsyncPair,
    AsyncValidate,
    AsyncValidation,
    AsyncValidator,
    Lifted,
    async_accumulating,
    async_either,
    async_one_of,
    async_optional_branch,
    async_sequence,
    async_validator,
    lift,
)
from validations._case import (
    Case,
    is_test_mode,
    set_test_mode,
    use_test_mode,
)
from validations._core import (
    AnyValidator,
    Conditional,
    Many,
    Not,
    OptionalBranch,
    Pair,
    Policy,
    Validation,
    Validator,
    accumulating,
    either,
    erase,
    one_of,
    optional_branch,
    sequence,
    validator,
)
from validations._errors import (
    Failed,
    ManyFailed,
    ValidationError,
    errors_equal,
)
from validations._mapping import (
    ErrorLabel,
    Lazy,
    Map,
    MapError,
    MapOptional,
    MapValue,
    OptionalValue,
    Validate,
)
from validations._primitives import (
    Always,
    BoolValidator,
    Contains,
    Email,
    Empty,
    Equals,
    Fail,
    GreaterThan,
    GreaterThanOrEquals,
    IsFalse,
    IsNil,
    IsTrue,
    LessThan,
    LessThanOrEquals,
    Never,
    NotEmpty,
    NotNil,
    Pattern,
    Regex,
    Success,
)
from validations._tracing import (
    LoggingHook,
    OpenTelemetryHook,
    PrintHook,
    TraceConfig,
    TraceHook,
    use_tracing,
)
from validations._types import NO_MATCH, Field
from validations._validatable import AsyncValidatable, Validatable
from validations._validation import ValidationResult

__version__ = "0.1.0"
__all__ = [
    # Core
    "Validator",
    "Validation",
    "AnyValidator",
    "Policy",
    "Pair",
    "Many",
    "Conditional",
    "OptionalBranch",
    "Not",
    "validator",
    "erase",
    # Builders
    "sequence",
    "accumulating",
    "one_of",
    "optional_branch",
    "either",
    # Primitives
    "Equals",
    "GreaterThan",
    "GreaterThanOrEquals",
    "LessThan",
    "LessThanOrEquals",
    "Contains",
    "Empty",
    "NotEmpty",
    "BoolValidator",
    "IsTrue",
    "IsFalse",
    "Regex",
    "Pattern",
    "Always",
    "Success",
    "Fail",
    "Never",
    "NotNil",
    "IsNil",
    "Email",
    # Mapping
    "Map",
    "MapValue",
    "MapError",
    "ErrorLabel",
    "Lazy",
    "Validate",
    "OptionalValue",
    "MapOptional",
    "Field",
    # Case
    "Case",
    "NO_MATCH",
    "use_test_mode",
    "set_test_mode",
    "is_test_mode",
    # Errors
    "ValidationError",
    "Failed",
    "ManyFailed",
    "errors_equal",
    "ValidationResult",
    # Self-validation
    "Validatable",
    "AsyncValidatable",
    # Async
    "AsyncValidator",
    "AsyncValidation",
    "AnyAsyncValidator",
    "Lifted",
    "lift",
    "async_validator",
    "AsyncPair",
    "AsyncMany",
    "AsyncConditional",
    "AsyncOptionalBranch",
    "AsyncNot",
    "AsyncMap",
    "AsyncMapValue",
    "AsyncMapError",
    "AsyncErrorLabel",
    "AsyncLazy",
    "AsyncValidate",
    "AsyncOptionalValue",
    "AsyncMapOptional",
    "AsyncCase",
    "async_sequence",
    "async_accumulating",
    "async_one_of",
    "async_optional_branch",
    "async_either",
    # Tracing
    "TraceHook",
    "TraceConfig",
    "use_tracing",
    "PrintHook",
    "LoggingHook",
    "OpenTelemetryHook",
]
