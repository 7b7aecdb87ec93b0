"""
Example: Validating a signup form with Validations

This example shows how small validators compose into a complete form
validator: field projections, early exit vs. accumulated errors, labels,
optional fields, sum-type cases, async checks and tracing.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import ClassVar

from validations import (
    AsyncValidatable,
    AsyncValidate,
    AsyncValidation,
    Case,
    Email,
    Equals,
    Failed,
    Field,
    GreaterThan,
    GreaterThanOrEquals,
    LessThan,
    LoggingHook,
    NotEmpty,
    PrintHook,
    Validatable,
    Validate,
    accumulating,
    async_accumulating,
    one_of,
    use_tracing,
)

# =============================================================================
# Domain model
# =============================================================================


@dataclass(frozen=True)
class CardPayment:
    number: str


@dataclass(frozen=True)
class InvoicePayment:
    days: int


@dataclass
class Signup(Validatable):
    name: str
    email: str
    password: str
    confirmation: str
    age: int | None
    payment: CardPayment | InvoicePayment

    validator: ClassVar = accumulating(
        Validate("name", NotEmpty()).error_label("Name", inline=True),
        Validate("email", Email()).error_label("Email"),
        # Stops at the first failure: the length check only runs when non-empty
        Validate("password", NotEmpty(), GreaterThanOrEquals(len, 8)).error_label(
            "Password", inline=True
        ),
        Equals("password", Field("confirmation"))
        .map_error(Failed("Passwords do not match."))
        .error_label("Confirmation", inline=True),
        # Age is optional, but must be sensible when given
        Validate("age", GreaterThanOrEquals(13).optional()).error_label(
            "Age", inline=True
        ),
        Validate(
            "payment",
            one_of(
                Case(CardPayment, Validate("number", NotEmpty())),
                Case(InvoicePayment, Validate("days", GreaterThan(0), LessThan(91))),
            ),
        ).error_label("Payment", inline=True),
    )


# =============================================================================
# Async checks
# =============================================================================

REGISTERED = {"taken@example.com"}


async def email_available(email: str) -> None:
    """Pretend to look the address up in a database."""
    await asyncio.sleep(0.01)
    if email in REGISTERED:
        raise Failed(f"{email} is already registered.")


@dataclass
class Registration(AsyncValidatable):
    email: str

    validator: ClassVar = async_accumulating(
        AsyncValidate("email", Email(), AsyncValidation(email_available)).error_label(
            "Email", inline=True
        ),
    )


# =============================================================================
# Run examples
# =============================================================================

if __name__ == "__main__":
    print("=== 1. A valid signup ===\n")
    good = Signup(
        name="blob",
        email="blob@example.com",
        password="hunter2hunter2",
        confirmation="hunter2hunter2",
        age=None,
        payment=CardPayment("4242"),
    )
    good.validate()
    print("  ok")

    print("\n=== 2. Every failure is reported ===\n")
    bad = Signup(
        name="",
        email="blob.example.com",
        password="short",
        confirmation="shrot",
        age=7,
        payment=InvoicePayment(days=120),
    )
    result = bad.check()
    for line in str(result.error).splitlines():
        print(f"  {line}")

    print("\n=== 3. Async validation ===\n")
    for email in ["blob@example.com", "taken@example.com"]:
        result = asyncio.run(Registration(email).check())
        print(f"  {email:20s} -> {'ok' if result.ok else result.error}")

    print("\n=== 4. Tracing ===\n")
    with use_tracing(PrintHook()):
        Validate("name", NotEmpty()).check(good)

    logging.basicConfig(level=logging.DEBUG, format="  %(name)s: %(message)s")
    with use_tracing(LoggingHook(logging.getLogger("signup"))):
        Email().check("blob@example.com")
