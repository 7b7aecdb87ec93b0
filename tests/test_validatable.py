"""End-to-end tests: self-validating records and email addresses."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import ClassVar

import pytest

from validations import (
    AsyncValidatable,
    AsyncValidate,
    AsyncValidation,
    Contains,
    Email,
    Failed,
    GreaterThanOrEquals,
    ManyFailed,
    NotEmpty,
    Validatable,
    Validate,
    ValidationError,
    accumulating,
    async_accumulating,
)

ONE_OF_FAILED = Failed("Did not pass any of the validations.")


@dataclass
class User(Validatable):
    name: str
    email: str

    validator: ClassVar = accumulating(
        Validate("name", NotEmpty()),
        Validate("email", accumulating(NotEmpty(), Contains("@"))),
    )


@dataclass
class Address(Validatable):
    street: str

    validator: ClassVar = Validate("street", NotEmpty()).error_label("Street", inline=True)


@dataclass
class Customer(Validatable):
    name: str
    address: Address

    validator: ClassVar = accumulating(
        Validate("name", NotEmpty()).error_label("Name", inline=True),
        Validate("address"),
    )


TAKEN = {"taken@example.com"}


async def email_available(email):
    await asyncio.sleep(0)
    if email in TAKEN:
        raise Failed(f"{email} is already registered")


@dataclass
class Signup(AsyncValidatable):
    email: str
    age: int

    validator: ClassVar = async_accumulating(
        AsyncValidate("email", Email(), AsyncValidation(email_available)),
        Validate("age", GreaterThanOrEquals(18)).error_label("Age", inline=True),
    )


class TestUserScenario:
    def test_invalid_user_has_two_top_level_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            User(name="", email="blob.example.com").validate()

        error = exc_info.value
        assert isinstance(error, ManyFailed)
        assert len(error.errors) == 2
        assert error.errors[0] == Failed("Expected to not be empty.")
        assert error.errors[1] == ManyFailed([Failed("Does not contain @")])
        assert error == ManyFailed(
            [
                Failed("Expected to not be empty."),
                ManyFailed([Failed("Does not contain @")]),
            ]
        )

    def test_valid_user(self):
        User(name="blob", email="blob@example.com").validate()

    def test_check(self):
        result = User(name="", email="blob.example.com").check()
        assert not result.ok
        assert result.errors == ["Expected to not be empty.", "Does not contain @"]
        assert User(name="blob", email="blob@example.com").is_valid()

    def test_rendering(self):
        result = User(name="", email="").check()
        assert str(result.error) == (
            "- Expected to not be empty.\n"
            "- - Expected to not be empty.\n"
            "  - Does not contain @"
        )

    def test_validator_shared_across_instances(self):
        assert User("a", "a@b").validator is User("b", "b@c").validator


class TestNestedValidatable:
    def test_nested_validates_itself(self):
        Customer("blob", Address("Main")).validate()

    def test_nested_error(self):
        result = Customer("", Address("")).check()
        assert str(result.error) == (
            "- Name: Expected to not be empty.\n- Street: Expected to not be empty."
        )


class TestAsyncValidatable:
    def test_valid(self):
        asyncio.run(Signup(email="blob@example.com", age=30).validate())

    def test_invalid(self):
        result = asyncio.run(Signup(email="taken@example.com", age=12).check())
        assert result.error == ManyFailed(
            [
                Failed("taken@example.com is already registered"),
                ManyFailed([ONE_OF_FAILED], label="Age", inline=True),
            ]
        )

    def test_sync_validator_is_lifted(self):
        @dataclass
        class Tag(AsyncValidatable):
            name: str

            validator: ClassVar = Validate("name", NotEmpty())

        assert asyncio.run(Tag("x").is_valid())
        assert not asyncio.run(Tag("").is_valid())


# =============================================================================
# Email
# =============================================================================


def email_error(value, style="default"):
    try:
        Email(style=style).validate(value)
    except ValidationError as e:
        return e
    return None


class TestEmail:
    @pytest.mark.parametrize(
        "value",
        ["blob@example.com", "Blob.Jr+tag@Example.co.uk", "a@b.io"],
    )
    def test_valid(self, value):
        assert email_error(value) is None

    @pytest.mark.parametrize("value", ["blob.example.com", "blob@", "@example.com"])
    def test_invalid_pattern(self, value):
        assert email_error(value) == ManyFailed([Failed("Did not match expected pattern.")])

    def test_empty_fails_early(self):
        assert email_error("") == Failed("Expected to not be empty.")

    def test_total_length_limit(self):
        value = "blob@" + "a" * 311 + ".com"
        assert len(value) == 320
        assert email_error(value) is None

        too_long = "blob@" + "a" * 312 + ".com"
        assert email_error(too_long) == ManyFailed([ONE_OF_FAILED])

    def test_local_part_limit(self):
        assert email_error("a" * 64 + "@example.com") is None
        assert email_error("a" * 65 + "@example.com") == ManyFailed([ONE_OF_FAILED])

    def test_failures_accumulate(self):
        value = "a" * 65 + "@" + "b" * 260 + ".com"
        error = email_error(value)
        assert error == ManyFailed([ONE_OF_FAILED, ONE_OF_FAILED])

    def test_international(self):
        assert email_error("blöb@exämple.com", style="international") is None
        assert email_error("blöb@exämple.com") is not None
        assert email_error("blob..jr@example.com", style="international") is not None

    def test_unknown_style(self):
        with pytest.raises(ValueError):
            Email(style="strict")
