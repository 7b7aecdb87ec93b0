"""Tests for async validators, lifting and async combinators."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from validations import (
    NO_MATCH,
    Always,
    AnyAsyncValidator,
    AsyncCase,
    AsyncMany,
    AsyncMapOptional,
    AsyncMapValue,
    AsyncValidation,
    AsyncValidator,
    BoolValidator,
    Contains,
    Email,
    Empty,
    Equals,
    Fail,
    Failed,
    GreaterThan,
    GreaterThanOrEquals,
    IsFalse,
    IsNil,
    IsTrue,
    LessThan,
    LessThanOrEquals,
    Lifted,
    ManyFailed,
    MapOptional,
    Never,
    Not,
    NotEmpty,
    NotNil,
    Policy,
    Regex,
    Success,
    ValidationError,
    accumulating,
    async_accumulating,
    async_either,
    async_one_of,
    async_optional_branch,
    async_sequence,
    async_validator,
    lift,
    sequence,
)

ONE_OF_FAILED = Failed("Did not pass any of the validations.")


def sync_error(v, value):
    try:
        v.validate(value)
    except ValidationError as e:
        return e
    return None


def async_error(v, value):
    async def run():
        try:
            await v.validate(value)
        except ValidationError as e:
            return e
        return None

    return asyncio.run(run())


# =============================================================================
# Lifting
# =============================================================================

PRIMITIVE_CASES = [
    (Equals(5), [5], [4]),
    (GreaterThan(10), [11], [10]),
    (GreaterThanOrEquals(10), [10, 11], [9]),
    (LessThan(10), [9], [10]),
    (LessThanOrEquals(10), [9, 10], [11]),
    (Contains("@"), ["a@b"], ["ab"]),
    (Contains(lambda p: p[1], collection=lambda p: p[0]), [([1, 2], 2)], [([1, 2], 3)]),
    (Empty(), [""], ["a"]),
    (NotEmpty(), ["a"], [""]),
    (BoolValidator(expecting=True), [True], [False]),
    (BoolValidator(expecting=False), [False], [True]),
    (IsTrue(), [True], [False]),
    (IsFalse(), [False], [True]),
    (Regex(r"\d+"), ["12"], ["12a"]),
    (Always(), [1], []),
    (Success(), [1], []),
    (Fail(), [], [1]),
    (Never(), [], [1]),
    (Not(Equals(1)), [0, 2], [1]),
    (NotNil(), [0], [None]),
    (IsNil(), [None], [0]),
    (MapOptional(GreaterThan(10)), [11], [None, 5]),
    (Email(), ["blob@example.com"], ["", "blob.example.com"]),
    (accumulating(Fail(), Never()), [], [1]),
]


class TestLift:
    @pytest.mark.parametrize("validator,passing,failing", PRIMITIVE_CASES)
    def test_lifted_matches_sync(self, validator, passing, failing):
        lifted = validator.to_async()
        for value in passing:
            assert sync_error(validator, value) is None
            assert async_error(lifted, value) is None
        for value in failing:
            sync = sync_error(validator, value)
            assert sync is not None
            assert async_error(lifted, value) == sync

    def test_lift_function(self):
        lifted = lift(Equals(1))
        assert isinstance(lifted, Lifted)
        assert isinstance(lifted, AsyncValidator)

    def test_no_way_back_to_sync(self):
        assert not hasattr(AsyncValidation(lambda x: None), "to_sync")

    def test_sync_combinators_reject_async_children(self):
        async_child = AsyncValidation(lambda x: None)
        with pytest.raises(TypeError):
            sequence(Equals(1), async_child)
        with pytest.raises(TypeError):
            Equals(1).or_(async_child)
        with pytest.raises(TypeError):
            NotNil().map(async_child)

    def test_operators_lift_sync_left_operand(self):
        async_child = AsyncValidation(lambda x: x > 0)

        both = Equals(1) & async_child
        assert isinstance(both, AsyncValidator)
        assert async_error(both, 1) is None
        assert async_error(both, 2) == Failed("2 is not equal to 1")

        either = Equals(1) | async_child
        assert isinstance(either, AsyncValidator)
        assert async_error(either, 5) is None
        assert async_error(either, -1) == ONE_OF_FAILED


# =============================================================================
# AsyncValidation
# =============================================================================


class TestAsyncValidation:
    def test_coroutine_function(self):
        async def is_blob(value):
            await asyncio.sleep(0)
            if value != "blob":
                raise Failed(f"{value} is not blob!")

        v = AsyncValidation(is_blob)
        assert async_error(v, "blob") is None
        assert async_error(v, "bob") == Failed("bob is not blob!")

    def test_sync_function(self):
        v = AsyncValidation(lambda x: x > 0, name="is_positive")
        assert async_error(v, 1) is None
        assert async_error(v, 0) == Failed("Check failed: is_positive")

    def test_decorator(self):
        @async_validator(message="{value} is taken")
        async def available(name):
            return name != "blob"

        assert async_error(available, "bob") is None
        assert async_error(available, "blob") == Failed("blob is taken")

    def test_check_and_is_valid(self):
        v = AsyncValidation(lambda x: x > 0)
        assert asyncio.run(v.is_valid(1))
        result = asyncio.run(v.check(0))
        assert not result.ok
        assert result.errors == ["Check failed: <lambda>"]


# =============================================================================
# Async policies
# =============================================================================


def counting(fails: bool, message: str = "stub failed"):
    calls = {"count": 0}

    async def check(value):
        await asyncio.sleep(0)
        calls["count"] += 1
        if fails:
            raise Failed(message)

    return AsyncValidation(check), calls


class TestAsyncPolicies:
    def test_early_exit_short_circuits(self):
        first, _ = counting(fails=True, message="first")
        second, second_calls = counting(fails=True, message="second")
        assert async_error(async_sequence(first, second), 1) == Failed("first")
        assert second_calls["count"] == 0

    def test_accumulate_evaluates_all(self):
        stubs = [counting(fails, str(i)) for i, fails in enumerate((True, False, True))]
        v = async_accumulating(*(s for s, _ in stubs))
        assert async_error(v, 1) == ManyFailed([Failed("0"), Failed("2")])
        assert all(calls["count"] == 1 for _, calls in stubs)

    def test_children_run_in_order(self):
        order = []

        def recorder(name):
            async def check(value):
                await asyncio.sleep(0)
                order.append(name)

            return AsyncValidation(check)

        asyncio.run(async_accumulating(recorder("a"), recorder("b"), recorder("c")).validate(1))
        assert order == ["a", "b", "c"]

    @pytest.mark.parametrize("value,ok", [(5, True), (11, True), (4, False), (10, False)])
    def test_one_of(self, value, ok):
        v = async_one_of(Equals(5), GreaterThan(10))
        assert (async_error(v, value) is None) is ok

    def test_empty_one_of_fails(self):
        assert async_error(async_one_of(), 1) == ONE_OF_FAILED

    def test_mixed_sync_and_async_children(self):
        first, _ = counting(fails=True, message="async")
        v = async_accumulating(NotEmpty(), first, lambda s: s.startswith("b"))
        assert async_error(v, "") == ManyFailed(
            [
                Failed("Expected to not be empty."),
                Failed("async"),
                Failed("Check failed: <lambda>"),
            ]
        )

    def test_operators(self):
        async_child = AsyncValidation(lambda x: x < 20)
        chained = async_child & GreaterThan(0) & Equals(5)
        assert isinstance(chained, AsyncMany)
        assert chained.policy is Policy.EARLY_EXIT
        assert async_error(chained, 5) is None
        assert async_error(async_child | Equals(30), 30) is None
        assert async_error(~async_child, 30) is None
        assert async_error(~async_child, 1) == Failed("Not validator did not succeed.")

    def test_reflected_operators_with_callables(self):
        async_child = AsyncValidation(lambda x: x < 20)
        chained = (lambda x: x > 0) & async_child
        assert async_error(chained, 5) is None
        assert async_error(chained, -5) == Failed("Check failed: <lambda>")

    def test_branches(self):
        assert async_error(async_either(True, Equals(1), Fail()), 1) is None
        assert async_error(async_either(False, Equals(1), Fail()), 1) is not None
        assert async_error(async_optional_branch(False, Fail()), 1) is None


# =============================================================================
# Async mapping
# =============================================================================


@dataclass
class Circle:
    radius: float


class TestAsyncMapping:
    def test_optional(self):
        v = AsyncValidation(lambda x: x > 10).optional()
        assert async_error(v, None) is None
        assert async_error(v, 5) is not None

    def test_map_optional(self):
        v = AsyncMapOptional(GreaterThan(10))
        assert async_error(v, None) == Failed("Expected not None.")

    def test_map_with_async_builder(self):
        async def build(value):
            return Equals(10) if value > 5 else Equals(2)

        v = NotNil().to_async().map(build)
        assert async_error(v, 10) is None
        assert async_error(v, 6) == Failed("6 is not equal to 10")

    def test_map_with_predicate(self):
        v = NotNil().to_async().map(lambda x: x > 10)
        assert async_error(v, 11) is None
        assert async_error(v, 5) == Failed("Check failed: <lambda>")

    def test_map_with_async_predicate(self):
        async def over_ten(value):
            return value > 10

        v = NotNil().to_async().map(over_ten)
        assert async_error(v, 11) is None
        assert async_error(v, 5) == Failed("Check failed: over_ten")

    def test_map_value_with_async_transform(self):
        async def length(value):
            return len(value)

        v = AsyncMapValue(length, LessThanOrEquals(3))
        assert async_error(v, "abc") is None
        assert async_error(v, "abcd") is not None

    def test_map_error(self):
        v = Fail().to_async().map_error(lambda e: Failed(f"Wrapped: {e}"))
        assert async_error(v, 1) == Failed("Wrapped: Fail validation error.")

    def test_error_label(self):
        v = Fail().to_async().error_label("Field", inline=True)
        assert str(async_error(v, 1)) == "Field: Fail validation error."

    def test_case(self):
        v = AsyncCase(lambda s: s.radius if isinstance(s, Circle) else NO_MATCH, GreaterThan(0))
        assert async_error(v, Circle(1)) is None
        error = async_error(v, "not a circle")
        assert error.summary.startswith('A "Case" validation at "test_async.py:')

    def test_case_none_payload(self):
        v = AsyncCase(lambda s: s.radius if isinstance(s, Circle) else None, GreaterThan(0))
        assert async_error(v, Circle(1)) is None
        assert "does not handle the current case." in async_error(v, "square").summary

        seen = []
        v = AsyncCase(lambda _: None, AsyncValidation(seen.append), none_is_match=True)
        assert async_error(v, "square") is None
        assert seen == [None]


class TestAsyncErasure:
    def test_erasing_twice_returns_same_instance(self):
        erased = AsyncValidation(lambda x: None).erase()
        assert isinstance(erased, AnyAsyncValidator)
        assert erased.erase() is erased

    def test_erasure_preserves_errors(self):
        v = async_accumulating(Fail(), Never())
        assert async_error(v.erase().erase(), 1) == async_error(v, 1)
