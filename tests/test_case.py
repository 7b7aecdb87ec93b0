"""Tests for Case validation and the unhandled-case warning."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pytest

from validations import (
    NO_MATCH,
    Case,
    Failed,
    GreaterThan,
    ManyFailed,
    Validate,
    Validation,
    ValidationError,
    is_test_mode,
    one_of,
    set_test_mode,
    use_test_mode,
)


@dataclass
class Circle:
    radius: float


@dataclass
class Square:
    side: float


def circle_radius(shape):
    return shape.radius if isinstance(shape, Circle) else NO_MATCH


def error_of(v, value):
    with pytest.raises(ValidationError) as exc_info:
        v.validate(value)
    return exc_info.value


class TestCase:
    def test_matching_variant_validates_payload(self):
        v = Case(circle_radius, GreaterThan(0))
        v.validate(Circle(1.0))
        assert error_of(v, Circle(0)) == Failed("0 is not greater than 0")

    def test_type_projection(self):
        v = Case(Square, Validate("side", GreaterThan(0)))
        v.validate(Square(2))
        assert not v.is_valid(Square(-1))

    def test_unhandled_case_fails_with_location(self):
        v = Case(circle_radius, GreaterThan(0))
        error = error_of(v, Square(1))
        assert isinstance(error, Failed)
        assert error.summary.startswith('A "Case" validation at "test_case.py:')
        assert "does not handle the current case." in error.summary
        assert error.summary.endswith("Current case is: Square(side=1)")

    def test_explicit_location(self):
        v = Case(Circle, GreaterThan(0), location="shapes.py:12")
        assert 'at "shapes.py:12"' in error_of(v, Square(1)).summary

    def test_one_of_covers_all_variants(self):
        v = one_of(
            Case(Circle, Validate("radius", GreaterThan(0))),
            Case(Square, Validate("side", GreaterThan(0))),
        )
        v.validate(Circle(1))
        v.validate(Square(1))
        assert not v.is_valid(Square(0))

    def test_several_validators_exit_early(self):
        v = Case(circle_radius, GreaterThan(0), GreaterThan(10))
        assert error_of(v, Circle(5)) == Failed("5 is not greater than 10")

    def test_requires_validator(self):
        with pytest.raises(TypeError):
            Case(Circle)

    def test_none_payload_is_no_match_by_default(self):
        v = Case(lambda s: s.radius if isinstance(s, Circle) else None, GreaterThan(0))
        v.validate(Circle(1))
        error = error_of(v, Square(1))
        assert "does not handle the current case." in error.summary

    def test_none_payload_reaches_validator_when_opted_in(self):
        seen = []

        def record(payload):
            seen.append(payload)

        v = Case(lambda _: None, Validation(record), none_is_match=True)
        v.validate(Square(1))
        assert seen == [None]

    def test_no_match_still_unhandled_when_none_is_a_match(self):
        v = Case(circle_radius, GreaterThan(0), none_is_match=True)
        assert not v.is_valid(Square(1))


class TestUnhandledCaseWarning:
    def test_suppressed_in_test_mode(self, caplog):
        with caplog.at_level(logging.WARNING, logger="validations"):
            error_of(Case(Circle, GreaterThan(0)), Square(1))
        assert caplog.records == []

    def test_logged_outside_test_mode(self, caplog):
        with use_test_mode(False), caplog.at_level(logging.WARNING, logger="validations"):
            error = error_of(Case(Circle, GreaterThan(0)), Square(1))

        assert isinstance(error, Failed)
        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.levelno == logging.WARNING
        assert record.name == "validations._case"
        assert "Unhandled case" in record.getMessage()

    def test_none_payload_logs_outside_test_mode(self, caplog):
        v = Case(lambda s: s.radius if isinstance(s, Circle) else None, GreaterThan(0))
        with use_test_mode(False), caplog.at_level(logging.WARNING, logger="validations"):
            assert not v.is_valid(Square(1))
        assert len(caplog.records) == 1

    def test_warning_is_independent_of_failure(self, caplog):
        v = one_of(
            Case(Circle, Validate("radius", GreaterThan(0))),
            Case(Square, Validate("side", GreaterThan(0))),
        )
        with use_test_mode(False), caplog.at_level(logging.WARNING, logger="validations"):
            v.validate(Square(1))
        assert len(caplog.records) == 1

    def test_accumulated_unhandled_case(self):
        from validations import accumulating

        error = error_of(accumulating(Case(Circle, GreaterThan(0))), Square(1))
        assert isinstance(error, ManyFailed)
        assert len(error.errors) == 1


class TestTestMode:
    def test_context_manager_restores(self):
        assert is_test_mode()
        with use_test_mode(False):
            assert not is_test_mode()
        assert is_test_mode()

    def test_set_test_mode(self):
        with use_test_mode():
            set_test_mode(False)
            assert not is_test_mode()
        assert is_test_mode()
