"""Validation error model."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any


class ValidationError(Exception):
    """
    Base class for validation failures.

    Validation errors are structurally comparable so tests can assert the
    exact shape of a failure:

        Failed("x") == Failed("x")                      # True
        ManyFailed([Failed("x")]) == Failed("x")        # False

    Subclasses compare equal when their type and args match, and render as
    their message unless they override render().
    """

    def render(self) -> str:
        """Render this error as deterministic, human-readable text."""
        return Exception.__str__(self) or type(self).__name__

    def leaves(self) -> list[BaseException]:
        """Return the leaf errors of this error tree in encounter order."""
        return [self]

    def __str__(self) -> str:
        return self.render()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        try:
            return hash((type(self), self.args))
        except TypeError:
            return hash(type(self))


class Failed(ValidationError):
    """
    A single validation failure.

    Example:
        raise Failed("5 is not greater than 10")
    """

    def __init__(self, summary: str):
        super().__init__(summary)
        self.summary = summary

    def render(self) -> str:
        return self.summary

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Failed):
            return NotImplemented
        return self.summary == other.summary

    def __hash__(self) -> int:
        return hash(("Failed", self.summary))

    def __repr__(self) -> str:
        return f"Failed({self.summary!r})"


class ManyFailed(ValidationError):
    """
    An aggregate of one or more failures, optionally labeled.

    Produced by accumulating sequences (one entry per failed child, in
    evaluation order) and by error_label(), which nests the labeled error as
    the single child of a labeled aggregate.

    Attributes:
        errors: The child errors, in encounter order
        label: Optional section label used when rendering
        inline: Render the label on the same line as a one-line body
    """

    def __init__(
        self,
        errors: Iterable[BaseException],
        label: Any = None,
        inline: bool = False,
    ):
        self.errors: tuple[BaseException, ...] = tuple(errors)
        self.label: str | None = _label_text(label)
        self.inline = inline
        super().__init__(self.errors, self.label)

    def leaves(self) -> list[BaseException]:
        result: list[BaseException] = []
        for error in self.errors:
            if isinstance(error, ValidationError):
                result.extend(error.leaves())
            else:
                result.append(error)
        return result

    def render(self) -> str:
        body = self._render_body()
        if self.label is None:
            return body
        if self.inline and "\n" not in body:
            return f"{self.label}: {body}"
        return f"{self.label}:\n{_indent(body)}"

    def _render_body(self) -> str:
        # A labeled wrapper around one error renders that error directly.
        if self.label is not None and len(self.errors) == 1:
            return _render_any(self.errors[0])
        lines = []
        for error in self.errors:
            first, *rest = _render_any(error).split("\n")
            lines.append(f"- {first}")
            lines.extend(_indent(line) for line in rest)
        return "\n".join(lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ManyFailed):
            return NotImplemented
        return (
            self.label == other.label
            and self.inline == other.inline
            and len(self.errors) == len(other.errors)
            and all(errors_equal(a, b) for a, b in zip(self.errors, other.errors))
        )

    def __hash__(self) -> int:
        return hash(("ManyFailed", self.label, self.inline, len(self.errors)))

    def __repr__(self) -> str:
        parts = [repr(list(self.errors))]
        if self.label is not None:
            parts.append(f"label={self.label!r}")
        if self.inline:
            parts.append("inline=True")
        return f"ManyFailed({', '.join(parts)})"


def errors_equal(a: BaseException, b: BaseException) -> bool:
    """
    Compare two errors structurally.

    Validation errors use their own equality; any other exception compares by
    exact type and args.
    """
    if isinstance(a, ValidationError) and isinstance(b, ValidationError):
        return a == b
    return type(a) is type(b) and a.args == b.args


def _label_text(label: Any) -> str | None:
    if label is None:
        return None
    if isinstance(label, Enum) and isinstance(label.value, str):
        return label.value
    return str(label)


def _render_any(error: BaseException) -> str:
    if isinstance(error, ValidationError):
        return error.render()
    return f"{type(error).__name__}: {error}"


def _indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line if line else line for line in text.split("\n"))
