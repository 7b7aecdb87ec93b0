"""Validation result type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from validations._errors import ValidationError


@dataclass
class ValidationResult:
    """
    Result of running a validator without raising.

    Attributes:
        ok: Whether validation passed
        error: The validation error on failure, None otherwise
        value: The value that was validated
    """

    ok: bool
    error: ValidationError | None
    value: Any

    def __bool__(self) -> bool:
        return self.ok

    @property
    def errors(self) -> list[str]:
        """Leaf error messages, in the order they were encountered."""
        if self.error is None:
            return []
        return [str(leaf) for leaf in self.error.leaves()]

    def raise_if_invalid(self) -> None:
        """Re-raise the validation error if validation failed."""
        if self.error is not None:
            raise self.error
