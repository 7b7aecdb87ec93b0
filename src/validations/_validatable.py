"""Mixins for types that carry their own validator."""

from __future__ import annotations

from typing import Any, ClassVar

from validations._validation import ValidationResult


class Validatable:
    """
    Mixin for types that validate themselves.

    Set `validator` once on the class; validate() feeds the instance to it.

    Example:
        @dataclass
        class User(Validatable):
            name: str
            email: str

            validator: ClassVar[Validator[User]] = accumulating(
                Validate("name", NotEmpty()),
                Validate("email", Email()),
            )

        User(name="blob", email="blob@example.com").validate()
    """

    validator: ClassVar[Any]

    def validate(self) -> None:
        type(self).validator.validate(self)

    def check(self) -> ValidationResult:
        return type(self).validator.check(self)

    def is_valid(self) -> bool:
        return self.check().ok


class AsyncValidatable:
    """
    Async counterpart of Validatable.

    `validator` may be sync or async; a sync validator is lifted.
    """

    validator: ClassVar[Any]

    @classmethod
    def _async_validator(cls) -> Any:
        from validations._async import _as_async

        return _as_async(cls.validator)

    async def validate(self) -> None:
        await self._async_validator().validate(self)

    async def check(self) -> ValidationResult:
        return await self._async_validator().check(self)

    async def is_valid(self) -> bool:
        return (await self.check()).ok
