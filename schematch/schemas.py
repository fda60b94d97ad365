"""Built-in Validators

Small validators that publish the ``__standard__`` contract without any
third-party library:

- ``literal(value)``: accepts exactly one value (identity-style comparison)
- ``field_equals(key, value)``: accepts mappings whose ``key`` equals ``value``
- ``predicate(fn, message)``: accepts values for which ``fn`` is truthy

``Literal`` and ``FieldEquals`` also declare their shape (``type``,
``literal``, ``entries``) so the literal fast path and discriminator
extraction recognise them, which is what lets keyed matchers dispatch.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar

from schematch.reporting import display_value
from schematch.standard import (
    FailureResult,
    Issue,
    StandardProps,
    SuccessResult,
    is_awaitable,
    is_plain_object,
    same_value,
)


class BaseSchema(ABC):
    """Base class for built-in validators.

    Subclasses implement ``validate``; the contract payload is derived from it.
    """

    __slots__ = ()

    @abstractmethod
    def validate(self, value: Any) -> Any:
        """Return a ``SuccessResult``/``FailureResult`` (or an awaitable of one)."""

    @property
    @abstractmethod
    def constraint_name(self) -> str:
        """Human-readable constraint name for error messages."""

    @property
    def __standard__(self) -> StandardProps:
        return StandardProps(validate=self.validate, vendor="schematch")


@dataclass(frozen=True, slots=True, eq=False, weakref_slot=True)
class Literal(BaseSchema):
    """Accept exactly ``literal``. NaN matches NaN; 0.0 and -0.0 differ."""
    literal: Any
    type: ClassVar[str] = "literal"

    @property
    def constraint_name(self) -> str: return f"literal[{display_value(self.literal)}]"

    def validate(self, value: Any) -> SuccessResult | FailureResult:
        if same_value(value, self.literal):
            return SuccessResult(self.literal)
        return FailureResult((Issue(f"Expected {display_value(self.literal)}, got {display_value(value)}"),))


@dataclass(frozen=True, slots=True, eq=False, weakref_slot=True)
class FieldEquals(BaseSchema):
    """Accept mappings whose ``key`` field equals ``value``; the input passes through unchanged."""
    key: str
    value: Any
    entries: Mapping[str, Literal] = field(init=False, repr=False)
    type: ClassVar[str] = "object"

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", {self.key: Literal(self.value)})

    @property
    def constraint_name(self) -> str: return f"{self.key}=={display_value(self.value)}"

    def __fast_check__(self, value: Any) -> bool:
        return is_plain_object(value) and self.key in value and same_value(value[self.key], self.value)

    def validate(self, value: Any) -> SuccessResult | FailureResult:
        if not is_plain_object(value):
            return FailureResult((Issue(f"Expected object, got {type(value).__name__}"),))
        if self.key not in value:
            return FailureResult((Issue("Missing required field", path=(self.key,)),))
        if not same_value(value[self.key], self.value):
            actual = display_value(value[self.key])
            return FailureResult((Issue(f"Expected {display_value(self.value)}, got {actual}", path=(self.key,)),))
        return SuccessResult(value)


@dataclass(frozen=True, slots=True, eq=False, weakref_slot=True)
class Predicate(BaseSchema):
    """Accept values for which ``fn`` returns a truthy result.

    An ``fn`` returning an awaitable makes this an async-only validator.
    """
    fn: Callable[[Any], Any]
    message: str = "Value did not satisfy predicate"

    @property
    def constraint_name(self) -> str: return getattr(self.fn, "__name__", "predicate")

    def __fast_check__(self, value: Any) -> Any:
        return self.fn(value)

    def validate(self, value: Any) -> Any:
        result = self.fn(value)
        if is_awaitable(result):
            return self._resolve(result, value)
        return self._result(result, value)

    async def _resolve(self, pending: Any, value: Any) -> SuccessResult | FailureResult:
        return self._result(await pending, value)

    def _result(self, passed: Any, value: Any) -> SuccessResult | FailureResult:
        return SuccessResult(value) if passed else FailureResult((Issue(self.message),))


# ============================================================================
# Factories
# ============================================================================

def literal(value: Any) -> Literal:
    return Literal(value)


def field_equals(key: str, value: Any) -> FieldEquals:
    return FieldEquals(key, value)


def predicate(fn: Callable[[Any], Any], message: str = "Value did not satisfy predicate") -> Predicate:
    return Predicate(fn, message)
