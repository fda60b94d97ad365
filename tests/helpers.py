"""Validator factories shared by the test suite.

Each factory builds an object that satisfies only the ``__standard__``
contract unless stated otherwise, so tests exercise the generic path by
default and opt into the specialised ones explicitly.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from types import SimpleNamespace
from typing import Any, Callable

from schematch.standard import FailureResult, Issue, StandardProps, SuccessResult, validate_sync


def make_schema(
    check: Callable[[Any], bool],
    message: str = "Invalid value",
    transform: Callable[[Any], Any] | None = None,
    calls: list[Any] | None = None,
) -> SimpleNamespace:
    def validate(value: Any) -> SuccessResult | FailureResult:
        if calls is not None:
            calls.append(value)
        if not check(value):
            return FailureResult((Issue(message),))
        return SuccessResult(transform(value) if transform else value)

    return SimpleNamespace(__standard__=StandardProps(validate=validate, vendor="test"))


def make_async_schema(check: Callable[[Any], bool], message: str = "Invalid value") -> SimpleNamespace:
    async def validate(value: Any) -> SuccessResult | FailureResult:
        await asyncio.sleep(0)
        if not check(value):
            return FailureResult((Issue(message),))
        return SuccessResult(value)

    return SimpleNamespace(__standard__=StandardProps(validate=validate, vendor="test"))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def number_schema(**kwargs: Any) -> SimpleNamespace:
    return make_schema(is_number, "Expected number", **kwargs)


def string_schema(**kwargs: Any) -> SimpleNamespace:
    return make_schema(lambda value: isinstance(value, str), "Expected string", **kwargs)


def _parses_as_number(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        float(value)
    except ValueError:
        return False
    return True


def parse_number_schema() -> SimpleNamespace:
    """Accepts numeric strings and outputs the parsed float."""
    return make_schema(_parses_as_number, "Expected numeric string", transform=float)


class ObjectSchema:
    """Generic object shape: ``type == "object"`` with an ``entries`` mapping."""

    type = "object"

    def __init__(self, entries: Mapping[str, Any]) -> None:
        self.entries = dict(entries)
        self.__standard__ = StandardProps(validate=self._validate, vendor="test")

    def _validate(self, value: Any) -> SuccessResult | FailureResult:
        if not isinstance(value, Mapping):
            return FailureResult((Issue("Expected object"),))
        issues: list[Issue] = []
        for key, schema in self.entries.items():
            if key not in value:
                issues.append(Issue("Missing required field", path=(key,)))
                continue
            result = validate_sync(schema, value[key])
            if isinstance(result, FailureResult):
                issues.extend(Issue(issue.message, path=(key, *(issue.path or ()))) for issue in result.issues)
        return FailureResult(tuple(issues)) if issues else SuccessResult(dict(value))


class UnitSchema:
    """Literal shape declared through an own ``unit`` attribute."""

    def __init__(self, unit: Any) -> None:
        self.unit = unit
        self.__standard__ = StandardProps(validate=self._validate, vendor="test")

    def _validate(self, value: Any) -> SuccessResult | FailureResult:
        if value == self.unit:
            return SuccessResult(value)
        return FailureResult((Issue(f"Expected {self.unit!r}"),))


class AllowsSchema:
    """Validator exposing ``allows`` plus an optional transforming call."""

    def __init__(self, allows: Callable[[Any], bool], transform: Callable[[Any], Any] | None = None) -> None:
        self._allows = allows
        self._transform = transform
        self.includes_transform = transform is not None
        self.__standard__ = StandardProps(validate=self._validate, vendor="test")

    def allows(self, value: Any) -> bool:
        return self._allows(value)

    def __call__(self, value: Any) -> Any:
        return self._transform(value) if self._transform else value

    def _validate(self, value: Any) -> SuccessResult | FailureResult:
        if not self._allows(value):
            return FailureResult((Issue("Not allowed"),))
        return SuccessResult(self(value))


class FastCheckSchema:
    """Validator exposing a boolean ``__fast_check__``."""

    def __init__(self, check: Callable[[Any], Any]) -> None:
        self._check = check
        self.__standard__ = StandardProps(validate=self._validate, vendor="test")

    def __fast_check__(self, value: Any) -> Any:
        return self._check(value)

    def _validate(self, value: Any) -> SuccessResult | FailureResult:
        return SuccessResult(value) if self._check(value) else FailureResult((Issue("Fast check failed"),))
