"""Validator Capability Contract

A validator is any object exposing ``__standard__`` with:

- ``version``: contract version (1)
- ``vendor``: name of the implementing library
- ``validate(value)``: returns a success result (``value``), a failure
  result (a non-empty sequence of ``issues``), or an awaitable of either

Results may be ``SuccessResult``/``FailureResult`` instances, mappings with a
``"value"``/``"issues"`` key, or any object with those attributes.

pydantic models and ``TypeAdapter`` instances, msgspec ``Struct`` types and
``MsgspecType`` wrappers do not carry ``__standard__`` themselves; they are
resolved into the contract by ``as_standard``.
"""
from __future__ import annotations

import inspect
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable

import msgspec
import pydantic_core
from pydantic import BaseModel, TypeAdapter

from schematch.errors import AsyncUsageError, SchemaContractError

STANDARD_ATTR = "__standard__"


@dataclass(frozen=True, slots=True)
class Issue:
    """One reason a value was rejected.

    - message: human-readable explanation
    - path: keys/indices to the offending field, None for the root
    """
    message: str
    path: tuple[Any, ...] | None = None

    @property
    def field_path(self) -> str:
        return format_path(self.path)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"message": self.message}
        if self.path: result["path"] = self.field_path
        return result


@dataclass(frozen=True, slots=True)
class SuccessResult:
    value: Any


@dataclass(frozen=True, slots=True)
class FailureResult:
    issues: tuple[Issue, ...]


@dataclass(frozen=True, slots=True)
class StandardProps:
    """The ``__standard__`` payload of a validator."""
    validate: Callable[[Any], Any]
    vendor: str = "unknown"
    version: int = 1


@dataclass(frozen=True, slots=True, weakref_slot=True)
class MsgspecType:
    """Wrap an arbitrary msgspec-convertible type as a validator.

    ``msgspec.Struct`` subclasses are recognised directly; other types
    (``int``, ``Literal["a"]``, ``tuple[int, str]``...) need this wrapper.
    ``is_async`` marks the target as only usable from the async surface.
    """
    type: Any
    is_async: bool = False


# ============================================================================
# Result inspection
# ============================================================================

def is_awaitable(value: Any) -> bool:
    return inspect.isawaitable(value)


def discard_awaitable(value: Any) -> None:
    """Close a coroutine that will never be awaited."""
    if inspect.iscoroutine(value):
        value.close()


def looks_like_failure(result: Any) -> bool:
    if isinstance(result, FailureResult):
        return True
    if isinstance(result, Mapping):
        return "issues" in result and result["issues"] is not None
    issues = getattr(result, "issues", None)
    return issues is not None and isinstance(issues, Sequence) and not isinstance(issues, (str, bytes))


def result_value(result: Any) -> Any:
    if isinstance(result, Mapping):
        return result.get("value")
    return getattr(result, "value", None)


def result_issues(result: Any) -> tuple[Issue, ...]:
    raw = result.get("issues") if isinstance(result, Mapping) else getattr(result, "issues", None)
    return tuple(coerce_issue(issue) for issue in raw or ())


def coerce_issue(issue: Any) -> Issue:
    if isinstance(issue, Issue):
        return issue
    if isinstance(issue, Mapping):
        message, path = issue.get("message", ""), issue.get("path")
    else:
        message, path = getattr(issue, "message", str(issue)), getattr(issue, "path", None)
    return Issue(message=str(message), path=tuple(_path_key(p) for p in path) if path else None)


def _path_key(segment: Any) -> Any:
    # Path segments may be {"key": ...} objects
    if isinstance(segment, Mapping) and "key" in segment:
        return segment["key"]
    return getattr(segment, "key", segment)


def format_path(path: Sequence[Any] | None) -> str:
    """Format a path tuple as a dotted path: ("user", "tags", 0) -> user.tags[0]."""
    if not path: return "$"
    parts: list[str] = []
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool): parts.append(f"[{segment}]")
        elif parts: parts.append(f".{segment}")
        else: parts.append(str(segment))
    return "".join(parts)


# ============================================================================
# Native validator recognition
# ============================================================================

def is_pydantic_model(schema: Any) -> bool:
    return isinstance(schema, type) and issubclass(schema, BaseModel) and schema is not BaseModel


def is_pydantic_schema(schema: Any) -> bool:
    return is_pydantic_model(schema) or isinstance(schema, TypeAdapter)


def pydantic_validator(schema: Any) -> Any:
    """The low-level ``SchemaValidator`` behind a model or TypeAdapter."""
    return schema.__pydantic_validator__ if is_pydantic_model(schema) else schema.validator


def pydantic_core_schema(schema: Any) -> Any:
    return schema.__pydantic_core_schema__ if is_pydantic_model(schema) else schema.core_schema


def is_msgspec_schema(schema: Any) -> bool:
    if isinstance(schema, MsgspecType):
        return True
    return isinstance(schema, type) and issubclass(schema, msgspec.Struct) and schema is not msgspec.Struct


def msgspec_target(schema: Any) -> Any:
    return schema.type if isinstance(schema, MsgspecType) else schema


def _pydantic_issues(exc: pydantic_core.ValidationError) -> tuple[Issue, ...]:
    return tuple(Issue(message=err.get("msg", "Validation failed"), path=tuple(err.get("loc", ())) or None)
        for err in exc.errors())


_MSGSPEC_PATH = re.compile(r" - at `\$(?P<path>[^`]*)`$")
_MSGSPEC_SEGMENT = re.compile(r"\.([^.\[]+)|\[(-?\d+)\]|\[(.+?)\]")


def _msgspec_issues(exc: msgspec.ValidationError) -> tuple[Issue, ...]:
    """Split "Expected `int`, got `str` - at `$.items[0]`" into message and path."""
    text = str(exc)
    found = _MSGSPEC_PATH.search(text)
    if not found:
        return (Issue(message=text),)
    path: list[Any] = []
    for name, index, other in _MSGSPEC_SEGMENT.findall(found.group("path")):
        if name: path.append(name)
        elif index: path.append(int(index))
        else: path.append(other)
    return (Issue(message=text[:found.start()], path=tuple(path) or None),)


def _pydantic_props(schema: Any) -> StandardProps:
    validator = pydantic_validator(schema)

    def validate(value: Any) -> SuccessResult | FailureResult:
        try:
            return SuccessResult(validator.validate_python(value))
        except pydantic_core.ValidationError as exc:
            return FailureResult(_pydantic_issues(exc))

    return StandardProps(validate=validate, vendor="pydantic")


def _msgspec_props(schema: Any) -> StandardProps:
    target = msgspec_target(schema)
    is_async = isinstance(schema, MsgspecType) and schema.is_async

    def convert(value: Any) -> SuccessResult | FailureResult:
        try:
            return SuccessResult(msgspec.convert(value, type=target))
        except msgspec.ValidationError as exc:
            return FailureResult(_msgspec_issues(exc))

    async def convert_async(value: Any) -> SuccessResult | FailureResult:
        return convert(value)

    return StandardProps(validate=convert_async if is_async else convert, vendor="msgspec")


# ============================================================================
# Contract resolution
# ============================================================================

def looks_like_standard_schema(thing: Any) -> bool:
    """True if ``thing`` can be used as a clause validator."""
    if thing is None or isinstance(thing, (str, bytes, int, float)):
        return False
    props = getattr(thing, STANDARD_ATTR, None)
    if props is not None and callable(getattr(props, "validate", None)):
        return True
    return is_pydantic_schema(thing) or is_msgspec_schema(thing)


def as_standard(schema: Any) -> StandardProps:
    """Resolve ``schema`` into its contract payload or raise ``SchemaContractError``."""
    props = getattr(schema, STANDARD_ATTR, None) if schema is not None else None
    if props is not None and callable(getattr(props, "validate", None)):
        if isinstance(props, StandardProps):
            return props
        return StandardProps(validate=props.validate, vendor=str(getattr(props, "vendor", "unknown")),
            version=int(getattr(props, "version", 1)))
    if is_pydantic_schema(schema):
        return _pydantic_props(schema)
    if is_msgspec_schema(schema):
        return _msgspec_props(schema)
    raise SchemaContractError(schema)


def assert_standard_schema(schema: Any) -> None:
    as_standard(schema)


def validate_sync(schema: Any, value: Any) -> SuccessResult | FailureResult:
    """Run a validator synchronously and normalise its result.

    Raises ``AsyncUsageError`` if the validator returns an awaitable.
    """
    result = as_standard(schema).validate(value)
    if is_awaitable(result):
        discard_awaitable(result)
        raise AsyncUsageError.for_schema()
    return normalize_result(result)


async def validate_async(schema: Any, value: Any) -> SuccessResult | FailureResult:
    result = as_standard(schema).validate(value)
    if is_awaitable(result):
        result = await result
    return normalize_result(result)


def normalize_result(result: Any) -> SuccessResult | FailureResult:
    if isinstance(result, (SuccessResult, FailureResult)):
        return result
    if looks_like_failure(result):
        return FailureResult(result_issues(result))
    return SuccessResult(result_value(result))
