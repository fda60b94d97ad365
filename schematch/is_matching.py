"""Type-guard helpers.

``is_matching(schema)`` returns a predicate; ``is_matching(schema, value)``
answers directly. Both check the validator contract before anything runs.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable

from schematch.errors import AsyncUsageError
from schematch.standard import (
    ASYNC_REQUIRED,
    NO_MATCH,
    assert_standard_schema,
    match_schema_async,
    match_schema_sync,
)

_UNSET = object()


def _matches(schema: Any, value: Any) -> bool:
    result = match_schema_sync(schema, value)
    if result is ASYNC_REQUIRED:
        raise AsyncUsageError.for_schema(surface="is_matching_async")
    return result is not NO_MATCH


async def _matches_async(schema: Any, value: Any) -> bool:
    return await match_schema_async(schema, value) is not NO_MATCH


def is_matching(schema: Any, value: Any = _UNSET) -> bool | Callable[[Any], bool]:
    assert_standard_schema(schema)
    if value is _UNSET:
        return lambda next_value: _matches(schema, next_value)
    return _matches(schema, value)


def is_matching_async(schema: Any, value: Any = _UNSET) -> Awaitable[bool] | Callable[[Any], Awaitable[bool]]:
    """Async counterpart of ``is_matching``; the answer is always awaited."""
    assert_standard_schema(schema)
    if value is _UNSET:
        return lambda next_value: _matches_async(schema, next_value)
    return _matches_async(schema, value)
