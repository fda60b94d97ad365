"""Adapter Compiler

Turns a validator object into a ``CompiledMatcher``: a pair of sync/async
functions returning the matched (possibly transformed) value, ``NO_MATCH``,
or (sync only) ``ASYNC_REQUIRED``.

Strategies, first applicable wins:
1. literal      - the object declares a single fixed acceptable value
2. fast-check   - the object exposes a boolean ``__fast_check__``
3. pydantic     - models / TypeAdapters, run through ``SchemaValidator``
4. allows       - objects exposing an ``allows`` predicate (+ optional transform)
5. msgspec      - Structs / ``MsgspecType``, run through ``msgspec.convert``
6. generic      - the ``__standard__.validate`` contract

Every strategy other than ``generic`` is a performance specialisation and
must agree with the generic path on what matches.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

import msgspec
import pydantic_core

from .contract import (
    as_standard,
    discard_awaitable,
    is_awaitable,
    is_msgspec_schema,
    is_pydantic_schema,
    looks_like_failure,
    msgspec_target,
    pydantic_core_schema,
    pydantic_validator,
    result_value,
)
from .precheck import (
    Precheck,
    compile_msgspec_precheck,
    compile_pydantic_precheck,
    msgspec_type_info,
    same_value,
)

FAST_CHECK_ATTR = "__fast_check__"


class Outcome(Enum):
    NO_MATCH = "no-match"
    ASYNC_REQUIRED = "async-required"

    def __repr__(self) -> str:
        return f"<{self.value}>"


NO_MATCH = Outcome.NO_MATCH
ASYNC_REQUIRED = Outcome.ASYNC_REQUIRED


@dataclass(frozen=True, slots=True)
class CompiledMatcher:
    """Cached sync/async matching functions for one validator."""
    check: Callable[[Any], Any]
    check_async: Callable[[Any], Awaitable[Any]]
    strategy: str = "generic"


def compile_matcher(schema: Any) -> CompiledMatcher:
    """Compile ``schema`` with the fastest applicable strategy.

    Raises ``SchemaContractError`` if ``schema`` is not a validator.
    """
    as_standard(schema)

    for compiler in (
        compile_literal_matcher,
        compile_fast_check_matcher,
        compile_pydantic_matcher,
        compile_allows_matcher,
        compile_msgspec_matcher,
    ):
        compiled = compiler(schema)
        if compiled is not None:
            return compiled

    return compile_generic_matcher(schema)


# ============================================================================
# Literal
# ============================================================================

def declared_literal(schema: Any) -> tuple[bool, Any]:
    """Return (True, literal) if ``schema`` declares a single acceptable value."""
    if isinstance(schema, type):
        return False, None
    own = getattr(schema, "__dict__", None) or {}
    if "unit" in own and getattr(schema, "includes_transform", False) is not True:
        return True, own["unit"]
    if getattr(schema, "type", None) == "literal" and hasattr(schema, "literal"):
        return True, schema.literal
    return False, None


def compile_literal_matcher(schema: Any) -> CompiledMatcher | None:
    found, literal = declared_literal(schema)
    if not found:
        return None

    def check(value: Any) -> Any:
        return literal if same_value(value, literal) else NO_MATCH

    async def check_async(value: Any) -> Any:
        return check(value)

    return CompiledMatcher(check, check_async, "literal")


# ============================================================================
# Boolean fast check
# ============================================================================

def compile_fast_check_matcher(schema: Any) -> CompiledMatcher | None:
    fast_check = getattr(schema, FAST_CHECK_ATTR, None)
    if not callable(fast_check):
        return None

    def check(value: Any) -> Any:
        result = fast_check(value)
        if is_awaitable(result):
            discard_awaitable(result)
            return ASYNC_REQUIRED
        return value if result else NO_MATCH

    async def check_async(value: Any) -> Any:
        result = fast_check(value)
        if is_awaitable(result):
            result = await result
        return value if result else NO_MATCH

    return CompiledMatcher(check, check_async, "fast-check")


# ============================================================================
# Family A: pydantic-core
# ============================================================================

def compile_pydantic_matcher(schema: Any) -> CompiledMatcher | None:
    if not is_pydantic_schema(schema):
        return None

    validator = pydantic_validator(schema)
    precheck = _safe_precheck(compile_pydantic_precheck, lambda: pydantic_core_schema(schema))

    def check(value: Any) -> Any:
        if precheck is not None and not precheck(value):
            return NO_MATCH
        try:
            return validator.validate_python(value)
        except pydantic_core.ValidationError:
            return NO_MATCH

    async def check_async(value: Any) -> Any:
        return check(value)

    return CompiledMatcher(check, check_async, "pydantic")


# ============================================================================
# Family B: allows-protocol
# ============================================================================

def compile_allows_matcher(schema: Any) -> CompiledMatcher | None:
    allows = getattr(schema, "allows", None)
    if not callable(allows):
        return None

    transform = schema if callable(schema) and getattr(schema, "includes_transform", False) is True else None

    def check(value: Any) -> Any:
        if not allows(value):
            return NO_MATCH
        if transform is None:
            return value
        result = _call_transform(transform, value)
        if is_awaitable(result):
            discard_awaitable(result)
            return ASYNC_REQUIRED
        return result

    async def check_async(value: Any) -> Any:
        if not allows(value):
            return NO_MATCH
        if transform is None:
            return value
        result = _call_transform(transform, value)
        if is_awaitable(result):
            try:
                result = await result
            except Exception as exc:
                if looks_like_failure(exc):
                    return NO_MATCH
                raise
            return NO_MATCH if looks_like_failure(result) else result
        return result

    return CompiledMatcher(check, check_async, "allows")


def _call_transform(transform: Callable[[Any], Any], value: Any) -> Any:
    """Invoke a transforming validator; a raised or returned failure shape is ``NO_MATCH``."""
    try:
        result = transform(value)
    except Exception as exc:
        if looks_like_failure(exc):
            return NO_MATCH
        raise
    if not is_awaitable(result) and looks_like_failure(result):
        return NO_MATCH
    return result


# ============================================================================
# Family C: msgspec
# ============================================================================

def compile_msgspec_matcher(schema: Any) -> CompiledMatcher | None:
    if not is_msgspec_schema(schema):
        return None

    target = msgspec_target(schema)
    is_async = getattr(schema, "is_async", False) is True
    precheck = _safe_precheck(compile_msgspec_precheck, lambda: msgspec_type_info(target))

    def run(value: Any) -> Any:
        if precheck is not None and not precheck(value):
            return NO_MATCH
        try:
            return msgspec.convert(value, type=target)
        except msgspec.ValidationError:
            return NO_MATCH

    def check(value: Any) -> Any:
        if is_async:
            return ASYNC_REQUIRED
        return run(value)

    async def check_async(value: Any) -> Any:
        return run(value)

    return CompiledMatcher(check, check_async, "msgspec")


def _safe_precheck(compiler: Callable[[Any], Precheck | None], source: Callable[[], Any]) -> Precheck | None:
    # Structure that cannot be read (unbuilt models, exotic types) just means no pre-check
    try:
        return compiler(source())
    except (AttributeError, KeyError, TypeError, ValueError):
        return None


# ============================================================================
# Generic fallback
# ============================================================================

def compile_generic_matcher(schema: Any) -> CompiledMatcher:
    validate = as_standard(schema).validate

    def check(value: Any) -> Any:
        result = validate(value)
        if is_awaitable(result):
            discard_awaitable(result)
            return ASYNC_REQUIRED
        return NO_MATCH if looks_like_failure(result) else result_value(result)

    async def check_async(value: Any) -> Any:
        result = validate(value)
        if is_awaitable(result):
            result = await result
        return NO_MATCH if looks_like_failure(result) else result_value(result)

    return CompiledMatcher(check, check_async, "generic")

