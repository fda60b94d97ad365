"""Compiled-Matcher Cache

``get_compiled_matcher`` memoises adapter compilation per validator
identity. The matcher is stashed on the validator itself when its
namespace is writable; otherwise it goes into a weak-keyed table so the
cache never keeps a validator alive. Classes are never stashed, since a
subclass would inherit its parent's matcher through attribute lookup.

Entries never expire: validators must stay immutable while matched against.
"""
from __future__ import annotations

import weakref
from typing import Any

from schematch.config import get_settings
from schematch.logging import compile_logger

from .compiled import CompiledMatcher, compile_matcher

log = compile_logger()

CACHE_ATTR = "__schematch_compiled__"

_weak_cache: weakref.WeakKeyDictionary[Any, CompiledMatcher] = weakref.WeakKeyDictionary()


def _stashed(schema: Any) -> CompiledMatcher | None:
    if isinstance(schema, type):
        return None
    own = getattr(schema, "__dict__", None)
    if own is None:
        return None
    cached = own.get(CACHE_ATTR)
    return cached if isinstance(cached, CompiledMatcher) else None


def _weak_lookup(schema: Any) -> CompiledMatcher | None:
    try:
        return _weak_cache.get(schema)
    except TypeError:
        # not weak-referenceable
        return None


def _store(schema: Any, compiled: CompiledMatcher) -> str:
    if not isinstance(schema, type) and hasattr(schema, "__dict__"):
        try:
            setattr(schema, CACHE_ATTR, compiled)
            return "attribute"
        except (AttributeError, TypeError):
            pass
    try:
        _weak_cache[schema] = compiled
        return "weak-table"
    except TypeError:
        return "uncached"


def get_compiled_matcher(schema: Any) -> CompiledMatcher:
    """Return the compiled matcher for ``schema``, compiling it on first use."""
    cached = _stashed(schema) or _weak_lookup(schema)
    if cached is not None:
        return cached

    compiled = compile_matcher(schema)
    if not get_settings().CACHE_COMPILED:
        return compiled

    storage = _store(schema, compiled)
    if storage != "attribute":
        log.debug("matcher_cache_fallback", storage=storage, schema=type(schema).__name__)
    log.debug("matcher_compiled", strategy=compiled.strategy, storage=storage, schema=type(schema).__name__)
    return compiled


def clear_compiled_cache() -> None:
    """Drop weak-table entries (attribute-stashed matchers live and die with their validator)."""
    _weak_cache.clear()


def match_schema_sync(schema: Any, value: Any) -> Any:
    """Match one value; returns the matched value, ``NO_MATCH`` or ``ASYNC_REQUIRED``."""
    return get_compiled_matcher(schema).check(value)


async def match_schema_async(schema: Any, value: Any) -> Any:
    """Match one value; returns the matched value or ``NO_MATCH``."""
    return await get_compiled_matcher(schema).check_async(value)
