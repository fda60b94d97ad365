"""Clauses and Dispatch Tables

A clause is one of two frozen variants:

- ``SchemaClause``: one or more validators, an optional guard, a handler
- ``PredicateClause``: a truthiness predicate over the raw input, a handler

When schema clauses share a discriminating literal field, ``build_dispatch_table``
indexes them by that field's value so a match only visits the clauses that
could accept the input, plus every clause that could not be indexed.
Pruning never reorders: candidates are still visited in declaration order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, Union

from schematch.config import get_settings
from schematch.logging import dispatch_logger
from schematch.standard import extract_discriminator, is_plain_object, same_value

log = dispatch_logger()

_MISSING = object()


@dataclass(frozen=True, slots=True)
class SchemaClause:
    schemas: tuple[Any, ...]
    handler: Callable[..., Any]
    guard: Callable[..., Any] | None = None


@dataclass(frozen=True, slots=True)
class PredicateClause:
    predicate: Callable[..., Any]
    handler: Callable[..., Any]


Clause = Union[SchemaClause, PredicateClause]


@dataclass(frozen=True, slots=True)
class DispatchTable:
    """Discriminator value -> ordered clause indices.

    - key: the shared discriminating field
    - table: value -> indices of clauses requiring that value
    - fallback: indices of clauses that are always tried
    - expected_values: distinct discriminator values in declaration order
    """
    key: str
    table: dict[Any, tuple[int, ...]]
    fallback: frozenset[int]
    expected_values: tuple[Any, ...]
    fallback_order: tuple[int, ...] = field(default=())

    def lookup(self, value: Any) -> tuple[int, ...] | None:
        """Clause indices registered for ``value`` (None when absent or unhashable)."""
        try:
            return self.table.get(value)
        except TypeError:
            return None

    def discriminator_value(self, input: Any) -> Any:
        return input.get(self.key, _MISSING) if is_plain_object(input) else _MISSING

    def candidates(self, input: Any) -> tuple[int, ...] | None:
        """Ordered clause indices to visit for ``input``; None means visit all."""
        if not is_plain_object(input):
            return None
        value = self.discriminator_value(input)
        indexed = () if value is _MISSING else (self.lookup(value) or ())
        if not indexed:
            return self.fallback_order
        if not self.fallback:
            return indexed
        return tuple(sorted(set(indexed) | self.fallback))


def is_missing(value: Any) -> bool:
    return value is _MISSING


def build_dispatch_table(clauses: Sequence[Clause]) -> DispatchTable | None:
    """Index ``clauses`` by a shared discriminator, or None if no table applies.

    Returns None for short clause lists, when no clause has a discriminator,
    or when two clauses discriminate on different keys.
    """
    settings = get_settings()
    if not settings.DISPATCH_ENABLED or len(clauses) < settings.dispatch_threshold:
        return None

    common_key: str | None = None
    indexed: list[tuple[int, Any]] = []
    fallback: list[int] = []

    for index, clause in enumerate(clauses):
        if isinstance(clause, PredicateClause):
            fallback.append(index)
            continue

        # Indexed only when every validator of the clause is discriminated
        found = [extract_discriminator(schema) for schema in clause.schemas]
        if not found or any(info is None for info in found):
            fallback.append(index)
            continue

        for info in found:
            if common_key is None:
                common_key = info.key
            elif common_key != info.key:
                log.debug("dispatch_table_skipped", reason="key_conflict", keys=[common_key, info.key])
                return None
            indexed.append((index, info.value))

    if common_key is None:
        return None

    table: dict[Any, list[int]] = {}
    expected: list[Any] = []
    for index, value in indexed:
        bucket = table.setdefault(value, [])
        if index not in bucket:
            bucket.append(index)
        # True, 1 and 1.0 share a bucket but are reported separately
        if not any(same_value(value, seen) for seen in expected):
            expected.append(value)

    log.debug("dispatch_table_built", key=common_key, buckets=len(table), fallback=len(fallback))
    return DispatchTable(
        key=common_key,
        table={value: tuple(indices) for value, indices in table.items()},
        fallback=frozenset(fallback),
        expected_values=tuple(expected),
        fallback_order=tuple(fallback),
    )
