"""Discriminator Extraction

Answers "does this validator require field K to equal literal V?" by
reading its declared structure. A discriminator is a necessary condition
only: it prunes dispatch candidates, never replaces validation.

Recognised shapes:
- generic object shape: ``type == "object"`` with an ``entries`` mapping of
  field validators, where a field validator is a generic literal
- pydantic ``model`` / ``typed-dict`` core schemas with a required,
  non-aliased single-value literal field
- msgspec ``StructType`` with a required single-value ``LiteralType`` field
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import msgspec.inspect as _insp

from .compiled import declared_literal
from .contract import (
    is_msgspec_schema,
    is_pydantic_schema,
    msgspec_target,
    pydantic_core_schema,
)
from .precheck import msgspec_type_info


@dataclass(frozen=True, slots=True)
class DiscriminatorInfo:
    key: str
    value: Any


def is_dispatchable(value: Any) -> bool:
    """Values usable as dispatch-table keys."""
    if value is None or isinstance(value, (str, bool)):
        return True
    if type(value) is int:
        return True
    if type(value) is float:
        return not math.isnan(value)
    return False


def extract_discriminator(schema: Any) -> DiscriminatorInfo | None:
    """Return the single-field literal requirement of ``schema``, if provable."""
    try:
        if is_pydantic_schema(schema):
            return _from_pydantic(pydantic_core_schema(schema))
        if is_msgspec_schema(schema):
            return _from_msgspec(msgspec_type_info(msgspec_target(schema)))
        return _from_entries(schema)
    except (AttributeError, KeyError, TypeError):
        return None


def _from_entries(schema: Any) -> DiscriminatorInfo | None:
    if isinstance(schema, type) or getattr(schema, "type", None) != "object":
        return None
    entries = getattr(schema, "entries", None)
    if not isinstance(entries, Mapping):
        return None
    for key, entry in entries.items():
        found, literal = declared_literal(entry)
        if found and isinstance(key, str) and is_dispatchable(literal):
            return DiscriminatorInfo(key, literal)
    return None


def _unwrap_pydantic(schema: Any) -> Any:
    definitions: dict[str, Any] = {}
    while isinstance(schema, Mapping):
        kind = schema.get("type")
        if kind == "definitions":
            definitions.update((item["ref"], item) for item in schema.get("definitions", ())
                if isinstance(item, Mapping) and "ref" in item)
        elif kind == "definition-ref" and schema.get("schema_ref") in definitions:
            schema = definitions.pop(schema["schema_ref"])
            continue
        elif kind != "function-after":
            return schema
        schema = schema.get("schema")
    return schema


def _from_pydantic(schema: Any) -> DiscriminatorInfo | None:
    schema = _unwrap_pydantic(schema)
    if not isinstance(schema, Mapping):
        return None

    kind = schema.get("type")
    if kind == "model":
        config = schema.get("config") or {}
        if schema.get("root_model") or config.get("from_attributes"):
            return None
        fields_schema = schema.get("schema") or {}
        if fields_schema.get("type") != "model-fields":
            return None
        fields = fields_schema.get("fields", {})
    elif kind == "typed-dict":
        fields = schema.get("fields", {})
    else:
        return None

    for name, field in fields.items():
        if field.get("validation_alias") is not None or field.get("required", True) is False:
            continue
        inner = field.get("schema") or {}
        if inner.get("type") != "literal":
            continue
        expected = list(inner.get("expected", ()))
        if len(expected) == 1 and type(expected[0]) in (str, int, bool, type(None)):
            return DiscriminatorInfo(name, expected[0])
    return None


def _from_msgspec(info: Any) -> DiscriminatorInfo | None:
    if not isinstance(info, _insp.StructType) or info.array_like:
        return None
    for field in info.fields:
        if not field.required or not isinstance(field.type, _insp.LiteralType):
            continue
        values = tuple(field.type.values)
        if len(values) == 1 and type(values[0]) in (str, int):
            return DiscriminatorInfo(field.encode_name, values[0])
    return None
