"""Pre-check Compilation

A pre-check is a cheap native predicate synthesised from a validator's
declared structure. It rejects values that cannot possibly pass (wrong
container, mismatched literal field, wrong tuple length) before the full
validator runs. It is a necessary condition only: a passing pre-check
always proceeds to full validation, and a shape the compiler does not
understand yields no pre-check at all.

Two structure sources are understood:
- pydantic-core schemas (``__pydantic_core_schema__`` / ``TypeAdapter.core_schema``)
- msgspec type info (``msgspec.inspect.type_info``)
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Callable

import msgspec.inspect as _insp

Precheck = Callable[[Any], bool]

_MISSING = object()
_NUMBER_TYPES = (int, float)


def is_plain_object(value: Any) -> bool:
    """Keyed objects that can carry a discriminator field."""
    return isinstance(value, Mapping)


def same_value(a: Any, b: Any) -> bool:
    """Identity-or-primitive equality.

    NaN equals NaN, 0.0 and -0.0 differ, bools never equal numbers.
    """
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return False
    if isinstance(a, _NUMBER_TYPES) and isinstance(b, _NUMBER_TYPES):
        if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
            return True
        return a == b and math.copysign(1.0, a) == math.copysign(1.0, b)
    if type(a) is not type(b):
        return False
    return isinstance(a, (str, bytes)) and a == b


def _any_of(checks: list[Precheck]) -> Precheck:
    def check(value: Any) -> bool:
        for candidate in checks:
            if candidate(value):
                return True
        return False
    return check


def _fields_check(checks: list[tuple[str, Precheck, bool]], accepts: Precheck | None = None) -> Precheck:
    """Check required/optional fields of a mapping; ``accepts`` short-circuits instances."""
    def check(value: Any) -> bool:
        if accepts is not None and accepts(value):
            return True
        if not isinstance(value, Mapping):
            return False
        for key, field_check, required in checks:
            item = value.get(key, _MISSING)
            if item is _MISSING:
                if required:
                    return False
                continue
            if not field_check(item):
                return False
        return True
    return check


# ============================================================================
# pydantic-core schemas
# ============================================================================

def compile_pydantic_precheck(schema: Any, definitions: Mapping[str, Any] | None = None,
        seen: frozenset[str] = frozenset()) -> Precheck | None:
    """Build a pre-check from a pydantic-core schema dict.

    Lax mode coerces primitives ("1" -> 1), so no primitive type checks are
    synthesised; only literals, containers of keyed fields and unions.
    """
    if not isinstance(schema, Mapping):
        return None

    kind = schema.get("type")

    if kind == "literal":
        expected = list(schema.get("expected", ()))
        if len(expected) != 1:
            return None
        literal = expected[0]
        return lambda value: _equal(value, literal)

    if kind == "none":
        return lambda value: value is None

    if kind == "nullable":
        inner = compile_pydantic_precheck(schema.get("schema"), definitions, seen)
        if inner is None:
            return None
        return lambda value: value is None or inner(value)

    if kind in ("default", "function-after"):
        return compile_pydantic_precheck(schema.get("schema"), definitions, seen)

    if kind == "definitions":
        found = dict(definitions or {})
        for item in schema.get("definitions", ()):
            if isinstance(item, Mapping) and "ref" in item:
                found[item["ref"]] = item
        return compile_pydantic_precheck(schema.get("schema"), found, seen)

    if kind == "definition-ref":
        ref = schema.get("schema_ref")
        # Recursive references get no pre-check
        if not definitions or ref not in definitions or ref in seen:
            return None
        return compile_pydantic_precheck(definitions[ref], definitions, seen | {ref})

    if kind == "model":
        cls = schema.get("cls")
        config = schema.get("config") or {}
        if schema.get("root_model") or config.get("from_attributes") or not isinstance(cls, type):
            return None
        inner = schema.get("schema") or {}
        # Model validators (mode="before", "wrap", "plain") may accept any input
        if inner.get("type") != "model-fields":
            return None
        return _fields_check(_pydantic_field_checks(inner.get("fields", {}), definitions, seen),
            accepts=lambda value: isinstance(value, cls))

    if kind in ("model-fields", "typed-dict"):
        return _fields_check(_pydantic_field_checks(schema.get("fields", {}), definitions, seen))

    if kind == "dict":
        return is_plain_object

    if kind == "union":
        checks: list[Precheck] = []
        for choice in schema.get("choices", ()):
            option = choice[0] if isinstance(choice, tuple) else choice
            check = compile_pydantic_precheck(option, definitions, seen)
            if check is None:
                return None
            checks.append(check)
        return _any_of(checks) if checks else None

    if kind == "tagged-union":
        key = schema.get("discriminator")
        choices = schema.get("choices") or {}
        if not isinstance(key, str) or not choices:
            return None
        options = {tag: compile_pydantic_precheck(option, definitions, seen) for tag, option in choices.items()}

        def tagged(value: Any) -> bool:
            if not isinstance(value, Mapping):
                # model instances are discriminated by attribute
                return True
            tag = value.get(key, _MISSING)
            if tag is _MISSING:
                return False
            try:
                if tag not in options:
                    return True
            except TypeError:
                return False
            option = options[tag]
            return option is None or option(value)

        return tagged

    return None


def _pydantic_field_checks(fields: Mapping[str, Any], definitions: Mapping[str, Any] | None,
        seen: frozenset[str]) -> list[tuple[str, Precheck, bool]]:
    checks: list[tuple[str, Precheck, bool]] = []
    for name, field in fields.items():
        if not isinstance(field, Mapping) or field.get("validation_alias") is not None:
            continue
        inner = field.get("schema") or {}
        required = inner.get("type") != "default" and field.get("required", True)
        check = compile_pydantic_precheck(inner, definitions, seen)
        if check is not None or required:
            checks.append((name, check or _always, required))
    return checks


def _always(value: Any) -> bool:
    return True


def _equal(value: Any, literal: Any) -> bool:
    try:
        return bool(value == literal)
    except Exception:
        return False


# ============================================================================
# msgspec type info
# ============================================================================

def compile_msgspec_precheck(info: Any) -> Precheck | None:
    """Build a pre-check from ``msgspec.inspect`` type info (strict convert semantics)."""
    if isinstance(info, _insp.LiteralType):
        values = tuple(info.values)
        return lambda value: any(_equal(value, literal) for literal in values)

    if isinstance(info, _insp.StrType):
        return lambda value: isinstance(value, str)

    if isinstance(info, _insp.BoolType):
        return lambda value: isinstance(value, bool)

    if isinstance(info, _insp.IntType):
        return lambda value: isinstance(value, _NUMBER_TYPES) and not isinstance(value, bool)

    if isinstance(info, _insp.FloatType):
        return lambda value: isinstance(value, _NUMBER_TYPES) and not isinstance(value, bool)

    if isinstance(info, _insp.NoneType):
        return lambda value: value is None

    if isinstance(info, _insp.StructType):
        if info.array_like:
            return None
        cls = info.cls
        checks = []
        for field in info.fields:
            check = compile_msgspec_precheck(field.type)
            if check is not None or field.required:
                checks.append((field.encode_name, check or _always, field.required))
        fields_check = _fields_check(checks, accepts=lambda value: isinstance(value, cls))
        if info.tag_field is None:
            return fields_check
        tag_field, tag = info.tag_field, info.tag

        def tagged(value: Any) -> bool:
            if isinstance(value, Mapping) and tag_field in value and not _equal(value[tag_field], tag):
                return False
            return fields_check(value)

        return tagged

    if isinstance(info, _insp.TupleType):
        items = [compile_msgspec_precheck(item) for item in info.item_types]
        length = len(items)

        def fixed(value: Any) -> bool:
            if not isinstance(value, (list, tuple)) or len(value) != length:
                return False
            for check, item in zip(items, value):
                if check is not None and not check(item):
                    return False
            return True

        return fixed

    if isinstance(info, _insp.VarTupleType):
        return lambda value: isinstance(value, (list, tuple, set, frozenset))

    if isinstance(info, _insp.DictType):
        return is_plain_object

    if isinstance(info, _insp.UnionType):
        checks = []
        for option in info.types:
            check = compile_msgspec_precheck(option)
            if check is None:
                return None
            checks.append(check)
        return _any_of(checks) if checks else None

    return None


def msgspec_type_info(target: Any) -> Any | None:
    try:
        return _insp.type_info(target)
    except (TypeError, ValueError):
        return None
