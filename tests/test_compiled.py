import math
from typing import Literal

import msgspec
import pytest
from pydantic import BaseModel, TypeAdapter

from schematch import literal, predicate
from schematch.errors import SchemaContractError
from schematch.standard import ASYNC_REQUIRED, NO_MATCH, MsgspecType, compile_matcher

from helpers import (
    AllowsSchema,
    FastCheckSchema,
    ObjectSchema,
    UnitSchema,
    make_async_schema,
    number_schema,
    parse_number_schema,
)


class Cat(BaseModel):
    kind: Literal["cat"]
    lives: int


class Job(msgspec.Struct):
    kind: Literal["job"]
    retries: int


class Failure(Exception):
    """An exception that also looks like a validator failure."""

    def __init__(self) -> None:
        super().__init__("bad input")
        self.issues = [{"message": "bad input"}]


@pytest.mark.parametrize(
    ("schema", "strategy"),
    [
        (literal("a"), "literal"),
        (UnitSchema(1), "literal"),
        (FastCheckSchema(bool), "fast-check"),
        (predicate(bool), "fast-check"),
        (Cat, "pydantic"),
        (TypeAdapter(int), "pydantic"),
        (AllowsSchema(bool), "allows"),
        (Job, "msgspec"),
        (MsgspecType(int), "msgspec"),
        (number_schema(), "generic"),
        (ObjectSchema({"kind": literal("a")}), "generic"),
    ],
)
def test_strategy_selection(schema: object, strategy: str) -> None:
    assert compile_matcher(schema).strategy == strategy


def test_compile_rejects_non_validators() -> None:
    with pytest.raises(SchemaContractError):
        compile_matcher("not a schema")


def test_literal_identity_semantics() -> None:
    nan = compile_matcher(literal(math.nan))
    assert math.isnan(nan.check(math.nan))

    zero = compile_matcher(literal(0.0))
    assert zero.check(-0.0) is NO_MATCH
    assert zero.check(0.0) == 0.0
    assert zero.check(0) == 0.0

    one = compile_matcher(literal(1))
    assert one.check(True) is NO_MATCH


def test_unit_literal_returns_declared_value() -> None:
    compiled = compile_matcher(UnitSchema("x"))
    assert compiled.check("x") == "x"
    assert compiled.check("y") is NO_MATCH


def test_fast_check_passes_input_through() -> None:
    compiled = compile_matcher(FastCheckSchema(lambda value: value == "ok"))
    assert compiled.check("ok") == "ok"
    assert compiled.check("no") is NO_MATCH


def test_fast_check_returning_awaitable_requires_async() -> None:
    async def check(value: object) -> bool:
        return True

    assert compile_matcher(FastCheckSchema(check)).check(1) is ASYNC_REQUIRED


@pytest.mark.asyncio
async def test_fast_check_async() -> None:
    async def check(value: object) -> bool:
        return value == 1

    compiled = compile_matcher(FastCheckSchema(check))
    assert await compiled.check_async(1) == 1
    assert await compiled.check_async(2) is NO_MATCH


def test_pydantic_matcher_validates_and_converts() -> None:
    compiled = compile_matcher(Cat)
    assert compiled.check({"kind": "cat", "lives": "9"}) == Cat(kind="cat", lives=9)
    assert compiled.check({"kind": "dog", "lives": 9}) is NO_MATCH
    assert compiled.check({"kind": "cat", "lives": "many"}) is NO_MATCH
    assert compiled.check(5) is NO_MATCH


def test_pydantic_type_adapter_lax_mode() -> None:
    compiled = compile_matcher(TypeAdapter(int))
    assert compiled.check("12") == 12
    assert compiled.check("twelve") is NO_MATCH


def test_allows_without_transform() -> None:
    compiled = compile_matcher(AllowsSchema(lambda value: isinstance(value, str)))
    assert compiled.check("a") == "a"
    assert compiled.check(1) is NO_MATCH


def test_allows_with_transform() -> None:
    compiled = compile_matcher(AllowsSchema(lambda value: isinstance(value, str), transform=str.upper))
    assert compiled.check("abc") == "ABC"


def test_allows_transform_failure_is_no_match() -> None:
    def explode(value: object) -> object:
        raise Failure()

    compiled = compile_matcher(AllowsSchema(lambda value: True, transform=explode))
    assert compiled.check("abc") is NO_MATCH

    returned = compile_matcher(AllowsSchema(lambda value: True, transform=lambda value: {"issues": ["no"]}))
    assert returned.check("abc") is NO_MATCH


def test_allows_transform_other_errors_propagate() -> None:
    def explode(value: object) -> object:
        raise ValueError("boom")

    compiled = compile_matcher(AllowsSchema(lambda value: True, transform=explode))
    with pytest.raises(ValueError, match="boom"):
        compiled.check("abc")


def test_msgspec_matcher_is_strict() -> None:
    compiled = compile_matcher(Job)
    assert compiled.check({"kind": "job", "retries": 2}) == Job(kind="job", retries=2)
    assert compiled.check({"kind": "job", "retries": "2"}) is NO_MATCH
    assert compiled.check({"kind": "other", "retries": 2}) is NO_MATCH


def test_msgspec_async_wrapper_requires_async() -> None:
    assert compile_matcher(MsgspecType(int, is_async=True)).check(1) is ASYNC_REQUIRED


@pytest.mark.asyncio
async def test_msgspec_async_wrapper() -> None:
    compiled = compile_matcher(MsgspecType(int, is_async=True))
    assert await compiled.check_async(3) == 3
    assert await compiled.check_async("3") is NO_MATCH


def test_generic_matcher_delivers_transformed_value() -> None:
    compiled = compile_matcher(parse_number_schema())
    assert compiled.check("1.5") == 1.5
    assert compiled.check("x") is NO_MATCH


def test_generic_matcher_async_validator() -> None:
    compiled = compile_matcher(make_async_schema(lambda value: True))
    assert compiled.check(1) is ASYNC_REQUIRED


@pytest.mark.asyncio
async def test_generic_matcher_async_resolution() -> None:
    compiled = compile_matcher(make_async_schema(lambda value: value == "yes"))
    assert await compiled.check_async("yes") == "yes"
    assert await compiled.check_async("no") is NO_MATCH
