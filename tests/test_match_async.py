"""Inline asynchronous match expressions."""

import asyncio

import pytest

from schematch import NonExhaustiveError, literal, match, match_async
from schematch.errors import MatchDefinitionError

from helpers import make_async_schema, number_schema, parse_number_schema, string_schema


@pytest.mark.asyncio
async def test_async_validator_and_handler() -> None:
    async def handler(value: int) -> int:
        await asyncio.sleep(0)
        return value * 2

    result = await match_async(21).case(make_async_schema(lambda value: value == 21), handler).default("assert")
    assert result == 42


@pytest.mark.asyncio
async def test_first_match_wins() -> None:
    calls: list[object] = []
    result = await (
        match_async(5)
        .case(make_async_schema(lambda value: isinstance(value, int)), lambda value: "first")
        .case(number_schema(calls=calls), lambda value: "second")
        .default("assert")
    )
    assert result == "first"
    assert calls == []


@pytest.mark.asyncio
async def test_async_guard_fallthrough() -> None:
    async def big(value: int) -> bool:
        return value > 10

    async def classify(value: int) -> str:
        return await (
            match_async(value)
            .case(number_schema(), big, lambda n: "big")
            .case(number_schema(), lambda n: "small")
            .default("assert")
        )

    assert await classify(4) == "small"
    assert await classify(12) == "big"


@pytest.mark.asyncio
async def test_async_predicate() -> None:
    async def is_empty(input: object) -> bool:
        return input == ""

    assert await match_async("").when(is_empty, lambda value: "empty").default("assert") == "empty"
    assert await match_async("x").when(is_empty, lambda value: "empty").default(lambda input: "full") == "full"


@pytest.mark.asyncio
async def test_async_default_handler() -> None:
    async def fallback(input: object) -> str:
        return f"fallback {input}"

    assert await match_async(1).case(string_schema(), lambda v: v).default(fallback) == "fallback 1"


@pytest.mark.asyncio
async def test_reject_and_assert() -> None:
    error = await match_async("x").case(number_schema(), lambda v: v).default("reject")
    assert isinstance(error, NonExhaustiveError)

    with pytest.raises(NonExhaustiveError):
        await match_async("x").case(number_schema(), lambda v: v).default("never")

    with pytest.raises(NonExhaustiveError):
        await match_async("x").exhaustive()


@pytest.mark.asyncio
async def test_invalid_mode_is_reported_before_awaiting() -> None:
    with pytest.raises(MatchDefinitionError):
        match_async(1).default("maybe")


@pytest.mark.asyncio
async def test_resolved_expression_rejects_new_clauses() -> None:
    expression = match_async(1).case(number_schema(), lambda v: v)
    assert await expression.default("assert") == 1
    assert not expression.pending
    with pytest.raises(MatchDefinitionError):
        expression.case(number_schema(), lambda v: v)


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [1, "2", "x", None, {"type": "a"}, [1]])
async def test_sync_async_parity(value: object) -> None:
    def sync_result() -> object:
        return (
            match(value)
            .case(parse_number_schema(), lambda n: ("parsed", n))
            .case(number_schema(), lambda n, input: n > 0, lambda n: ("positive", n))
            .case(literal(None), lambda n: "none")
            .when(lambda input: isinstance(input, list), lambda input: "list")
            .default(lambda input: "fallback")
        )

    async_result = await (
        match_async(value)
        .case(parse_number_schema(), lambda n: ("parsed", n))
        .case(number_schema(), lambda n, input: n > 0, lambda n: ("positive", n))
        .case(literal(None), lambda n: "none")
        .when(lambda input: isinstance(input, list), lambda input: "list")
        .default(lambda input: "fallback")
    )
    assert async_result == sync_result()


@pytest.mark.asyncio
async def test_typing_helpers_are_passthrough() -> None:
    expression = match_async(1)
    assert expression.output() is expression
    assert expression.return_type() is expression
    assert expression.narrow() is expression
    assert await expression.case(number_schema(), lambda n: n + 1).default("assert") == 2
