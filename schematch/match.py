"""Match Expressions

Two surfaces, each in a sync and an async variant:

- Inline expressions, built around one concrete input:

    match(value).case(User, lambda user: user.name).default("assert")
    await match_async(value).case(User, fetch_profile).default(lambda v: None)

- Reusable matchers, built without an input; ``default`` returns a callable:

    describe = match.case(Circle, area).case(Square, area).default("reject")
    describe(shape)

Semantics shared by both surfaces:
- clauses are tried in declaration order; the first one that matches wins
- a schema clause tries its validators left to right; a guard rejection
  moves on to the next validator, then to the next clause
- handlers and guards receive ``(value, input)``, predicates and default
  handlers receive ``(input)``; callables declaring fewer positional
  parameters receive only the leading arguments
- the sync surface raises ``AsyncUsageError`` instead of blocking on
  anything that must be awaited

Reusable matchers index their clauses by discriminator on first use and
publish ``__standard__`` themselves, so they nest as clause validators.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from schematch.dispatch import (
    Clause,
    DispatchTable,
    PredicateClause,
    SchemaClause,
    build_dispatch_table,
)
from schematch.errors import AsyncUsageError, ErrorCode, MatchDefinitionError, NonExhaustiveError
from schematch.reporting import TriedSchema, build_failure_result, build_non_exhaustive_error
from schematch.schemas import FieldEquals
from schematch.standard import (
    ASYNC_REQUIRED,
    NO_MATCH,
    StandardProps,
    SuccessResult,
    assert_standard_schema,
    discard_awaitable,
    is_awaitable,
    looks_like_standard_schema,
    match_schema_async,
    match_schema_sync,
)

DEFAULT_MODES = ("assert", "never", "reject")

_UNBUILT = object()


@dataclass(frozen=True, slots=True)
class MatchState:
    matched: bool
    value: Any = None


UNMATCHED = MatchState(matched=False)


# ============================================================================
# Clause construction
# ============================================================================

def _positional_arity(fn: Callable[..., Any]) -> int | None:
    """Number of positional parameters ``fn`` accepts; None when unbounded.

    Builtin types (``str``, ``int``, ``dict``, ...) and callables without an
    introspectable signature are treated as taking one argument.
    """
    if isinstance(fn, type) and fn.__module__ == "builtins":
        return 1
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 1
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def adapt_arity(fn: Callable[..., Any], max_args: int) -> Callable[..., Any]:
    """Wrap ``fn`` so it is only passed as many leading arguments as it declares."""
    arity = _positional_arity(fn)
    if arity is None or arity >= max_args:
        return fn
    return lambda *args: fn(*args[:arity])


def _require_callable(thing: Any, role: str) -> None:
    if not callable(thing):
        raise MatchDefinitionError(f"{role} must be callable, got {type(thing).__name__}")


def _split_guard(head: list[Any]) -> Callable[..., Any] | None:
    if len(head) == 2 and callable(head[1]) and not looks_like_standard_schema(head[1]):
        return head.pop()
    return None


def parse_case(args: Sequence[Any]) -> SchemaClause:
    """Build a clause from ``case(*schemas, handler)`` or ``case(schema, guard, handler)``."""
    if len(args) < 2:
        raise MatchDefinitionError("case() takes at least one validator and a handler")
    *head, handler = args
    _require_callable(handler, "case() handler")
    guard = _split_guard(head)
    for schema in head:
        assert_standard_schema(schema)
    return SchemaClause(
        schemas=tuple(head),
        handler=adapt_arity(handler, 2),
        guard=adapt_arity(guard, 2) if guard is not None else None,
    )


def parse_keyed_case(key: str, args: Sequence[Any]) -> SchemaClause:
    """Build a clause from ``case(*values, handler)`` on a matcher keyed by ``key``."""
    if len(args) < 2:
        raise MatchDefinitionError(f"case() on key {key!r} takes at least one value and a handler")
    *values, handler = args
    _require_callable(handler, "case() handler")
    guard = _split_guard(values)
    return SchemaClause(
        schemas=tuple(FieldEquals(key, value) for value in values),
        handler=adapt_arity(handler, 2),
        guard=adapt_arity(guard, 2) if guard is not None else None,
    )


def parse_when(predicate: Callable[..., Any], handler: Callable[..., Any]) -> PredicateClause:
    _require_callable(predicate, "when() predicate")
    _require_callable(handler, "when() handler")
    return PredicateClause(predicate=adapt_arity(predicate, 1), handler=adapt_arity(handler, 2))


def parse_default(mode: Any) -> tuple[str, Callable[..., Any] | None]:
    """Return ("handler", fn) or (mode, None) for one of the named modes."""
    if callable(mode):
        return "handler", adapt_arity(mode, 1)
    if mode in DEFAULT_MODES:
        return mode, None
    raise MatchDefinitionError(
        f"default() takes one of {', '.join(DEFAULT_MODES)} or a callable, got {mode!r}",
        ErrorCode.E3002_INVALID_DEFAULT,
    )


def tried_schemas(clauses: Iterable[Clause]) -> list[TriedSchema]:
    """Every declared validator with the 1-based ordinal of its clause."""
    return [(ordinal, schema) for ordinal, clause in enumerate(clauses, 1)
        if isinstance(clause, SchemaClause) for schema in clause.schemas]


# ============================================================================
# Clause evaluation
# ============================================================================

def run_clause(clause: Clause, input: Any) -> MatchState:
    """Evaluate one clause synchronously."""
    if isinstance(clause, PredicateClause):
        passed = clause.predicate(input)
        if is_awaitable(passed):
            discard_awaitable(passed)
            raise AsyncUsageError.for_predicate()
        return MatchState(True, clause.handler(input, input)) if passed else UNMATCHED

    for schema in clause.schemas:
        result = match_schema_sync(schema, input)
        if result is NO_MATCH:
            continue
        if result is ASYNC_REQUIRED:
            raise AsyncUsageError.for_schema()
        if clause.guard is not None:
            passed = clause.guard(result, input)
            if is_awaitable(passed):
                discard_awaitable(passed)
                raise AsyncUsageError.for_guard()
            if not passed:
                continue
        return MatchState(True, clause.handler(result, input))
    return UNMATCHED


async def _resolved(value: Any) -> Any:
    return await value if is_awaitable(value) else value


async def run_clause_async(clause: Clause, input: Any) -> MatchState:
    """Evaluate one clause, awaiting validators, guards and handlers as needed."""
    if isinstance(clause, PredicateClause):
        if not await _resolved(clause.predicate(input)):
            return UNMATCHED
        return MatchState(True, await _resolved(clause.handler(input, input)))

    for schema in clause.schemas:
        result = await match_schema_async(schema, input)
        if result is NO_MATCH:
            continue
        if clause.guard is not None and not await _resolved(clause.guard(result, input)):
            continue
        return MatchState(True, await _resolved(clause.handler(result, input)))
    return UNMATCHED


def _settle(mode: str, error: Callable[[], NonExhaustiveError]) -> NonExhaustiveError:
    """Return the error for "reject", raise it for "assert" and "never"."""
    if mode == "reject":
        return error()
    raise error()


# ============================================================================
# Inline expressions
# ============================================================================

class MatchExpression:
    """Synchronous match over one input. Clauses run as they are declared."""

    def __init__(self, input: Any) -> None:
        self._input = input
        self._state = UNMATCHED
        self._clauses: list[Clause] = []

    def _add(self, clause: Clause) -> MatchExpression:
        self._clauses.append(clause)
        if not self._state.matched:
            self._state = run_clause(clause, self._input)
        return self

    def case(self, *args: Any) -> MatchExpression:
        return self._add(parse_case(args))

    def when(self, predicate: Callable[..., Any], handler: Callable[..., Any]) -> MatchExpression:
        return self._add(parse_when(predicate, handler))

    def output(self) -> MatchExpression:
        return self

    def return_type(self) -> MatchExpression:
        return self

    def narrow(self) -> MatchExpression:
        return self

    def default(self, mode: Any) -> Any:
        mode, handler = parse_default(mode)
        if self._state.matched:
            return self._state.value
        if handler is not None:
            return handler(self._input)
        return _settle(mode, lambda: build_non_exhaustive_error(self._input, tried_schemas(self._clauses)))

    def otherwise(self, handler: Callable[..., Any]) -> Any:
        return self.default(handler)

    def exhaustive(self) -> Any:
        return self.default("assert")


class MatchExpressionAsync:
    """Asynchronous match over one input.

    Clauses are recorded as steps; awaiting ``default(...)`` moves the
    pipeline from pending to resolved, running the steps in order until
    one matches.
    """

    def __init__(self, input: Any) -> None:
        self._input = input
        self._steps: list[Clause] = []
        self._state: MatchState | None = None

    @property
    def pending(self) -> bool:
        return self._state is None

    def _add(self, clause: Clause) -> MatchExpressionAsync:
        if not self.pending:
            raise MatchDefinitionError("cannot add clauses to a resolved match expression")
        self._steps.append(clause)
        return self

    def case(self, *args: Any) -> MatchExpressionAsync:
        return self._add(parse_case(args))

    def when(self, predicate: Callable[..., Any], handler: Callable[..., Any]) -> MatchExpressionAsync:
        return self._add(parse_when(predicate, handler))

    def output(self) -> MatchExpressionAsync:
        return self

    def return_type(self) -> MatchExpressionAsync:
        return self

    def narrow(self) -> MatchExpressionAsync:
        return self

    async def _resolve(self) -> MatchState:
        if self._state is None:
            state = UNMATCHED
            for clause in self._steps:
                state = await run_clause_async(clause, self._input)
                if state.matched:
                    break
            self._state = state
        return self._state

    def default(self, mode: Any) -> Any:
        """Return a coroutine resolving the expression (mode is checked immediately)."""
        mode, handler = parse_default(mode)
        return self._finish(mode, handler)

    async def _finish(self, mode: str, handler: Callable[..., Any] | None) -> Any:
        state = await self._resolve()
        if state.matched:
            return state.value
        if handler is not None:
            return await _resolved(handler(self._input))
        return _settle(mode, lambda: build_non_exhaustive_error(self._input, tried_schemas(self._steps)))

    def otherwise(self, handler: Callable[..., Any]) -> Any:
        return self.default(handler)

    def exhaustive(self) -> Any:
        return self.default("assert")


# ============================================================================
# Reusable matchers
# ============================================================================

class ReusableMatcher:
    """Immutable clause list matched against inputs supplied later.

    Every ``case``/``when`` returns a new matcher. Matchers created by
    ``at(key)`` turn ``case(value, ..., handler)`` into clauses over
    ``input[key] == value``.
    """

    def __init__(self, clauses: Sequence[Clause] = (), key: str | None = None) -> None:
        self._clauses: tuple[Clause, ...] = tuple(clauses)
        self._key = key
        self._dispatch: Any = _UNBUILT

    @property
    def clauses(self) -> tuple[Clause, ...]:
        return self._clauses

    @property
    def key(self) -> str | None:
        return self._key

    def _extend(self, clause: Clause) -> ReusableMatcher:
        return type(self)(self._clauses + (clause,), self._key)

    def case(self, *args: Any) -> ReusableMatcher:
        if self._key is not None:
            return self._extend(parse_keyed_case(self._key, args))
        return self._extend(parse_case(args))

    def when(self, predicate: Callable[..., Any], handler: Callable[..., Any]) -> ReusableMatcher:
        return self._extend(parse_when(predicate, handler))

    def at(self, key: str) -> ReusableMatcher:
        return type(self)(self._clauses, key)

    def output(self) -> ReusableMatcher:
        return self

    def dispatch_table(self) -> DispatchTable | None:
        """The clause index, built on first use."""
        if self._dispatch is _UNBUILT:
            self._dispatch = build_dispatch_table(self._clauses)
        return self._dispatch

    def candidates(self, input: Any) -> Sequence[int]:
        table = self.dispatch_table()
        found = table.candidates(input) if table is not None else None
        return range(len(self._clauses)) if found is None else found

    def exec(self, input: Any) -> MatchState:
        for index in self.candidates(input):
            state = run_clause(self._clauses[index], input)
            if state.matched:
                return state
        return UNMATCHED

    def non_exhaustive_error(self, input: Any) -> NonExhaustiveError:
        return build_non_exhaustive_error(
            input,
            tried_schemas(self._clauses),
            dispatch=self.dispatch_table(),
            clause_schemas=[clause.schemas if isinstance(clause, SchemaClause) else () for clause in self._clauses],
        )

    def _validate(self, value: Any) -> Any:
        state = self.exec(value)
        if state.matched:
            return SuccessResult(state.value)
        return build_failure_result(value, tried_schemas(self._clauses))

    @property
    def __standard__(self) -> StandardProps:
        return StandardProps(validate=self._validate, vendor="schematch")

    def default(self, mode: Any) -> Matcher:
        mode, handler = parse_default(mode)
        return Matcher(self, mode, handler)

    def otherwise(self, handler: Callable[..., Any]) -> Matcher:
        return self.default(handler)

    def exhaustive(self) -> Matcher:
        return self.default("assert")


class ReusableMatcherAsync(ReusableMatcher):
    """Reusable matcher whose callable and ``__standard__`` validate are coroutines."""

    async def exec(self, input: Any) -> MatchState:
        for index in self.candidates(input):
            state = await run_clause_async(self._clauses[index], input)
            if state.matched:
                return state
        return UNMATCHED

    async def _validate(self, value: Any) -> Any:
        state = await self.exec(value)
        if state.matched:
            return SuccessResult(state.value)
        return build_failure_result(value, tried_schemas(self._clauses))

    def default(self, mode: Any) -> MatcherAsync:
        mode, handler = parse_default(mode)
        return MatcherAsync(self, mode, handler)


class Matcher:
    """A terminated reusable matcher: call it with an input."""

    def __init__(self, source: ReusableMatcher, mode: str, handler: Callable[..., Any] | None) -> None:
        self.source = source
        self.mode = mode
        self._handler = handler

    def __call__(self, input: Any) -> Any:
        state = self.source.exec(input)
        if state.matched:
            return state.value
        if self._handler is not None:
            return self._handler(input)
        return _settle(self.mode, lambda: self.source.non_exhaustive_error(input))

    @property
    def __standard__(self) -> StandardProps:
        return self.source.__standard__


class MatcherAsync(Matcher):

    async def __call__(self, input: Any) -> Any:
        state = await self.source.exec(input)
        if state.matched:
            return state.value
        if self._handler is not None:
            return await _resolved(self._handler(input))
        return _settle(self.mode, lambda: self.source.non_exhaustive_error(input))


# ============================================================================
# Entry points
# ============================================================================

class MatchFactory:
    """``match(value)`` starts an inline expression; ``match.case(...)`` a reusable matcher."""

    def __init__(self, expression: type, matcher: type[ReusableMatcher]) -> None:
        self._expression = expression
        self._matcher = matcher

    def __call__(self, value: Any) -> Any:
        return self._expression(value)

    def input(self) -> ReusableMatcher:
        return self._matcher()

    def output(self) -> ReusableMatcher:
        return self._matcher()

    def case(self, *args: Any) -> ReusableMatcher:
        return self._matcher().case(*args)

    def when(self, predicate: Callable[..., Any], handler: Callable[..., Any]) -> ReusableMatcher:
        return self._matcher().when(predicate, handler)

    def at(self, key: str) -> ReusableMatcher:
        return self._matcher(key=key)


match = MatchFactory(MatchExpression, ReusableMatcher)
match_async = MatchFactory(MatchExpressionAsync, ReusableMatcherAsync)
