"""schematch: pattern matching over validator objects.

Usage:
    from schematch import match, NonExhaustiveError

    describe = (
        match.case(Circle, lambda c: f"circle r={c.radius}")
        .case(Square, lambda s: f"square {s.side}")
        .default("assert")
    )
    describe({"kind": "circle", "radius": 2})
"""
from schematch.config import settings, get_settings
from schematch.errors import (
    ErrorCode,
    SchematchError,
    NonExhaustiveError,
    AsyncUsageError,
    SchemaContractError,
    MatchDefinitionError,
    DiscriminatorContext,
)
from schematch.logging import configure_logging, get_logger
from schematch.match import (
    match,
    match_async,
    MatchExpression,
    MatchExpressionAsync,
    ReusableMatcher,
    ReusableMatcherAsync,
    Matcher,
    MatcherAsync,
    MatchState,
    UNMATCHED,
)
from schematch.is_matching import is_matching, is_matching_async
from schematch.schemas import literal, field_equals, predicate, Literal, FieldEquals, Predicate
from schematch.standard import (
    Issue,
    SuccessResult,
    FailureResult,
    StandardProps,
    MsgspecType,
    clear_compiled_cache,
)

__all__ = [
    # Matching
    "match",
    "match_async",
    "MatchExpression",
    "MatchExpressionAsync",
    "ReusableMatcher",
    "ReusableMatcherAsync",
    "Matcher",
    "MatcherAsync",
    "MatchState",
    "UNMATCHED",
    "is_matching",
    "is_matching_async",
    # Validators
    "literal",
    "field_equals",
    "predicate",
    "Literal",
    "FieldEquals",
    "Predicate",
    "MsgspecType",
    # Contract
    "Issue",
    "SuccessResult",
    "FailureResult",
    "StandardProps",
    "clear_compiled_cache",
    # Errors
    "ErrorCode",
    "SchematchError",
    "NonExhaustiveError",
    "AsyncUsageError",
    "SchemaContractError",
    "MatchDefinitionError",
    "DiscriminatorContext",
    # Ambient
    "settings",
    "get_settings",
    "configure_logging",
    "get_logger",
]
