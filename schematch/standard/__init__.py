"""Validator Contract, Adapter Compilation and Discriminators

Usage:
    from schematch.standard import match_schema_sync, NO_MATCH

    result = match_schema_sync(UserModel, payload)
    if result is NO_MATCH:
        ...
"""
from .contract import (
    STANDARD_ATTR,
    Issue,
    SuccessResult,
    FailureResult,
    StandardProps,
    MsgspecType,
    as_standard,
    assert_standard_schema,
    looks_like_standard_schema,
    looks_like_failure,
    validate_sync,
    validate_async,
    normalize_result,
    is_awaitable,
    discard_awaitable,
    format_path,
)
from .precheck import (
    Precheck,
    compile_pydantic_precheck,
    compile_msgspec_precheck,
    is_plain_object,
    same_value,
)
from .compiled import (
    NO_MATCH,
    ASYNC_REQUIRED,
    Outcome,
    CompiledMatcher,
    compile_matcher,
)
from .cache import (
    get_compiled_matcher,
    clear_compiled_cache,
    match_schema_sync,
    match_schema_async,
)
from .discriminator import (
    DiscriminatorInfo,
    extract_discriminator,
    is_dispatchable,
)

__all__ = [
    # Contract
    "STANDARD_ATTR",
    "Issue",
    "SuccessResult",
    "FailureResult",
    "StandardProps",
    "MsgspecType",
    "as_standard",
    "assert_standard_schema",
    "looks_like_standard_schema",
    "looks_like_failure",
    "validate_sync",
    "validate_async",
    "normalize_result",
    "is_awaitable",
    "discard_awaitable",
    "format_path",
    # Pre-checks
    "Precheck",
    "compile_pydantic_precheck",
    "compile_msgspec_precheck",
    "is_plain_object",
    "same_value",
    # Compilation
    "NO_MATCH",
    "ASYNC_REQUIRED",
    "Outcome",
    "CompiledMatcher",
    "compile_matcher",
    "get_compiled_matcher",
    "clear_compiled_cache",
    "match_schema_sync",
    "match_schema_async",
    # Discriminators
    "DiscriminatorInfo",
    "extract_discriminator",
    "is_dispatchable",
]
