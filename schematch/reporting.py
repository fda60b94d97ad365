"""Failure Reporting

Builds the structured explanation of why no clause matched.

- Discriminator miss (a dispatch table exists, the input is a mapping and
  its discriminator value has no clause): one issue naming the field, the
  value found and the values that would have worked.
- Discriminator hit: only the validators of the clauses registered for that
  value are re-run to recover their issues.
- Otherwise: every tried validator is re-run and its issues are tagged with
  the 1-based ordinal of the clause that declared it.

Validators are re-run synchronously, and only here; normal matching never
asks for issue detail. A validator that raises while being re-run (an
async-only validator, a misbehaving one) contributes no issues. Guards are
never re-invoked.
"""
from __future__ import annotations

import json
from typing import Any, Iterable, Sequence

from schematch.config import get_settings
from schematch.dispatch import DispatchTable, is_missing
from schematch.errors import DiscriminatorContext, ErrorCode, NonExhaustiveError
from schematch.logging import match_logger
from schematch.standard import FailureResult, Issue, is_plain_object, same_value, validate_sync

log = match_logger()

# (clause ordinal, validator)
TriedSchema = tuple[int, Any]


def display_value(value: Any) -> str:
    """JSON rendering when possible, ``repr`` otherwise, truncated."""
    try:
        text = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(value)
    limit = get_settings().ERROR_VALUE_MAX_LENGTH
    return text if len(text) <= limit else text[:limit] + "..."


def _sorted_values(values: Iterable[Any]) -> tuple[Any, ...]:
    values = tuple(values)
    try:
        return tuple(sorted(values))
    except TypeError:
        return values


def _issues_for(schema: Any, input: Any) -> tuple[Issue, ...]:
    try:
        result = validate_sync(schema, input)
    except Exception as exc:
        log.debug("failure_report_validator_skipped", schema=type(schema).__name__, error=type(exc).__name__)
        return ()
    return result.issues if isinstance(result, FailureResult) else ()


def _issues_per_case(input: Any, tried: Sequence[TriedSchema]) -> list[tuple[int, tuple[Issue, ...]]]:
    return [(ordinal, _issues_for(schema, input)) for ordinal, schema in tried]


def _prefixed(per_case: Iterable[tuple[int, tuple[Issue, ...]]]) -> list[Issue]:
    return [Issue(message=f"Case {ordinal}: {issue.message}", path=issue.path)
        for ordinal, issues in per_case for issue in issues]


def collect_case_issues(input: Any, tried: Sequence[TriedSchema]) -> list[Issue]:
    """Re-run each tried validator and prefix its issues with its clause ordinal."""
    return _prefixed(_issues_per_case(input, tried))


def no_match_issue(input: Any) -> Issue:
    return Issue(message=f"No schema matches value {display_value(input)}")


def build_failure_result(input: Any, tried: Sequence[TriedSchema]) -> FailureResult:
    """Failure result published through a reusable matcher's ``__standard__``."""
    issues = collect_case_issues(input, tried)
    return FailureResult(tuple(issues) or (no_match_issue(input),))


def discriminator_context(dispatch: DispatchTable, input: Any) -> tuple[DiscriminatorContext, tuple[int, ...] | None]:
    """Look the input's discriminator up; returns (context, registered clause indices)."""
    value = dispatch.discriminator_value(input)
    found = None if is_missing(value) else dispatch.lookup(value)
    # Buckets are keyed by hash equality, so 1 would find a True bucket
    matched = found is not None and any(same_value(value, expected) for expected in dispatch.expected_values)
    context = DiscriminatorContext(
        key=dispatch.key,
        value=None if is_missing(value) else value,
        expected=_sorted_values(dispatch.expected_values),
        matched=matched,
    )
    return context, found if matched else None


def build_non_exhaustive_error(
    input: Any,
    tried: Sequence[TriedSchema],
    *,
    dispatch: DispatchTable | None = None,
    clause_schemas: Sequence[Sequence[Any]] | None = None,
) -> NonExhaustiveError:
    """Build the error for an unmatched input.

    Args:
        input: the value that matched nothing
        tried: every (clause ordinal, validator) declared, in order
        dispatch: the dispatch table of a reusable matcher, if any
        clause_schemas: validators per clause, used to narrow on a discriminator hit
    """
    context, candidates = (None, None)
    if dispatch is not None and is_plain_object(input):
        context, candidates = discriminator_context(dispatch, input)

    code = ErrorCode.E1000_NO_MATCH
    if context is not None and not context.matched and tried:
        code = ErrorCode.E1001_DISCRIMINATOR_MISS
        issues = [Issue(
            message=f"Discriminator '{context.key}' has value {display_value(context.value)} "
                    f"but expected one of: {_join(context.expected)}",
            path=(context.key,),
        )]
        narrowed = list(tried)
        per_case = []
    else:
        narrowed = list(tried)
        if context is not None and candidates and clause_schemas is not None:
            narrowed = [(index + 1, schema) for index in candidates for schema in clause_schemas[index]]
        per_case = _issues_per_case(input, narrowed)
        issues = _prefixed(per_case) or [no_match_issue(input)]

    message = _format_message(input, per_case, context)
    log.debug("non_exhaustive_match", code=code.name, issues=len(issues),
        discriminator=context.key if context else None)
    return NonExhaustiveError(
        input=input,
        message=message,
        issues=tuple(issues),
        schemas=tuple(schema for _, schema in narrowed),
        discriminator=context,
        code=code,
    )


def _join(values: Iterable[Any]) -> str:
    return ", ".join(display_value(value) for value in values)


def _format_message(input: Any, per_case: Sequence[tuple[int, tuple[Issue, ...]]],
        context: DiscriminatorContext | None) -> str:
    lines = [f"Schema matching error: no schema matches value {display_value(input)}"]

    if context is not None and not context.matched:
        lines.append(f"  Discriminator '{context.key}' has value {display_value(context.value)} "
            f"but expected one of: {_join(context.expected)}")
        return "\n".join(lines)

    if context is not None:
        lines.append(f"  Discriminator '{context.key}' matched {display_value(context.value)} "
            f"(options: {_join(context.expected)}) but failed validation:")

    for ordinal, issues in per_case:
        if not issues:
            continue
        lines.append(f"  Case {ordinal}:")
        lines.extend(f"    {line}" for line in prettify_issues(issues).splitlines())

    return "\n".join(lines)


def prettify_issues(issues: Iterable[Issue]) -> str:
    """One line per issue: "- message (at path)"."""
    lines = []
    for issue in issues:
        suffix = f" (at {issue.field_path})" if issue.path else ""
        lines.append(f"- {issue.message}{suffix}")
    return "\n".join(lines)
