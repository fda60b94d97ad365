"""Error Taxonomy

Every error raised by schematch carries a typed code from ``ErrorCode`` and
serialises to a structured dict. Three categories exist:

- E1xxx: match outcomes (no clause matched). The only category whose
  propagation is caller-selectable: raised by ``default("assert")`` /
  ``default("never")``, returned by ``default("reject")``.
- E2xxx: usage-contract violations (sync surface used with an asynchronous
  validator, guard or predicate). Always raised immediately.
- E3xxx: definition errors (a value that is not a validator, malformed
  ``case`` arguments). Always raised immediately, at first use.

Errors raised by user-supplied guards, handlers and predicates are never
wrapped; they propagate unchanged.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from schematch.standard.contract import Issue


class ErrorCode(Enum):
    """Hierarchical error code taxonomy.

    E1xxx: Match outcomes
    E2xxx: Usage-contract violations
    E3xxx: Definition errors
    """
    # Match outcomes (E1xxx)
    E1000_NO_MATCH = 1000
    E1001_DISCRIMINATOR_MISS = 1001

    # Usage contract (E2xxx)
    E2000_ASYNC_REQUIRED = 2000
    E2001_ASYNC_GUARD = 2001
    E2002_ASYNC_PREDICATE = 2002

    # Definition (E3xxx)
    E3000_SCHEMA_CONTRACT = 3000
    E3001_INVALID_CASE = 3001
    E3002_INVALID_DEFAULT = 3002

    @property
    def category(self) -> str:
        """Human-readable error category."""
        code = self.value
        if 1000 <= code < 2000:
            return "match"
        if 2000 <= code < 3000:
            return "usage"
        return "definition"


class SchematchError(Exception):
    """Base class for all schematch errors."""

    code: ErrorCode = ErrorCode.E1000_NO_MATCH

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and API responses."""
        return {"type": self.code.category, "code": self.code.name, "message": str(self)}


class AsyncUsageError(SchematchError, RuntimeError):
    """The synchronous surface met something that must be awaited.

    A programming error, never a matching outcome.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.E2000_ASYNC_REQUIRED):
        super().__init__(message)
        self.code = code

    @classmethod
    def for_schema(cls, surface: str = "match_async") -> AsyncUsageError:
        return cls(f"Schema validation returned an awaitable. Use {surface} instead.")

    @classmethod
    def for_guard(cls, surface: str = "match_async") -> AsyncUsageError:
        return cls(f"Guard returned an awaitable. Use {surface} instead.", ErrorCode.E2001_ASYNC_GUARD)

    @classmethod
    def for_predicate(cls, surface: str = "match_async") -> AsyncUsageError:
        return cls(f"Predicate returned an awaitable. Use {surface} instead.", ErrorCode.E2002_ASYNC_PREDICATE)


class SchemaContractError(SchematchError, TypeError):
    """A value used as a validator does not satisfy the validator contract."""

    code = ErrorCode.E3000_SCHEMA_CONTRACT

    def __init__(self, schema: Any):
        super().__init__(
            f"Expected a standard schema (an object exposing __standard__ with a callable validate), "
            f"a pydantic model or TypeAdapter, or an msgspec Struct; got {type(schema).__name__}"
        )
        self.schema = schema


class MatchDefinitionError(SchematchError, TypeError):
    """Malformed ``case``/``when``/``default`` arguments."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.E3001_INVALID_CASE):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True, slots=True)
class DiscriminatorContext:
    """Dispatch-table context attached to a failed match.

    - key: the discriminating field inspected
    - value: the value found at that field (None when absent)
    - expected: discriminator values that have at least one clause
    - matched: whether ``value`` was present in the dispatch table
    """
    key: str
    value: Any
    expected: tuple[Any, ...]
    matched: bool

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value, "expected": list(self.expected), "matched": self.matched}


@dataclass(eq=False)
class NonExhaustiveError(SchematchError):
    """No clause matched the input.

    Also satisfies the failure-result shape (it exposes ``issues``), so it
    can be returned wherever a validator failure is expected.
    """
    input: Any
    message: str
    issues: tuple[Issue, ...] = ()
    schemas: tuple[Any, ...] = ()
    discriminator: DiscriminatorContext | None = None
    code: ErrorCode = field(default=ErrorCode.E1000_NO_MATCH)

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    @property
    def first_issue(self) -> Issue | None:
        return self.issues[0] if self.issues else None

    def to_dict(self) -> dict[str, Any]:
        result = {"type": "non_exhaustive", "code": self.code.name, "message": self.message,
            "issues": [issue.to_dict() for issue in self.issues]}
        if self.discriminator is not None:
            result["discriminator"] = self.discriminator.to_dict()
        return result
