from typing import Callable

from schematch import field_equals, literal
from schematch.config import Settings
from schematch.dispatch import PredicateClause, SchemaClause, build_dispatch_table

from helpers import ObjectSchema, number_schema


def _handler(value: object, input: object) -> object:
    return value


def _clause(*schemas: object) -> SchemaClause:
    return SchemaClause(schemas=schemas, handler=_handler)


def _when() -> PredicateClause:
    return PredicateClause(predicate=lambda input: True, handler=_handler)


def test_single_clause_gets_no_table() -> None:
    assert build_dispatch_table([_clause(field_equals("type", "a"))]) is None


def test_table_buckets_preserve_clause_order() -> None:
    table = build_dispatch_table([
        _clause(field_equals("type", "a")),
        _clause(field_equals("type", "b")),
        _clause(field_equals("type", "a")),
    ])
    assert table is not None
    assert table.key == "type"
    assert table.table == {"a": (0, 2), "b": (1,)}
    assert table.expected_values == ("a", "b")
    assert table.fallback == frozenset()


def test_clauses_without_discriminator_fall_back() -> None:
    table = build_dispatch_table([
        _clause(field_equals("type", "a")),
        _clause(number_schema()),
        _when(),
        _clause(field_equals("type", "b")),
    ])
    assert table is not None
    assert table.fallback == frozenset({1, 2})
    assert table.candidates({"type": "b"}) == (1, 2, 3)
    assert table.candidates({"type": "a"}) == (0, 1, 2)
    assert table.candidates({"type": "z"}) == (1, 2)
    assert table.candidates({}) == (1, 2)


def test_predicate_clauses_are_never_indexed() -> None:
    table = build_dispatch_table([_when(), _clause(field_equals("type", "a"))])
    assert table is not None
    assert table.fallback == frozenset({0})


def test_clause_with_an_undiscriminated_validator_falls_back() -> None:
    table = build_dispatch_table([
        _clause(field_equals("type", "a"), number_schema()),
        _clause(field_equals("type", "c")),
    ])
    assert table is not None
    assert table.table == {"c": (1,)}
    assert table.fallback == frozenset({0})
    assert table.candidates({"type": "c"}) == (0, 1)


def test_clause_is_indexed_under_each_of_its_values() -> None:
    table = build_dispatch_table([
        _clause(field_equals("type", "a"), field_equals("type", "b")),
        _clause(field_equals("type", "c")),
    ])
    assert table is not None
    assert table.table == {"a": (0,), "b": (0,), "c": (1,)}
    assert table.expected_values == ("a", "b", "c")


def test_equal_hashing_values_are_all_expected() -> None:
    table = build_dispatch_table([
        _clause(field_equals("k", True)),
        _clause(field_equals("k", 1)),
        _clause(field_equals("k", 1)),
    ])
    assert table is not None
    assert table.table == {True: (0, 1, 2)}
    assert table.expected_values == (True, 1)
    assert table.candidates({"k": 1}) == (0, 1, 2)


def test_conflicting_keys_abort() -> None:
    table = build_dispatch_table([
        _clause(field_equals("type", "a")),
        _clause(field_equals("kind", "b")),
    ])
    assert table is None


def test_no_discriminators_means_no_table() -> None:
    assert build_dispatch_table([_clause(number_schema()), _when()]) is None


def test_non_mapping_input_visits_everything() -> None:
    table = build_dispatch_table([_clause(field_equals("type", "a")), _clause(field_equals("type", "b"))])
    assert table is not None
    assert table.candidates(["type", "a"]) is None
    assert table.candidates("a") is None


def test_unhashable_discriminator_values_fall_back() -> None:
    table = build_dispatch_table([_clause(field_equals("type", "a")), _when()])
    assert table is not None
    assert table.lookup(["a"]) is None
    assert table.candidates({"type": ["a"]}) == (1,)


def test_generic_object_shapes_are_indexed() -> None:
    table = build_dispatch_table([
        _clause(ObjectSchema({"type": literal("a"), "count": number_schema()})),
        _clause(ObjectSchema({"type": literal("b")})),
    ])
    assert table is not None
    assert table.table == {"a": (0,), "b": (1,)}


def test_dispatch_can_be_disabled(override_settings: Callable[..., Settings]) -> None:
    override_settings(DISPATCH_ENABLED="false")
    clauses = [_clause(field_equals("type", "a")), _clause(field_equals("type", "b"))]
    assert build_dispatch_table(clauses) is None


def test_min_clause_threshold(override_settings: Callable[..., Settings]) -> None:
    override_settings(DISPATCH_MIN_CLAUSES=3)
    clauses = [_clause(field_equals("type", "a")), _clause(field_equals("type", "b"))]
    assert build_dispatch_table(clauses) is None
    assert build_dispatch_table([*clauses, _clause(field_equals("type", "c"))]) is not None
