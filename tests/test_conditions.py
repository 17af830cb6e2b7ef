import logging

import pytest

from murmur.conditions import OPERATORS, ConditionOperator, evaluate, parse_condition, register_operator
from murmur.variables import VariableStore


def _make_store() -> VariableStore:
    store = VariableStore()
    store.set_int("courage", 30)
    store.set_bool("journal_found", True)
    store.set_string("current_ending_path", "Writer")
    return store


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("courage >= 30", True),
        ("courage >= 31", False),
        ("courage <= 30", True),
        ("courage <= 29", False),
        ("courage > 29", True),
        ("courage > 30", False),
        ("courage < 31", True),
        ("courage < 30", False),
        ("courage>=30", True),
        ("courage >= -5", True),
        ("  courage >= 30  ", True),
        ("COURAGE >= 30", True),
    ],
)
def test_integer_comparisons(expression: str, expected: bool) -> None:
    assert evaluate(expression, _make_store()) is expected


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("journal_found == true", True),
        ("journal_found == FALSE", False),
        ("courage == 30", True),
        ("courage == 31", False),
        ("current_ending_path == writer", True),
        ("current_ending_path == other", False),
        ("journal_found != true", False),
        ("courage != 31", True),
        ("current_ending_path != writer", False),
    ],
)
def test_equality_falls_back_bool_int_string(expression: str, expected: bool) -> None:
    assert evaluate(expression, _make_store()) is expected


def test_equality_with_bool_literal_reads_bool_map_even_if_int_exists() -> None:
    store = VariableStore()
    store.set_int("door", 1)

    assert evaluate("door == true", store) is False
    assert evaluate("door == 1", store) is True


def test_bare_name_is_a_flag() -> None:
    store = _make_store()

    assert evaluate("journal_found", store) is True
    assert evaluate("met_writer", store) is False


@pytest.mark.parametrize("expression", ["", "   ", None])
def test_empty_condition_is_true(expression) -> None:
    assert evaluate(expression, VariableStore()) is True


@pytest.mark.parametrize(
    "expression",
    [
        "not a real expr @@",
        "courage >= lots",
        "courage > ",
        ">= 5",
        "== true",
    ],
)
def test_malformed_conditions_fail_closed(expression: str) -> None:
    assert evaluate(expression, _make_store()) is False


def test_non_numeric_comparison_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="murmur.conditions"):
        result = evaluate("courage >= lots", _make_store())

    assert result is False
    assert "courage >= lots" in caplog.text


def test_greater_equal_is_matched_before_greater() -> None:
    parsed = parse_condition("courage >= 30")

    assert parsed.operator is not None
    assert parsed.operator.token == ">="
    assert parsed.left == "courage"
    assert parsed.right == "30"


def test_parse_condition_describes_flags_and_errors() -> None:
    assert parse_condition("journal_found").is_flag
    assert parse_condition("").is_empty
    assert parse_condition("courage < many").error


def test_evaluation_does_not_change_the_store() -> None:
    store = _make_store()
    before = store.snapshot()

    evaluate("courage >= 30", store)
    evaluate("unknown_flag", store)
    evaluate("current_ending_path == writer", store)

    assert store.snapshot() == before


def test_registered_operator_extends_only_its_table() -> None:
    store = _make_store()
    operators = list(OPERATORS)
    contains = ConditionOperator("has", False, lambda store, left, right: right.casefold() in store.get_string(left).casefold())

    register_operator(operators, contains, before="==")
    store.set_string("current_ending_path", "writer_path")

    assert [op.token for op in operators].index("has") == [op.token for op in operators].index("==") - 1
    assert evaluate("current_ending_path has WRITER", store, operators) is True
    assert evaluate("current_ending_path has alina", store, operators) is False
    assert "has" not in [op.token for op in OPERATORS]
    assert evaluate("current_ending_path has WRITER", store) is False


def test_registered_operator_without_position_is_checked_last() -> None:
    operators = list(OPERATORS)
    register_operator(operators, ConditionOperator("=~", False, lambda store, left, right: True))

    assert operators[-1].token == "=~"
    assert parse_condition("courage >= 3", operators).operator.token == ">="
