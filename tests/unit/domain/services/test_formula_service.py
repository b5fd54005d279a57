"""Tests for formula field evaluation."""

import re

import pytest

from docbase.domain.entities.collection import Field, FieldType, FormulaConfig, Record
from docbase.domain.services.formula_service import (
    compute_formula,
    evaluate_condition,
    evaluate_token,
    split_arguments,
)


def formula(expression: str) -> Field:
    return Field(
        id="calc", name="Calc", type=FieldType.FORMULA, formula=FormulaConfig(expression=expression)
    )


def evaluate(expression: str, **values) -> object:
    return compute_formula(Record(id="r1", values=values), formula(expression))


class TestArithmeticPath:
    """Test expressions evaluated as arithmetic."""

    def test_price_times_quantity(self):
        """Field references are replaced by their numbers."""
        assert evaluate("{price} * {qty}", price=3, qty=4) == 12

    def test_leading_equals_stripped(self):
        assert evaluate("= {a} + 1", a=2) == 3

    def test_numeric_strings_used(self):
        assert evaluate("{a} / {b}", a="9", b="2") == 4.5

    def test_non_numeric_reference_reads_as_zero(self):
        assert evaluate("{a} + 5", a="n/a") == 5

    def test_missing_reference_reads_as_zero(self):
        assert evaluate("{missing} + 1") == 1

    def test_division_by_zero_falls_back_to_template(self):
        """A failed evaluation never raises."""
        assert evaluate("{a} / 0", a=1) == "1 / 0"

    def test_adjacent_minus_signs_fall_back_to_template(self):
        assert evaluate("{a}--3", a=5) == "5--3"
        assert evaluate("{a} - -3", a=5) == 8

    def test_signed_power_base_falls_back_to_template(self):
        assert evaluate("-{a}**2", a=2) == "-2**2"

    def test_percent_operator(self):
        assert evaluate("{a} % 4", a=10) == 2


class TestFunctionPath:
    """Test single top-level function calls."""

    def test_if_equals(self):
        expression = 'IF({status}="Done", "✓", "—")'
        assert evaluate(expression, status="Done") == "✓"
        assert evaluate(expression, status="Open") == "—"

    def test_if_numeric_comparison(self):
        expression = 'IF({qty}>3, "many", "few")'
        assert evaluate(expression, qty=5) == "many"
        assert evaluate(expression, qty="2") == "few"

    def test_if_missing_else_branch(self):
        assert evaluate('IF({done}, "yes")', done="") == ""

    def test_if_condition_without_operator(self):
        assert evaluate('IF({note}, "has note", "empty")', note="hello") == "has note"
        assert evaluate('IF({note}, "has note", "empty")', note=None) == "empty"

    def test_sum_ignores_non_numbers(self):
        assert evaluate("SUM({a}, {b}, {c})", a=1, b="x", c="2.5") == 3.5

    def test_avg(self):
        assert evaluate("AVG({a}, {b})", a=2, b=4) == 3

    def test_null_arguments_count_as_zero(self):
        assert evaluate("AVG({a}, {b})", a=4, b=None) == 2
        assert evaluate("MIN({a}, {b})", a=4, b=None) == 0
        assert evaluate("SUM({a}, {b})", a=4) == 4

    def test_min_max(self):
        assert evaluate("MIN({a}, {b}, 7)", a=5, b=-1) == -1
        assert evaluate("MAX({a}, {b}, 7)", a=5, b=-1) == 7

    def test_aggregates_without_numbers(self):
        assert evaluate("MAX({a})", a="x") == 0
        assert evaluate("AVG()") == 0

    def test_abs_and_round(self):
        assert evaluate("ABS({a})", a=-4) == 4
        assert evaluate("ROUND({a})", a=2.5) == 3
        assert evaluate("ROUND({a})", a=-2.5) == -2
        assert evaluate("ROUND({a})", a="x") is None

    def test_text_functions(self):
        assert evaluate("LEN({name})", name="Alice") == 5
        assert evaluate("UPPER({name})", name="Alice") == "ALICE"
        assert evaluate("lower({name})", name="Alice") == "alice"

    def test_concat(self):
        assert evaluate('CONCAT({first}, " ", {last})', first="Ada", last="Lovelace") == "Ada Lovelace"

    def test_concat_list_value(self):
        assert evaluate('CONCAT("Tags: ", {tags})', tags=["a", "b"]) == "Tags: a, b"

    def test_today_and_now(self):
        assert re.match(r"^\d{4}-\d{2}-\d{2}$", evaluate("TODAY()"))
        assert evaluate("NOW()").endswith("Z")

    def test_unknown_function_returns_first_argument(self):
        assert evaluate("NOPE({a}, 2)", a="first") == "first"
        assert evaluate("NOPE()") is None

    def test_nested_parentheses_in_arguments(self):
        assert evaluate('CONCAT("(a, b)", {x})', x="!") == "(a, b)!"


class TestTemplatePath:
    """Test expressions rendered as text templates."""

    def test_text_substitution(self):
        assert evaluate("{first} {last}", first="Ada", last="Lovelace") == "Ada Lovelace"

    def test_null_substitutes_empty(self):
        assert evaluate("Hello {name}!", name=None) == "Hello !"

    def test_numeric_result_becomes_number(self):
        assert evaluate("{a}{b}", a="1", b="2") == 12

    def test_sequences_comma_joined(self):
        assert evaluate("Tags: {tags}", tags=["x", "y"]) == "Tags: x, y"


class TestFailurePolicy:
    """Test that evaluation degrades instead of raising."""

    def test_empty_expression(self):
        assert evaluate("") is None
        assert evaluate("   ") is None

    def test_missing_formula_config(self):
        field = Field(id="calc", name="Calc", type=FieldType.FORMULA)
        assert compute_formula(Record(id="r1"), field) is None

    def test_expression_over_length_limit(self):
        field = formula("1 + 1")
        assert compute_formula(Record(id="r1"), field, max_length=3) is None

    def test_configured_length_limit(self, monkeypatch):
        monkeypatch.setenv("DOCBASE_FORMULA_MAX_LENGTH", "4")
        assert evaluate("1 + 1") is None

    def test_unbalanced_arithmetic(self):
        assert evaluate("(1 + 2") == "(1 + 2"


class TestHelpers:
    """Test argument splitting and token evaluation."""

    def test_split_respects_quotes_and_parens(self):
        assert split_arguments('"a, b", (1, 2), c') == ['"a, b"', "(1, 2)", "c"]

    def test_split_empty(self):
        assert split_arguments("") == []

    @pytest.mark.parametrize(
        "token,expected",
        [
            ('"text"', "text"),
            ("'single'", "single"),
            ("42", 42.0),
            ("true", True),
            ("FALSE", False),
            ("bare", "bare"),
            ("", None),
        ],
    )
    def test_evaluate_token(self, token, expected):
        assert evaluate_token(token, Record(id="r1")) == expected

    def test_evaluate_token_reference(self):
        record = Record(id="r1", values={"tags": ["a", "b"], "n": 3})
        assert evaluate_token("{tags}", record) == "a, b"
        assert evaluate_token("{n}", record) == 3

    @pytest.mark.parametrize(
        "condition,expected",
        [
            ("{n}>=3", True),
            ("{n}<3", False),
            ("{n}!=4", True),
            ('{s}="b"', False),
            ('{s}="B"', True),
            ("{s}", True),
        ],
    )
    def test_evaluate_condition(self, condition, expected):
        record = Record(id="r1", values={"n": 3, "s": "B"})
        assert evaluate_condition(condition, record) is expected
