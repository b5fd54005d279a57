"""Tests for the arithmetic formula evaluator."""

import pytest

from docbase.core.formulas import calculate
from docbase.core.formulas.exceptions import FormulaError, FormulaEvaluationError


class TestEvaluatorArithmetic:
    """Test arithmetic results."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("3 * 4", 12),
            ("1 + 2 * 3", 7),
            ("(1 + 2) * 3", 9),
            ("10 - 4 - 3", 3),
            ("7 / 2", 3.5),
            ("2 ** 10", 1024),
            ("-3 + 5", 2),
            ("5 - -3", 8),
            ("(-2) ** 2", 4),
            (".5 + .25", 0.75),
        ],
    )
    def test_results(self, expression, expected):
        assert calculate(expression) == expected

    def test_integer_operations_stay_integral(self):
        result = calculate("6 * 7")
        assert result == 42
        assert isinstance(result, int)

    def test_division_yields_float(self):
        result = calculate("8 / 2")
        assert result == 4.0
        assert isinstance(result, float)

    def test_remainder_keeps_dividend_sign(self):
        assert calculate("7 % 3") == 1
        assert calculate("-7 % 3") == -1
        assert calculate("7 % -3") == 1

    def test_float_remainder(self):
        assert calculate("5.5 % 2") == pytest.approx(1.5)


class TestEvaluatorErrors:
    """Test evaluation failures."""

    def test_division_by_zero(self):
        with pytest.raises(FormulaEvaluationError):
            calculate("1 / 0")

    def test_remainder_by_zero(self):
        with pytest.raises(FormulaEvaluationError):
            calculate("1 % 0")

    def test_overflow(self):
        with pytest.raises(FormulaEvaluationError):
            calculate("10 ** 400")

    def test_all_errors_share_base_class(self):
        with pytest.raises(FormulaError):
            calculate("1 +")
