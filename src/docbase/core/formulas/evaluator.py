"""Evaluator for arithmetic formula expressions."""

import math

from .ast import BinaryOp, Node, Number, UnaryOp
from .exceptions import FormulaEvaluationError


class Evaluator:
    """Evaluates an arithmetic AST.

    Integer operands stay integral for ``+``, ``-``, ``*`` and ``%``;
    division and exponentiation always produce floats.
    """

    def evaluate(self, node: Node) -> int | float:
        """Evaluate a node and check that the result is finite."""
        try:
            result = self._evaluate(node)
        except OverflowError as exc:
            raise FormulaEvaluationError("Result is too large") from exc
        if isinstance(result, float) and not math.isfinite(result):
            raise FormulaEvaluationError("Result is not a finite number")
        return result

    def _evaluate(self, node: Node) -> int | float:
        if isinstance(node, Number):
            return node.value

        if isinstance(node, UnaryOp):
            operand = self._evaluate(node.operand)
            return -operand if node.operator == "-" else operand

        if isinstance(node, BinaryOp):
            return self._evaluate_binary(node)

        raise FormulaEvaluationError(f"Unknown node type: {type(node).__name__}")

    def _evaluate_binary(self, node: BinaryOp) -> int | float:
        """Evaluate binary operations."""
        left = self._evaluate(node.left)
        right = self._evaluate(node.right)
        op = node.operator

        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right

        if op == "/":
            if right == 0:
                raise FormulaEvaluationError("Division by zero")
            return left / right

        if op == "%":
            if right == 0:
                raise FormulaEvaluationError("Remainder by zero")
            # Remainder keeps the sign of the dividend
            if isinstance(left, int) and isinstance(right, int):
                remainder = abs(left) % abs(right)
                return remainder if left >= 0 else -remainder
            return math.fmod(left, right)

        if op == "**":
            try:
                return math.pow(left, right)
            except (OverflowError, ValueError) as exc:
                raise FormulaEvaluationError(f"Cannot raise {left} to {right}") from exc

        raise FormulaEvaluationError(f"Unknown binary operator: {op}")
