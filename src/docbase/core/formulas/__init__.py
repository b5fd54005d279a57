"""Sandboxed arithmetic evaluator for formula fields.

Only numeric literals, ``+ - * / % **`` and parentheses are understood;
nothing in an expression can reach the Python interpreter.
"""

from .ast import Node
from .evaluator import Evaluator
from .exceptions import FormulaError, FormulaEvaluationError, FormulaSyntaxError
from .lexer import Lexer
from .parser import Parser

def parse_arithmetic(expression: str) -> Node:
    """Parse an arithmetic expression string into an AST."""
    lexer = Lexer(expression)
    parser = Parser(lexer)
    return parser.parse()

def evaluate_arithmetic(node: Node) -> int | float:
    """Evaluate a parsed arithmetic AST."""
    return Evaluator().evaluate(node)

def calculate(expression: str) -> int | float:
    """Parse and evaluate an arithmetic expression in one step."""
    return evaluate_arithmetic(parse_arithmetic(expression))

__all__ = [
    "parse_arithmetic",
    "evaluate_arithmetic",
    "calculate",
    "Node",
    "FormulaError",
    "FormulaSyntaxError",
    "FormulaEvaluationError",
]
