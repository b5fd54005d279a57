"""Abstract Syntax Tree nodes for arithmetic formula expressions."""

from dataclasses import dataclass

@dataclass
class Node:
    """Base class for all AST nodes."""
    pass

@dataclass
class Number(Node):
    """Represents a numeric literal."""
    value: int | float

@dataclass
class BinaryOp(Node):
    """Represents a binary operation (e.g., a * b)."""
    left: Node
    operator: str
    right: Node

@dataclass
class UnaryOp(Node):
    """Represents a unary sign (e.g., -a)."""
    operator: str
    operand: Node
