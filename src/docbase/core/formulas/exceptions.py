"""Exceptions for formula parsing and evaluation."""

class FormulaError(Exception):
    """Base class for all formula-related errors."""
    pass

class FormulaSyntaxError(FormulaError):
    """Raised when arithmetic syntax is invalid."""
    def __init__(self, message: str, position: int | None = None):
        self.position = position
        super().__init__(f"{message} at position {position}" if position is not None else message)

class FormulaEvaluationError(FormulaError):
    """Raised when arithmetic evaluation fails (division by zero, overflow)."""
    pass
