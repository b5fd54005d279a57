"""Formula field evaluation.

Formulas are a deliberately small language evaluated against a record's
own values. An expression is tried, in order, as:

1. a single top-level function call, ``NAME(arg, ...)``;
2. pure arithmetic once every ``{fieldId}`` is replaced by its numeric value;
3. a text template where every ``{fieldId}`` is replaced by its text.

Evaluation never raises. Anything that cannot be computed degrades to
null or to best-effort text so a surface always has something to render.
"""

import math
import re
from collections.abc import Callable
from typing import Union

from docbase.core.config import get_settings
from docbase.core.formulas import FormulaError, calculate
from docbase.core.logging import get_logger
from docbase.domain.entities.collection import Field, Record
from docbase.domain.services.value_service import (
    format_number,
    is_number,
    now_iso,
    stringify,
    to_number,
)

logger = get_logger(__name__)

FormulaValue = Union[str, int, float, bool, None]

FUNCTION_CALL_PATTERN = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*)\((.*)\)$")
FIELD_REFERENCE_PATTERN = re.compile(r"\{([^}]+)\}")
SINGLE_REFERENCE_PATTERN = re.compile(r"^\{([^}]+)\}$")
ARITHMETIC_PATTERN = re.compile(r"^[0-9+\-*/().\s%]+$")
CONDITION_PATTERN = re.compile(r"(.+?)(>=|<=|!=|=|>|<)(.+)")
LETTER_OR_BRACE_PATTERN = re.compile(r"[a-zA-Z{}]")


def split_arguments(args: str) -> list[str]:
    """Split a call's argument text on top-level commas.

    Commas inside quotes or nested parentheses do not split.
    """
    out: list[str] = []
    current = ""
    depth = 0
    quote: str | None = None
    for ch in args:
        if ch in ('"', "'") and (quote is None or quote == ch):
            quote = None if quote else ch
            current += ch
            continue
        if quote is None:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth = max(0, depth - 1)
            elif ch == "," and depth == 0:
                out.append(current.strip())
                current = ""
                continue
        current += ch
    if current.strip():
        out.append(current.strip())
    return out


def evaluate_token(token: str, record: Record) -> FormulaValue:
    """Evaluate a single argument token.

    Quoted text is a string literal, a bare number is a number,
    ``{fieldId}`` reads the record, ``true``/``false`` are booleans and
    anything else is returned as its literal text.
    """
    t = token.strip()
    if not t:
        return None
    if len(t) >= 2 and t[0] == t[-1] and t[0] in ('"', "'"):
        return t[1:-1]

    number = to_number(t)
    if math.isfinite(number) and not LETTER_OR_BRACE_PATTERN.search(t):
        return number

    reference = SINGLE_REFERENCE_PATTERN.match(t)
    if reference:
        value = record.get(reference.group(1).strip())
        if isinstance(value, list):
            return ", ".join(stringify(item) for item in value)
        return value

    lowered = t.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return t


def evaluate_condition(raw: FormulaValue, record: Record) -> bool:
    """Evaluate an ``IF`` condition such as ``{status}="Done"`` or ``{qty}>3``."""
    if isinstance(raw, bool):
        return raw
    if is_number(raw):
        return raw != 0
    if raw is None:
        return False

    condition = str(raw).strip()
    match = CONDITION_PATTERN.match(condition)
    if not match:
        return bool(condition)

    left = evaluate_token(match.group(1).strip(), record)
    op = match.group(2)
    right = evaluate_token(match.group(3).strip(), record)

    if is_number(left) or is_number(right):
        ln = to_number(left)
        rn = to_number(right)
        return _compare(ln, op, rn)
    return _compare(stringify(left), op, stringify(right))


def _compare(left, op: str, right) -> bool:
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    if op == "<=":
        return left <= right
    if op == "=":
        return left == right
    if op == "!=":
        return left != right
    return False


def _numeric_args(args: list[FormulaValue]) -> list[float]:
    numbers = (to_number(value) for value in args)
    return [value for value in numbers if math.isfinite(value)]


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


def _fn_sum(args: list[FormulaValue], record: Record) -> FormulaValue:
    return sum(_numeric_args(args))


def _fn_avg(args: list[FormulaValue], record: Record) -> FormulaValue:
    numbers = _numeric_args(args)
    return sum(numbers) / len(numbers) if numbers else 0


def _fn_min(args: list[FormulaValue], record: Record) -> FormulaValue:
    numbers = _numeric_args(args)
    return min(numbers) if numbers else 0


def _fn_max(args: list[FormulaValue], record: Record) -> FormulaValue:
    numbers = _numeric_args(args)
    return max(numbers) if numbers else 0


def _first(args: list[FormulaValue]) -> FormulaValue:
    return args[0] if args else None


def _fn_abs(args: list[FormulaValue], record: Record) -> FormulaValue:
    value = _first(args)
    return _finite_or_none(abs(to_number(value)))


def _fn_round(args: list[FormulaValue], record: Record) -> FormulaValue:
    value = _first(args)
    number = to_number(value)
    if not math.isfinite(number):
        return None
    # Halves round towards positive infinity
    return math.floor(number + 0.5)


def _fn_len(args: list[FormulaValue], record: Record) -> FormulaValue:
    return len(stringify(_first(args)))


def _fn_upper(args: list[FormulaValue], record: Record) -> FormulaValue:
    return stringify(_first(args)).upper()


def _fn_lower(args: list[FormulaValue], record: Record) -> FormulaValue:
    return stringify(_first(args)).lower()


def _fn_concat(args: list[FormulaValue], record: Record) -> FormulaValue:
    return "".join(stringify(value) for value in args)


def _fn_now(args: list[FormulaValue], record: Record) -> FormulaValue:
    return now_iso()


def _fn_today(args: list[FormulaValue], record: Record) -> FormulaValue:
    return now_iso()[:10]


def _fn_if(args: list[FormulaValue], record: Record) -> FormulaValue:
    branch = 1 if evaluate_condition(_first(args), record) else 2
    value = args[branch] if len(args) > branch else None
    return "" if value is None else value


FUNCTIONS: dict[str, Callable[[list[FormulaValue], Record], FormulaValue]] = {
    "SUM": _fn_sum,
    "AVG": _fn_avg,
    "MIN": _fn_min,
    "MAX": _fn_max,
    "ABS": _fn_abs,
    "ROUND": _fn_round,
    "LEN": _fn_len,
    "UPPER": _fn_upper,
    "LOWER": _fn_lower,
    "CONCAT": _fn_concat,
    "NOW": _fn_now,
    "TODAY": _fn_today,
    "IF": _fn_if,
}


def apply_function(name: str, args: list[FormulaValue], record: Record) -> FormulaValue:
    """Dispatch a formula function by upper-cased name.

    Unknown functions return their first argument as text.
    """
    handler = FUNCTIONS.get(name.upper())
    if handler is None:
        first = _first(args)
        return None if first is None else stringify(first)
    return handler(args, record)


def _numeric_reference(match: re.Match, record: Record) -> str:
    number = to_number(record.get(match.group(1).strip()))
    return format_number(number) if math.isfinite(number) else "0"


def _text_reference(match: re.Match, record: Record) -> str:
    return stringify(record.get(match.group(1).strip()))


def evaluate_arithmetic(expression: str, record: Record) -> int | float | None:
    """Evaluate ``expression`` as arithmetic over numeric field values.

    Returns None when the substituted text is not pure arithmetic or
    cannot be evaluated to a finite number.
    """
    replaced = FIELD_REFERENCE_PATTERN.sub(lambda m: _numeric_reference(m, record), expression)
    if not ARITHMETIC_PATTERN.match(replaced):
        return None
    try:
        result = calculate(replaced)
    except FormulaError as exc:
        logger.debug("Arithmetic formula failed", expression=replaced, error=str(exc))
        return None
    try:
        return result if math.isfinite(result) else None
    except OverflowError:
        return None


def render_template(expression: str, record: Record) -> str | float:
    """Substitute field text into ``expression``; numeric results become numbers."""
    replaced = FIELD_REFERENCE_PATTERN.sub(lambda m: _text_reference(m, record), expression)
    number = to_number(replaced)
    if replaced != "" and math.isfinite(number):
        return number
    return replaced


def compute_formula(record: Record, field: Field, max_length: int | None = None) -> FormulaValue:
    """Evaluate a formula field for one record.

    Args:
        record: The record whose values the formula reads.
        field: The formula field.
        max_length: Longest expression evaluated; defaults to the configured
            ``formula_max_length``.

    Returns:
        A string, number or boolean, or None when nothing can be computed.
    """
    expression = (field.formula.expression if field.formula else "") or ""
    expression = expression.strip()
    if not expression:
        return None
    limit = max_length if max_length is not None else get_settings().formula_max_length
    if len(expression) > limit:
        logger.debug("Formula expression too long", field_id=field.id, length=len(expression))
        return None
    if expression.startswith("="):
        expression = expression[1:].strip()

    call = FUNCTION_CALL_PATTERN.match(expression)
    if call:
        args = [evaluate_token(arg, record) for arg in split_arguments(call.group(2))]
        return apply_function(call.group(1), args, record)

    arithmetic = evaluate_arithmetic(expression, record)
    if arithmetic is not None:
        return arithmetic

    return render_template(expression, record)
