"""Value comparison, stringification and type-directed coercion.

Every other service reads record values through these helpers, so the
numeric, textual and ordering semantics of a cell are defined in exactly
one place. Numbers follow JavaScript ``Number()`` conventions because the
documents these values live in are shared with JavaScript hosts.
"""

import math
import re
import unicodedata
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from docbase.core.config import get_settings
from docbase.domain.entities.collection import Field, FieldType, Value

# Decimal literal accepted by Number(): "5", "-5.", ".5", "1e3"
DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
RADIX_PATTERN = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
INFINITY_PATTERN = re.compile(r"^([+-]?)Infinity$")

LIST_SPLIT_PATTERN = re.compile(r"[;,]")
DIGIT_RUN_PATTERN = re.compile(r"(\d+)")


def now_iso() -> str:
    """Current UTC time formatted like JavaScript's ``Date.toISOString()``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_number(value: Any) -> bool:
    """True for int/float values; booleans are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> float:
    """Convert a value the way JavaScript's ``Number()`` does; null reads as 0."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, list):
        return to_number(",".join("" if item is None else stringify(item) for item in value))

    text = str(value).strip()
    if not text:
        return 0.0
    if DECIMAL_PATTERN.match(text):
        return float(text)
    if RADIX_PATTERN.match(text):
        return float(int(text, 0))
    infinity = INFINITY_PATTERN.match(text)
    if infinity:
        return -math.inf if infinity.group(1) == "-" else math.inf
    return math.nan


def format_number(value: int | float) -> str:
    """Stringify a number the way JavaScript does (``3.0`` -> ``"3"``)."""
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def stringify(value: Value) -> str:
    """Render a value as plain text: null is empty, sequences are comma-joined."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(value)
    if isinstance(value, list):
        return ", ".join(stringify(item) for item in value)
    return str(value)


def to_filter_string(value: Value) -> str:
    """Lower-cased text form used by filter predicates."""
    return stringify(value).lower()


def is_empty_value(value: Value) -> bool:
    """Null, empty string and empty sequence all count as empty."""
    return value is None or value == "" or (isinstance(value, list) and len(value) == 0)


def _natural_key(text: str) -> list[tuple[int, int | str]]:
    """Case- and accent-insensitive key where digit runs compare numerically."""
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    key: list[tuple[int, int | str]] = []
    for chunk in DIGIT_RUN_PATTERN.split(folded):
        if not chunk:
            continue
        if chunk.isdigit():
            key.append((0, int(chunk)))
        else:
            key.append((1, chunk))
    return key


def _sign(delta: float) -> int:
    if delta > 0:
        return 1
    if delta < 0:
        return -1
    return 0


def compare_values(a: Value, b: Value) -> int:
    """Three-way comparison used for sorting.

    Null sorts before everything, numbers compare numerically, booleans
    as 0/1, and everything else by natural, case-insensitive text order
    (so ``"item2"`` sorts before ``"item10"``).
    """
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1

    if is_number(a) and is_number(b):
        if math.isnan(a) or math.isnan(b):
            return 0
        return _sign(a - b)
    if isinstance(a, bool) and isinstance(b, bool):
        return int(a) - int(b)

    left = _natural_key(to_filter_string(a))
    right = _natural_key(to_filter_string(b))
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def split_list_value(value: Any) -> list[str]:
    """Normalise a list-ish input into non-empty trimmed strings."""
    if isinstance(value, list):
        items: Iterable[str] = (stringify(item) for item in value)
    elif isinstance(value, str):
        items = LIST_SPLIT_PATTERN.split(value)
    else:
        return []
    return [item.strip() for item in items if item and item.strip()]


class ValueCoercer:
    """Coerces arbitrary input into a field's canonical storage type.

    This is the single chokepoint that keeps stored values type-safe after
    a schema edit or an import. Coercion never raises; values that cannot
    be represented become null.
    """

    @classmethod
    def coerce_number(cls, field: Field, value: Any) -> Value:
        if is_number(value):
            return value if isinstance(value, int) or math.isfinite(value) else None
        number = to_number(value)
        return number if math.isfinite(number) else None

    @classmethod
    def coerce_checkbox(
        cls, field: Field, value: Any, truthy_values: Iterable[str] | None = None
    ) -> Value:
        if isinstance(value, bool):
            return value
        if is_number(value):
            return value != 0
        if isinstance(value, str):
            truthy = truthy_values if truthy_values is not None else get_settings().checkbox_truthy_values
            return value.strip().lower() in set(truthy)
        return False

    @classmethod
    def coerce_list(cls, field: Field, value: Any) -> Value:
        return split_list_value(value)

    @classmethod
    def coerce_choice(cls, field: Field, value: Any) -> Value:
        """Select and status values must be one of the declared options."""
        if isinstance(value, list):
            value = value[0] if value else None
        candidate = stringify(value)
        if not candidate:
            return None
        if field.options and candidate not in field.options:
            return None
        return candidate

    @classmethod
    def coerce_computed(cls, field: Field, value: Any) -> Value:
        return None

    @classmethod
    def coerce_text(cls, field: Field, value: Any) -> Value:
        return stringify(value)

    @classmethod
    def coerce_empty(cls, field: Field) -> Value:
        """Canonical value for a field whose input is null or empty."""
        if field.type.is_computed:
            return None
        if field.type in (FieldType.MULTISELECT, FieldType.RELATION):
            return []
        if field.type.is_timestamp:
            return now_iso()
        return None

    @classmethod
    def coerce(
        cls, field: Field, value: Any, truthy_values: Iterable[str] | None = None
    ) -> Value:
        """Coerce ``value`` into ``field``'s storage type.

        Args:
            field: The target field definition.
            value: Raw input (a previous cell value, an imported string, ...).
            truthy_values: Strings treated as checked for checkbox fields.
                Defaults to the configured ``checkbox_truthy_values``.

        Returns:
            The canonical stored value, or None when it cannot be represented.
        """
        if value is None or value == "":
            return cls.coerce_empty(field)

        coercers = {
            FieldType.NUMBER: cls.coerce_number,
            FieldType.CHECKBOX: lambda f, v: cls.coerce_checkbox(f, v, truthy_values),
            FieldType.MULTISELECT: cls.coerce_list,
            FieldType.RELATION: cls.coerce_list,
            FieldType.SELECT: cls.coerce_choice,
            FieldType.STATUS: cls.coerce_choice,
            FieldType.TEXT: cls.coerce_text,
            FieldType.DATE: cls.coerce_text,
            FieldType.URL: cls.coerce_text,
            FieldType.EMAIL: cls.coerce_text,
            FieldType.PHONE: cls.coerce_text,
            FieldType.CREATED_AT: cls.coerce_text,
            FieldType.LAST_EDITED_AT: cls.coerce_text,
            FieldType.ROLLUP: cls.coerce_computed,
            FieldType.FORMULA: cls.coerce_computed,
        }
        return coercers[field.type](field, value)


def coerce_value(field: Field, value: Any, truthy_values: Iterable[str] | None = None) -> Value:
    """Coerce a raw value into ``field``'s canonical storage type."""
    return ValueCoercer.coerce(field, value, truthy_values)
