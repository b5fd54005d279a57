"""Display text and colours for cell values."""

import re
from collections.abc import Sequence

from docbase.domain.entities.collection import Collection, Field, Record
from docbase.domain.services.computed_field_service import value_of
from docbase.domain.services.relation_resolver import CollectionResolver
from docbase.domain.services.value_service import format_number, is_number

STATUS_COLORS = {
    "Not started": "#5e5e5e",
    "In progress": "#2e75d0",
    "Done": "#2d9e6b",
}
DEFAULT_STATUS_COLOR = "#5e5e5e"

DEFAULT_OPTION_COLORS = [
    "#6b7280",
    "#8b6b4a",
    "#f59e0b",
    "#10b981",
    "#3b82f6",
    "#a855f7",
    "#ef4444",
]

DARK_TEXT = "#1f2937"
LIGHT_TEXT = "#ffffff"
LUMINANCE_THRESHOLD = 0.62

HEX_COLOR_PATTERN = re.compile(r"^[0-9a-fA-F]{6}$")


def display_value(
    record: Record,
    field_id: str,
    schema: Sequence[Field] | None = None,
    collection: Collection | None = None,
    resolver: CollectionResolver | None = None,
) -> str:
    """Text shown for one cell.

    Computed fields are evaluated when both the schema and the collection
    are given; otherwise the raw stored value is shown. Checkboxes render
    as a tick or a dash.
    """
    field = next((f for f in schema or [] if f.id == field_id), None)
    if field is not None and collection is not None:
        value = value_of(record, field, collection, resolver)
    else:
        value = record.get(field_id)

    if value is None:
        return ""
    if isinstance(value, bool):
        return "✓" if value else "—"
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    if is_number(value):
        return format_number(value)
    return str(value)


def status_color(value: str) -> str:
    return STATUS_COLORS.get(value, DEFAULT_STATUS_COLOR)


def option_color(field: Field, option: str) -> str:
    """Colour of a choice: explicit ``option_colors`` first, then the palette by position."""
    explicit = (field.option_colors or {}).get(option)
    if explicit:
        return explicit
    options = field.options or []
    if option in options:
        return DEFAULT_OPTION_COLORS[options.index(option) % len(DEFAULT_OPTION_COLORS)]
    return DEFAULT_OPTION_COLORS[0]


def readable_text_color(background: str) -> str:
    """Dark text on light backgrounds, light text otherwise.

    Anything but a six-digit hex colour gets light text.
    """
    hex_value = background.replace("#", "").strip()
    if not HEX_COLOR_PATTERN.match(hex_value):
        return LIGHT_TEXT
    red = int(hex_value[0:2], 16)
    green = int(hex_value[2:4], 16)
    blue = int(hex_value[4:6], 16)
    luminance = (0.2126 * red + 0.7152 * green + 0.0722 * blue) / 255
    return DARK_TEXT if luminance > LUMINANCE_THRESHOLD else LIGHT_TEXT
