"""Collection entities for document databases.

A collection is one self-contained document: an ordered schema of typed
fields, a list of saved views over it, and a flat list of records. The
engine never owns collections; hosts load them, pass them in for one
operation, and persist them again.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

Value = Union[str, int, float, bool, list[str], None]

BODY_KEY = "_body"


class FieldType(str, Enum):
    """Supported field types for collection schemas."""

    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RELATION = "relation"
    ROLLUP = "rollup"
    FORMULA = "formula"
    DATE = "date"
    CHECKBOX = "checkbox"
    URL = "url"
    EMAIL = "email"
    PHONE = "phone"
    STATUS = "status"
    CREATED_AT = "createdAt"
    LAST_EDITED_AT = "lastEditedAt"

    @property
    def is_computed(self) -> bool:
        """Computed fields are derived on read and never storage-backed."""
        return self in (FieldType.ROLLUP, FieldType.FORMULA)

    @property
    def is_timestamp(self) -> bool:
        return self in (FieldType.CREATED_AT, FieldType.LAST_EDITED_AT)

    @property
    def has_options(self) -> bool:
        return self in (FieldType.SELECT, FieldType.MULTISELECT, FieldType.STATUS)


class RollupAggregation(str, Enum):
    """Aggregations a rollup field can apply to linked records."""

    COUNT = "count"
    COUNT_NOT_EMPTY = "count_not_empty"
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"


class ViewType(str, Enum):
    """Rendering surfaces a view can be shown in."""

    TABLE = "table"
    KANBAN = "kanban"
    LIST = "list"
    GALLERY = "gallery"
    CALENDAR = "calendar"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


STATUS_OPTIONS = ["Not started", "In progress", "Done"]


@dataclass
class RelationConfig:
    """Relation target configuration.

    Attributes:
        target_collection_id: Peer collection the relation points to.
            None means the relation references the owning collection.
        target_relation_field_id: Reciprocal relation field on the target
            collection that mirrors inbound links.
    """

    target_collection_id: str | None = None
    target_relation_field_id: str | None = None


@dataclass
class RollupConfig:
    """Rollup configuration: aggregate ``target_field_id`` over linked records."""

    relation_field_id: str
    aggregation: RollupAggregation = RollupAggregation.COUNT
    target_field_id: str | None = None

    def __post_init__(self) -> None:
        self.aggregation = RollupAggregation(self.aggregation)


@dataclass
class FormulaConfig:
    expression: str = ""


@dataclass
class Field:
    """A schema column definition.

    Attributes:
        id: Immutable identifier; record values are keyed by it.
        name: Display name.
        type: Field type tag.
        options: Ordered unique choices for select, multiselect and status.
        option_colors: Optional option -> hex colour side-map.
        relation: Relation config (relation fields only).
        rollup: Rollup config (rollup fields only).
        formula: Formula config (formula fields only).
    """

    id: str
    name: str
    type: FieldType = FieldType.TEXT
    options: list[str] | None = None
    option_colors: dict[str, str] | None = None
    relation: RelationConfig | None = None
    rollup: RollupConfig | None = None
    formula: FormulaConfig | None = None

    def __post_init__(self) -> None:
        """Validate field data after initialization."""
        if not self.id:
            raise ValueError("Field ID is required")
        self.type = FieldType(self.type)

    def copy(self) -> "Field":
        """Return a copy that shares no mutable state with this field."""
        return copy.deepcopy(self)


@dataclass
class SortSpec:
    field_id: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        self.direction = SortDirection(self.direction)


@dataclass
class FilterSpec:
    field_id: str
    op: str
    value: str = ""


@dataclass
class View:
    """A saved combination of filter, sort, grouping and display options."""

    id: str
    name: str
    type: ViewType = ViewType.TABLE
    group_by: str | None = None
    sort: list[SortSpec] = field(default_factory=list)
    filter: list[FilterSpec] = field(default_factory=list)
    hidden_fields: list[str] = field(default_factory=list)
    field_order: list[str] | None = None
    column_widths: dict[str, int | float] | None = None
    card_cover_field: str | None = None
    card_fields: list[str] | None = None

    def __post_init__(self) -> None:
        self.type = ViewType(self.type)


@dataclass
class Record:
    """A single row.

    Values are keyed by field id. A missing key reads as null; schema
    migration back-fills it on write. The free-text body is kept apart
    from schema values and is stored under ``_body`` in documents.
    """

    id: str
    values: dict[str, Value] = field(default_factory=dict)
    body: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Record ID is required")

    def get(self, field_id: str, default: Value = None) -> Value:
        return self.values.get(field_id, default)

    def set(self, field_id: str, value: Value) -> None:
        self.values[field_id] = value

    def has(self, field_id: str) -> bool:
        return field_id in self.values

    def linked_ids(self, field_id: str) -> list[str]:
        """Relation ids stored under ``field_id``; anything but a list reads as no links."""
        raw = self.values.get(field_id)
        if not isinstance(raw, list):
            return []
        return [str(item) for item in raw]


@dataclass
class Collection:
    """A document database: schema, views and records.

    Attributes:
        id: Unique identifier.
        name: Collection name, also used to infer relation targets.
        schema: Ordered field definitions with unique ids.
        views: Ordered saved views.
        records: Records in display order.
    """

    id: str
    name: str
    schema: list[Field] = field(default_factory=list)
    views: list[View] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate collection data after initialization."""
        if not self.id:
            raise ValueError("Collection ID is required")

    def get_field(self, field_id: str | None) -> Field | None:
        return next((f for f in self.schema if f.id == field_id), None)

    def get_view(self, view_id: str | None) -> View | None:
        return next((v for v in self.views if v.id == view_id), None)

    def get_record(self, record_id: str | None) -> Record | None:
        return next((r for r in self.records if r.id == record_id), None)

    def fields_of_type(self, *types: FieldType) -> list[Field]:
        return [f for f in self.schema if f.type in types]
