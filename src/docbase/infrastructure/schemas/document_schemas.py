"""Pydantic schemas for stored collection documents.

Documents keep the camelCase keys written by other hosts. Relation
targets are accepted under ``targetDatabaseId`` or ``targetCollectionId``
and written back as ``targetDatabaseId``.
"""

import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from docbase.domain.entities.collection import (
    BODY_KEY,
    Collection,
    FieldType,
    FilterSpec,
    FormulaConfig,
    Record,
    RelationConfig,
    RollupAggregation,
    RollupConfig,
    SortDirection,
    SortSpec,
    View,
    ViewType,
)
from docbase.domain.entities.collection import Field as SchemaField

LEGACY_BOARD_NAME = re.compile(r"^board$", re.IGNORECASE)

Document = dict[str, Any]


class DocumentModel(BaseModel):
    """Base for document models: camelCase keys, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RelationDocument(DocumentModel):
    target_collection_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("targetDatabaseId", "targetCollectionId"),
        serialization_alias="targetDatabaseId",
    )
    target_relation_field_id: str | None = None


class RollupDocument(DocumentModel):
    relation_field_id: str
    target_field_id: str | None = None
    aggregation: RollupAggregation = RollupAggregation.COUNT


class FormulaDocument(DocumentModel):
    expression: str = ""


class FieldDocument(DocumentModel):
    """Definition of a single field in a collection schema."""

    id: str = Field(..., min_length=1)
    name: str
    type: FieldType
    options: list[str] | None = None
    option_colors: dict[str, str] | None = None
    relation: RelationDocument | None = None
    rollup: RollupDocument | None = None
    formula: FormulaDocument | None = None


class SortDocument(DocumentModel):
    field_id: str
    direction: SortDirection = SortDirection.ASC


class FilterDocument(DocumentModel):
    field_id: str
    op: str
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, v: Any) -> str:
        """Filter values are entered as text; older documents may hold numbers."""
        if v is None:
            return ""
        return str(v)


class ViewDocument(DocumentModel):
    """A saved view. Missing sort, filter and hidden-field lists default to empty."""

    id: str = Field(..., min_length=1)
    name: str
    type: ViewType = ViewType.TABLE
    group_by: str | None = None
    card_cover_field: str | None = None
    card_fields: list[str] | None = None
    sort: list[SortDocument] = Field(default_factory=list)
    filter: list[FilterDocument] = Field(default_factory=list)
    hidden_fields: list[str] = Field(default_factory=list)
    field_order: list[str] | None = None
    column_widths: dict[str, int | float] | None = None

    @field_validator("sort", "filter", "hidden_fields", mode="before")
    @classmethod
    def default_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class CollectionDocument(DocumentModel):
    """A whole collection document as stored by hosts."""

    id: str = Field(..., min_length=1)
    name: str
    fields: list[FieldDocument] = Field(default_factory=list, alias="schema")
    views: list[ViewDocument] = Field(default_factory=list)
    records: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("fields", "views", "records", mode="before")
    @classmethod
    def default_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("records")
    @classmethod
    def require_record_ids(cls, v: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Every record needs a non-empty string id."""
        for index, record in enumerate(v):
            record_id = record.get("id")
            if not isinstance(record_id, str) or not record_id:
                raise ValueError(f"records[{index}] has no id")
        return v


def _to_field(document: FieldDocument) -> SchemaField:
    return SchemaField(
        id=document.id,
        name=document.name,
        type=document.type,
        options=list(document.options) if document.options is not None else None,
        option_colors=dict(document.option_colors) if document.option_colors is not None else None,
        relation=(
            RelationConfig(
                target_collection_id=document.relation.target_collection_id,
                target_relation_field_id=document.relation.target_relation_field_id,
            )
            if document.relation is not None
            else None
        ),
        rollup=(
            RollupConfig(
                relation_field_id=document.rollup.relation_field_id,
                aggregation=document.rollup.aggregation,
                target_field_id=document.rollup.target_field_id,
            )
            if document.rollup is not None
            else None
        ),
        formula=(
            FormulaConfig(expression=document.formula.expression)
            if document.formula is not None
            else None
        ),
    )


def _to_view(document: ViewDocument) -> View:
    name = document.name
    if document.type == ViewType.KANBAN and LEGACY_BOARD_NAME.match(name):
        name = "Kanban"
    return View(
        id=document.id,
        name=name,
        type=document.type,
        group_by=document.group_by,
        sort=[SortSpec(spec.field_id, spec.direction) for spec in document.sort],
        filter=[FilterSpec(spec.field_id, spec.op, spec.value) for spec in document.filter],
        hidden_fields=list(document.hidden_fields),
        field_order=list(document.field_order) if document.field_order is not None else None,
        column_widths=dict(document.column_widths) if document.column_widths is not None else None,
        card_cover_field=document.card_cover_field,
        card_fields=list(document.card_fields) if document.card_fields is not None else None,
    )


def _to_record(data: dict[str, Any]) -> Record:
    values = {key: value for key, value in data.items() if key not in ("id", BODY_KEY)}
    body = data.get(BODY_KEY)
    return Record(id=data["id"], values=values, body=body if isinstance(body, str) else None)


def load_collection(data: Document | str | bytes) -> Collection:
    """Build a ``Collection`` from a stored document.

    Args:
        data: The parsed document, or its JSON text.

    Returns:
        The domain collection.

    Raises:
        pydantic.ValidationError: If the document is structurally invalid.
    """
    if isinstance(data, (str, bytes)):
        document = CollectionDocument.model_validate_json(data)
    else:
        document = CollectionDocument.model_validate(data)

    return Collection(
        id=document.id,
        name=document.name,
        schema=[_to_field(field) for field in document.fields],
        views=[_to_view(view) for view in document.views],
        records=[_to_record(record) for record in document.records],
    )


def _field_document(field: SchemaField) -> FieldDocument:
    return FieldDocument(
        id=field.id,
        name=field.name,
        type=field.type,
        options=field.options,
        option_colors=field.option_colors,
        relation=(
            RelationDocument(
                target_collection_id=field.relation.target_collection_id,
                target_relation_field_id=field.relation.target_relation_field_id,
            )
            if field.relation is not None
            else None
        ),
        rollup=(
            RollupDocument(
                relation_field_id=field.rollup.relation_field_id,
                target_field_id=field.rollup.target_field_id,
                aggregation=field.rollup.aggregation,
            )
            if field.rollup is not None
            else None
        ),
        formula=FormulaDocument(expression=field.formula.expression) if field.formula else None,
    )


def _view_document(view: View) -> ViewDocument:
    return ViewDocument(
        id=view.id,
        name=view.name,
        type=view.type,
        group_by=view.group_by,
        card_cover_field=view.card_cover_field,
        card_fields=view.card_fields,
        sort=[SortDocument(field_id=spec.field_id, direction=spec.direction) for spec in view.sort],
        filter=[
            FilterDocument(field_id=spec.field_id, op=spec.op, value=spec.value)
            for spec in view.filter
        ],
        hidden_fields=view.hidden_fields,
        field_order=view.field_order,
        column_widths=view.column_widths,
    )


def _record_document(record: Record) -> Document:
    data: Document = {"id": record.id}
    data.update(
        {key: list(value) if isinstance(value, list) else value for key, value in record.values.items()}
    )
    if record.body is not None:
        data[BODY_KEY] = record.body
    return data


def dump_collection(collection: Collection) -> Document:
    """Serialise ``collection`` to a JSON-compatible document.

    Schema and view order are preserved, keys are camelCase, and optional
    keys that are unset are left out. Record values are written as stored,
    nulls included.
    """
    return {
        "id": collection.id,
        "name": collection.name,
        "schema": [
            _field_document(field).model_dump(mode="json", by_alias=True, exclude_none=True)
            for field in collection.schema
        ],
        "views": [
            _view_document(view).model_dump(mode="json", by_alias=True, exclude_none=True)
            for view in collection.views
        ],
        "records": [_record_document(record) for record in collection.records],
    }
