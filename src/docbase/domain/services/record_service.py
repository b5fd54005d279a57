"""Record lifecycle helpers: create, edit, duplicate and delete records.

These are the mutations a host surface performs on a collection it has
loaded. They change the collection in place; persisting it (and running
backlink synchronisation afterwards) is left to the caller.
"""

import copy
import uuid
from collections.abc import Sequence
from typing import Any

from docbase.core.logging import get_logger
from docbase.domain.entities.collection import (
    Collection,
    Field,
    FieldType,
    Record,
    Value,
    View,
)
from docbase.domain.services.value_service import coerce_value, now_iso

logger = get_logger(__name__)

UNTITLED = "Untitled"


def generate_id() -> str:
    return str(uuid.uuid4())


def blank_values(collection: Collection, timestamp: str | None = None) -> dict[str, Value]:
    """Initial values for a new record of ``collection``.

    Timestamp fields get ``timestamp`` (now by default), relation and
    multiselect fields an empty list, everything else null.
    """
    stamp = timestamp or now_iso()
    values: dict[str, Value] = {}
    for field in collection.schema:
        if field.type.is_timestamp:
            values[field.id] = stamp
        elif field.type in (FieldType.RELATION, FieldType.MULTISELECT):
            values[field.id] = []
        else:
            values[field.id] = None
    return values


def new_record(
    collection: Collection,
    *,
    group_value: Value = None,
    view: View | None = None,
    date_value: str | None = None,
) -> Record:
    """Append a blank record to ``collection`` and return it.

    Args:
        collection: Collection receiving the record.
        group_value: Value for the view's ``group_by`` field, e.g. the
            kanban column the record was added to.
        view: View the record was created from.
        date_value: Date for the view's date ``group_by`` field, or for
            the first date field when the view is not grouped by a date.

    Returns:
        The new record.
    """
    record = Record(id=generate_id(), values=blank_values(collection))

    if group_value is not None and view is not None and view.group_by:
        record.set(view.group_by, group_value)

    if date_value:
        if view is not None and view.group_by:
            group_field = collection.get_field(view.group_by)
            date_field = group_field if group_field and group_field.type == FieldType.DATE else None
        else:
            date_field = next(iter(collection.fields_of_type(FieldType.DATE)), None)
        if date_field is not None:
            record.set(date_field.id, date_value)

    collection.records.append(record)
    logger.debug("Record created", collection_id=collection.id, record_id=record.id)
    return record


def touch_record(collection: Collection, record: Record) -> None:
    """Stamp every ``lastEditedAt`` field of ``record`` with the current time."""
    stamp = now_iso()
    for field in collection.fields_of_type(FieldType.LAST_EDITED_AT):
        record.set(field.id, stamp)


def update_cell(collection: Collection, record_id: str, field_id: str, value: Any) -> Record | None:
    """Store ``value`` in one cell, coerced to the field's type.

    Cells of computed fields cannot be written. Returns the updated
    record, or None when the record or a writable field is missing.
    """
    record = collection.get_record(record_id)
    field = collection.get_field(field_id)
    if record is None or field is None or field.type.is_computed:
        return None

    record.set(field.id, coerce_value(field, value))
    touch_record(collection, record)
    return record


def duplicate_record(collection: Collection, record_id: str) -> Record | None:
    """Insert a copy of a record right after the original.

    The copy gets a new id and fresh timestamps; list values are copied
    so the two records never share them.
    """
    index = next(
        (i for i, candidate in enumerate(collection.records) if candidate.id == record_id), None
    )
    if index is None:
        return None

    original = collection.records[index]
    duplicate = Record(
        id=generate_id(),
        values=copy.deepcopy(original.values),
        body=original.body,
    )
    stamp = now_iso()
    for field in collection.schema:
        if field.type.is_timestamp:
            duplicate.set(field.id, stamp)

    collection.records.insert(index + 1, duplicate)
    return duplicate


def delete_record(collection: Collection, record_id: str) -> bool:
    """Remove a record and every self-relation link pointing at it.

    Links held by other collections are cleaned up by backlink
    synchronisation once the host saves.

    Returns:
        True if the record existed.
    """
    record = collection.get_record(record_id)
    if record is None:
        return False
    collection.records.remove(record)

    self_relations = [
        field
        for field in collection.fields_of_type(FieldType.RELATION)
        if field.relation is None
        or not field.relation.target_collection_id
        or field.relation.target_collection_id == collection.id
    ]
    for other in collection.records:
        for field in self_relations:
            linked = other.linked_ids(field.id)
            if record_id in linked:
                other.set(field.id, [linked_id for linked_id in linked if linked_id != record_id])

    logger.debug("Record deleted", collection_id=collection.id, record_id=record_id)
    return True


def create_related_record(
    source: Collection,
    relation_field_id: str,
    target: Collection,
    title: str,
    source_record_id: str,
) -> str | None:
    """Create a record in ``target`` and link it from a source record.

    The new record's first text field is set to ``title`` and its
    reciprocal relation field, if one is declared, to the source record.
    Both collections are changed in place and both need saving.

    Returns:
        Id of the new record, or None when the relation field or the
        source record does not exist.
    """
    relation_field = source.get_field(relation_field_id)
    if relation_field is None or relation_field.type != FieldType.RELATION:
        return None
    source_record = source.get_record(source_record_id)
    if source_record is None:
        return None

    record = Record(id=generate_id(), values=blank_values(target))
    title_field = next(iter(target.fields_of_type(FieldType.TEXT)), None)
    if title_field is not None:
        record.set(title_field.id, title)

    backlink_id = relation_field.relation.target_relation_field_id if relation_field.relation else None
    backlink = target.get_field(backlink_id) if backlink_id else None
    if backlink is not None and backlink.type == FieldType.RELATION:
        record.set(backlink.id, [source_record_id])

    target.records.append(record)

    linked = source_record.linked_ids(relation_field.id)
    if record.id not in linked:
        source_record.set(relation_field.id, linked + [record.id])

    logger.info(
        "Related record created",
        source_collection_id=source.id,
        target_collection_id=target.id,
        record_id=record.id,
    )
    return record.id


def record_title(record: Record, schema: Sequence[Field]) -> str:
    """Text of the record's first text field, or ``"Untitled"``."""
    title_field = next((field for field in schema if field.type == FieldType.TEXT), None)
    if title_field is None:
        return UNTITLED
    value = record.get(title_field.id)
    if value is None or value == "":
        return UNTITLED
    return str(value)
