"""Document schemas for collection (de)serialisation."""

from docbase.infrastructure.schemas.document_schemas import (
    CollectionDocument,
    FieldDocument,
    FilterDocument,
    RelationDocument,
    RollupDocument,
    SortDocument,
    ViewDocument,
    dump_collection,
    load_collection,
)

__all__ = [
    "CollectionDocument",
    "FieldDocument",
    "FilterDocument",
    "RelationDocument",
    "RollupDocument",
    "SortDocument",
    "ViewDocument",
    "dump_collection",
    "load_collection",
]
