"""Domain entities for DocBase.

Entities are pure Python dataclasses that represent core document concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from docbase.domain.entities.collection import (
    BODY_KEY,
    STATUS_OPTIONS,
    Collection,
    Field,
    FieldType,
    FilterSpec,
    FormulaConfig,
    Record,
    RelationConfig,
    RollupAggregation,
    RollupConfig,
    SortDirection,
    SortSpec,
    Value,
    View,
    ViewType,
)

__all__ = [
    "BODY_KEY",
    "Collection",
    "Field",
    "FieldType",
    "FilterSpec",
    "FormulaConfig",
    "Record",
    "RelationConfig",
    "RollupAggregation",
    "RollupConfig",
    "SortDirection",
    "SortSpec",
    "STATUS_OPTIONS",
    "Value",
    "View",
    "ViewType",
]
