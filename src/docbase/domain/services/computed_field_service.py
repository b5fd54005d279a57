"""Computed field values: rollups over relations, formulas over a record.

Computed values are never cached. Every read derives them from the
current record state, so there is no stale value to invalidate.
"""

import math

from docbase.core.logging import get_logger
from docbase.domain.entities.collection import (
    Collection,
    Field,
    FieldType,
    Record,
    RollupAggregation,
    Value,
)
from docbase.domain.services.formula_service import compute_formula
from docbase.domain.services.relation_resolver import CollectionResolver, resolve_target
from docbase.domain.services.value_service import is_empty_value, to_number

logger = get_logger(__name__)


def linked_records(
    record: Record,
    relation_field: Field,
    collection: Collection,
    resolver: CollectionResolver | None = None,
) -> list[Record]:
    """Records referenced by ``record`` through ``relation_field``.

    Ids missing from the target collection are dropped silently. Records
    come back in target-collection order, each at most once.
    """
    linked_ids = set(record.linked_ids(relation_field.id))
    if not linked_ids:
        return []
    target = resolve_target(collection, relation_field, resolver)
    return [candidate for candidate in target.records if candidate.id in linked_ids]


def compute_rollup(
    record: Record,
    field: Field,
    collection: Collection,
    resolver: CollectionResolver | None = None,
) -> int | float | None:
    """Aggregate a property of the records linked through a relation field.

    Counts are 0 when nothing is linked. Numeric aggregations return None
    when no linked record carries a finite number, so "no data" stays
    distinguishable from zero.
    """
    rollup = field.rollup
    if rollup is None:
        return None

    relation_field = collection.get_field(rollup.relation_field_id)
    if relation_field is None or relation_field.type != FieldType.RELATION:
        logger.debug(
            "Rollup relation field missing",
            field_id=field.id,
            relation_field_id=rollup.relation_field_id,
        )
        return None

    linked = linked_records(record, relation_field, collection, resolver)
    aggregation = rollup.aggregation

    if aggregation == RollupAggregation.COUNT:
        return len(linked)
    if not linked:
        return None

    target_field_id = rollup.target_field_id
    if aggregation == RollupAggregation.COUNT_NOT_EMPTY:
        if not target_field_id:
            return 0
        return sum(1 for candidate in linked if not is_empty_value(candidate.get(target_field_id)))

    if not target_field_id:
        return None
    # absent cells are no data, not zero
    values = [candidate.get(target_field_id) for candidate in linked]
    numbers = [to_number(value) for value in values if value is not None]
    numbers = [number for number in numbers if math.isfinite(number)]
    if not numbers:
        return None

    if aggregation == RollupAggregation.SUM:
        return sum(numbers)
    if aggregation == RollupAggregation.AVG:
        return sum(numbers) / len(numbers)
    if aggregation == RollupAggregation.MIN:
        return min(numbers)
    if aggregation == RollupAggregation.MAX:
        return max(numbers)
    return None


def value_of(
    record: Record,
    field: Field,
    collection: Collection,
    resolver: CollectionResolver | None = None,
) -> Value:
    """Value of ``field`` on ``record``: stored for plain fields, derived for computed ones."""
    if field.type == FieldType.ROLLUP:
        return compute_rollup(record, field, collection, resolver)
    if field.type == FieldType.FORMULA:
        return compute_formula(record, field)
    return record.get(field.id)
