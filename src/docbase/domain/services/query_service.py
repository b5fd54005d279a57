"""View queries: visible fields, filtering and sorting.

Filters and sorts read values through the computed field engine, so a
view can filter or sort on formula and rollup fields exactly as it does
on stored fields. Every function here is pure; callers' record lists are
never reordered in place.
"""

from collections.abc import Callable, Sequence
from enum import Enum
from functools import cmp_to_key

from docbase.domain.entities.collection import (
    Collection,
    Field,
    FilterSpec,
    Record,
    SortDirection,
    SortSpec,
    Value,
    View,
)
from docbase.domain.services.computed_field_service import value_of
from docbase.domain.services.relation_resolver import CollectionResolver
from docbase.domain.services.value_service import (
    compare_values,
    is_empty_value,
    to_filter_string,
    to_number,
)


class FilterOperator(str, Enum):
    """Filter operators understood by ``apply_filters``."""

    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


# predicate(raw value, filter string of the value, filter value as entered)
Predicate = Callable[[Value, str, str], bool]

PREDICATES: dict[str, Predicate] = {
    FilterOperator.CONTAINS.value: lambda val, text, expected: expected.lower() in text,
    FilterOperator.NOT_CONTAINS.value: lambda val, text, expected: expected.lower() not in text,
    FilterOperator.EQUALS.value: lambda val, text, expected: text == expected.lower(),
    FilterOperator.NOT_EQUALS.value: lambda val, text, expected: text != expected.lower(),
    FilterOperator.IS_EMPTY.value: lambda val, text, expected: is_empty_value(val),
    FilterOperator.IS_NOT_EMPTY.value: lambda val, text, expected: not is_empty_value(val),
    FilterOperator.GT.value: lambda val, text, expected: to_number(val) > to_number(expected),
    FilterOperator.GTE.value: lambda val, text, expected: to_number(val) >= to_number(expected),
    FilterOperator.LT.value: lambda val, text, expected: to_number(val) < to_number(expected),
    FilterOperator.LTE.value: lambda val, text, expected: to_number(val) <= to_number(expected),
}


def _find_field(schema: Sequence[Field] | None, field_id: str) -> Field | None:
    if not schema:
        return None
    return next((candidate for candidate in schema if candidate.id == field_id), None)


def visible_fields(schema: Sequence[Field], view: View) -> list[Field]:
    """Fields shown by ``view``, in display order, without hidden ones.

    Ids in the view's field order that no longer exist are skipped.
    """
    by_id = {field.id: field for field in schema}
    order = view.field_order if view.field_order is not None else [field.id for field in schema]
    hidden = set(view.hidden_fields or [])
    return [by_id[field_id] for field_id in order if field_id in by_id and field_id not in hidden]


def matches_filter(
    record: Record,
    spec: FilterSpec,
    schema: Sequence[Field] | None = None,
    collection: Collection | None = None,
    resolver: CollectionResolver | None = None,
) -> bool:
    """Whether one record passes one filter.

    A filter on a field id that no longer exists compares the raw record
    value. Unknown operators let every record through.
    """
    field = _find_field(schema, spec.field_id)
    if field is not None and collection is not None:
        value = value_of(record, field, collection, resolver)
    else:
        value = record.get(spec.field_id)

    predicate = PREDICATES.get(spec.op)
    if predicate is None:
        return True
    return predicate(value, to_filter_string(value), spec.value or "")


def apply_filters(
    records: list[Record],
    filters: Sequence[FilterSpec],
    schema: Sequence[Field] | None = None,
    collection: Collection | None = None,
    resolver: CollectionResolver | None = None,
) -> list[Record]:
    """Keep the records that pass every filter (logical AND).

    An empty filter list returns ``records`` itself.
    """
    if not filters:
        return records
    return [
        record
        for record in records
        if all(matches_filter(record, spec, schema, collection, resolver) for spec in filters)
    ]


def _sort_value(
    record: Record,
    spec: SortSpec,
    field: Field | None,
    collection: Collection | None,
    resolver: CollectionResolver | None,
) -> Value:
    if field is not None and collection is not None:
        return value_of(record, field, collection, resolver)
    value = record.get(spec.field_id)
    return "" if value is None else value


def apply_sorts(
    records: list[Record],
    sorts: Sequence[SortSpec],
    schema: Sequence[Field] | None = None,
    collection: Collection | None = None,
    resolver: CollectionResolver | None = None,
) -> list[Record]:
    """Stable multi-key sort.

    The first key with a non-zero comparison decides; ties keep their
    original relative order. An empty sort list returns ``records``
    itself, and the input list is never reordered.
    """
    if not sorts:
        return records

    keys = [(spec, _find_field(schema, spec.field_id)) for spec in sorts]

    def compare(a: Record, b: Record) -> int:
        for spec, field in keys:
            result = compare_values(
                _sort_value(a, spec, field, collection, resolver),
                _sort_value(b, spec, field, collection, resolver),
            )
            if result != 0:
                return result if spec.direction == SortDirection.ASC else -result
        return 0

    return sorted(records, key=cmp_to_key(compare))


def query_view(
    collection: Collection,
    view: View,
    resolver: CollectionResolver | None = None,
) -> list[Record]:
    """Records of ``collection`` as ``view`` shows them: filtered, then sorted."""
    filtered = apply_filters(collection.records, view.filter, collection.schema, collection, resolver)
    return apply_sorts(filtered, view.sort, collection.schema, collection, resolver)
