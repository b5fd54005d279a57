"""Tests for rollup and computed field evaluation."""

import pytest

from docbase.domain.entities.collection import (
    Collection,
    Field,
    FieldType,
    FormulaConfig,
    Record,
    RelationConfig,
    RollupConfig,
)
from docbase.domain.services.computed_field_service import (
    compute_rollup,
    linked_records,
    value_of,
)


def rollup_field(aggregation: str, target_field_id: str | None = "score") -> Field:
    return Field(
        id="agg",
        name="Aggregate",
        type=FieldType.ROLLUP,
        rollup=RollupConfig(
            relation_field_id="links", aggregation=aggregation, target_field_id=target_field_id
        ),
    )


@pytest.fixture
def items() -> Collection:
    """Self-referencing collection: ``r0`` links to three records."""
    return Collection(
        id="items",
        name="Items",
        schema=[
            Field(id="score", name="Score", type=FieldType.NUMBER),
            Field(id="links", name="Links", type=FieldType.RELATION),
        ],
        records=[
            Record(id="r0", values={"links": ["r1", "r2", "r3"]}),
            Record(id="r1", values={"score": 2}),
            Record(id="r2", values={"score": None}),
            Record(id="r3", values={"score": "x"}),
            Record(id="r4", values={"links": []}),
        ],
    )


class TestRollups:
    """Test rollup aggregations."""

    def test_sum_drops_non_finite_values(self, items):
        """Nulls and non-numeric text are dropped, not counted as zero."""
        assert compute_rollup(items.records[0], rollup_field("sum"), items) == 2

    def test_count(self, items):
        assert compute_rollup(items.records[0], rollup_field("count"), items) == 3

    def test_count_not_empty(self, items):
        assert compute_rollup(items.records[0], rollup_field("count_not_empty"), items) == 2

    def test_count_not_empty_without_target(self, items):
        field = rollup_field("count_not_empty", target_field_id=None)
        assert compute_rollup(items.records[0], field, items) == 0

    @pytest.mark.parametrize("aggregation", ["avg", "min", "max"])
    def test_single_number(self, items, aggregation):
        assert compute_rollup(items.records[0], rollup_field(aggregation), items) == 2

    def test_avg_min_max_over_several(self, items):
        items.records[2].set("score", "4")
        record = items.records[0]
        assert compute_rollup(record, rollup_field("avg"), items) == 3
        assert compute_rollup(record, rollup_field("min"), items) == 2
        assert compute_rollup(record, rollup_field("max"), items) == 4

    def test_empty_links_count_is_zero(self, items):
        """An unlinked record counts zero."""
        assert compute_rollup(items.records[4], rollup_field("count"), items) == 0

    def test_empty_links_count_not_empty_is_null(self, items):
        assert compute_rollup(items.records[4], rollup_field("count_not_empty"), items) is None

    @pytest.mark.parametrize("aggregation", ["sum", "avg", "min", "max"])
    def test_empty_links_numeric_is_null(self, items, aggregation):
        """Numeric aggregations over no links are null, never zero."""
        assert compute_rollup(items.records[4], rollup_field(aggregation), items) is None

    def test_numeric_without_target_is_null(self, items):
        field = rollup_field("sum", target_field_id=None)
        assert compute_rollup(items.records[0], field, items) is None

    def test_missing_ids_dropped(self, items):
        items.records[0].set("links", ["r1", "gone"])
        assert compute_rollup(items.records[0], rollup_field("count"), items) == 1

    def test_missing_relation_field(self, items):
        field = Field(
            id="agg",
            name="Aggregate",
            type=FieldType.ROLLUP,
            rollup=RollupConfig(relation_field_id="nope", aggregation="count"),
        )
        assert compute_rollup(items.records[0], field, items) is None

    def test_relation_field_of_wrong_type(self, items):
        field = Field(
            id="agg",
            name="Aggregate",
            type=FieldType.ROLLUP,
            rollup=RollupConfig(relation_field_id="score", aggregation="count"),
        )
        assert compute_rollup(items.records[0], field, items) is None

    def test_missing_rollup_config(self, items):
        field = Field(id="agg", name="Aggregate", type=FieldType.ROLLUP)
        assert compute_rollup(items.records[0], field, items) is None


class TestCrossCollectionRollups:
    """Test rollups through a resolver."""

    def test_count_and_sum_across_collections(self, projects, tasks, resolver):
        website = projects.get_record("p1")
        assert value_of(website, projects.get_field("p_task_count"), projects, resolver) == 2
        assert value_of(website, projects.get_field("p_effort"), projects, resolver) == 8

    def test_project_without_tasks(self, projects, resolver):
        mobile = projects.get_record("p2")
        assert value_of(mobile, projects.get_field("p_task_count"), projects, resolver) == 0
        assert value_of(mobile, projects.get_field("p_effort"), projects, resolver) is None

    def test_unresolvable_target_falls_back_to_own_collection(self, projects):
        """Without a resolver the relation reads the source collection, which has no task ids."""
        website = projects.get_record("p1")
        assert value_of(website, projects.get_field("p_task_count"), projects) == 0


class TestLinkedRecords:
    """Test linked record lookup."""

    def test_target_order_and_no_duplicates(self, items):
        items.records[0].set("links", ["r3", "r1", "r1"])
        linked = linked_records(items.records[0], items.get_field("links"), items)
        assert [record.id for record in linked] == ["r1", "r3"]

    def test_non_list_value_has_no_links(self, items):
        items.records[0].set("links", "r1")
        assert linked_records(items.records[0], items.get_field("links"), items) == []

    def test_relation_to_other_collection(self, tasks, resolver):
        design = tasks.get_record("t1")
        linked = linked_records(design, tasks.get_field("t_project"), tasks, resolver)
        assert [record.id for record in linked] == ["p1"]


class TestValueOf:
    """Test stored versus computed values."""

    def test_stored_value_passthrough(self, items):
        assert value_of(items.records[1], items.get_field("score"), items) == 2

    def test_absent_stored_value(self, items):
        assert value_of(items.records[0], items.get_field("score"), items) is None

    def test_formula(self, items):
        field = Field(
            id="double",
            name="Double",
            type=FieldType.FORMULA,
            formula=FormulaConfig(expression="{score} * 2"),
        )
        assert value_of(items.records[1], field, items) == 4

    def test_values_never_cached(self, items):
        field = rollup_field("sum")
        record = items.records[0]
        assert value_of(record, field, items) == 2
        items.records[1].set("score", 10)
        assert value_of(record, field, items) == 10

    def test_relation_target_resolution(self):
        """A relation pointing at an unknown collection falls back to the source."""
        collection = Collection(
            id="c",
            name="C",
            schema=[
                Field(
                    id="links",
                    name="Links",
                    type=FieldType.RELATION,
                    relation=RelationConfig(target_collection_id="elsewhere"),
                ),
            ],
            records=[Record(id="a", values={"links": ["b"]}), Record(id="b")],
        )
        linked = linked_records(collection.records[0], collection.get_field("links"), collection)
        assert [record.id for record in linked] == ["b"]
