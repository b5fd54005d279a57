"""Tests for collection validation."""

import pytest

from docbase.domain.entities.collection import (
    Field,
    FieldType,
    FormulaConfig,
    RollupConfig,
    View,
)
from docbase.domain.services.collection_validator import CollectionValidator


def codes(errors) -> list[str]:
    return [error.code for error in errors]


class TestNameValidation:
    """Test collection name validation."""

    def test_valid_name(self):
        assert CollectionValidator.validate_name("Tasks") == []

    @pytest.mark.parametrize("name", ["", "   "])
    def test_name_required(self, name):
        errors = CollectionValidator.validate_name(name)
        assert codes(errors) == ["name_required"]
        assert errors[0].field == "name"

    def test_name_too_long(self):
        errors = CollectionValidator.validate_name("x" * (CollectionValidator.MAX_NAME_LENGTH + 1))
        assert codes(errors) == ["name_too_long"]

    def test_name_at_limit(self):
        assert CollectionValidator.validate_name("x" * CollectionValidator.MAX_NAME_LENGTH) == []


class TestFieldValidation:
    """Test single field validation."""

    def test_blank_field_name(self):
        errors = CollectionValidator.validate_field_name(" ", 2)
        assert codes(errors) == ["field_name_required"]
        assert errors[0].field == "schema[2].name"

    def test_field_name_too_long(self):
        name = "f" * (CollectionValidator.MAX_FIELD_NAME_LENGTH + 1)
        assert codes(CollectionValidator.validate_field_name(name, 0)) == ["field_name_too_long"]

    def test_duplicate_options(self):
        field = Field(id="s", name="S", type=FieldType.SELECT, options=["a", "b", "a"])
        errors = CollectionValidator.validate_field(field, 0, [field])
        assert codes(errors) == ["option_duplicate"]

    def test_options_ignored_for_text(self):
        field = Field(id="t", name="T", options=["a", "a"])
        assert CollectionValidator.validate_field(field, 0, [field]) == []

    def test_formula_requires_expression(self):
        missing = Field(id="f", name="F", type=FieldType.FORMULA)
        blank = Field(id="g", name="G", type=FieldType.FORMULA, formula=FormulaConfig("  "))
        assert codes(CollectionValidator.validate_formula_field(missing, 0)) == [
            "formula_expression_required"
        ]
        assert codes(CollectionValidator.validate_formula_field(blank, 1)) == [
            "formula_expression_required"
        ]


class TestRollupValidation:
    """Test rollup reference validation."""

    @pytest.fixture
    def links(self) -> Field:
        return Field(id="links", name="Links", type=FieldType.RELATION)

    def test_valid_rollup(self, links):
        rollup = Field(
            id="r",
            name="R",
            type=FieldType.ROLLUP,
            rollup=RollupConfig(relation_field_id="links", aggregation="sum", target_field_id="n"),
        )
        assert CollectionValidator.validate_rollup_field(rollup, 1, [links, rollup]) == []

    def test_count_needs_no_target(self, links):
        rollup = Field(
            id="r", name="R", type=FieldType.ROLLUP, rollup=RollupConfig(relation_field_id="links")
        )
        assert CollectionValidator.validate_rollup_field(rollup, 1, [links, rollup]) == []

    def test_missing_config(self):
        rollup = Field(id="r", name="R", type=FieldType.ROLLUP)
        assert codes(CollectionValidator.validate_rollup_field(rollup, 0, [rollup])) == [
            "rollup_relation_required"
        ]

    def test_unknown_relation_field(self, links):
        rollup = Field(
            id="r", name="R", type=FieldType.ROLLUP, rollup=RollupConfig(relation_field_id="gone")
        )
        errors = CollectionValidator.validate_rollup_field(rollup, 1, [links, rollup])
        assert codes(errors) == ["rollup_relation_invalid"]
        assert errors[0].field == "schema[1].rollup.relationFieldId"

    def test_relation_field_of_wrong_type(self):
        text = Field(id="links", name="Links")
        rollup = Field(
            id="r", name="R", type=FieldType.ROLLUP, rollup=RollupConfig(relation_field_id="links")
        )
        assert codes(CollectionValidator.validate_rollup_field(rollup, 1, [text, rollup])) == [
            "rollup_relation_invalid"
        ]

    @pytest.mark.parametrize("aggregation", ["count_not_empty", "sum", "avg", "min", "max"])
    def test_targeted_aggregation_needs_target(self, links, aggregation):
        rollup = Field(
            id="r",
            name="R",
            type=FieldType.ROLLUP,
            rollup=RollupConfig(relation_field_id="links", aggregation=aggregation),
        )
        assert codes(CollectionValidator.validate_rollup_field(rollup, 1, [links, rollup])) == [
            "rollup_target_missing"
        ]


class TestSchemaValidation:
    """Test whole-schema and collection validation."""

    def test_duplicate_field_ids(self):
        schema = [Field(id="a", name="A"), Field(id="b", name="B"), Field(id="a", name="C")]
        errors = CollectionValidator.validate_schema(schema)
        assert codes(errors) == ["field_id_duplicate"]
        assert errors[0].field == "schema[2].id"

    def test_duplicate_view_ids(self):
        views = [View(id="v", name="One"), View(id="v", name="Two")]
        assert codes(CollectionValidator.validate_views(views)) == ["view_id_duplicate"]

    def test_valid_collection(self, tasks):
        assert CollectionValidator.validate(tasks.name, tasks.schema, tasks.views) == []

    def test_errors_accumulate(self):
        schema = [Field(id="a", name=""), Field(id="a", name="B", type=FieldType.ROLLUP)]
        errors = CollectionValidator.validate("", schema)
        assert codes(errors) == [
            "name_required",
            "field_name_required",
            "rollup_relation_required",
            "field_id_duplicate",
        ]

    def test_enum_values_enforced_by_entities(self):
        """Unknown types and aggregations never reach the validator."""
        with pytest.raises(ValueError):
            Field(id="a", name="A", type="spreadsheet")
        with pytest.raises(ValueError):
            RollupConfig(relation_field_id="links", aggregation="median")
        with pytest.raises(ValueError):
            Field(id="", name="A")
