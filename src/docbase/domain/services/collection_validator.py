"""Collection validation service for schema and view definitions.

Validation runs before a schema edit is migrated, so that a draft with
duplicate ids or dangling rollup references is rejected instead of being
written into every record.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from docbase.domain.entities.collection import (
    Field,
    FieldType,
    RollupAggregation,
    View,
)

# Aggregations that read a property of the linked records
TARGETED_AGGREGATIONS = frozenset({
    RollupAggregation.COUNT_NOT_EMPTY,
    RollupAggregation.SUM,
    RollupAggregation.AVG,
    RollupAggregation.MIN,
    RollupAggregation.MAX,
})


@dataclass
class CollectionValidationError:
    """A single collection validation error."""

    field: str
    message: str
    code: str


class CollectionValidator:
    """Validator for collection schemas and views.

    Validates the collection name, individual field configurations and
    cross-field references within one schema.
    """

    MAX_NAME_LENGTH = 128
    MAX_FIELD_NAME_LENGTH = 128

    @classmethod
    def validate_name(cls, name: str) -> list[CollectionValidationError]:
        """Validate a collection name.

        Args:
            name: The collection name to validate.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []

        if not name or not name.strip():
            errors.append(
                CollectionValidationError(
                    field="name",
                    message="Collection name is required",
                    code="name_required",
                )
            )
            return errors

        if len(name) > cls.MAX_NAME_LENGTH:
            errors.append(
                CollectionValidationError(
                    field="name",
                    message=f"Collection name must be at most {cls.MAX_NAME_LENGTH} characters",
                    code="name_too_long",
                )
            )

        return errors

    @classmethod
    def validate_field_name(cls, name: str, field_index: int) -> list[CollectionValidationError]:
        """Validate a field name.

        Args:
            name: The field name to validate.
            field_index: Index of the field in the schema (for error messages).

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []
        field_path = f"schema[{field_index}].name"

        if not name or not name.strip():
            errors.append(
                CollectionValidationError(
                    field=field_path,
                    message="Field name is required",
                    code="field_name_required",
                )
            )
            return errors

        if len(name) > cls.MAX_FIELD_NAME_LENGTH:
            errors.append(
                CollectionValidationError(
                    field=field_path,
                    message=f"Field name must be at most {cls.MAX_FIELD_NAME_LENGTH} characters",
                    code="field_name_too_long",
                )
            )

        return errors

    @classmethod
    def validate_options(cls, field: Field, field_index: int) -> list[CollectionValidationError]:
        """Validate that choice options are unique."""
        errors = []
        seen: set[str] = set()
        for option in field.options or []:
            if option in seen:
                errors.append(
                    CollectionValidationError(
                        field=f"schema[{field_index}].options",
                        message=f"Duplicate option '{option}'",
                        code="option_duplicate",
                    )
                )
            seen.add(option)
        return errors

    @classmethod
    def validate_rollup_field(
        cls, field: Field, field_index: int, schema: Sequence[Field]
    ) -> list[CollectionValidationError]:
        """Validate a rollup field configuration.

        Args:
            field: The rollup field definition.
            field_index: Index of the field in the schema (for error messages).
            schema: The whole schema, to resolve the relation field.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []
        rollup = field.rollup

        if rollup is None or not rollup.relation_field_id:
            errors.append(
                CollectionValidationError(
                    field=f"schema[{field_index}].rollup",
                    message="Rollup field requires a relation field",
                    code="rollup_relation_required",
                )
            )
            return errors

        relation_field = next((f for f in schema if f.id == rollup.relation_field_id), None)
        if relation_field is None or relation_field.type != FieldType.RELATION:
            errors.append(
                CollectionValidationError(
                    field=f"schema[{field_index}].rollup.relationFieldId",
                    message=f"Rollup references unknown relation field '{rollup.relation_field_id}'",
                    code="rollup_relation_invalid",
                )
            )

        if rollup.aggregation in TARGETED_AGGREGATIONS and not rollup.target_field_id:
            errors.append(
                CollectionValidationError(
                    field=f"schema[{field_index}].rollup.targetFieldId",
                    message=f"Aggregation '{rollup.aggregation.value}' needs a target field",
                    code="rollup_target_missing",
                )
            )

        return errors

    @classmethod
    def validate_formula_field(cls, field: Field, field_index: int) -> list[CollectionValidationError]:
        """Validate that a formula field has an expression."""
        if field.formula is None or not field.formula.expression.strip():
            return [
                CollectionValidationError(
                    field=f"schema[{field_index}].formula.expression",
                    message="Formula field requires an expression",
                    code="formula_expression_required",
                )
            ]
        return []

    @classmethod
    def validate_field(
        cls, field: Field, field_index: int, schema: Sequence[Field]
    ) -> list[CollectionValidationError]:
        """Validate a single field definition.

        Args:
            field: The field definition.
            field_index: Index of the field in the schema (for error messages).
            schema: The whole schema, for cross-field references.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []
        errors.extend(cls.validate_field_name(field.name, field_index))

        if field.type.has_options:
            errors.extend(cls.validate_options(field, field_index))
        if field.type == FieldType.ROLLUP:
            errors.extend(cls.validate_rollup_field(field, field_index, schema))
        if field.type == FieldType.FORMULA:
            errors.extend(cls.validate_formula_field(field, field_index))

        return errors

    @classmethod
    def validate_schema(cls, schema: Sequence[Field]) -> list[CollectionValidationError]:
        """Validate a collection schema.

        Args:
            schema: Ordered field definitions.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []
        seen_ids: set[str] = set()
        for i, field in enumerate(schema):
            errors.extend(cls.validate_field(field, i, schema))

            if field.id in seen_ids:
                errors.append(
                    CollectionValidationError(
                        field=f"schema[{i}].id",
                        message=f"Duplicate field id '{field.id}'",
                        code="field_id_duplicate",
                    )
                )
            seen_ids.add(field.id)

        return errors

    @classmethod
    def validate_views(cls, views: Sequence[View]) -> list[CollectionValidationError]:
        """Validate that view ids are unique."""
        errors = []
        seen_ids: set[str] = set()
        for i, view in enumerate(views):
            if view.id in seen_ids:
                errors.append(
                    CollectionValidationError(
                        field=f"views[{i}].id",
                        message=f"Duplicate view id '{view.id}'",
                        code="view_id_duplicate",
                    )
                )
            seen_ids.add(view.id)
        return errors

    @classmethod
    def validate(
        cls, name: str, schema: Sequence[Field], views: Sequence[View] = ()
    ) -> list[CollectionValidationError]:
        """Validate a complete collection definition.

        Args:
            name: The collection name.
            schema: The collection schema.
            views: The collection's views.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []
        errors.extend(cls.validate_name(name))
        errors.extend(cls.validate_schema(schema))
        errors.extend(cls.validate_views(views))
        return errors
