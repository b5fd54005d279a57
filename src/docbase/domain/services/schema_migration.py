"""Schema migration for collections.

Replacing a collection's schema rewrites its records and views so that
every stored value matches its field's type and no view references a
field that no longer exists.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from docbase.core.logging import get_logger
from docbase.domain.entities.collection import Collection, Field, FieldType, View, ViewType
from docbase.domain.services.value_service import coerce_value

logger = get_logger(__name__)

GROUPED_VIEW_TYPES = (ViewType.KANBAN, ViewType.GALLERY)


@dataclass
class MigrationSummary:
    """What a migration changed.

    Attributes:
        added: Ids of fields new to the schema.
        removed: Ids of fields dropped from the schema.
        retyped: Ids of fields whose type changed.
        pruned_view_refs: View id -> number of dangling field references removed.
    """

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    retyped: list[str] = field(default_factory=list)
    pruned_view_refs: dict[str, int] = field(default_factory=dict)


class SchemaMigrator:
    """Migrates a collection's records and views onto a new schema."""

    def __init__(self, truthy_values: Iterable[str] | None = None) -> None:
        """Initialize the migrator.

        Args:
            truthy_values: Strings treated as checked when a field becomes
                a checkbox. Defaults to the configured values.
        """
        self.truthy_values = list(truthy_values) if truthy_values is not None else None

    def migrate(self, collection: Collection, new_schema: Sequence[Field]) -> MigrationSummary:
        """Replace ``collection``'s schema with ``new_schema`` in place.

        Values of removed fields are deleted from every record. Values of
        new or retyped fields, and missing values of unchanged fields, are
        set through type coercion. View references to removed fields are
        pruned and the schema is stored as deep copies of ``new_schema``.
        """
        old_schema = list(collection.schema)
        old_by_id = {old.id: old for old in old_schema}
        new_ids = {new.id for new in new_schema}

        summary = MigrationSummary(
            added=[new.id for new in new_schema if new.id not in old_by_id],
            removed=[old.id for old in old_schema if old.id not in new_ids],
            retyped=[
                new.id
                for new in new_schema
                if new.id in old_by_id and old_by_id[new.id].type != new.type
            ],
        )

        for record in collection.records:
            self._migrate_record_values(record.values, old_schema, old_by_id, new_schema, new_ids)

        fallback_group_by = next(
            (
                candidate.id
                for candidate in new_schema
                if candidate.type in (FieldType.STATUS, FieldType.SELECT)
            ),
            None,
        )
        for view in collection.views:
            pruned = self._migrate_view(view, new_schema, new_ids, fallback_group_by)
            if pruned:
                summary.pruned_view_refs[view.id] = pruned

        collection.schema = [new.copy() for new in new_schema]

        logger.info(
            "Schema migrated",
            collection_id=collection.id,
            added=summary.added,
            removed=summary.removed,
            retyped=summary.retyped,
            pruned_view_refs=summary.pruned_view_refs,
        )
        return summary

    def _migrate_record_values(
        self,
        values: dict,
        old_schema: list[Field],
        old_by_id: dict[str, Field],
        new_schema: Sequence[Field],
        new_ids: set[str],
    ) -> None:
        for old in old_schema:
            if old.id not in new_ids:
                values.pop(old.id, None)

        for new in new_schema:
            old = old_by_id.get(new.id)
            present = new.id in values
            if old is not None and old.type == new.type and present:
                continue
            values[new.id] = coerce_value(new, values.get(new.id), self.truthy_values)

    def _migrate_view(
        self,
        view: View,
        new_schema: Sequence[Field],
        new_ids: set[str],
        fallback_group_by: str | None,
    ) -> int:
        """Prune dangling references from ``view``; returns how many were removed."""
        before = (
            len(view.sort)
            + len(view.filter)
            + len(view.hidden_fields)
            + len(view.field_order or [])
            + len(view.column_widths or {})
        )

        view.sort = [spec for spec in view.sort if spec.field_id in new_ids]
        view.filter = [spec for spec in view.filter if spec.field_id in new_ids]
        view.hidden_fields = [field_id for field_id in view.hidden_fields if field_id in new_ids]

        kept_order = 0
        if view.field_order is not None:
            order = [field_id for field_id in view.field_order if field_id in new_ids]
            kept_order = len(order)
            for new in new_schema:
                if new.id not in order:
                    order.append(new.id)
            view.field_order = order

        if view.column_widths is not None:
            view.column_widths = {
                field_id: width
                for field_id, width in view.column_widths.items()
                if field_id in new_ids
            }

        if view.type in GROUPED_VIEW_TYPES and (not view.group_by or view.group_by not in new_ids):
            view.group_by = fallback_group_by

        after = (
            len(view.sort)
            + len(view.filter)
            + len(view.hidden_fields)
            + kept_order
            + len(view.column_widths or {})
        )
        return before - after


def migrate(collection: Collection, new_schema: Sequence[Field]) -> MigrationSummary:
    """Migrate ``collection`` onto ``new_schema`` in place (see ``SchemaMigrator``)."""
    return SchemaMigrator().migrate(collection, new_schema)
