"""Domain services for DocBase.

Services hold the engine's logic: value coercion, computed fields, view
queries and relation maintenance. They have no dependencies on
infrastructure or storage.
"""

from docbase.domain.services.backlink_service import (
    BacklinkSyncResult,
    BacklinkSyncService,
    reconcile_backlinks,
    sync_backlinks,
)
from docbase.domain.services.collection_service import CollectionService
from docbase.domain.services.collection_templates import (
    create_collection,
    duplicate_collection,
)
from docbase.domain.services.collection_validator import (
    CollectionValidationError,
    CollectionValidator,
)
from docbase.domain.services.computed_field_service import compute_rollup, value_of
from docbase.domain.services.display_service import (
    display_value,
    option_color,
    readable_text_color,
    status_color,
)
from docbase.domain.services.formula_service import compute_formula
from docbase.domain.services.query_service import (
    FilterOperator,
    apply_filters,
    apply_sorts,
    query_view,
    visible_fields,
)
from docbase.domain.services.record_service import (
    create_related_record,
    delete_record,
    duplicate_record,
    new_record,
    record_title,
    touch_record,
    update_cell,
)
from docbase.domain.services.relation_inference import infer_implicit_targets
from docbase.domain.services.relation_resolver import (
    CollectionResolver,
    MappingResolver,
    resolve_target,
)
from docbase.domain.services.schema_migration import (
    MigrationSummary,
    SchemaMigrator,
    migrate,
)
from docbase.domain.services.value_service import (
    ValueCoercer,
    coerce_value,
    compare_values,
    to_filter_string,
    to_number,
)

__all__ = [
    "BacklinkSyncResult",
    "BacklinkSyncService",
    "CollectionResolver",
    "CollectionService",
    "CollectionValidationError",
    "CollectionValidator",
    "FilterOperator",
    "MappingResolver",
    "MigrationSummary",
    "SchemaMigrator",
    "ValueCoercer",
    "apply_filters",
    "apply_sorts",
    "coerce_value",
    "compare_values",
    "compute_formula",
    "compute_rollup",
    "create_collection",
    "create_related_record",
    "delete_record",
    "display_value",
    "duplicate_collection",
    "duplicate_record",
    "infer_implicit_targets",
    "migrate",
    "new_record",
    "option_color",
    "query_view",
    "readable_text_color",
    "reconcile_backlinks",
    "record_title",
    "resolve_target",
    "status_color",
    "sync_backlinks",
    "to_filter_string",
    "to_number",
    "touch_record",
    "update_cell",
    "value_of",
    "visible_fields",
]
