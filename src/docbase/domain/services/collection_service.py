"""Collection service: the host-facing entry points of the engine.

Hosts load a collection, call these methods around their own persistence
and render the results. The service holds configuration only; it keeps
no collection state between calls.
"""

from collections.abc import Iterable, Sequence

from docbase.core.config import Settings, get_settings
from docbase.core.logging import LoggingContext, get_logger
from docbase.domain.entities.collection import Collection, Field, Record
from docbase.domain.services.backlink_service import (
    BacklinkSyncResult,
    BacklinkSyncService,
    CollectionWriter,
)
from docbase.domain.services.collection_validator import (
    CollectionValidationError,
    CollectionValidator,
)
from docbase.domain.services.query_service import query_view
from docbase.domain.services.relation_inference import infer_implicit_targets
from docbase.domain.services.relation_resolver import CollectionResolver
from docbase.domain.services.schema_migration import MigrationSummary, SchemaMigrator

logger = get_logger(__name__)


class CollectionService:
    """Service for collection queries, schema edits and save hooks."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the service.

        Args:
            settings: Configuration; defaults to the cached settings.
        """
        self.settings = settings or get_settings()
        self.migrator = SchemaMigrator(self.settings.checkbox_truthy_values)

    def query(
        self,
        collection: Collection,
        view_id: str,
        resolver: CollectionResolver | None = None,
    ) -> list[Record]:
        """Records of ``collection`` as the view ``view_id`` shows them.

        An unknown view shows every record unfiltered and unsorted.
        """
        view = collection.get_view(view_id)
        if view is None:
            return collection.records
        return query_view(collection, view, resolver)

    def validate_schema_update(
        self, collection: Collection, new_schema: Sequence[Field]
    ) -> list[CollectionValidationError]:
        """Validate a schema draft for ``collection``."""
        return CollectionValidator.validate(collection.name, new_schema, collection.views)

    def update_schema(
        self, collection: Collection, new_schema: Sequence[Field]
    ) -> MigrationSummary:
        """Validate ``new_schema`` and migrate ``collection`` onto it.

        Args:
            collection: The collection to migrate in place.
            new_schema: The edited field list.

        Returns:
            Summary of what the migration changed.

        Raises:
            ValueError: If the new schema fails validation.
        """
        validation_errors = self.validate_schema_update(collection, new_schema)
        if validation_errors:
            error_messages = [f"{e.field}: {e.message}" for e in validation_errors]
            raise ValueError(f"Schema validation failed: {'; '.join(error_messages)}")

        with LoggingContext(collection_id=collection.id):
            return self.migrator.migrate(collection, new_schema)

    def prepare_for_save(self, collection: Collection, peers: Iterable[Collection]) -> bool:
        """Run relation-target inference before ``collection`` is persisted.

        Returns:
            True if a relation field was updated.
        """
        if not self.settings.relation_inference_enabled:
            return False
        with LoggingContext(collection_id=collection.id):
            return infer_implicit_targets(collection, peers)

    def after_save(
        self,
        collection: Collection,
        resolver: CollectionResolver | None = None,
        writer: CollectionWriter | None = None,
    ) -> BacklinkSyncResult:
        """Synchronise backlinks once ``collection`` has been persisted.

        Args:
            collection: The collection that was saved.
            resolver: Lookup for peer collections.
            writer: Persists each peer collection the synchronisation changed.

        Returns:
            The synchronisation result; empty when backlink sync is disabled.
        """
        if not self.settings.backlink_sync_enabled:
            logger.debug("Backlink sync disabled", collection_id=collection.id)
            return BacklinkSyncResult()
        with LoggingContext(collection_id=collection.id):
            return BacklinkSyncService(writer).sync(collection, resolver)
