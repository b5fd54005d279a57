"""Backlink synchronisation between reciprocal relation fields.

A relation field may declare a reciprocal field on its target collection.
After the source collection is saved, the reciprocal field on every
target record is reconciled with the set of source records that link to
it. Only ids of source records are ever added or removed, so links that
another relation pair contributed to the same reciprocal field survive.

Propagation is bounded to one hop: collections changed here are written
back once and do not trigger a synchronisation of their own.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from docbase.core.logging import get_logger
from docbase.domain.entities.collection import Collection, Field, FieldType
from docbase.domain.services.relation_resolver import CollectionResolver

logger = get_logger(__name__)

# Persists one collection; raising marks that write as failed.
CollectionWriter = Callable[[Collection], None]


@dataclass
class BacklinkSyncResult:
    """Outcome of one synchronisation pass.

    Attributes:
        changed: Target collections whose records were updated, in the order
            they were first changed.
        written: Ids of changed collections the writer persisted.
        failed: Collection id -> error message for writes that raised.
    """

    changed: list[Collection] = field(default_factory=list)
    written: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def reciprocal_relation_fields(collection: Collection) -> list[Field]:
    """Relation fields that declare both a target collection and a reciprocal field."""
    return [
        candidate
        for candidate in collection.schema
        if candidate.type == FieldType.RELATION
        and candidate.relation is not None
        and candidate.relation.target_collection_id
        and candidate.relation.target_relation_field_id
    ]


def _resolve_peer(
    source: Collection, collection_id: str, resolver: CollectionResolver | None
) -> Collection | None:
    if collection_id == source.id:
        return source
    if resolver is None:
        return None
    return resolver.resolve(collection_id)


def reconcile_backlinks(
    source: Collection, resolver: CollectionResolver | None = None
) -> list[Collection]:
    """Bring reciprocal fields on target collections in line with ``source``.

    Target records are updated in place. Relations whose target collection
    or reciprocal field cannot be found are skipped.

    Returns:
        The target collections that changed, each listed once.
    """
    changed: list[Collection] = []
    source_record_ids = [record.id for record in source.records]
    source_id_set = set(source_record_ids)

    for relation_field in reciprocal_relation_fields(source):
        target = _resolve_peer(source, relation_field.relation.target_collection_id, resolver)
        if target is None:
            continue
        reciprocal = target.get_field(relation_field.relation.target_relation_field_id)
        if reciprocal is None or reciprocal.type != FieldType.RELATION:
            continue

        inbound: dict[str, set[str]] = {}
        for source_record in source.records:
            for linked_id in source_record.linked_ids(relation_field.id):
                inbound.setdefault(linked_id, set()).add(source_record.id)

        target_changed = False
        for target_record in target.records:
            expected = inbound.get(target_record.id, set())
            current = list(dict.fromkeys(target_record.linked_ids(reciprocal.id)))
            stale = [
                linked_id
                for linked_id in current
                if linked_id in source_id_set and linked_id not in expected
            ]
            missing = [
                source_id
                for source_id in source_record_ids
                if source_id in expected and source_id not in current
            ]
            if stale or missing:
                kept = [linked_id for linked_id in current if linked_id not in stale]
                target_record.set(reciprocal.id, kept + missing)
                target_changed = True

        if target_changed and all(existing is not target for existing in changed):
            changed.append(target)

    return changed


class BacklinkSyncService:
    """Reconciles backlinks after a save and writes changed collections back."""

    def __init__(self, writer: CollectionWriter | None = None) -> None:
        """Initialize the service.

        Args:
            writer: Host callback that persists a collection. Without one,
                changes are computed in place and nothing is written.
        """
        self.writer = writer

    def sync(
        self, source: Collection, resolver: CollectionResolver | None = None
    ) -> BacklinkSyncResult:
        """Synchronise backlinks for ``source`` and persist affected collections.

        A failed write is logged and recorded; the remaining collections
        are still written.
        """
        result = BacklinkSyncResult(changed=reconcile_backlinks(source, resolver))
        if result.changed:
            logger.info(
                "Backlinks reconciled",
                source_collection_id=source.id,
                changed_collection_ids=[collection.id for collection in result.changed],
            )
        if self.writer is None:
            return result

        for collection in result.changed:
            try:
                self.writer(collection)
            except Exception as exc:
                logger.warning(
                    "Backlink write failed",
                    source_collection_id=source.id,
                    target_collection_id=collection.id,
                    error=str(exc),
                )
                result.failed[collection.id] = str(exc)
            else:
                result.written.append(collection.id)

        return result


def sync_backlinks(
    source: Collection,
    resolver: CollectionResolver | None = None,
    writer: CollectionWriter | None = None,
) -> BacklinkSyncResult:
    """Synchronise backlinks for ``source`` (see ``BacklinkSyncService``)."""
    return BacklinkSyncService(writer).sync(source, resolver)
