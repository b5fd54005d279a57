"""Implicit relation-target inference.

When a relation field has no target collection configured, its name is
matched against the names of sibling collections ("Project" links to a
"Projects" collection). On a match the reciprocal backlink field is wired
up too, when the target has a relation field named after the source.
Inference is a best-effort convenience and never overwrites a target
that is already configured.
"""

import re
from collections.abc import Iterable

from docbase.core.logging import get_logger
from docbase.domain.entities.collection import Collection, Field, FieldType, RelationConfig

logger = get_logger(__name__)

NON_ALPHANUMERIC_PATTERN = re.compile(r"[^a-z0-9]")


def normalize_token(value: str) -> str:
    """Lower-case, strip non-alphanumerics and a single trailing ``s``."""
    token = NON_ALPHANUMERIC_PATTERN.sub("", (value or "").lower())
    return token[:-1] if token.endswith("s") else token


def infer_target_collection(
    relation_field_name: str, source_name: str, peers: list[Collection]
) -> Collection | None:
    """Pick the peer collection a relation field most likely points to.

    Exact token matches win, then peers whose token contains the field's,
    then peers whose token is contained in the field's. Project and task
    collections are paired as a last resort.
    """
    relation_token = normalize_token(relation_field_name)
    source_token = normalize_token(source_name)
    named = [(peer, normalize_token(peer.name)) for peer in peers]

    if relation_token:
        candidates = [peer for peer, token in named if token and token == relation_token]
        candidates += [peer for peer, token in named if token and relation_token in token]
        candidates += [peer for peer, token in named if token and token in relation_token]
        if candidates:
            return candidates[0]

    def first_named(fragment: str) -> Collection | None:
        return next((peer for peer, token in named if fragment in token), None)

    if "project" in relation_token:
        return first_named("project")
    if "project" in source_token and "task" in relation_token:
        return first_named("task")
    return None


def infer_backlink_field(target: Collection, source_name: str) -> Field | None:
    """Relation field on ``target`` whose name mentions the source collection."""
    source_token = normalize_token(source_name)
    if not source_token:
        return None
    return next(
        (
            field
            for field in target.schema
            if field.type == FieldType.RELATION and source_token in normalize_token(field.name)
        ),
        None,
    )


def infer_implicit_targets(collection: Collection, peers: Iterable[Collection]) -> bool:
    """Fill in missing relation targets on ``collection`` from its peers.

    Args:
        collection: The collection whose relation fields are inspected.
            Its fields are updated in place.
        peers: Sibling collections; ``collection`` itself may be included
            and is ignored.

    Returns:
        True if any field was updated, so the caller knows to persist.
    """
    candidates = [peer for peer in peers if peer.id != collection.id]
    changed = False

    for field in collection.schema:
        if field.type != FieldType.RELATION:
            continue
        if field.relation is None:
            field.relation = RelationConfig()
        if field.relation.target_collection_id:
            continue

        inferred = infer_target_collection(field.name, collection.name, candidates)
        if inferred is None:
            continue
        field.relation.target_collection_id = inferred.id
        changed = True

        if not field.relation.target_relation_field_id:
            backlink = infer_backlink_field(inferred, collection.name)
            if backlink is not None:
                field.relation.target_relation_field_id = backlink.id

        logger.info(
            "Inferred relation target",
            collection_id=collection.id,
            field_id=field.id,
            target_collection_id=inferred.id,
            target_relation_field_id=field.relation.target_relation_field_id,
        )

    return changed
