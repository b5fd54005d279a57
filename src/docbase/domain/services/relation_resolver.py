"""Relation target resolution across collections.

The engine never owns peer collections. Hosts hand in a resolver that
borrows them for the duration of one computation; relations without a
configured (or resolvable) target reference their own collection.
"""

from collections.abc import Iterable, Mapping
from typing import Protocol

from docbase.domain.entities.collection import Collection, Field


class CollectionResolver(Protocol):
    """Looks up peer collections by id for cross-collection relations."""

    def resolve(self, collection_id: str) -> Collection | None:
        ...


class MappingResolver:
    """Resolver over an in-memory mapping of collection id to collection."""

    def __init__(self, collections: Mapping[str, Collection] | None = None) -> None:
        self._collections: dict[str, Collection] = dict(collections or {})

    @classmethod
    def from_collections(cls, collections: Iterable[Collection]) -> "MappingResolver":
        return cls({collection.id: collection for collection in collections})

    def add(self, collection: Collection) -> None:
        self._collections[collection.id] = collection

    def resolve(self, collection_id: str) -> Collection | None:
        return self._collections.get(collection_id)

    def __iter__(self):
        return iter(self._collections.values())

    def __len__(self) -> int:
        return len(self._collections)


def resolve_target(
    collection: Collection, relation_field: Field, resolver: CollectionResolver | None = None
) -> Collection:
    """Return the collection a relation field points to.

    Falls back to ``collection`` itself when the field has no target,
    no resolver is supplied, or the resolver cannot find the target.
    """
    relation = relation_field.relation
    target_id = relation.target_collection_id if relation else None
    if target_id and resolver is not None:
        return resolver.resolve(target_id) or collection
    return collection
