"""DocBase - a computed-field and referential-integrity engine for document databases.

Collections of typed fields, saved views and flat records are passed in
as snapshots; the engine derives computed values, filters and sorts view
records, and keeps relation fields consistent across collections.
"""

__version__ = "0.1.0"

from docbase.domain.services.collection_service import CollectionService

__all__ = ["CollectionService", "__version__"]
