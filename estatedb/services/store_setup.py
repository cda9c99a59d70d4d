"""Store initialization - collections, validators and the index plan."""

from typing import Optional

from estatedb.models.registry import SCHEMA_REGISTRY
from estatedb.services.document_store import DocumentStore
from estatedb.services.index_plan import INDEX_PLAN
from estatedb.services.store_client import get_document_store
from estatedb.utils.logging import get_structured_logger, timed

logger = get_structured_logger(__name__)


@timed("initialize_store")
async def initialize_store(store: Optional[DocumentStore] = None) -> dict[str, list[str]]:
    """
    Create every collection with its validator, then every planned index.

    Safe to re-run: existing collections and identical indexes are left
    alone, so a second run reports nothing created.
    """
    if store is None:
        store = get_document_store()

    collections_created = []
    for schema in SCHEMA_REGISTRY.values():
        if store.ensure_collection(schema.collection, schema.validator):
            collections_created.append(schema.collection)

    indexes_created = []
    for spec in INDEX_PLAN:
        if store.ensure_index(spec):
            indexes_created.append(spec.name)

    logger.info(
        "Store initialized",
        backend=store.name,
        collections_created=collections_created,
        indexes_created=indexes_created,
    )
    return {"collections_created": collections_created, "indexes_created": indexes_created}
