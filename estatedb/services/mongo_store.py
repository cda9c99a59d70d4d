"""MongoDB document store backed by pymongo."""

import re
from typing import Optional

from pymongo import MongoClient
from pymongo.errors import CollectionInvalid, DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import OperationFailure, PyMongoError, WriteError

from estatedb.models.registry import get_entity_schema
from estatedb.services.document_store import DocumentStore, SortSpec
from estatedb.services.index_plan import IndexSpec
from estatedb.utils.errors import (
    DocumentNotFoundError,
    DuplicateKeyError,
    IndexConflictError,
    SchemaViolation,
    StoreError,
)
from estatedb.utils.ids import generate_document_id
from estatedb.utils.logging import get_structured_logger

logger = get_structured_logger(__name__).bind(backend="mongodb")

# Server error codes
DOCUMENT_VALIDATION_FAILURE = 121
INDEX_OPTIONS_CONFLICT = 85
INDEX_KEY_SPECS_CONFLICT = 86

_INDEX_NAME_PATTERN = re.compile(r"index: (\S+)")


def _entity_label(collection: str) -> str:
    try:
        return get_entity_schema(collection).entity.value
    except KeyError:
        return collection


class MongoDocumentStore(DocumentStore):
    """DocumentStore over a live MongoDB database (server-side validators, $geoNear, $text)."""

    name = "mongodb"

    def __init__(self, uri: str, database: str, timeout_ms: int = 5000, client: Optional[MongoClient] = None):
        self.client = client or MongoClient(uri, tz_aware=True, serverSelectionTimeoutMS=timeout_ms)
        self.db = self.client[database]
        logger.info("MongoDB client initialized", database=database)

    def ensure_collection(self, name: str, validator: Optional[dict] = None) -> bool:
        try:
            self.db.create_collection(name, validator=validator or {})
            logger.info("Collection created", collection=name)
            return True
        except CollectionInvalid:
            # Already there: keep its validator current
            if validator:
                try:
                    self.db.command("collMod", name, validator=validator)
                except PyMongoError as e:
                    raise StoreError(f"Failed to update validator for {name}: {e}")
            return False
        except PyMongoError as e:
            raise StoreError(f"Failed to create collection {name}: {e}")

    def ensure_index(self, spec: IndexSpec) -> bool:
        collection = self.db[spec.collection]
        options = {"name": spec.name}
        if spec.unique:
            options["unique"] = True
        if spec.weights:
            options["weights"] = spec.weights

        try:
            existing = collection.index_information()
            if spec.name in existing:
                return False
            collection.create_index(spec.to_mongo_keys(), **options)
            return True
        except MongoDuplicateKeyError as e:
            raise DuplicateKeyError(spec.collection, spec.name, (e.details or {}).get("keyValue"))
        except OperationFailure as e:
            if e.code in (INDEX_OPTIONS_CONFLICT, INDEX_KEY_SPECS_CONFLICT):
                if "already exists" in str(e).lower():
                    logger.warning(
                        "Index already exists under another definition; leaving it in place",
                        collection=spec.collection,
                        index=spec.name,
                        error=str(e),
                    )
                    return False
                raise IndexConflictError(f"Index conflict for {spec.collection}.{spec.name}: {e}")
            raise StoreError(f"Failed to create index {spec.name}: {e}")
        except PyMongoError as e:
            raise StoreError(f"Failed to create index {spec.name}: {e}")

    def _raise_write_error(self, collection: str, error: PyMongoError) -> None:
        if isinstance(error, MongoDuplicateKeyError):
            details = error.details or {}
            match = _INDEX_NAME_PATTERN.search(str(error))
            index = match.group(1) if match else "unknown"
            raise DuplicateKeyError(collection, index, details.get("keyValue"))
        if isinstance(error, WriteError) and error.code == DOCUMENT_VALIDATION_FAILURE:
            raise SchemaViolation(_entity_label(collection), "document", f"server validation failed: {error}")
        raise StoreError(f"Write to {collection} failed: {error}")

    def insert_one(self, collection: str, document: dict) -> str:
        stored = dict(document)
        stored.setdefault("_id", generate_document_id())
        try:
            self.db[collection].insert_one(stored)
        except PyMongoError as e:
            self._raise_write_error(collection, e)
        return stored["_id"]

    def replace_one(self, collection: str, document_id: str, document: dict) -> dict:
        replacement = {key: value for key, value in document.items() if key != "_id"}
        try:
            result = self.db[collection].replace_one({"_id": document_id}, replacement)
        except PyMongoError as e:
            self._raise_write_error(collection, e)
        if result.matched_count == 0:
            raise DocumentNotFoundError(collection, document_id)
        return {"_id": document_id, **replacement}

    def find_one(self, collection: str, filters: dict) -> Optional[dict]:
        try:
            return self.db[collection].find_one(filters)
        except PyMongoError as e:
            raise StoreError(f"Failed to query {collection}: {e}")

    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        try:
            cursor = self.db[collection].find(filters or {})
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)
        except PyMongoError as e:
            raise StoreError(f"Failed to query {collection}: {e}")

    def geo_near(
        self,
        collection: str,
        field: str,
        near: tuple[float, float],
        max_distance: Optional[float] = None,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
        distance_field: str = "distance_m",
    ) -> list[dict]:
        stage = {
            "near": {"type": "Point", "coordinates": [near[0], near[1]]},
            "distanceField": distance_field,
            "key": field,
            "spherical": True,
        }
        if max_distance is not None:
            stage["maxDistance"] = max_distance
        if filters:
            stage["query"] = filters

        pipeline = [{"$geoNear": stage}]
        if limit:
            pipeline.append({"$limit": limit})
        try:
            return list(self.db[collection].aggregate(pipeline))
        except PyMongoError as e:
            raise StoreError(f"geo_near on {collection} failed: {e}")

    def text_search(
        self,
        collection: str,
        query: str,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
        score_field: str = "score",
    ) -> list[dict]:
        criteria = {"$text": {"$search": query}}
        if filters:
            criteria.update(filters)
        try:
            cursor = (
                self.db[collection]
                .find(criteria, {score_field: {"$meta": "textScore"}})
                .sort([(score_field, {"$meta": "textScore"}), ("_id", 1)])
            )
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)
        except PyMongoError as e:
            raise StoreError(f"text search on {collection} failed: {e}")

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB client closed")
