"""In-memory document store with unique, equality, 2dsphere and text indexes."""

import copy
from typing import Any, Optional

from estatedb.services.document_store import DocumentStore, SortSpec, get_path
from estatedb.services.index_plan import IndexKind, IndexSpec
from estatedb.utils.errors import DocumentNotFoundError, DuplicateKeyError, IndexConflictError, StoreError
from estatedb.utils.geo import cells_within, grid_cell, haversine_distance, is_valid_point
from estatedb.utils.ids import generate_document_id
from estatedb.utils.logging import get_structured_logger
from estatedb.utils.text_search import parse_search, score_document

logger = get_structured_logger(__name__).bind(backend="memory")

_COMPARISONS = {
    "$gt": lambda value, operand: value > operand,
    "$gte": lambda value, operand: value >= operand,
    "$lt": lambda value, operand: value < operand,
    "$lte": lambda value, operand: value <= operand,
}


def _hashable(value: Any) -> Any:
    if isinstance(value, dict):
        return tuple(sorted((key, _hashable(item)) for key, item in value.items()))
    if isinstance(value, list):
        return tuple(_hashable(item) for item in value)
    return value


def _is_operator_expression(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(key.startswith("$") for key in condition)


def _compare(operator: str, value: Any, operand: Any) -> bool:
    if operator == "$eq":
        return value == operand
    if operator == "$ne":
        return value != operand
    if operator == "$in":
        return value in operand
    if operator == "$nin":
        return value not in operand
    if operator not in _COMPARISONS:
        raise StoreError(f"Unsupported query operator: {operator}")
    if value is None:
        return False
    try:
        return _COMPARISONS[operator](value, operand)
    except TypeError:
        # Mismatched types never match, as in MongoDB
        return False


def matches(document: dict, filters: Optional[dict]) -> bool:
    """Evaluate a MongoDB-style filter (equality and comparison operators) against a document."""
    for path, condition in (filters or {}).items():
        value = get_path(document, path)
        if _is_operator_expression(condition):
            if not all(_compare(operator, value, operand) for operator, operand in condition.items()):
                return False
        elif value != condition:
            return False
    return True


def _sort_key(value: Any) -> tuple:
    # Missing / null sorts lowest
    return (0,) if value is None else (1, value)


def sort_documents(documents: list[dict], sort: SortSpec) -> list[dict]:
    """Stable multi-key sort; later keys break ties of earlier ones."""
    ordered = list(documents)
    for field, direction in reversed(sort):
        ordered.sort(key=lambda document: _sort_key(get_path(document, field)), reverse=direction < 0)
    return ordered


class _KeyIndex:
    """Ascending/descending index: equality hash on the leading field, optional uniqueness."""

    def __init__(self, spec: IndexSpec):
        self.spec = spec
        self.fields = spec.field_names()
        self.leading: dict[Any, set[str]] = {}
        self.unique_keys: dict[tuple, str] = {}

    def _key(self, document: dict) -> tuple:
        return tuple(_hashable(get_path(document, field)) for field in self.fields)

    def check(self, collection: str, document_id: str, document: dict) -> None:
        if not self.spec.unique:
            return
        owner = self.unique_keys.get(self._key(document))
        if owner is not None and owner != document_id:
            key = {field: get_path(document, field) for field in self.fields}
            raise DuplicateKeyError(collection, self.spec.name, key)

    def add(self, document_id: str, document: dict) -> None:
        leading_value = _hashable(get_path(document, self.fields[0]))
        self.leading.setdefault(leading_value, set()).add(document_id)
        if self.spec.unique:
            self.unique_keys[self._key(document)] = document_id

    def remove(self, document_id: str, document: dict) -> None:
        leading_value = _hashable(get_path(document, self.fields[0]))
        bucket = self.leading.get(leading_value)
        if bucket is not None:
            bucket.discard(document_id)
            if not bucket:
                del self.leading[leading_value]
        if self.spec.unique and self.unique_keys.get(self._key(document)) == document_id:
            del self.unique_keys[self._key(document)]

    def candidates(self, filters: dict) -> Optional[set[str]]:
        """Ids that can match when the filter pins the leading field; None if it doesn't."""
        condition = filters.get(self.fields[0], _MISSING)
        if condition is _MISSING:
            return None
        if not _is_operator_expression(condition):
            return set(self.leading.get(_hashable(condition), ()))
        if set(condition) == {"$in"}:
            found: set[str] = set()
            for value in condition["$in"]:
                found.update(self.leading.get(_hashable(value), ()))
            return found
        if set(condition) == {"$eq"}:
            return set(self.leading.get(_hashable(condition["$eq"]), ()))
        return None


_MISSING = object()


class _GeoIndex:
    """2dsphere index: points bucketed into 1-degree cells."""

    def __init__(self, spec: IndexSpec):
        self.spec = spec
        self.field = next(field for field, kind in spec.keys if kind is IndexKind.GEOSPHERE)
        self.cells: dict[tuple[int, int], set[str]] = {}
        self.points: dict[str, tuple[float, float]] = {}

    def _point(self, document: dict) -> Optional[tuple[float, float]]:
        value = get_path(document, self.field)
        if value is None:
            return None
        coordinates = value.get("coordinates") if isinstance(value, dict) else None
        if (
            not isinstance(value, dict)
            or value.get("type") != "Point"
            or not isinstance(coordinates, list)
            or len(coordinates) != 2
            or any(isinstance(c, bool) or not isinstance(c, (int, float)) for c in coordinates)
            or not is_valid_point(*coordinates)
        ):
            raise StoreError(f"Can't extract geo keys from {self.field}: {value!r}")
        return float(coordinates[0]), float(coordinates[1])

    def check(self, collection: str, document_id: str, document: dict) -> None:
        self._point(document)

    def add(self, document_id: str, document: dict) -> None:
        point = self._point(document)
        if point is None:
            return
        self.points[document_id] = point
        self.cells.setdefault(grid_cell(*point), set()).add(document_id)

    def remove(self, document_id: str, document: dict) -> None:
        point = self.points.pop(document_id, None)
        if point is None:
            return
        cell = grid_cell(*point)
        self.cells[cell].discard(document_id)
        if not self.cells[cell]:
            del self.cells[cell]

    def near(self, longitude: float, latitude: float, max_distance: Optional[float]) -> list[tuple[float, str]]:
        if max_distance is None:
            candidates = set(self.points)
        else:
            candidates = set()
            for cell in cells_within(longitude, latitude, max_distance):
                candidates.update(self.cells.get(cell, ()))

        hits = []
        for document_id in candidates:
            point_lon, point_lat = self.points[document_id]
            distance = haversine_distance(longitude, latitude, point_lon, point_lat)
            if max_distance is None or distance <= max_distance:
                hits.append((distance, document_id))
        hits.sort()
        return hits


class _TextIndex:
    """Text index: inverted postings of per-document term scores."""

    def __init__(self, spec: IndexSpec):
        self.spec = spec
        self.fields = [field for field, kind in spec.keys if kind is IndexKind.TEXT]
        self.weights = dict(spec.weights or {})
        self.postings: dict[str, dict[str, float]] = {}
        self.document_terms: dict[str, dict[str, float]] = {}

    def check(self, collection: str, document_id: str, document: dict) -> None:
        return None

    def add(self, document_id: str, document: dict) -> None:
        flattened = {field: get_path(document, field) for field in self.fields}
        scores = score_document(flattened, self.fields, self.weights)
        self.document_terms[document_id] = scores
        for term, score in scores.items():
            self.postings.setdefault(term, {})[document_id] = score

    def remove(self, document_id: str, document: dict) -> None:
        for term in self.document_terms.pop(document_id, {}):
            posting = self.postings.get(term)
            if posting is None:
                continue
            posting.pop(document_id, None)
            if not posting:
                del self.postings[term]

    def search(self, query: str) -> dict[str, float]:
        wanted, excluded = parse_search(query)
        scores: dict[str, float] = {}
        for term in wanted:
            for document_id, score in self.postings.get(term, {}).items():
                scores[document_id] = scores.get(document_id, 0.0) + score
        for term in excluded:
            for document_id in self.postings.get(term, {}):
                scores.pop(document_id, None)
        return scores


def _build_index(spec: IndexSpec):
    if spec.has_kind(IndexKind.TEXT):
        return _TextIndex(spec)
    if spec.has_kind(IndexKind.GEOSPHERE):
        return _GeoIndex(spec)
    return _KeyIndex(spec)


class InMemoryDocumentStore(DocumentStore):
    """
    Process-local store for tests and environments without MongoDB.

    Validators are recorded but not enforced here; the validation gate runs
    before every write. Documents are copied on the way in and out.
    """

    name = "memory"

    def __init__(self):
        self._collections: dict[str, dict[str, dict]] = {}
        self._validators: dict[str, Optional[dict]] = {}
        self._indexes: dict[str, dict[str, Any]] = {}

    def ensure_collection(self, name: str, validator: Optional[dict] = None) -> bool:
        created = name not in self._collections
        self._collections.setdefault(name, {})
        self._indexes.setdefault(name, {})
        self._validators[name] = validator
        logger.debug("Collection ensured", collection=name, newly_created=created)
        return created

    def validator_for(self, name: str) -> Optional[dict]:
        return self._validators.get(name)

    def index_names(self, collection: str) -> list[str]:
        return list(self._indexes.get(collection, {}))

    def ensure_index(self, spec: IndexSpec) -> bool:
        indexes = self._indexes.setdefault(spec.collection, {})
        documents = self._collections.setdefault(spec.collection, {})

        existing = indexes.get(spec.name)
        if existing is not None:
            if existing.spec == spec:
                return False
            raise IndexConflictError(
                f"Index {spec.name} already exists on {spec.collection} with a different definition"
            )
        for other in indexes.values():
            if other.spec.keys == spec.keys:
                raise IndexConflictError(
                    f"Index with keys {spec.to_mongo_keys()} already exists on {spec.collection} as {other.spec.name}"
                )
            if spec.has_kind(IndexKind.TEXT) and other.spec.has_kind(IndexKind.TEXT):
                raise IndexConflictError(f"Only one text index per collection allowed ({spec.collection})")

        index = _build_index(spec)
        for document_id, document in documents.items():
            index.check(spec.collection, document_id, document)
            index.add(document_id, document)
        indexes[spec.name] = index

        logger.debug("Index created", collection=spec.collection, index=spec.name)
        return True

    def _collection(self, collection: str) -> dict[str, dict]:
        return self._collections.setdefault(collection, {})

    def insert_one(self, collection: str, document: dict) -> str:
        documents = self._collection(collection)
        stored = copy.deepcopy(document)
        document_id = stored.setdefault("_id", generate_document_id())
        if document_id in documents:
            raise DuplicateKeyError(collection, "_id_", {"_id": document_id})

        indexes = self._indexes.setdefault(collection, {}).values()
        for index in indexes:
            index.check(collection, document_id, stored)
        for index in indexes:
            index.add(document_id, stored)
        documents[document_id] = stored
        return document_id

    def replace_one(self, collection: str, document_id: str, document: dict) -> dict:
        documents = self._collection(collection)
        current = documents.get(document_id)
        if current is None:
            raise DocumentNotFoundError(collection, document_id)

        replacement = copy.deepcopy(document)
        replacement["_id"] = document_id
        indexes = self._indexes.setdefault(collection, {}).values()
        for index in indexes:
            index.check(collection, document_id, replacement)
        for index in indexes:
            index.remove(document_id, current)
            index.add(document_id, replacement)
        documents[document_id] = replacement
        return copy.deepcopy(replacement)

    def _candidate_ids(self, collection: str, filters: dict) -> list[str]:
        documents = self._collection(collection)
        if "_id" in filters and not _is_operator_expression(filters["_id"]):
            return [filters["_id"]] if filters["_id"] in documents else []

        best: Optional[set[str]] = None
        for index in self._indexes.get(collection, {}).values():
            if not isinstance(index, _KeyIndex):
                continue
            found = index.candidates(filters)
            if found is not None and (best is None or len(found) < len(best)):
                best = found
        if best is None:
            return list(documents)
        # Keep insertion order
        return [document_id for document_id in documents if document_id in best]

    def find_one(self, collection: str, filters: dict) -> Optional[dict]:
        found = self.find(collection, filters, limit=1)
        return found[0] if found else None

    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        filters = filters or {}
        documents = self._collection(collection)
        results = [
            documents[document_id]
            for document_id in self._candidate_ids(collection, filters)
            if matches(documents[document_id], filters)
        ]
        if sort:
            results = sort_documents(results, sort)
        if limit:
            results = results[:limit]
        return copy.deepcopy(results)

    def _index_of(self, collection: str, kind: IndexKind, field: Optional[str] = None):
        for index in self._indexes.get(collection, {}).values():
            if not index.spec.has_kind(kind):
                continue
            if field is None or any(key == field and key_kind is kind for key, key_kind in index.spec.keys):
                return index
        return None

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
        index = self._index_of(collection, IndexKind.GEOSPHERE, field)
        if index is None:
            raise StoreError(f"geo_near requires a 2dsphere index on {collection}.{field}")
        longitude, latitude = near
        if not is_valid_point(longitude, latitude):
            raise StoreError(f"Invalid point for geo_near: {near!r}")

        documents = self._collection(collection)
        results = []
        for distance, document_id in index.near(longitude, latitude, max_distance):
            document = documents[document_id]
            if not matches(document, filters):
                continue
            annotated = copy.deepcopy(document)
            annotated[distance_field] = distance
            results.append(annotated)
            if limit and len(results) >= limit:
                break
        return results

    def text_search(
        self,
        collection: str,
        query: str,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
        score_field: str = "score",
    ) -> list[dict]:
        index = self._index_of(collection, IndexKind.TEXT)
        if index is None:
            raise StoreError(f"text index required for text search on {collection}")

        documents = self._collection(collection)
        scored = sorted(index.search(query).items(), key=lambda item: (-item[1], item[0]))
        results = []
        for document_id, score in scored:
            document = documents[document_id]
            if not matches(document, filters):
                continue
            annotated = copy.deepcopy(document)
            annotated[score_field] = score
            results.append(annotated)
            if limit and len(results) >= limit:
                break
        return results

    def close(self) -> None:
        self._collections.clear()
        self._validators.clear()
        self._indexes.clear()
