"""Document store contract shared by the MongoDB and in-memory backends."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from estatedb.services.index_plan import IndexSpec

# (field, 1 | -1) pairs, MongoDB style
SortSpec = list[tuple[str, int]]


class DocumentStore(ABC):
    """
    Queryable document store with validation hooks, unique indexes,
    spherical radius queries and text relevance queries.

    Documents are plain dicts keyed by field name; ``_id`` is assigned by the
    caller before insert.
    """

    name = "abstract"

    @abstractmethod
    def ensure_collection(self, name: str, validator: Optional[dict] = None) -> bool:
        """Create a collection (or refresh its validator). True if it was created."""

    @abstractmethod
    def ensure_index(self, spec: IndexSpec) -> bool:
        """Create an index. False if an identical index already exists."""

    @abstractmethod
    def insert_one(self, collection: str, document: dict) -> str:
        """Insert one document and return its ``_id``."""

    @abstractmethod
    def replace_one(self, collection: str, document_id: str, document: dict) -> dict:
        """Replace a document by ``_id`` and return the stored version."""

    @abstractmethod
    def find_one(self, collection: str, filters: dict) -> Optional[dict]:
        """First document matching the filters, or None."""

    @abstractmethod
    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Documents matching the filters."""

    @abstractmethod
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
        """Documents nearest ``near`` (longitude, latitude) first, with spherical distance in meters."""

    @abstractmethod
    def text_search(
        self,
        collection: str,
        query: str,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
        score_field: str = "score",
    ) -> list[dict]:
        """Documents by descending text relevance score."""

    def close(self) -> None:
        """Release backend resources."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(backend={self.name!r})"


def get_path(document: dict, path: str) -> Any:
    """Resolve a dotted field path; None when any segment is missing."""
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value
