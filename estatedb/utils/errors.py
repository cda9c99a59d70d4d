"""Error handling utilities."""

from typing import Any, Optional


class EstateDBError(Exception):
    """Base exception for the estatedb core."""
    pass


class SchemaViolation(EstateDBError):
    """Document failed its entity's schema validation."""

    def __init__(
        self,
        entity: str,
        field: str,
        reason: str,
        violations: Optional[list[tuple[str, str]]] = None,
    ):
        self.entity = entity
        self.field = field
        self.reason = reason
        self.violations = violations or [(field, reason)]
        super().__init__(f"{entity}.{field}: {reason}")


class DuplicateKeyError(EstateDBError):
    """Unique index conflict."""

    def __init__(self, collection: str, index: str, key: Any):
        self.collection = collection
        self.index = index
        self.key = key
        super().__init__(f"Duplicate key on {collection}.{index}: {key!r}")


class DocumentNotFoundError(EstateDBError):
    """No document with the given id."""

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"{collection} document not found: {document_id}")


class InvalidQueryError(EstateDBError):
    """Query parameters rejected before reaching the store."""
    pass


class StoreError(EstateDBError):
    """Document store operation error."""
    pass


class IndexConflictError(StoreError):
    """An index with the same name but a different definition exists."""
    pass
