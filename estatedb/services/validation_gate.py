"""Validation gate - every create/update passes through here before reaching the store."""

from datetime import datetime, timezone
from typing import Union

from estatedb.models.common import as_utc
from estatedb.models.registry import EntityName, get_entity_schema
from estatedb.utils.errors import SchemaViolation
from estatedb.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

IMMUTABLE_FIELDS = ("_id", "created_at")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def validate_document(entity: Union[EntityName, str], document: dict) -> dict:
    """
    Validate a full document against its entity schema.

    Returns the normalized document (enum members as plain values, only the
    fields the caller supplied, ``_id`` preserved). Raises SchemaViolation;
    nothing is written on failure.
    """
    schema = get_entity_schema(entity)
    try:
        model = schema.validate(document)
    except SchemaViolation as e:
        logger.warning(
            "Document rejected by schema validation",
            entity=e.entity,
            field=e.field,
            reason=e.reason,
            violation_count=len(e.violations),
        )
        raise

    normalized = model.model_dump(mode="python", exclude_unset=True)
    if "_id" in document:
        normalized = {"_id": document["_id"], **normalized}
    return normalized


def validate_update(entity: Union[EntityName, str], existing: dict, updates: dict) -> dict:
    """
    Merge top-level updates over a stored document and validate the result.

    ``_id`` and ``created_at`` cannot change. Properties get ``updated_at``
    stamped on every modification.
    """
    schema = get_entity_schema(entity)
    for field in IMMUTABLE_FIELDS:
        if field in updates and as_utc(updates[field]) != as_utc(existing.get(field)):
            logger.warning(
                "Update rejected: immutable field",
                entity=schema.entity.value,
                field=field,
            )
            raise SchemaViolation(schema.entity.value, field, "immutable")

    merged = {**existing, **updates}
    if schema.entity is EntityName.PROPERTY:
        merged["updated_at"] = utc_now()
    return validate_document(schema.entity, merged)
