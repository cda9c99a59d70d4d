"""Schema registry - entity name -> collection, model and server-side validator."""

from enum import Enum
from typing import Any, Union

from pydantic import ValidationError

from estatedb.models.appointment import APPOINTMENT_VALIDATOR, Appointment
from estatedb.models.common import DocumentModel
from estatedb.models.inquiry import INQUIRY_VALIDATOR, Inquiry
from estatedb.models.property import PROPERTY_VALIDATOR, Property
from estatedb.models.user import USER_VALIDATOR, User
from estatedb.utils.errors import SchemaViolation


class EntityName(str, Enum):
    """Stored entity names."""
    USER = "User"
    PROPERTY = "Property"
    INQUIRY = "Inquiry"
    APPOINTMENT = "Appointment"


def _collect_violations(exc: ValidationError) -> list[tuple[str, str]]:
    """Flatten pydantic errors to (dotted field, reason), missing fields first."""
    missing = []
    invalid = []
    for error in exc.errors(include_url=False):
        field = ".".join(str(part) for part in error["loc"]) or "document"
        if error["type"] == "missing":
            missing.append((field, "required field missing"))
        else:
            invalid.append((field, error["msg"]))
    return missing + invalid


class EntitySchema:
    """Validation entry point for one entity."""

    def __init__(self, entity: EntityName, collection: str, model: type[DocumentModel], validator: dict):
        self.entity = entity
        self.collection = collection
        self.model = model
        self.validator = validator

    def validate(self, document: Any) -> DocumentModel:
        """Return the validated model or raise SchemaViolation."""
        if not isinstance(document, dict):
            raise SchemaViolation(self.entity.value, "document", "must be a mapping")

        payload = {key: value for key, value in document.items() if key != "_id"}
        try:
            return self.model.model_validate(payload)
        except ValidationError as e:
            violations = _collect_violations(e)
            field, reason = violations[0]
            raise SchemaViolation(self.entity.value, field, reason, violations) from e

    def __repr__(self) -> str:
        return f"EntitySchema({self.entity.value!r}, collection={self.collection!r})"


SCHEMA_REGISTRY: dict[EntityName, EntitySchema] = {
    EntityName.USER: EntitySchema(EntityName.USER, "users", User, USER_VALIDATOR),
    EntityName.PROPERTY: EntitySchema(EntityName.PROPERTY, "properties", Property, PROPERTY_VALIDATOR),
    EntityName.INQUIRY: EntitySchema(EntityName.INQUIRY, "inquiries", Inquiry, INQUIRY_VALIDATOR),
    EntityName.APPOINTMENT: EntitySchema(EntityName.APPOINTMENT, "appointments", Appointment, APPOINTMENT_VALIDATOR),
}


def get_entity_schema(name: Union[EntityName, str]) -> EntitySchema:
    """Look up a schema by entity name ("Property") or collection name ("properties")."""
    for schema in SCHEMA_REGISTRY.values():
        if name in (schema.entity, schema.entity.value, schema.collection):
            return schema
    raise KeyError(f"Unknown entity or collection: {name}")
