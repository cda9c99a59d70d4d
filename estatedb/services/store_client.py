"""Document store client with async context manager support, plus write helpers."""

from typing import Optional, Union

from estatedb.models.inquiry import InquiryStatus
from estatedb.models.registry import EntityName, get_entity_schema
from estatedb.services.document_store import DocumentStore
from estatedb.services.memory_store import InMemoryDocumentStore
from estatedb.services.mongo_store import MongoDocumentStore
from estatedb.services.validation_gate import utc_now, validate_document, validate_update
from estatedb.utils.config import StoreConfig
from estatedb.utils.errors import DocumentNotFoundError, StoreError
from estatedb.utils.ids import generate_document_id
from estatedb.utils.logging import (
    get_structured_logger,
    mask_identifier,
    redact_contact_fields,
    sanitize_message_text,
)

logger = get_structured_logger(__name__)

# Global store instance (singleton pattern)
_store: Optional[DocumentStore] = None


def create_document_store() -> DocumentStore:
    """Build the store selected by STORE_BACKEND."""
    backend = StoreConfig.STORE_BACKEND
    if backend == "mongodb":
        if not StoreConfig.MONGODB_URI:
            raise StoreError("MONGODB_URI must be set when STORE_BACKEND=mongodb")
        return MongoDocumentStore(
            StoreConfig.MONGODB_URI,
            StoreConfig.MONGODB_DATABASE,
            timeout_ms=StoreConfig.MONGODB_TIMEOUT_MS,
        )
    if backend == "memory":
        return InMemoryDocumentStore()
    raise StoreError(f"Unknown STORE_BACKEND {backend!r}; expected one of {StoreConfig.BACKENDS}")


def get_document_store() -> DocumentStore:
    """Get or create the document store singleton."""
    global _store

    if _store is None:
        _store = create_document_store()
        logger.info("Document store initialized", backend=_store.name)

    return _store


def set_document_store(store: Optional[DocumentStore]) -> None:
    """Replace the store singleton (None resets it)."""
    global _store
    _store = store


async def close_document_store() -> None:
    """Close store connections and drop the singleton."""
    global _store
    if _store:
        _store.close()
        _store = None
        logger.info("Document store closed")


class StoreSession:
    """Async context manager yielding the document store."""

    def __init__(self):
        self.store: Optional[DocumentStore] = None

    async def __aenter__(self) -> DocumentStore:
        self.store = get_document_store()
        return self.store

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Document store operation error",
                error=str(exc_val),
                type=exc_type.__name__
            )
        return False


async def _insert(entity: EntityName, document: dict) -> dict:
    """Validate, assign an id and insert. Nothing is written when validation fails."""
    schema = get_entity_schema(entity)
    validated = validate_document(entity, document)
    if "_id" not in validated:
        validated = {"_id": generate_document_id(), **validated}

    async with StoreSession() as store:
        store.insert_one(schema.collection, validated)
    logger.debug("Inserted document", collection=schema.collection, document=redact_contact_fields(validated))
    return validated


async def _get(entity: EntityName, document_id: str) -> dict:
    schema = get_entity_schema(entity)
    async with StoreSession() as store:
        document = store.find_one(schema.collection, {"_id": document_id})
    if document is None:
        raise DocumentNotFoundError(schema.collection, document_id)
    return document


async def _update(entity: EntityName, document_id: str, updates: dict) -> dict:
    schema = get_entity_schema(entity)
    existing = await _get(entity, document_id)
    merged = validate_update(entity, existing, updates)

    async with StoreSession() as store:
        updated = store.replace_one(schema.collection, document_id, merged)
    logger.info(
        f"Updated {schema.entity.value}",
        collection=schema.collection,
        document_id=document_id,
        fields=sorted(updates),
    )
    return updated


# Users
async def create_user(user_data: dict) -> dict:
    """Register a user. Raises DuplicateKeyError when the email is taken."""
    document = dict(user_data)
    document.setdefault("created_at", utc_now())
    user = await _insert(EntityName.USER, document)
    logger.info(
        "Created user",
        user_id=user["_id"],
        email=mask_identifier(user.get("email")),
        role=user.get("role"),
    )
    return user


async def get_user(user_id: str) -> dict:
    """Get user by ID."""
    return await _get(EntityName.USER, user_id)


async def get_user_by_email(email: str) -> Optional[dict]:
    """Get user by exact (case-sensitive) email."""
    async with StoreSession() as store:
        return store.find_one("users", {"email": email})


# Properties
async def create_property(property_data: dict) -> dict:
    """Create a listing."""
    document = dict(property_data)
    document.setdefault("created_at", utc_now())
    listing = await _insert(EntityName.PROPERTY, document)
    logger.info(
        "Created property",
        property_id=listing["_id"],
        agent_id=listing.get("agent_id"),
        type=listing.get("type"),
        status=listing.get("status"),
        city=listing.get("address", {}).get("city"),
    )
    return listing


async def get_property(property_id: str) -> dict:
    """Get property by ID."""
    return await _get(EntityName.PROPERTY, property_id)


async def update_property(property_id: str, updates: dict) -> dict:
    """Update top-level property fields; stamps updated_at."""
    return await _update(EntityName.PROPERTY, property_id, updates)


# Inquiries
async def create_inquiry(inquiry_data: dict) -> dict:
    """Record a lead message. Status defaults to NEW."""
    document = dict(inquiry_data)
    document.setdefault("status", InquiryStatus.NEW.value)
    document.setdefault("created_at", utc_now())
    inquiry = await _insert(EntityName.INQUIRY, document)
    logger.info(
        "Created inquiry",
        inquiry_id=inquiry["_id"],
        property_id=inquiry.get("property_id"),
        message_preview=sanitize_message_text(inquiry.get("message", "")),
    )
    return inquiry


async def update_inquiry_status(inquiry_id: str, status: Union[InquiryStatus, str]) -> dict:
    """Set an inquiry's status. Transition order is not enforced here."""
    if isinstance(status, InquiryStatus):
        status = status.value
    return await _update(EntityName.INQUIRY, inquiry_id, {"status": status})


# Appointments
async def create_appointment(appointment_data: dict) -> dict:
    """Schedule a viewing."""
    document = dict(appointment_data)
    document.setdefault("created_at", utc_now())
    appointment = await _insert(EntityName.APPOINTMENT, document)
    logger.info(
        "Created appointment",
        appointment_id=appointment["_id"],
        property_id=appointment.get("property_id"),
        agent_id=appointment.get("agent_id"),
    )
    return appointment
