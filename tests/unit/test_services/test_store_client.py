"""Unit tests for the store client and write helpers."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from estatedb.models.inquiry import InquiryStatus
from estatedb.services import store_client
from estatedb.services.memory_store import InMemoryDocumentStore
from estatedb.services.store_client import (
    StoreSession,
    close_document_store,
    create_appointment,
    create_document_store,
    create_inquiry,
    create_property,
    create_user,
    get_document_store,
    get_property,
    get_user,
    get_user_by_email,
    set_document_store,
    update_inquiry_status,
    update_property,
)
from estatedb.utils.config import StoreConfig
from estatedb.utils.errors import DocumentNotFoundError, DuplicateKeyError, SchemaViolation, StoreError
from tests.utils.assertions import assert_valid_stored_document
from tests.utils.factories import (
    create_appointment_data,
    create_inquiry_data,
    create_property_data,
    create_user_data,
)


@pytest.mark.unit
class TestStoreFactory:
    """Test backend selection and the singleton."""

    def test_memory_backend(self, monkeypatch):
        """Test STORE_BACKEND=memory builds an in-memory store."""
        monkeypatch.setattr(StoreConfig, "STORE_BACKEND", "memory")

        assert isinstance(create_document_store(), InMemoryDocumentStore)

    def test_mongodb_requires_uri(self, monkeypatch):
        """Test the MongoDB backend needs a connection string."""
        monkeypatch.setattr(StoreConfig, "STORE_BACKEND", "mongodb")
        monkeypatch.setattr(StoreConfig, "MONGODB_URI", "")

        with pytest.raises(StoreError, match="MONGODB_URI"):
            create_document_store()

    def test_mongodb_backend(self, monkeypatch):
        """Test the MongoDB backend is built from config."""
        monkeypatch.setattr(StoreConfig, "STORE_BACKEND", "mongodb")
        monkeypatch.setattr(StoreConfig, "MONGODB_URI", "mongodb://localhost:27017")
        monkeypatch.setattr(StoreConfig, "MONGODB_DATABASE", "real_estate_test")

        with patch("estatedb.services.store_client.MongoDocumentStore") as mock_store:
            store = create_document_store()

        assert store is mock_store.return_value
        mock_store.assert_called_once_with(
            "mongodb://localhost:27017",
            "real_estate_test",
            timeout_ms=StoreConfig.MONGODB_TIMEOUT_MS,
        )

    def test_unknown_backend(self, monkeypatch):
        """Test unknown backends are rejected."""
        monkeypatch.setattr(StoreConfig, "STORE_BACKEND", "postgres")

        with pytest.raises(StoreError, match="postgres"):
            create_document_store()

    def test_singleton(self, monkeypatch):
        """Test the store is created once."""
        monkeypatch.setattr(StoreConfig, "STORE_BACKEND", "memory")
        set_document_store(None)

        try:
            assert get_document_store() is get_document_store()
        finally:
            set_document_store(None)

    @pytest.mark.asyncio
    async def test_close_resets_singleton(self):
        """Test closing releases the store and drops the singleton."""
        store = MagicMock()
        set_document_store(store)

        await close_document_store()

        store.close.assert_called_once()
        assert store_client._store is None

    @pytest.mark.asyncio
    async def test_session_propagates_errors(self, memory_store):
        """Test StoreSession yields the store and doesn't swallow errors."""
        with pytest.raises(DocumentNotFoundError):
            async with StoreSession() as store:
                assert store is memory_store
                store.replace_one("users", "missing", {})


@pytest.mark.unit
class TestUsers:
    """Test user helpers."""

    @pytest.mark.asyncio
    async def test_create_user(self, initialized_store):
        """Test a user is stored with a generated id."""
        data = create_user_data(role="AGENT")
        data.pop("created_at")

        user = await create_user(data)

        assert_valid_stored_document(user)
        assert (await get_user(user["_id"]))["email"] == data["email"]

    @pytest.mark.asyncio
    async def test_created_at_set_by_default(self, initialized_store, freeze_time_fixture):
        """Test created_at defaults to now."""
        data = create_user_data()
        data.pop("created_at")

        user = await create_user(data)

        assert user["created_at"] == datetime(2024, 12, 9, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_duplicate_email(self, initialized_store):
        """Test a second user with the same email is rejected."""
        await create_user(create_user_data(email="kojo.client@example.com"))

        with pytest.raises(DuplicateKeyError) as exc_info:
            await create_user(create_user_data(email="kojo.client@example.com"))

        assert exc_info.value.index == "ux_users_email"
        assert len(initialized_store.find("users", {"email": "kojo.client@example.com"})) == 1

    @pytest.mark.asyncio
    async def test_invalid_user_not_written(self, initialized_store):
        """Test validation failures write nothing."""
        data = create_user_data()
        data.pop("email")

        with pytest.raises(SchemaViolation) as exc_info:
            await create_user(data)

        assert exc_info.value.field == "email"
        assert initialized_store.find("users") == []

    @pytest.mark.asyncio
    async def test_get_user_missing(self, initialized_store):
        """Test unknown ids raise DocumentNotFoundError."""
        with pytest.raises(DocumentNotFoundError) as exc_info:
            await get_user("01JMISSING0000000000000000")

        assert exc_info.value.collection == "users"

    @pytest.mark.asyncio
    async def test_get_user_by_email(self, initialized_store):
        """Test lookup by exact email."""
        user = await create_user(create_user_data(email="ama.agent@example.com"))

        assert (await get_user_by_email("ama.agent@example.com"))["_id"] == user["_id"]
        assert await get_user_by_email("AMA.AGENT@example.com") is None


@pytest.mark.unit
class TestProperties:
    """Test property helpers."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, initialized_store):
        """Test a listing round-trips through the store."""
        listing = await create_property(create_property_data(type="LAND"))

        stored = await get_property(listing["_id"])

        assert stored == listing
        assert stored["type"] == "LAND"

    @pytest.mark.asyncio
    async def test_invalid_type_rejected(self, initialized_store):
        """Test an out-of-enum type is rejected before writing."""
        with pytest.raises(SchemaViolation) as exc_info:
            await create_property(create_property_data(type="BOAT"))

        assert exc_info.value.field == "type"
        assert initialized_store.find("properties") == []

    @pytest.mark.asyncio
    async def test_update_stamps_updated_at(self, initialized_store, freeze_time_fixture):
        """Test updates keep created_at and set updated_at."""
        listing = await create_property(create_property_data(price=250000))

        freeze_time_fixture.tick(60)
        updated = await update_property(listing["_id"], {"price": 240000})

        assert updated["price"] == 240000
        assert updated["created_at"] == listing["created_at"]
        assert updated["updated_at"] == datetime(2024, 12, 9, 12, 1, tzinfo=timezone.utc)
        assert (await get_property(listing["_id"]))["price"] == 240000

    @pytest.mark.asyncio
    async def test_update_cannot_change_created_at(self, initialized_store):
        """Test created_at is immutable."""
        listing = await create_property(create_property_data())

        with pytest.raises(SchemaViolation):
            await update_property(listing["_id"], {"created_at": datetime(2020, 1, 1, tzinfo=timezone.utc)})

    @pytest.mark.asyncio
    async def test_invalid_update_leaves_document(self, initialized_store):
        """Test a rejected update doesn't touch the stored listing."""
        listing = await create_property(create_property_data(price=1000))

        with pytest.raises(SchemaViolation):
            await update_property(listing["_id"], {"location": {"type": "Point", "coordinates": [0.0]}})

        assert (await get_property(listing["_id"])) == listing

    @pytest.mark.asyncio
    async def test_update_missing_property(self, initialized_store):
        """Test updating an unknown listing raises."""
        with pytest.raises(DocumentNotFoundError):
            await update_property("01JMISSING0000000000000000", {"price": 1})


@pytest.mark.unit
class TestInquiriesAndAppointments:
    """Test inquiry and appointment helpers."""

    @pytest.mark.asyncio
    async def test_inquiry_status_defaults_to_new(self, initialized_store):
        """Test inquiries start as NEW."""
        data = create_inquiry_data()
        data.pop("status")

        inquiry = await create_inquiry(data)

        assert inquiry["status"] == "NEW"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [InquiryStatus.CONTACTED, "CLOSED"])
    async def test_update_inquiry_status(self, initialized_store, status):
        """Test status updates accept enum members and strings."""
        inquiry = await create_inquiry(create_inquiry_data())

        updated = await update_inquiry_status(inquiry["_id"], status)

        assert updated["status"] == InquiryStatus(status).value

    @pytest.mark.asyncio
    async def test_invalid_inquiry_status(self, initialized_store):
        """Test unknown statuses are rejected."""
        inquiry = await create_inquiry(create_inquiry_data())

        with pytest.raises(SchemaViolation) as exc_info:
            await update_inquiry_status(inquiry["_id"], "ARCHIVED")

        assert exc_info.value.field == "status"
        assert initialized_store.find_one("inquiries", {"_id": inquiry["_id"]})["status"] == "NEW"

    @pytest.mark.asyncio
    async def test_create_appointment(self, initialized_store):
        """Test appointments are stored."""
        data = create_appointment_data()
        data.pop("created_at")

        appointment = await create_appointment(data)

        assert_valid_stored_document(appointment)
        assert appointment["scheduled_at"] == data["scheduled_at"]

    @pytest.mark.asyncio
    async def test_appointment_missing_attendee(self, initialized_store):
        """Test attendee_name is required."""
        data = create_appointment_data()
        data.pop("attendee_name")

        with pytest.raises(SchemaViolation) as exc_info:
            await create_appointment(data)

        assert exc_info.value.field == "attendee_name"
