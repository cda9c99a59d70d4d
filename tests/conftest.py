"""Shared pytest fixtures and configuration."""

import os

# Set test environment variables before estatedb reads them
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
import pytest_asyncio
from freezegun import freeze_time

from estatedb.services.memory_store import InMemoryDocumentStore
from estatedb.services.store_client import set_document_store
from estatedb.services.store_setup import initialize_store


@pytest.fixture
def memory_store():
    """Fresh in-memory store installed as the store singleton."""
    store = InMemoryDocumentStore()
    set_document_store(store)
    yield store
    set_document_store(None)


@pytest_asyncio.fixture
async def initialized_store(memory_store):
    """In-memory store with every collection and planned index created."""
    await initialize_store(memory_store)
    return memory_store


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
