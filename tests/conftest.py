"""Shared fixtures for cacher tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from cacher.storage.records import RecordStore


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "records.db"


@pytest.fixture
async def record_store(temp_db_path: Path) -> RecordStore:
    """Create an initialized RecordStore for testing."""
    store = RecordStore(temp_db_path)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def relocator() -> MagicMock:
    """Create a relocator whose uploads always succeed."""
    mock = MagicMock()

    async def fake_relocate(source_url, destination_name, public=True):
        return f"https://cdn.example.com/{destination_name}"

    mock.relocate = AsyncMock(side_effect=fake_relocate)
    mock.close = AsyncMock()
    return mock
