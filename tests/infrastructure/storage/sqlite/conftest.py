"""Fixtures for SQLite storage tests."""

import tempfile
from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import facturacr.infrastructure.storage.sqlite.connection as conn_module
from facturacr.infrastructure.storage.sqlite.connection import close_pool
from facturacr.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
def temp_db_path() -> Path:
    """Path to a fresh database file in its own temp directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> Path:
    """Database with every migration applied."""
    settings = MagicMock()
    settings.storage.db_path = temp_db_path
    with patch(
        "facturacr.infrastructure.storage.sqlite.migrations.migrator.get_settings",
        return_value=settings,
    ):
        results = await initialize_database(temp_db_path, create_backup_before=False)
    assert all(r.success for r in results)
    return temp_db_path


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    return mock


@pytest.fixture
async def sqlite_pool(initialized_db: Path, mock_settings) -> AsyncIterator[Path]:
    """Point the global pool at the migrated test database for one test."""
    conn_module._pool = None
    mock_settings.storage.db_path = initialized_db

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        yield initialized_db
        await close_pool()
