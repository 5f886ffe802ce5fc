import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Ensure project root is on sys.path for CI environments where
# Python might not automatically include it.
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.config_loader import ConfigLoader
from helpers.locales import LocaleManager
from services.db.database import Database
from services.player_registry import PlayerRegistry
from services.record_sync import RecordSyncService


@pytest_asyncio.fixture()
async def temp_db(tmp_path):
    """Initialize Database to a temporary file for isolation across tests."""
    orig_path = Database._db_path
    orig_initialized = Database._initialized

    Database.reset()
    db_file = tmp_path / "test.db"
    await Database.initialize(str(db_file))

    assert Database._initialized is True
    assert Database._db_path == str(db_file)

    yield str(db_file)

    Database._db_path = orig_path
    Database._initialized = orig_initialized


@pytest_asyncio.fixture()
async def records(temp_db):
    """A RecordSyncService bound to the temporary database."""
    service = RecordSyncService()
    await service.initialize()
    yield service
    await service.shutdown()


@pytest.fixture
def players() -> PlayerRegistry:
    return PlayerRegistry()


@pytest.fixture(scope="session")
def locales() -> LocaleManager:
    """The shipped locale files."""
    manager = LocaleManager(PROJECT_ROOT / "locales")
    manager.load()
    return manager


@pytest.fixture
def localize(locales):
    return locales.get_localizer("en")


@pytest.fixture
def clean_config():
    """Reset ConfigLoader before and after the test."""
    ConfigLoader.reset()
    yield ConfigLoader
    ConfigLoader.reset()
    ConfigLoader.load_config()
