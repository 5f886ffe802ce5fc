"""
Database Helper Module

Provides a centralized database interface for the Discord bot using aiosqlite.
Handles connection setup and schema initialization.
"""

import asyncio
import sqlite3
from contextlib import asynccontextmanager

import aiosqlite

from config.config_loader import ConfigLoader
from utils.logging import get_logger

from .schema import init_schema

logger = get_logger(__name__)

DEFAULT_DB_PATH = "aurora.db"


def _configured_path() -> str:
    database_cfg = ConfigLoader.section("database")
    return str(database_cfg.get("path") or DEFAULT_DB_PATH)


class Database:
    _db_path: str | None = None
    _lock = asyncio.Lock()  # Ensures that only one initialization happens
    _initialized = False

    @classmethod
    async def initialize(cls, db_path: str | None = None) -> None:
        async with cls._lock:
            if cls._initialized:
                return
            if db_path:
                cls._db_path = db_path
            elif not cls._db_path:
                cls._db_path = _configured_path()
            # No need to keep the connection open after initialization
            async with aiosqlite.connect(cls._db_path) as db:
                await init_schema(db)
            cls._initialized = True
            logger.info("Database initialized at %s.", cls._db_path)

    @classmethod
    def reset(cls) -> None:
        """Forget the current path so the next call re-initializes (tests)."""
        cls._db_path = None
        cls._initialized = False

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """
        Get a connection to the database with optimized settings.

        Usage:
            async with Database.get_connection() as db:
                await db.execute("SELECT * FROM users")
        """
        if not cls._initialized:
            await cls.initialize()
        async with aiosqlite.connect(cls._db_path) as db:
            await db.execute("PRAGMA busy_timeout=5000")
            try:
                await db.execute("PRAGMA journal_mode=WAL")
            except sqlite3.OperationalError as exc:
                # WAL transition can fail briefly if another writer holds a lock; retry once
                if "database is locked" in str(exc).lower():
                    await asyncio.sleep(0.05)
                    await db.execute("PRAGMA journal_mode=WAL")
                else:
                    raise
            await db.execute("PRAGMA synchronous=NORMAL")
            db.row_factory = aiosqlite.Row
            yield db
