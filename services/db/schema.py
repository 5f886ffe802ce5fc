"""
Canonical schema definition (version=1).

Two collections: per-guild ``guilds`` rows and per-(user, guild) ``users``
rows. Caller-defined fields live in the JSON ``data`` column. The key
columns carry plain indexes only; uniqueness is the synchronization
layer's job, not the store's.
"""

import aiosqlite

from utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1


async def init_schema(db: aiosqlite.Connection) -> None:
    """
    Initialize the database schema with all required tables.

    Args:
        db: An open database connection
    """
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            applied_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )
    await db.execute(
        "INSERT OR IGNORE INTO schema_migrations (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )

    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS guilds (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            guild_id TEXT NOT NULL,
            data TEXT NOT NULL DEFAULT '{}',
            created_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_guilds_guild_id ON guilds(guild_id)"
    )

    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            guild_id TEXT NOT NULL,
            data TEXT NOT NULL DEFAULT '{}',
            created_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_users_key ON users(user_id, guild_id)"
    )

    await db.commit()
    logger.debug("Schema version %s ensured", SCHEMA_VERSION)
