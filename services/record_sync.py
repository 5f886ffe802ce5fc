"""
Guild/User record synchronization.

Two layers over the same store:

* The log-and-default helpers (``get_user``, ``add_user``, ``update_user``,
  ``remove_user`` and the guild equivalents). Store errors are logged and
  turned into ``None``, so a caller cannot tell "absent" from "store down".
* The explicit helpers (``fetch_*``, ``save_*``, ``purge_*``) which return a
  ``SyncResult`` carrying a ``SyncStatus`` and never hide a store failure.

Get-or-create in both layers is serialized per key. ``add_user`` and
``add_guild`` are deliberately left unguarded: calling them concurrently
for the same key creates duplicate rows.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from helpers.keyed_lock import KeyedLock
from services.db.repository import RecordStore
from utils.errors import DatabaseError
from utils.types import GuildRecord, SyncResult, SyncStatus, UserRecord

from .base import BaseService

Snowflake = int | str


def _user_key(user_id: Snowflake, guild_id: Snowflake) -> dict[str, str]:
    return {"user_id": str(user_id), "guild_id": str(guild_id)}


def _guild_key(guild_id: Snowflake) -> dict[str, str]:
    return {"guild_id": str(guild_id)}


class RecordSyncService(BaseService):
    """
    Read-modify-write sequencing for user and guild records.

    Holds no record cache: every call round-trips to the store.
    """

    def __init__(self, store: RecordStore | None = None) -> None:
        super().__init__("records")
        self.store = store or RecordStore()
        self._locks = KeyedLock()

    async def _initialize_impl(self) -> None:
        await self.store.initialize()

    # ------------------------------------------------------------------
    # Users: log-and-default
    # ------------------------------------------------------------------

    async def get_user(
        self, user_id: Snowflake, guild_id: Snowflake | None
    ) -> UserRecord | None:
        """Return the user's record in this guild, creating an empty one on a miss."""
        if not guild_id:
            return None

        key = _user_key(user_id, guild_id)
        try:
            async with self._locks.hold(("user", key["user_id"], key["guild_id"])):
                user = await self.store.users.find_first(key)
                if user is None:
                    user = await self.add_user(user_id, guild_id)
                return user
        except DatabaseError:
            self.logger.exception("Failed to load user record", extra=key)
            return None

    async def add_user(
        self,
        user_id: Snowflake,
        guild_id: Snowflake | None,
        data: Mapping[str, Any] | None = None,
    ) -> UserRecord | None:
        """Create a user record without checking for an existing one."""
        if not guild_id:
            return None

        key = _user_key(user_id, guild_id)
        try:
            user = await self.store.users.create({**(data or {}), **key})
            self.logger.debug("Created user record %s", user.id, extra=key)
            return user
        except DatabaseError:
            self.logger.exception("Failed to create user record", extra=key)
            return None

    async def update_user(
        self,
        user_id: Snowflake,
        guild_id: Snowflake | None,
        data: Mapping[str, Any],
    ) -> None:
        """
        Merge ``data`` into the user's record(s).

        When the lookup yields nothing the payload becomes the initial data of
        a new record and no update is issued.
        """
        key = _user_key(user_id, guild_id)
        try:
            user = await self.get_user(user_id, guild_id)

            if not user:
                await self.add_user(user_id, guild_id, data)
                return

            await self.store.users.update_many(key, data)
        except DatabaseError:
            self.logger.exception("Failed to update user record", extra=key)

    async def remove_user(self, user_id: Snowflake, guild_id: Snowflake) -> None:
        """Delete every record for the pair; zero matches is not an error."""
        key = _user_key(user_id, guild_id)
        try:
            removed = await self.store.users.delete_many(key)
            self.logger.debug("Removed %s user record(s)", removed, extra=key)
        except DatabaseError:
            self.logger.exception("Failed to remove user record", extra=key)

    # ------------------------------------------------------------------
    # Guilds: log-and-default
    # ------------------------------------------------------------------

    async def get_guild(self, guild_id: Snowflake | None) -> GuildRecord | None:
        """Return the guild's record, creating an empty one on a miss."""
        if not guild_id:
            return None

        key = _guild_key(guild_id)
        try:
            async with self._locks.hold(("guild", key["guild_id"])):
                guild = await self.store.guilds.find_first(key)
                if guild is None:
                    guild = await self.add_guild(guild_id)
                return guild
        except DatabaseError:
            self.logger.exception("Failed to load guild record", extra=key)
            return None

    async def add_guild(
        self,
        guild_id: Snowflake | None,
        data: Mapping[str, Any] | None = None,
    ) -> GuildRecord | None:
        """Create a guild record without checking for an existing one."""
        if not guild_id:
            return None

        key = _guild_key(guild_id)
        try:
            guild = await self.store.guilds.create({**(data or {}), **key})
            self.logger.info("Created guild record %s", guild.id, extra=key)
            return guild
        except DatabaseError:
            self.logger.exception("Failed to create guild record", extra=key)
            return None

    async def update_guild(
        self, guild_id: Snowflake | None, data: Mapping[str, Any]
    ) -> None:
        """
        Merge ``data`` into the guild's record(s).

        Unlike ``update_user``, a failed lookup creates the guild and the bulk
        update still runs afterwards.
        """
        if not guild_id:
            return

        key = _guild_key(guild_id)
        try:
            guild = await self.get_guild(guild_id)

            if not guild:
                await self.add_guild(guild_id)

            await self.store.guilds.update_many(key, data)
        except DatabaseError:
            self.logger.exception("Failed to update guild record", extra=key)

    async def delete_guild(self, guild_id: Snowflake) -> None:
        """Delete every record for the guild; zero matches is not an error."""
        key = _guild_key(guild_id)
        try:
            removed = await self.store.guilds.delete_many(key)
            self.logger.info("Deleted %s guild record(s)", removed, extra=key)
        except DatabaseError:
            self.logger.exception("Failed to delete guild record", extra=key)

    # ------------------------------------------------------------------
    # Explicit results
    # ------------------------------------------------------------------

    async def fetch_user(
        self,
        user_id: Snowflake,
        guild_id: Snowflake | None,
        *,
        create: bool = True,
    ) -> SyncResult:
        if not guild_id:
            return SyncResult(SyncStatus.INVALID)

        key = _user_key(user_id, guild_id)
        async with self._locks.hold(("user", key["user_id"], key["guild_id"])):
            return await self._fetch(self.store.users, key, create)

    async def fetch_guild(
        self, guild_id: Snowflake | None, *, create: bool = True
    ) -> SyncResult:
        if not guild_id:
            return SyncResult(SyncStatus.INVALID)

        key = _guild_key(guild_id)
        async with self._locks.hold(("guild", key["guild_id"])):
            return await self._fetch(self.store.guilds, key, create)

    async def save_user(
        self,
        user_id: Snowflake,
        guild_id: Snowflake | None,
        data: Mapping[str, Any],
    ) -> SyncResult:
        """Create the record with ``data`` or merge ``data`` into the existing one."""
        if not guild_id:
            return SyncResult(SyncStatus.INVALID)

        key = _user_key(user_id, guild_id)
        async with self._locks.hold(("user", key["user_id"], key["guild_id"])):
            return await self._save(self.store.users, key, data)

    async def save_guild(
        self, guild_id: Snowflake | None, data: Mapping[str, Any]
    ) -> SyncResult:
        """Create the record with ``data`` or merge ``data`` into the existing one."""
        if not guild_id:
            return SyncResult(SyncStatus.INVALID)

        key = _guild_key(guild_id)
        async with self._locks.hold(("guild", key["guild_id"])):
            return await self._save(self.store.guilds, key, data)

    async def purge_user(
        self, user_id: Snowflake, guild_id: Snowflake | None
    ) -> SyncResult:
        if not guild_id:
            return SyncResult(SyncStatus.INVALID)
        return await self._purge(self.store.users, _user_key(user_id, guild_id))

    async def purge_guild(self, guild_id: Snowflake | None) -> SyncResult:
        if not guild_id:
            return SyncResult(SyncStatus.INVALID)
        return await self._purge(self.store.guilds, _guild_key(guild_id))

    async def _fetch(self, collection, key: dict[str, str], create: bool) -> SyncResult:
        try:
            if not create:
                record = await collection.find_first(key)
                if record is None:
                    return SyncResult(SyncStatus.NOT_FOUND)
                return SyncResult(SyncStatus.FOUND, record=record, count=1)

            record, created = await collection.upsert(key)
        except DatabaseError as exc:
            self.logger.warning(
                "Store unavailable for %s lookup: %s", collection.table, exc, extra=key
            )
            return SyncResult(SyncStatus.STORE_UNAVAILABLE, error=exc)

        status = SyncStatus.CREATED if created else SyncStatus.FOUND
        return SyncResult(status, record=record, count=1)

    async def _save(
        self, collection, key: dict[str, str], data: Mapping[str, Any]
    ) -> SyncResult:
        try:
            record, created = await collection.upsert(key, data)
            if created:
                return SyncResult(SyncStatus.CREATED, record=record, count=1)

            count = await collection.update_many(key, data)
            record = await collection.find_first(key)
        except DatabaseError as exc:
            self.logger.warning(
                "Store unavailable for %s save: %s", collection.table, exc, extra=key
            )
            return SyncResult(SyncStatus.STORE_UNAVAILABLE, error=exc)

        return SyncResult(SyncStatus.UPDATED, record=record, count=count)

    async def _purge(self, collection, key: dict[str, str]) -> SyncResult:
        try:
            count = await collection.delete_many(key)
        except DatabaseError as exc:
            self.logger.warning(
                "Store unavailable for %s delete: %s", collection.table, exc, extra=key
            )
            return SyncResult(SyncStatus.STORE_UNAVAILABLE, error=exc)

        status = SyncStatus.DELETED if count else SyncStatus.NOT_FOUND
        return SyncResult(status, count=count)
