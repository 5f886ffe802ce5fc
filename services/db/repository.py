"""
Record Store Adapter.

Exposes the four operations the bot needs over its two collections
(``users`` and ``guilds``): create, find_first, update_many and delete_many,
plus a single-transaction ``upsert`` for atomic get-or-create.

Usage:
    store = RecordStore()
    user = await store.users.find_first({"user_id": "1", "guild_id": "2"})
    await store.guilds.update_many({"guild_id": "2"}, {"language": "de"})
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from utils.errors import InvalidRecordError, StoreUnavailableError
from utils.logging import get_logger
from utils.types import GuildRecord, UserRecord

from .database import Database

if TYPE_CHECKING:
    import aiosqlite
    from aiosqlite import Row

logger = get_logger(__name__)

R = TypeVar("R", UserRecord, GuildRecord)


def encode_json(value: Mapping[str, Any]) -> str:
    try:
        return json.dumps(dict(value), ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise InvalidRecordError(f"Record data is not JSON serializable: {exc}") from exc


def parse_json_dict(raw: Any) -> dict[str, Any]:
    """Decode a JSON object column; malformed or non-object values become ``{}``."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding malformed record data: %r", raw)
        return {}
    return value if isinstance(value, dict) else {}


def _user_from_row(row: Row) -> UserRecord:
    return UserRecord(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        guild_id=str(row["guild_id"]),
        data=parse_json_dict(row["data"]),
        created_at=row["created_at"],
    )


def _guild_from_row(row: Row) -> GuildRecord:
    return GuildRecord(
        id=int(row["id"]),
        guild_id=str(row["guild_id"]),
        data=parse_json_dict(row["data"]),
        created_at=row["created_at"],
    )


class Collection(Generic[R]):
    """
    One entity kind stored in one table.

    Filters may only reference the key columns; everything else a caller
    supplies is opaque and merged into the JSON ``data`` column.
    """

    def __init__(
        self,
        table: str,
        key_columns: tuple[str, ...],
        from_row: Callable[[Row], R],
    ) -> None:
        self.table = table
        self.key_columns = key_columns
        self._from_row = from_row

    # -- helpers ---------------------------------------------------------

    def _where(self, where: Mapping[str, Any]) -> tuple[str, tuple[Any, ...]]:
        if not where:
            raise ValueError(f"{self.table}: an empty filter is not allowed")
        unknown = set(where) - set(self.key_columns)
        if unknown:
            raise ValueError(
                f"{self.table}: cannot filter on {sorted(unknown)}; "
                f"allowed keys are {list(self.key_columns)}"
            )
        columns = [c for c in self.key_columns if c in where]
        clause = " AND ".join(f"{c} = ?" for c in columns)
        return clause, tuple(str(where[c]) for c in columns)

    def _split(self, fields: Mapping[str, Any]) -> tuple[dict[str, str], dict[str, Any]]:
        keys = {c: str(fields[c]) for c in self.key_columns if c in fields}
        data = {k: v for k, v in fields.items() if k not in self.key_columns}
        return keys, data

    @asynccontextmanager
    async def _connection(self, operation: str):
        try:
            async with Database.get_connection() as db:
                yield db
        except sqlite3.Error as exc:
            raise StoreUnavailableError(
                f"{self.table}.{operation} failed: {exc}"
            ) from exc

    async def _insert(self, db: aiosqlite.Connection, fields: Mapping[str, Any]) -> R:
        keys, data = self._split(fields)
        missing = [c for c in self.key_columns if c not in keys]
        if missing:
            raise ValueError(f"{self.table}: missing key fields {missing}")
        columns = [*keys, "data"]
        placeholders = ", ".join("?" for _ in columns)
        cursor = await db.execute(
            f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})",
            (*keys.values(), encode_json(data)),
        )
        row_id = cursor.lastrowid
        cursor = await db.execute(f"SELECT * FROM {self.table} WHERE id = ?", (row_id,))
        return self._from_row(await cursor.fetchone())

    async def _select_first(
        self, db: aiosqlite.Connection, where: Mapping[str, Any]
    ) -> R | None:
        clause, params = self._where(where)
        cursor = await db.execute(
            f"SELECT * FROM {self.table} WHERE {clause} ORDER BY id ASC LIMIT 1",
            params,
        )
        row = await cursor.fetchone()
        return self._from_row(row) if row else None

    # -- operations ------------------------------------------------------

    async def create(self, fields: Mapping[str, Any]) -> R:
        """Insert a new row. Never checks for an existing one."""
        async with self._connection("create") as db:
            record = await self._insert(db, fields)
            await db.commit()
            return record

    async def find_first(self, where: Mapping[str, Any]) -> R | None:
        """Return the oldest row matching ``where``, or None."""
        async with self._connection("find_first") as db:
            return await self._select_first(db, where)

    async def update_many(self, where: Mapping[str, Any], data: Mapping[str, Any]) -> int:
        """
        Merge ``data`` into every matching row and return the row count.

        Opaque fields are merged with SQLite ``json_patch``, so a value of
        None removes that field from the record.
        """
        clause, params = self._where(where)
        keys, fields = self._split(data)
        assignments = [f"{c} = ?" for c in keys]
        values: list[Any] = list(keys.values())
        if fields:
            assignments.append("data = json_patch(data, ?)")
            values.append(encode_json(fields))
        if not assignments:
            return 0
        async with self._connection("update_many") as db:
            cursor = await db.execute(
                f"UPDATE {self.table} SET {', '.join(assignments)} WHERE {clause}",
                (*values, *params),
            )
            await db.commit()
            return cursor.rowcount

    async def delete_many(self, where: Mapping[str, Any]) -> int:
        """Delete every matching row and return the row count."""
        clause, params = self._where(where)
        async with self._connection("delete_many") as db:
            cursor = await db.execute(
                f"DELETE FROM {self.table} WHERE {clause}", params
            )
            await db.commit()
            return cursor.rowcount

    async def upsert(
        self, where: Mapping[str, Any], create: Mapping[str, Any] | None = None
    ) -> tuple[R, bool]:
        """
        Find-or-insert inside one ``BEGIN IMMEDIATE`` transaction.

        Returns ``(record, created)``. The write lock is held between the
        lookup and the insert, so two connections cannot both miss and insert.
        """
        async with self._connection("upsert") as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                existing = await self._select_first(db, where)
                if existing is not None:
                    await db.commit()
                    return existing, False
                record = await self._insert(db, {**(create or {}), **where})
                await db.commit()
                return record, True
            except Exception:
                await db.rollback()
                raise


class RecordStore:
    """The bot's two collections behind one object."""

    def __init__(self) -> None:
        self.users: Collection[UserRecord] = Collection(
            "users", ("user_id", "guild_id"), _user_from_row
        )
        self.guilds: Collection[GuildRecord] = Collection(
            "guilds", ("guild_id",), _guild_from_row
        )

    async def initialize(self, db_path: str | None = None) -> None:
        await Database.initialize(db_path)
