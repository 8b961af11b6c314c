"""SQLite user store adapter.

Implements UserStorePort using SQLite with aiosqlite for async access.
Each user is one row holding the full aggregate as a JSON record, which
gives whole-aggregate writes with zero operational overhead.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import aiosqlite

from skillverify.core.errors import StorageError
from skillverify.core.models import User
from skillverify.core.ports import UserStorePort
from skillverify.core.serialization import user_from_dict, user_to_dict

logger = logging.getLogger(__name__)


class SQLiteUserStore(UserStorePort):
    """SQLite-backed user store with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._schema_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        return await aiosqlite.connect(str(self.db_path))

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool.

        A connection still inside a transaction is closed instead of
        pooled, so an interrupted write is never committed later.
        """
        if conn.in_transaction:
            await conn.close()
            return
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def close(self) -> None:
        await self.close_pool()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        async with self._schema_lock:
            # Check again after acquiring lock to prevent race
            if self._schema_initialized:
                return

            conn = await self._get_connection()
            try:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id TEXT PRIMARY KEY,
                        record TEXT NOT NULL
                    )
                    """
                )
                await conn.commit()
                self._schema_initialized = True
            finally:
                await self._return_connection(conn)

    async def get(self, user_id: str) -> User | None:
        """Look up a user by id."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                "SELECT id, record FROM users WHERE id = ?", (user_id,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to read user {user_id}: {e}") from e
        finally:
            await self._return_connection(conn)

        if row is None:
            return None
        return self._row_to_user(row)

    async def insert(self, user_id: str, user: User) -> None:
        """Create or replace the full record for a user."""
        await self._init_schema()

        record = json.dumps(user_to_dict(user))
        conn = await self._get_connection()
        try:
            await conn.execute(
                "INSERT OR REPLACE INTO users (id, record) VALUES (?, ?)",
                (user_id, record),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(f"Failed to write user {user_id}: {e}") from e
        except BaseException:
            # Cancelled mid-write; undo before the connection is reused
            await conn.rollback()
            raise
        finally:
            await self._return_connection(conn)

    async def remove(self, user_id: str) -> None:
        """Delete the row for a user, if present."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            await conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(f"Failed to remove user {user_id}: {e}") from e
        except BaseException:
            # Cancelled mid-write; undo before the connection is reused
            await conn.rollback()
            raise
        finally:
            await self._return_connection(conn)

    async def items(self) -> list[tuple[str, User]]:
        """Return every user in ascending id order."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute("SELECT id, record FROM users ORDER BY id")
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to enumerate users: {e}") from e
        finally:
            await self._return_connection(conn)

        return [(row[0], self._row_to_user(row)) for row in rows]

    def _row_to_user(self, row: tuple[Any, ...]) -> User:
        """Convert a database row to a User aggregate.

        Raises:
            StorageError: If the row is malformed or the record is corrupt.
        """
        try:
            user_id, record = row
            data = json.loads(record)
            user = user_from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to parse user record: {e}")
            raise StorageError(f"Record parsing failed: {e}") from e

        if user.id != user_id:
            raise StorageError(
                f"Record parsing failed: row key {user_id} holds user {user.id}"
            )
        return user
