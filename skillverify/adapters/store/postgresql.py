"""PostgreSQL user store adapter.

Implements UserStorePort using PostgreSQL with asyncpg for async access.
Provides ACID guarantees for whole-aggregate writes with scalability for
production use.
"""

import asyncio
import json
import logging
from typing import Any

import asyncpg

from skillverify.core.errors import StorageError
from skillverify.core.models import User
from skillverify.core.ports import UserStorePort
from skillverify.core.serialization import user_from_dict, user_to_dict

logger = logging.getLogger(__name__)


class PostgreSQLUserStore(UserStorePort):
    """PostgreSQL-backed user store with connection pooling and async access."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "skillverify",
        user: str = "skillverify",
        password: str = "",
        pool_size: int = 10,
    ):
        """Initialize PostgreSQL store with connection pooling.

        Args:
            host: PostgreSQL server hostname.
            port: PostgreSQL server port.
            database: Database name.
            user: Database user.
            password: Database password.
            pool_size: Number of connections to maintain in the pool.
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self._pool: asyncpg.Pool | None = None
        self._pool_size = pool_size
        self._schema_lock = asyncio.Lock()
        self._schema_initialized = False

    async def _init_pool(self) -> None:
        """Initialize the connection pool on first use."""
        if self._pool is not None:
            return

        self._pool = await asyncpg.create_pool(
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.user,
            password=self.password,
            min_size=1,
            max_size=self._pool_size,
        )

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def close(self) -> None:
        await self.close_pool()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Uses dedicated _schema_lock to avoid contention with pool operations.
        """
        if self._schema_initialized:
            return

        async with self._schema_lock:
            if self._schema_initialized:
                return

            await self._init_pool()
            assert self._pool is not None

            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id TEXT PRIMARY KEY,
                        record JSONB NOT NULL
                    )
                    """
                )
                self._schema_initialized = True

    async def get(self, user_id: str) -> User | None:
        """Look up a user by id."""
        await self._init_schema()
        assert self._pool is not None

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT id, record FROM users WHERE id = $1", user_id
                )
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to read user {user_id}: {e}") from e

        if row is None:
            return None
        return self._row_to_user(row)

    async def insert(self, user_id: str, user: User) -> None:
        """Create or replace the full record for a user."""
        await self._init_schema()
        assert self._pool is not None

        record = json.dumps(user_to_dict(user))
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO users (id, record)
                    VALUES ($1, $2::jsonb)
                    ON CONFLICT (id) DO UPDATE SET record = EXCLUDED.record
                    """,
                    user_id,
                    record,
                )
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to write user {user_id}: {e}") from e

    async def remove(self, user_id: str) -> None:
        await self._init_schema()
        assert self._pool is not None

        try:
            async with self._pool.acquire() as conn:
                await conn.execute("DELETE FROM users WHERE id = $1", user_id)
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to remove user {user_id}: {e}") from e

    async def items(self) -> list[tuple[str, User]]:
        """Return every user in ascending id order."""
        await self._init_schema()
        assert self._pool is not None

        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    'SELECT id, record FROM users ORDER BY id COLLATE "C"'
                )
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to enumerate users: {e}") from e

        return [(row["id"], self._row_to_user(row)) for row in rows]

    def _row_to_user(self, row: Any) -> User:
        """Convert a database row to a User aggregate.

        asyncpg hands JSONB back as text unless a codec is registered.

        Raises:
            StorageError: If the record is corrupt or belongs to another id.
        """
        user_id = row["id"]
        try:
            record = row["record"]
            data = json.loads(record) if isinstance(record, str) else record
            user = user_from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to parse user record {user_id}: {e}")
            raise StorageError(f"Record parsing failed: {e}") from e

        if user.id != user_id:
            raise StorageError(
                f"Record parsing failed: row key {user_id} holds user {user.id}"
            )
        return user
