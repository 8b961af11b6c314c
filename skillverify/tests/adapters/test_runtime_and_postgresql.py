"""Tests for the runtime adapters and PostgreSQL store configuration.

NOTE: The PostgreSQL round-trip test requires a PostgreSQL instance and
is skipped unless SKILLVERIFY_TEST_DATABASE_URL is set.
"""

import os
import urllib.parse
import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from skillverify.adapters.runtime import SystemClock, UUIDSupplier
from skillverify.adapters.store.postgresql import PostgreSQLUserStore
from skillverify.core.errors import StorageError
from skillverify.core.models import User

TEST_DATABASE_URL = os.environ.get("SKILLVERIFY_TEST_DATABASE_URL", "")


class TestSystemClock:
    """Tests for SystemClock."""

    def test_now_is_timezone_aware_utc(self) -> None:
        now = SystemClock().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_never_goes_backwards(self) -> None:
        clock = SystemClock()
        later = datetime(2030, 1, 1, tzinfo=UTC)
        earlier = datetime(2029, 1, 1, tzinfo=UTC)

        with patch("skillverify.adapters.runtime.datetime") as fake_datetime:
            fake_datetime.now.side_effect = [later, earlier]
            first = clock.now()
            second = clock.now()

        assert first == later
        assert second == later


class TestUUIDSupplier:
    """Tests for UUIDSupplier."""

    def test_ids_are_valid_and_distinct(self) -> None:
        supplier = UUIDSupplier()
        ids = {supplier.new_id() for _ in range(100)}

        assert len(ids) == 100
        for new_id in ids:
            assert str(uuid.UUID(new_id)) == new_id


class TestPostgreSQLStoreInitialization:
    """Tests for PostgreSQL store initialization."""

    def test_store_default_configuration(self) -> None:
        store = PostgreSQLUserStore()

        assert store.host == "localhost"
        assert store.port == 5432
        assert store.database == "skillverify"
        assert store.user == "skillverify"

    def test_row_parsing_accepts_text_and_decoded_json(self) -> None:
        store = PostgreSQLUserStore()
        record = {"id": "u1", "name": "Alice", "age": None, "skills": []}

        from_text = store._row_to_user({"id": "u1", "record": '{"id": "u1", "name": "Alice"}'})
        from_dict = store._row_to_user({"id": "u1", "record": record})

        assert from_text == User(id="u1", name="Alice")
        assert from_dict == User(id="u1", name="Alice")

    def test_row_parsing_rejects_corrupt_record(self) -> None:
        store = PostgreSQLUserStore()

        with pytest.raises(StorageError, match="Record parsing failed"):
            store._row_to_user({"id": "u1", "record": "{broken"})

    def test_row_parsing_rejects_mismatched_key(self) -> None:
        store = PostgreSQLUserStore()

        with pytest.raises(StorageError, match="row key u1 holds user u2"):
            store._row_to_user(
                {"id": "u1", "record": {"id": "u2", "name": "Bob", "skills": []}}
            )


@pytest.mark.asyncio
@pytest.mark.skipif(
    not TEST_DATABASE_URL, reason="PostgreSQL not available in test environment"
)
async def test_postgresql_round_trip() -> None:
    parsed = urllib.parse.urlparse(TEST_DATABASE_URL)
    store = PostgreSQLUserStore(
        host=parsed.hostname or "localhost",
        port=parsed.port or 5432,
        database=parsed.path.lstrip("/"),
        user=parsed.username or "",
        password=parsed.password or "",
    )
    user_id = f"test-{uuid.uuid4()}"
    try:
        await store.insert(user_id, User(id=user_id, name="Alice"))
        assert await store.get(user_id) == User(id=user_id, name="Alice")
        assert user_id in [key for key, _ in await store.items()]
        await store.remove(user_id)
        assert await store.get(user_id) is None
    finally:
        await store.close()
