"""In-memory user store adapter.

Implements UserStorePort with a plain dict. Nothing survives a restart;
useful for local development and demos.
"""

import copy
import logging

from skillverify.core.models import User
from skillverify.core.ports import UserStorePort

logger = logging.getLogger(__name__)


class InMemoryUserStore(UserStorePort):
    """Dict-backed ordered map from user id to User.

    Records are copied on the way in and out, so an aggregate mutated by
    a caller is only visible to others after it is inserted again.
    """

    def __init__(self) -> None:
        self._records: dict[str, User] = {}

    async def get(self, user_id: str) -> User | None:
        user = self._records.get(user_id)
        return copy.deepcopy(user) if user is not None else None

    async def insert(self, user_id: str, user: User) -> None:
        self._records[user_id] = copy.deepcopy(user)

    async def remove(self, user_id: str) -> None:
        self._records.pop(user_id, None)

    async def items(self) -> list[tuple[str, User]]:
        return [
            (user_id, copy.deepcopy(self._records[user_id]))
            for user_id in sorted(self._records)
        ]

    async def close(self) -> None:
        logger.debug(
            "In-memory store closed", extra={"record_count": len(self._records)}
        )
