"""Port interfaces for the SkillVerify service.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - UserStorePort: Persist and enumerate User aggregates by id
   - ClockPort: Current time for rating timestamps
   - IdSupplierPort: Globally unique opaque ids for new users

2. **Driving Ports** (adapters/external systems call into core)
   - SkillVerificationPort: Profile, skill and verification operations
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from .models import Skill, User, UserUpdate


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class UserStorePort(ABC):
    """Port for an ordered map from user id to User aggregate.

    The store never merges fields: ``insert`` replaces the whole record,
    so callers must read-modify-write the aggregate.

    Implementations must handle:
    - Durable persistence of every successful insert/remove
    - Enumeration in ascending id order
    - Wrapping backend faults in StorageError
    """

    @abstractmethod
    async def get(self, user_id: str) -> User | None:
        """Look up a user by id.

        Args:
            user_id: Opaque user id.

        Returns:
            The stored User, or None if the key is absent. A missing key
            is not an error.

        Raises:
            StorageError: If the backend fails or the record is corrupt.
        """

    @abstractmethod
    async def insert(self, user_id: str, user: User) -> None:
        """Create or overwrite the full record at ``user_id``.

        Raises:
            StorageError: If the backend fails.
        """

    @abstractmethod
    async def remove(self, user_id: str) -> None:
        """Delete the record at ``user_id``.

        Removing an absent key is a no-op; callers check existence first.

        Raises:
            StorageError: If the backend fails.
        """

    @abstractmethod
    async def items(self) -> list[tuple[str, User]]:
        """Enumerate every (id, User) pair in ascending id order.

        Raises:
            StorageError: If the backend fails or a record is corrupt.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the store."""


class ClockPort(ABC):
    """Port for acquiring the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time, timezone-aware.

        Successive calls must be monotonically non-decreasing.
        """


class IdSupplierPort(ABC):
    """Port for generating unique opaque identifiers."""

    @abstractmethod
    def new_id(self) -> str:
        """Return a globally unique identifier string."""


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class SkillVerificationPort(ABC):
    """Port for profile, skill and verification operations.

    Called by the HTTP request handlers. Failures are raised as the
    typed errors in ``core.errors``.
    """

    @abstractmethod
    async def create_user(self, name: str, age: int | None = None) -> User:
        """Register a new user with a generated id and no skills.

        Raises:
            ValidationError: If name or age is invalid.
        """

    @abstractmethod
    async def get_user(self, user_id: str) -> User:
        """Retrieve a user.

        Raises:
            NotFoundError: If the user doesn't exist.
        """

    @abstractmethod
    async def list_users(self) -> list[User]:
        """Return all users in store order (ascending id)."""

    @abstractmethod
    async def update_user(self, user_id: str, update: UserUpdate) -> User:
        """Merge provided profile fields onto an existing user.

        Raises:
            NotFoundError: If the user doesn't exist.
            ValidationError: If a provided field is invalid.
        """

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        """Delete a user and every skill and rating it owns.

        Raises:
            NotFoundError: If the user doesn't exist.
        """

    @abstractmethod
    async def add_skills(self, user_id: str, names: Sequence[str]) -> list[Skill]:
        """Append unverified skills in the given order.

        Returns:
            The user's full skill sequence after the append.

        Raises:
            NotFoundError: If the user doesn't exist.
            ValidationError: If the batch or any name is invalid.
            ConflictError: If the user already has a skill with that name.
        """

    @abstractmethod
    async def add_skill(self, user_id: str, name: str) -> Skill:
        """Append a single unverified skill and return it."""

    @abstractmethod
    async def remove_skill(self, user_id: str, skill_name: str) -> None:
        """Remove a skill and its ratings from the user.

        Raises:
            NotFoundError: If the user or the skill doesn't exist.
        """

    @abstractmethod
    async def list_skills(self, user_id: str) -> list[Skill]:
        """Return the user's skills in insertion order.

        Raises:
            NotFoundError: If the user doesn't exist.
        """

    @abstractmethod
    async def verify_skill(
        self,
        user_id: str,
        skill_name: str,
        verifier_id: str,
        score: int,
        comment: str | None = None,
    ) -> Skill:
        """Record a verifier's rating on a user's skill.

        Returns:
            The updated Skill, now verified.

        Raises:
            NotFoundError: If the user, verifier or skill doesn't exist.
            ValidationError: If score or comment is invalid, or the
                verifier is the skill's owner.
            ConflictError: If the verifier already rated this skill.
        """
