"""Skill verification service: implements SkillVerificationPort.

This is the core service holding the business rules for profiles,
claimed skills and peer ratings. Every mutation is a read-modify-write
of a single User aggregate: the record is loaded, validated input is
applied in memory, and the whole aggregate is written back. Nothing is
written when a rule fails, so the stored record is never partially
mutated.

Writers to the same user id are serialized with a per-user asyncio.Lock,
since the HTTP front end schedules requests concurrently on one loop and
the store offers no optimistic concurrency control.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from .errors import (
    ConflictError,
    NotFoundError,
    SkillVerifyError,
    StorageError,
    ValidationError,
)
from .models import UNSET, Rating, Skill, User, UserUpdate
from .ports import ClockPort, IdSupplierPort, SkillVerificationPort, UserStorePort
from .validation import (
    validate_age,
    validate_comment,
    validate_id,
    validate_name,
    validate_score,
    validate_skill_names,
)

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 3


class SkillVerificationService(SkillVerificationPort):
    """Core implementation of SkillVerificationPort.

    Owns a reference to the user store and the injected clock and id
    supplier. Constructed once by the composition root and shared by
    every request handler.
    """

    def __init__(
        self,
        store: UserStorePort,
        clock: ClockPort,
        id_supplier: IdSupplierPort,
    ):
        """Initialize the service.

        Args:
            store: UserStorePort implementation for persistence.
            clock: ClockPort used to timestamp ratings.
            id_supplier: IdSupplierPort used to assign new user ids.
        """
        self.store = store
        self.clock = clock
        self.id_supplier = id_supplier
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    @asynccontextmanager
    async def _locked(self, user_id: str) -> AsyncIterator[None]:
        """Hold the per-user lock for the duration of the block.

        The entry is dropped once no task holds or waits on it, so ids
        that never existed or were deleted leave nothing behind.
        """
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        self._lock_holders[user_id] = self._lock_holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[user_id] -= 1
            if self._lock_holders[user_id] == 0:
                del self._lock_holders[user_id]
                del self._locks[user_id]

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    async def _read(self, user_id: str) -> User | None:
        try:
            return await self.store.get(user_id)
        except SkillVerifyError:
            raise
        except Exception as e:
            logger.error(f"Failed to read user {user_id}: {e}", exc_info=True)
            raise StorageError(f"Failed to read user {user_id}") from e

    async def _write(self, user: User) -> None:
        try:
            await self.store.insert(user.id, user)
        except SkillVerifyError:
            raise
        except Exception as e:
            logger.error(f"Failed to write user {user.id}: {e}", exc_info=True)
            raise StorageError(f"Failed to write user {user.id}") from e

    async def _require_user(self, user_id: Any) -> User:
        if not isinstance(user_id, str) or not user_id:
            raise NotFoundError(f"User with id={user_id} not found")
        user = await self._read(user_id)
        if user is None:
            raise NotFoundError(f"User with id={user_id} not found")
        return user

    async def _fresh_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self.id_supplier.new_id()
            if await self._read(candidate) is None:
                return candidate
            logger.warning(
                "Id supplier returned an id already in use",
                extra={"user_id": candidate},
            )
        raise StorageError(
            f"Could not obtain an unused user id after {MAX_ID_ATTEMPTS} attempts"
        )

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, name: str, age: int | None = None) -> User:
        """Register a new user with a generated id and no skills.

        Args:
            name: Display name; must be a non-blank string.
            age: Optional non-negative integer.

        Returns:
            The stored User.

        Raises:
            ValidationError: If name or age is invalid.
            StorageError: If the store fails.
        """
        name = validate_name(name)
        age = validate_age(age)

        user_id = await self._fresh_id()
        async with self._locked(user_id):
            user = User(id=user_id, name=name, age=age, skills=[])
            await self._write(user)

        logger.info(f"User {user_id} created", extra={"user_id": user_id})
        return user

    async def get_user(self, user_id: str) -> User:
        user = await self._require_user(user_id)
        logger.debug(f"Retrieved user {user_id}", extra={"user_id": user_id})
        return user

    async def list_users(self) -> list[User]:
        try:
            pairs = await self.store.items()
        except SkillVerifyError:
            raise
        except Exception as e:
            logger.error(f"Failed to enumerate users: {e}", exc_info=True)
            raise StorageError("Failed to enumerate users") from e

        users = [user for _, user in pairs]
        logger.debug("Listed users", extra={"count": len(users)})
        return users

    async def update_user(self, user_id: str, update: UserUpdate) -> User:
        """Merge provided profile fields onto an existing user.

        Fields left UNSET keep their stored values. Skills are never
        touched by a profile update.

        Raises:
            NotFoundError: If the user doesn't exist.
            ValidationError: If a provided field is invalid.
        """
        async with self._locked(user_id):
            user = await self._require_user(user_id)

            # Validate every provided field before touching the aggregate
            name = user.name if update.name is UNSET else validate_name(update.name)
            age = user.age if update.age is UNSET else validate_age(update.age)

            user.name = name
            user.age = age
            await self._write(user)

        logger.info(
            f"User {user_id} updated",
            extra={
                "user_id": user_id,
                "name_changed": update.name is not UNSET,
                "age_changed": update.age is not UNSET,
            },
        )
        return user

    async def delete_user(self, user_id: str) -> None:
        """Delete a user together with every skill and rating it owns.

        Ratings this user left on other users' skills stay on those
        skills as part of the owners' reputation records.

        Raises:
            NotFoundError: If the user doesn't exist.
        """
        async with self._locked(user_id):
            user = await self._require_user(user_id)
            try:
                await self.store.remove(user_id)
            except SkillVerifyError:
                raise
            except Exception as e:
                logger.error(f"Failed to remove user {user_id}: {e}", exc_info=True)
                raise StorageError(f"Failed to remove user {user_id}") from e

        logger.info(
            f"User {user_id} deleted",
            extra={"user_id": user_id, "skills_removed": len(user.skills)},
        )

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    async def add_skills(self, user_id: str, names: Sequence[str]) -> list[Skill]:
        """Append unverified skills to a user, preserving request order.

        Returns:
            The user's full skill sequence after the append.

        Raises:
            NotFoundError: If the user doesn't exist.
            ValidationError: If the batch or any name is invalid.
            ConflictError: If the user already has one of the names.
        """
        async with self._locked(user_id):
            user = await self._require_user(user_id)
            validated = validate_skill_names(names)

            existing = [name for name in validated if user.has_skill(name)]
            if existing:
                raise ConflictError(
                    f"User {user_id} already has skill(s): {', '.join(existing)}"
                )

            user.skills.extend(Skill(name=name) for name in validated)
            await self._write(user)

        logger.info(
            f"Added {len(validated)} skill(s) to user {user_id}",
            extra={"user_id": user_id, "skills": validated},
        )
        return user.skills

    async def add_skill(self, user_id: str, name: str) -> Skill:
        """Append a single unverified skill and return it."""
        skills = await self.add_skills(user_id, [name])
        return skills[-1]

    async def remove_skill(self, user_id: str, skill_name: str) -> None:
        async with self._locked(user_id):
            user = await self._require_user(user_id)
            removed = user.remove_skill(skill_name)
            if removed is None:
                raise NotFoundError(
                    f"Skill {skill_name} not found for user {user_id}"
                )
            await self._write(user)

        logger.info(
            f"Skill {skill_name} removed from user {user_id}",
            extra={
                "user_id": user_id,
                "skill": skill_name,
                "ratings_discarded": len(removed.ratings),
            },
        )

    async def list_skills(self, user_id: str) -> list[Skill]:
        user = await self._require_user(user_id)
        return user.skills

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def verify_skill(
        self,
        user_id: str,
        skill_name: str,
        verifier_id: str,
        score: int,
        comment: str | None = None,
    ) -> Skill:
        """Record a verifier's rating on one of a user's skills.

        Checks run in this order: owner exists, verifier exists, skill
        exists, score and comment are valid, verifier is not the owner,
        verifier has not already rated the skill. Only then is the rating
        appended (which marks the skill verified) and the owner's
        aggregate persisted.

        Args:
            user_id: Owner of the skill.
            skill_name: Name of the skill to verify.
            verifier_id: User submitting the rating.
            score: Integer from 1 to 5.
            comment: Optional free text.

        Returns:
            The updated Skill.

        Raises:
            NotFoundError: If the owner, verifier or skill doesn't exist.
            ValidationError: If score or comment is invalid, or the
                verifier is the owner.
            ConflictError: If the verifier already rated this skill.
        """
        async with self._locked(user_id):
            user = await self._require_user(user_id)

            verifier_id = validate_id(verifier_id, "Verifier userId")
            if verifier_id != user_id:
                await self._require_user(verifier_id)

            skill = user.find_skill(skill_name)
            if skill is None:
                raise NotFoundError(
                    f"Skill {skill_name} not found for user {user_id}"
                )

            score = validate_score(score)
            comment = validate_comment(comment)

            if verifier_id == user_id:
                raise ValidationError("Users cannot verify their own skills.")

            if skill.has_rating_from(verifier_id):
                raise ConflictError(
                    f"User {verifier_id} has already verified skill "
                    f"{skill_name} for user {user_id}"
                )

            skill.add_rating(
                Rating(
                    user_id=verifier_id,
                    score=score,
                    comment=comment,
                    created_at=self.clock.now(),
                )
            )
            await self._write(user)

        logger.info(
            f"Skill {skill_name} of user {user_id} verified by {verifier_id}",
            extra={
                "user_id": user_id,
                "skill": skill_name,
                "verifier_id": verifier_id,
                "score": score,
                "rating_count": len(skill.ratings),
            },
        )
        return skill
