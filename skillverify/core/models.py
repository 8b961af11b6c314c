"""Domain models for the SkillVerify service.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Final


class _Unset(Enum):
    """Marker type for fields absent from a partial update."""

    UNSET = "unset"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset.UNSET


@dataclass(frozen=True)
class Rating:
    """A single peer verification of a skill.

    Ratings are immutable once recorded; a skill only ever gains ratings.
    """

    user_id: str  # the verifier
    score: int
    comment: str | None
    created_at: datetime


@dataclass
class Skill:
    """A claimed skill owned by exactly one user.

    State Transitions:
        UNVERIFIED (no ratings) -> VERIFIED (at least one rating).
        The transition is one-way. A skill leaves its owner's record only
        through removal, never by reverting to unverified.

    ``verified`` is derived from ``ratings`` and cannot be assigned.
    """

    name: str
    ratings: list[Rating] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        """True iff the skill has at least one rating."""
        return len(self.ratings) > 0

    @property
    def average_score(self) -> float | None:
        """Mean rating score, or None for an unrated skill."""
        if not self.ratings:
            return None
        return sum(r.score for r in self.ratings) / len(self.ratings)

    def has_rating_from(self, verifier_id: str) -> bool:
        """Whether the given verifier has already rated this skill."""
        return any(r.user_id == verifier_id for r in self.ratings)

    def add_rating(self, rating: Rating) -> None:
        """Append a rating, enforcing one rating per verifier.

        Raises:
            ValueError: If the verifier already rated this skill.
        """
        if self.has_rating_from(rating.user_id):
            raise ValueError(
                f"User {rating.user_id} has already verified skill {self.name}"
            )
        self.ratings.append(rating)


@dataclass
class User:
    """The aggregate root: a participant and their reputation record.

    The whole aggregate (skills and their ratings included) is persisted
    and retrieved as one unit. ``id`` is assigned at creation and never
    changes afterwards.

    Note: This dataclass is intentionally mutable so the service can
    read-modify-write the aggregate before handing it back to the store.
    """

    id: str
    name: str
    age: int | None = None
    skills: list[Skill] = field(default_factory=list)

    def __setattr__(self, key: str, value: object) -> None:
        if key == "id" and "id" in self.__dict__:
            raise AttributeError("User id is immutable once assigned")
        super().__setattr__(key, value)

    def find_skill(self, name: str) -> Skill | None:
        """Return the first skill with the given name, if any."""
        for skill in self.skills:
            if skill.name == name:
                return skill
        return None

    def has_skill(self, name: str) -> bool:
        return self.find_skill(name) is not None

    def remove_skill(self, name: str) -> Skill | None:
        """Remove and return the first skill with the given name."""
        for index, skill in enumerate(self.skills):
            if skill.name == name:
                return self.skills.pop(index)
        return None


@dataclass(frozen=True)
class UserUpdate:
    """Partial update for a user's profile fields.

    Each field is either a new value or ``UNSET`` when the caller did not
    provide it. ``age=None`` clears the age; ``age=UNSET`` leaves it alone.
    """

    name: str | _Unset = UNSET
    age: int | None | _Unset = UNSET

    @property
    def is_empty(self) -> bool:
        return self.name is UNSET and self.age is UNSET
