"""Conversion between User aggregates and JSON-compatible records.

The same record shape is used for persisted rows and for API payloads,
so a stored aggregate is self-describing. Derived fields (``verified``,
``averageScore``) are written for readers but ignored when loading; they
are always recomputed from the ratings.
"""

from datetime import datetime
from typing import Any

from .models import Rating, Skill, User


def rating_to_dict(rating: Rating) -> dict[str, Any]:
    return {
        "userId": rating.user_id,
        "score": rating.score,
        "comment": rating.comment,
        "createdAt": rating.created_at.isoformat(),
    }


def skill_to_dict(skill: Skill) -> dict[str, Any]:
    return {
        "name": skill.name,
        "verified": skill.verified,
        "averageScore": skill.average_score,
        "ratings": [rating_to_dict(r) for r in skill.ratings],
    }


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "age": user.age,
        "skills": [skill_to_dict(s) for s in user.skills],
    }


def rating_from_dict(data: dict[str, Any]) -> Rating:
    return Rating(
        user_id=data["userId"],
        score=data["score"],
        comment=data.get("comment"),
        created_at=datetime.fromisoformat(data["createdAt"]),
    )


def skill_from_dict(data: dict[str, Any]) -> Skill:
    return Skill(
        name=data["name"],
        ratings=[rating_from_dict(r) for r in data.get("ratings", [])],
    )


def user_from_dict(data: dict[str, Any]) -> User:
    """Rebuild a User aggregate from its record.

    Raises:
        KeyError: If a required field is missing.
        ValueError: If a timestamp cannot be parsed.
    """
    return User(
        id=data["id"],
        name=data["name"],
        age=data.get("age"),
        skills=[skill_from_dict(s) for s in data.get("skills", [])],
    )


__all__ = [
    "rating_from_dict",
    "rating_to_dict",
    "skill_from_dict",
    "skill_to_dict",
    "user_from_dict",
    "user_to_dict",
]
