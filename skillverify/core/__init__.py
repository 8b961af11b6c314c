"""Core domain logic for the SkillVerify service.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    SkillVerifyError,
    StorageError,
    ValidationError,
)
from .models import UNSET, Rating, Skill, User, UserUpdate

__all__ = [
    "ConflictError",
    "InternalError",
    "NotFoundError",
    "Rating",
    "Skill",
    "SkillVerifyError",
    "StorageError",
    "UNSET",
    "User",
    "UserUpdate",
    "ValidationError",
]
