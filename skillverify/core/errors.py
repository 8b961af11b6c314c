"""Failure taxonomy for the SkillVerify core.

Every business-rule failure is raised as one of these types so the
driving adapters can map it to a deterministic status code and a
machine-readable reason without inspecting message text.
"""


class SkillVerifyError(Exception):
    """Base class for all typed service failures."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SkillVerifyError, ValueError):
    """Malformed or missing input."""

    code = "validation_error"
    status_code = 400


class NotFoundError(SkillVerifyError, LookupError):
    """A referenced user, skill or verifier does not exist."""

    code = "not_found"
    status_code = 404


class ConflictError(SkillVerifyError):
    """The request collides with existing state (duplicate rating or skill)."""

    code = "conflict"
    status_code = 409


class InternalError(SkillVerifyError):
    """Unexpected failure below the business rules."""


class StorageError(InternalError):
    """The backing user store failed or returned corrupt data."""


__all__ = [
    "ConflictError",
    "InternalError",
    "NotFoundError",
    "SkillVerifyError",
    "StorageError",
    "ValidationError",
]
