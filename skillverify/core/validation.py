"""Input validation for the skill verification rules.

Each validator either returns the normalized value or raises
ValidationError. Validators run before any aggregate is mutated.
"""

from collections.abc import Sequence
from typing import Any

from .errors import ValidationError

MIN_SCORE = 1
MAX_SCORE = 5
MAX_COMMENT_LENGTH = 1000


def _is_int(value: Any) -> bool:
    # bool is an int subclass; True must not pass as a score or age
    return isinstance(value, int) and not isinstance(value, bool)


def validate_name(name: Any) -> str:
    """Validate a user's display name."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required and must be a string.")
    return name


def validate_age(age: Any) -> int | None:
    """Validate an optional age. None means the user gave no age."""
    if age is None:
        return None
    if not _is_int(age) or age < 0:
        raise ValidationError("Age must be a non-negative integer.")
    return age


def validate_skill_name(name: Any) -> str:
    """Validate one skill name; it must be a non-blank string."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Skill name is required and must be a string.")
    return name


def validate_skill_names(names: Any) -> list[str]:
    """Validate a batch of skill names.

    A bare string is rejected: it is a sequence of characters, not names.

    Raises:
        ValidationError: If the batch is not a non-empty sequence, any
            entry is invalid, or a name repeats within the batch.
    """
    if isinstance(names, (str, bytes)) or not isinstance(names, Sequence):
        raise ValidationError("Skills must be provided as a list of names.")
    if len(names) == 0:
        raise ValidationError("At least one skill name is required.")

    validated = [validate_skill_name(name) for name in names]
    if len(set(validated)) != len(validated):
        raise ValidationError("Skill names in a single request must be unique.")
    return validated


def validate_score(score: Any) -> int:
    """Validate a rating score: an int from 1 to 5, bools excluded."""
    if not _is_int(score) or not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(
            f"Score must be an integer between {MIN_SCORE} and {MAX_SCORE}."
        )
    return score


def validate_comment(comment: Any) -> str | None:
    """Trim the comment and enforce a maximum length."""
    if comment is None:
        return None
    if not isinstance(comment, str):
        raise ValidationError("Comment must be a string.")
    comment = comment.strip()
    if len(comment) > MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"Comment must be {MAX_COMMENT_LENGTH} characters or fewer."
        )
    return comment


def validate_id(value: Any, label: str) -> str:
    """Validate a user id taken from request input.

    Args:
        value: Candidate id.
        label: Field name used in the error message, e.g. "Verifier userId".
    """
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{label} is required and must be a string.")
    return value
