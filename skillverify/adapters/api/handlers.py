"""Request handlers for the REST API.

Translates an HTTP verb, path and parsed JSON body into a
SkillVerificationPort call and serializes the result. Typed failures
from the core are mapped to status codes here, so the HTTP server only
has to move bytes.
"""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote, urlsplit

from skillverify.core.errors import InternalError, SkillVerifyError, ValidationError
from skillverify.core.models import UNSET, UserUpdate
from skillverify.core.ports import SkillVerificationPort
from skillverify.core.serialization import skill_to_dict, user_to_dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """Status code plus JSON-compatible payload (None for an empty body)."""

    status: int
    body: Any = None


Handler = Callable[..., Awaitable[ApiResponse]]

# Segment placeholders match one percent-encoded path segment
_SEGMENT = r"([^/]+)"


def _error(status: int, code: str, message: str) -> ApiResponse:
    return ApiResponse(status, {"error": code, "message": message})


def _require_object(body: Any) -> dict[str, Any]:
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    return body


class RequestHandlers:
    """Route table and handlers for the SkillVerify REST surface.

    Each handler receives the decoded path parameters and the parsed
    body, calls the service, and returns an ApiResponse.
    """

    def __init__(self, service: SkillVerificationPort):
        """Initialize the handlers.

        Args:
            service: SkillVerificationPort implementation to call into.
        """
        self.service = service
        self._routes: list[tuple[re.Pattern[str], dict[str, Handler]]] = [
            (re.compile(r"^/health$"), {"GET": self.health}),
            (
                re.compile(r"^/users$"),
                {"GET": self.list_users, "POST": self.create_user},
            ),
            (
                re.compile(rf"^/users/{_SEGMENT}$"),
                {
                    "GET": self.get_user,
                    "PUT": self.update_user,
                    "DELETE": self.delete_user,
                },
            ),
            (
                re.compile(rf"^/users/{_SEGMENT}/skills$"),
                {"GET": self.list_skills, "POST": self.add_skills},
            ),
            (
                re.compile(rf"^/users/{_SEGMENT}/skills/{_SEGMENT}$"),
                {"DELETE": self.remove_skill},
            ),
            (
                re.compile(rf"^/users/{_SEGMENT}/skills/{_SEGMENT}/verify$"),
                {"POST": self.verify_skill},
            ),
        ]

    async def dispatch(self, method: str, path: str, body: Any = None) -> ApiResponse:
        """Route a request and run its handler.

        Args:
            method: HTTP verb, e.g. "POST".
            path: Request target; any query string is ignored.
            body: Parsed JSON body, or None when the request had none.

        Returns:
            The response to send. Never raises for business-rule failures.
        """
        route_path = urlsplit(path).path
        if len(route_path) > 1:
            route_path = route_path.rstrip("/")

        for pattern, methods in self._routes:
            match = pattern.match(route_path)
            if match is None:
                continue
            handler = methods.get(method.upper())
            if handler is None:
                return _error(405, "method_not_allowed", f"Method {method} not allowed")
            params = [unquote(group) for group in match.groups()]
            return await self._invoke(handler, params, body)

        return _error(404, "not_found", f"No route for {route_path}")

    async def _invoke(
        self, handler: Handler, params: list[str], body: Any
    ) -> ApiResponse:
        try:
            return await handler(*params, body=body)
        except InternalError as e:
            logger.error(f"Internal error handling request: {e}", exc_info=True)
            return _error(e.status_code, e.code, "Internal server error")
        except SkillVerifyError as e:
            logger.warning(
                f"Request rejected: {e.message}",
                extra={"reason": e.code, "status_code": e.status_code},
            )
            return _error(e.status_code, e.code, e.message)
        except Exception as e:
            logger.error(f"Unexpected error handling request: {e}", exc_info=True)
            return _error(500, InternalError.code, "Internal server error")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def health(self, body: Any = None) -> ApiResponse:
        return ApiResponse(200, {"status": "healthy"})

    async def create_user(self, body: Any = None) -> ApiResponse:
        data = _require_object(body)
        user = await self.service.create_user(data.get("name"), data.get("age"))
        return ApiResponse(201, user_to_dict(user))

    async def list_users(self, body: Any = None) -> ApiResponse:
        users = await self.service.list_users()
        return ApiResponse(200, [user_to_dict(u) for u in users])

    async def get_user(self, user_id: str, body: Any = None) -> ApiResponse:
        user = await self.service.get_user(user_id)
        return ApiResponse(200, user_to_dict(user))

    async def update_user(self, user_id: str, body: Any = None) -> ApiResponse:
        """Apply a partial profile update.

        Only keys present in the body are changed; ``"age": null`` clears
        the age. Skills are managed through the skills endpoints.
        """
        data = _require_object(body)
        if "skills" in data:
            raise ValidationError(
                "Skills cannot be replaced through a profile update."
            )
        update = UserUpdate(
            name=data["name"] if "name" in data else UNSET,
            age=data["age"] if "age" in data else UNSET,
        )
        user = await self.service.update_user(user_id, update)
        return ApiResponse(200, user_to_dict(user))

    async def delete_user(self, user_id: str, body: Any = None) -> ApiResponse:
        await self.service.delete_user(user_id)
        return ApiResponse(204)

    async def list_skills(self, user_id: str, body: Any = None) -> ApiResponse:
        skills = await self.service.list_skills(user_id)
        return ApiResponse(200, [skill_to_dict(s) for s in skills])

    async def add_skills(self, user_id: str, body: Any = None) -> ApiResponse:
        """Add one skill (``{"name"}``) or a batch (``{"skills": [{"name"}]}``).

        The single form returns the new skill; the batch form returns the
        user's full skill sequence.
        """
        data = _require_object(body)
        if "skills" in data and "name" in data:
            raise ValidationError("Provide either 'name' or 'skills', not both.")

        if "skills" not in data:
            skill = await self.service.add_skill(user_id, data.get("name"))
            return ApiResponse(201, skill_to_dict(skill))

        entries = data["skills"]
        if not isinstance(entries, list):
            raise ValidationError("Skills must be provided as a list of names.")
        names = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise ValidationError("Each skill must be an object with a name.")
            names.append(entry.get("name"))

        skills = await self.service.add_skills(user_id, names)
        return ApiResponse(201, [skill_to_dict(s) for s in skills])

    async def remove_skill(
        self, user_id: str, skill_name: str, body: Any = None
    ) -> ApiResponse:
        await self.service.remove_skill(user_id, skill_name)
        return ApiResponse(204)

    async def verify_skill(
        self, user_id: str, skill_name: str, body: Any = None
    ) -> ApiResponse:
        data = _require_object(body)
        skill = await self.service.verify_skill(
            user_id,
            skill_name,
            verifier_id=data.get("userId"),
            score=data.get("score"),
            comment=data.get("comment"),
        )
        return ApiResponse(200, skill_to_dict(skill))
