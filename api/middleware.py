"""Request-scoped middleware for API requests."""

import logging
from typing import Iterable
from uuid import UUID, uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a unique request ID to every request."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class ActorMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the acting admin from gateway headers.

    The API gateway authenticates the caller and forwards:
    - X-User-Id: the caller's user UUID
    - X-User-Role: the caller's role

    For protected routes the actor id is stored in request.state.actor_id and
    passed explicitly to every settlement operation. Missing or malformed
    headers get 401; a non-admin role gets 403.

    Public paths bypass the check entirely.
    """

    PUBLIC_PATHS = [
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, admin_roles: Iterable[str] = ("admin",)):
        super().__init__(app)
        self._admin_roles = frozenset(admin_roles)

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path):
                return True
        return False

    def _reject(self, request: Request, status_code: int, code: str, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=error_response(
                code, message, getattr(request.state, "request_id", None)
            ).model_dump(mode="json"),
        )

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        if self._is_public_path(request.url.path):
            return await call_next(request)

        raw_user_id = request.headers.get("x-user-id")
        role = request.headers.get("x-user-role")

        if not raw_user_id or not role:
            return self._reject(request, 401, ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            actor_id = UUID(raw_user_id)
        except ValueError:
            return self._reject(request, 401, ErrorCodes.NOT_AUTHENTICATED, "Invalid user identity")

        if role not in self._admin_roles:
            logger.warning(f"Rejected {request.method} {request.url.path} for role '{role}' (user {actor_id})")
            return self._reject(request, 403, ErrorCodes.FORBIDDEN, "Admin access required")

        request.state.actor_id = actor_id
        request.state.actor_role = role
        return await call_next(request)


def get_actor_id(request: Request) -> UUID:
    """Actor id set by ActorMiddleware."""
    return request.state.actor_id
