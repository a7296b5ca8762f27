from __future__ import annotations

import secrets
from typing import Callable, Coroutine

from fastapi import Request, Response
from fastapi.routing import APIRoute
from fastapi.security import HTTPBearer
from fastapi.security.utils import get_authorization_scheme_param

from taskapi.domain.errors import UnauthorizedError

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Documents the scheme in OpenAPI; AuthenticatedRoute does the actual check.
bearer_scheme = HTTPBearer(auto_error=False)


def _token_matches(token: str, allowed: tuple[str, ...]) -> bool:
    return any(
        secrets.compare_digest(token.encode(), candidate.encode()) for candidate in allowed
    )


def authenticate(request: Request) -> str:
    """Return the caller's bearer token or raise UnauthorizedError."""
    scheme, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError()
    if not _token_matches(token, request.app.state.settings.api_tokens):
        raise UnauthorizedError("Invalid credentials")
    return token


class AuthenticatedRoute(APIRoute):
    """Route that authenticates write requests before the body is read or validated."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[None, None, Response]]:
        handler = super().get_route_handler()
        if not self.methods & WRITE_METHODS:
            return handler

        async def guarded_handler(request: Request) -> Response:
            authenticate(request)
            return await handler(request)

        return guarded_handler
