"""
Session Token Middleware.

Every /api/* route needs a signed session token, except the health check,
register and login. The verified user id is placed on request.state for
the route handlers.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from medgenius.auth import decode_access_token
from medgenius.core.errors import AuthError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def bearer_token(request: Request) -> str:
    """
    Pull the token out of the Authorization header.

    Raises:
        AuthError: header missing or not a Bearer credential
    """
    header = request.headers.get("Authorization")
    if not header:
        raise AuthError("Authentication required")
    if not header.startswith(BEARER_PREFIX):
        raise AuthError("Invalid Authorization format. Use: Bearer <token>")
    return header[len(BEARER_PREFIX):].strip()


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """
    Verify session tokens on protected routes.

    A missing, malformed, tampered or expired token is answered with 401
    and the AuthError message; route handlers never run.
    """

    # Reachable without a session
    OPEN_PATHS = frozenset([
        "/health",
        "/api/health",
        "/api/auth/register",
        "/api/auth/login",
        "/docs",
        "/openapi.json",
        "/redoc",
    ])

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.requires_session(request):
            return await call_next(request)

        try:
            request.state.user_id = decode_access_token(bearer_token(request))
        except AuthError as e:
            logger.warning(f"Rejected {request.method} {request.url.path}: {e.message}")
            return JSONResponse(
                status_code=AuthError.status_code,
                content={"detail": e.message, "retryable": False},
            )

        return await call_next(request)

    def requires_session(self, request: Request) -> bool:
        """CORS preflights and open paths pass; everything else under /api/ is checked."""
        path = request.url.path
        if request.method == "OPTIONS" or path in self.OPEN_PATHS:
            return False
        return path.startswith("/api/")
