"""HTTP middleware."""

from medgenius.middleware.auth import BearerAuthMiddleware

__all__ = ["BearerAuthMiddleware"]
