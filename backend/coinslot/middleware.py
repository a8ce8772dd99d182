"""Middleware for bearer token extraction and error handling."""
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from coinslot.errors import ErrorCode, GameError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Token from an "Authorization: Bearer <token>" header, None if absent."""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """Require a bearer token on player endpoints."""

    # Paths that require Authorization
    PROTECTED_PATHS = {"/spin", "/profile"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.PROTECTED_PATHS:
            token = extract_bearer_token(request.headers.get("Authorization"))
            if token is None:
                return GameError(ErrorCode.UNAUTHORIZED).to_response()
            # Verified later by the coordinator
            request.state.token = token

        return await call_next(request)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert GameError exceptions to error responses."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except GameError as e:
            return e.to_response()
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return GameError(ErrorCode.INTERNAL_ERROR).to_response()
