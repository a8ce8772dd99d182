"""Error codes and the exception that carries them to the HTTP layer."""
from enum import Enum

from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Machine-distinguishable failure kinds."""

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    PROFILE_EXISTS = "PROFILE_EXISTS"
    INVALID_REQUEST = "INVALID_REQUEST"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    IDENTITY_UNAVAILABLE = "IDENTITY_UNAVAILABLE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.PROFILE_NOT_FOUND: 404,
    ErrorCode.PROFILE_EXISTS: 409,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.INSUFFICIENT_FUNDS: 400,
    ErrorCode.PERSISTENCE_ERROR: 500,
    ErrorCode.IDENTITY_UNAVAILABLE: 503,
    ErrorCode.STORE_UNAVAILABLE: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}

ERROR_RECOVERABLE: dict[ErrorCode, bool] = {
    ErrorCode.UNAUTHORIZED: False,
    ErrorCode.FORBIDDEN: False,
    ErrorCode.PROFILE_NOT_FOUND: False,
    ErrorCode.PROFILE_EXISTS: False,
    ErrorCode.INVALID_REQUEST: False,
    ErrorCode.INSUFFICIENT_FUNDS: True,
    ErrorCode.PERSISTENCE_ERROR: True,
    ErrorCode.IDENTITY_UNAVAILABLE: True,
    ErrorCode.STORE_UNAVAILABLE: True,
    ErrorCode.INTERNAL_ERROR: True,
}

# Public body text; clients match on these for the spin endpoint.
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.UNAUTHORIZED: "Unauthorized",
    ErrorCode.FORBIDDEN: "Invalid token",
    ErrorCode.PROFILE_NOT_FOUND: "Profile not found",
    ErrorCode.PROFILE_EXISTS: "Profile already exists",
    ErrorCode.INVALID_REQUEST: "Invalid request",
    ErrorCode.INSUFFICIENT_FUNDS: "Not enough coins",
    ErrorCode.PERSISTENCE_ERROR: "Could not update coins",
    ErrorCode.IDENTITY_UNAVAILABLE: "Identity provider unavailable",
    ErrorCode.STORE_UNAVAILABLE: "Profile store unavailable",
    ErrorCode.INTERNAL_ERROR: "Internal server error",
}

# Codes rendered as a JSON object; all others are plain text.
JSON_ERROR_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.INSUFFICIENT_FUNDS,
    ErrorCode.PROFILE_EXISTS,
    ErrorCode.INVALID_REQUEST,
})

ERROR_CODE_HEADER = "X-Error-Code"


class ErrorBody(BaseModel):
    """JSON error body."""

    error: str
    code: str
    recoverable: bool


class GameError(Exception):
    """Base error that maps to an HTTP error response."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.status_code = ERROR_HTTP_STATUS[code]
        self.recoverable = ERROR_RECOVERABLE[code]
        super().__init__(self.message)

    def to_response(self) -> Response:
        """Render as JSON or plain text, always tagged with the error code header."""
        headers = {ERROR_CODE_HEADER: self.code.value}
        if self.code in JSON_ERROR_CODES:
            return JSONResponse(
                status_code=self.status_code,
                content=ErrorBody(
                    error=self.message,
                    code=self.code.value,
                    recoverable=self.recoverable,
                ).model_dump(),
                headers=headers,
            )
        return PlainTextResponse(
            self.message, status_code=self.status_code, headers=headers
        )
