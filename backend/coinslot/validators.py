"""Request validators."""
from coinslot.config import settings
from coinslot.errors import ErrorCode, GameError


def validate_username(username: str) -> str:
    """
    Normalize and validate a display name.

    Raises INVALID_REQUEST if empty after trimming or longer than allowed.
    """
    username = username.strip()
    if not username:
        raise GameError(ErrorCode.INVALID_REQUEST, "Username must not be empty.")
    if len(username) > settings.username_max_length:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"Username longer than {settings.username_max_length} characters.",
        )
    return username
