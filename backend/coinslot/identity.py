"""Identity providers that turn a bearer token into a user id."""
import logging
from typing import Protocol

import httpx

from coinslot.config import Settings, settings as default_settings
from coinslot.errors import ErrorCode, GameError

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Verifies bearer tokens issued by an external identity service."""

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def verify_token(self, token: str) -> str:
        """Return the user id, or raise FORBIDDEN / IDENTITY_UNAVAILABLE."""
        ...


class StaticIdentityProvider:
    """Fixed token -> user id map, for local runs and tests."""

    def __init__(self, tokens: dict[str, str] | None = None):
        self.tokens = dict(tokens or {})

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def verify_token(self, token: str) -> str:
        user_id = self.tokens.get(token)
        if user_id is None:
            raise GameError(ErrorCode.FORBIDDEN)
        return user_id


class SupabaseIdentityProvider:
    """
    Verifies tokens against Supabase Auth (GET /auth/v1/user).

    Any 4xx means the token is rejected; 5xx, transport errors and
    timeouts mean the provider could not answer.
    """

    USER_PATH = "/auth/v1/user"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"apikey": self.api_key},
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Identity provider not opened")
        return self._client

    async def verify_token(self, token: str) -> str:
        try:
            response = await self.client.get(
                self.USER_PATH, headers={"Authorization": f"Bearer {token}"}
            )
        except httpx.HTTPError as e:
            logger.warning("Identity provider unreachable: %r", e)
            raise GameError(ErrorCode.IDENTITY_UNAVAILABLE) from e

        if response.status_code >= 500:
            logger.warning("Identity provider returned %d", response.status_code)
            raise GameError(ErrorCode.IDENTITY_UNAVAILABLE)
        if response.status_code != 200:
            raise GameError(ErrorCode.FORBIDDEN)

        try:
            body = response.json()
        except ValueError as e:
            logger.warning("Identity provider returned a non-JSON body: %r", e)
            raise GameError(ErrorCode.IDENTITY_UNAVAILABLE) from e
        if not isinstance(body, dict):
            logger.warning("Identity provider returned an unexpected body: %r", body)
            raise GameError(ErrorCode.IDENTITY_UNAVAILABLE)

        user_id = body.get("id")
        if not user_id:
            raise GameError(ErrorCode.FORBIDDEN)
        return str(user_id)


def build_identity_provider(config: Settings | None = None) -> IdentityProvider:
    """Pick the provider named by settings.identity_backend."""
    config = config or default_settings
    if config.identity_backend == "static":
        return StaticIdentityProvider(config.static_tokens)
    if config.identity_backend == "supabase":
        return SupabaseIdentityProvider(
            config.supabase_url,
            config.supabase_service_role_key,
            timeout=config.identity_timeout_seconds,
        )
    raise ValueError(f"Unknown identity backend: {config.identity_backend!r}")
