"""Redis-backed profile store: balance reads, provisioning and CAS settlement."""
import asyncio
import json
import logging
from collections.abc import Awaitable
from typing import TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from coinslot.config import settings
from coinslot.errors import ErrorCode, GameError
from coinslot.logic.models import Profile

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProfileStore:
    """Redis client for player profiles and coin balances."""

    # Key prefixes
    PROFILE_PREFIX = "profile:"
    COINS_PREFIX = "coins:"

    # Lua script for compare-and-set on the balance key.
    # Writes only if the balance still equals what the caller read.
    COMPARE_AND_SET_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        redis.call("set", KEYS[1], ARGV[2])
        return 1
    else
        return 0
    end
    """

    # Lua script for provisioning.
    # Writes the balance and the profile document together, or neither.
    PROVISION_SCRIPT = """
    if redis.call("exists", KEYS[1]) == 1 then
        return 0
    end
    redis.call("set", KEYS[1], ARGV[1])
    redis.call("set", KEYS[2], ARGV[2])
    return 1
    """

    def __init__(self, redis_url: str | None = None, timeout: float | None = None):
        self._url = redis_url or settings.redis_url
        self._timeout = timeout if timeout is not None else settings.store_timeout_seconds
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._client is None:
            self._client = redis.from_url(
                self._url,
                decode_responses=True,
                socket_timeout=self._timeout,
                socket_connect_timeout=self._timeout,
            )

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client, raise if not connected."""
        if self._client is None:
            raise RuntimeError("Redis not connected")
        return self._client

    def _profile_key(self, user_id: str) -> str:
        return f"{self.PROFILE_PREFIX}{user_id}"

    def _coins_key(self, user_id: str) -> str:
        return f"{self.COINS_PREFIX}{user_id}"

    async def _bounded(self, operation: Awaitable[T], failure: ErrorCode) -> T:
        """Await a Redis call with the store timeout, mapping failures to GameError."""
        try:
            return await asyncio.wait_for(operation, self._timeout)
        except (asyncio.TimeoutError, RedisError) as e:
            logger.warning("Profile store call failed (%s): %r", failure.value, e)
            raise GameError(failure) from e

    async def get_profile(self, user_id: str) -> Profile | None:
        """
        Load a profile.

        Returns None if the player has no balance yet (never provisioned).
        """
        coins = await self._bounded(
            self.client.get(self._coins_key(user_id)), ErrorCode.STORE_UNAVAILABLE
        )
        if coins is None:
            return None
        raw = await self._bounded(
            self.client.get(self._profile_key(user_id)), ErrorCode.STORE_UNAVAILABLE
        )
        data = json.loads(raw) if raw else {}
        return Profile(id=user_id, username=data.get("username", ""), coins=int(coins))

    async def create_profile(
        self, user_id: str, username: str, coins: int
    ) -> Profile | None:
        """
        Provision a profile with its starting balance.

        Balance and profile document are written by one script, so a failed
        call leaves nothing behind and concurrent provisioning for the same
        player creates it once. Returns None if it already existed.
        """
        created = await self._bounded(
            self.client.eval(
                self.PROVISION_SCRIPT,
                2,
                self._coins_key(user_id),
                self._profile_key(user_id),
                str(coins),
                json.dumps({"id": user_id, "username": username}),
            ),
            ErrorCode.STORE_UNAVAILABLE,
        )
        if created != 1:
            return None
        return Profile(id=user_id, username=username, coins=coins)

    async def compare_and_set_coins(
        self, user_id: str, expected: int, new_balance: int
    ) -> bool:
        """
        Set the balance to new_balance only if it still equals expected.

        Atomic on the Redis side. Returns False on a concurrent modification.
        Raises PERSISTENCE_ERROR if the store cannot be reached.
        """
        try:
            result = await self.client.eval(
                self.COMPARE_AND_SET_SCRIPT,
                1,
                self._coins_key(user_id),
                str(expected),
                str(new_balance),
            )
        except RedisError as e:
            logger.error("Balance write failed for %s: %r", user_id, e)
            raise GameError(ErrorCode.PERSISTENCE_ERROR) from e
        return result == 1


# Global instance
profile_store = ProfileStore()
