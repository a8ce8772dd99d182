"""Pytest fixtures for backend tests."""
import asyncio
from collections.abc import Sequence
from typing import Generator, Any

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from coinslot.identity import StaticIdentityProvider
from coinslot.logic.engine import MachineConfig, SlotMachine
from coinslot.logic.paytable import DEFAULT_PAYTABLE
from coinslot.logic.rng import RNGBase
from coinslot.main import app, coordinator
from coinslot.profile_store import ProfileStore, profile_store
from coinslot.telemetry import TelemetryService


TOKENS = {
    "token-alice": "alice",
    "token-bob": "bob",
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (long statistical runs)"
    )


def auth(token: str = "token-alice") -> dict[str, str]:
    """Authorization header for a test token."""
    return {"Authorization": f"Bearer {token}"}


def reel_value(symbol: int, symbol_count: int = 9) -> float:
    """Uniform random that lands on `symbol` with equal weights."""
    return (symbol + 0.5) / symbol_count


class ScriptedRNG(RNGBase):
    """RNG that replays a fixed list of uniforms, cycling when exhausted."""

    def __init__(self, values: Sequence[float]):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value

    @classmethod
    def for_reels(cls, *triples: Sequence[int], symbol_count: int = 9) -> "ScriptedRNG":
        """RNG that draws the given triples in order on a uniform machine."""
        return cls([reel_value(s, symbol_count) for triple in triples for s in triple])


def uniform_machine(rng: RNGBase, spin_cost: int = 10) -> SlotMachine:
    """Default paytable, 9 equally weighted symbols."""
    return SlotMachine(MachineConfig.from_weights([1] * 9, DEFAULT_PAYTABLE, spin_cost), rng)


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(
        self, key: str, value: str, nx: bool = False, ex: int | None = None
    ) -> bool | None:
        if nx and key in self._store:
            return None
        self._store[key] = value
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._store[key] = value
        return True

    async def delete(self, key: str) -> int:
        if key in self._store:
            del self._store[key]
            return 1
        return 0

    async def eval(self, script: str, numkeys: int, *args) -> int:
        """
        Execute Lua script (simplified mock).

        Supports the PROVISION_SCRIPT pattern (numkeys=2):
        - KEYS[1], KEYS[2] = coins key, profile key
        - ARGV[1], ARGV[2] = coins, profile document
        Returns 1 if both were written, 0 if the coins key existed.

        Supports the COMPARE_AND_SET_SCRIPT pattern (numkeys=1):
        - KEYS[1] = args[0] (key)
        - ARGV[1] = args[1] (expected value)
        - ARGV[2] = args[2] (new value)
        Returns 1 if written, 0 if value didn't match.
        """
        if numkeys == 2:
            coins_key, profile_key, coins, document = args
            if coins_key in self._store:
                return 0
            self._store[coins_key] = coins
            self._store[profile_key] = document
            return 1

        key, expected_value, new_value = args[0], args[1], args[2]
        if self._store.get(key) == expected_value:
            self._store[key] = new_value
            return 1
        return 0

    async def close(self) -> None:
        pass

    def seed_profile(self, user_id: str, coins: int, username: str = "") -> None:
        """Put a provisioned profile directly into the store."""
        self._store[f"coins:{user_id}"] = str(coins)
        self._store[f"profile:{user_id}"] = (
            f'{{"id": "{user_id}", "username": "{username}"}}'
        )

    def coins(self, user_id: str) -> int | None:
        value = self._store.get(f"coins:{user_id}")
        return int(value) if value is not None else None

    def clear(self) -> None:
        self._store.clear()


class YieldingMockRedis(MockRedis):
    """Mock Redis whose reads yield to the event loop, so concurrent spins interleave."""

    async def get(self, key: str) -> str | None:
        value = await super().get(key)
        await asyncio.sleep(0)
        return value


class FailingRedis(MockRedis):
    """Mock Redis that is unreachable."""

    async def get(self, key: str) -> str | None:
        raise RedisConnectionError("connection refused")

    async def set(self, key: str, value: str, nx: bool = False, ex: int | None = None):
        raise RedisConnectionError("connection refused")

    async def eval(self, script: str, numkeys: int, *args) -> int:
        raise RedisConnectionError("connection refused")


class RecordingTelemetrySink:
    """Telemetry sink that keeps every event for assertions."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def get_events(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]


@pytest.fixture
def mock_redis() -> MockRedis:
    """Create a fresh mock Redis for each test."""
    return MockRedis()


@pytest.fixture
def store_with_mock(mock_redis: MockRedis) -> Generator[ProfileStore, None, None]:
    """Create ProfileStore with mock client."""
    store = ProfileStore(timeout=1.0)
    store._client = mock_redis
    yield store
    mock_redis.clear()


@pytest.fixture
def static_identity() -> StaticIdentityProvider:
    return StaticIdentityProvider(TOKENS)


@pytest.fixture
def recording_telemetry() -> RecordingTelemetrySink:
    return RecordingTelemetrySink()


@pytest.fixture
def client_with_mock_redis(
    mock_redis: MockRedis,
    static_identity: StaticIdentityProvider,
    recording_telemetry: RecordingTelemetrySink,
) -> Generator[TestClient, None, None]:
    """Create TestClient with mocked Redis, static tokens and recorded telemetry."""
    original_client = profile_store._client
    original_identity = coordinator.identity
    original_machine = coordinator.machine
    original_telemetry = coordinator.telemetry

    profile_store._client = mock_redis
    coordinator.identity = static_identity
    coordinator.telemetry = TelemetryService(recording_telemetry)

    with TestClient(app) as client:
        yield client

    # Restore original
    profile_store._client = original_client
    coordinator.identity = original_identity
    coordinator.machine = original_machine
    coordinator.telemetry = original_telemetry
    mock_redis.clear()
