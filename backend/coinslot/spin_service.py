"""Spin transaction coordinator.

One spin request runs through:

    Unauthenticated -> Authenticated -> ProfileLoaded -> FundsChecked
    -> Resolved -> Settled

and stops with a GameError at the first failed step. The balance write is a
compare-and-set on the balance read at ProfileLoaded; if another spin for the
same player got there first, the whole load/check/draw/settle sequence runs
again with a fresh draw, up to settle_max_attempts times.
"""
import asyncio
import logging
import uuid

from coinslot.config import settings
from coinslot.config_hash import get_config_hash
from coinslot.errors import ErrorCode, GameError
from coinslot.identity import IdentityProvider
from coinslot.logic.engine import SlotMachine
from coinslot.logic.models import Profile, SpinOutcome
from coinslot.profile_store import ProfileStore
from coinslot.telemetry import (
    ProfileCreatedEvent,
    SpinRejectedEvent,
    SpinSettledEvent,
    TelemetryService,
    telemetry_service as default_telemetry,
)
from coinslot.validators import validate_username

logger = logging.getLogger(__name__)


class SpinCoordinator:
    """Server-authoritative spin and balance handling for authenticated players."""

    def __init__(
        self,
        identity: IdentityProvider,
        store: ProfileStore,
        machine: SlotMachine,
        max_attempts: int | None = None,
        identity_timeout: float | None = None,
        starting_balance: int | None = None,
        telemetry: TelemetryService | None = None,
    ):
        self.identity = identity
        self.store = store
        self.machine = machine
        self.max_attempts = (
            max_attempts if max_attempts is not None else settings.settle_max_attempts
        )
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.identity_timeout = (
            identity_timeout
            if identity_timeout is not None
            else settings.identity_timeout_seconds
        )
        self.starting_balance = (
            starting_balance if starting_balance is not None else settings.starting_balance
        )
        self.telemetry = telemetry or default_telemetry
        self.config_hash = get_config_hash(machine.config)

    @property
    def spin_cost(self) -> int:
        return self.machine.config.spin_cost

    async def authenticate(self, token: str | None) -> str:
        """Resolve a bearer token to a user id."""
        if not token:
            raise GameError(ErrorCode.UNAUTHORIZED)
        try:
            return await asyncio.wait_for(
                self.identity.verify_token(token), self.identity_timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning("Token verification timed out after %.1fs", self.identity_timeout)
            raise GameError(ErrorCode.IDENTITY_UNAVAILABLE) from e

    async def load_profile(self, user_id: str) -> Profile:
        """Current profile; never provisions one."""
        profile = await self.store.get_profile(user_id)
        if profile is None:
            raise GameError(ErrorCode.PROFILE_NOT_FOUND)
        return profile

    def check_funds(self, balance: int) -> None:
        if balance < self.spin_cost:
            raise GameError(ErrorCode.INSUFFICIENT_FUNDS)

    async def settle(self, user_id: str, expected: int, new_balance: int) -> bool:
        """
        Write the post-spin balance if it is still `expected`.

        Shielded so a disconnecting caller cannot abandon the write halfway;
        the CAS applies entirely or not at all.
        """
        return await asyncio.shield(
            self.store.compare_and_set_coins(user_id, expected, new_balance)
        )

    async def spin(self, token: str | None) -> SpinOutcome:
        """Resolve one paid spin for the token's owner."""
        user_id: str | None = None
        attempts = 0
        try:
            user_id = await self.authenticate(token)
            while attempts < self.max_attempts:
                attempts += 1
                profile = await self.load_profile(user_id)
                self.check_funds(profile.coins)

                result = self.machine.play()
                new_balance = profile.coins - self.spin_cost + result.payout

                if await self.settle(user_id, profile.coins, new_balance):
                    self.telemetry.emit_spin_settled(
                        SpinSettledEvent(
                            user_id=user_id,
                            round_id=str(uuid.uuid4()),
                            reels=result.reels,
                            win=result.win,
                            payout=result.payout,
                            coins_before=profile.coins,
                            coins_after=new_balance,
                            attempts=attempts,
                            config_hash=self.config_hash,
                        )
                    )
                    return SpinOutcome(
                        spin=result.reels,
                        win=result.win,
                        payout=result.payout,
                        coins=new_balance,
                    )

                logger.info(
                    "Balance of %s changed during spin (attempt %d/%d)",
                    user_id,
                    attempts,
                    self.max_attempts,
                )

            logger.warning(
                "Giving up on spin for %s after %d conflicting writes", user_id, attempts
            )
            raise GameError(ErrorCode.PERSISTENCE_ERROR)

        except GameError as e:
            self.telemetry.emit_spin_rejected(
                SpinRejectedEvent(user_id=user_id, reason=e.code.value, attempts=attempts)
            )
            raise

    async def read_profile(self, token: str | None) -> Profile:
        user_id = await self.authenticate(token)
        return await self.load_profile(user_id)

    async def provision_profile(self, token: str | None, username: str) -> Profile:
        """Create the caller's profile with the starting balance."""
        user_id = await self.authenticate(token)
        username = validate_username(username)
        profile = await self.store.create_profile(user_id, username, self.starting_balance)
        if profile is None:
            raise GameError(ErrorCode.PROFILE_EXISTS)
        self.telemetry.emit_profile_created(
            ProfileCreatedEvent(user_id=user_id, starting_balance=self.starting_balance)
        )
        return profile
