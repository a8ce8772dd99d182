"""Value models for spin resolution and player profiles."""
from pydantic import BaseModel, Field


class Resolution(BaseModel):
    """Paytable verdict for one triple."""
    win: bool
    payout: int = 0


class SpinResult(BaseModel):
    """Drawn reels plus their resolution, before settlement."""
    reels: list[int] = Field(default_factory=list)
    win: bool = False
    payout: int = 0


class Profile(BaseModel):
    """
    One player's economic state.

    Coins are only mutated by provisioning and spin settlement.
    """
    id: str
    username: str = ""
    coins: int


class SpinOutcome(BaseModel):
    """Settled spin: reels, verdict and the balance after settlement."""
    spin: list[int]
    win: bool
    payout: int
    coins: int
