"""HTTP request and response models."""
from pydantic import BaseModel, Field

from coinslot.logic.paytable import PatternCell


# === Request Models ===


class CreateProfileRequest(BaseModel):
    """POST /profile request body."""

    username: str = Field(..., description="Display name")


# === Response Models ===


class SpinResponse(BaseModel):
    """POST /spin response. coins is the settled balance the UI must show."""

    spin: list[int]
    win: bool
    payout: int
    coins: int


class ProfileResponse(BaseModel):
    """GET/POST /profile response."""

    id: str
    username: str
    coins: int


class SymbolInfo(BaseModel):
    """One reel symbol and its draw weight."""

    symbol: int
    weight: int


class PaytableRow(BaseModel):
    """Paytable entry; "*" matches any symbol."""

    combo: list[PatternCell]
    payout: int


class PaytableResponse(BaseModel):
    """GET /paytable response, rows in resolution precedence order."""

    spinCost: int
    configHash: str
    symbols: list[SymbolInfo] = Field(default_factory=list)
    paytable: list[PaytableRow] = Field(default_factory=list)
