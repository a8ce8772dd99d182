"""Slot machine: explicit configuration plus the draw-and-resolve step."""
from dataclasses import dataclass

from coinslot.config import Settings, settings as default_settings
from coinslot.logic.models import SpinResult
from coinslot.logic.paytable import DEFAULT_PAYTABLE, Paytable
from coinslot.logic.resolver import PayoutResolver
from coinslot.logic.rng import ProductionRNG, RNGBase
from coinslot.logic.symbols import SymbolGenerator, SymbolWeight

REELS = 3


@dataclass(frozen=True)
class MachineConfig:
    """
    Everything that defines the game math.

    Built once and passed into the generator and resolver, so tests can
    swap in their own weights and tables.
    """

    weights: tuple[SymbolWeight, ...]
    paytable: Paytable
    spin_cost: int

    def __post_init__(self) -> None:
        if self.spin_cost <= 0:
            raise ValueError(f"Spin cost must be positive, got {self.spin_cost}")
        alphabet = {w.symbol for w in self.weights}
        unknown = self.paytable.symbols() - alphabet
        if unknown:
            raise ValueError(
                f"Paytable references symbols outside the alphabet: {sorted(unknown)}"
            )

    @classmethod
    def from_weights(
        cls, weights: list[int], paytable: Paytable, spin_cost: int
    ) -> "MachineConfig":
        return cls(
            weights=tuple(SymbolWeight(symbol=i, weight=w) for i, w in enumerate(weights)),
            paytable=paytable,
            spin_cost=spin_cost,
        )

    @property
    def symbol_count(self) -> int:
        return len(self.weights)


def build_machine_config(config: Settings | None = None) -> MachineConfig:
    """Machine configuration from application settings and the server paytable."""
    config = config or default_settings
    return MachineConfig.from_weights(
        list(config.symbol_weights), DEFAULT_PAYTABLE, config.spin_cost
    )


class SlotMachine:
    """Draws one symbol per reel and resolves the result."""

    def __init__(self, config: MachineConfig, rng: RNGBase | None = None):
        self.config = config
        self.generator = SymbolGenerator(config.weights, rng or ProductionRNG())
        self.resolver = PayoutResolver(config.paytable)

    def play(self) -> SpinResult:
        """Fresh draw on every call; outcomes are never reused."""
        reels = self.generator.draw_reels(REELS)
        resolution = self.resolver.resolve(reels)
        return SpinResult(reels=reels, win=resolution.win, payout=resolution.payout)
