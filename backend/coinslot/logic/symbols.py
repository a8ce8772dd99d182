"""Weighted symbol generator: one independent draw per reel."""
from collections.abc import Iterable, Sequence
from itertools import accumulate

from pydantic import BaseModel, ConfigDict, Field

from coinslot.logic.rng import RNGBase


class SymbolWeight(BaseModel):
    """Draw weight for one symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: int = Field(ge=0)
    weight: int = Field(gt=0)


class SymbolGenerator:
    """
    Draws symbols from a weighted discrete distribution.

    P(symbol_i) = weight_i / W where W is the total weight. A uniform
    alphabet is just the case where every weight is equal; the draw walks
    the same cumulative table either way, so it reduces to
    floor(random() * N).
    """

    def __init__(self, weights: Iterable[SymbolWeight], rng: RNGBase):
        self.weights: tuple[SymbolWeight, ...] = tuple(weights)
        if not self.weights:
            raise ValueError("Symbol generator needs at least one symbol")
        symbols = [w.symbol for w in self.weights]
        if len(set(symbols)) != len(symbols):
            raise ValueError(f"Duplicate symbols in weight table: {symbols}")

        self.rng = rng
        self._symbols = symbols
        self._cumulative = list(accumulate(w.weight for w in self.weights))
        self.total_weight = self._cumulative[-1]

    @classmethod
    def from_weights(cls, weights: Sequence[int], rng: RNGBase) -> "SymbolGenerator":
        """Build from a plain list where index is the symbol id."""
        return cls(
            (SymbolWeight(symbol=i, weight=w) for i, w in enumerate(weights)),
            rng,
        )

    @classmethod
    def uniform(cls, symbol_count: int, rng: RNGBase) -> "SymbolGenerator":
        """Equal weights over symbols 0..symbol_count-1."""
        return cls.from_weights([1] * symbol_count, rng)

    @property
    def symbols(self) -> list[int]:
        return list(self._symbols)

    def probability(self, symbol: int) -> float:
        """Theoretical draw probability of a symbol (0.0 if not in the alphabet)."""
        for entry in self.weights:
            if entry.symbol == symbol:
                return entry.weight / self.total_weight
        return 0.0

    def draw(self) -> int:
        """Return one symbol; independent of every previous draw."""
        r = self.rng.random() * self.total_weight
        for symbol, cumulative in zip(self._symbols, self._cumulative):
            if cumulative > r:
                return symbol
        # Only reachable if the RNG breaks its [0, 1) contract
        return self._symbols[-1]

    def draw_reels(self, count: int = 3) -> list[int]:
        """Draw one symbol per reel, with replacement."""
        return [self.draw() for _ in range(count)]
