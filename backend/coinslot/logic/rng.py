"""Uniform random sources for symbol draws."""
import random
import secrets
from abc import ABC, abstractmethod


class RNGBase(ABC):
    """Source of uniform randoms consumed by the symbol generator."""

    @abstractmethod
    def random(self) -> float:
        """Return random float in [0, 1)."""
        pass


class ProductionRNG(RNGBase):
    """
    Production RNG.

    Uses the OS cryptographic source, no seed, safe to share between
    concurrent requests.
    """

    _PRECISION_BITS = 53

    def random(self) -> float:
        return secrets.randbits(self._PRECISION_BITS) / (1 << self._PRECISION_BITS)


class SeededRNG(RNGBase):
    """
    Test/simulation RNG.

    Deterministic, fully controlled by seed, so a run can be reproduced.
    """

    def __init__(self, seed: int):
        self._rng = random.Random(seed)
        self.seed = seed

    def random(self) -> float:
        return self._rng.random()
