"""
Random source for weighted sampling.

The selector never touches a global generator; callers pass a RandomSource
(or anything with the same ``uniform(high)`` method) so that a seeded or
scripted stream reproduces every draw.
"""

from typing import Iterable, Optional
import numpy as np


class RandomSource:
    """Uniform scalar generator backed by numpy's Generator"""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.generator = np.random.default_rng(seed)

    def uniform(self, high: float) -> float:
        """Draw a float in [0, high)"""
        if high <= 0:
            return 0.0
        return float(self.generator.random() * high)

    def reseed(self, seed: Optional[int] = None):
        """Restart the stream from a new seed"""
        self.seed = seed
        self.generator = np.random.default_rng(seed)


class ScriptedRandomSource:
    """
    Replays fixed fractions of the requested range.

    Each value in ``fractions`` must be in [0, 1); the n-th draw returns
    ``fractions[n] * high``. Useful for pinning exact draw outcomes.
    """

    def __init__(self, fractions: Iterable[float], cycle: bool = True):
        self.fractions = [float(f) for f in fractions]
        if not self.fractions:
            raise ValueError("ScriptedRandomSource needs at least one fraction")
        for f in self.fractions:
            if not 0.0 <= f < 1.0:
                raise ValueError(f"Fraction {f} outside [0, 1)")
        self.cycle = cycle
        self.position = 0

    def uniform(self, high: float) -> float:
        if self.position >= len(self.fractions):
            if not self.cycle:
                raise RuntimeError("Scripted random stream exhausted")
            self.position = 0
        fraction = self.fractions[self.position]
        self.position += 1
        return fraction * high
