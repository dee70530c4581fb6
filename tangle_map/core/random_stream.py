"""
Seeded random stream used by every composition layer.

A small linear-congruential generator drives the sequential draws, and a
position-keyed noise function derives a fresh generator per coordinate
bucket so that noise lookups never disturb the sequential cursor.
"""

import math
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

# Row stride used to fold a 2D noise bucket into a single seed offset
NOISE_ROW_STRIDE = 1000


def _step(state: int) -> int:
    """Advance an LCG state by one step."""
    return (state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS


class RandomStream:
    """
    Deterministic random stream for a composition.

    ``next()`` advances a shared cursor. ``noise()`` is keyed only by its
    arguments and the original seed, so it returns the same value no matter
    how many sequential draws happened in between.

    Reseeding while a generation pass is running invalidates reproducibility
    for the remainder of that pass; callers must reseed between passes only.
    """

    def __init__(self, seed: int = 42):
        """Initialize with an integer seed."""
        self.reseed(seed)

    def reseed(self, seed: int) -> None:
        """Reset both the cursor and the noise basis to a new seed."""
        self.seed = int(seed)
        self.state = self.seed
        self.call_count = 0

    def reset(self) -> None:
        """Rewind the cursor to the original seed."""
        self.state = self.seed
        self.call_count = 0

    def next(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        self.state = _step(self.state)
        return self.state / LCG_MODULUS

    def generator(self, offset: int = 0) -> Callable[[], float]:
        """Create an independent generator seeded at ``seed + offset``."""
        state = self.seed + offset

        def draw() -> float:
            nonlocal state
            state = _step(state)
            return state / LCG_MODULUS

        return draw

    def noise(self, x: float, y: float, z: float = 1) -> float:
        """
        Position-keyed pseudo-noise in [0, 1).

        The third argument scales the coordinates before they are bucketed,
        so ``noise(x, y, z)`` is a pure function of ``(x, y, z, seed)``.
        """
        offset = math.floor(x * z) + math.floor(y * z) * NOISE_ROW_STRIDE
        return self.generator(offset)()

    def random_int(self, min_val: int, max_val: int) -> int:
        """Random integer in [min_val, max_val] inclusive."""
        return math.floor(self.next() * (max_val - min_val + 1)) + min_val

    def random_float(self, min_val: float, max_val: float) -> float:
        """Random float in [min_val, max_val)."""
        return self.next() * (max_val - min_val) + min_val

    def random_angle(self) -> float:
        """Random angle in radians."""
        return self.next() * math.pi * 2

    def pick(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[math.floor(self.next() * len(seq))]
