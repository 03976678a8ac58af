"""
Seeded RNG so simulations can be replayed in tests and demos.
"""
from __future__ import annotations

import random
from typing import MutableSequence, Sequence, TypeVar

T = TypeVar("T")


class SeededRNG:
    """Wrapper around random.Random; seed=None draws from OS entropy."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._seed = seed

    @property
    def seed(self) -> int | None:
        return self._seed

    def random(self) -> float:
        return self._rng.random()

    def chance(self, probability: float) -> bool:
        """One Bernoulli trial."""
        return self._rng.random() < probability

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def shuffle(self, seq: MutableSequence) -> None:
        self._rng.shuffle(seq)

    def spawn(self) -> SeededRNG:
        """Child RNG derived from this one; deterministic if this one is seeded."""
        if self._seed is None:
            return SeededRNG()
        return SeededRNG(self._rng.randint(1, 2**31 - 1))
