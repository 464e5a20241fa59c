"""Deterministic RNG facade — the single source of randomness for a match.

Every match owns one MatchRNG built from an explicit seed. Nothing in
footsim touches the global `random` or `np.random` state, so two runs with
the same seed and the same call sequence produce the same draws.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

import numpy as np

T = TypeVar("T")


class MatchRNG:
    """Seeded PCG64 stream exposing uniform and weighted-choice draws."""

    def __init__(self, seed: int):
        if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) or seed < 0:
            raise ValueError(f"Seed must be a non-negative integer, got {seed!r}")
        self.seed = int(seed)
        self._gen = np.random.Generator(np.random.PCG64(self.seed))
        self.draws = 0

    def next_uniform(self) -> float:
        """Return a float in [0, 1)."""
        self.draws += 1
        return float(self._gen.random())

    def chance(self, probability: float) -> bool:
        """Bernoulli trial; always consumes exactly one draw."""
        return self.next_uniform() < probability

    def randint(self, low: int, high: int) -> int:
        """Inclusive integer in [low, high], built on a single uniform draw."""
        if high < low:
            raise ValueError(f"Empty range [{low}, {high}]")
        span = high - low + 1
        return low + min(span - 1, int(self.next_uniform() * span))

    def choose_weighted(self, options: Sequence[T], weights: Sequence[float]) -> T:
        """Pick one option with probability proportional to its weight.

        Uses one uniform draw against the cumulative weights, so the result
        depends only on the draw sequence and the order of `options`.
        """
        if not options:
            raise ValueError("choose_weighted needs at least one option")
        if len(options) != len(weights):
            raise ValueError(
                f"{len(options)} options but {len(weights)} weights"
            )
        if any(w < 0 for w in weights):
            raise ValueError("Weights must be non-negative")
        total = float(sum(weights))
        if total <= 0:
            raise ValueError("Weights must sum to a positive value")

        target = self.next_uniform() * total
        cumulative = 0.0
        for option, weight in zip(options, weights):
            cumulative += weight
            if target < cumulative:
                return option
        # Float rounding can leave target == total; fall back to the last
        # option that actually carries weight.
        for option, weight in zip(reversed(options), reversed(weights)):
            if weight > 0:
                return option
        return options[-1]


def derive_seed(master_seed: int, index: int) -> int:
    """Child seed for fixture `index` of a round seeded with `master_seed`.

    SeedSequence mixing keeps neighbouring indices statistically independent
    while staying reproducible on every platform.
    """
    if master_seed < 0 or index < 0:
        raise ValueError("master_seed and index must be non-negative")
    state = np.random.SeedSequence([master_seed, index]).generate_state(2, dtype=np.uint64)
    return (int(state[0]) << 64) | int(state[1])
