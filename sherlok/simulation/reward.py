"""Dynamic reward: exponential in matches, mildly boosted by population size."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from fractions import Fraction
import math

from sherlok.exceptions import SimulationError

__all__ = ["MATCH_OFFSET", "count_matches", "reward"]

# reward reaches 1 only once a prediction matches this many board numbers
MATCH_OFFSET = 10


def reward(matches: int, population_size: int) -> int:
    """``round(10 ** (matches - 10) * (1 + population_size / 100))``.

    Evaluated with exact fractions and rounded half up, so ``reward(15, 10)``
    is exactly 110000 and ``reward(10, 10)`` is 1.
    """
    if matches < 0:
        raise ValueError(f"matches must be >= 0, got {matches}")
    if population_size <= 0:
        raise SimulationError(f"population_size must be positive, got {population_size}")

    base_reward = Fraction(10) ** (matches - MATCH_OFFSET)
    competition_factor = 1 + Fraction(population_size, 100)
    return math.floor(base_reward * competition_factor + Fraction(1, 2))


def count_matches(predictions: Iterable[int], board: Sequence[int]) -> int:
    """Predicted numbers present on the board; repeated predictions each count."""
    drawn = set(board)
    return sum(1 for number in predictions if number in drawn)
