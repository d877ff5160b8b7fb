"""Uniform integer sources used by the dice evaluator and the deck shuffle.

Every consumer takes a ``RandomSource`` argument instead of reaching for a
module-level generator, so tests can pass a seeded or scripted source.
"""

from __future__ import annotations

import random
import secrets
from collections.abc import Iterable
from typing import Protocol

from .config import Settings


class RandomSource(Protocol):
    def next_int(self, low: int, high: int) -> int:
        """Return an integer uniformly distributed over ``[low, high]``."""
        ...


def coin_flip(rng: RandomSource) -> bool:
    return rng.next_int(0, 1) == 1


def _check_range(low: int, high: int) -> None:
    if low > high:
        raise ValueError(f"empty range: low={low} > high={high}")


class PseudoRandomSource:
    """Non-cryptographic generator backed by ``random.Random``."""

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def next_int(self, low: int, high: int) -> int:
        _check_range(low, high)
        return self._rng.randint(low, high)


class SystemRandomSource:
    def __init__(self) -> None:
        self._rng = secrets.SystemRandom()

    def next_int(self, low: int, high: int) -> int:
        _check_range(low, high)
        return self._rng.randint(low, high)


class SequenceRandomSource:
    """Replays a fixed list of values; each must fall inside the requested range."""

    def __init__(self, values: Iterable[int]) -> None:
        self._values = list(values)
        self._pos = 0

    @property
    def consumed(self) -> int:
        return self._pos

    def next_int(self, low: int, high: int) -> int:
        _check_range(low, high)
        if self._pos >= len(self._values):
            raise IndexError("SequenceRandomSource exhausted")
        value = self._values[self._pos]
        self._pos += 1
        if not low <= value <= high:
            raise ValueError(f"scripted value {value} outside [{low}, {high}]")
        return value


def make_random_source(settings: Settings) -> RandomSource:
    if settings.rng == "system":
        return SystemRandomSource()
    return PseudoRandomSource(settings.seed)
