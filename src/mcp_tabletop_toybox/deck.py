"""Generic shuffled deck used by both the playing-card and tarot tables.

The deck is a stack: the end of the list is the top, so ``draw`` pops from the
end. All randomness comes from the ``RandomSource`` handed to the deck.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Generic, TypeVar

from .models import DrawResult
from .random_source import RandomSource


logger = logging.getLogger("mcp_tabletop_toybox.deck")

T = TypeVar("T")

EMPTY_DECK = "EmptyDeck"


def shuffle(items: Iterable[T], rng: RandomSource) -> list[T]:
    """Return a Fisher-Yates shuffled copy of ``items``."""

    deck = list(items)
    for i in range(len(deck) - 1, 0, -1):
        j = rng.next_int(0, i)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


class Deck(Generic[T]):
    def __init__(self, population: Sequence[T], rng: RandomSource) -> None:
        self._population = tuple(population)
        self._rng = rng
        self._cards: list[T] = shuffle(self._population, rng)

    @classmethod
    def build(cls, population: Sequence[T], rng: RandomSource) -> Deck[T]:
        return cls(population, rng)

    @property
    def canonical_size(self) -> int:
        return len(self._population)

    def remaining(self) -> int:
        return len(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def depletion_percent(self) -> float:
        """Remaining cards as a percentage of the full deck, within [0, 100]."""
        if not self._population:
            return 0.0
        ratio = len(self._cards) / len(self._population) * 100
        return min(max(ratio, 0.0), 100.0)

    def snapshot(self) -> list[T]:
        """Copy of the cards, bottom first."""
        return list(self._cards)

    def draw(self, n: int) -> DrawResult[T]:
        if n < 1:
            raise ValueError(f"draw count must be positive, got {n}")
        if not self._cards:
            return DrawResult(cards=[], requested=n, error=EMPTY_DECK)

        count = min(n, len(self._cards))
        drawn = [self._cards.pop() for _ in range(count)]
        logger.debug("drew %d of %d requested, %d left", count, n, len(self._cards))
        return DrawResult(cards=drawn, requested=n)

    def return_and_reshuffle(self, cards: Iterable[T]) -> None:
        self._cards.extend(cards)
        self._cards = shuffle(self._cards, self._rng)

    def reset(self, population: Sequence[T] | None = None) -> None:
        if population is not None:
            self._population = tuple(population)
        self._cards = shuffle(self._population, self._rng)
        logger.debug("deck reset to %d cards", len(self._cards))
