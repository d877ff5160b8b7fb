from __future__ import annotations

from collections.abc import Iterable

from .models import Card, DrawnTarotCard, TarotCard
from .random_source import RandomSource, coin_flip


PLAYING_DECK_SIZE = 52
TAROT_DECK_SIZE = 78

SUITS: tuple[str, ...] = ("Spades", "Hearts", "Diamonds", "Clubs")
RANKS: tuple[str, ...] = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")

MAJOR_ARCANA: tuple[str, ...] = (
    "The Fool",
    "The Magician",
    "The High Priestess",
    "The Empress",
    "The Emperor",
    "The Hierophant",
    "The Lovers",
    "The Chariot",
    "Strength",
    "The Hermit",
    "Wheel of Fortune",
    "Justice",
    "The Hanged Man",
    "Death",
    "Temperance",
    "The Devil",
    "The Tower",
    "The Star",
    "The Moon",
    "The Sun",
    "Judgement",
    "The World",
)

TAROT_SUITS: tuple[str, ...] = ("Wands", "Cups", "Swords", "Pentacles")
MINOR_RANKS: tuple[str, ...] = (
    "Ace",
    "Two",
    "Three",
    "Four",
    "Five",
    "Six",
    "Seven",
    "Eight",
    "Nine",
    "Ten",
    "Page",
    "Knight",
    "Queen",
    "King",
)

_SUIT_CODES = {"Spades": "S", "Hearts": "H", "Diamonds": "D", "Clubs": "C"}


def card_back_image(image_base: str = "resources/cards") -> str:
    return f"{image_base}/back.png"


def tarot_back_image(image_base: str = "resources/tarot") -> str:
    return f"{image_base}/back.jpg"


def card_code(rank: str, suit: str) -> str:
    """Image file stem, e.g. ``AS`` or ``0H`` for the ten of hearts."""
    rank_code = "0" if rank == "10" else rank
    return f"{rank_code}{_SUIT_CODES[suit]}"


def build_playing_population(image_base: str = "resources/cards") -> list[Card]:
    return [
        Card(suit=suit, rank=rank, image_url=f"{image_base}/{card_code(rank, suit)}.png")
        for suit in SUITS
        for rank in RANKS
    ]


def build_tarot_population(image_base: str = "resources/tarot") -> list[TarotCard]:
    """22 major arcana in order, then each suit Ace through King."""

    deck = [
        TarotCard(name=name, image_url=f"{image_base}/major-{index:02d}.jpg")
        for index, name in enumerate(MAJOR_ARCANA)
    ]
    for suit in TAROT_SUITS:
        for index, rank in enumerate(MINOR_RANKS, start=1):
            deck.append(
                TarotCard(
                    name=f"{rank} of {suit}",
                    image_url=f"{image_base}/{suit.lower()}-{index:02d}.jpg",
                )
            )
    return deck


def orient(cards: Iterable[TarotCard], rng: RandomSource, allow_reversed: bool = True) -> list[DrawnTarotCard]:
    """Give each drawn card an orientation, one coin flip per card."""

    if not allow_reversed:
        return [DrawnTarotCard(card=card, reversed=False) for card in cards]
    return [DrawnTarotCard(card=card, reversed=coin_flip(rng)) for card in cards]
