from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Literal, TypeAlias, TypeVar


MIN_DICE_COUNT = 1
MAX_DICE_COUNT = 100
MIN_DIE_SIDES = 2
MAX_DIE_SIDES = 1000
MAX_TOTAL_DICE = 200
MAX_MODIFIER_DIGITS = 1000

Sign: TypeAlias = Literal[1, -1]
FailureKind: TypeAlias = Literal["malformed", "bounds", "no_dice"]

T = TypeVar("T")


@dataclass(frozen=True)
class DieTerm:
    count: int
    sides: int
    sign: Sign = 1
    kind: Literal["dice"] = "dice"


@dataclass(frozen=True)
class ConstantTerm:
    value: int
    sign: Sign = 1
    kind: Literal["constant"] = "constant"


ParsedTerm: TypeAlias = DieTerm | ConstantTerm


@dataclass(frozen=True)
class ParsedExpression:
    terms: list[ParsedTerm]
    normalized: str

    @property
    def dice_terms(self) -> list[DieTerm]:
        return [t for t in self.terms if isinstance(t, DieTerm)]

    @property
    def dice_count(self) -> int:
        return sum(t.count for t in self.dice_terms)


@dataclass(frozen=True)
class ParseFailure:
    kind: FailureKind
    reason: str


@dataclass(frozen=True)
class RollDetail:
    sides: int
    value: int
    sign: Sign = 1


@dataclass(frozen=True)
class RollOutcome:
    details: list[RollDetail]
    dice_total: int
    modifier_total: int
    total: int
    normalized: str


@dataclass(frozen=True)
class RenderPlan:
    """Notation strings handed to a visual dice renderer."""

    first: str
    additions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Card:
    suit: str
    rank: str
    image_url: str = field(default="", compare=False)

    @property
    def label(self) -> str:
        return f"{self.rank} of {self.suit}"


@dataclass(frozen=True)
class TarotCard:
    name: str
    image_url: str = field(default="", compare=False)


@dataclass(frozen=True)
class DrawnTarotCard:
    card: TarotCard
    reversed: bool = False

    @property
    def label(self) -> str:
        return f"{self.card.name} (Reversed)" if self.reversed else self.card.name


@dataclass(frozen=True)
class DrawResult(Generic[T]):
    """Outcome of ``Deck.draw``.

    ``error`` is set (and ``cards`` is empty) when the deck had nothing left.
    A partial draw is not an error; ``shortfall`` says how many were missing.
    """

    cards: list[T]
    requested: int
    error: str | None = None

    @property
    def drawn(self) -> int:
        return len(self.cards)

    @property
    def shortfall(self) -> int:
        if self.error is not None:
            return 0
        return max(self.requested - len(self.cards), 0)

    @property
    def ok(self) -> bool:
        return self.error is None
