"""Per-table state: the dice input, both decks and the visual renderer hookup.

A ``TableSession`` owns everything the browser app kept in module globals, so
each server (or test) can hold its own independent table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, Literal, Protocol, TypeVar

from .cards import (
    PLAYING_DECK_SIZE,
    TAROT_DECK_SIZE,
    build_playing_population,
    build_tarot_population,
    orient,
)
from .config import Settings
from .deck import Deck
from .dice import evaluate, format_outcome
from .models import Card, DrawnTarotCard, FailureKind, ParsedExpression, ParseFailure, RenderPlan, RollOutcome, TarotCard
from .parser import build_render_plan, parse_expression
from .random_source import RandomSource, make_random_source


logger = logging.getLogger("mcp_tabletop_toybox.session")

MIN_DRAW_COUNT = 1
MAX_DRAW_COUNT = 6

RenderMode = Literal["2d", "3d"]
C = TypeVar("C")


class DiceRenderer(Protocol):
    """A visual dice renderer driven only by notation strings."""

    def clear(self) -> None: ...

    def roll(self, notation: str) -> None: ...

    def add(self, notation: str) -> None: ...


def play_render_plan(renderer: DiceRenderer, plan: RenderPlan) -> None:
    renderer.clear()
    renderer.roll(plan.first)
    for notation in plan.additions:
        renderer.add(notation)


def clamp_draw_count(value: int) -> int:
    return min(MAX_DRAW_COUNT, max(MIN_DRAW_COUNT, value))


@dataclass(frozen=True)
class RollReport:
    notation: str
    message: str = ""
    error: FailureKind | None = None
    expression: ParsedExpression | None = None
    outcome: RollOutcome | None = None
    plan: RenderPlan | None = None
    render_mode: RenderMode = "2d"

    @property
    def empty(self) -> bool:
        return self.error is None and self.outcome is None


@dataclass(frozen=True)
class DrawReport(Generic[C]):
    requested: int
    remaining: int
    meter_percent: float
    message: str
    cards: list[C] = field(default_factory=list)
    error: str | None = None
    returned: bool = False

    @property
    def shortfall(self) -> int:
        if self.error is not None:
            return 0
        return self.requested - len(self.cards)


class TableSession:
    def __init__(self, settings: Settings | None = None, rng: RandomSource | None = None) -> None:
        self.settings = settings or Settings()
        self.rng = rng or make_random_source(self.settings)

        self.card_deck: Deck[Card] = Deck.build(
            build_playing_population(self.settings.card_image_base), self.rng
        )
        self.tarot_deck: Deck[TarotCard] = Deck.build(
            build_tarot_population(self.settings.tarot_image_base), self.rng
        )

        self.card_draw_count = MIN_DRAW_COUNT
        self.tarot_draw_count = MIN_DRAW_COUNT
        self.card_return_to_deck = False
        self.tarot_return_to_deck = False
        self.allow_reversed = True

        self.last_notation = self.settings.default_notation
        self.renderer: DiceRenderer | None = None
        self.renderer_ready = False

    def roll(self, notation: str | None = None) -> RollReport:
        if notation is None:
            notation = self.last_notation
        notation = notation.strip()
        self.last_notation = notation

        parsed = parse_expression(notation)
        if parsed is None:
            return RollReport(notation=notation)
        if isinstance(parsed, ParseFailure):
            logger.info("rejected %r: %s", notation, parsed.reason)
            return RollReport(notation=notation, message=parsed.reason, error=parsed.kind)

        outcome = evaluate(parsed, self.rng)
        plan = build_render_plan(parsed)
        render_mode: RenderMode = "2d"

        logger.debug("roll plan: ready=%s plan=%s", self.renderer_ready, plan)
        if self.renderer_ready and self.renderer is not None and plan is not None:
            try:
                play_render_plan(self.renderer, plan)
                render_mode = "3d"
            except Exception:
                logger.warning("3D dice roll failed, falling back to 2D", exc_info=True)

        return RollReport(
            notation=notation,
            message=format_outcome(parsed, outcome),
            expression=parsed,
            outcome=outcome,
            plan=plan,
            render_mode=render_mode,
        )

    def attach_renderer(self, renderer: DiceRenderer) -> RollReport:
        """Mark ``renderer`` ready and roll the last notation again.

        The new roll draws fresh values; it does not replay the previous result.
        """

        self.renderer = renderer
        self.renderer_ready = True
        logger.info("3D dice renderer ready")
        return self.roll(self.last_notation)

    def detach_renderer(self) -> None:
        self.renderer = None
        self.renderer_ready = False

    def adjust_card_count(self, delta: int) -> int:
        self.card_draw_count = clamp_draw_count(self.card_draw_count + delta)
        return self.card_draw_count

    def adjust_tarot_count(self, delta: int) -> int:
        self.tarot_draw_count = clamp_draw_count(self.tarot_draw_count + delta)
        return self.tarot_draw_count

    def reset_playing(self) -> DrawReport[Card]:
        self.card_deck.reset()
        return DrawReport(
            requested=0,
            remaining=self.card_deck.remaining(),
            meter_percent=self.card_deck.depletion_percent(),
            message=f"Deck is fresh: {self.card_deck.remaining()} cards remaining.",
        )

    def draw_playing(self, count: int | None = None) -> DrawReport[Card]:
        if count is not None:
            self.card_draw_count = clamp_draw_count(count)
        requested = self.card_draw_count
        deck = self.card_deck

        result = deck.draw(requested)
        if not result.ok:
            return DrawReport(
                requested=requested,
                remaining=0,
                meter_percent=deck.depletion_percent(),
                message="No cards left. Reset the deck.",
                error=result.error,
            )

        returned = self.card_return_to_deck
        if returned:
            deck.return_and_reshuffle(result.cards)

        names = ", ".join(card.label for card in result.cards)
        message = f"Drew {result.drawn}: {names}.{_draw_suffix(result.drawn, requested, returned)} {deck.remaining()} left."
        logger.info("%s", message)
        return DrawReport(
            requested=requested,
            remaining=deck.remaining(),
            meter_percent=deck.depletion_percent(),
            message=message,
            cards=list(result.cards),
            returned=returned,
        )

    def reset_tarot(self) -> DrawReport[DrawnTarotCard]:
        self.tarot_deck.reset()
        return DrawReport(
            requested=0,
            remaining=self.tarot_deck.remaining(),
            meter_percent=self.tarot_deck.depletion_percent(),
            message=f"Tarot deck is ready: {self.tarot_deck.remaining()} cards.",
        )

    def draw_tarot(self, count: int | None = None) -> DrawReport[DrawnTarotCard]:
        if count is not None:
            self.tarot_draw_count = clamp_draw_count(count)
        requested = self.tarot_draw_count
        deck = self.tarot_deck

        result = deck.draw(requested)
        if not result.ok:
            return DrawReport(
                requested=requested,
                remaining=0,
                meter_percent=deck.depletion_percent(),
                message="No tarot cards left. Reset the deck.",
                error=result.error,
            )

        drawn = orient(result.cards, self.rng, allow_reversed=self.allow_reversed)

        returned = self.tarot_return_to_deck
        if returned:
            # Orientation stays with the draw, the deck gets the bare card back.
            deck.return_and_reshuffle(d.card for d in drawn)

        names = ", ".join(d.label for d in drawn)
        message = f"Tarot {len(drawn)}: {names}.{_draw_suffix(len(drawn), requested, returned)} {deck.remaining()} left."
        logger.info("%s", message)
        return DrawReport(
            requested=requested,
            remaining=deck.remaining(),
            meter_percent=deck.depletion_percent(),
            message=message,
            cards=drawn,
            returned=returned,
        )

    def status(self) -> dict[str, object]:
        return {
            "playing": {
                "remaining": self.card_deck.remaining(),
                "size": PLAYING_DECK_SIZE,
                "meter_percent": self.card_deck.depletion_percent(),
                "draw_count": self.card_draw_count,
                "return_to_deck": self.card_return_to_deck,
            },
            "tarot": {
                "remaining": self.tarot_deck.remaining(),
                "size": TAROT_DECK_SIZE,
                "meter_percent": self.tarot_deck.depletion_percent(),
                "draw_count": self.tarot_draw_count,
                "return_to_deck": self.tarot_return_to_deck,
                "allow_reversed": self.allow_reversed,
            },
            "last_notation": self.last_notation,
            "renderer_ready": self.renderer_ready,
        }


def _draw_suffix(drawn: int, requested: int, returned: bool) -> str:
    suffix = f" (only {drawn} available)" if drawn < requested else ""
    if returned:
        suffix += " Returned to deck."
    return suffix
