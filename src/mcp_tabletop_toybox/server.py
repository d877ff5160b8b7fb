from __future__ import annotations

import logging
import sys
from typing import Any, Literal

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .dice import preset_notations
from .errors import DeckError, DiceError
from .models import DrawnTarotCard, ParseFailure
from .parser import EMPTY_INPUT_MESSAGE, failure_error
from .session import DrawReport, TableSession


logger = logging.getLogger("mcp_tabletop_toybox.server")

mcp = FastMCP("mcp-tabletop-toybox")

_session: TableSession | None = None


def get_session() -> TableSession:
    global _session
    if _session is None:
        _session = TableSession(load_settings())
    return _session


def _draw_payload(report: DrawReport[Any]) -> dict[str, Any]:
    if report.error is not None:
        raise DeckError(f"[EMPTY_DECK] {report.message}")

    cards: list[dict[str, Any]] = []
    for card in report.cards:
        if isinstance(card, DrawnTarotCard):
            cards.append(
                {"name": card.card.name, "reversed": card.reversed, "image": card.card.image_url}
            )
        else:
            cards.append({"suit": card.suit, "rank": card.rank, "image": card.image_url})

    return {
        "cards": cards,
        "requested": report.requested,
        "drawn": len(report.cards),
        "shortfall": report.shortfall,
        "returned_to_deck": report.returned,
        "remaining": report.remaining,
        "meter_percent": round(report.meter_percent, 1),
        "message": report.message,
    }


def roll(text: str) -> dict[str, Any]:
    report = get_session().roll(text)
    if report.empty:
        raise DiceError(EMPTY_INPUT_MESSAGE)
    if report.error is not None:
        raise failure_error(ParseFailure(report.error, report.message))

    outcome = report.outcome
    assert outcome is not None
    plan = report.plan
    return {
        "normalized_expression": outcome.normalized,
        "details": [{"sides": d.sides, "value": d.value, "sign": d.sign} for d in outcome.details],
        "dice_total": outcome.dice_total,
        "modifier_total": outcome.modifier_total,
        "total": outcome.total,
        "explanation": report.message,
        "render_mode": report.render_mode,
        "render_plan": None if plan is None else {"first": plan.first, "additions": list(plan.additions)},
    }


@mcp.tool()
def roll_dice(text: str):
    """Roll additive dice notation such as '2d6+d8+3' or '1d20-1'.

    Input: text (string)
    Output: each die result, dice and modifier totals, and a one-line explanation.

    Raises a hard error (exception) on invalid input.
    """

    try:
        return roll(text)
    except DiceError as e:
        # Fail-fast: surface stable error codes in the message.
        raise ValueError(str(e)) from None


@mcp.tool()
def list_dice_presets():
    """Single-die notations offered as quick picks."""

    return preset_notations()


@mcp.tool()
def draw_playing_cards(count: int = 1, return_to_deck: bool = False):
    """Draw 1-6 cards from the shared 52-card deck.

    With return_to_deck the drawn cards go back in and the deck is reshuffled.
    """

    session = get_session()
    session.card_return_to_deck = return_to_deck
    try:
        return _draw_payload(session.draw_playing(count))
    except DeckError as e:
        raise ValueError(str(e)) from None


@mcp.tool()
def draw_tarot_cards(count: int = 1, allow_reversed: bool = True, return_to_deck: bool = False):
    """Draw 1-6 cards from the shared 78-card tarot deck.

    Each card is reversed with a 50% chance unless allow_reversed is false.
    """

    session = get_session()
    session.allow_reversed = allow_reversed
    session.tarot_return_to_deck = return_to_deck
    try:
        return _draw_payload(session.draw_tarot(count))
    except DeckError as e:
        raise ValueError(str(e)) from None


@mcp.tool()
def reset_deck(deck: Literal["playing", "tarot"] = "playing"):
    """Put every card back and shuffle a fresh deck."""

    session = get_session()
    if deck == "playing":
        report = session.reset_playing()
    elif deck == "tarot":
        report = session.reset_tarot()
    else:
        raise ValueError(f"[UNKNOWN_DECK] Unknown deck {deck!r}. Use 'playing' or 'tarot'.")
    return {"deck": deck, "remaining": report.remaining, "message": report.message}


@mcp.tool()
def deck_status():
    """Remaining cards and current options for both decks."""

    return get_session().status()


def run() -> None:
    settings = load_settings()
    # stdout carries the stdio transport, so logs go to stderr.
    logging.basicConfig(
        stream=sys.stderr,
        level=settings.log_level_value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    global _session
    _session = TableSession(settings)
    logger.info("starting mcp-tabletop-toybox (rng=%s)", settings.rng)
    # Default transport is stdio.
    mcp.run()


if __name__ == "__main__":
    run()
