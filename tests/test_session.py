from collections import Counter

import pytest

from mcp_tabletop_toybox.cards import build_tarot_population
from mcp_tabletop_toybox.config import Settings
from mcp_tabletop_toybox.deck import EMPTY_DECK
from mcp_tabletop_toybox.models import RenderPlan, TarotCard
from mcp_tabletop_toybox.parser import NO_DICE_MESSAGE
from mcp_tabletop_toybox.random_source import PseudoRandomSource, SequenceRandomSource
from mcp_tabletop_toybox.session import TableSession, play_render_plan


class RecordingRenderer:
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def clear(self):
        self.calls.append(("clear",))

    def roll(self, notation):
        if self.fail:
            raise RuntimeError("renderer crashed")
        self.calls.append(("roll", notation))

    def add(self, notation):
        self.calls.append(("add", notation))


@pytest.fixture
def session():
    return TableSession(Settings(), rng=PseudoRandomSource(seed=42))


def test_play_render_plan_order():
    renderer = RecordingRenderer()
    play_render_plan(renderer, RenderPlan(first="2d6+3", additions=["1d8", "1d10"]))
    assert renderer.calls == [("clear",), ("roll", "2d6+3"), ("add", "1d8"), ("add", "1d10")]


def test_roll_report(session):
    session.rng = SequenceRandomSource([4, 2])
    report = session.roll("2d6+3")

    assert report.error is None
    assert report.outcome.total == 9
    assert report.message == "2d6+3 -> 2d6:[4,2] + 3 = 9"
    assert report.render_mode == "2d"
    assert report.plan == RenderPlan(first="2d6+3", additions=[])


def test_empty_roll_is_a_no_op(session):
    report = session.roll("   ")
    assert report.empty
    assert report.message == ""


def test_roll_failure_is_reported_not_raised(session):
    report = session.roll("5")
    assert report.error == "no_dice"
    assert report.message == NO_DICE_MESSAGE
    assert report.outcome is None


def test_attaching_renderer_rerolls_with_fresh_values(session):
    session.rng = SequenceRandomSource([1, 1, 1, 6, 6, 6])
    first = session.roll("2d6+d8+3")
    assert first.outcome.total == 6
    assert first.render_mode == "2d"

    renderer = RecordingRenderer()
    second = session.attach_renderer(renderer)

    assert second.outcome.total == 21
    assert second.render_mode == "3d"
    assert renderer.calls == [("clear",), ("roll", "2d6+3"), ("add", "1d8")]


def test_subtracted_dice_stay_2d(session):
    renderer = RecordingRenderer()
    session.attach_renderer(renderer)
    renderer.calls.clear()

    report = session.roll("2d6-d4")
    assert report.render_mode == "2d"
    assert report.plan is None
    assert renderer.calls == []


def test_renderer_failure_falls_back_to_2d(session):
    session.attach_renderer(RecordingRenderer(fail=True))
    report = session.roll("1d20")

    assert report.render_mode == "2d"
    assert report.outcome is not None


def test_draw_counts_are_clamped(session):
    assert session.adjust_card_count(-5) == 1
    assert session.adjust_card_count(10) == 6
    assert session.adjust_tarot_count(2) == 3

    report = session.draw_playing(10)
    assert report.requested == 6
    assert len(report.cards) == 6


def test_draw_playing(session):
    report = session.draw_playing(3)

    assert len(report.cards) == 3
    assert report.remaining == 49
    assert report.message.startswith("Drew 3: ")
    assert report.message.endswith(". 49 left.")
    assert session.card_deck.remaining() == 49


def test_playing_deck_runs_out(session):
    for _ in range(8):
        session.draw_playing(6)

    partial = session.draw_playing(6)
    assert len(partial.cards) == 4
    assert partial.shortfall == 2
    assert "(only 4 available)" in partial.message
    assert partial.meter_percent == 0.0

    empty = session.draw_playing(1)
    assert empty.error == EMPTY_DECK
    assert empty.message == "No cards left. Reset the deck."

    reset = session.reset_playing()
    assert reset.message == "Deck is fresh: 52 cards remaining."
    assert session.card_deck.remaining() == 52


def test_return_to_deck_keeps_deck_full(session):
    session.card_return_to_deck = True
    report = session.draw_playing(4)

    assert len(report.cards) == 4
    assert report.returned
    assert report.message.endswith("Returned to deck. 52 left.")
    assert session.card_deck.remaining() == 52


def test_tarot_without_reversals(session):
    session.allow_reversed = False
    drawn = []
    for _ in range(13):
        drawn.extend(session.draw_tarot(6).cards)

    assert len(drawn) == 78
    assert not any(d.reversed for d in drawn)
    assert session.draw_tarot(1).message == "No tarot cards left. Reset the deck."
    assert session.reset_tarot().message == "Tarot deck is ready: 78 cards."


def test_tarot_return_drops_orientation(session):
    session.tarot_return_to_deck = True
    report = session.draw_tarot(6)

    assert report.remaining == 78
    assert report.message.startswith("Tarot 6: ")
    snapshot = session.tarot_deck.snapshot()
    assert all(isinstance(card, TarotCard) for card in snapshot)
    assert Counter(snapshot) == Counter(build_tarot_population())


def test_status(session):
    session.draw_tarot(2)
    status = session.status()

    assert status["playing"]["remaining"] == 52
    assert status["tarot"]["remaining"] == 76
    assert status["tarot"]["allow_reversed"] is True
    assert status["last_notation"] == "1d20"
