from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from .models import ConstantTerm, ParsedExpression, RollDetail, RollOutcome
from .parser import build_render_plan, describe_expression, parse_request
from .random_source import PseudoRandomSource, RandomSource


logger = logging.getLogger("mcp_tabletop_toybox.dice")

DICE_PRESETS: tuple[int, ...] = (4, 6, 8, 10, 12, 20, 100)


def preset_notations() -> list[str]:
    return [f"1d{sides}" for sides in DICE_PRESETS]


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def evaluate(expr: ParsedExpression, rng: RandomSource) -> RollOutcome:
    """Roll every dice term of ``expr`` in order.

    One ``RollDetail`` per die, in term order. The sign applies to each die
    value, constants only feed ``modifier_total``.
    """

    details: list[RollDetail] = []
    dice_total = 0
    modifier_total = 0

    for term in expr.terms:
        if isinstance(term, ConstantTerm):
            modifier_total += term.sign * term.value
            continue

        for _ in range(term.count):
            value = rng.next_int(1, term.sides)
            details.append(RollDetail(sides=term.sides, value=value, sign=term.sign))
            dice_total += term.sign * value

    return RollOutcome(
        details=details,
        dice_total=dice_total,
        modifier_total=modifier_total,
        total=dice_total + modifier_total,
        normalized=expr.normalized,
    )


def format_outcome(expr: ParsedExpression, outcome: RollOutcome) -> str:
    """One-line breakdown such as ``2d6+3 -> 2d6:[4,2] + 3 = 9``."""

    parts: list[str] = []
    pos = 0

    for index, term in enumerate(expr.terms):
        if term.sign < 0:
            sign_text = "-" if index == 0 else " - "
        else:
            sign_text = "" if index == 0 else " + "

        if isinstance(term, ConstantTerm):
            parts.append(f"{sign_text}{term.value}")
            continue

        values = [d.value for d in outcome.details[pos : pos + term.count]]
        pos += term.count
        parts.append(f"{sign_text}{term.count}d{term.sides}:[{','.join(str(v) for v in values)}]")

    return f"{outcome.normalized} -> {''.join(parts)} = {outcome.total}"


def roll_from_text(text: str, rng: RandomSource | None = None) -> dict[str, Any]:
    """Parse, validate, then roll. Raises DiceError for invalid input."""

    expr = parse_request(text)
    outcome = evaluate(expr, rng or PseudoRandomSource())
    plan = build_render_plan(expr)
    logger.debug("rolled %s -> %d (%d dice)", expr.normalized, outcome.total, len(outcome.details))

    return {
        "request_id": uuid.uuid4().hex,
        "timestamp": _now_utc_iso(),
        "input": text,
        "normalized_expression": outcome.normalized,
        "expression": describe_expression(expr),
        "details": [
            {"sides": d.sides, "value": d.value, "sign": d.sign} for d in outcome.details
        ],
        "dice_total": outcome.dice_total,
        "modifier_total": outcome.modifier_total,
        "total": outcome.total,
        "explanation": format_outcome(expr, outcome),
        "render_plan": None if plan is None else {"first": plan.first, "additions": list(plan.additions)},
    }
