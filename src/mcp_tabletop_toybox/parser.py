from __future__ import annotations

import re

from .errors import DiceError
from .models import (
    MAX_DICE_COUNT,
    MAX_DIE_SIDES,
    MAX_MODIFIER_DIGITS,
    MAX_TOTAL_DICE,
    MIN_DICE_COUNT,
    MIN_DIE_SIDES,
    ConstantTerm,
    DieTerm,
    ParsedExpression,
    ParsedTerm,
    ParseFailure,
    RenderPlan,
)


MALFORMED_MESSAGE = "Invalid format. Example: 2d6+d8+3"
BOUNDS_MESSAGE = (
    f"Use {MIN_DICE_COUNT}-{MAX_DICE_COUNT} dice and {MIN_DIE_SIDES}-{MAX_DIE_SIDES} sides."
)
TOTAL_DICE_MESSAGE = f"Limit total dice to {MAX_TOTAL_DICE} per roll."
NO_DICE_MESSAGE = "Add at least one dice term like d20 or 2d6."
MODIFIER_MESSAGE = f"Keep modifiers under {MAX_MODIFIER_DIGITS} digits."
EMPTY_INPUT_MESSAGE = "[EMPTY_INPUT] Empty input. Example: '2d6+3' or 'd20'."

# Longest digit run that can still be inside the dice bounds.
_MAX_DICE_DIGITS = len(str(max(MAX_DICE_COUNT, MAX_DIE_SIDES)))

_ERROR_CODES = {
    "malformed": "[MALFORMED_EXPRESSION]",
    "bounds": "[BOUNDS_VIOLATION]",
    "no_dice": "[NO_DICE_TERMS]",
}

_TOKEN_RE = re.compile(r"[+-][^+-]+")
_DICE_RE = re.compile(r"^(?P<count>\d*)d(?P<sides>\d+)$", re.ASCII)
_CONST_RE = re.compile(r"^\d+$", re.ASCII)


def _to_int(digits: str, max_digits: int) -> int | None:
    """Parse a digit run, or return ``None`` past ``max_digits`` significant digits."""
    significant = digits.lstrip("0") or "0"
    if len(significant) > max_digits:
        return None
    return int(significant)


def normalize_text(text: str) -> str:
    """Drop all whitespace and lowercase."""
    return re.sub(r"\s+", "", text).lower()


def _tokenize(cleaned: str) -> list[str] | None:
    # An implicit leading "+" makes every token start with exactly one sign.
    signed = cleaned if cleaned[0] in "+-" else f"+{cleaned}"
    tokens = _TOKEN_RE.findall(signed)
    if not tokens or "".join(tokens) != signed:
        return None
    return tokens


def parse_expression(text: str) -> ParsedExpression | ParseFailure | None:
    """Parse additive dice notation such as ``2d6+d8-1``.

    Returns ``None`` for empty input, a ``ParseFailure`` for anything that is
    not a rollable expression, otherwise the parsed terms in input order.
    """

    cleaned = normalize_text(text)
    if not cleaned:
        return None

    tokens = _tokenize(cleaned)
    if tokens is None:
        return ParseFailure("malformed", MALFORMED_MESSAGE)

    terms: list[ParsedTerm] = []
    dice_count = 0

    for tok in tokens:
        sign = -1 if tok[0] == "-" else 1
        body = tok[1:]

        m = _DICE_RE.match(body)
        if m:
            count_str = m.group("count")
            count = _to_int(count_str, _MAX_DICE_DIGITS) if count_str else 1
            sides = _to_int(m.group("sides"), _MAX_DICE_DIGITS)
            if count is None or sides is None:
                return ParseFailure("bounds", BOUNDS_MESSAGE)

            if not MIN_DICE_COUNT <= count <= MAX_DICE_COUNT or not MIN_DIE_SIDES <= sides <= MAX_DIE_SIDES:
                return ParseFailure("bounds", BOUNDS_MESSAGE)

            # Checked as we go: the term that pushes the sum over the cap fails.
            dice_count += count
            if dice_count > MAX_TOTAL_DICE:
                return ParseFailure("bounds", TOTAL_DICE_MESSAGE)

            terms.append(DieTerm(count=count, sides=sides, sign=sign))
            continue

        if _CONST_RE.match(body):
            value = _to_int(body, MAX_MODIFIER_DIGITS)
            if value is None:
                return ParseFailure("bounds", MODIFIER_MESSAGE)
            terms.append(ConstantTerm(value=value, sign=sign))
            continue

        return ParseFailure("malformed", MALFORMED_MESSAGE)

    if not any(isinstance(t, DieTerm) for t in terms):
        return ParseFailure("no_dice", NO_DICE_MESSAGE)

    return ParsedExpression(terms=terms, normalized=cleaned)


def parse_request(text: str) -> ParsedExpression:
    """Like ``parse_expression`` but raises ``DiceError`` for every failure."""

    parsed = parse_expression(text)
    if parsed is None:
        raise DiceError(EMPTY_INPUT_MESSAGE)
    if isinstance(parsed, ParseFailure):
        raise failure_error(parsed)
    return parsed


def failure_error(failure: ParseFailure) -> DiceError:
    return DiceError(f"{_ERROR_CODES[failure.kind]} {failure.reason}")


def describe_expression(expr: ParsedExpression) -> str:
    """Readable form with explicit counts, e.g. ``2d6 + 1d8 - 1``."""

    chunks: list[str] = []

    def append_signed(piece: str, sign: int) -> None:
        if not chunks:
            chunks.append(f"-{piece}" if sign < 0 else piece)
            return
        chunks.append(f"- {piece}" if sign < 0 else f"+ {piece}")

    for term in expr.terms:
        if isinstance(term, DieTerm):
            append_signed(f"{term.count}d{term.sides}", term.sign)
        else:
            append_signed(str(term.value), term.sign)

    return " ".join(chunks)


def build_render_plan(expr: ParsedExpression) -> RenderPlan | None:
    """Split an expression into notation strings a visual dice renderer accepts.

    Constants fold into the first dice notation as one signed modifier. Returns
    ``None`` when any dice term is subtracted, which a renderer cannot show.
    """

    dice_terms = expr.dice_terms
    if not dice_terms:
        return None
    if any(t.sign < 0 for t in dice_terms):
        return None

    modifier = sum(t.sign * t.value for t in expr.terms if isinstance(t, ConstantTerm))

    first = dice_terms[0]
    first_notation = f"{first.count}d{first.sides}"
    if modifier:
        first_notation += f"{modifier:+d}"

    return RenderPlan(
        first=first_notation,
        additions=[f"{t.count}d{t.sides}" for t in dice_terms[1:]],
    )
