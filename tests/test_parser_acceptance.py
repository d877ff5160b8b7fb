import pytest

from mcp_tabletop_toybox.models import ConstantTerm, DieTerm, ParsedExpression
from mcp_tabletop_toybox.parser import describe_expression, parse_expression


@pytest.mark.parametrize(
    ("text", "normalized", "terms"),
    [
        ("1d20", "1d20", [DieTerm(count=1, sides=20, sign=1)]),
        ("d100", "d100", [DieTerm(count=1, sides=100, sign=1)]),
        (
            "2d6+d8+3",
            "2d6+d8+3",
            [
                DieTerm(count=2, sides=6, sign=1),
                DieTerm(count=1, sides=8, sign=1),
                ConstantTerm(value=3, sign=1),
            ],
        ),
        (
            " 2D6 - 1 ",
            "2d6-1",
            [DieTerm(count=2, sides=6, sign=1), ConstantTerm(value=1, sign=-1)],
        ),
        (
            "-d4+10",
            "-d4+10",
            [DieTerm(count=1, sides=4, sign=-1), ConstantTerm(value=10, sign=1)],
        ),
        ("007d1000", "007d1000", [DieTerm(count=7, sides=1000, sign=1)]),
        (
            "100d6+100d6",
            "100d6+100d6",
            [DieTerm(count=100, sides=6, sign=1), DieTerm(count=100, sides=6, sign=1)],
        ),
    ],
)
def test_parse_acceptance(text, normalized, terms):
    parsed = parse_expression(text)
    assert isinstance(parsed, ParsedExpression)
    assert parsed.normalized == normalized
    assert parsed.terms == terms


def test_dice_count_sums_all_dice_terms():
    parsed = parse_expression("2d6+d8+3")
    assert parsed.dice_count == 3
    assert [t.kind for t in parsed.terms] == ["dice", "dice", "constant"]


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_empty_input_is_not_a_failure(text):
    assert parse_expression(text) is None


def test_describe_expression_spells_out_counts():
    assert describe_expression(parse_expression("-d4+2d6-1")) == "-1d4 + 2d6 - 1"
