import pytest

from mcp_dice_expressions.dice import Dice, DropHighest, DropLowest, KeepHighest, KeepLowest
from mcp_dice_expressions.models import (
    Application,
    Constant,
    DiceAtom,
    Labeled,
    Number,
    Operation,
    OperationAtom,
    Separated,
    Simple,
)
from mcp_dice_expressions.parser import parse, parse_dice, parse_expression


def dice(quantity, sides, *modifiers):
    return Constant(DiceAtom(Dice(quantity, sides), tuple(modifiers)))


def num(value):
    return Constant(Number(value))


@pytest.mark.parametrize(
    ("text", "normalized_expression", "kind"),
    [
        ("2d6", "2d6", Simple(dice(2, 6))),
        ("-13", "-13", Simple(num(-13))),
        ("  12d20 ", "12d20", Simple(dice(12, 20))),
        (
            "2d6 + 5",
            "2d6 + 5",
            Simple(Application(Operation.ADD, dice(2, 6), num(5))),
        ),
        (
            "3 - 10",
            "3 - 10",
            Simple(Application(Operation.SUB, num(3), num(10))),
        ),
        (
            "5-3",
            "5 - 3",
            Simple(Application(Operation.SUB, num(5), num(3))),
        ),
        (
            "1d4 + -3",
            "1d4 + -3",
            Simple(Application(Operation.ADD, dice(1, 4), num(-3))),
        ),
        (
            "1+2+3",
            "1 + 2 + 3",
            Simple(
                Application(Operation.ADD, num(1), Application(Operation.ADD, num(2), num(3)))
            ),
        ),
        ("4d6dl1", "4d6dl1", Simple(dice(4, 6, DropLowest(1)))),
        ("2d20k1", "2d20kh1", Simple(dice(2, 20, KeepHighest(1)))),
        ("2d20kl1", "2d20kl1", Simple(dice(2, 20, KeepLowest(1)))),
        ("5d10dh2kh1", "5d10dh2kh1", Simple(dice(5, 10, DropHighest(2), KeepHighest(1)))),
        ("0d6", "0d6", Simple(dice(0, 6))),
        ("+", "+", Simple(Constant(OperationAtom(Operation.ADD)))),
        ("yay dice: 1d4", "yay dice: 1d4", Labeled("yay dice", dice(1, 4))),
        (
            "arrows in pouch:2d10+20",
            "arrows in pouch: 2d10 + 20",
            Labeled("arrows in pouch", Application(Operation.ADD, dice(2, 10), num(20))),
        ),
        (
            "1d6 + 3; -2; my roll: 1d4",
            "1d6 + 3; -2; my roll: 1d4",
            Separated(
                (
                    Simple(Application(Operation.ADD, dice(1, 6), num(3))),
                    Simple(num(-2)),
                    Labeled("my roll", dice(1, 4)),
                )
            ),
        ),
        (
            "hp: 3d6 ;arrows: 2d10 + 20",
            "hp: 3d6; arrows: 2d10 + 20",
            Separated(
                (
                    Labeled("hp", dice(3, 6)),
                    Labeled("arrows", Application(Operation.ADD, dice(2, 10), num(20))),
                )
            ),
        ),
        (
            " hp :  3d6 ;  arrows :2d10 ",
            "hp: 3d6; arrows: 2d10",
            Separated((Labeled("hp", dice(3, 6)), Labeled("arrows", dice(2, 10)))),
        ),
        (
            "1d4\t+\n2 ;\t-3",
            "1d4 + 2; -3",
            Separated((Simple(Application(Operation.ADD, dice(1, 4), num(2))), Simple(num(-3)))),
        ),
        (
            "1d4 - -3",
            "1d4 - -3",
            Simple(Application(Operation.SUB, dice(1, 4), num(-3))),
        ),
    ],
)
def test_parse_acceptance(text, normalized_expression, kind):
    parsed = parse(text)
    assert parsed == kind
    assert str(parsed) == normalized_expression


def test_parse_expression_returns_bare_tree():
    assert parse_expression("-13") == num(-13)
    assert parse_expression("2d6 + 5") == Application(Operation.ADD, dice(2, 6), num(5))


def test_parse_dice_keeps_modifier_order():
    atom = parse_dice("4d8kh3dl1")
    assert atom == DiceAtom(Dice(4, 8), (KeepHighest(3), DropLowest(1)))
    assert str(atom) == "4d8kh3dl1"


def test_separated_items_may_be_labeled_or_not():
    parsed = parse("1d4 + 4; 2d6; my roll: 1d4 + 3")
    assert isinstance(parsed, Separated)
    assert [type(item) for item in parsed.items] == [Simple, Simple, Labeled]
    assert parsed.items[2].label == "my roll"


def test_long_chain_parses_without_deep_recursion():
    terms = 3000
    parsed = parse_expression(" + ".join(["1d6"] * terms))

    depth = 0
    node = parsed
    while isinstance(node, Application):
        assert node.left == dice(1, 6)
        depth += 1
        node = node.right
    assert depth == terms - 1
    assert node == dice(1, 6)
    assert str(parsed) == " + ".join(["1d6"] * terms)
