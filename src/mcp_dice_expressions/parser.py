"""Recursive-descent parser for dice expressions.

Grammar, lowest precedence first::

    expr_kind   := unit (WS ';' WS unit)*
    unit        := labeled | simple        (labeled iff ':' comes before the next ';')
    labeled     := label ':' expr
    simple      := expr
    expr        := WS (application | constant)
    application := atom WS operation expr  (nests to the right)
    constant    := atom
    atom        := dice | number | operation
    dice        := digits 'd' digits modifier*
    modifier    := ('kh' | 'kl' | 'k' | 'dh' | 'dl') digits
    number      := '-'? digits
    operation   := '+' | '-'

Each rule takes a position and returns ``(value, new_position)``. A rule that
does not match raises ``_NoMatch``; alternatives backtrack, and the furthest
failure seen is what ends up in the ``ParseError``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from .dice import Dice, DropHighest, DropLowest, KeepHighest, KeepLowest, RollModifier
from .errors import DiceError, ParseError
from .models import (
    Application,
    Atom,
    Constant,
    DiceAtom,
    Expression,
    ExpressionKind,
    Labeled,
    Number,
    Operation,
    OperationAtom,
    Separated,
    Simple,
)


logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"[ \t\r\n]*")
_DIGITS_RE = re.compile(r"[0-9]+")

# Longest suffix first, so 'kh' wins over 'k'.
_MODIFIER_SUFFIXES: tuple[tuple[str, type[RollModifier]], ...] = (
    ("kh", KeepHighest),
    ("kl", KeepLowest),
    ("k", KeepHighest),
    ("dh", DropHighest),
    ("dl", DropLowest),
)

_OPERATIONS = {op.value: op for op in Operation}


class _NoMatch(Exception):
    pass


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self._furthest = -1
        self._expected: list[str] = []

    def error(self) -> ParseError:
        return ParseError(self.text, self._furthest, " or ".join(self._expected))

    def _fail(self, pos: int, expected: str) -> _NoMatch:
        if pos > self._furthest:
            self._furthest = pos
            self._expected = [expected]
        elif pos == self._furthest and expected not in self._expected:
            self._expected.append(expected)
        return _NoMatch()

    # Tokens.

    def _ws(self, pos: int) -> int:
        return _WS_RE.match(self.text, pos).end()

    def _digits(self, pos: int, expected: str) -> tuple[int, int]:
        m = _DIGITS_RE.match(self.text, pos)
        if not m:
            raise self._fail(pos, expected)
        return int(m.group()), m.end()

    def _tag(self, pos: int, tag: str) -> int:
        if not self.text.startswith(tag, pos):
            raise self._fail(pos, f"'{tag}'")
        return pos + len(tag)

    def end_of_input(self, pos: int) -> None:
        pos = self._ws(pos)
        if pos != len(self.text):
            raise self._fail(pos, "end of input")

    # Atoms.

    def modifier(self, pos: int) -> tuple[RollModifier, int]:
        for suffix, kind in _MODIFIER_SUFFIXES:
            if self.text.startswith(suffix, pos):
                count, end = self._digits(pos + len(suffix), "a modifier count")
                return kind(count), end
        raise self._fail(pos, "a roll modifier")

    def dice(self, pos: int) -> tuple[DiceAtom, int]:
        quantity, pos = self._digits(pos, "a number")
        pos = self._tag(pos, "d")
        sides, end = self._digits(pos, "the number of sides")
        try:
            dice = Dice(quantity=quantity, sides=sides)
        except DiceError:
            raise self._fail(pos, "at least one side") from None

        modifiers: list[RollModifier] = []
        while True:
            try:
                modifier, end = self.modifier(end)
            except _NoMatch:
                break
            modifiers.append(modifier)
        return DiceAtom(dice, tuple(modifiers)), end

    def number(self, pos: int) -> tuple[Number, int]:
        sign = 1
        if self.text.startswith("-", pos):
            sign = -1
            pos += 1
        value, end = self._digits(pos, "a number")
        return Number(sign * value), end

    def operation(self, pos: int) -> tuple[Operation, int]:
        op = _OPERATIONS.get(self.text[pos : pos + 1])
        if op is None:
            raise self._fail(pos, "'+' or '-'")
        return op, pos + 1

    def atom(self, pos: int) -> tuple[Atom, int]:
        try:
            return self.dice(pos)
        except _NoMatch:
            pass
        try:
            return self.number(pos)
        except _NoMatch:
            pass
        op, end = self.operation(pos)
        return OperationAtom(op), end

    # Expressions.

    def expr(self, pos: int) -> tuple[Expression, int]:
        # Collected in a loop so long chains do not grow the call stack.
        atom, end = self.atom(self._ws(pos))
        operands = [atom]
        operations: list[Operation] = []
        while True:
            try:
                op, after_op = self.operation(self._ws(end))
                atom, after_atom = self.atom(self._ws(after_op))
            except _NoMatch:
                break
            operations.append(op)
            operands.append(atom)
            end = after_atom

        expression: Expression = Constant(operands.pop())
        for op, left in zip(reversed(operations), reversed(operands)):
            expression = Application(op, Constant(left), expression)
        return expression, end

    def labeled(self, pos: int, colon: int) -> tuple[Labeled, int]:
        label = self.text[pos:colon].strip()
        if not label:
            raise self._fail(self._ws(pos), "a label before ':'")
        expression, end = self.expr(colon + 1)
        return Labeled(label, expression), end

    def unit(self, pos: int) -> tuple[ExpressionKind, int]:
        colon = self.text.find(":", pos)
        semicolon = self.text.find(";", pos)
        if colon != -1 and (semicolon == -1 or colon < semicolon):
            return self.labeled(pos, colon)
        expression, end = self.expr(pos)
        return Simple(expression), end

    def expr_kind(self, pos: int) -> tuple[ExpressionKind, int]:
        first, pos = self.unit(pos)
        items = [first]
        while True:
            after_ws = self._ws(pos)
            if not self.text.startswith(";", after_ws):
                # Recorded so a trailing token reports ';' as an option too.
                self._fail(after_ws, "';'")
                break
            item, pos = self.unit(after_ws + 1)
            items.append(item)

        if len(items) == 1:
            return first, pos
        return Separated(tuple(items)), pos


def _parse_all(text: str, rule: Callable[[_Parser], tuple[Any, int]]) -> Any:
    parser = _Parser(text)
    try:
        value, pos = rule(parser)
        parser.end_of_input(pos)
    except _NoMatch:
        raise parser.error() from None
    return value


def parse(text: str) -> ExpressionKind:
    """Parse a whole dice expression, e.g. ``"hp: 3d6; arrows: 2d10 + 20"``.

    Raises ParseError when the text (all of it) does not match the grammar.
    """
    kind = _parse_all(text, lambda p: p.expr_kind(0))
    logger.debug("Parsed %r as %s", text, type(kind).__name__)
    return kind


def parse_expression(text: str) -> Expression:
    """Parse a single unlabeled expression such as ``"2d6 + 3"``."""
    return _parse_all(text, lambda p: p.expr(0))


def parse_dice(text: str) -> DiceAtom:
    """Parse one dice term with its modifiers, e.g. ``"4d6dl1"``."""
    return _parse_all(text, lambda p: p.dice(0))
