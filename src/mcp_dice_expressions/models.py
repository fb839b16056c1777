from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TypeAlias

from .dice import Dice, RollModifier


class Operation(enum.Enum):
    ADD = "+"
    SUB = "-"

    def apply(self, left: int, right: int) -> int:
        if self is Operation.ADD:
            return left + right
        return left - right

    def __str__(self) -> str:
        return self.value


# Atoms: the terminal symbols of the grammar.


@dataclass(frozen=True)
class DiceAtom:
    dice: Dice
    modifiers: tuple[RollModifier, ...] = ()

    def __str__(self) -> str:
        return str(self.dice) + "".join(str(m) for m in self.modifiers)


@dataclass(frozen=True)
class Number:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class OperationAtom:
    operation: Operation

    def __str__(self) -> str:
        return str(self.operation)


Atom: TypeAlias = DiceAtom | Number | OperationAtom


# Expressions.


@dataclass(frozen=True)
class Constant:
    atom: Atom

    def __str__(self) -> str:
        return str(self.atom)


@dataclass(frozen=True)
class Application:
    """``left <operation> right``. The parser nests chains to the right."""

    operation: Operation
    left: Expression
    right: Expression

    def __str__(self) -> str:
        parts: list[str] = []
        node: Expression = self
        while isinstance(node, Application):
            parts.append(f"{node.left} {node.operation}")
            node = node.right
        parts.append(str(node))
        return " ".join(parts)


Expression: TypeAlias = Constant | Application


# Surface forms: bare, labeled and ';'-separated expressions.


@dataclass(frozen=True)
class Simple:
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)


@dataclass(frozen=True)
class Labeled:
    label: str
    expression: Expression

    def __str__(self) -> str:
        return f"{self.label}: {self.expression}"


@dataclass(frozen=True)
class Separated:
    items: tuple[ExpressionKind, ...]

    def __str__(self) -> str:
        return "; ".join(str(item) for item in self.items)


ExpressionKind: TypeAlias = Simple | Labeled | Separated


@dataclass(frozen=True)
class RollRecord:
    """What one dice atom rolled, and what its modifiers kept."""

    atom: DiceAtom
    rolls: tuple[int, ...]
    kept: tuple[int, ...]

    @property
    def total(self) -> int:
        return sum(self.kept)
