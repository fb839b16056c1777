"""Fair dice and the keep/drop modifiers applied to their results.

Every roll draws from a ``RandomSource``: anything with a ``randint(a, b)``
method returning an integer in the closed range ``[a, b]``. ``random.Random``
and ``secrets.SystemRandom`` both qualify, so tests can pass a seeded
generator instead of relying on statistics.
"""

from __future__ import annotations

import re
import secrets
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeAlias

from .errors import DiceError


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


_SYSTEM_RANDOM = secrets.SystemRandom()


def default_random_source() -> RandomSource:
    return _SYSTEM_RANDOM


_DICE_RE = re.compile(r"^(?P<quantity>[0-9]+)d(?P<sides>[0-9]+)$")


@dataclass(frozen=True)
class Dice:
    """One or more fair dice with the same number of sides."""

    quantity: int
    sides: int

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise DiceError(f"[INVALID_DICE] Dice quantity cannot be negative, got {self.quantity}.")
        if self.sides < 1:
            raise DiceError(f"[INVALID_DICE] Dice need at least one side, got {self.sides}.")

    @classmethod
    def single(cls, sides: int) -> Dice:
        return cls(quantity=1, sides=sides)

    @classmethod
    def from_str(cls, text: str) -> Dice:
        """Parse ``<quantity>d<sides>``, e.g. ``"4d8"``. Nothing else is accepted."""
        m = _DICE_RE.match(text)
        if not m:
            raise DiceError(f"[INVALID_DICE] Could not parse dice '{text}'. Example: '4d8'.")
        return cls(quantity=int(m.group("quantity")), sides=int(m.group("sides")))

    def roll(self, rng: RandomSource | None = None) -> list[int]:
        """Roll every die once. The results are sorted ascending."""
        if rng is None:
            rng = default_random_source()
        return sorted(rng.randint(1, self.sides) for _ in range(self.quantity))

    def __str__(self) -> str:
        return f"{self.quantity}d{self.sides}"


# Modifiers take and return ascending results. Counts larger than the roll
# saturate: keeping too many keeps everything, dropping too many drops everything.


@dataclass(frozen=True)
class KeepHighest:
    count: int

    def apply(self, results: Sequence[int]) -> list[int]:
        ordered = sorted(results)
        return ordered[max(len(ordered) - self.count, 0):]

    def __str__(self) -> str:
        return f"kh{self.count}"


@dataclass(frozen=True)
class KeepLowest:
    count: int

    def apply(self, results: Sequence[int]) -> list[int]:
        return sorted(results)[: self.count]

    def __str__(self) -> str:
        return f"kl{self.count}"


@dataclass(frozen=True)
class DropLowest:
    count: int

    def apply(self, results: Sequence[int]) -> list[int]:
        return KeepHighest(max(len(results) - self.count, 0)).apply(results)

    def __str__(self) -> str:
        return f"dl{self.count}"


@dataclass(frozen=True)
class DropHighest:
    count: int

    def apply(self, results: Sequence[int]) -> list[int]:
        return KeepLowest(max(len(results) - self.count, 0)).apply(results)

    def __str__(self) -> str:
        return f"dh{self.count}"


RollModifier: TypeAlias = KeepHighest | KeepLowest | DropLowest | DropHighest


def apply_modifiers(results: Sequence[int], modifiers: Iterable[RollModifier]) -> list[int]:
    """Apply modifiers left to right, as they were written."""
    current = sorted(results)
    for modifier in modifiers:
        current = modifier.apply(current)
    return current
