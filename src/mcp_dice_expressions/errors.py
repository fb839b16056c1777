from __future__ import annotations


class DiceError(ValueError):
    """User-facing errors (fail-fast, no roll performed)."""


class ParseError(DiceError):
    """The input text does not match the dice expression grammar."""

    def __init__(self, text: str, position: int, expected: str) -> None:
        self.text = text
        self.position = position
        self.expected = expected

        remaining = text[position:]
        if remaining:
            where = f"at position {position} ('{remaining}')"
        else:
            where = "at end of input"
        super().__init__(
            f"[PARSE_ERROR] Expected {expected} {where}. Example: '2d6 + 3' or 'hp: 3d6; arrows: 2d10 + 20'."
        )


class EvaluationError(DiceError):
    """A parsed expression could not be reduced to a number."""


class LimitError(DiceError):
    """The expression asks for more dice than the server is willing to roll."""
