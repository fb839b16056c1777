from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import settings
from .errors import DiceError
from .parser import parse
from .roller import roll_from_text


mcp = FastMCP("mcp-dice-expressions")


@mcp.tool()
def roll_dice(text: str, show_sum: bool = False):
    """Roll a dice expression.

    Input: text, e.g. '4d6dl1', '2d20kh1 + 5' or 'hp: 3d6; arrows: 2d10 + 20'.
    show_sum adds a grand total over every ';'-separated result.
    Output: structured JSON with audit details, per-expression totals and an explanation.

    Raises a hard error (exception) on invalid input.
    """

    try:
        return roll_from_text(text, show_sum=show_sum)
    except DiceError as e:
        # Fail-fast: surface stable error codes in the message.
        raise ValueError(str(e)) from None


@mcp.tool()
def parse_expression(text: str) -> dict[str, Any]:
    """Check a dice expression without rolling it.

    Output: the normalized expression and its kind ('simple', 'labeled' or 'separated').
    """

    try:
        parsed = parse(text)
    except DiceError as e:
        raise ValueError(str(e)) from None
    return {
        "normalized_expression": str(parsed),
        "kind": type(parsed).__name__.lower(),
    }


def run() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Default transport is stdio, so logs must stay on stderr.
    mcp.run()


if __name__ == "__main__":
    run()
