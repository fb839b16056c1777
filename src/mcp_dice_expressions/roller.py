from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

from .config import Settings, settings
from .dice import RandomSource, default_random_source
from .errors import LimitError
from .evaluator import evaluate
from .formatting import explain, format_result, grand_total, results
from .models import (
    Application,
    Constant,
    DiceAtom,
    Expression,
    ExpressionKind,
    Labeled,
    RollRecord,
    Separated,
    Simple,
)
from .parser import parse


logger = logging.getLogger(__name__)


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _units(kind: ExpressionKind) -> Iterator[Simple | Labeled]:
    if isinstance(kind, Separated):
        for item in kind.items:
            yield from _units(item)
    else:
        yield kind


def _dice_atoms(expression: Expression) -> Iterator[DiceAtom]:
    pending = [expression]
    while pending:
        current = pending.pop()
        if isinstance(current, Application):
            pending.extend((current.right, current.left))
        elif isinstance(current, Constant) and isinstance(current.atom, DiceAtom):
            yield current.atom


def check_limits(kind: ExpressionKind, limits: Settings = settings) -> None:
    """Raise LimitError if ``kind`` asks for more than ``limits`` allow. Rolls nothing."""
    units = list(_units(kind))
    if len(units) > limits.max_terms:
        raise LimitError(
            f"[LIMIT_EXCEEDED] Too many expressions: {len(units)} (max {limits.max_terms})."
        )
    for unit in units:
        for atom in _dice_atoms(unit.expression):
            if atom.dice.quantity > limits.max_quantity:
                raise LimitError(
                    f"[LIMIT_EXCEEDED] Too many dice in '{atom}': {atom.dice.quantity} (max {limits.max_quantity})."
                )
            if atom.dice.sides > limits.max_sides:
                raise LimitError(
                    f"[LIMIT_EXCEEDED] Too many sides in '{atom}': {atom.dice.sides} (max {limits.max_sides})."
                )


def _roll_entry(record: RollRecord) -> dict[str, Any]:
    return {
        "dice": str(record.atom.dice),
        "modifiers": [str(m) for m in record.atom.modifiers],
        "rolls": list(record.rolls),
        "kept": list(record.kept),
        "subtotal": record.total,
    }


def roll_from_text(
    text: str,
    show_sum: bool = False,
    rng: RandomSource | None = None,
    limits: Settings = settings,
) -> dict[str, Any]:
    """Parse, validate, then roll. Raises DiceError for invalid input."""

    parsed = parse(text)
    check_limits(parsed, limits)

    if rng is None:
        rng = default_random_source()
    trace: list[RollRecord] = []
    evaluated = evaluate(parsed, rng, trace)
    logger.info("Rolled %r with %d dice terms", text, len(trace))

    result: dict[str, Any] = {
        "request_id": uuid.uuid4().hex,
        "timestamp": _now_utc_iso(),
        "input": text,
        "normalized_expression": str(parsed),
        "rng": {
            "source": type(rng).__name__,
            "nonce": str(uuid.uuid4()),
        },
        "results": [
            {
                "label": unit.label if isinstance(unit, Labeled) else None,
                "expression": str(unit.expression),
                "total": value,
            }
            for unit, (_label, value) in zip(_units(parsed), results(evaluated))
        ],
        "rolls": [_roll_entry(record) for record in trace],
        "explanation": explain(trace),
        "text": format_result(parsed, evaluated, show_sum=show_sum),
    }
    if show_sum:
        result["total"] = grand_total(evaluated)
    return result
