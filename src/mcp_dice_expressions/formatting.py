from __future__ import annotations

from collections.abc import Iterable, Iterator

from .errors import EvaluationError
from .evaluator import get_num
from .models import Expression, ExpressionKind, Labeled, RollRecord, Separated, Simple


def _value(expression: Expression) -> int:
    value = get_num(expression)
    if value is None:
        raise EvaluationError(f"[EVALUATION_ERROR] '{expression}' has not been evaluated yet.")
    return value


def results(evaluated: ExpressionKind) -> list[tuple[str | None, int]]:
    """Flatten an evaluated expression into ``(label, value)`` pairs, in order."""
    if isinstance(evaluated, Simple):
        return [(None, _value(evaluated.expression))]
    if isinstance(evaluated, Labeled):
        return [(evaluated.label, _value(evaluated.expression))]
    pairs: list[tuple[str | None, int]] = []
    for item in evaluated.items:
        pairs.extend(results(item))
    return pairs


def grand_total(evaluated: ExpressionKind) -> int:
    return sum(value for _label, value in results(evaluated))


def _lines(parsed: ExpressionKind, evaluated: ExpressionKind) -> Iterator[str]:
    if isinstance(parsed, Simple) and isinstance(evaluated, Simple):
        yield f"{parsed.expression}: {_value(evaluated.expression)}"
    elif isinstance(parsed, Labeled) and isinstance(evaluated, Labeled):
        yield f"{evaluated.label}: {_value(evaluated.expression)}"
    elif (
        isinstance(parsed, Separated)
        and isinstance(evaluated, Separated)
        and len(parsed.items) == len(evaluated.items)
    ):
        for p, e in zip(parsed.items, evaluated.items):
            yield from _lines(p, e)
    else:
        raise EvaluationError(f"[EVALUATION_ERROR] '{evaluated}' is not an evaluation of '{parsed}'.")


def format_result(parsed: ExpressionKind, evaluated: ExpressionKind, show_sum: bool = False) -> str:
    """One line per expression: ``2d6 + 3: 11`` for bare ones, ``hp: 12`` for labeled ones.

    With ``show_sum`` a final ``sum: <n>`` line adds up every result.
    """
    lines = list(_lines(parsed, evaluated))
    if show_sum:
        lines.append(f"sum: {grand_total(evaluated)}")
    return "\n".join(lines)


def explain(trace: Iterable[RollRecord]) -> str:
    parts: list[str] = []
    for record in trace:
        if record.atom.modifiers:
            parts.append(f"{record.atom}: rolls {list(record.rolls)} -> keep {list(record.kept)} => {record.total}")
        else:
            parts.append(f"{record.atom}: rolls {list(record.rolls)} => {record.total}")
    return "; ".join(parts)
