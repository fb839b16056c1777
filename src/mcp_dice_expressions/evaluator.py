"""Reduce parsed dice expressions to numbers.

Evaluation never mutates its input: every step builds a new node of the
same shape, with dice replaced by the sum of what they rolled. Reduced
nodes come back unchanged, so evaluating twice rolls nothing new.
"""

from __future__ import annotations

import logging

from .dice import RandomSource, apply_modifiers, default_random_source
from .errors import EvaluationError
from .models import (
    Application,
    Constant,
    DiceAtom,
    Expression,
    ExpressionKind,
    Labeled,
    Number,
    OperationAtom,
    RollRecord,
    Separated,
    Simple,
)
from .parser import parse


logger = logging.getLogger(__name__)


def get_num(expression: Expression) -> int | None:
    if isinstance(expression, Constant) and isinstance(expression.atom, Number):
        return expression.atom.value
    return None


def _roll(atom: DiceAtom, rng: RandomSource, trace: list[RollRecord] | None) -> Constant:
    rolls = atom.dice.roll(rng)
    kept = apply_modifiers(rolls, atom.modifiers)
    total = sum(kept)
    logger.debug("Rolled %s: %s -> kept %s => %d", atom, rolls, kept, total)
    if trace is not None:
        trace.append(RollRecord(atom=atom, rolls=tuple(rolls), kept=tuple(kept)))
    return Constant(Number(total))


def _operand(expression: Expression, rng: RandomSource, trace: list[RollRecord] | None) -> int:
    value = get_num(_evaluate_expression(expression, rng, trace))
    if value is None:
        raise EvaluationError(f"[EVALUATION_ERROR] '{expression}' does not reduce to a number.")
    return value


def _evaluate_expression(
    expression: Expression, rng: RandomSource, trace: list[RollRecord] | None
) -> Expression:
    if isinstance(expression, Constant):
        atom = expression.atom
        if isinstance(atom, Number):
            return expression
        if isinstance(atom, DiceAtom):
            return _roll(atom, rng, trace)
        if isinstance(atom, OperationAtom):
            raise EvaluationError(
                f"[EVALUATION_ERROR] Operator '{atom}' needs a number on both sides. Example: '2d6 + 3'."
            )
        raise EvaluationError(f"[EVALUATION_ERROR] Unknown atom {atom!r}.")

    if isinstance(expression, Application):
        # The parser nests 'a - b + c' as a - (b + c); walk the right spine so the
        # chain is applied left to right instead.
        total = _operand(expression.left, rng, trace)
        node = expression
        while isinstance(node.right, Application):
            total = node.operation.apply(total, _operand(node.right.left, rng, trace))
            node = node.right
        total = node.operation.apply(total, _operand(node.right, rng, trace))
        return Constant(Number(total))

    raise EvaluationError(f"[EVALUATION_ERROR] Unknown expression {expression!r}.")


def evaluate(
    node: ExpressionKind | Expression,
    rng: RandomSource | None = None,
    trace: list[RollRecord] | None = None,
) -> ExpressionKind | Expression:
    """Roll every die in ``node`` and fold the arithmetic.

    Returns a new node of the same kind whose every leaf is a number. Items of
    a ``Separated`` group are evaluated in order; the first failure aborts the
    whole group. When ``trace`` is given, one ``RollRecord`` per dice term is
    appended to it in the order the terms were written.

    Raises EvaluationError when part of the tree cannot be reduced.
    """
    if rng is None:
        rng = default_random_source()

    if isinstance(node, Simple):
        return Simple(_evaluate_expression(node.expression, rng, trace))
    if isinstance(node, Labeled):
        return Labeled(node.label, _evaluate_expression(node.expression, rng, trace))
    if isinstance(node, Separated):
        return Separated(tuple(evaluate(item, rng, trace) for item in node.items))
    if isinstance(node, (Constant, Application)):
        return _evaluate_expression(node, rng, trace)
    raise EvaluationError(f"[EVALUATION_ERROR] Cannot evaluate {node!r}.")


def eval_complete(node: ExpressionKind | Expression) -> bool:
    """True when every leaf of ``node`` is a number. Rolls nothing."""
    pending: list[ExpressionKind | Expression] = [node]
    while pending:
        current = pending.pop()
        if isinstance(current, (Simple, Labeled)):
            pending.append(current.expression)
        elif isinstance(current, Separated):
            pending.extend(current.items)
        elif isinstance(current, Application):
            pending.extend((current.left, current.right))
        elif not (isinstance(current, Constant) and isinstance(current.atom, Number)):
            return False
    return True


def eval_from_str(text: str, rng: RandomSource | None = None) -> ExpressionKind:
    return evaluate(parse(text), rng)
