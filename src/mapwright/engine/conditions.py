"""IfThen condition evaluation.

Comparisons never raise. A side that cannot be coerced to the type an
operator needs (number or date) makes the condition false.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from mapwright.contracts.enums import IfThenOperator
from mapwright.core.sentinels import MISSING
from mapwright.engine.transforms import to_text


def evaluate_condition(value: Any, operator: str, compare_value: Any, *, today: date) -> bool:
    """Evaluate ``value <operator> compare_value``.

    Args:
        value: Resolved input of the IfThen node (MISSING when unconnected)
        operator: IfThenOperator value; unknown operators are false
        compare_value: Right-hand side as authored on the node
        today: Reference date for the *_today operators
    """
    if value is MISSING:
        return False
    try:
        op = IfThenOperator(operator)
    except ValueError:
        return False

    left = to_text(value).strip()
    right = to_text(compare_value).strip()

    match op:
        case IfThenOperator.EQUALS:
            return left == right
        case IfThenOperator.NOT_EQUALS:
            return left != right
        case IfThenOperator.GREATER | IfThenOperator.LESS | IfThenOperator.GREATER_EQUAL | IfThenOperator.LESS_EQUAL:
            return _compare_numbers(left, right, op)
        case IfThenOperator.DATE_BEFORE_TODAY:
            parsed = parse_date(left)
            return parsed is not None and parsed.date() < today
        case IfThenOperator.DATE_AFTER_TODAY:
            parsed = parse_date(left)
            return parsed is not None and parsed.date() > today
        case IfThenOperator.DATE_BEFORE | IfThenOperator.DATE_AFTER:
            lhs, rhs = parse_date(left), parse_date(right)
            if lhs is None or rhs is None:
                return False
            return lhs < rhs if op is IfThenOperator.DATE_BEFORE else lhs > rhs


def _compare_numbers(left: str, right: str, op: IfThenOperator) -> bool:
    lhs, rhs = to_number(left), to_number(right)
    if lhs is None or rhs is None:
        return False
    if op is IfThenOperator.GREATER:
        return lhs > rhs
    if op is IfThenOperator.LESS:
        return lhs < rhs
    if op is IfThenOperator.GREATER_EQUAL:
        return lhs >= rhs
    return lhs <= rhs


def to_number(text: str) -> float | None:
    """Parse a number; None for empty or non-numeric text."""
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_date(text: str) -> datetime | None:
    """Parse an ISO-8601 date or datetime into a naive UTC datetime.

    Plain dates become midnight. Returns None for anything unparseable.
    """
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            return None
    return parsed
