from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from .models import ConditionLogic, ConditionOperator, RuleCondition


def _strict_equals(left: Any, right: Any) -> bool:
    # No coercion between bools and numbers: True never equals 1.
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def to_number(value: Any) -> float:
    """Coerce a form value to a float the way form inputs are read.

    Booleans map to 0/1, blank strings to 0, numeric strings to their value.
    Anything else (including a missing value) is NaN.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if "_" in text or text.lower() in {"nan", "inf", "+inf", "-inf", "infinity", "+infinity", "-infinity"}:
            return math.nan
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(v) for v in value)
    return str(value)


def evaluate_condition(condition: RuleCondition, record: Mapping[str, Any]) -> bool:
    field_value = record.get(condition.field)
    op = condition.operator

    if op == ConditionOperator.EQUALS:
        return _strict_equals(field_value, condition.value)
    if op == ConditionOperator.NOT_EQUALS:
        return not _strict_equals(field_value, condition.value)
    if op == ConditionOperator.GREATER_THAN:
        return to_number(field_value) > to_number(condition.value)
    if op == ConditionOperator.LESS_THAN:
        return to_number(field_value) < to_number(condition.value)
    if op == ConditionOperator.CONTAINS:
        return to_text(condition.value) in to_text(field_value)
    if op == ConditionOperator.IN_LIST:
        if not isinstance(condition.value, (list, tuple)):
            return False
        return any(_strict_equals(field_value, item) for item in condition.value)
    # Unknown operator.
    return False


def uses_or_logic(conditions: Sequence[RuleCondition]) -> bool:
    """A single OR marker anywhere switches the whole set to OR."""
    return any(c.logic == ConditionLogic.OR for c in conditions)


def evaluate_conditions(conditions: Optional[Sequence[RuleCondition]], record: Mapping[str, Any]) -> bool:
    if not conditions:
        # Rules without conditions never trigger.
        return False
    if uses_or_logic(conditions):
        return any(evaluate_condition(c, record) for c in conditions)
    return all(evaluate_condition(c, record) for c in conditions)


def first_matching_condition(
    conditions: Sequence[RuleCondition], record: Mapping[str, Any]
) -> Optional[RuleCondition]:
    for condition in conditions:
        if evaluate_condition(condition, record):
            return condition
    return None


def describe_condition(condition: RuleCondition) -> str:
    op = condition.operator.value if isinstance(condition.operator, ConditionOperator) else str(condition.operator)
    return f"{condition.field} {op.replace('_', ' ', 1)} {to_text(condition.value)}"
