from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set

import structlog

from .conditions import describe_condition, evaluate_conditions, first_matching_condition
from .models import FeeRecommendation, FeeScope, FeeSuggestionRule

logger = structlog.get_logger(__name__)


def fee_reason(rule: FeeSuggestionRule, record: Mapping[str, Any]) -> str:
    matched = first_matching_condition(rule.conditions, record)
    if matched is None:
        return "Condition met"
    return describe_condition(matched)


def _unit_label(unit: Mapping[str, Any], index: int) -> str:
    unit_id = unit.get("unit_id")
    return str(unit_id) if unit_id else f"#{index + 1}"


def _recommend(rule: FeeSuggestionRule, reason: str, unit_id: Optional[str] = None) -> FeeRecommendation:
    return FeeRecommendation(
        fee_id=rule.fee_id,
        fee_name=rule.fee_name,
        fee_amount=rule.fee_amount,
        reason=reason,
        unit_id=unit_id,
        auto_added=rule.auto_add,
        rule_id=rule.id,
    )


def resolve_fee_suggestions(
    form_data: Mapping[str, Any],
    fee_rules: Iterable[FeeSuggestionRule],
    units: Optional[Sequence[Mapping[str, Any]]] = None,
) -> List[FeeRecommendation]:
    """Suggest fees in rule order, then unit order within a per-unit rule.

    Dedup keys live only for this call: ``fee_id`` when a rule prevents
    duplicates, otherwise ``fee_id`` plus the unit id (or its position).
    """
    recommendations: List[FeeRecommendation] = []
    seen: Set[str] = set()

    for rule in fee_rules:
        if not rule.is_active:
            continue

        if rule.scope == FeeScope.PER_UNIT:
            if not units:
                continue
            for index, unit in enumerate(units):
                if not isinstance(unit, Mapping):
                    continue
                if not evaluate_conditions(rule.conditions, unit):
                    continue
                if rule.prevent_duplicates:
                    key = rule.fee_id
                else:
                    key = f"{rule.fee_id}-{unit.get('unit_id') or index}"
                if key in seen:
                    continue
                seen.add(key)
                unit_id = unit.get("unit_id")
                recommendations.append(
                    _recommend(
                        rule,
                        f"From unit {_unit_label(unit, index)}: {fee_reason(rule, unit)}",
                        unit_id=str(unit_id) if unit_id is not None else None,
                    )
                )

        elif rule.scope == FeeScope.PER_JOB:
            if not evaluate_conditions(rule.conditions, form_data):
                continue
            if rule.prevent_duplicates:
                if rule.fee_id in seen:
                    continue
                seen.add(rule.fee_id)
            recommendations.append(_recommend(rule, fee_reason(rule, form_data)))

    logger.debug(
        "fee_suggestions_resolved",
        unit_count=len(units) if units else 0,
        fees=[r.fee_id for r in recommendations],
    )
    return recommendations
