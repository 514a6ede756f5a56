from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

import structlog

from .conditions import evaluate_conditions
from .models import AutoRequirementRule, EvidenceRequirements, RequirementResolution

logger = structlog.get_logger(__name__)


def resolve_auto_requirements(
    form_data: Mapping[str, Any],
    rules: Iterable[AutoRequirementRule],
    unit: Optional[Mapping[str, Any]] = None,
) -> RequirementResolution:
    """Work out which fields and evidence become mandatory.

    Conditions are evaluated once against ``unit`` when given, otherwise against
    the whole form. Callers validating several units loop themselves.
    """
    subject = unit if unit is not None else form_data

    required: Dict[str, None] = {}
    evidence: Dict[str, EvidenceRequirements] = {}
    triggered = []

    for rule in rules:
        if not rule.is_active:
            continue
        if not evaluate_conditions(rule.conditions, subject):
            continue

        triggered.append(rule)
        for field_id in rule.required_fields:
            required.setdefault(field_id, None)
        if rule.evidence_requirements is not None:
            evidence[rule.id] = rule.evidence_requirements

    logger.debug(
        "auto_requirements_resolved",
        unit_id=unit.get("unit_id") if unit is not None else None,
        triggered=[r.id for r in triggered],
        required_fields=list(required),
    )
    return RequirementResolution(
        required_fields=list(required),
        evidence_requirements=evidence,
        triggered_rules=triggered,
    )
