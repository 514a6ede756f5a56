from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

import structlog

from .config import EngineSettings
from .fees import resolve_fee_suggestions
from .models import (
    AutoRequirementRule,
    AutomationAudit,
    FeeDecision,
    FeeSuggestionRecord,
    FeeSuggestionRule,
    NotificationRecord,
    RuleEvaluationRecord,
    TaskRecord,
    TriggeredRequirementRecord,
    UnitLoopConfig,
    ValidationResults,
)
from .requirements import resolve_auto_requirements
from .validation import validate_submission

logger = structlog.get_logger(__name__)


def compile_audit(
    form_data: Mapping[str, Any],
    auto_requirements: Sequence[AutoRequirementRule],
    fee_rules: Sequence[FeeSuggestionRule],
    units: Optional[Sequence[Mapping[str, Any]]] = None,
    *,
    unit_loop_config: Optional[UnitLoopConfig] = None,
    settings: Optional[EngineSettings] = None,
    now: Optional[datetime] = None,
) -> AutomationAudit:
    """Evaluate every rule for one submission attempt and record the outcome.

    Requirement triggering is reported at job level only. Validation is unit-aware:
    when units are supplied and no ``unit_loop_config`` is given, the unit loop is
    treated as enabled.
    """
    timestamp = now or datetime.now(timezone.utc)
    if unit_loop_config is None:
        unit_loop_config = UnitLoopConfig(enabled=units is not None)

    resolution = resolve_auto_requirements(form_data, auto_requirements)
    triggered_ids = {rule.id for rule in resolution.triggered_rules}
    fees = resolve_fee_suggestions(form_data, fee_rules, units)
    issues = validate_submission(form_data, auto_requirements, units, unit_loop_config, settings=settings)

    audit = AutomationAudit(
        audit_id=str(uuid.uuid4()),
        generated_at=timestamp,
        rules_evaluated=[
            RuleEvaluationRecord(
                rule_id=rule.id,
                rule_name=rule.name,
                triggered=rule.id in triggered_ids,
                timestamp=timestamp,
            )
            for rule in auto_requirements
        ],
        auto_requirements_triggered=[
            TriggeredRequirementRecord(
                rule_id=rule.id,
                rule_name=rule.name,
                fields_required=list(rule.required_fields),
            )
            for rule in resolution.triggered_rules
        ],
        fees_suggested=[
            FeeSuggestionRecord(
                fee_id=fee.fee_id,
                fee_name=fee.fee_name,
                fee_amount=fee.fee_amount,
                reason=fee.reason,
                auto_added=fee.auto_added,
                unit_id=fee.unit_id,
                rule_id=fee.rule_id,
            )
            for fee in fees
        ],
        validation_results=ValidationResults(blocking_issues=[i.model_copy() for i in issues]),
    )
    logger.info(
        "automation_audit_compiled",
        audit_id=audit.audit_id,
        rules_evaluated=len(audit.rules_evaluated),
        rules_triggered=len(audit.auto_requirements_triggered),
        fees_suggested=len(audit.fees_suggested),
        blocking_issues=len(issues),
    )
    return audit


def with_fee_decisions(
    audit: AutomationAudit,
    decisions: Mapping[str, Tuple[bool, Optional[str]]],
    applied_fee_ids: Iterable[str] = (),
) -> AutomationAudit:
    """Return a copy of ``audit`` recording what the user did with each suggested fee.

    ``decisions`` maps fee id to ``(applied, reason)``; fees without an explicit
    decision but listed in ``applied_fee_ids`` are marked applied.
    """
    applied = set(applied_fee_ids)
    fees = []
    for fee in audit.fees_suggested:
        if fee.fee_id in decisions:
            was_applied, reason = decisions[fee.fee_id]
            fee = fee.model_copy(
                update={
                    "user_decision": FeeDecision.APPLIED if was_applied else FeeDecision.DISMISSED,
                    "dismiss_reason": reason,
                }
            )
        elif fee.fee_id in applied:
            fee = fee.model_copy(update={"user_decision": FeeDecision.APPLIED})
        fees.append(fee)
    return audit.model_copy(update={"fees_suggested": fees})


def with_task(
    audit: AutomationAudit,
    rule: AutoRequirementRule,
    *,
    task_id: Optional[str] = None,
    unit_id: Optional[str] = None,
) -> AutomationAudit:
    task = TaskRecord(task_id=task_id, rule_id=rule.id, rule_name=rule.name, unit_id=unit_id)
    return audit.model_copy(update={"tasks_created": [*audit.tasks_created, task]})


def with_notification(
    audit: AutomationAudit,
    notification_type: str,
    recipient: str,
    *,
    timestamp: Optional[datetime] = None,
) -> AutomationAudit:
    note = NotificationRecord(
        type=notification_type,
        recipient=recipient,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    return audit.model_copy(update={"notifications_sent": [*audit.notifications_sent, note]})
