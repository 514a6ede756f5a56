from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    IN_LIST = "in_list"


class ConditionLogic(str, Enum):
    AND = "AND"
    OR = "OR"


class FeeScope(str, Enum):
    PER_JOB = "per_job"
    PER_UNIT = "per_unit"


class DefaultValueSource(str, Enum):
    JOB_DATA = "job_data"
    LAST_VISIT = "last_visit"
    STATIC = "static"
    SYSTEM = "system"
    FORMULA = "formula"


class SystemField(str, Enum):
    CURRENT_DATE = "current_date"
    CURRENT_TIME = "current_time"
    CURRENT_DATETIME = "current_datetime"


class IssueType(str, Enum):
    REQUIRED_FIELD = "required_field"
    MISSING_EVIDENCE = "missing_evidence"
    INVALID_VALUE = "invalid_value"


class FeeDecision(str, Enum):
    APPLIED = "applied"
    DISMISSED = "dismissed"


class RuleCondition(BaseModel):
    field: str
    # Operators outside ConditionOperator are kept as raw strings and never match.
    operator: Union[ConditionOperator, str]
    value: Any = None
    logic: Optional[Union[ConditionLogic, str]] = None

    @field_validator("operator", mode="before")
    @classmethod
    def _known_operator(cls, value: Any) -> Any:
        try:
            return ConditionOperator(value)
        except ValueError:
            return value

    @field_validator("logic", mode="before")
    @classmethod
    def _known_logic(cls, value: Any) -> Any:
        if value is None:
            return None
        try:
            return ConditionLogic(value)
        except ValueError:
            return value


class EvidenceRequirements(BaseModel):
    min_photos: Optional[int] = None
    gps_required: bool = False
    signature_required: bool = False
    # Carried for display only; not enforced by the validator.
    gps_accuracy: Optional[int] = None
    photo_types: List[str] = Field(default_factory=list)


class AutoActions(BaseModel):
    create_task: bool = False
    task_template: Optional[str] = None
    due_days: Optional[int] = None
    notify: List[str] = Field(default_factory=list)
    validate_reconciliation: bool = False

    def requested(self) -> bool:
        return self.create_task or bool(self.notify)


class AutoRequirementRule(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    preset_type: Optional[str] = None
    is_active: bool = True
    conditions: List[RuleCondition] = Field(default_factory=list)
    required_fields: List[str] = Field(default_factory=list)
    evidence_requirements: Optional[EvidenceRequirements] = None
    auto_actions: Optional[AutoActions] = None


class FeeSuggestionRule(BaseModel):
    id: str
    fee_id: str
    fee_name: str = ""
    fee_amount: Decimal = Decimal("0")
    conditions: List[RuleCondition] = Field(default_factory=list)
    scope: FeeScope = FeeScope.PER_JOB
    auto_add: bool = False
    prevent_duplicates: bool = False
    is_active: bool = True


class DefaultValueRule(BaseModel):
    field_id: str
    source: DefaultValueSource
    source_field: Optional[str] = None
    static_value: Any = None
    days_threshold: Optional[int] = None
    formula: Optional[str] = None
    conditions: Optional[List[RuleCondition]] = None


class UnitLoopConfig(BaseModel):
    enabled: bool = False


class ValidationIssue(BaseModel):
    unit_id: Optional[str] = None
    unit_index: Optional[int] = None
    field_id: str
    field_label: str
    issue_type: IssueType
    message: str
    rule_name: Optional[str] = None


class FeeRecommendation(BaseModel):
    fee_id: str
    fee_name: str
    fee_amount: Decimal
    reason: str
    unit_id: Optional[str] = None
    auto_added: bool = False
    rule_id: str


class RequirementResolution(BaseModel):
    required_fields: List[str] = Field(default_factory=list)
    evidence_requirements: Dict[str, EvidenceRequirements] = Field(default_factory=dict)
    triggered_rules: List[AutoRequirementRule] = Field(default_factory=list)

    def is_required(self, field_id: str) -> bool:
        return field_id in self.required_fields

    def rules_with_auto_actions(self) -> List[AutoRequirementRule]:
        return [r for r in self.triggered_rules if r.auto_actions is not None and r.auto_actions.requested()]


class _AuditRecord(BaseModel):
    model_config = ConfigDict(frozen=True)


class RuleEvaluationRecord(_AuditRecord):
    rule_id: str
    rule_name: str = ""
    triggered: bool
    timestamp: datetime


class TriggeredRequirementRecord(_AuditRecord):
    rule_id: str
    rule_name: str = ""
    fields_required: List[str] = Field(default_factory=list)
    unit_id: Optional[str] = None


class FeeSuggestionRecord(_AuditRecord):
    fee_id: str
    fee_name: str
    fee_amount: Decimal
    reason: str
    auto_added: bool = False
    unit_id: Optional[str] = None
    rule_id: str = ""
    user_decision: Optional[FeeDecision] = None
    dismiss_reason: Optional[str] = None


class TaskRecord(_AuditRecord):
    task_id: Optional[str] = None
    rule_id: str
    rule_name: str = ""
    unit_id: Optional[str] = None


class NotificationRecord(_AuditRecord):
    type: str
    recipient: str
    timestamp: datetime


class ValidationResults(_AuditRecord):
    blocking_issues: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class AutomationAudit(_AuditRecord):
    audit_id: str
    generated_at: datetime

    rules_evaluated: List[RuleEvaluationRecord] = Field(default_factory=list)
    auto_requirements_triggered: List[TriggeredRequirementRecord] = Field(default_factory=list)
    fees_suggested: List[FeeSuggestionRecord] = Field(default_factory=list)
    tasks_created: List[TaskRecord] = Field(default_factory=list)
    notifications_sent: List[NotificationRecord] = Field(default_factory=list)
    validation_results: ValidationResults = Field(default_factory=ValidationResults)

    @property
    def can_submit(self) -> bool:
        return not self.validation_results.blocking_issues
