from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .audit import compile_audit
from .config import EngineSettings, LogicRulesConfig
from .defaults import resolve_default_values
from .fees import resolve_fee_suggestions
from .models import AutomationAudit, FeeRecommendation, RequirementResolution, ValidationIssue
from .requirements import resolve_auto_requirements
from .validation import validate_submission


class AutomationEngine:
    def __init__(self, logic_rules: Optional[LogicRulesConfig] = None, settings: Optional[EngineSettings] = None):
        self._rules = logic_rules or LogicRulesConfig()
        self._settings = settings or EngineSettings()

    @property
    def logic_rules(self) -> LogicRulesConfig:
        return self._rules

    def requirements(
        self, form_data: Mapping[str, Any], unit: Optional[Mapping[str, Any]] = None
    ) -> RequirementResolution:
        return resolve_auto_requirements(form_data, self._rules.auto_requirements, unit)

    def fee_suggestions(
        self, form_data: Mapping[str, Any], units: Optional[Sequence[Mapping[str, Any]]] = None
    ) -> List[FeeRecommendation]:
        return resolve_fee_suggestions(form_data, self._rules.fee_suggestions, units)

    def default_values(
        self,
        job_data: Mapping[str, Any],
        history: Optional[Mapping[str, Any]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        return resolve_default_values(job_data, self._rules.default_value_rules, history, now=now)

    def validate(
        self, form_data: Mapping[str, Any], units: Optional[Sequence[Mapping[str, Any]]] = None
    ) -> List[ValidationIssue]:
        return validate_submission(
            form_data,
            self._rules.auto_requirements,
            units,
            self._rules.unit_loop_config,
            settings=self._settings,
        )

    def audit(
        self,
        form_data: Mapping[str, Any],
        units: Optional[Sequence[Mapping[str, Any]]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AutomationAudit:
        """Compile an audit that validates units the same way ``validate`` does."""
        return compile_audit(
            form_data,
            self._rules.auto_requirements,
            self._rules.fee_suggestions,
            units,
            unit_loop_config=self._rules.unit_loop_config,
            settings=self._settings,
            now=now,
        )
