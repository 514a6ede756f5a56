from __future__ import annotations

from typing import Dict, Iterable, Optional

from .config import LogicRulesConfig
from .models import AutoRequirementRule, FeeSuggestionRule


class PresetRegistry:
    """Named starting points for template authors, keyed by preset id."""

    def __init__(self):
        self._auto_requirements: Dict[str, AutoRequirementRule] = {}
        self._fee_suggestions: Dict[str, FeeSuggestionRule] = {}

    def register_auto_requirement(self, rule: AutoRequirementRule) -> AutoRequirementRule:
        key = rule.preset_type or rule.id
        if not key:
            raise ValueError("Auto-requirement preset missing preset_type")
        if key in self._auto_requirements:
            raise ValueError(f"Duplicate auto-requirement preset registered: {key}")
        self._auto_requirements[key] = rule
        return rule

    def register_fee_suggestion(self, rule: FeeSuggestionRule) -> FeeSuggestionRule:
        key = rule.fee_id
        if not key:
            raise ValueError("Fee suggestion preset missing fee_id")
        if key in self._fee_suggestions:
            raise ValueError(f"Duplicate fee suggestion preset registered: {key}")
        self._fee_suggestions[key] = rule
        return rule

    def auto_requirement(self, key: str) -> AutoRequirementRule:
        return self._auto_requirements[key].model_copy(deep=True)

    def fee_suggestion(self, key: str) -> FeeSuggestionRule:
        return self._fee_suggestions[key].model_copy(deep=True)

    def auto_requirement_ids(self) -> Iterable[str]:
        return self._auto_requirements.keys()

    def fee_suggestion_ids(self) -> Iterable[str]:
        return self._fee_suggestions.keys()

    def build_logic_rules(
        self,
        auto_requirement_ids: Optional[Iterable[str]] = None,
        fee_suggestion_ids: Optional[Iterable[str]] = None,
    ) -> LogicRulesConfig:
        """Instantiate a rule bundle from presets (all presets when ids are omitted)."""
        auto_ids = list(auto_requirement_ids) if auto_requirement_ids is not None else list(self.auto_requirement_ids())
        fee_ids = list(fee_suggestion_ids) if fee_suggestion_ids is not None else list(self.fee_suggestion_ids())
        return LogicRulesConfig(
            auto_requirements=[self.auto_requirement(k) for k in auto_ids],
            fee_suggestions=[self.fee_suggestion(k) for k in fee_ids],
        )


registry = PresetRegistry()
