"""Rule evaluation and automation engine for service-report forms.

This package intentionally contains only evaluation logic:
- Inputs are form data, unit records and already-parsed rule bundles.
- No persistence, upload, notification or network calls live here.
"""

from .audit import compile_audit, with_fee_decisions, with_notification, with_task
from .conditions import evaluate_condition, evaluate_conditions
from .config import EngineSettings, LogicRulesConfig, get_engine_settings
from .defaults import resolve_default_values
from .fees import resolve_fee_suggestions
from .formula import FormulaError, evaluate_formula
from .models import (
    AutoRequirementRule,
    AutomationAudit,
    DefaultValueRule,
    FeeRecommendation,
    FeeSuggestionRule,
    RequirementResolution,
    RuleCondition,
    UnitLoopConfig,
    ValidationIssue,
)
from .requirements import resolve_auto_requirements
from .runner import AutomationEngine
from .validation import validate_submission

# Import built-in presets so they self-register with the global registry.
from . import presets as _builtin_presets  # noqa: F401
