import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import fieldops...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from datetime import datetime, timezone

import pytest

from fieldops.automation.logs import configure_logging
from fieldops.automation.models import (
    AutoRequirementRule,
    DefaultValueRule,
    FeeSuggestionRule,
    RuleCondition,
)


@pytest.fixture(autouse=True, scope="session")
def _quiet_logging():
    configure_logging("WARNING")


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 19, 15, 30, 45, 123000, tzinfo=timezone.utc)


@pytest.fixture
def make_condition():
    def _make(field: str, operator: str = "equals", value=None, logic=None) -> RuleCondition:
        data = {"field": field, "operator": operator, "value": value}
        if logic is not None:
            data["logic"] = logic
        return RuleCondition.model_validate(data)

    return _make


@pytest.fixture
def make_auto_rule():
    def _make(
        *,
        rule_id: str = "R1",
        name: str = "Rule 1",
        conditions=(),
        required_fields=(),
        evidence=None,
        is_active: bool = True,
        auto_actions=None,
    ) -> AutoRequirementRule:
        return AutoRequirementRule.model_validate(
            {
                "id": rule_id,
                "name": name,
                "is_active": is_active,
                "conditions": list(conditions),
                "required_fields": list(required_fields),
                "evidence_requirements": evidence,
                "auto_actions": auto_actions,
            }
        )

    return _make


@pytest.fixture
def make_fee_rule():
    def _make(
        *,
        rule_id: str = "F1",
        fee_id: str = "fee_1",
        fee_name: str = "Fee 1",
        fee_amount="75",
        conditions=(),
        scope: str = "per_job",
        auto_add: bool = False,
        prevent_duplicates: bool = False,
        is_active: bool = True,
    ) -> FeeSuggestionRule:
        return FeeSuggestionRule.model_validate(
            {
                "id": rule_id,
                "fee_id": fee_id,
                "fee_name": fee_name,
                "fee_amount": fee_amount,
                "conditions": list(conditions),
                "scope": scope,
                "auto_add": auto_add,
                "prevent_duplicates": prevent_duplicates,
                "is_active": is_active,
            }
        )

    return _make


@pytest.fixture
def make_default_rule():
    def _make(field_id: str, source: str, **kwargs) -> DefaultValueRule:
        return DefaultValueRule.model_validate({"field_id": field_id, "source": source, **kwargs})

    return _make
