from datetime import timedelta
from decimal import Decimal

import pytest

from fieldops.automation.config import LogicRulesConfig
from fieldops.automation.models import AutoRequirementRule, FeeScope, UnitLoopConfig
from fieldops.automation.registry import PresetRegistry, registry
from fieldops.automation.runner import AutomationEngine


@pytest.fixture
def logic_rules() -> LogicRulesConfig:
    return LogicRulesConfig.model_validate(
        {
            "auto_requirements": [
                {
                    "id": "overflow",
                    "name": "Overflow",
                    "conditions": [{"field": "volume_gallons", "operator": "greater_than", "value": 100}],
                    "required_fields": ["overflow_notes"],
                }
            ],
            "fee_suggestions": [
                {
                    "id": "fee-damaged",
                    "fee_id": "fee_damaged",
                    "fee_name": "Damaged unit",
                    "fee_amount": 75,
                    "scope": "per_unit",
                    "conditions": [{"field": "unit_status", "operator": "equals", "value": "damaged"}],
                }
            ],
            "default_value_rules": [
                {"field_id": "inspection_date", "source": "system", "source_field": "current_date"},
                {"field_id": "gate_code", "source": "last_visit", "source_field": "gate_code", "days_threshold": 30},
            ],
            "unit_loop_config": {"enabled": False},
        }
    )


def test_scenario_overflow_notes_required(logic_rules):
    engine = AutomationEngine(logic_rules)
    assert engine.requirements({"volume_gallons": 150}).is_required("overflow_notes")
    issues = engine.validate({"volume_gallons": 150})
    assert [(i.field_id, i.issue_type.value) for i in issues] == [("overflow_notes", "required_field")]


def test_scenario_per_unit_fee(logic_rules):
    engine = AutomationEngine(logic_rules)
    recs = engine.fee_suggestions({}, [{"unit_id": "U1", "unit_status": "damaged"}, {"unit_id": "U2", "unit_status": "ok"}])
    assert [(r.unit_id, r.fee_amount) for r in recs] == [("U1", Decimal("75"))]


def test_scenario_system_date_default(logic_rules, fixed_now):
    engine = AutomationEngine(logic_rules)
    history = {"date": (fixed_now - timedelta(days=3)).isoformat(), "gate_code": "1234"}
    assert engine.default_values({"job_id": "J1"}, history, now=fixed_now) == {
        "inspection_date": "2026-10-19",
        "gate_code": "1234",
    }


def test_engine_validate_honours_unit_loop_config(logic_rules):
    engine = AutomationEngine(logic_rules)
    units = [{"unit_id": "U1", "volume_gallons": 500}]
    # Loop disabled: units ignored, job form has no volume.
    assert engine.validate({}, units) == []

    looped = AutomationEngine(logic_rules.model_copy(update={"unit_loop_config": UnitLoopConfig(enabled=True)}))
    assert [i.unit_id for i in looped.validate({}, units)] == ["U1"]


def test_engine_audit(logic_rules, fixed_now):
    audit = AutomationEngine(logic_rules).audit({"volume_gallons": 150}, now=fixed_now)
    assert [r.triggered for r in audit.rules_evaluated] == [True]
    assert audit.generated_at == fixed_now


def test_engine_audit_follows_unit_loop_config(logic_rules, fixed_now):
    units = [{"unit_id": "U1", "volume_gallons": 500}]
    audit = AutomationEngine(logic_rules).audit({}, units, now=fixed_now)
    assert audit.validation_results.blocking_issues == []
    assert audit.validation_results.blocking_issues == AutomationEngine(logic_rules).validate({}, units)

    looped = AutomationEngine(logic_rules.model_copy(update={"unit_loop_config": UnitLoopConfig(enabled=True)}))
    assert [i.unit_id for i in looped.audit({}, units, now=fixed_now).validation_results.blocking_issues] == ["U1"]


def test_builtin_presets_registered():
    assert "not_serviced" in registry.auto_requirement_ids()
    assert "fee_after_hours" in registry.fee_suggestion_ids()

    not_serviced = registry.auto_requirement("not_serviced")
    assert not_serviced.id == "preset_not_serviced"
    assert not_serviced.evidence_requirements.gps_required is True
    assert registry.fee_suggestion("fee_after_hours").scope == FeeScope.PER_JOB


def test_registry_returns_copies():
    rule = registry.auto_requirement("damage")
    rule.required_fields.append("extra")
    assert "extra" not in registry.auto_requirement("damage").required_fields


def test_registry_rejects_duplicates():
    local = PresetRegistry()
    local.register_auto_requirement(AutoRequirementRule(id="x", preset_type="x"))
    with pytest.raises(ValueError):
        local.register_auto_requirement(AutoRequirementRule(id="y", preset_type="x"))


def test_preset_bundle_drives_engine():
    rules = registry.build_logic_rules(["not_serviced"], ["fee_blocked_access", "fee_after_hours"])
    rules = rules.model_copy(update={"unit_loop_config": UnitLoopConfig(enabled=True)})
    engine = AutomationEngine(rules)
    units = [{"unit_id": "U7", "unit_status": "Not Serviced", "not_serviced_reason": "Blocked Access"}]

    fees = engine.fee_suggestions({"service_hour": 5}, units)
    assert [f.fee_id for f in fees] == ["fee_blocked_access", "fee_after_hours"]

    issues = engine.validate({}, units)
    assert {(i.field_id, i.issue_type.value) for i in issues} == {
        ("not_serviced_photo", "required_field"),
        ("photos", "missing_evidence"),
        ("gps_location", "missing_evidence"),
    }
