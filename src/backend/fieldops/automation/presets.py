"""Built-in rule presets offered when a template's automation is first set up.

Importing this module registers every preset with the global registry.
"""

from __future__ import annotations

from decimal import Decimal

from .models import AutoRequirementRule, FeeSuggestionRule
from .registry import registry


def _cond(field, value, operator="equals", logic=None):
    data = {"field": field, "operator": operator, "value": value}
    if logic:
        data["logic"] = logic
    return data


AUTO_REQUIREMENT_PRESETS = [
    {
        "preset_type": "not_serviced",
        "name": "Not Serviced → Reason + Photo + GPS",
        "description": "Require documentation when a unit cannot be serviced",
        "conditions": [_cond("unit_status", "Not Serviced")],
        "required_fields": ["not_serviced_reason", "not_serviced_photo"],
        "evidence_requirements": {"min_photos": 1, "gps_required": True, "gps_accuracy": 50},
        "auto_actions": {"create_task": True, "task_template": "follow_up_access_issue", "notify": ["dispatch"]},
    },
    {
        "preset_type": "damage",
        "name": "Damage/Issue → Photos + Task",
        "description": "Require photos and create repair task for any damage",
        "conditions": [_cond("damage_detected", True)],
        "required_fields": ["damage_photos", "damage_description"],
        "evidence_requirements": {"min_photos": 2, "photo_types": ["close_up", "context"]},
        "auto_actions": {"create_task": True, "task_template": "repair_damage", "due_days": 3},
    },
    {
        "preset_type": "delivery_setup",
        "name": "Delivery/Setup → Placement Proof",
        "description": "Require placement documentation for deliveries",
        "conditions": [_cond("template_type", "delivery")],
        "required_fields": [
            "placement_map_pin",
            "surface_type",
            "level_check",
            "distance_from_truck",
            "placement_photos",
        ],
        "evidence_requirements": {"min_photos": 2, "gps_required": True, "photo_types": ["door_side", "wide_angle"]},
    },
    {
        "preset_type": "pickup_removal",
        "name": "Pickup/Removal → Final Area Photo",
        "description": "Require proof that area is left clean",
        "conditions": [_cond("template_type", "pickup")],
        "required_fields": ["area_clean_checkbox", "final_area_photo"],
        "evidence_requirements": {"min_photos": 1},
    },
    {
        "preset_type": "event_service",
        "name": "Event Service → Zone/Bank + Count Check",
        "description": "Require zone tracking and reconciliation for events",
        "conditions": [_cond("template_type", "event")],
        "required_fields": ["zone_selection", "bank_selection", "units_expected", "units_serviced"],
        "auto_actions": {"validate_reconciliation": True},
    },
    {
        "preset_type": "ada_units",
        "name": "ADA Units → Access Checks",
        "description": "Ensure ADA compliance requirements are met",
        "conditions": [_cond("unit_type", "ADA")],
        "required_fields": ["ground_level_check", "path_clear_check", "door_clearance_check", "ada_compliance_photo"],
        "evidence_requirements": {"min_photos": 1, "photo_types": ["ramp_clearance"]},
    },
    {
        "preset_type": "spill_incident",
        "name": "Spill/Incident → Compliance Form + Notify",
        "description": "Handle spill incidents with full documentation",
        "conditions": [_cond("spill_incident", True)],
        "required_fields": ["spill_checklist", "spill_photos", "spill_location"],
        "evidence_requirements": {"min_photos": 2, "gps_required": True},
        "auto_actions": {
            "create_task": True,
            "task_template": "compliance_follow_up",
            "notify": ["dispatch", "safety"],
        },
    },
]


FEE_SUGGESTION_PRESETS = [
    {
        "fee_id": "fee_blocked_access",
        "fee_name": "Blocked Access Fee",
        "fee_amount": Decimal("50.00"),
        "conditions": [
            _cond("unit_status", "Not Serviced"),
            _cond("not_serviced_reason", "Blocked Access", logic="AND"),
        ],
        "scope": "per_unit",
        "auto_add": True,
    },
    {
        "fee_id": "fee_extra_blue",
        "fee_name": "Extra Blue/Deodorizer",
        "fee_amount": Decimal("15.00"),
        "conditions": [_cond("blue_used", 16, operator="greater_than")],
        "scope": "per_unit",
    },
    {
        "fee_id": "fee_excess_waste",
        "fee_name": "Excess Waste / Heavy Pump",
        "fee_amount": Decimal("25.00"),
        # Seconds on unit.
        "conditions": [_cond("time_on_unit", 360, operator="greater_than")],
        "scope": "per_unit",
        "auto_add": True,
    },
    {
        "fee_id": "fee_relocation",
        "fee_name": "Relocation Fee",
        "fee_amount": Decimal("35.00"),
        "conditions": [
            _cond("unit_relocated", True),
            _cond("relocation_distance", 25, operator="greater_than", logic="AND"),
        ],
        "scope": "per_unit",
        "auto_add": True,
    },
    {
        "fee_id": "fee_tipped_recovery",
        "fee_name": "Tipped Unit Recovery",
        "fee_amount": Decimal("25.00"),
        "conditions": [_cond("unit_tipped", True)],
        "scope": "per_unit",
        "auto_add": True,
    },
    {
        "fee_id": "fee_graffiti",
        "fee_name": "Graffiti Removal",
        "fee_amount": Decimal("35.00"),
        "conditions": [_cond("issue_code", "Graffiti")],
        "scope": "per_unit",
    },
    {
        "fee_id": "fee_frozen_tank",
        "fee_name": "Frozen Tank Treatment",
        "fee_amount": Decimal("20.00"),
        "conditions": [_cond("frozen_unsafe", True)],
        "scope": "per_unit",
        "auto_add": True,
    },
    {
        "fee_id": "fee_after_hours",
        "fee_name": "After-Hours Service",
        "fee_amount": Decimal("40.00"),
        "conditions": [
            _cond("service_hour", 7, operator="less_than", logic="OR"),
            _cond("service_hour", 18, operator="greater_than", logic="OR"),
        ],
        "scope": "per_job",
        "auto_add": True,
        "prevent_duplicates": True,
    },
    {
        "fee_id": "fee_lock",
        "fee_name": "Missing/Damaged Lock",
        "fee_amount": Decimal("8.00"),
        "conditions": [_cond("issue_code", "Lock")],
        "scope": "per_unit",
    },
    {
        "fee_id": "fee_anchor",
        "fee_name": "Anchor/Strap Add",
        "fee_amount": Decimal("15.00"),
        "conditions": [
            _cond("wind_exposure", "High"),
            _cond("anchoring", False, logic="AND"),
        ],
        "scope": "per_unit",
    },
]


for _preset in AUTO_REQUIREMENT_PRESETS:
    registry.register_auto_requirement(
        AutoRequirementRule.model_validate({"id": f"preset_{_preset['preset_type']}", **_preset})
    )

for _preset in FEE_SUGGESTION_PRESETS:
    registry.register_fee_suggestion(FeeSuggestionRule.model_validate({"id": _preset["fee_id"], **_preset}))
