from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import structlog

from .config import EngineSettings
from .models import (
    AutoRequirementRule,
    EvidenceRequirements,
    IssueType,
    UnitLoopConfig,
    ValidationIssue,
)
from .requirements import resolve_auto_requirements

logger = structlog.get_logger(__name__)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def field_label(field_id: str) -> str:
    return field_id.replace("_", " ")


def count_photos(record: Mapping[str, Any], marker: str = "photo") -> int:
    return sum(
        len(value)
        for key, value in record.items()
        if isinstance(key, str) and marker in key and isinstance(value, (list, tuple))
    )


def _missing_required(
    record: Mapping[str, Any],
    required_fields: Iterable[str],
    *,
    unit_id: Optional[str] = None,
    unit_index: Optional[int] = None,
) -> List[ValidationIssue]:
    return [
        ValidationIssue(
            unit_id=unit_id,
            unit_index=unit_index,
            field_id=field_id,
            field_label=field_label(field_id),
            issue_type=IssueType.REQUIRED_FIELD,
            message="Required field missing",
        )
        for field_id in required_fields
        if is_blank(record.get(field_id))
    ]


def _missing_evidence(
    unit: Mapping[str, Any],
    requirements: EvidenceRequirements,
    settings: EngineSettings,
    *,
    unit_id: Optional[str],
    unit_index: int,
    rule_name: Optional[str],
) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    def _issue(field_id: str, label: str, message: str) -> ValidationIssue:
        return ValidationIssue(
            unit_id=unit_id,
            unit_index=unit_index,
            field_id=field_id,
            field_label=label,
            issue_type=IssueType.MISSING_EVIDENCE,
            message=message,
            rule_name=rule_name,
        )

    if requirements.min_photos:
        found = count_photos(unit, settings.photo_field_marker)
        if found < requirements.min_photos:
            issues.append(
                _issue("photos", "Photos", f"Requires at least {requirements.min_photos} photo(s), found {found}")
            )
    if requirements.gps_required and is_blank(unit.get(settings.gps_field)):
        issues.append(_issue(settings.gps_field, "GPS Location", "GPS lock required"))
    if requirements.signature_required and is_blank(unit.get(settings.signature_field)):
        issues.append(_issue(settings.signature_field, "Signature", "Signature required"))
    return issues


def validate_submission(
    form_data: Mapping[str, Any],
    auto_requirements: Sequence[AutoRequirementRule],
    units: Optional[Sequence[Mapping[str, Any]]] = None,
    unit_loop_config: Optional[UnitLoopConfig] = None,
    *,
    settings: Optional[EngineSettings] = None,
) -> List[ValidationIssue]:
    """Return the issues blocking submission; an empty list means it may proceed.

    With the unit loop enabled and units supplied, requirements are recomputed per
    unit and evidence (photos, GPS lock, signature) is checked per unit. Otherwise
    only required-field presence on the whole form is checked.
    """
    settings = settings or EngineSettings()
    issues: List[ValidationIssue] = []

    if unit_loop_config is not None and unit_loop_config.enabled and units is not None:
        for index, unit in enumerate(units):
            if not isinstance(unit, Mapping):
                logger.warning("unit_skipped", unit_index=index, reason="not a mapping")
                continue
            resolution = resolve_auto_requirements(form_data, auto_requirements, unit)
            raw_unit_id = unit.get("unit_id")
            unit_id = str(raw_unit_id) if raw_unit_id is not None else None

            issues.extend(
                _missing_required(unit, resolution.required_fields, unit_id=unit_id, unit_index=index)
            )

            names: Dict[str, str] = {r.id: r.name for r in resolution.triggered_rules}
            for rule_id, requirements in resolution.evidence_requirements.items():
                issues.extend(
                    _missing_evidence(
                        unit,
                        requirements,
                        settings,
                        unit_id=unit_id,
                        unit_index=index,
                        rule_name=names.get(rule_id) or None,
                    )
                )
    else:
        resolution = resolve_auto_requirements(form_data, auto_requirements)
        issues.extend(_missing_required(form_data, resolution.required_fields))

    logger.debug("submission_validated", issue_count=len(issues))
    return issues
