from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

import structlog

from .conditions import evaluate_conditions
from .formula import FormulaError, evaluate_formula
from .models import DefaultValueRule, DefaultValueSource, SystemField

logger = structlog.get_logger(__name__)

_UNSET = object()
_SECONDS_PER_DAY = 86400


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_visit_date(value: Any) -> Optional[datetime]:
    """Read a history ``date`` as a UTC datetime; bare dates are UTC midnight."""
    if isinstance(value, datetime):
        return _utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            if len(text) == 10:
                parsed = date.fromisoformat(text)
                return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc)
            return _utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def days_since(visit: datetime, now: datetime) -> int:
    return int((now - visit).total_seconds() // _SECONDS_PER_DAY)


def system_value(field: Optional[str], now: datetime) -> Any:
    now = _utc(now)
    if field == SystemField.CURRENT_DATE.value:
        return now.date().isoformat()
    if field == SystemField.CURRENT_TIME.value:
        return now.strftime("%H:%M:%S")
    if field == SystemField.CURRENT_DATETIME.value:
        return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return _UNSET


def _last_visit_value(rule: DefaultValueRule, history: Optional[Mapping[str, Any]], now: datetime) -> Any:
    if history is None or not rule.source_field or rule.days_threshold is None:
        return _UNSET
    visited = parse_visit_date(history.get("date"))
    if visited is None:
        return _UNSET
    if days_since(visited, _utc(now)) > rule.days_threshold:
        return _UNSET
    if rule.source_field not in history:
        return _UNSET
    return history[rule.source_field]


def _formula_value(rule: DefaultValueRule, job_data: Mapping[str, Any]) -> Any:
    try:
        return evaluate_formula(rule.formula or "", job_data)
    except FormulaError as exc:
        logger.warning(
            "formula_evaluation_failed",
            field_id=rule.field_id,
            formula=rule.formula,
            error=str(exc),
        )
        return _UNSET


def resolve_default_values(
    job_data: Mapping[str, Any],
    rules: Iterable[DefaultValueRule],
    history: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Compute prefill values for a new report.

    Rules run in order and a later rule overwrites an earlier one for the same
    ``field_id``. A rule whose source yields nothing leaves the field unset.
    """
    now = now or datetime.now(timezone.utc)
    defaults: Dict[str, Any] = {}

    for rule in rules:
        if rule.conditions and not evaluate_conditions(rule.conditions, job_data):
            continue

        value: Any = _UNSET
        if rule.source == DefaultValueSource.JOB_DATA:
            if rule.source_field and rule.source_field in job_data:
                value = job_data[rule.source_field]
        elif rule.source == DefaultValueSource.LAST_VISIT:
            value = _last_visit_value(rule, history, now)
        elif rule.source == DefaultValueSource.STATIC:
            if "static_value" in rule.model_fields_set:
                value = rule.static_value
        elif rule.source == DefaultValueSource.SYSTEM:
            value = system_value(rule.source_field, now)
        elif rule.source == DefaultValueSource.FORMULA:
            value = _formula_value(rule, job_data)

        if value is not _UNSET:
            defaults[rule.field_id] = value

    logger.debug("default_values_resolved", fields=sorted(defaults))
    return defaults
