from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .models import AutoRequirementRule, DefaultValueRule, FeeSuggestionRule, UnitLoopConfig


class LogicRulesConfig(BaseModel):
    """Rule bundle attached to one service-report template.

    Supplied already parsed by the rule store; build it with ``model_validate``.
    """

    auto_requirements: List[AutoRequirementRule] = Field(default_factory=list)
    fee_suggestions: List[FeeSuggestionRule] = Field(default_factory=list)
    default_value_rules: List[DefaultValueRule] = Field(default_factory=list)
    unit_loop_config: UnitLoopConfig = Field(default_factory=UnitLoopConfig)


@dataclass(frozen=True)
class EngineSettings:
    log_level: str = "INFO"
    log_json: bool = False
    # Unit fields whose key contains this marker count toward min_photos.
    photo_field_marker: str = "photo"
    gps_field: str = "gps_location"
    signature_field: str = "signature"


def get_engine_settings() -> EngineSettings:
    """
    Load engine settings from environment variables (a local .env is honoured).

    Reads:
      FORM_AUTOMATION_LOG_LEVEL, FORM_AUTOMATION_LOG_JSON,
      FORM_AUTOMATION_PHOTO_MARKER, FORM_AUTOMATION_GPS_FIELD,
      FORM_AUTOMATION_SIGNATURE_FIELD
    """
    load_dotenv()
    defaults = EngineSettings()
    return EngineSettings(
        log_level=_log_level(os.getenv("FORM_AUTOMATION_LOG_LEVEL", defaults.log_level)),
        log_json=_flag("FORM_AUTOMATION_LOG_JSON", defaults.log_json),
        photo_field_marker=_non_empty("FORM_AUTOMATION_PHOTO_MARKER", defaults.photo_field_marker),
        gps_field=_non_empty("FORM_AUTOMATION_GPS_FIELD", defaults.gps_field),
        signature_field=_non_empty("FORM_AUTOMATION_SIGNATURE_FIELD", defaults.signature_field),
    )


def _log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ValueError(f"FORM_AUTOMATION_LOG_LEVEL must be a logging level name, got {value!r}")
    return level


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    text = raw.strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _non_empty(name: str, default: str) -> str:
    value = os.getenv(name, "").strip()
    return value or default
