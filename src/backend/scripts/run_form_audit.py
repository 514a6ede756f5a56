from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


_ensure_backend_on_path()

from fieldops.automation.config import LogicRulesConfig, get_engine_settings  # noqa: E402
from fieldops.automation.logs import configure_logging  # noqa: E402
from fieldops.automation.models import AutomationAudit  # noqa: E402
from fieldops.automation.runner import AutomationEngine  # noqa: E402


def _load_json(path: Path):
    with path.open() as handle:
        return json.load(handle)


@dataclass
class FormAuditInputs:
    form_data: dict[str, Any]
    logic_rules: LogicRulesConfig
    units: Optional[list[dict[str, Any]]] = None
    job_data: dict[str, Any] = field(default_factory=dict)
    history: Optional[dict[str, Any]] = None


def build_inputs(payload: dict[str, Any]) -> FormAuditInputs:
    units = payload.get("units")
    return FormAuditInputs(
        form_data=dict(payload.get("form_data") or {}),
        logic_rules=LogicRulesConfig.model_validate(payload.get("logic_rules") or {}),
        units=list(units) if units is not None else None,
        job_data=dict(payload.get("job_data") or {}),
        history=payload.get("history"),
    )


def run_form_audit(inputs: FormAuditInputs, engine: Optional[AutomationEngine] = None) -> tuple[dict[str, Any], AutomationAudit]:
    engine = engine or AutomationEngine(inputs.logic_rules)
    defaults = engine.default_values(inputs.job_data, inputs.history)
    audit = engine.audit(inputs.form_data, inputs.units)
    return defaults, audit


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Evaluate a service-report payload and write its automation audit.")
    parser.add_argument("--input", required=True, type=Path, help="JSON payload with form_data, units and logic_rules.")
    parser.add_argument("--out", type=Path, default=None, help="Write the audit JSON here instead of stdout.")
    args = parser.parse_args(argv)

    settings = get_engine_settings()
    configure_logging(settings.log_level, json=settings.log_json)

    inputs = build_inputs(_load_json(args.input))
    engine = AutomationEngine(inputs.logic_rules, settings)
    defaults, audit = run_form_audit(inputs, engine)

    output = {
        "defaults": defaults,
        "audit": audit.model_dump(mode="json"),
        "can_submit": audit.can_submit,
    }
    text = json.dumps(output, indent=2, default=str)
    if args.out:
        args.out.write_text(text)
    else:
        print(text)
    return 0 if audit.can_submit else 1


if __name__ == "__main__":
    raise SystemExit(main())
