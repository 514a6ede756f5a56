from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, Field

from .models import AutoRequirementRule, DefaultValueRule, FeeSuggestionRule
from .registry import registry

# Ensure built-in presets are imported/registered when generating a catalog.
from . import presets as _builtin_presets  # noqa: F401


class PresetCatalogEntry(BaseModel):
    preset_id: str
    kind: str
    name: str
    description: str = ""
    rule: Dict[str, Any]


class RuleCatalog(BaseModel):
    presets: List[PresetCatalogEntry] = Field(default_factory=list)
    schemas: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


def build_catalog() -> RuleCatalog:
    entries: List[PresetCatalogEntry] = []
    for key in registry.auto_requirement_ids():
        rule = registry.auto_requirement(key)
        entries.append(
            PresetCatalogEntry(
                preset_id=key,
                kind="auto_requirement",
                name=rule.name,
                description=rule.description,
                rule=rule.model_dump(mode="json", exclude_none=True),
            )
        )
    for key in registry.fee_suggestion_ids():
        fee = registry.fee_suggestion(key)
        entries.append(
            PresetCatalogEntry(
                preset_id=key,
                kind="fee_suggestion",
                name=fee.fee_name,
                rule=fee.model_dump(mode="json", exclude_none=True),
            )
        )

    entries.sort(key=lambda e: (e.kind, e.preset_id))
    schemas = {
        "auto_requirement": AutoRequirementRule.model_json_schema(),
        "fee_suggestion": FeeSuggestionRule.model_json_schema(),
        "default_value": DefaultValueRule.model_json_schema(),
    }
    return RuleCatalog(presets=entries, schemas=schemas)


def _dump_json(catalog: dict[str, Any]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True, ensure_ascii=False)


def _dump_yaml(catalog: dict[str, Any]) -> str:
    return yaml.safe_dump(catalog, sort_keys=True, allow_unicode=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Print rule presets and rule schemas.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    parser.add_argument(
        "--no-schemas",
        action="store_true",
        help="Only list presets.",
    )
    args = parser.parse_args(argv)

    catalog = build_catalog().model_dump(mode="json")
    if args.no_schemas:
        catalog.pop("schemas")
    if args.format == "json":
        print(_dump_json(catalog))
    else:
        print(_dump_yaml(catalog))


if __name__ == "__main__":
    main()
