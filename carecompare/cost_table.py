"""Assumed per-occurrence costs for services that are billed through coinsurance."""

from __future__ import annotations

from typing import Any

from carecompare.models import CostSettings, VisitType

# Visit types whose charge is the assumed service cost rather than the plan's copay.
COST_SETTING_VISIT_TYPES: tuple[VisitType, ...] = (
    VisitType.EMERGENCY_ROOM,
    VisitType.DIAGNOSTIC_TEST,
    VisitType.IMAGING,
    VisitType.REHABILITATION_OUTPATIENT,
    VisitType.HABILITATION_OUTPATIENT,
)

DEFAULT_COST_SETTINGS: dict[str, float] = CostSettings().model_dump(by_alias=True)


def create_default_cost_settings() -> CostSettings:
    """Return a fresh cost table populated with the bundled defaults."""

    return CostSettings()


def build_cost_settings(overrides: CostSettings | dict[str, Any] | None = None) -> CostSettings:
    """Merge user overrides over the defaults.

    Unknown keys are ignored and unreadable amounts fall back to zero, so a half-edited
    settings form never breaks an estimate.
    """

    if overrides is None:
        return create_default_cost_settings()
    if isinstance(overrides, CostSettings):
        return overrides
    merged: dict[str, Any] = dict(DEFAULT_COST_SETTINGS)
    for key, value in overrides.items():
        merged[_canonical_key(str(key))] = value
    return CostSettings.model_validate(merged)


def _canonical_key(key: str) -> str:
    for field_name, info in CostSettings.model_fields.items():
        if key in (field_name, info.alias):
            return info.alias or field_name
    return key


def assumed_cost(settings: CostSettings, visit_type: VisitType) -> float:
    if visit_type not in COST_SETTING_VISIT_TYPES:
        return 0.0
    return settings.cost_for(visit_type)
