"""Split one person's expected utilization into exempt and deductible-applicable charges."""

from __future__ import annotations

import logging

from carecompare import config
from carecompare.cost_table import COST_SETTING_VISIT_TYPES, assumed_cost
from carecompare.formatting import format_visit_type, money, percent
from carecompare.models import (
    ChargeBuckets,
    ChargeItem,
    Coinsurance,
    CostSettings,
    Medication,
    Person,
    Plan,
    VisitType,
)

logger = logging.getLogger(__name__)

# Always priced as flat copays, whatever number the plan stores for them.
COPAY_VISIT_TYPES: tuple[VisitType, ...] = (
    VisitType.PRIMARY_CARE,
    VisitType.SPECIALIST,
    VisitType.URGENT_CARE,
    VisitType.MENTAL_HEALTH,
)

DEDUCTIBLE_VISIT_TYPES: tuple[VisitType, ...] = COST_SETTING_VISIT_TYPES


def _visit_label(count: int) -> str:
    return "visit" if count == 1 else "visits"


def _copay_visit_item(visit_type: VisitType, visits: int, plan: Plan) -> ChargeItem:
    per_visit = plan.visit_rule(visit_type).value
    cost = visits * per_visit
    return ChargeItem(
        label=format_visit_type(visit_type),
        calculation_note=f"{visits} {_visit_label(visits)} × {money(per_visit)} copay = {money(cost)}",
        cost=cost,
    )


def _deductible_visit_item(
    visit_type: VisitType, visits: int, plan: Plan, cost_settings: CostSettings
) -> ChargeItem:
    per_visit = assumed_cost(cost_settings, visit_type)
    cost = visits * per_visit
    rule = plan.visit_rule(visit_type)
    rate = rule.rate if isinstance(rule, Coinsurance) else None
    note = f"{visits} {_visit_label(visits)} × {money(per_visit)} assumed cost = {money(cost)}"
    if rate is not None:
        note += f" ({percent(rate)} coinsurance after deductible)"
    return ChargeItem(
        label=format_visit_type(visit_type),
        calculation_note=note,
        cost=cost,
        coinsurance_rate=rate,
    )


def _medication_item(
    medication: Medication, plan: Plan, assumed_rx_cost: float
) -> tuple[ChargeItem, bool]:
    """Return the priced medication and whether it counts toward the deductible."""

    refills = medication.refills_per_year
    label = medication.name or f"Tier {medication.tier} Medication"

    if medication.custom_cost is not None:
        cost = medication.custom_cost * refills
        note = f"{refills} refills × {money(medication.custom_cost)} (custom cost) = {money(cost)}"
        return ChargeItem(label=label, calculation_note=note, cost=cost), True

    rule = plan.rx_rule(medication.tier)
    waived = " (Rx deductible waived)" if medication.tier in plan.rx_deductible_waived else ""
    if isinstance(rule, Coinsurance):
        cost = assumed_rx_cost * refills
        note = (
            f"{refills} refills × {money(assumed_rx_cost)} assumed cost = {money(cost)}"
            f" ({percent(rule.rate)} coinsurance after deductible)"
        )
        return ChargeItem(label=label, calculation_note=note, cost=cost, coinsurance_rate=rule.rate), True

    cost = rule.amount * refills
    note = f"{refills} refills × {money(rule.amount)} copay = {money(cost)}{waived}"
    return ChargeItem(label=label, calculation_note=note, cost=cost), False


def classify_person(
    person: Person,
    plan: Plan,
    cost_settings: CostSettings,
    *,
    assumed_rx_cost: float | None = None,
) -> ChargeBuckets:
    """Price a person's visits and medications and sort them into charge buckets.

    Copay visit types are always exempt. Cost-table visit types are always
    deductible-applicable at the assumed service cost; the last one used that carries a
    coinsurance rule sets the person's fallback rate. Medications with a custom cost or a
    coinsurance tier count toward the deductible; a coinsurance tier only sets the fallback
    rate when no visit did. Zero-count visit types produce no items.
    """

    rx_cost = config.ASSUMED_RX_COST if assumed_rx_cost is None else assumed_rx_cost
    exempt: list[ChargeItem] = []
    deductible_applicable: list[ChargeItem] = []
    detected_rate: float | None = None

    for visit_type in COPAY_VISIT_TYPES:
        visits = person.visits.count(visit_type)
        if visits:
            exempt.append(_copay_visit_item(visit_type, visits, plan))

    for visit_type in DEDUCTIBLE_VISIT_TYPES:
        visits = person.visits.count(visit_type)
        if not visits:
            continue
        item = _deductible_visit_item(visit_type, visits, plan, cost_settings)
        deductible_applicable.append(item)
        if item.coinsurance_rate is not None:
            detected_rate = item.coinsurance_rate

    for medication in person.medications:
        item, applies = _medication_item(medication, plan, rx_cost)
        if not applies:
            exempt.append(item)
            continue
        deductible_applicable.append(item)
        if detected_rate is None and item.coinsurance_rate is not None:
            detected_rate = item.coinsurance_rate

    logger.debug(
        "classified %s: %d exempt, %d deductible-applicable, rate=%s",
        person.name or person.id,
        len(exempt),
        len(deductible_applicable),
        detected_rate,
    )
    return ChargeBuckets(
        exempt=exempt,
        deductible_applicable=deductible_applicable,
        detected_rate=detected_rate or 0.0,
    )
