"""Annual cost estimation for a household under an insurance plan."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from carecompare import config
from carecompare.accumulator import accumulate_household
from carecompare.classifier import classify_person
from carecompare.cost_table import build_cost_settings
from carecompare.models import (
	CoinsuranceBreakdown,
	CostSettings,
	CostSummary,
	DeductibleBreakdown,
	FullBreakdown,
	OopBreakdown,
	Person,
	PersonBreakdown,
	Plan,
	PremiumBreakdown,
	Scenarios,
)
from carecompare.moop import cap_household
from carecompare.scenarios import create_scenarios

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


def _as_plan(plan: Plan | dict[str, Any]) -> Plan:
	return plan if isinstance(plan, Plan) else Plan.model_validate(plan or {})


def _as_people(people: Iterable[Person | dict[str, Any]] | None) -> list[Person]:
	return [person if isinstance(person, Person) else Person.model_validate(person) for person in people or []]


def estimate_detailed(
	plan: Plan | dict[str, Any],
	people: Iterable[Person | dict[str, Any]] | None,
	cost_settings: CostSettings | dict[str, Any] | None = None,
	*,
	coinsurance_mode: str | None = None,
) -> FullBreakdown:
	"""Return the itemized annual estimate for one plan.

	The pipeline is classify (per person) -> deductible/coinsurance fold (list order)
	-> individual and family MOOP caps -> premium + capped household OOP.
	"""

	plan_model = _as_plan(plan)
	household = _as_people(people)
	settings = build_cost_settings(cost_settings)
	mode = config.resolve_coinsurance_mode(coinsurance_mode)

	buckets = [classify_person(person, plan_model, settings) for person in household]
	deductibles = accumulate_household(buckets, plan_model.medical_deductible, mode=mode)
	moop = cap_household([entry.total_oop for entry in deductibles.people], plan_model.out_of_pocket_max)

	person_breakdowns: list[PersonBreakdown] = []
	for person, bucket, entry, capped, note in zip(
		household, buckets, deductibles.people, moop.capped_totals, moop.notes
	):
		person_breakdowns.append(
			PersonBreakdown(
				person_id=person.id,
				person_name=person.name,
				exempt=bucket.exempt,
				deductible_applicable=bucket.deductible_applicable,
				exempt_total=entry.exempt_total,
				deductible_applicable_total=entry.deductible_applicable_total,
				deductible_paid=entry.deductible_paid,
				charges_after_deductible=entry.charges_after_deductible,
				coinsurance_rate=entry.coinsurance_rate,
				coinsurance_paid=entry.coinsurance_paid,
				total_before_moop=entry.total_oop,
				out_of_pocket=capped,
				note=note,
			)
		)

	annual_premium = plan_model.premium * MONTHS_PER_YEAR
	family_deductible = plan_model.medical_deductible.family
	reported_paid = deductibles.reported_family_paid

	breakdown = FullBreakdown(
		plan_name=plan_model.name,
		premium_breakdown=PremiumBreakdown(
			monthly_premium=plan_model.premium,
			months_per_year=MONTHS_PER_YEAR,
			annual_premium=annual_premium,
		),
		person_breakdowns=person_breakdowns,
		deductible_breakdown=DeductibleBreakdown(
			individual_limit=plan_model.medical_deductible.person,
			family_limit=family_deductible,
			total_paid=reported_paid,
			family_limit_reached=family_deductible > 0 and reported_paid >= family_deductible,
		),
		coinsurance_breakdown=CoinsuranceBreakdown(
			mode=mode,
			charges_after_deductible=sum(entry.charges_after_deductible for entry in deductibles.people),
			total_paid=sum(entry.coinsurance_paid for entry in deductibles.people),
		),
		oop_breakdown=OopBreakdown(
			individual_limit=plan_model.out_of_pocket_max.person,
			family_limit=plan_model.out_of_pocket_max.family,
			family_oop_paid=moop.family_oop_paid,
			final_family_oop=moop.final_family_oop,
			individual_moop_hits=[item.person_name for item in person_breakdowns if item.note],
			family_moop_hit=moop.family_moop_hit,
		),
		grand_total=annual_premium + moop.final_family_oop,
	)
	logger.debug("estimated %s: total=%.2f", plan_model.name, breakdown.grand_total)
	return breakdown


def estimate_summary(
	plan: Plan | dict[str, Any],
	people: Iterable[Person | dict[str, Any]] | None,
	cost_settings: CostSettings | dict[str, Any] | None = None,
	*,
	coinsurance_mode: str | None = None,
) -> CostSummary:
	"""Return premium, out-of-pocket and total for comparison cards.

	Medication spend is folded into ``visits``; ``medications`` is always zero.
	"""

	detailed = estimate_detailed(plan, people, cost_settings, coinsurance_mode=coinsurance_mode)
	oop = detailed.oop_breakdown.final_family_oop
	return CostSummary(
		premium=detailed.premium_breakdown.annual_premium,
		visits=oop,
		medications=0.0,
		total=detailed.grand_total,
	)


def compare_plans(
	plans: Iterable[Plan | dict[str, Any]],
	people: Iterable[Person | dict[str, Any]] | Scenarios | None,
	cost_settings: CostSettings | dict[str, Any] | None = None,
	*,
	scenarios: bool = False,
	coinsurance_mode: str | None = None,
) -> list[dict[str, Any]]:
	"""Summarize every plan for the household, cheapest most-likely total first.

	With ``scenarios`` set (or a :class:`Scenarios` value passed as ``people``), each plan
	carries a summary per scenario; otherwise only ``mostLikely`` is filled from the
	people as given.
	"""

	if isinstance(people, Scenarios):
		profiles = people
	elif scenarios:
		profiles = create_scenarios(_as_people(people))
	else:
		profiles = Scenarios(most_likely=_as_people(people))

	keyed = {
		"bestCase": profiles.best_case,
		"mostLikely": profiles.most_likely,
		"worstCase": profiles.worst_case,
	}
	include = keyed if (scenarios or isinstance(people, Scenarios)) else {"mostLikely": profiles.most_likely}

	rows: list[dict[str, Any]] = []
	for plan in plans:
		plan_model = _as_plan(plan)
		summaries = {
			key: estimate_summary(plan_model, household, cost_settings, coinsurance_mode=coinsurance_mode).model_dump(by_alias=True)
			for key, household in include.items()
		}
		rows.append({"planId": plan_model.id, "planName": plan_model.name, "summaries": summaries})

	rows.sort(key=lambda row: row["summaries"]["mostLikely"]["total"])
	for index, row in enumerate(rows):
		row["cheapest"] = index == 0
	return rows
