from __future__ import annotations

import pytest

from carecompare.cost_table import DEFAULT_COST_SETTINGS, build_cost_settings, create_default_cost_settings
from carecompare.models import (
	Coinsurance,
	Copay,
	Medication,
	Person,
	Plan,
	VisitType,
	rx_price_rule,
	visit_price_rule,
)


@pytest.mark.parametrize(
	"value, expected",
	[
		(25, Copay(amount=25)),
		(0.2, Coinsurance(rate=0.2)),
		(1, Copay(amount=1)),
		(0, Copay(amount=0)),
		("45", Copay(amount=45)),
		("n/a", Copay(amount=0)),
		({"kind": "coinsurance", "rate": 0.3}, Coinsurance(rate=0.3)),
	],
)
def test_visit_price_rule(value, expected) -> None:
	assert visit_price_rule(value) == expected


@pytest.mark.parametrize(
	"value, expected",
	[
		(15, Copay(amount=15)),
		(0.5, Coinsurance(rate=0.5)),
		(1, Coinsurance(rate=1.0)),
		(0, Copay(amount=0)),
	],
)
def test_rx_price_rule(value, expected) -> None:
	assert rx_price_rule(value) == expected


def test_person_always_has_every_visit_type() -> None:
	person = Person.model_validate({"name": "Alex", "visits": {"imaging": 2, "dental": 4}})

	counts = person.visits.as_dict()
	assert set(counts) == set(VisitType)
	assert counts[VisitType.IMAGING] == 2
	assert "dental" not in person.visits.model_dump(by_alias=True)


@pytest.mark.parametrize(
	"raw, tier, refills, custom_cost",
	[
		({"tier": 7, "refillsPerYear": 0}, 5, 12, None),
		({"tier": "2", "refillsPerYear": "3", "customCost": "45.5"}, 2, 3, 45.5),
		({"tier": 0, "customCost": 0}, 1, 12, None),
		({"customCost": ""}, 1, 12, None),
	],
)
def test_medication_defaults(raw, tier, refills, custom_cost) -> None:
	medication = Medication.model_validate(raw)

	assert medication.tier == tier
	assert medication.refills_per_year == refills
	assert medication.custom_cost == custom_cost


def test_plan_rules_default_to_zero_copay() -> None:
	plan = Plan()

	assert plan.visit_rule(VisitType.SPECIALIST) == Copay()
	assert plan.rx_rule(3) == Copay()


def test_plan_accepts_snake_and_camel_names() -> None:
	camel = Plan.model_validate({"outOfPocketMax": {"person": 5000}})
	snake = Plan(out_of_pocket_max={"person": 5000})

	assert camel.out_of_pocket_max.person == snake.out_of_pocket_max.person == 5000.0


def test_cost_settings_merge_over_defaults() -> None:
	settings = build_cost_settings({"emergency_room": 1800, "outpatientSurgeryASC": 2500, "unknown": 9})

	assert settings.emergency_room == 1800.0
	assert settings.outpatient_surgery_asc == 2500.0
	assert settings.imaging == DEFAULT_COST_SETTINGS["imaging"]
	assert create_default_cost_settings().emergency_room == 1500.0
	assert create_default_cost_settings() is not create_default_cost_settings()
