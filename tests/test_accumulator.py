from __future__ import annotations

import pytest

from carecompare.accumulator import HouseholdDeductible, accumulate_household, deductible_step
from carecompare.models import ChargeBuckets, ChargeItem, CostShareLimits


def _buckets(*costs: tuple[float, float | None], exempt: float = 0.0, rate: float = 0.0) -> ChargeBuckets:
	items = [
		ChargeItem(label=f"item {index}", calculation_note="", cost=cost, coinsurance_rate=item_rate)
		for index, (cost, item_rate) in enumerate(costs)
	]
	exempt_items = [ChargeItem(label="copays", calculation_note="", cost=exempt)] if exempt else []
	return ChargeBuckets(exempt=exempt_items, deductible_applicable=items, detected_rate=rate)


def test_single_person_deductible_then_coinsurance() -> None:
	result = accumulate_household(
		[_buckets((1500.0, 0.2), exempt=100.0, rate=0.2)],
		CostShareLimits(person=500, family=0),
	)

	person = result.people[0]
	assert person.deductible_paid == pytest.approx(500.0)
	assert person.charges_after_deductible == pytest.approx(1000.0)
	assert person.coinsurance_paid == pytest.approx(200.0)
	assert person.total_oop == pytest.approx(800.0)


def test_single_person_ignores_family_pool() -> None:
	result = accumulate_household([_buckets((3000.0, None))], CostShareLimits(person=2000, family=1000))

	assert result.people[0].deductible_paid == pytest.approx(2000.0)


def test_family_pool_caps_later_members() -> None:
	limits = CostShareLimits(person=1000, family=1500)
	result = accumulate_household([_buckets((2000.0, None)), _buckets((2000.0, None))], limits)

	first, second = result.people
	assert first.deductible_paid == pytest.approx(1000.0)
	assert second.personal_contribution == pytest.approx(1000.0)
	assert second.deductible_paid == pytest.approx(500.0)
	assert second.charges_after_deductible == pytest.approx(1500.0)
	assert result.reported_family_paid == pytest.approx(1500.0)


def test_list_order_decides_who_uses_the_pool() -> None:
	limits = CostShareLimits(person=1000, family=1200)
	small = _buckets((300.0, None))
	large = _buckets((5000.0, None))

	forward = accumulate_household([small, large], limits)
	backward = accumulate_household([large, small], limits)

	assert [p.deductible_paid for p in forward.people] == pytest.approx([300.0, 900.0])
	assert [p.deductible_paid for p in backward.people] == pytest.approx([1000.0, 200.0])
	assert forward.family_paid == pytest.approx(backward.family_paid)


def test_zero_family_limit_caps_household_deductible_at_zero() -> None:
	result = accumulate_household(
		[_buckets((1500.0, 0.2), rate=0.2), _buckets((1500.0, 0.2), rate=0.2)],
		CostShareLimits(person=500, family=0),
	)

	paid = [p.deductible_paid for p in result.people]
	assert paid == [0.0, 0.0]
	assert sum(paid) <= 0.0
	assert result.reported_family_paid == 0.0
	assert [p.coinsurance_paid for p in result.people] == pytest.approx([300.0, 300.0])


def test_contribution_never_exceeds_own_charges() -> None:
	result = accumulate_household([_buckets((120.0, None))], CostShareLimits(person=5000, family=10000))

	assert result.people[0].deductible_paid == pytest.approx(120.0)
	assert result.people[0].charges_after_deductible == 0.0


def test_zero_rate_means_no_coinsurance() -> None:
	result = accumulate_household([_buckets((4000.0, None))], CostShareLimits(person=1000))

	assert result.people[0].charges_after_deductible == pytest.approx(3000.0)
	assert result.people[0].coinsurance_paid == 0.0


def test_per_item_rates_versus_last_rate_wins() -> None:
	buckets = _buckets((1000.0, 0.2), (1000.0, 0.5), rate=0.5)
	limits = CostShareLimits(person=500)

	per_item = accumulate_household([buckets], limits, mode="per_item")
	last_rate = accumulate_household([buckets], limits, mode="last_rate_wins")

	# the deductible absorbs the first item before its rate applies
	assert per_item.people[0].coinsurance_paid == pytest.approx(500 * 0.2 + 1000 * 0.5)
	assert last_rate.people[0].coinsurance_paid == pytest.approx(1500 * 0.5)


def test_per_item_falls_back_to_person_rate_for_unrated_items() -> None:
	buckets = _buckets((1500.0, 0.2), (360.0, None), rate=0.2)
	result = accumulate_household([buckets], CostShareLimits(person=0), mode="per_item")

	assert result.people[0].coinsurance_paid == pytest.approx(1860 * 0.2)


def test_per_item_reports_blended_rate() -> None:
	buckets = _buckets((1000.0, 0.2), (200.0, 0.5), rate=0.5)
	person = accumulate_household([buckets], CostShareLimits(person=0), mode="per_item").people[0]

	assert person.charges_after_deductible == pytest.approx(1200.0)
	assert person.coinsurance_paid == pytest.approx(300.0)
	assert person.coinsurance_rate == pytest.approx(0.25)
	assert person.coinsurance_paid == pytest.approx(person.charges_after_deductible * person.coinsurance_rate)


def test_per_item_rate_falls_back_when_deductible_absorbs_everything() -> None:
	buckets = _buckets((300.0, 0.2), rate=0.2)
	person = accumulate_household([buckets], CostShareLimits(person=1000), mode="per_item").people[0]

	assert person.charges_after_deductible == 0.0
	assert person.coinsurance_rate == pytest.approx(0.2)


def test_last_rate_wins_reports_detected_rate() -> None:
	buckets = _buckets((1000.0, 0.2), (200.0, 0.5), rate=0.5)
	person = accumulate_household([buckets], CostShareLimits(person=0), mode="last_rate_wins").people[0]

	assert person.coinsurance_rate == pytest.approx(0.5)
	assert person.coinsurance_paid == pytest.approx(600.0)


def test_step_returns_new_state() -> None:
	initial = HouseholdDeductible(individual_limit=500, family_limit=1000, household_size=2)
	after = deductible_step(initial, _buckets((700.0, None)))

	assert initial.family_paid == 0.0
	assert initial.people == ()
	assert after.family_paid == pytest.approx(500.0)
	assert len(after.people) == 1
