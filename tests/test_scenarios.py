from __future__ import annotations

from carecompare.models import Person, VisitType
from carecompare.scenarios import (
	BEST_CASE_SUFFIX,
	WORST_CASE_SUFFIX,
	base_name,
	best_case,
	create_person_scenarios,
	create_scenarios,
	worst_case,
)

BASELINE_VISITS = {
	"primaryCare": 5,
	"specialist": 5,
	"urgentCare": 9,
	"emergencyRoom": 3,
	"mentalHealth": 5,
	"diagnosticTest": 3,
	"imaging": 4,
	"rehabilitationOutpatient": 7,
	"habilitationOutpatient": 1,
}


def _person(name: str = "Alex") -> Person:
	return Person.model_validate(
		{
			"id": 7,
			"name": name,
			"visits": BASELINE_VISITS,
			"medications": [{"id": 1, "name": "Inhaler", "tier": 2, "refillsPerYear": 6, "customCost": 60}],
		}
	)


def test_best_case_scales_down_and_floors() -> None:
	derived = best_case(_person())

	assert derived.name == "Alex (Best Case)"
	assert derived.visits.as_dict() == {
		VisitType.PRIMARY_CARE: 2,
		VisitType.SPECIALIST: 1,
		VisitType.URGENT_CARE: 1,
		VisitType.EMERGENCY_ROOM: 0,
		VisitType.MENTAL_HEALTH: 3,
		VisitType.DIAGNOSTIC_TEST: 1,
		VisitType.IMAGING: 1,
		VisitType.REHABILITATION_OUTPATIENT: 3,
		VisitType.HABILITATION_OUTPATIENT: 0,
	}


def test_worst_case_adds_fixed_visits() -> None:
	derived = worst_case(_person())

	assert derived.name == "Alex (Worst Case)"
	assert derived.visits.primary_care == 7
	assert derived.visits.specialist == 8
	assert derived.visits.urgent_care == 10
	assert derived.visits.emergency_room == 4
	assert derived.visits.mental_health == 7
	assert derived.visits.diagnostic_test == 5
	assert derived.visits.imaging == 5
	assert derived.visits.rehabilitation_outpatient == 11
	assert derived.visits.habilitation_outpatient == 3


def test_medications_carry_over_unchanged() -> None:
	person = _person()
	for derived in (best_case(person), worst_case(person)):
		assert derived.medications == person.medications
		assert derived.medications[0] is not person.medications[0]
		assert derived.id == person.id


def test_suffixes_do_not_stack() -> None:
	assert base_name("Alex (Best Case) (Worst Case)") == "Alex"
	assert best_case(_person("Alex (Best Case)")).name == "Alex" + BEST_CASE_SUFFIX
	assert worst_case(_person("Alex (Best Case)")).name == "Alex" + WORST_CASE_SUFFIX


def test_derivation_is_pure() -> None:
	person = _person()
	before = person.model_dump()

	first = create_scenarios([person])
	second = create_scenarios([person])

	assert first == second
	assert person.model_dump() == before
	assert first.most_likely[0] == person
	assert first.most_likely[0] is not person


def test_per_person_scenarios_are_keyed() -> None:
	scenarios = create_person_scenarios(_person())

	assert list(scenarios) == ["bestCase", "mostLikely", "worstCase"]
	assert scenarios["mostLikely"].name == "Alex"


def test_empty_baseline() -> None:
	scenarios = create_scenarios([])

	assert scenarios.best_case == []
	assert scenarios.worst_case == []
