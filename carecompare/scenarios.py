"""Best / most likely / worst case utilization profiles derived from a baseline household."""

from __future__ import annotations

import math
from typing import Iterable

from carecompare.models import Person, Scenarios, VisitCounts, VisitType

BEST_CASE_SUFFIX = " (Best Case)"
WORST_CASE_SUFFIX = " (Worst Case)"

BEST_CASE_FACTORS: dict[VisitType, float] = {
    VisitType.PRIMARY_CARE: 0.5,
    VisitType.SPECIALIST: 0.3,
    VisitType.URGENT_CARE: 0.2,
    VisitType.EMERGENCY_ROOM: 0.0,
    VisitType.MENTAL_HEALTH: 0.7,
    VisitType.DIAGNOSTIC_TEST: 0.5,
    VisitType.IMAGING: 0.3,
    VisitType.REHABILITATION_OUTPATIENT: 0.5,
    VisitType.HABILITATION_OUTPATIENT: 0.5,
}

WORST_CASE_DELTAS: dict[VisitType, int] = {
    VisitType.PRIMARY_CARE: 2,
    VisitType.SPECIALIST: 3,
    VisitType.URGENT_CARE: 1,
    VisitType.EMERGENCY_ROOM: 1,
    VisitType.MENTAL_HEALTH: 2,
    VisitType.DIAGNOSTIC_TEST: 2,
    VisitType.IMAGING: 1,
    VisitType.REHABILITATION_OUTPATIENT: 4,
    VisitType.HABILITATION_OUTPATIENT: 2,
}


def base_name(name: str) -> str:
    """Strip any scenario suffixes so a name can be re-suffixed without stacking."""

    stripped = name
    changed = True
    while changed:
        changed = False
        for suffix in (BEST_CASE_SUFFIX, WORST_CASE_SUFFIX):
            if stripped.endswith(suffix):
                stripped = stripped[: -len(suffix)]
                changed = True
    return stripped


def _with_visits(person: Person, visits: dict[VisitType, int], suffix: str) -> Person:
    return Person(
        id=person.id,
        name=base_name(person.name) + suffix,
        visits=VisitCounts.model_validate({visit_type.value: count for visit_type, count in visits.items()}),
        medications=[medication.model_copy(deep=True) for medication in person.medications],
    )


def best_case(person: Person) -> Person:
    counts = person.visits.as_dict()
    visits = {
        visit_type: max(0, math.floor(counts[visit_type] * factor))
        for visit_type, factor in BEST_CASE_FACTORS.items()
    }
    return _with_visits(person, visits, BEST_CASE_SUFFIX)


def worst_case(person: Person) -> Person:
    counts = person.visits.as_dict()
    visits = {visit_type: counts[visit_type] + delta for visit_type, delta in WORST_CASE_DELTAS.items()}
    return _with_visits(person, visits, WORST_CASE_SUFFIX)


def create_person_scenarios(person: Person) -> dict[str, Person]:
    return {
        "bestCase": best_case(person),
        "mostLikely": person.model_copy(deep=True),
        "worstCase": worst_case(person),
    }


def create_scenarios(people: Iterable[Person]) -> Scenarios:
    """Derive all three profiles from the baseline, replacing any earlier derivation."""

    baseline = list(people)
    return Scenarios(
        best_case=[best_case(person) for person in baseline],
        most_likely=[person.model_copy(deep=True) for person in baseline],
        worst_case=[worst_case(person) for person in baseline],
    )
