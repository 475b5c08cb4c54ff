"""Deductible and coinsurance accumulation across a household.

People are processed in list order. The family deductible pool is consumed by earlier
people first, so reordering the household can move deductible spend from one person's
breakdown to another's while the household total stays the same.

The running household state is an immutable value: each step returns a new
:class:`HouseholdDeductible` rather than mutating shared totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import reduce
from typing import Iterable

from carecompare.models import ChargeBuckets, CostShareLimits

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonDeductible:
    """Deductible and coinsurance figures for one person, before any MOOP cap."""

    exempt_total: float
    deductible_applicable_total: float
    personal_contribution: float
    deductible_paid: float
    charges_after_deductible: float
    coinsurance_rate: float
    coinsurance_paid: float

    @property
    def total_oop(self) -> float:
        return self.exempt_total + self.deductible_paid + self.coinsurance_paid


@dataclass(frozen=True)
class HouseholdDeductible:
    """Accumulator threaded through the per-person fold."""

    individual_limit: float
    family_limit: float
    household_size: int
    mode: str = "per_item"
    family_paid: float = 0.0
    people: tuple[PersonDeductible, ...] = ()

    @property
    def pooled(self) -> bool:
        return self.household_size > 1

    @property
    def family_remaining(self) -> float:
        return max(0.0, self.family_limit - self.family_paid)

    @property
    def reported_family_paid(self) -> float:
        if self.pooled:
            return min(self.family_paid, self.family_limit)
        return self.family_paid


def _coinsurance_per_item(buckets: ChargeBuckets, deductible_paid: float) -> float:
    """Apply each item's own rate to whatever of it the deductible did not absorb."""

    remaining_deductible = deductible_paid
    paid = 0.0
    for item in buckets.deductible_applicable:
        absorbed = min(item.cost, remaining_deductible)
        remaining_deductible -= absorbed
        rate = item.coinsurance_rate if item.coinsurance_rate is not None else buckets.detected_rate
        paid += (item.cost - absorbed) * rate
    return paid


def deductible_step(state: HouseholdDeductible, buckets: ChargeBuckets) -> HouseholdDeductible:
    """Fold one person's charge buckets into the household state."""

    applicable = buckets.deductible_applicable_total
    personal = min(applicable, state.individual_limit)
    paid = min(personal, state.family_remaining) if state.pooled else personal
    after = max(0.0, applicable - paid)

    rate = buckets.detected_rate
    if state.mode == "last_rate_wins":
        coinsurance = after * rate
    else:
        coinsurance = _coinsurance_per_item(buckets, paid)
        # report the blended rate actually charged
        if after > 0:
            rate = coinsurance / after

    person = PersonDeductible(
        exempt_total=buckets.exempt_total,
        deductible_applicable_total=applicable,
        personal_contribution=personal,
        deductible_paid=paid,
        charges_after_deductible=after,
        coinsurance_rate=rate,
        coinsurance_paid=coinsurance,
    )
    logger.debug(
        "deductible step: applicable=%.2f personal=%.2f paid=%.2f family_paid=%.2f",
        applicable,
        personal,
        paid,
        state.family_paid + paid,
    )
    return replace(state, family_paid=state.family_paid + paid, people=state.people + (person,))


def accumulate_household(
    buckets: Iterable[ChargeBuckets],
    deductible: CostShareLimits,
    *,
    mode: str = "per_item",
) -> HouseholdDeductible:
    """Run the deductible fold over every person in list order."""

    all_buckets = list(buckets)
    initial = HouseholdDeductible(
        individual_limit=deductible.person,
        family_limit=deductible.family,
        household_size=len(all_buckets),
        mode=mode,
    )
    return reduce(deductible_step, all_buckets, initial)
