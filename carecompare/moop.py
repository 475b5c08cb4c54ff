"""Out-of-pocket maximum caps for individuals and the household."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from carecompare.models import CostShareLimits

logger = logging.getLogger(__name__)

INDIVIDUAL_MOOP_NOTE = "Individual MOOP Hit"


@dataclass(frozen=True)
class MoopResult:
    capped_totals: tuple[float, ...]
    notes: tuple[str | None, ...]
    family_oop_paid: float
    final_family_oop: float
    family_moop_hit: bool


def cap_person(total: float, individual_limit: float) -> tuple[float, str | None]:
    """Clamp one person's spend to the individual limit. A zero limit means uncapped."""

    if individual_limit > 0 and total > individual_limit:
        return individual_limit, INDIVIDUAL_MOOP_NOTE
    return total, None


def cap_household(person_totals: Sequence[float], limits: CostShareLimits) -> MoopResult:
    """Cap each person individually, then cap the household sum at the family limit.

    Single-person households are only subject to the individual limit.
    """

    capped: list[float] = []
    notes: list[str | None] = []
    for total in person_totals:
        value, note = cap_person(total, limits.person)
        capped.append(value)
        notes.append(note)

    family_paid = sum(capped)
    final = family_paid
    family_hit = False
    if len(capped) > 1 and limits.family > 0 and family_paid > limits.family:
        final = limits.family
        family_hit = True
        logger.debug("family MOOP reached: %.2f capped to %.2f", family_paid, final)

    return MoopResult(
        capped_totals=tuple(capped),
        notes=tuple(notes),
        family_oop_paid=family_paid,
        final_family_oop=final,
        family_moop_hit=family_hit,
    )
