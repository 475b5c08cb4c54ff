"""Shared data models for CareCompare's estimation engine and API."""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def coerce_float(value: Any, default: float = 0.0) -> float:
	"""Return value as a finite float, or default when it cannot be read as one."""

	if value is None or isinstance(value, bool):
		return default
	try:
		number = float(value)
	except (TypeError, ValueError):
		return default
	if math.isnan(number) or math.isinf(number):
		return default
	return number


def coerce_count(value: Any) -> int:
	"""Return a non-negative integer count; anything unreadable counts as zero."""

	return max(int(coerce_float(value)), 0)


class CamelModel(BaseModel):
	"""Base model accepting both camelCase (stored JSON) and snake_case field names."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VisitType(str, Enum):
	"""Kinds of visits a household member is expected to make in a plan year."""

	PRIMARY_CARE = "primaryCare"
	SPECIALIST = "specialist"
	URGENT_CARE = "urgentCare"
	EMERGENCY_ROOM = "emergencyRoom"
	MENTAL_HEALTH = "mentalHealth"
	DIAGNOSTIC_TEST = "diagnosticTest"
	IMAGING = "imaging"
	REHABILITATION_OUTPATIENT = "rehabilitationOutpatient"
	HABILITATION_OUTPATIENT = "habilitationOutpatient"


class VisitCounts(CamelModel):
	"""Expected visits per visit type. Every type is always present; unknown keys are dropped."""

	primary_care: int = 0
	specialist: int = 0
	urgent_care: int = 0
	emergency_room: int = 0
	mental_health: int = 0
	diagnostic_test: int = 0
	imaging: int = 0
	rehabilitation_outpatient: int = 0
	habilitation_outpatient: int = 0

	@field_validator("*", mode="before")
	@classmethod
	def _non_negative(cls, value: Any) -> int:
		return coerce_count(value)

	def count(self, visit_type: VisitType) -> int:
		return getattr(self, _VISIT_FIELDS[visit_type])

	def as_dict(self) -> dict[VisitType, int]:
		return {visit_type: self.count(visit_type) for visit_type in VisitType}


_VISIT_FIELDS: dict[VisitType, str] = {
	VisitType.PRIMARY_CARE: "primary_care",
	VisitType.SPECIALIST: "specialist",
	VisitType.URGENT_CARE: "urgent_care",
	VisitType.EMERGENCY_ROOM: "emergency_room",
	VisitType.MENTAL_HEALTH: "mental_health",
	VisitType.DIAGNOSTIC_TEST: "diagnostic_test",
	VisitType.IMAGING: "imaging",
	VisitType.REHABILITATION_OUTPATIENT: "rehabilitation_outpatient",
	VisitType.HABILITATION_OUTPATIENT: "habilitation_outpatient",
}


class Medication(CamelModel):
	"""A recurring prescription. A custom per-refill cost replaces tier pricing entirely."""

	id: int | str | None = None
	name: str = ""
	tier: int = 1
	refills_per_year: int = 12
	custom_cost: float | None = None

	@field_validator("name", mode="before")
	@classmethod
	def _name(cls, value: Any) -> str:
		return "" if value is None else str(value)

	@field_validator("tier", mode="before")
	@classmethod
	def _tier(cls, value: Any) -> int:
		return min(max(int(coerce_float(value, 1.0)), 1), 5)

	@field_validator("refills_per_year", mode="before")
	@classmethod
	def _refills(cls, value: Any) -> int:
		# zero or unreadable refill counts fall back to a monthly fill
		refills = coerce_count(value)
		return refills or 12

	@field_validator("custom_cost", mode="before")
	@classmethod
	def _custom_cost(cls, value: Any) -> float | None:
		cost = coerce_float(value)
		return cost if cost > 0 else None


class Person(CamelModel):
	"""A household member with expected utilization."""

	id: int | str | None = None
	name: str = ""
	visits: VisitCounts = Field(default_factory=VisitCounts)
	medications: list[Medication] = Field(default_factory=list)

	@field_validator("name", mode="before")
	@classmethod
	def _name(cls, value: Any) -> str:
		return "" if value is None else str(value)

	@field_validator("visits", mode="before")
	@classmethod
	def _visits(cls, value: Any) -> Any:
		return value if isinstance(value, (dict, VisitCounts)) else {}

	@field_validator("medications", mode="before")
	@classmethod
	def _medications(cls, value: Any) -> Any:
		if not isinstance(value, list):
			return []
		return [item for item in value if isinstance(item, (dict, Medication))]


class Copay(BaseModel):
	"""Flat dollar amount owed per occurrence."""

	kind: Literal["copay"] = "copay"
	amount: float = 0.0

	@field_validator("amount", mode="before")
	@classmethod
	def _amount(cls, value: Any) -> float:
		return max(coerce_float(value), 0.0)

	@property
	def value(self) -> float:
		return self.amount


class Coinsurance(BaseModel):
	"""Share of the service cost owed after the deductible, expressed as 0..1."""

	kind: Literal["coinsurance"] = "coinsurance"
	rate: float = 0.0

	@field_validator("rate", mode="before")
	@classmethod
	def _rate(cls, value: Any) -> float:
		return min(max(coerce_float(value), 0.0), 1.0)

	@property
	def value(self) -> float:
		return self.rate


PriceRule = Annotated[Union[Copay, Coinsurance], Field(discriminator="kind")]


def visit_price_rule(value: Any) -> Copay | Coinsurance:
	"""Resolve a legacy visit copay number: strictly between 0 and 1 is a rate, anything else dollars."""

	if isinstance(value, (Copay, Coinsurance)):
		return value
	if isinstance(value, dict) and value.get("kind") in {"copay", "coinsurance"}:
		return Coinsurance(**value) if value["kind"] == "coinsurance" else Copay(**value)
	number = coerce_float(value)
	if 0 < number < 1:
		return Coinsurance(rate=number)
	return Copay(amount=number)


def rx_price_rule(value: Any) -> Copay | Coinsurance:
	"""Resolve a legacy drug tier number: above 1 is a copay, 0..1 is a coinsurance rate.

	Zero stays a $0 copay ("no charge") rather than a 0% coinsurance drug.
	"""

	if isinstance(value, (Copay, Coinsurance)):
		return value
	if isinstance(value, dict) and value.get("kind") in {"copay", "coinsurance"}:
		return Coinsurance(**value) if value["kind"] == "coinsurance" else Copay(**value)
	number = coerce_float(value)
	if 0 < number <= 1:
		return Coinsurance(rate=number)
	return Copay(amount=number)


class CostShareLimits(CamelModel):
	"""Per-person and family thresholds. Zero means the plan sets no limit of that kind."""

	person: float = 0.0
	family: float = 0.0

	@field_validator("person", "family", mode="before")
	@classmethod
	def _amount(cls, value: Any) -> float:
		return max(coerce_float(value), 0.0)


def _limits(value: Any) -> Any:
	return value if isinstance(value, (dict, CostShareLimits)) else {}


class Plan(CamelModel):
	"""An insurance plan as authored by the user or imported from JSON."""

	id: int | str | None = None
	name: str = ""
	premium: float = 0.0
	medical_deductible: CostShareLimits = Field(default_factory=CostShareLimits)
	rx_deductible: CostShareLimits = Field(default_factory=CostShareLimits)
	out_of_pocket_max: CostShareLimits = Field(default_factory=CostShareLimits)
	copays: dict[str, PriceRule] = Field(default_factory=dict)
	coinsurance: dict[str, float] = Field(default_factory=dict)
	rx_copays: dict[str, PriceRule] = Field(default_factory=dict)
	rx_deductible_waived: list[int] = Field(default_factory=list)
	children_dental_checkup: float = 0.0
	children_eye_exam: float = 0.0

	@field_validator("name", mode="before")
	@classmethod
	def _name(cls, value: Any) -> str:
		return "" if value is None else str(value)

	@field_validator("premium", "children_dental_checkup", "children_eye_exam", mode="before")
	@classmethod
	def _money(cls, value: Any) -> float:
		return coerce_float(value)

	@field_validator("medical_deductible", "rx_deductible", "out_of_pocket_max", mode="before")
	@classmethod
	def _limit_block(cls, value: Any) -> Any:
		return _limits(value)

	@field_validator("copays", mode="before")
	@classmethod
	def _copays(cls, value: Any) -> dict[str, Copay | Coinsurance]:
		if not isinstance(value, dict):
			return {}
		return {str(key): visit_price_rule(raw) for key, raw in value.items()}

	@field_validator("rx_copays", mode="before")
	@classmethod
	def _rx_copays(cls, value: Any) -> dict[str, Copay | Coinsurance]:
		if not isinstance(value, dict):
			return {}
		return {str(key): rx_price_rule(raw) for key, raw in value.items()}

	@field_validator("coinsurance", mode="before")
	@classmethod
	def _coinsurance(cls, value: Any) -> dict[str, float]:
		if not isinstance(value, dict):
			return {}
		return {str(key): coerce_float(raw) for key, raw in value.items()}

	@field_validator("rx_deductible_waived", mode="before")
	@classmethod
	def _waived(cls, value: Any) -> list[int]:
		if not isinstance(value, list):
			return []
		return [int(coerce_float(tier)) for tier in value if coerce_float(tier, -1.0) >= 0]

	def visit_rule(self, visit_type: VisitType) -> Copay | Coinsurance:
		return self.copays.get(visit_type.value) or Copay()

	def rx_rule(self, tier: int) -> Copay | Coinsurance:
		return self.rx_copays.get(f"tier{tier}") or Copay()


class CostSettings(CamelModel):
	"""Assumed dollar cost per occurrence for services priced by coinsurance."""

	emergency_room: float = 1500.0
	diagnostic_test: float = 300.0
	imaging: float = 200.0
	rehabilitation_outpatient: float = 150.0
	habilitation_outpatient: float = 150.0
	hospital_facility: float = 5000.0
	outpatient_surgery_facility: float = 3000.0
	outpatient_surgery_asc: float = Field(default=2000.0, alias="outpatientSurgeryASC")
	physician_surgeon: float = 1000.0
	childbirth: float = 10000.0
	skilled_nursing: float = 500.0
	home_health_care: float = 200.0
	dme: float = 500.0
	hospice: float = 300.0
	children_glasses: float = 150.0

	@field_validator("*", mode="before")
	@classmethod
	def _amount(cls, value: Any) -> float:
		return max(coerce_float(value), 0.0)

	def cost_for(self, visit_type: VisitType) -> float:
		field_name = _VISIT_FIELDS[visit_type]
		return float(getattr(self, field_name, 0.0))


class ChargeItem(CamelModel):
	"""One priced line of a person's expected spend."""

	label: str
	calculation_note: str
	cost: float
	coinsurance_rate: float | None = None


class ChargeBuckets(CamelModel):
	"""A person's charges split by whether they count toward the deductible."""

	exempt: list[ChargeItem] = Field(default_factory=list)
	deductible_applicable: list[ChargeItem] = Field(default_factory=list)
	detected_rate: float = 0.0

	@property
	def exempt_total(self) -> float:
		return sum(item.cost for item in self.exempt)

	@property
	def deductible_applicable_total(self) -> float:
		return sum(item.cost for item in self.deductible_applicable)


class PersonBreakdown(CamelModel):
	"""Per-person result of the estimation pipeline."""

	person_id: int | str | None = None
	person_name: str
	exempt: list[ChargeItem] = Field(default_factory=list)
	deductible_applicable: list[ChargeItem] = Field(default_factory=list)
	exempt_total: float
	deductible_applicable_total: float
	deductible_paid: float
	charges_after_deductible: float
	coinsurance_rate: float
	coinsurance_paid: float
	total_before_moop: float
	out_of_pocket: float
	note: str | None = None


class PremiumBreakdown(CamelModel):
	monthly_premium: float
	months_per_year: int = 12
	annual_premium: float


class DeductibleBreakdown(CamelModel):
	individual_limit: float
	family_limit: float
	total_paid: float
	family_limit_reached: bool = False


class CoinsuranceBreakdown(CamelModel):
	mode: str
	charges_after_deductible: float
	total_paid: float


class OopBreakdown(CamelModel):
	individual_limit: float
	family_limit: float
	family_oop_paid: float
	final_family_oop: float
	individual_moop_hits: list[str] = Field(default_factory=list)
	family_moop_hit: bool = False


class FullBreakdown(CamelModel):
	"""Itemized estimate for the drill-down view of one plan."""

	plan_name: str
	premium_breakdown: PremiumBreakdown
	person_breakdowns: list[PersonBreakdown] = Field(default_factory=list)
	deductible_breakdown: DeductibleBreakdown
	coinsurance_breakdown: CoinsuranceBreakdown
	oop_breakdown: OopBreakdown
	grand_total: float


class CostSummary(CamelModel):
	"""Terse estimate used by plan comparison cards."""

	premium: float
	visits: float
	medications: float = 0.0
	total: float


class Scenarios(CamelModel):
	"""Three utilization profiles for the same household."""

	best_case: list[Person] = Field(default_factory=list)
	most_likely: list[Person] = Field(default_factory=list)
	worst_case: list[Person] = Field(default_factory=list)


class EstimateRequest(CamelModel):
	"""Payload for the estimate endpoints."""

	plan: Plan
	people: list[Person] = Field(default_factory=list)
	cost_settings: CostSettings | None = None
	coinsurance_mode: str | None = None


class CompareRequest(CamelModel):
	"""Payload comparing several plans for one household."""

	plans: list[Plan]
	people: list[Person] = Field(default_factory=list)
	cost_settings: CostSettings | None = None
	scenarios: bool = False
	coinsurance_mode: str | None = None


class ScenarioRequest(CamelModel):
	people: list[Person] = Field(default_factory=list)


class PlanImportRequest(CamelModel):
	"""A plan JSON document (object or raw text) and the monthly premium to attach."""

	data: dict[str, Any] | list[Any] | str
	premium: float | None = None
	current_plans: list[Plan] = Field(default_factory=list)


class PeopleImportRequest(CamelModel):
	data: dict[str, Any] | list[Any] | str
	current_people: list[Person] = Field(default_factory=list)
