"""Plan and household import, plus default templates for new records."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Iterable

from carecompare.models import Person, Plan, VisitType, coerce_float

logger = logging.getLogger(__name__)

REQUIRED_PLAN_FIELDS: tuple[str, ...] = (
    "name",
    "medicalDeductible",
    "rxDeductible",
    "outOfPocketMax",
    "copays",
    "coinsurance",
    "rxCopays",
)

DEFAULT_VISITS: dict[str, int] = {visit_type.value: 0 for visit_type in VisitType}

DEFAULT_PLAN: dict[str, Any] = {
    "premium": 0,
    "medicalDeductible": {"person": 0, "family": 0},
    "rxDeductible": {"person": 0, "family": 0},
    "outOfPocketMax": {"person": 0, "family": 0},
    "copays": {
        "primaryCare": 0,
        "specialist": 0,
        "urgentCare": 0,
        "emergencyRoom": 0,
        "mentalHealth": 0,
        "diagnosticTest": 0,
        "diagnosticTestLab": 0,
        "imaging": 0,
        "rehabilitationOutpatient": 0,
        "habilitationOutpatient": 0,
    },
    "coinsurance": {
        "hospitalFacility": 0,
        "outpatientSurgeryFacility": 0,
        "outpatientSurgeryASC": 0,
        "physicianSurgeon": 0,
        "childbirth": 0,
        "skilledNursing": 0,
        "homeHealthCare": 0,
        "dme": 0,
        "hospice": 0,
        "childrenGlasses": 0,
    },
    "rxCopays": {"tier1": 0, "tier2": 0, "tier3": 0, "tier4": 0, "tier5": 0},
    "rxDeductibleWaived": [],
    "childrenDentalCheckup": 0,
    "childrenEyeExam": 0,
}

PLAN_IMPORT_PROMPT = """Please analyze the attached Summary of Benefits and Coverage (SBC) document and extract the insurance plan information into the following JSON format. Pay close attention to copays, coinsurance percentages, and deductibles.

JSON Format Required:
{
  "name": "Plan Name (e.g., Bronze 6900, Silver 3000)",
  "medicalDeductible": {"person": 0, "family": 0},
  "rxDeductible": {"person": 0, "family": 0},
  "outOfPocketMax": {"person": 0, "family": 0},
  "copays": {
    "primaryCare": 0,
    "specialist": 0,
    "urgentCare": 0,
    "emergencyRoom": 0,
    "mentalHealth": 0,
    "diagnosticTest": 0,
    "diagnosticTestLab": 0,
    "imaging": 0.50,
    "rehabilitationOutpatient": 0,
    "habilitationOutpatient": 0
  },
  "coinsurance": {
    "hospitalFacility": 0.50,
    "outpatientSurgeryFacility": 0.50,
    "outpatientSurgeryASC": 0.25,
    "physicianSurgeon": 0.50,
    "childbirth": 0.50,
    "skilledNursing": 0.50,
    "homeHealthCare": 0.50,
    "dme": 0.50,
    "hospice": 0.50,
    "childrenGlasses": 0.50
  },
  "rxCopays": {"tier1": 15, "tier2": 30, "tier3": 0.30, "tier4": 0.50, "tier5": 0.50},
  "rxDeductibleWaived": [1, 2],
  "childrenDentalCheckup": 95,
  "childrenEyeExam": 0
}

Important Notes:
- For copays: Use dollar amounts (e.g., 45 for $45 copay)
- For coinsurance: Use decimal values (e.g., 0.50 for 50% coinsurance, 0.25 for 25%)
- For rxCopays: Tiers 1-2 are typically dollar amounts, Tiers 3-5 are typically coinsurance percentages (decimals)
- rxDeductibleWaived: Array of tier numbers where prescription deductible is waived
- If a service shows "No charge" or "$0", use 0
- If a service shows percentage coinsurance, convert to decimal (50% = 0.50)
- Look for separate prescription drug benefits section for rxCopays and rxDeductible
- Dental and vision benefits may be in separate sections

Please provide only the JSON object as your response, with accurate values extracted from the document."""


class PlanImportError(ValueError):
    """Raised when imported plan data cannot be used; the message is shown to the user."""


def _parse(data: Any) -> Any:
    if isinstance(data, (str, bytes)):
        try:
            return json.loads(data)
        except json.JSONDecodeError as exc:
            raise PlanImportError(f"Invalid JSON: {exc.msg}") from exc
    return data


def _as_list(data: Any) -> list[Any]:
    return data if isinstance(data, list) else [data]


def _next_id(existing: Iterable[Any], offset: int) -> int:
    ids = [int(coerce_float(getattr(item, "id", None))) for item in existing]
    return max(ids + [0]) + offset + 1


def missing_plan_fields(data: dict[str, Any]) -> list[str]:
    return [field for field in REQUIRED_PLAN_FIELDS if field not in data]


def create_new_person(person_id: int, name: str | None = None) -> Person:
    return Person(id=person_id, name=name or f"Person {person_id}", visits=dict(DEFAULT_VISITS), medications=[])


def create_new_plan(plan_id: int, name: str | None = None) -> Plan:
    template = copy.deepcopy(DEFAULT_PLAN)
    template.update({"id": plan_id, "name": name or f"Plan {plan_id}"})
    return Plan.model_validate(template)


def import_plan_from_json(data: Any, premium: Any, new_id: int) -> Plan:
    """Build a plan from one imported JSON object (dict or raw text).

    The premium entered alongside the import replaces any premium in the document.
    """

    payload = _parse(data)
    if not isinstance(payload, dict):
        raise PlanImportError("Plan JSON must be an object")
    missing = missing_plan_fields(payload)
    if missing:
        logger.info("rejected plan import, missing %s", ", ".join(missing))
        raise PlanImportError("Missing required fields: " + ", ".join(missing))

    merged = {
        "rxDeductibleWaived": [],
        "childrenDentalCheckup": 0,
        "childrenEyeExam": 0,
        **payload,
        "id": new_id,
        "premium": coerce_float(premium),
    }
    return Plan.model_validate(merged)


def import_plans(data: Any, current_plans: Iterable[Plan]) -> list[Plan]:
    """Import one or many plans, skipping entries without the required fields."""

    existing = list(current_plans)
    imported: list[Plan] = []
    for entry in _as_list(_parse(data)):
        if not isinstance(entry, dict) or missing_plan_fields(entry):
            logger.info("skipped plan entry without required fields")
            continue
        merged = {
            "id": _next_id(existing, len(imported)),
            "name": entry["name"],
            "premium": coerce_float(entry.get("premium")),
            "medicalDeductible": entry["medicalDeductible"],
            "rxDeductible": entry["rxDeductible"],
            "outOfPocketMax": entry["outOfPocketMax"],
            "copays": {**DEFAULT_PLAN["copays"], **(entry.get("copays") or {})},
            "coinsurance": {**DEFAULT_PLAN["coinsurance"], **(entry.get("coinsurance") or {})},
            "rxCopays": {**DEFAULT_PLAN["rxCopays"], **(entry.get("rxCopays") or {})},
            "rxDeductibleWaived": entry.get("rxDeductibleWaived") or [],
            "childrenDentalCheckup": entry.get("childrenDentalCheckup") or 0,
            "childrenEyeExam": entry.get("childrenEyeExam") or 0,
        }
        imported.append(Plan.model_validate(merged))
    return imported


def import_people(data: Any, current_people: Iterable[Person]) -> list[Person]:
    """Import one or many people. Entries need a name, visits and a medications key."""

    existing = list(current_people)
    imported: list[Person] = []
    for entry in _as_list(_parse(data)):
        if not isinstance(entry, dict):
            continue
        if not entry.get("name") or not isinstance(entry.get("visits"), dict) or "medications" not in entry:
            logger.info("skipped person entry without name, visits or medications")
            continue
        visits = entry["visits"]
        imported.append(
            Person.model_validate(
                {
                    "id": _next_id(existing, len(imported)),
                    "name": entry["name"],
                    "medications": entry.get("medications") or [],
                    "visits": {**DEFAULT_VISITS, **visits},
                }
            )
        )
    return imported
