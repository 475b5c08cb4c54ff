"""Display helpers shared by the API, exports and charge notes."""

from __future__ import annotations

import re
from typing import Any

from carecompare.models import coerce_float

SCENARIOS: tuple[dict[str, str], ...] = (
    {"key": "bestCase", "label": "Best Case"},
    {"key": "mostLikely", "label": "Most Likely"},
    {"key": "worstCase", "label": "Worst Case"},
)

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def format_currency(value: Any) -> str:
    """Render a USD amount with up to two decimals, e.g. ``$1,500`` or ``$12.5``.

    Anything that is not a real number renders as ``$0``.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        amount = 0.0
    else:
        amount = coerce_float(value)
    text = f"{abs(amount):,.2f}".rstrip("0").rstrip(".")
    sign = "-" if round(amount, 2) < 0 else ""
    return f"{sign}${text}"


def money(value: float) -> str:
    """Fixed two-decimal amount used inside calculation notes."""

    return f"${value:,.2f}"


def percent(rate: float) -> str:
    text = f"{rate * 100:.1f}".rstrip("0").rstrip(".")
    return f"{text}%"


def format_visit_type(visit_type: Any) -> str:
    """Turn ``emergencyRoom`` into ``Emergency Room``."""

    raw = getattr(visit_type, "value", visit_type)
    spaced = _CAMEL_BOUNDARY.sub(r" \1", str(raw)).strip()
    return spaced[:1].upper() + spaced[1:]


def scenario_label(key: str) -> str:
    for scenario in SCENARIOS:
        if scenario["key"] == key:
            return scenario["label"]
    return key
