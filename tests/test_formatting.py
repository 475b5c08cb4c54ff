from __future__ import annotations

from carecompare.formatting import format_currency, format_visit_type, money, percent, scenario_label
from carecompare.models import VisitType


def test_format_currency() -> None:
	assert format_currency(1500) == "$1,500"
	assert format_currency(12.5) == "$12.5"
	assert format_currency(0) == "$0"
	assert format_currency(-5) == "-$5"
	assert format_currency("12") == "$0"
	assert format_currency(None) == "$0"


def test_money_and_percent() -> None:
	assert money(1234.5) == "$1,234.50"
	assert percent(0.2) == "20%"
	assert percent(0.125) == "12.5%"


def test_format_visit_type() -> None:
	assert format_visit_type("emergencyRoom") == "Emergency Room"
	assert format_visit_type(VisitType.REHABILITATION_OUTPATIENT) == "Rehabilitation Outpatient"
	assert format_visit_type("imaging") == "Imaging"


def test_scenario_label() -> None:
	assert scenario_label("worstCase") == "Worst Case"
	assert scenario_label("custom") == "custom"
