"""Configuration flags for CareCompare features."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final


def _get_bool(env_var: str, default: bool) -> bool:
	value = os.getenv(env_var)
	if value is None:
		return default
	return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_float(env_var: str, default: float) -> float:
	value = os.getenv(env_var)
	if value is None or not value.strip():
		return default
	try:
		return float(value)
	except ValueError:
		return default


COINSURANCE_MODES: Final[tuple[str, ...]] = ("per_item", "last_rate_wins")

DATA_ROOT: Final[Path] = Path(os.getenv("CARECOMPARE_DATA_ROOT", "data"))
COINSURANCE_MODE: Final[str] = os.getenv("CARECOMPARE_COINSURANCE_MODE", "per_item").strip().lower()
ASSUMED_RX_COST: Final[float] = _get_float("CARECOMPARE_ASSUMED_RX_COST", 100.0)
AUDIT_ENABLED: Final[bool] = _get_bool("CARECOMPARE_AUDIT", True)
LOG_LEVEL: Final[str] = os.getenv("CARECOMPARE_LOG_LEVEL", "INFO").strip().upper()


def resolve_coinsurance_mode(mode: str | None) -> str:
	"""Return a supported coinsurance mode, falling back to the configured default."""

	candidate = str(mode or "").strip().lower()
	if candidate in COINSURANCE_MODES:
		return candidate
	if COINSURANCE_MODE in COINSURANCE_MODES:
		return COINSURANCE_MODE
	return "per_item"
