from __future__ import annotations

import importlib

import pytest

from carecompare import config


@pytest.fixture
def reload_config(monkeypatch):
	"""Reload config under patched env vars, then restore the real environment."""

	def _reload():
		return importlib.reload(config)

	yield _reload
	monkeypatch.undo()
	importlib.reload(config)


def test_default_coinsurance_mode_is_per_item(monkeypatch, reload_config) -> None:
	monkeypatch.delenv("CARECOMPARE_COINSURANCE_MODE", raising=False)
	reloaded = reload_config()

	assert reloaded.COINSURANCE_MODE == "per_item"
	assert reloaded.resolve_coinsurance_mode(None) == "per_item"


def test_env_selects_single_rate_mode(monkeypatch, reload_config) -> None:
	monkeypatch.setenv("CARECOMPARE_COINSURANCE_MODE", "Last_Rate_Wins")
	reloaded = reload_config()

	assert reloaded.resolve_coinsurance_mode(None) == "last_rate_wins"
	assert reloaded.resolve_coinsurance_mode("per_item") == "per_item"


def test_unknown_env_mode_falls_back(monkeypatch, reload_config) -> None:
	monkeypatch.setenv("CARECOMPARE_COINSURANCE_MODE", "blended")
	reloaded = reload_config()

	assert reloaded.resolve_coinsurance_mode("") == "per_item"


def test_assumed_rx_cost_from_env(monkeypatch, reload_config) -> None:
	monkeypatch.setenv("CARECOMPARE_ASSUMED_RX_COST", "not-a-number")
	assert reload_config().ASSUMED_RX_COST == 100.0

	monkeypatch.setenv("CARECOMPARE_ASSUMED_RX_COST", "250")
	assert reload_config().ASSUMED_RX_COST == 250.0
