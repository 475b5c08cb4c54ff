from __future__ import annotations

import pytest

from carecompare import storage


@pytest.fixture(autouse=True)
def isolated_data_root(tmp_path, monkeypatch):
	"""Point session storage at a throwaway directory for every test."""

	monkeypatch.setattr(storage, "DATA_ROOT", tmp_path)
	storage.set_current_session(None)
	yield tmp_path
	storage.set_current_session(None)
