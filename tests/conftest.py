# tests/conftest.py
from __future__ import annotations

import pytest

from sharedfactor.runtime import reset as reset_runtime


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Every test gets its own workspace and a fresh runtime."""
    home = tmp_path / "workspace"
    monkeypatch.setenv("SHAREDFACTOR_HOME", str(home))
    reset_runtime()
    yield home
    reset_runtime()
