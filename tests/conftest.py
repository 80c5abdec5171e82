"""Shared pytest fixtures for tillrules tests."""

from __future__ import annotations

import pytest

from tillrules.runtime.paths import reset_paths


@pytest.fixture(autouse=True)
def isolated_project_root(tmp_path, monkeypatch):
    """Point TILLRULES_HOME at a scratch directory for every test."""
    monkeypatch.setenv("TILLRULES_HOME", str(tmp_path))
    reset_paths()
    yield tmp_path
    reset_paths()
