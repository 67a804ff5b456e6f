"""Shared fixtures for the backend test suite."""

import pytest


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point the SQLite layer at a per-test file so runs never touch backend/ppl.db."""
    db_file = tmp_path / "ppl_test.db"
    monkeypatch.setenv("PPL_DB_PATH", str(db_file))
    return db_file
