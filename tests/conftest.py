"""Pytest configuration for test isolation.

The engine reads a handful of environment variables (``DATABASE_URL``,
``HOUSEHOLD_BUDGET_RULES``, ``HOUSEHOLD_BUDGET_LOG_LEVEL``) and the database
client keeps one shared engine per process. Either can leak state between
tests: a developer's ``DATABASE_URL`` would point persistence tests at a real
database, and an engine created by one test would refuse the next test's
SQLite URL.

To keep tests hermetic, an autouse fixture clears those variables and disposes
the shared engine around every test.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from helpers.db import bootstrap_sqlite_db

from household_budget.db.client import dispose_engine
from household_budget.models import Category, CategoryType


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop configuration env vars and reset the shared engine per test."""

    for name in ("DATABASE_URL", "HOUSEHOLD_BUDGET_RULES", "HOUSEHOLD_BUDGET_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    dispose_engine()
    yield
    dispose_engine()


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """URL of a fresh file-backed SQLite database with the schema created."""

    return bootstrap_sqlite_db(tmp_path / "hb-test.db")


@pytest.fixture
def categories() -> list[Category]:
    """A small household category list covering every user-facing type."""

    return [
        Category(id="salary", name="Salary", type=CategoryType.INCOME),
        Category(id="freelance", name="Freelance", type=CategoryType.INCOME),
        Category(id="groceries", name="Groceries", type=CategoryType.EXPENSE),
        Category(id="dining", name="Dining", type=CategoryType.EXPENSE),
        Category(id="rent", name="Rent", type=CategoryType.EXPENSE),
        Category(id="emergency", name="Emergency Fund", type=CategoryType.SAVINGS),
    ]
