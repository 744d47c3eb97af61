from __future__ import annotations

import io
import logging

import pytest

from household_budget.logging_setup import configure_logging, get_logger


@pytest.fixture
def restore_logging():
    yield
    configure_logging(force=True)


def test_configure_logging_respects_env_level(
    monkeypatch: pytest.MonkeyPatch, restore_logging: None
) -> None:
    monkeypatch.setenv("HOUSEHOLD_BUDGET_LOG_LEVEL", "warning")
    buf = io.StringIO()
    configure_logging(stream=buf, fmt="%(levelname)s %(message)s", force=True)

    log = get_logger("household_budget.tests")
    log.info("hidden")
    log.warning("shown")
    assert buf.getvalue() == "WARNING shown\n"


def test_second_call_keeps_the_first_handler(restore_logging: None) -> None:
    first, second = io.StringIO(), io.StringIO()
    configure_logging("INFO", stream=first, fmt="%(message)s", force=True)
    configure_logging("DEBUG", stream=second)

    get_logger("household_budget.tests").info("once")
    assert first.getvalue() == "once\n"
    assert second.getvalue() == ""
    assert logging.getLogger("household_budget").level == logging.INFO


def test_forced_reconfigure_switches_level(restore_logging: None) -> None:
    buf = io.StringIO()
    configure_logging("INFO", stream=io.StringIO(), force=True)
    configure_logging("DEBUG", stream=buf, fmt="%(message)s", force=True)

    get_logger("household_budget.tests").debug("detail")
    assert buf.getvalue() == "detail\n"
    assert len(logging.getLogger("household_budget").handlers) == 1
