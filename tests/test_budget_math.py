from __future__ import annotations

import datetime as dt

import pytest

from household_budget.budget_math import (
    ViewMode,
    actual,
    budget_performance,
    category_totals,
    check_balance,
    check_plan_balance,
    figure_performance,
    filter_by_period,
    matches,
    months_elapsed,
    parse_month,
    planned_for_period,
    planned_monthly,
    planned_yearly,
)
from household_budget.merchants import MerchantMappings
from household_budget.models import (
    IGNORE_CATEGORY,
    BudgetPlan,
    Category,
    CategoryType,
    PlannedFigure,
    Transaction,
)
from household_budget.money import Frequency, Money
from household_budget.workflows import import_transactions


def _by_id(categories: list[Category], cid: str) -> Category:
    return next(c for c in categories if c.id == cid)


@pytest.fixture
def plan() -> BudgetPlan:
    return BudgetPlan(
        income=(PlannedFigure("Salary", Money.parse_input("5,000")),),
        expenses=(
            PlannedFigure("Groceries", Money.parse_input("150"), Frequency.WEEKLY),
            PlannedFigure("Rent", Money.parse_input("1,500"), Frequency.MONTHLY),
        ),
        savings=(PlannedFigure("Emergency Fund", Money.parse_input("500")),),
        period_start=dt.date(2024, 4, 1),
    )


@pytest.fixture
def txs(categories: list[Category]) -> list[Transaction]:
    def tx(tx_id, date, description, minor, cid=None):
        category = None
        if cid == "ignore":
            category = IGNORE_CATEGORY
        elif cid:
            category = _by_id(categories, cid)
        return Transaction(
            id=tx_id, date=date, description=description, amount=Money(minor), category=category
        )

    return [
        tx("t5", dt.date(2024, 4, 28), "RENT APRIL", -150000, "rent"),
        tx("t1", dt.date(2024, 5, 3), "PAYROLL DEPOSIT", 250000, "salary"),
        tx("t2", dt.date(2024, 5, 5), "WHOLE FOODS", -8240, "groceries"),
        tx("t3", dt.date(2024, 5, 20), "TRANSFER TO SAVINGS", -50000, "ignore"),
        tx("t4", dt.date(2024, 5, 21), "EMERGENCY FUND DEPOSIT", -30000, "emergency"),
        tx("t6", None, "UNDATED", -100),
        tx("t7", dt.date(2024, 5, 25), "Upwork contract payout", 40000),
    ]


# ---- Reporting window ------------------------------------------------------------


def test_filter_by_month(txs: list[Transaction]) -> None:
    may = filter_by_period(txs, ViewMode.MONTH, "2024-05")
    assert [t.id for t in may] == ["t1", "t2", "t3", "t4", "t7"]
    assert filter_by_period(txs, "month", "2024-5") == may

    current = filter_by_period(txs, "month", None, today=dt.date(2024, 4, 2))
    assert [t.id for t in current] == ["t5"]


def test_filter_by_period(txs: list[Transaction]) -> None:
    since = filter_by_period(txs, ViewMode.PERIOD, None, dt.date(2024, 4, 15))
    assert [t.id for t in since] == ["t5", "t1", "t2", "t3", "t4", "t7"]

    # No period start: the period begins today.
    today = filter_by_period(txs, "period", None, None, today=dt.date(2024, 5, 21))
    assert [t.id for t in today] == ["t4", "t7"]


@pytest.mark.parametrize("bad", ["2024-13", "May", "2024/05", ""])
def test_parse_month_rejects_bad_input(bad: str) -> None:
    with pytest.raises(ValueError):
        parse_month(bad)


def test_months_elapsed_counts_both_ends() -> None:
    assert months_elapsed(dt.date(2024, 1, 15), today=dt.date(2024, 5, 1)) == 5
    assert months_elapsed(dt.date(2023, 12, 1), today=dt.date(2024, 1, 31)) == 2
    assert months_elapsed(dt.date(2024, 6, 1), today=dt.date(2024, 5, 1)) == 1
    assert months_elapsed(None) == 1


# ---- Planned figures ------------------------------------------------------------


def test_planned_totals(plan: BudgetPlan) -> None:
    # 150 x 52 + 1,500 x 12
    assert planned_yearly(plan.expenses) == Money(2580000)
    assert planned_monthly(plan.expenses) == Money(215000)
    assert planned_for_period(plan.expenses, 3) == Money(645000)
    assert planned_for_period(plan.expenses, 0) == Money(215000)
    assert planned_monthly([]) == Money(0)


def test_one_time_figures_are_not_planned() -> None:
    figures = [PlannedFigure("Vacation", Money(200000), Frequency.ONE_TIME)]
    assert planned_monthly(figures) == Money(0)


# ---- Actuals ---------------------------------------------------------------------


def test_matches_by_category_description_and_synonym(txs: list[Transaction]) -> None:
    payroll, contract = txs[1], txs[6]
    assert matches(payroll, "salary")
    assert matches(payroll, "Payroll")
    assert matches(contract, "Freelance")
    assert not matches(contract, "Salary")
    assert not matches(payroll, "   ")


def test_actual_by_kind(txs: list[Transaction]) -> None:
    may = filter_by_period(txs, "month", "2024-05")
    assert actual(may, ["Salary"], CategoryType.INCOME) == Money(250000)
    assert actual(may, ["Freelance"], CategoryType.INCOME) == Money(40000)
    assert actual(may, ["Groceries"], CategoryType.EXPENSE) == Money(8240)
    # Income names never pick up outflows and vice versa.
    assert actual(may, ["Groceries"], CategoryType.INCOME) == Money(0)
    assert actual(may, ["Emergency Fund"], CategoryType.SAVINGS) == Money(30000)
    with pytest.raises(ValueError):
        actual(may, ["x"], CategoryType.SYSTEM)


def test_ignored_transactions_never_count(txs: list[Transaction]) -> None:
    may = filter_by_period(txs, "month", "2024-05")
    assert actual(may, ["Transfer"], CategoryType.EXPENSE) == Money(0)
    assert actual(may, ["Savings"], CategoryType.SAVINGS) == Money(30000)
    assert actual(may, [IGNORE_CATEGORY], CategoryType.EXPENSE) == Money(0)


# ---- Performance -----------------------------------------------------------------


def test_month_performance(
    plan: BudgetPlan, txs: list[Transaction], categories: list[Category]
) -> None:
    perf = budget_performance(plan, txs, ViewMode.MONTH, "2024-05", categories)
    assert perf.months == 1
    assert (perf.income.planned, perf.income.actual) == (Money(500000), Money(250000))
    assert (perf.expenses.planned, perf.expenses.actual) == (Money(215000), Money(8240))
    assert (perf.savings.planned, perf.savings.actual) == (Money(50000), Money(30000))


def test_period_performance(
    plan: BudgetPlan, txs: list[Transaction], categories: list[Category]
) -> None:
    perf = budget_performance(
        plan, txs, ViewMode.PERIOD, None, categories, today=dt.date(2024, 5, 31)
    )
    assert perf.months == 2
    assert perf.income.planned == Money(1000000)
    assert perf.expenses.planned == Money(430000)
    assert perf.expenses.actual == Money(158240)
    assert perf.savings.planned == Money(100000)


def test_figure_performance_lines(plan: BudgetPlan, txs: list[Transaction]) -> None:
    may = filter_by_period(txs, "month", "2024-05")
    lines = figure_performance(plan.expenses, may, CategoryType.EXPENSE)
    assert [(line.name, line.planned, line.actual) for line in lines] == [
        ("Groceries", Money(65000), Money(8240)),
        ("Rent", Money(150000), Money(0)),
    ]


def test_category_totals(txs: list[Transaction], categories: list[Category]) -> None:
    may = filter_by_period(txs, "month", "2024-05")
    totals = {line.category.id: line.spent for line in category_totals(may, categories)}
    assert totals == {
        "salary": Money(0),
        "freelance": Money(0),
        "groceries": Money(8240),
        "dining": Money(0),
        "rent": Money(0),
        "emergency": Money(30000),
    }


# ---- Balance ---------------------------------------------------------------------


def test_check_balance_states() -> None:
    under = check_balance(Money(500000), Money(215000), Money(50000))
    assert under.remaining == Money(235000)
    assert (under.is_balanced, under.is_under_budget, under.is_over_budget) == (
        False,
        True,
        False,
    )

    over = check_balance(Money(1000), Money(900), Money(200))
    assert over.is_over_budget and over.difference == Money(100)

    assert check_balance(Money(100), Money(50), Money(49)).is_balanced
    assert check_balance(Money(100), Money(50), Money(50)).is_balanced


def test_check_plan_balance(plan: BudgetPlan) -> None:
    assert check_plan_balance(plan).remaining == Money(235000)


def test_imported_savings_transfer_counts_as_savings(
    plan: BudgetPlan, categories: list[Category]
) -> None:
    result = import_transactions(
        "Date,Description,Amount\n"
        "2024-05-20,TRANSFER TO SAVINGS,-500.00\n"
        "2024-05-21,ONLINE TRANSFER TO CHECKING,-80.00\n",
        categories=categories,
        mappings=MerchantMappings(),
    )
    assert result.summary.ignored == 1

    perf = budget_performance(plan, result.transactions, ViewMode.MONTH, "2024-05", categories)
    assert perf.savings.actual == Money(50000)
    assert perf.expenses.actual == Money(0)
