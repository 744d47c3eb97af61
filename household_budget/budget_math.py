"""Planned-vs-actual budget arithmetic.

Planned figures are declared once in any :class:`~household_budget.money.Frequency`
and compared with actual transaction activity in a reporting window:

- ``month`` view: one calendar month; planned = monthly figure.
- ``period`` view: everything since the budget period started; planned =
  monthly figure x elapsed calendar months (inclusive, minimum 1).

Monthly figures are always derived as yearly / 12. Transactions in the System
ignore category never count towards any actual total.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from .models import BudgetPlan, Category, CategoryType, PlannedFigure, Transaction
from .money import DEFAULT_SCALE, Frequency, Money, sum_money
from .rules import DEFAULT_RULES, RuleSet


class ViewMode(StrEnum):
    MONTH = "month"
    PERIOD = "period"


type Named = PlannedFigure | Category | str

_MONTH_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})\s*$")

# ---------------------------------------------------------------------------
# Reporting window
# ---------------------------------------------------------------------------


def parse_month(selected_month: str) -> tuple[int, int]:
    """``"2024-5"`` / ``"2024-05"`` -> ``(2024, 5)``."""

    m = _MONTH_RE.match(selected_month)
    if not m or not 1 <= int(m.group(2)) <= 12:
        raise ValueError(f"invalid month {selected_month!r}; expected YYYY-MM")
    return int(m.group(1)), int(m.group(2))


def filter_by_period(
    transactions: Iterable[Transaction],
    view_mode: ViewMode | str = ViewMode.MONTH,
    selected_month: str | None = None,
    period_start: dt.date | None = None,
    *,
    today: dt.date | None = None,
) -> list[Transaction]:
    """Transactions inside the reporting window, in their original order.

    Undated transactions are never inside a window. In ``period`` mode a
    missing ``period_start`` means the period starts today.
    """

    mode = ViewMode(view_mode)
    ref = today or dt.date.today()
    dated = [t for t in transactions if t.date is not None]
    if mode is ViewMode.PERIOD:
        start = period_start or ref
        return [t for t in dated if t.date >= start]

    year, month = parse_month(selected_month) if selected_month else (ref.year, ref.month)
    return [t for t in dated if t.date.year == year and t.date.month == month]


def months_elapsed(period_start: dt.date | None, *, today: dt.date | None = None) -> int:
    """Calendar months touched since ``period_start``, counting both ends; at least 1."""

    if period_start is None:
        return 1
    ref = today or dt.date.today()
    months = (ref.year - period_start.year) * 12 + (ref.month - period_start.month) + 1
    return max(1, months)


# ---------------------------------------------------------------------------
# Planned figures
# ---------------------------------------------------------------------------


def planned_yearly(figures: Iterable[PlannedFigure], *, scale: int = DEFAULT_SCALE) -> Money:
    return sum_money((f.amount.to_yearly(f.frequency) for f in figures), scale=scale)


def planned_monthly(figures: Iterable[PlannedFigure], *, scale: int = DEFAULT_SCALE) -> Money:
    """Sum of the yearly figures divided by 12 (one rounding step)."""

    return planned_yearly(figures, scale=scale).from_yearly(Frequency.MONTHLY)


def planned_for_period(
    figures: Iterable[PlannedFigure], months: int, *, scale: int = DEFAULT_SCALE
) -> Money:
    return planned_monthly(figures, scale=scale).multiply(max(1, months))


def figure_monthly(figure: PlannedFigure) -> Money:
    return figure.amount.to_yearly(figure.frequency).from_yearly(Frequency.MONTHLY)


# ---------------------------------------------------------------------------
# Actuals
# ---------------------------------------------------------------------------


def _name_of(item: Named) -> str:
    return item if isinstance(item, str) else item.name


def _fold(text: str | None) -> str:
    return " ".join((text or "").split()).casefold()


def matches(transaction: Transaction, name: str, rules: RuleSet | None = None) -> bool:
    """Whether ``transaction`` belongs to the figure/category called ``name``.

    True when the transaction's category name equals ``name`` (ignoring
    case), when the description contains ``name``, or when the description
    contains a configured synonym of it (salary/payroll, freelance/contract).
    """

    target = _fold(name)
    if not target:
        return False
    if transaction.category is not None and _fold(transaction.category.name) == target:
        return True
    desc = _fold(transaction.description)
    if target in desc:
        return True
    rs = rules or DEFAULT_RULES
    return any(syn in desc for syn in rs.synonyms_for(target))


def _is_savings(transaction: Transaction, keywords: Sequence[str]) -> bool:
    category_name = _fold(transaction.category.name) if transaction.category else ""
    desc = _fold(transaction.description)
    return any(kw in category_name or kw in desc for kw in keywords)


def actual(
    transactions: Iterable[Transaction],
    names: Iterable[Named],
    kind: CategoryType,
    rules: RuleSet | None = None,
    *,
    scale: int = DEFAULT_SCALE,
) -> Money:
    """Actual activity matched to ``names`` for a figure ``kind``.

    - Income: positive transactions only, summed as-is.
    - Expense: negative transactions only, summed as magnitudes.
    - Savings: either sign, summed as magnitudes; the rule set's savings
      keywords count as names too.

    Each transaction is counted at most once.
    """

    rs = rules or DEFAULT_RULES
    targets = [_fold(_name_of(n)) for n in names]
    targets = [t for t in targets if t]
    counted = [t for t in transactions if not t.is_ignored]

    if kind is CategoryType.INCOME:
        picked = [
            t.amount
            for t in counted
            if t.amount.is_positive() and any(matches(t, n, rs) for n in targets)
        ]
    elif kind is CategoryType.EXPENSE:
        picked = [
            t.amount.abs()
            for t in counted
            if t.amount.is_negative() and any(matches(t, n, rs) for n in targets)
        ]
    elif kind is CategoryType.SAVINGS:
        keywords = list(dict.fromkeys([*rs.savings_keywords, *targets]))
        picked = [t.amount.abs() for t in counted if _is_savings(t, keywords)]
    else:
        raise ValueError(f"no actuals for category type {kind}")
    return sum_money(picked, scale=scale)


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlannedActual:
    planned: Money
    actual: Money


@dataclass(frozen=True, slots=True)
class PerformanceLine:
    name: str
    planned: Money
    actual: Money


@dataclass(frozen=True, slots=True)
class BudgetPerformance:
    income: PlannedActual
    expenses: PlannedActual
    savings: PlannedActual
    months: int = 1


def figure_performance(
    figures: Iterable[PlannedFigure],
    transactions: Sequence[Transaction],
    kind: CategoryType,
    *,
    months: int = 1,
    rules: RuleSet | None = None,
) -> list[PerformanceLine]:
    """One planned/actual line per figure; planned covers ``months`` months."""

    return [
        PerformanceLine(
            name=f.name,
            planned=figure_monthly(f).multiply(max(1, months)),
            actual=actual(transactions, [f.name], kind, rules, scale=f.amount.scale),
        )
        for f in figures
    ]


def budget_performance(
    plan: BudgetPlan,
    transactions: Iterable[Transaction],
    view_mode: ViewMode | str = ViewMode.MONTH,
    selected_month: str | None = None,
    categories: Sequence[Category] = (),
    *,
    today: dt.date | None = None,
    rules: RuleSet | None = None,
) -> BudgetPerformance:
    """Planned vs actual totals for income, expenses and savings in one window.

    Expense actuals match the plan's expense figures and every Expense-type
    category; savings actuals match the plan's savings figures and the
    savings keywords.
    """

    mode = ViewMode(view_mode)
    window = filter_by_period(transactions, mode, selected_month, plan.period_start, today=today)
    months = 1 if mode is ViewMode.MONTH else months_elapsed(plan.period_start, today=today)

    expense_names: list[Named] = [
        *plan.expenses,
        *(c for c in categories if c.type is CategoryType.EXPENSE),
    ]
    return BudgetPerformance(
        income=PlannedActual(
            planned=planned_for_period(plan.income, months),
            actual=actual(window, plan.income, CategoryType.INCOME, rules),
        ),
        expenses=PlannedActual(
            planned=planned_for_period(plan.expenses, months),
            actual=actual(window, expense_names, CategoryType.EXPENSE, rules),
        ),
        savings=PlannedActual(
            planned=planned_for_period(plan.savings, months),
            actual=actual(window, plan.savings, CategoryType.SAVINGS, rules),
        ),
        months=months,
    )


@dataclass(frozen=True, slots=True)
class CategoryTotal:
    category: Category
    spent: Money


def category_totals(
    transactions: Iterable[Transaction], categories: Iterable[Category]
) -> list[CategoryTotal]:
    """Outflow per category (as a magnitude), in category order.

    A transaction belongs to a category when its category has the same id or
    the same name (ignoring case).
    """

    outflows = [
        t
        for t in transactions
        if t.amount.is_negative() and t.category is not None and not t.is_ignored
    ]
    totals: list[CategoryTotal] = []
    for cat in categories:
        if cat.is_system:
            continue
        name = _fold(cat.name)
        spent = sum_money(
            t.amount.abs()
            for t in outflows
            if t.category.id == cat.id or _fold(t.category.name) == name
        )
        totals.append(CategoryTotal(category=cat, spent=spent))
    return totals


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------

_BALANCE_TOLERANCE_MINOR = 1


@dataclass(frozen=True, slots=True)
class BudgetBalance:
    """Income minus (expenses + savings).

    ``remaining`` is signed; ``difference`` is its magnitude. A difference of
    at most one minor unit counts as balanced.
    """

    remaining: Money
    difference: Money
    is_balanced: bool
    is_over_budget: bool
    is_under_budget: bool


def check_balance(income: Money, expenses: Money, savings: Money) -> BudgetBalance:
    remaining = income.subtract(expenses.add(savings))
    return BudgetBalance(
        remaining=remaining,
        difference=remaining.abs(),
        is_balanced=abs(remaining.minor) <= _BALANCE_TOLERANCE_MINOR,
        is_over_budget=remaining.is_negative(),
        is_under_budget=remaining.is_positive(),
    )


def check_plan_balance(plan: BudgetPlan) -> BudgetBalance:
    """:func:`check_balance` on the plan's monthly income, expenses and savings."""

    return check_balance(
        planned_monthly(plan.income),
        planned_monthly(plan.expenses),
        planned_monthly(plan.savings),
    )


__all__ = [
    "ViewMode",
    "parse_month",
    "filter_by_period",
    "months_elapsed",
    "planned_yearly",
    "planned_monthly",
    "planned_for_period",
    "figure_monthly",
    "matches",
    "actual",
    "PlannedActual",
    "PerformanceLine",
    "BudgetPerformance",
    "figure_performance",
    "budget_performance",
    "CategoryTotal",
    "category_totals",
    "BudgetBalance",
    "check_balance",
    "check_plan_balance",
]
