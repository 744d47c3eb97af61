"""Data models and type aliases for ``household_budget``.

Records that flow through the engine (transactions, categories, planned
figures) are frozen dataclasses: every reconciliation action returns new
instances built with :func:`dataclasses.replace` and never mutates its input.
Shapes that are read from or written to user-editable files (column mappings)
are pydantic models so they are validated on load.

Amount sign convention: positive is an inflow, negative an outflow.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from .money import Frequency, Money

# ---------------------------------------------------------------------------
# Raw CSV rows
# ---------------------------------------------------------------------------

type RawRow = dict[str, str]
"""One CSV data row: column header -> cell text, in file column order."""

MAPPING_FIELDS: tuple[str, ...] = ("date", "description", "amount")


class ColumnMapping(BaseModel):
    """Which CSV header feeds each transaction field.

    A blank string means "not mapped". All three fields must be mapped before
    rows can become transactions.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    date: str = ""
    description: str = ""
    amount: str = ""

    def missing_fields(self) -> tuple[str, ...]:
        return tuple(name for name in MAPPING_FIELDS if not getattr(self, name))

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def headers(self) -> tuple[str, str, str]:
        return (self.date, self.description, self.amount)


@dataclass(frozen=True, slots=True)
class MappedRow:
    """A CSV row after a column mapping has been applied.

    ``amount_error`` is set when the amount cell could not be parsed; the
    amount is then zero and ``raw_amount`` keeps the original text so the user
    can inspect it. ``date`` is ``None`` when the date cell is unparseable.
    """

    index: int
    date: dt.date | None
    description: str
    amount: Money
    raw_amount: str
    amount_error: bool = False
    raw: Mapping[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryType(StrEnum):
    INCOME = "Income"
    EXPENSE = "Expense"
    SAVINGS = "Savings"
    SYSTEM = "System"


@dataclass(frozen=True, slots=True)
class Category:
    """A budget category.

    ``keywords`` is optional; when empty the classifier derives keywords from
    the category name and the configured rule set.
    """

    id: str
    name: str
    type: CategoryType
    keywords: tuple[str, ...] = ()

    @property
    def is_system(self) -> bool:
        return self.type is CategoryType.SYSTEM


IGNORE_CATEGORY_ID = "ignore"

IGNORE_CATEGORY = Category(
    id=IGNORE_CATEGORY_ID,
    name="Ignore",
    type=CategoryType.SYSTEM,
)
"""Transfers, card payments and other rows that must not count anywhere.

Transactions in this category are excluded from every total and are dropped
before the list is handed to persistence.
"""


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class Source(StrEnum):
    """How a transaction record came to exist."""

    IMPORT = "import"
    MANUAL = "manual"
    SPLIT = "split"
    COMBINE = "combine"
    EDIT = "edit"


@dataclass(frozen=True, slots=True)
class Transaction:
    """A categorized financial transaction.

    ``parent_id``/``split_index``/``split_total`` trace a split back to its
    original; ``combined_ids`` lists every id merged into a combined record.
    ``raw`` keeps the source CSV row when the transaction was imported.
    """

    id: str
    date: dt.date | None
    description: str
    amount: Money
    category: Category | None = None
    confidence: float = 0.0
    needs_review: bool = True
    confirmed: bool = False
    source: Source = Source.IMPORT
    parent_id: str | None = None
    split_index: int | None = None
    split_total: int | None = None
    combined_ids: tuple[str, ...] = ()
    raw: Mapping[str, str] | None = None

    @property
    def is_ignored(self) -> bool:
        return self.category is not None and self.category.id == IGNORE_CATEGORY_ID


# ---------------------------------------------------------------------------
# Planned figures
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlannedFigure:
    """A user-declared income, expense or savings line item."""

    name: str
    amount: Money
    frequency: Frequency = Frequency.MONTHLY


@dataclass(frozen=True, slots=True)
class BudgetPlan:
    """Planned figures grouped by kind, plus the start of the budget period."""

    income: tuple[PlannedFigure, ...] = ()
    expenses: tuple[PlannedFigure, ...] = ()
    savings: tuple[PlannedFigure, ...] = ()
    period_start: dt.date | None = None


__all__ = [
    "RawRow",
    "MAPPING_FIELDS",
    "ColumnMapping",
    "MappedRow",
    "CategoryType",
    "Category",
    "IGNORE_CATEGORY_ID",
    "IGNORE_CATEGORY",
    "Source",
    "Transaction",
    "PlannedFigure",
    "BudgetPlan",
]
