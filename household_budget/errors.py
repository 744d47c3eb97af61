"""Exception hierarchy for ``household_budget``.

Validation states that callers are expected to render (an unclassified row, an
amount cell that could not be parsed) are flags on the returned data, not
exceptions. The types below cover the cases where an operation must refuse to
produce a result.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .reconcile import SplitBalance


class HouseholdBudgetError(Exception):
    """Base class for all package errors."""


class ImportRejectedError(HouseholdBudgetError):
    """The uploaded file cannot be imported at all (wrong type, empty, unreadable).

    ``reason`` is a short, user-facing sentence.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class CsvRejectedError(ImportRejectedError):
    """The file text is not well-formed CSV (e.g. unbalanced quoting)."""


class IncompleteMappingError(HouseholdBudgetError):
    """One or more of date/description/amount is not mapped to a header."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__("column mapping is incomplete; unmapped: " + ", ".join(self.missing))


class InvalidAmountError(HouseholdBudgetError, ValueError):
    """Text could not be interpreted as a monetary amount."""


class TransactionNotFoundError(HouseholdBudgetError, LookupError):
    """A reconciliation action referenced an id that is not in the list."""

    def __init__(self, tx_id: str) -> None:
        super().__init__(f"transaction not found: {tx_id!r}")
        self.tx_id = tx_id


class UnbalancedSplitError(HouseholdBudgetError):
    """A split was finalized while its parts do not add up to the original."""

    def __init__(self, balance: SplitBalance) -> None:
        self.balance = balance
        super().__init__(
            f"split is {balance.status}: remaining {balance.remaining.format(show_cents=True)}"
        )


class EmptyCombineError(HouseholdBudgetError, ValueError):
    """Combine was requested without selecting any other transaction."""


__all__ = [
    "HouseholdBudgetError",
    "ImportRejectedError",
    "CsvRejectedError",
    "IncompleteMappingError",
    "InvalidAmountError",
    "TransactionNotFoundError",
    "UnbalancedSplitError",
    "EmptyCombineError",
]
