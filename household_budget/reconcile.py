"""User-driven corrections to an imported transaction list.

Every action is a pure function: it takes the current list and returns a
complete replacement list (never a delta), so the caller can persist the
result with "write whole list" semantics. Inputs are never mutated.

Split and combine preserve the sum of amounts:

- ``split``: the parts' magnitudes must add up to ``|A|`` exactly; each part
  takes the original's sign. Anything else is refused with
  :class:`UnbalancedSplitError`, which carries the signed remaining delta.
- ``combine``: the merged amount is the :meth:`Money.add` sum of all inputs.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Literal

from .classifier import learn_merchant_mapping
from .errors import EmptyCombineError, TransactionNotFoundError, UnbalancedSplitError
from .logging_setup import get_logger
from .merchants import MerchantMappings
from .models import Category, Source, Transaction
from .money import Money, sum_money

_logger = get_logger("household_budget.reconcile")


def _reviewed(category: Category | None) -> dict[str, object]:
    # An uncategorized row stays in the review queue after any edit.
    if category is None:
        return {"confidence": 0.0, "needs_review": True}
    return {"confidence": 1.0, "needs_review": False}


type SplitStatus = Literal["balanced", "under", "over"]


@dataclass(frozen=True, slots=True)
class SplitItem:
    """One requested part of a split. ``amount`` is a magnitude."""

    amount: Money
    description: str = ""
    category: Category | None = None


@dataclass(frozen=True, slots=True)
class SplitBalance:
    """How far the requested parts are from the original amount.

    ``remaining`` is ``|A| - allocated``: positive when under-allocated,
    negative when over-allocated, zero when balanced.
    """

    allocated: Money
    remaining: Money
    status: SplitStatus

    @property
    def is_balanced(self) -> bool:
        return self.status == "balanced"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _index_of(transactions: Sequence[Transaction], tx_id: str) -> int:
    for i, tx in enumerate(transactions):
        if tx.id == tx_id:
            return i
    raise TransactionNotFoundError(tx_id)


def _replace_at(
    transactions: Sequence[Transaction], tx_id: str, parts: Sequence[Transaction]
) -> list[Transaction]:
    i = _index_of(transactions, tx_id)
    return [*transactions[:i], *parts, *transactions[i + 1 :]]


def find(transactions: Sequence[Transaction], tx_id: str) -> Transaction:
    return transactions[_index_of(transactions, tx_id)]


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------


def edit(
    transactions: Sequence[Transaction],
    tx_id: str,
    *,
    date: dt.date | None = None,
    description: str | None = None,
    amount: Money | None = None,
) -> list[Transaction]:
    """Change date/description/amount of one transaction.

    ``amount`` is taken as a magnitude and given the original's sign, so an
    expense stays an expense. Blank or omitted fields keep their value.
    """

    original = find(transactions, tx_id)
    updated = replace(
        original,
        date=date or original.date,
        description=(description or "").strip() or original.description,
        amount=amount.with_sign_of(original.amount) if amount is not None else original.amount,
        **_reviewed(original.category),
        source=Source.EDIT,
    )
    return _replace_at(transactions, tx_id, [updated])


# ---------------------------------------------------------------------------
# Split
# ---------------------------------------------------------------------------


def split_balance(original: Transaction, items: Sequence[SplitItem]) -> SplitBalance:
    target = original.amount.abs()
    allocated = sum_money((item.amount.abs() for item in items), scale=target.scale)
    remaining = target.subtract(allocated)
    if remaining.is_zero():
        status: SplitStatus = "balanced"
    elif remaining.is_positive():
        status = "under"
    else:
        status = "over"
    return SplitBalance(allocated=allocated, remaining=remaining, status=status)


def auto_distribute(amount: Money, parts: int) -> list[Money]:
    """Divide ``amount`` into ``parts`` near-equal amounts summing exactly to it.

    The last part absorbs the rounding remainder.
    """

    return amount.allocate(parts)


def distribute_items(original: Transaction, items: Sequence[SplitItem]) -> list[SplitItem]:
    """Return ``items`` with amounts rewritten to an even split of ``|A|``."""

    if not items:
        return []
    amounts = auto_distribute(original.amount.abs(), len(items))
    return [replace(item, amount=amt) for item, amt in zip(items, amounts, strict=True)]


def split(
    transactions: Sequence[Transaction], tx_id: str, items: Sequence[SplitItem]
) -> list[Transaction]:
    """Replace one transaction with ``len(items)`` parts at the same position.

    Parts get ids ``<id>-split-<n>`` (1-based), the original's date and sign,
    and their own description and category (falling back to the original's).

    Raises
    ------
    ValueError
        When ``items`` is empty (use :func:`delete` to remove a transaction).
    UnbalancedSplitError
        When the parts do not add up to the original amount.
    """

    if not items:
        raise ValueError("a split needs at least one part")
    original = find(transactions, tx_id)
    balance = split_balance(original, items)
    if not balance.is_balanced:
        raise UnbalancedSplitError(balance)

    total = len(items)
    parts = [
        replace(
            original,
            id=f"{original.id}-split-{n}",
            description=item.description.strip() or original.description,
            amount=item.amount.with_sign_of(original.amount),
            category=item.category or original.category,
            **_reviewed(item.category or original.category),
            source=Source.SPLIT,
            parent_id=original.id,
            split_index=n,
            split_total=total,
        )
        for n, item in enumerate(items, start=1)
    ]
    _logger.debug("split %s into %d part(s)", original.id, total)
    return _replace_at(transactions, tx_id, parts)


def delete(transactions: Sequence[Transaction], tx_id: str) -> list[Transaction]:
    """Remove one transaction: a split into zero parts."""

    return _replace_at(transactions, tx_id, [])


# ---------------------------------------------------------------------------
# Combine
# ---------------------------------------------------------------------------


def combine(
    transactions: Sequence[Transaction], source_id: str, other_ids: Sequence[str]
) -> list[Transaction]:
    """Merge ``other_ids`` into the source transaction.

    The merged record keeps the source's id, date, category and position; its
    amount is the exact sum of all inputs and its description joins theirs
    with ``" + "``. Every input id is recorded in ``combined_ids``.

    Raises
    ------
    EmptyCombineError
        When no other transaction is selected.
    TransactionNotFoundError
        When any id is not in ``transactions``.
    """

    others = [i for i in dict.fromkeys(other_ids) if i != source_id]
    if not others:
        raise EmptyCombineError("select at least one other transaction to combine")

    source = find(transactions, source_id)
    selected = [source, *(find(transactions, i) for i in others)]
    merged = replace(
        source,
        description=" + ".join(t.description for t in selected),
        amount=sum_money((t.amount for t in selected), scale=source.amount.scale),
        **_reviewed(source.category),
        source=Source.COMBINE,
        combined_ids=tuple(t.id for t in selected),
    )

    drop = set(others)
    out: list[Transaction] = []
    for tx in transactions:
        if tx.id == source_id:
            out.append(merged)
        elif tx.id not in drop:
            out.append(tx)
    _logger.debug("combined %d transaction(s) into %s", len(selected), source_id)
    return out


# ---------------------------------------------------------------------------
# Category corrections and manual entry
# ---------------------------------------------------------------------------


def reassign_category(
    transactions: Sequence[Transaction],
    tx_id: str,
    category: Category | None,
    mappings: MerchantMappings,
) -> list[Transaction]:
    """Apply a user's category choice and learn it for the merchant.

    Clearing the category (``None``) puts the transaction back into review.
    """

    original = find(transactions, tx_id)
    if category is None:
        updated = replace(
            original, category=None, confidence=0.0, needs_review=True, confirmed=False
        )
    else:
        updated = replace(
            original, category=category, confidence=1.0, needs_review=False, confirmed=True
        )
        if not category.is_system:
            learn_merchant_mapping(mappings, original.description, category.id)
    return _replace_at(transactions, tx_id, [updated])


def manual_transaction(
    *,
    id: str,
    date: dt.date | None,
    description: str,
    amount: Money,
    category: Category | None = None,
) -> Transaction:
    """A transaction entered by hand: confirmed, confidence 1, no review."""

    return Transaction(
        id=id,
        date=date,
        description=description.strip(),
        amount=amount,
        category=category,
        confidence=1.0,
        needs_review=False,
        confirmed=True,
        source=Source.MANUAL,
    )


def for_save(transactions: Sequence[Transaction]) -> list[Transaction]:
    """The list to hand to persistence: ignore-category rows are dropped."""

    return [t for t in transactions if not t.is_ignored]


__all__ = [
    "SplitItem",
    "SplitBalance",
    "find",
    "edit",
    "split_balance",
    "auto_distribute",
    "distribute_items",
    "split",
    "delete",
    "combine",
    "reassign_category",
    "manual_transaction",
    "for_save",
]
