from __future__ import annotations

import datetime as dt

import pytest

from household_budget.classifier import classify
from household_budget.errors import (
    EmptyCombineError,
    TransactionNotFoundError,
    UnbalancedSplitError,
)
from household_budget.merchants import MerchantMappings
from household_budget.models import IGNORE_CATEGORY, Category, CategoryType, Source, Transaction
from household_budget.money import Money, sum_money
from household_budget.reconcile import (
    SplitItem,
    auto_distribute,
    combine,
    delete,
    distribute_items,
    edit,
    for_save,
    manual_transaction,
    reassign_category,
    split,
    split_balance,
)

GROCERIES = Category(id="groceries", name="Groceries", type=CategoryType.EXPENSE)
HOUSEHOLD = Category(id="household", name="Household", type=CategoryType.EXPENSE)


def _tx(tx_id: str, minor: int, description: str = "", **kw) -> Transaction:
    return Transaction(
        id=tx_id,
        date=dt.date(2024, 5, 10),
        description=description or f"ROW {tx_id}",
        amount=Money(minor),
        **kw,
    )


@pytest.fixture
def txs() -> list[Transaction]:
    return [
        _tx("t1", -1250, "COFFEE SHOP"),
        _tx("t2", -10000, "TARGET #44", category=GROCERIES, confidence=0.3),
        _tx("t3", 250000, "PAYROLL"),
    ]


# ---- Edit ----------------------------------------------------------------------


def test_edit_keeps_the_original_sign(txs: list[Transaction]) -> None:
    out = edit(txs, "t2", amount=Money(5500), description="  Target groceries ")
    edited = out[1]
    assert edited.amount == Money(-5500)
    assert edited.description == "Target groceries"
    assert edited.date == dt.date(2024, 5, 10)
    assert (edited.confidence, edited.needs_review, edited.source) == (1.0, False, Source.EDIT)
    assert out[0] is txs[0] and out[2] is txs[2]
    # The input list is left alone.
    assert txs[1].amount == Money(-10000)


def test_edit_blank_fields_keep_values(txs: list[Transaction]) -> None:
    out = edit(txs, "t3", description="   ", date=dt.date(2024, 6, 1))
    assert out[2].description == "PAYROLL"
    assert out[2].date == dt.date(2024, 6, 1)
    assert out[2].amount == Money(250000)


def test_unknown_ids_raise(txs: list[Transaction]) -> None:
    with pytest.raises(TransactionNotFoundError):
        edit(txs, "nope", amount=Money(1))
    with pytest.raises(LookupError):
        delete(txs, "nope")


# ---- Split ---------------------------------------------------------------------


def test_split_replaces_original_in_place(txs: list[Transaction]) -> None:
    items = [
        SplitItem(Money(6000), "Food", GROCERIES),
        SplitItem(Money(4000), "", HOUSEHOLD),
    ]
    out = split(txs, "t2", items)

    assert [t.id for t in out] == ["t1", "t2-split-1", "t2-split-2", "t3"]
    first, second = out[1], out[2]
    assert (first.amount, second.amount) == (Money(-6000), Money(-4000))
    assert first.description == "Food"
    assert second.description == "TARGET #44"
    assert (first.category, second.category) == (GROCERIES, HOUSEHOLD)
    assert (first.parent_id, first.split_index, first.split_total) == ("t2", 1, 2)
    assert (second.split_index, second.source) == (2, Source.SPLIT)
    assert first.date == txs[1].date
    assert sum_money(t.amount for t in out) == sum_money(t.amount for t in txs)


def test_split_parts_inherit_the_original_category(txs: list[Transaction]) -> None:
    out = split(txs, "t2", [SplitItem(Money(5000)), SplitItem(Money(5000))])
    assert all(t.category == GROCERIES for t in out[1:3])


def test_unbalanced_split_is_refused_with_delta(txs: list[Transaction]) -> None:
    with pytest.raises(UnbalancedSplitError) as under:
        split(txs, "t2", [SplitItem(Money(6000)), SplitItem(Money(3000))])
    assert under.value.balance.remaining == Money(1000)
    assert under.value.balance.status == "under"

    with pytest.raises(UnbalancedSplitError) as over:
        split(txs, "t2", [SplitItem(Money(6000)), SplitItem(Money(5000))])
    assert over.value.balance.remaining == Money(-1000)
    assert over.value.balance.status == "over"


def test_split_needs_at_least_one_part(txs: list[Transaction]) -> None:
    with pytest.raises(ValueError):
        split(txs, "t2", [])


def test_split_balance_ignores_item_signs(txs: list[Transaction]) -> None:
    balance = split_balance(txs[1], [SplitItem(Money(-7000)), SplitItem(Money(3000))])
    assert balance.is_balanced
    assert balance.allocated == Money(10000)


@pytest.mark.parametrize("minor", [-10001, -1, 1, 99, 123457])
def test_auto_distribute_sums_exactly_for_up_to_twelve_parts(minor: int) -> None:
    amount = Money(minor)
    for parts in range(1, 13):
        shares = auto_distribute(amount, parts)
        assert len(shares) == parts
        assert sum_money(shares) == amount


def test_distributed_items_split_cleanly(txs: list[Transaction]) -> None:
    items = distribute_items(txs[1], [SplitItem(Money(0)) for _ in range(3)])
    assert [i.amount for i in items] == [Money(3333), Money(3333), Money(3334)]
    out = split(txs, "t2", items)
    assert sum_money(t.amount for t in out[1:4]) == Money(-10000)


def test_delete_removes_one_transaction(txs: list[Transaction]) -> None:
    assert [t.id for t in delete(txs, "t2")] == ["t1", "t3"]


# ---- Combine ---------------------------------------------------------------------


def test_combine_sums_exactly_and_keeps_source_position() -> None:
    txs = [
        _tx("a", -1250, "LUNCH"),
        _tx("x", 100),
        _tx("b", -725, "TIP"),
        _tx("c", -1000, "DESSERT"),
    ]
    out = combine(txs, "a", ["b", "c", "b"])

    assert [t.id for t in out] == ["a", "x"]
    merged = out[0]
    assert merged.amount == Money(-2975)
    assert merged.amount == Money.parse_input("-29.75")
    assert merged.description == "LUNCH + TIP + DESSERT"
    assert merged.combined_ids == ("a", "b", "c")
    assert merged.source == Source.COMBINE


def test_combine_requires_another_transaction(txs: list[Transaction]) -> None:
    with pytest.raises(EmptyCombineError):
        combine(txs, "t1", [])
    with pytest.raises(EmptyCombineError):
        combine(txs, "t1", ["t1"])
    with pytest.raises(TransactionNotFoundError):
        combine(txs, "t1", ["missing"])


def test_uncategorized_rows_stay_in_review_after_changes(txs: list[Transaction]) -> None:
    edited = edit(txs, "t1", amount=Money(1300))[0]
    assert edited.category is None
    assert (edited.confidence, edited.needs_review) == (0.0, True)

    parts = split(txs, "t1", [SplitItem(Money(1000)), SplitItem(Money(250), "", GROCERIES)])
    assert [(p.category, p.needs_review) for p in parts[:2]] == [(None, True), (GROCERIES, False)]
    assert parts[1].confidence == 1.0

    merged = combine(txs, "t1", ["t3"])[0]
    assert (merged.confidence, merged.needs_review) == (0.0, True)
    merged = combine(txs, "t2", ["t1"])[0]
    assert (merged.category, merged.needs_review) == (GROCERIES, False)


# ---- Category corrections ----------------------------------------------------------


def test_reassign_category_learns_the_merchant(txs: list[Transaction]) -> None:
    mappings = MerchantMappings()
    out = reassign_category(txs, "t2", HOUSEHOLD, mappings)
    assert out[1].category == HOUSEHOLD
    assert (out[1].confidence, out[1].needs_review, out[1].confirmed) == (1.0, False, True)
    assert mappings.get("TARGET #44") == "household"

    later = classify(_tx("t9", -500, "TARGET #87"), [GROCERIES, HOUSEHOLD], mappings)
    assert later.category == HOUSEHOLD
    assert later.confidence == 1.0


def test_reassign_to_ignore_is_not_learned(txs: list[Transaction]) -> None:
    mappings = MerchantMappings()
    out = reassign_category(txs, "t1", IGNORE_CATEGORY, mappings)
    assert out[0].is_ignored
    assert len(mappings) == 0


def test_clearing_a_category_puts_it_back_in_review(txs: list[Transaction]) -> None:
    out = reassign_category(txs, "t2", None, MerchantMappings())
    assert out[1].category is None
    assert (out[1].confidence, out[1].needs_review, out[1].confirmed) == (0.0, True, False)


def test_manual_transaction_and_for_save() -> None:
    manual = manual_transaction(
        id="m1", date=dt.date(2024, 5, 2), description=" Cash gift ", amount=Money(5000)
    )
    assert manual.description == "Cash gift"
    assert (manual.confirmed, manual.needs_review, manual.source) == (True, False, Source.MANUAL)

    ignored = _tx("i1", -9999, "ONLINE TRANSFER", category=IGNORE_CATEGORY)
    assert [t.id for t in for_save([manual, ignored])] == ["m1"]
