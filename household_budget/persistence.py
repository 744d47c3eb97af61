"""Persistence adapter: whole-list load/save over SQLAlchemy.

The engine hands back complete replacement lists after every action, so
saving transactions rewrites the whole table instead of applying deltas.
Transactions in the System ignore category are dropped on save.

Functions take an open :class:`~sqlalchemy.orm.Session`; commit/rollback is
the caller's job (see :func:`household_budget.db.client.session_scope`).

Scope:
- ``hb_transactions``: the saved transaction list, amounts as integer minor units.
- ``hb_merchant_mappings``: learned merchant keys (upserted, never pruned).
- ``hb_mapping_profiles``: saved CSV column mappings and the default profile.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .classifier import with_ignore
from .db.client import get_engine
from .db.models import Base, HbMappingProfile, HbMerchantMapping, HbTransaction
from .ingest.profiles import MappingProfiles
from .logging_setup import get_logger
from .merchants import MerchantMappings
from .models import Category, ColumnMapping, Source, Transaction
from .money import Money
from .reconcile import for_save

_logger = get_logger("household_budget.persistence")


def create_schema(*, engine: Engine | None = None, database_url: str | None = None) -> Engine:
    """Create the adapter's tables when missing and return the engine used."""

    eng = engine or get_engine(database_url=database_url)
    Base.metadata.create_all(bind=eng)
    return eng


def _clear(session: Session, model: type[Base]) -> None:
    # Row-by-row so objects already in the identity map are deleted too.
    for row in session.execute(select(model)).scalars():
        session.delete(row)
    session.flush()


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def _to_row(position: int, tx: Transaction) -> HbTransaction:
    return HbTransaction(
        id=tx.id,
        position=position,
        date=tx.date,
        description=tx.description,
        amount_minor=tx.amount.minor,
        amount_scale=tx.amount.scale,
        category_id=tx.category.id if tx.category is not None else None,
        confidence=float(tx.confidence),
        needs_review=tx.needs_review,
        confirmed=tx.confirmed,
        source=str(tx.source),
        parent_id=tx.parent_id,
        split_index=tx.split_index,
        split_total=tx.split_total,
        combined_ids=list(tx.combined_ids),
        raw_record=dict(tx.raw) if tx.raw is not None else None,
    )


def save_transactions(session: Session, transactions: Sequence[Transaction]) -> int:
    """Replace the stored transaction list; returns the number of rows written.

    Ignore-category transactions are excluded.
    """

    kept = for_save(transactions)
    _clear(session, HbTransaction)
    session.add_all(_to_row(i, tx) for i, tx in enumerate(kept))
    session.flush()
    dropped = len(transactions) - len(kept)
    _logger.info("saved %d transaction(s); %d ignored row(s) not persisted", len(kept), dropped)
    return len(kept)


def load_transactions(session: Session, categories: Iterable[Category]) -> list[Transaction]:
    """Load the stored list in saved order, resolving category ids against ``categories``.

    A stored category id that no longer exists loads as uncategorized and
    flagged for review.
    """

    by_id = {c.id: c for c in with_ignore(categories)}
    rows = session.execute(select(HbTransaction).order_by(HbTransaction.position)).scalars()
    out: list[Transaction] = []
    for row in rows:
        category = by_id.get(row.category_id) if row.category_id else None
        needs_review = row.needs_review
        if row.category_id and category is None:
            _logger.warning(
                "transaction %s references unknown category %r", row.id, row.category_id
            )
            needs_review = True
        out.append(
            Transaction(
                id=row.id,
                date=row.date,
                description=row.description,
                amount=Money(row.amount_minor, row.amount_scale),
                category=category,
                confidence=row.confidence if category is not None else 0.0,
                needs_review=needs_review,
                confirmed=row.confirmed,
                source=Source(row.source),
                parent_id=row.parent_id,
                split_index=row.split_index,
                split_total=row.split_total,
                combined_ids=tuple(row.combined_ids or ()),
                raw=row.raw_record,
            )
        )
    return out


# ---------------------------------------------------------------------------
# Merchant mappings
# ---------------------------------------------------------------------------


def save_merchant_mappings(session: Session, mappings: MerchantMappings) -> None:
    """Upsert every learned mapping. Stored keys absent from ``mappings`` are kept."""

    existing = {
        m.merchant_key: m for m in session.execute(select(HbMerchantMapping)).scalars()
    }
    for key, category_id in mappings.items():
        row = existing.get(key)
        if row is None:
            session.add(HbMerchantMapping(merchant_key=key, category_id=category_id))
        elif row.category_id != category_id:
            row.category_id = category_id
    session.flush()


def load_merchant_mappings(session: Session) -> MerchantMappings:
    rows = session.execute(select(HbMerchantMapping)).scalars()
    return MerchantMappings({r.merchant_key: r.category_id for r in rows})


# ---------------------------------------------------------------------------
# Mapping profiles
# ---------------------------------------------------------------------------


def save_profiles(session: Session, profiles: MappingProfiles) -> None:
    """Replace the stored mapping profiles."""

    _clear(session, HbMappingProfile)
    for name, mapping in profiles.items():
        session.add(
            HbMappingProfile(
                name=name,
                date_header=mapping.date,
                description_header=mapping.description,
                amount_header=mapping.amount,
                is_default=(name == profiles.default),
            )
        )
    session.flush()


def load_profiles(session: Session) -> MappingProfiles:
    rows = session.execute(select(HbMappingProfile).order_by(HbMappingProfile.name)).scalars()
    profiles: dict[str, ColumnMapping] = {}
    default: str | None = None
    for row in rows:
        profiles[row.name] = ColumnMapping(
            date=row.date_header,
            description=row.description_header,
            amount=row.amount_header,
        )
        if row.is_default:
            default = row.name
    return MappingProfiles(profiles, default=default)


__all__ = [
    "create_schema",
    "save_transactions",
    "load_transactions",
    "save_merchant_mappings",
    "load_merchant_mappings",
    "save_profiles",
    "load_profiles",
]
