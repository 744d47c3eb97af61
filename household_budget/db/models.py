from __future__ import annotations

import datetime as dt
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: hb_transactions
# ---------------------------


class HbTransaction(Base):
    __tablename__ = "hb_transactions"

    # Application-assigned id (uuid hex, "<id>-split-<n>" for split parts).
    id: Mapped[str] = mapped_column(String, primary_key=True)
    # Position in the saved list; the whole list is rewritten on every save.
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Integer minor units at ``amount_scale`` decimal places; never floats.
    amount_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_scale: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    category_id: Mapped[str | None] = mapped_column(String, nullable=True)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    needs_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source: Mapped[str] = mapped_column(String, nullable=False, default="import")
    parent_id: Mapped[str | None] = mapped_column(String, nullable=True)
    split_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    split_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    combined_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    raw_record: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )

    __table_args__ = (
        CheckConstraint("confidence >= 0 AND confidence <= 1", name="ck_hb_tx_confidence"),
        CheckConstraint("amount_scale >= 0", name="ck_hb_tx_amount_scale"),
    )


# ---------------------------
# Learned merchant mappings
# ---------------------------


class HbMerchantMapping(Base):
    __tablename__ = "hb_merchant_mappings"

    merchant_key: Mapped[str] = mapped_column(String, primary_key=True)
    category_id: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )


# ---------------------------
# Saved CSV column mappings
# ---------------------------


class HbMappingProfile(Base):
    __tablename__ = "hb_mapping_profiles"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    date_header: Mapped[str] = mapped_column(String, nullable=False)
    description_header: Mapped[str] = mapped_column(String, nullable=False)
    amount_header: Mapped[str] = mapped_column(String, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
