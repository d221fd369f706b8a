"""
db/models/transaction.py

Ledger entries independent of the subscription model.

``amount`` is signed (negative = expense). ``type`` disambiguates on
current rows and is NULL on rows written before it existed.
"""

from __future__ import annotations

import uuid
import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )
    type: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="expense | revenue | transfer",
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="other",
    )
    is_cac: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Counts toward customer acquisition cost",
    )
    source: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="manual",
        comment="manual | csv_import",
    )
    import_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        comment="SHA-256 of date|description|amount for CSV de-duplication",
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    __table_args__ = (
        Index("ix_transactions_date", "date"),
        Index("ix_transactions_is_cac_date", "is_cac", "date"),
    )
