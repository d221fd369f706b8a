"""
db/models/product.py

Product model: a sellable plan referenced by clients and client add-ons.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import CheckConstraint, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Product(Base, TimestampMixin):
    """
    ``price`` is the full-period price: monthly for monthly billing, the
    whole year for annual billing.

    ``payment_type`` is nullable because rows created before the column
    existed carry no value; the engine treats them as recurring.
    """

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )
    billing_period: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="monthly",
        comment="monthly | annual (legacy: mensal | anual)",
    )
    payment_type: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        default="recurring",
        comment="recurring | one_time (legacy: unico)",
    )

    __table_args__ = (CheckConstraint("price >= 0", name="ck_products_price_non_negative"),)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} price={self.price}>"
