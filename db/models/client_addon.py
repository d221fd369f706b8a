"""
db/models/client_addon.py

ClientAddon model: an extra product attached to a client with its own
lifecycle. Cancelled add-ons may be reactivated (status back to active,
end_date cleared).
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.client import Client
    from db.models.product import Product


class ClientAddon(Base, TimestampMixin):
    __tablename__ = "client_addons"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )
    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )
    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        comment="active | cancelled",
    )
    end_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    client: Mapped["Client"] = relationship("Client", back_populates="addons")
    product: Mapped["Product | None"] = relationship("Product", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_client_addons_quantity_positive"),
        Index("ix_client_addons_client_id", "client_id"),
    )
