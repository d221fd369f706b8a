"""
db/models/client.py

Client model: one customer subscription with an optional main product.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.client_addon import ClientAddon
    from db.models.product import Product


class Client(Base, TimestampMixin):
    """
    A customer subscription.

    ``start_date`` is also the date of first billing. ``churn_date`` is
    only meaningful when ``status`` is ``churned``.
    """

    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        comment="active | churned",
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    churn_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    product_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    product: Mapped["Product | None"] = relationship("Product", lazy="joined")

    addons: Mapped[list["ClientAddon"]] = relationship(
        "ClientAddon",
        back_populates="client",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_clients_status", "status"),
        Index("ix_clients_start_date", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.name!r} status={self.status!r}>"
