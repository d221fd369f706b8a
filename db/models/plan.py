"""
db/models/plan.py

Persisted growth plans. At most one plan is ``active`` at a time; the
plan store enforces this on save.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import Date, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin


class PlanRecord(Base, TimestampMixin):
    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        comment="active | paused | cancelled",
    )
    segment: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
    )
    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    horizon_months: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=12,
    )
    current_metrics: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
    simulated_metrics: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
    actions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )
    scenarios: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )
    cancellation_reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    __table_args__ = (Index("ix_plans_status", "status"),)
