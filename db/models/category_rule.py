"""
db/models/category_rule.py

Wildcard rules that categorize imported transactions by description.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class CategoryRule(Base):
    """
    ``pattern`` uses ``*`` and ``?`` wildcards and is matched
    case-insensitively anywhere in the description. Higher ``priority``
    wins.
    """

    __tablename__ = "category_rules"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    pattern: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    is_cac: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    priority: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
