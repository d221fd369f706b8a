"""create billing tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("billing_period", sa.String(length=20), nullable=False,
                  comment="monthly | annual (legacy: mensal | anual)"),
        sa.Column("payment_type", sa.String(length=20), nullable=True,
                  comment="recurring | one_time (legacy: unico)"),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, comment="active | churned"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("churn_date", sa.Date(), nullable=True),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_clients_status", "clients", ["status"], unique=False)
    op.create_index("ix_clients_start_date", "clients", ["start_date"], unique=False)

    op.create_table(
        "client_addons",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, comment="active | cancelled"),
        sa.Column("end_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="ck_client_addons_quantity_positive"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_addons_client_id", "client_addons", ["client_id"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=True,
                  comment="expense | revenue | transfer"),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("is_cac", sa.Boolean(), nullable=False,
                  comment="Counts toward customer acquisition cost"),
        sa.Column("source", sa.String(length=20), nullable=False, comment="manual | csv_import"),
        sa.Column("import_hash", sa.String(length=64), nullable=True,
                  comment="SHA-256 of date|description|amount for CSV de-duplication"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("import_hash"),
    )
    op.create_index("ix_transactions_date", "transactions", ["date"], unique=False)
    op.create_index("ix_transactions_is_cac_date", "transactions", ["is_cac", "date"], unique=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("month_year", sa.Date(), nullable=False,
                  comment="First day of the month the spend belongs to"),
        sa.Column("marketing_spend", sa.Numeric(14, 2), nullable=False),
        sa.Column("sales_spend", sa.Numeric(14, 2), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("month_year"),
    )

    op.create_table(
        "category_rules",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("pattern", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("is_cac", sa.Boolean(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("category_rules")
    op.drop_table("expenses")
    op.drop_index("ix_transactions_is_cac_date", table_name="transactions")
    op.drop_index("ix_transactions_date", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_client_addons_client_id", table_name="client_addons")
    op.drop_table("client_addons")
    op.drop_index("ix_clients_start_date", table_name="clients")
    op.drop_index("ix_clients_status", table_name="clients")
    op.drop_table("clients")
    op.drop_table("products")
