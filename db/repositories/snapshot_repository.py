"""
db/repositories/snapshot_repository.py

Read-only loader that turns ORM rows into the engine's record types.

The engine expects the full collections for a computation, so every load
reads whole tables. Prices and amounts are converted from ``Decimal`` to
``float`` here; the engine never sees ORM instances.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from db.models.client import Client as ClientRow
from db.models.client_addon import ClientAddon as ClientAddonRow
from db.models.expense import Expense as ExpenseRow
from db.models.product import Product as ProductRow
from db.models.transaction import Transaction as TransactionRow
from kpi.types import BillingSnapshot, Client, ClientAddon, LegacyExpense, Product, Transaction


class SnapshotRepository:
    """
    Loads a :class:`~kpi.types.BillingSnapshot` inside the caller's session.

    The caller controls the transaction; this repository only reads.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def load_snapshot(self, *, include_transactions: bool = True) -> BillingSnapshot:
        """
        Read all four record collections.

        Pass ``include_transactions=False`` for computations that only need
        the subscription side (MRR, churn and revenue history, ranking).
        """
        return BillingSnapshot(
            clients=tuple(self.list_clients()),
            addons=tuple(self.list_addons()),
            transactions=tuple(self.list_transactions()) if include_transactions else (),
            expenses=tuple(self.list_legacy_expenses()) if include_transactions else (),
        )

    def list_clients(self) -> list[Client]:
        stmt = select(ClientRow).order_by(ClientRow.start_date, ClientRow.id)
        rows = self._session.execute(stmt).unique().scalars().all()
        return [_to_client(row) for row in rows]

    def list_addons(self) -> list[ClientAddon]:
        stmt = (
            select(ClientAddonRow)
            .options(selectinload(ClientAddonRow.product))
            .order_by(ClientAddonRow.start_date, ClientAddonRow.id)
        )
        rows = self._session.execute(stmt).unique().scalars().all()
        return [_to_addon(row) for row in rows]

    def list_transactions(self) -> list[Transaction]:
        stmt = select(TransactionRow).order_by(TransactionRow.date, TransactionRow.id)
        return [_to_transaction(row) for row in self._session.execute(stmt).scalars().all()]

    def list_legacy_expenses(self) -> list[LegacyExpense]:
        stmt = select(ExpenseRow).order_by(ExpenseRow.month_year)
        return [
            LegacyExpense(
                id=str(row.id),
                month_year=row.month_year,
                marketing_spend=float(row.marketing_spend or 0),
                sales_spend=float(row.sales_spend or 0),
            )
            for row in self._session.execute(stmt).scalars().all()
        ]


# ---------------------------------------------------------------------------
# Row mappers (no business logic)
# ---------------------------------------------------------------------------


def _to_product(row: ProductRow | None) -> Product | None:
    if row is None:
        return None
    return Product(
        id=str(row.id),
        price=float(row.price),
        billing_period=row.billing_period,
        payment_type=row.payment_type,
        name=row.name,
    )


def _to_client(row: ClientRow) -> Client:
    return Client(
        id=str(row.id),
        start_date=row.start_date,
        status=row.status,
        churn_date=row.churn_date,
        product=_to_product(row.product),
        name=row.name,
    )


def _to_addon(row: ClientAddonRow) -> ClientAddon:
    return ClientAddon(
        id=str(row.id),
        client_id=str(row.client_id),
        start_date=row.start_date,
        product=_to_product(row.product),
        quantity=row.quantity,
        status=row.status,
        end_date=row.end_date,
    )


def _to_transaction(row: TransactionRow) -> Transaction:
    return Transaction(
        id=str(row.id),
        date=row.date,
        amount=float(row.amount),
        type=row.type,
        category=row.category,
        is_cac=bool(row.is_cac),
        description=row.description or "",
    )
