"""
tests/test_snapshot_repository.py

SnapshotRepository against the SQLite schema.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from db.models import Client, ClientAddon, Expense, Product, Transaction
from db.repositories.snapshot_repository import SnapshotRepository


@pytest.fixture()
def seeded(db_session: Session) -> Session:
    monthly = Product(name="Pro", price=Decimal("99.90"), billing_period="monthly", payment_type="recurring")
    seat = Product(name="Seat", price=Decimal("10.00"), billing_period="monthly", payment_type="recurring")
    acme = Client(name="Acme", start_date=date(2024, 1, 10), product=monthly)
    legacy = Client(
        name="Legacy Co",
        status="churned",
        start_date=date(2023, 5, 1),
        churn_date=date(2024, 2, 1),
    )
    db_session.add_all([monthly, seat, acme, legacy])
    db_session.flush()
    db_session.add_all(
        [
            ClientAddon(client_id=acme.id, product=seat, quantity=3, start_date=date(2024, 2, 1)),
            Transaction(
                date=date(2024, 1, 15),
                description="Google Ads",
                amount=Decimal("-250.00"),
                type="expense",
                category="marketing",
                is_cac=True,
            ),
            Expense(month_year=date(2024, 1, 1), marketing_spend=Decimal("100"), sales_spend=Decimal("50")),
        ]
    )
    db_session.commit()
    return db_session


def test_clients_are_converted(seeded: Session) -> None:
    clients = SnapshotRepository(seeded).list_clients()
    assert [c.name for c in clients] == ["Legacy Co", "Acme"]
    acme = clients[1]
    assert isinstance(acme.id, str)
    assert acme.product is not None
    assert acme.product.price == pytest.approx(99.9)
    assert isinstance(acme.product.price, float)
    assert clients[0].product is None
    assert clients[0].churn_date == date(2024, 2, 1)


def test_addons_reference_owner_ids(seeded: Session) -> None:
    repository = SnapshotRepository(seeded)
    (addon,) = repository.list_addons()
    owner = next(c for c in repository.list_clients() if c.name == "Acme")
    assert addon.client_id == owner.id
    assert addon.quantity == 3
    assert addon.product.price == 10.0


def test_full_snapshot(seeded: Session) -> None:
    snapshot = SnapshotRepository(seeded).load_snapshot()
    assert len(snapshot.clients) == 2
    assert len(snapshot.addons) == 1
    (txn,) = snapshot.transactions
    assert txn.amount == -250.0
    assert txn.is_cac is True
    assert txn.description == "Google Ads"
    (expense,) = snapshot.expenses
    assert expense.marketing_spend == 100.0
    assert expense.sales_spend == 50.0


def test_snapshot_without_ledger(seeded: Session) -> None:
    snapshot = SnapshotRepository(seeded).load_snapshot(include_transactions=False)
    assert snapshot.transactions == ()
    assert snapshot.expenses == ()
    assert len(snapshot.clients) == 2
