"""
tests/test_ranking.py

Realized-LTV client ranking.
"""

from __future__ import annotations

from datetime import date

import pytest

from kpi.ranking import RankingFilter, RankingSort, rank_clients_by_ltv, tenure_months
from kpi.types import (
    AddonStatus,
    BillingPeriod,
    Client,
    ClientAddon,
    ClientStatus,
    PaymentType,
    Product,
)

AS_OF = date(2024, 6, 30)


@pytest.fixture()
def population() -> tuple[list[Client], list[ClientAddon]]:
    clients = [
        Client(
            id="c1",
            name="Acme",
            start_date=date(2024, 1, 1),
            product=Product(id="monthly", price=100.0),
        ),
        Client(
            id="c2",
            name="Globex",
            start_date=date(2023, 1, 1),
            status=ClientStatus.CHURNED,
            churn_date=date(2024, 1, 1),
            product=Product(id="annual", price=1200.0, billing_period=BillingPeriod.ANNUAL),
        ),
        Client(
            id="c3",
            name="Initech",
            start_date=date(2024, 6, 1),
            product=Product(id="setup", price=500.0, payment_type=PaymentType.ONE_TIME),
        ),
    ]
    addons = [
        ClientAddon(
            id="a1",
            client_id="c1",
            start_date=date(2024, 3, 1),
            product=Product(id="seat", price=30.0),
            quantity=2,
        )
    ]
    return clients, addons


class TestRanking:
    def test_sorted_by_ltv_descending(self, population) -> None:
        clients, addons = population
        ranked = rank_clients_by_ltv(clients, addons, as_of=AS_OF)
        assert [r.client_id for r in ranked] == ["c2", "c1", "c3"]
        assert [r.ltv for r in ranked] == pytest.approx([1300.0, 780.0, 500.0])

    def test_entry_fields(self, population) -> None:
        clients, addons = population
        acme = next(r for r in rank_clients_by_ltv(clients, addons, as_of=AS_OF) if r.client_id == "c1")
        assert acme.name == "Acme"
        assert acme.tenure_months == 6
        assert acme.average_ticket == pytest.approx(130.0)
        assert acme.monthly_value == pytest.approx(160.0)

    def test_one_time_client_counts_full_price_once(self, population) -> None:
        clients, addons = population
        initech = next(r for r in rank_clients_by_ltv(clients, addons, as_of=AS_OF) if r.client_id == "c3")
        assert initech.tenure_months == 1
        assert initech.ltv == 500.0
        assert initech.monthly_value == 0.0

    def test_sorted_by_tenure(self, population) -> None:
        clients, addons = population
        ranked = rank_clients_by_ltv(clients, addons, sort_by=RankingSort.TENURE, as_of=AS_OF)
        assert [r.tenure_months for r in ranked] == [13, 6, 1]

    @pytest.mark.parametrize(
        ("status", "expected"),
        [(RankingFilter.ACTIVE, {"c1", "c3"}), (RankingFilter.CHURNED, {"c2"})],
    )
    def test_status_filter(self, population, status: str, expected: set[str]) -> None:
        clients, addons = population
        ranked = rank_clients_by_ltv(clients, addons, status=status, as_of=AS_OF)
        assert {r.client_id for r in ranked} == expected

    def test_unknown_filter_raises(self) -> None:
        with pytest.raises(ValueError, match="ranking filter"):
            rank_clients_by_ltv([], status="paused")

    def test_unknown_sort_key_raises(self) -> None:
        with pytest.raises(ValueError, match="sort key"):
            rank_clients_by_ltv([], sort_by="mrr")

    def test_empty_population(self) -> None:
        assert rank_clients_by_ltv([], as_of=AS_OF) == []


def test_tenure_counts_activation_month() -> None:
    client = Client(id="c", start_date=date(2024, 6, 30))
    assert tenure_months(client, date(2024, 6, 30)) == 1


def test_cancelled_addon_uses_its_own_window() -> None:
    client = Client(id="c1", start_date=date(2024, 1, 1), product=Product(id="monthly", price=100.0))
    addon = ClientAddon(
        id="a1",
        client_id="c1",
        start_date=date(2024, 3, 1),
        end_date=date(2024, 5, 1),
        status=AddonStatus.CANCELLED,
        product=Product(id="seat", price=30.0),
        quantity=2,
    )

    (entry,) = rank_clients_by_ltv([client], [addon], as_of=AS_OF)

    assert entry.tenure_months == 6
    assert entry.ltv == pytest.approx(100 * 6 + 60 * 2)
    assert entry.monthly_value == pytest.approx(100.0)
