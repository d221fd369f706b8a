"""
tests/test_history.py

Month-by-month MRR, churn and revenue series.
"""

from __future__ import annotations

from datetime import date

import pytest

from kpi.history import churn_history, default_history_range, mrr_history, revenue_history
from kpi.revenue import RevenueBasis, month_revenue
from kpi.types import BillingPeriod, Client, ClientAddon, ClientStatus, PaymentType, Product

MONTHLY_100 = Product(id="p-monthly", price=100.0)
ANNUAL_1200 = Product(id="p-annual", price=1200.0, billing_period=BillingPeriod.ANNUAL)
SETUP_500 = Product(id="p-setup", price=500.0, payment_type=PaymentType.ONE_TIME)


@pytest.fixture()
def clients() -> list[Client]:
    return [
        Client(id="c1", start_date=date(2024, 1, 10), product=MONTHLY_100),
        Client(id="c2", start_date=date(2024, 2, 5), product=ANNUAL_1200),
        Client(
            id="c3",
            start_date=date(2024, 1, 1),
            status=ClientStatus.CHURNED,
            churn_date=date(2024, 3, 10),
            product=MONTHLY_100,
        ),
        Client(id="c4", start_date=date(2024, 3, 20), product=SETUP_500),
    ]


class TestDefaultRange:
    def test_trailing_twelve_months(self) -> None:
        assert default_history_range(date(2024, 6, 15)) == (date(2023, 7, 1), date(2024, 6, 30))

    def test_single_month(self) -> None:
        assert default_history_range(date(2024, 2, 10), months=1) == (date(2024, 2, 1), date(2024, 2, 29))


class TestMrrHistory:
    def test_one_point_per_whole_month(self, clients: list[Client]) -> None:
        points = mrr_history(clients, [], date(2024, 1, 1), date(2024, 4, 30))
        assert [p.month for p in points] == ["jan/24", "fev/24", "mar/24", "abr/24"]
        assert [p.mrr for p in points] == pytest.approx([200.0, 300.0, 200.0, 200.0])

    def test_zero_filled_before_first_client(self, clients: list[Client]) -> None:
        points = mrr_history(clients, [], date(2023, 11, 1), date(2023, 12, 31))
        assert [p.mrr for p in points] == [0.0, 0.0]

    def test_english_labels(self, clients: list[Client]) -> None:
        points = mrr_history(clients, [], date(2024, 2, 1), date(2024, 2, 29), locale="en")
        assert points[0].month == "Feb/24"
        assert points[0].month_start == date(2024, 2, 1)

    def test_partial_range_is_empty(self, clients: list[Client]) -> None:
        assert mrr_history(clients, [], date(2024, 1, 5), date(2024, 1, 25)) == []


class TestChurnHistory:
    def test_counts_by_date(self, clients: list[Client]) -> None:
        points = churn_history(clients, date(2024, 1, 1), date(2024, 3, 31))
        assert [(p.new_count, p.churned_count) for p in points] == [(2, 0), (1, 0), (1, 1)]

    def test_churn_date_counts_regardless_of_status(self) -> None:
        reactivated = Client(
            id="c1",
            start_date=date(2023, 1, 1),
            status=ClientStatus.ACTIVE,
            churn_date=date(2024, 1, 15),
        )
        points = churn_history([reactivated], date(2024, 1, 1), date(2024, 1, 31))
        assert points[0].churned_count == 1


class TestRevenueHistory:
    def test_mrr_basis_splits_recurring_and_setup(self, clients: list[Client]) -> None:
        points = revenue_history(clients, [], date(2024, 3, 1), date(2024, 3, 31))
        assert points[0].recurring_amount == pytest.approx(200.0)
        assert points[0].one_time_amount == pytest.approx(500.0)
        assert points[0].total == pytest.approx(700.0)

    def test_cash_basis_bills_annual_up_front(self) -> None:
        annual = [Client(id="c1", start_date=date(2024, 1, 10), product=ANNUAL_1200)]
        points = revenue_history(
            annual, [], date(2024, 1, 1), date(2024, 3, 31), basis=RevenueBasis.CASH
        )
        assert [p.recurring_amount for p in points] == [1200.0, 0.0, 0.0]

    def test_cash_basis_bills_monthly_every_month(self) -> None:
        monthly = [Client(id="c1", start_date=date(2024, 1, 10), product=MONTHLY_100)]
        points = revenue_history(
            monthly, [], date(2024, 1, 1), date(2024, 3, 31), basis=RevenueBasis.CASH
        )
        assert [p.recurring_amount for p in points] == [100.0, 100.0, 100.0]

    def test_cash_basis_addon_quantity(self) -> None:
        owner = [Client(id="c1", start_date=date(2024, 1, 1), product=None)]
        addons = [
            ClientAddon(
                id="a1",
                client_id="c1",
                start_date=date(2024, 1, 15),
                product=Product(id="seat", price=10.0),
                quantity=4,
            )
        ]
        points = revenue_history(owner, addons, date(2024, 1, 1), date(2024, 2, 29), basis="cash")
        assert [p.recurring_amount for p in points] == [40.0, 40.0]

    def test_unknown_basis_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown revenue basis"):
            month_revenue([], [], date(2024, 1, 1), basis="accrual")
