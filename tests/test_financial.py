"""
tests/test_financial.py

Statement-level financial metrics and the monthly cash-flow series.
"""

from __future__ import annotations

from datetime import date

import pytest

from kpi.financial import FinancialKPIFormula, cash_flow_history, compute_financial_metrics
from kpi.types import (
    BillingSnapshot,
    Client,
    DateRange,
    Product,
    Transaction,
    TransactionCategory,
    TransactionType,
)


def _txn(txn_id: str, on: date, amount: float, txn_type: str | None, category: str, is_cac: bool = False) -> Transaction:
    return Transaction(id=txn_id, date=on, amount=amount, type=txn_type, category=category, is_cac=is_cac)


@pytest.fixture()
def january_ledger() -> list[Transaction]:
    return [
        _txn("t1", date(2024, 1, 5), 300.0, TransactionType.REVENUE, TransactionCategory.CONSULTING),
        _txn("t2", date(2024, 1, 6), 100.0, TransactionType.REVENUE, TransactionCategory.SUBSCRIPTION),
        _txn("t3", date(2024, 1, 7), -200.0, TransactionType.EXPENSE, TransactionCategory.MARKETING, True),
        _txn("t4", date(2024, 1, 8), -50.0, TransactionType.EXPENSE, TransactionCategory.TOOLS),
        _txn("t5", date(2024, 1, 9), -70.0, TransactionType.EXPENSE, TransactionCategory.TOOLS),
        _txn("t6", date(2024, 2, 1), -1000.0, TransactionType.EXPENSE, TransactionCategory.PAYROLL),
    ]


class TestFinancialMetrics:
    def test_statement(self, january_ledger: list[Transaction]) -> None:
        result = compute_financial_metrics(
            january_ledger,
            date(2024, 1, 1),
            date(2024, 1, 31),
            mrr_revenue=1000.0,
            setup_revenue=500.0,
        )
        assert result.other_revenue == 300.0
        assert result.total_revenue == 1800.0
        assert result.total_expenses == 320.0
        assert result.cac_expenses == 200.0
        assert result.operational_expenses == 120.0
        assert result.gross_profit == 1600.0
        assert result.gross_margin == pytest.approx(1600.0 / 1800.0 * 100)
        assert result.operational_result == 1480.0
        assert result.operational_margin == pytest.approx(1480.0 / 1800.0 * 100)
        assert result.burn_rate == 320.0

    def test_expenses_grouped_by_category(self, january_ledger: list[Transaction]) -> None:
        result = compute_financial_metrics(january_ledger, date(2024, 1, 1), date(2024, 1, 31))
        assert [(c.category, c.amount) for c in result.expenses_by_category] == [
            ("marketing", 200.0),
            ("tools", 120.0),
        ]

    def test_burn_rate_spreads_over_period_months(self, january_ledger: list[Transaction]) -> None:
        result = compute_financial_metrics(january_ledger, date(2024, 1, 1), date(2024, 3, 31))
        assert result.total_expenses == 1320.0
        assert result.burn_rate == pytest.approx(440.0)

    def test_zero_revenue_margins(self) -> None:
        expenses = [_txn("t1", date(2024, 1, 5), -10.0, TransactionType.EXPENSE, "other")]
        result = compute_financial_metrics(expenses, date(2024, 1, 1), date(2024, 1, 31))
        assert result.gross_margin == 0.0
        assert result.operational_margin == 0.0

    def test_legacy_signed_amounts(self) -> None:
        legacy = [
            _txn("t1", date(2024, 1, 5), -40.0, None, "other"),
            _txn("t2", date(2024, 1, 6), 60.0, None, "other_revenue"),
        ]
        result = compute_financial_metrics(legacy, date(2024, 1, 1), date(2024, 1, 31))
        assert result.total_expenses == 40.0
        assert result.other_revenue == 60.0

    def test_formula_walks_subscription_revenue(self) -> None:
        snapshot = BillingSnapshot(
            clients=(Client(id="c1", start_date=date(2024, 1, 1), product=Product(id="p", price=100.0)),),
        )
        result = FinancialKPIFormula().calculate(
            snapshot, DateRange(start=date(2024, 1, 1), end=date(2024, 3, 31))
        )
        assert result.subscription_revenue == pytest.approx(300.0)
        assert result.total_revenue == pytest.approx(300.0)


class TestCashFlow:
    def test_months_seeded_with_mrr(self) -> None:
        clients = [Client(id="c1", start_date=date(2024, 1, 1), product=Product(id="p", price=100.0))]
        transactions = [
            _txn("t1", date(2024, 1, 15), -40.0, TransactionType.EXPENSE, TransactionCategory.TOOLS),
            _txn("t2", date(2024, 2, 10), 25.0, TransactionType.REVENUE, TransactionCategory.SERVICE),
            _txn("t3", date(2024, 2, 11), 999.0, TransactionType.REVENUE, TransactionCategory.SUBSCRIPTION),
        ]
        points = cash_flow_history(clients, [], transactions, date(2024, 1, 1), date(2024, 2, 29))
        assert [p.month for p in points] == ["2024-01", "2024-02"]
        assert [p.revenue for p in points] == pytest.approx([100.0, 125.0])
        assert [p.expenses for p in points] == pytest.approx([40.0, 0.0])
        assert points[0].net == pytest.approx(60.0)

    def test_partial_edge_month_created_on_demand(self) -> None:
        transactions = [_txn("t1", date(2024, 1, 20), -10.0, TransactionType.EXPENSE, "other")]
        points = cash_flow_history([], [], transactions, date(2024, 1, 15), date(2024, 3, 31))
        assert [p.month for p in points] == ["2024-01", "2024-02", "2024-03"]
        assert points[0].revenue == 0.0
        assert points[0].expenses == 10.0
