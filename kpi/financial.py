"""
kpi/financial.py

Financial statement metrics and monthly cash flow.

Formulas
--------
Other revenue        = sum(|amount|) of revenue transactions outside ``subscription``
Total revenue        = subscription (MRR) revenue + setup revenue + other revenue
Total expenses       = sum(|amount|) of expense transactions
CAC expenses         = sum(|amount|) of CAC-tagged expense transactions
Operational expenses = total expenses - CAC expenses
Gross profit         = total revenue - CAC expenses
Gross margin         = gross profit / total revenue * 100           (0 on zero revenue)
Operational result   = total revenue - total expenses
Operational margin   = operational result / total revenue * 100     (0 on zero revenue)
Burn rate            = total expenses / max(1, months_between(start, end) + 1)

Subscription income recorded as a transaction is excluded from "other
revenue" because it is already counted through MRR.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from kpi.base import BaseKPIFormula
from kpi.ledger import is_expense, non_subscription_revenue_total, transactions_in_range
from kpi.mrr import index_clients, mrr_at_date
from kpi.revenue import month_revenue
from kpi.temporal import month_end, month_key, months_between, months_in_range
from kpi.types import BillingSnapshot, Client, ClientAddon, DateRange, Transaction


@dataclass(frozen=True)
class CategoryAmount:
    category: str
    amount: float


@dataclass(frozen=True)
class FinancialMetrics:
    total_revenue: float
    subscription_revenue: float
    setup_revenue: float
    other_revenue: float
    total_expenses: float
    cac_expenses: float
    operational_expenses: float
    gross_profit: float
    gross_margin: float
    operational_result: float
    operational_margin: float
    burn_rate: float
    expenses_by_category: tuple[CategoryAmount, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CashFlowPoint:
    month: str
    revenue: float
    expenses: float

    @property
    def net(self) -> float:
        return self.revenue - self.expenses


class FinancialKPIFormula(BaseKPIFormula[FinancialMetrics]):
    """
    Financial metrics where subscription and setup revenue are derived from
    the snapshot's clients and add-ons over the whole months of the period.
    """

    def calculate(self, snapshot: BillingSnapshot, period: DateRange) -> FinancialMetrics:
        owners = index_clients(snapshot.clients)
        mrr_revenue = 0.0
        setup_revenue = 0.0
        for month in months_in_range(period.start, period.end):
            split = month_revenue(snapshot.clients, snapshot.addons, month, client_index=owners)
            mrr_revenue += split.recurring
            setup_revenue += split.one_time
        return compute_financial_metrics(
            snapshot.transactions,
            period.start,
            period.end,
            mrr_revenue=mrr_revenue,
            setup_revenue=setup_revenue,
        )


def compute_financial_metrics(
    transactions: Sequence[Transaction],
    start: date,
    end: date,
    *,
    mrr_revenue: float = 0.0,
    setup_revenue: float = 0.0,
) -> FinancialMetrics:
    """
    Statement-style metrics for the inclusive period ``[start, end]``.

    *mrr_revenue* and *setup_revenue* come from the subscription side of
    the engine; the transaction ledger supplies everything else.
    """
    period_transactions = transactions_in_range(transactions, start, end)
    expenses = [t for t in period_transactions if is_expense(t)]

    other_revenue = non_subscription_revenue_total(period_transactions)
    total_revenue = mrr_revenue + setup_revenue + other_revenue

    total_expenses = sum((abs(t.amount) for t in expenses), 0.0)
    cac_expenses = sum((abs(t.amount) for t in expenses if t.is_cac), 0.0)
    operational_expenses = total_expenses - cac_expenses

    gross_profit = total_revenue - cac_expenses
    operational_result = total_revenue - total_expenses
    months = max(1, months_between(start, end) + 1)

    return FinancialMetrics(
        total_revenue=total_revenue,
        subscription_revenue=mrr_revenue,
        setup_revenue=setup_revenue,
        other_revenue=other_revenue,
        total_expenses=total_expenses,
        cac_expenses=cac_expenses,
        operational_expenses=operational_expenses,
        gross_profit=gross_profit,
        gross_margin=_percent_of(gross_profit, total_revenue),
        operational_result=operational_result,
        operational_margin=_percent_of(operational_result, total_revenue),
        burn_rate=total_expenses / months,
        expenses_by_category=_group_by_category(expenses),
    )


def cash_flow_history(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    transactions: Sequence[Transaction],
    start: date,
    end: date,
) -> list[CashFlowPoint]:
    """
    Monthly revenue vs expenses keyed by ``YYYY-MM``.

    Every whole month of the range gets a bucket seeded with the MRR at its
    last day. Transactions in the range are added to the bucket of their
    month, which is created on demand for partial months at either edge.
    """
    owners = index_clients(clients)
    revenue: dict[str, float] = {}
    expenses: dict[str, float] = defaultdict(float)

    for month in months_in_range(start, end):
        revenue[month_key(month)] = mrr_at_date(
            clients, addons, month_end(month), client_index=owners
        )

    for txn in transactions_in_range(transactions, start, end):
        key = month_key(txn.date)
        revenue.setdefault(key, 0.0)
        if is_expense(txn):
            expenses[key] += abs(txn.amount)
        else:
            revenue[key] += non_subscription_revenue_total((txn,))

    return [
        CashFlowPoint(month=key, revenue=revenue[key], expenses=expenses.get(key, 0.0))
        for key in sorted(revenue)
    ]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _percent_of(value: float, total: float) -> float:
    if total <= 0:
        return 0.0
    return value / total * 100


def _group_by_category(expenses: Sequence[Transaction]) -> tuple[CategoryAmount, ...]:
    totals: dict[str, float] = defaultdict(float)
    for txn in expenses:
        totals[txn.category] += abs(txn.amount)
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return tuple(CategoryAmount(category=name, amount=amount) for name, amount in ordered)
