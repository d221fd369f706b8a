"""
kpi/ledger.py

Transaction and legacy-expense selection rules.

Two transaction representations coexist: current rows carry ``type``;
older rows only carry a signed ``amount`` (negative = expense). The
predicates below accept both.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from kpi.temporal import is_within, month_end, month_start
from kpi.types import LegacyExpense, Transaction, TransactionCategory, TransactionType


def is_expense(transaction: Transaction) -> bool:
    if transaction.type is None:
        return transaction.amount < 0
    return transaction.type == TransactionType.EXPENSE and transaction.amount != 0


def is_revenue(transaction: Transaction) -> bool:
    if transaction.type is None:
        return transaction.amount > 0
    return transaction.type == TransactionType.REVENUE


def transactions_in_range(
    transactions: Iterable[Transaction], start: date, end: date
) -> list[Transaction]:
    return [t for t in transactions if is_within(t.date, start, end)]


def cac_transaction_total(transactions: Iterable[Transaction], start: date, end: date) -> float:
    """Sum of ``abs(amount)`` over CAC-tagged transactions dated in the period."""
    return sum(
        (abs(t.amount) for t in transactions if t.is_cac and is_within(t.date, start, end)),
        0.0,
    )


def has_cac_transactions(transactions: Iterable[Transaction], start: date, end: date) -> bool:
    return any(t.is_cac and is_within(t.date, start, end) for t in transactions)


def legacy_expense_total(expenses: Iterable[LegacyExpense], start: date, end: date) -> float:
    """
    Marketing + sales spend of legacy rows whose ``month_year`` falls in the
    months touched by the period.
    """
    window_start = month_start(start)
    window_end = month_end(end)
    return sum(
        (
            float(e.marketing_spend) + float(e.sales_spend)
            for e in expenses
            if is_within(e.month_year, window_start, window_end)
        ),
        0.0,
    )


def cac_expense_total(
    transactions: Iterable[Transaction],
    expenses: Iterable[LegacyExpense],
    start: date,
    end: date,
) -> tuple[float, bool]:
    """
    Acquisition spend for the period and whether the legacy fallback was used.

    CAC-tagged transactions are the preferred source; legacy expense rows
    are read only when the period holds no CAC-tagged transaction.
    """
    transactions = list(transactions)
    if has_cac_transactions(transactions, start, end):
        return cac_transaction_total(transactions, start, end), False
    return legacy_expense_total(expenses, start, end), True


def expense_total(transactions: Iterable[Transaction]) -> float:
    return sum((abs(t.amount) for t in transactions if is_expense(t)), 0.0)


def non_subscription_revenue_total(transactions: Iterable[Transaction]) -> float:
    """Manual revenue entries; subscription income is already counted via MRR."""
    return sum(
        (
            abs(t.amount)
            for t in transactions
            if is_revenue(t) and t.category != TransactionCategory.SUBSCRIPTION
        ),
        0.0,
    )
