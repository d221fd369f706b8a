"""
kpi/saas.py

SaaS period metrics.

Given the full client/add-on/transaction snapshot and an inclusive period
``[start, end]``, compute the dashboard KPI bundle.

Formulas
--------
MRR                 = mrr_at_date(end)
ARR                 = MRR * 12
Ticket medio        = MRR / active clients with a recurring main product
Average clients     = (active at start + active at end) / 2
Period months       = max(1, months_between(start, end) + 1)
Churn rate          = churned in period / average clients * 100
Churn rate monthly  = churn rate / period months
CAC                 = CAC spend / new clients
Lifetime (months)   = min(1 / (monthly churn / 100), cap)   or cap at zero churn
LTV                 = ticket medio * lifetime
Faturamento real    = sum over whole months of (MRR at month end + setup revenue)
Payback             = CAC / ticket medio
LTV/CAC             = LTV / CAC                  (-1 when CAC is 0)
Quick ratio         = new MRR / churned MRR      (99 when only new, -1 when neither)
Gross margin        = (faturamento - CAC spend) / faturamento * 100
Net margin          = (faturamento - all expenses) / faturamento * 100

Every zero denominator short-circuits to 0 or a documented sentinel.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from dateutil.relativedelta import relativedelta

from kpi.base import BaseKPIFormula
from kpi.ledger import cac_expense_total, expense_total, is_expense, transactions_in_range
from kpi.mrr import index_clients, mrr_at_date
from kpi.normalizer import is_recurring_product, recurring_monthly_value
from kpi.ratios import RatioResult, ltv_cac_ratio, quick_ratio
from kpi.revenue import month_revenue
from kpi.temporal import is_within, months_between, months_in_range, was_client_active_at
from kpi.types import (
    BillingSnapshot,
    Client,
    ClientAddon,
    ClientStatus,
    DateRange,
    LegacyExpense,
    Transaction,
)

MAX_LIFETIME_MONTHS = 36
_NEW_CLIENT_AVERAGE_WINDOW_MONTHS = 6


@dataclass(frozen=True)
class MetricsBundle:
    """
    Output contract of :func:`calculate_period_metrics`.

    ``ltv_cac_ratio`` and ``quick_ratio`` hold the wire sentinels; the
    tagged forms are kept in ``ltv_cac`` and ``quick`` and excluded from
    :meth:`to_dict`.
    """

    mrr: float
    arr: float
    ticket_medio: float
    active_clients: int
    active_clients_with_recurring: int
    new_clients_this_month: int
    churned_this_month: int
    clients_at_start_of_period: int
    average_clients: float
    period_months: int
    churn_rate: float
    churn_rate_monthly: float
    cac_expenses: float
    cac: float
    estimated_lifetime_months: float
    ltv: float
    mrr_accumulated: float
    setup_revenue: float
    faturamento_real: float
    payback_period: float
    new_mrr: float
    churned_mrr: float
    ltv_cac_ratio: float
    quick_ratio: float
    total_expenses: float
    gross_margin: float
    net_margin: float
    average_new_clients_last_6_months: int
    used_legacy_expenses: bool = False
    ltv_cac: RatioResult = field(default_factory=RatioResult.not_applicable)
    quick: RatioResult = field(default_factory=RatioResult.not_applicable)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in ("ltv_cac", "quick", "used_legacy_expenses"):
            payload.pop(key)
        return payload


class SaaSKPIFormula(BaseKPIFormula[MetricsBundle]):
    """
    Deterministic SaaS period metrics with safe division-by-zero handling.

    All arithmetic is self-contained.  No I/O, no logging, no side effects.
    """

    def __init__(self, max_lifetime_months: int = MAX_LIFETIME_MONTHS) -> None:
        self._max_lifetime_months = max_lifetime_months

    def calculate(self, snapshot: BillingSnapshot, period: DateRange) -> MetricsBundle:
        return calculate_period_metrics(
            snapshot.clients,
            snapshot.addons,
            snapshot.transactions,
            period.start,
            period.end,
            expenses=snapshot.expenses,
            max_lifetime_months=self._max_lifetime_months,
        )


def calculate_period_metrics(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    transactions: Sequence[Transaction],
    start: date,
    end: date,
    *,
    expenses: Sequence[LegacyExpense] = (),
    max_lifetime_months: int = MAX_LIFETIME_MONTHS,
) -> MetricsBundle:
    """
    Compute the full KPI bundle for the inclusive period ``[start, end]``.

    Parameters
    ----------
    clients, addons, transactions:
        Full record collections; they are filtered here, not by the caller.
    start, end:
        Inclusive period bounds. An inverted range is not an error.
    expenses:
        Legacy expense rows, read only when the period has no CAC-tagged
        transaction.
    max_lifetime_months:
        Cap applied to the estimated customer lifetime.
    """
    owners = index_clients(clients)

    active = [c for c in clients if was_client_active_at(c, end)]
    active_recurring = [
        c for c in active if c.product is not None and is_recurring_product(c.product)
    ]

    mrr = mrr_at_date(clients, addons, end, client_index=owners)
    arr = mrr * 12
    ticket_medio = _safe_div(mrr, len(active_recurring))

    new_clients = [c for c in clients if is_within(c.start_date, start, end)]
    churned = _churned_in_period(clients, start, end)

    clients_at_start = sum(1 for c in clients if was_client_active_at(c, start))
    average_clients = (clients_at_start + len(active)) / 2
    period_months = max(1, months_between(start, end) + 1)
    churn_rate = _churn_rate(len(churned), average_clients)
    churn_rate_monthly = churn_rate / period_months

    cac_expenses, used_legacy = cac_expense_total(transactions, expenses, start, end)
    cac = _safe_div(cac_expenses, len(new_clients))

    lifetime = _estimated_lifetime_months(churn_rate_monthly, max_lifetime_months)
    ltv = ticket_medio * lifetime

    mrr_accumulated, setup_revenue = _billed_revenue(clients, addons, start, end, owners)
    faturamento_real = mrr_accumulated + setup_revenue

    payback_period = _safe_div(cac, ticket_medio)

    new_mrr = sum((recurring_monthly_value(c.product) for c in new_clients), 0.0)
    churned_mrr = sum((recurring_monthly_value(c.product) for c in churned), 0.0)

    ltv_cac = ltv_cac_ratio(ltv, cac)
    quick = quick_ratio(new_mrr, churned_mrr)

    period_transactions = transactions_in_range(transactions, start, end)
    if any(is_expense(t) for t in period_transactions):
        total_expenses = expense_total(period_transactions)
    else:
        total_expenses = cac_expenses

    return MetricsBundle(
        mrr=mrr,
        arr=arr,
        ticket_medio=ticket_medio,
        active_clients=len(active),
        active_clients_with_recurring=len(active_recurring),
        new_clients_this_month=len(new_clients),
        churned_this_month=len(churned),
        clients_at_start_of_period=clients_at_start,
        average_clients=average_clients,
        period_months=period_months,
        churn_rate=churn_rate,
        churn_rate_monthly=churn_rate_monthly,
        cac_expenses=cac_expenses,
        cac=cac,
        estimated_lifetime_months=lifetime,
        ltv=ltv,
        mrr_accumulated=mrr_accumulated,
        setup_revenue=setup_revenue,
        faturamento_real=faturamento_real,
        payback_period=payback_period,
        new_mrr=new_mrr,
        churned_mrr=churned_mrr,
        ltv_cac_ratio=ltv_cac.to_wire(),
        quick_ratio=quick.to_wire(),
        total_expenses=total_expenses,
        gross_margin=_margin(faturamento_real, cac_expenses),
        net_margin=_margin(faturamento_real, total_expenses),
        average_new_clients_last_6_months=_average_new_clients(clients, end),
        used_legacy_expenses=used_legacy,
        ltv_cac=ltv_cac,
        quick=quick,
    )


# ---------------------------------------------------------------------------
# Pure formula functions
# ---------------------------------------------------------------------------


def _safe_div(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def _churned_in_period(clients: Sequence[Client], start: date, end: date) -> list[Client]:
    return [
        c
        for c in clients
        if c.status == ClientStatus.CHURNED
        and c.churn_date is not None
        and is_within(c.churn_date, start, end)
    ]


def _churn_rate(churned: int, average_clients: float) -> float:
    """Churn Rate = churned / average clients * 100; 0 with no clients."""
    return _safe_div(churned, average_clients) * 100


def _estimated_lifetime_months(churn_rate_monthly: float, cap: int) -> float:
    """
    Lifetime = 1 / monthly churn fraction, capped.

    With no observed churn the cap itself is the assumption.
    """
    if churn_rate_monthly > 0:
        return min(1 / (churn_rate_monthly / 100), float(cap))
    return float(cap)


def _billed_revenue(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    start: date,
    end: date,
    owners: dict[str, Client],
) -> tuple[float, float]:
    """
    Walk each whole month of the period and accumulate recurring and setup
    revenue separately.
    """
    recurring = 0.0
    setup = 0.0
    for month in months_in_range(start, end):
        split = month_revenue(clients, addons, month, client_index=owners)
        recurring += split.recurring
        setup += split.one_time
    return recurring, setup


def _margin(revenue: float, costs: float) -> float:
    """(revenue - costs) / revenue * 100; 0 with no revenue."""
    if revenue == 0:
        return 0.0
    return (revenue - costs) / revenue * 100


def _average_new_clients(clients: Sequence[Client], end: date) -> int:
    """
    Average monthly new clients over the six months before *end*, rounded
    half-up. Never 0, so downstream projections always have a base.
    """
    window_start = end - relativedelta(months=_NEW_CLIENT_AVERAGE_WINDOW_MONTHS)
    count = sum(1 for c in clients if is_within(c.start_date, window_start, end))
    months = max(1, months_between(window_start, end))
    return math.floor(count / months + 0.5) or 1
