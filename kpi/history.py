"""
kpi/history.py

Month-by-month series for charting.

Each generator walks the whole calendar months of ``[start, end]`` from
oldest to newest and emits exactly one point per month, zero-filled when
nothing happened. A range holding no whole month yields an empty series.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from kpi.mrr import index_clients, mrr_at_date
from kpi.revenue import RevenueBasis, month_revenue
from kpi.temporal import add_months, is_within, month_end, month_label, month_start, months_in_range
from kpi.types import Client, ClientAddon


@dataclass(frozen=True)
class MrrPoint:
    month: str
    month_start: date
    mrr: float


@dataclass(frozen=True)
class ChurnPoint:
    month: str
    month_start: date
    new_count: int
    churned_count: int


@dataclass(frozen=True)
class RevenuePoint:
    month: str
    month_start: date
    recurring_amount: float
    one_time_amount: float

    @property
    def total(self) -> float:
        return self.recurring_amount + self.one_time_amount


def default_history_range(today: date, months: int = 12) -> tuple[date, date]:
    """The trailing *months* whole months ending with the month of *today*."""
    months = max(1, months)
    end = month_end(today)
    start = month_start(add_months(today, -(months - 1)))
    return start, end


def mrr_history(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    start: date,
    end: date,
    *,
    locale: str = "pt_BR",
) -> list[MrrPoint]:
    owners = index_clients(clients)
    return [
        MrrPoint(
            month=month_label(month, locale),
            month_start=month,
            mrr=mrr_at_date(clients, addons, month_end(month), client_index=owners),
        )
        for month in months_in_range(start, end)
    ]


def churn_history(
    clients: Sequence[Client],
    start: date,
    end: date,
    *,
    locale: str = "pt_BR",
) -> list[ChurnPoint]:
    """
    New and churned client counts per month.

    Membership is by date only: a client counts as churned in the month of
    its ``churn_date`` regardless of its current status.
    """
    points: list[ChurnPoint] = []
    for month in months_in_range(start, end):
        last = month_end(month)
        new_count = sum(1 for c in clients if is_within(c.start_date, month, last))
        churned_count = sum(
            1 for c in clients if c.churn_date is not None and is_within(c.churn_date, month, last)
        )
        points.append(
            ChurnPoint(
                month=month_label(month, locale),
                month_start=month,
                new_count=new_count,
                churned_count=churned_count,
            )
        )
    return points


def revenue_history(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    start: date,
    end: date,
    *,
    basis: str = RevenueBasis.MRR,
    locale: str = "pt_BR",
) -> list[RevenuePoint]:
    owners = index_clients(clients)
    points: list[RevenuePoint] = []
    for month in months_in_range(start, end):
        split = month_revenue(clients, addons, month, basis=basis, client_index=owners)
        points.append(
            RevenuePoint(
                month=month_label(month, locale),
                month_start=month,
                recurring_amount=split.recurring,
                one_time_amount=split.one_time,
            )
        )
    return points
