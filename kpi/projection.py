"""
kpi/projection.py

Forward-looking estimates built on top of the historical series.

MRR projection
--------------
growth rate    = mean of (mrr[i] - mrr[i-1]) / mrr[i-1] over the last *lookback*
                 history points, skipping pairs whose predecessor is 0
projected[k]   = last mrr * (1 + growth rate) ** k
ARR growth %   = (projected ARR at horizon - current ARR) / current ARR * 100
                 (0 when current ARR is 0)

Scenario simulation
-------------------
clients[k]     = clients[k-1] * (1 - churn) + new clients per month
final clients  = round(clients[horizon])
MRR            = final clients * ticket
LTV            = ticket / churn, or ticket * 24 with zero churn
total cost     = CAC * new clients per month * horizon
total revenue  = MRR * horizon
ROI            = (revenue - cost) / cost * 100, 9999 when there is revenue
                 but no cost, 0 when there is neither
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from kpi.history import MrrPoint
from kpi.temporal import add_months, month_label

INFINITE_ROI_SENTINEL = 9999.0
ZERO_CHURN_LTV_MONTHS = 24


@dataclass(frozen=True)
class ProjectionPoint:
    month: str
    projected_mrr: float
    projected_arr: float


@dataclass(frozen=True)
class MrrProjection:
    current_mrr: float
    growth_rate: float
    arr_growth_pct: float
    points: tuple[ProjectionPoint, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Scenario:
    """Editable planning levers; ``churn_rate`` is a monthly percentage."""

    cac: float
    ticket_medio: float
    churn_rate: float
    new_clients_per_month: float
    horizon_months: int = 12


@dataclass(frozen=True)
class ScenarioOutcome:
    projected_clients: int
    mrr: float
    arr: float
    ltv: float
    total_cost: float
    total_revenue: float
    profit: float
    roi: float
    monthly_mrr: tuple[float, ...] = field(default_factory=tuple)


def average_growth_rate(history: Sequence[MrrPoint], lookback: int = 6) -> float:
    recent = list(history)[-max(2, lookback):]
    if len(recent) < 2:
        return 0.0

    rates = [
        (curr.mrr - prev.mrr) / prev.mrr
        for prev, curr in zip(recent, recent[1:])
        if prev.mrr > 0
    ]
    if not rates:
        return 0.0
    return sum(rates) / len(rates)


def project_mrr(
    history: Sequence[MrrPoint],
    months: int = 6,
    lookback: int = 6,
    *,
    as_of: date | None = None,
    locale: str = "pt_BR",
) -> MrrProjection:
    """
    Compound the recent average growth forward *months* months.

    Labels start with the month after *as_of* (today by default).
    """
    as_of = as_of or date.today()
    growth_rate = average_growth_rate(history, lookback)
    current_mrr = history[-1].mrr if history else 0.0

    points: list[ProjectionPoint] = []
    projected = current_mrr
    for offset in range(1, max(0, months) + 1):
        projected = projected * (1 + growth_rate)
        points.append(
            ProjectionPoint(
                month=month_label(add_months(as_of, offset), locale),
                projected_mrr=projected,
                projected_arr=projected * 12,
            )
        )

    current_arr = current_mrr * 12
    if points and current_arr > 0:
        arr_growth_pct = (points[-1].projected_arr - current_arr) / current_arr * 100
    else:
        arr_growth_pct = 0.0

    return MrrProjection(
        current_mrr=current_mrr,
        growth_rate=growth_rate,
        arr_growth_pct=arr_growth_pct,
        points=tuple(points),
    )


def simulate_scenario(total_clients: float, scenario: Scenario) -> ScenarioOutcome:
    """Project the client base and revenue of *scenario* over its horizon."""
    churn = scenario.churn_rate / 100
    horizon = max(0, scenario.horizon_months)

    if churn > 0:
        ltv = scenario.ticket_medio / churn
    else:
        ltv = scenario.ticket_medio * ZERO_CHURN_LTV_MONTHS

    clients = float(total_clients)
    monthly_mrr: list[float] = []
    for _ in range(horizon):
        clients = clients * (1 - churn) + scenario.new_clients_per_month
        monthly_mrr.append(clients * scenario.ticket_medio)
    projected_clients = int(clients + 0.5) if clients >= 0 else 0

    mrr = projected_clients * scenario.ticket_medio
    total_cost = scenario.cac * scenario.new_clients_per_month * horizon
    total_revenue = mrr * horizon
    profit = total_revenue - total_cost

    if total_cost > 0:
        roi = profit / total_cost * 100
    elif total_revenue > 0:
        roi = INFINITE_ROI_SENTINEL
    else:
        roi = 0.0

    return ScenarioOutcome(
        projected_clients=projected_clients,
        mrr=mrr,
        arr=mrr * 12,
        ltv=ltv,
        total_cost=total_cost,
        total_revenue=total_revenue,
        profit=profit,
        roi=roi,
        monthly_mrr=tuple(monthly_mrr),
    )
