"""
app/domain/planning.py

Domain models for growth plans and what-if scenarios.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from kpi.saas import MetricsBundle


class PlanStatus:
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"

    ALL = frozenset({ACTIVE, PAUSED, CANCELLED})


@dataclass(frozen=True)
class PlanMetrics:
    """
    Baseline figures a plan starts from.

    ``churn_rate`` is the monthly-normalized churn percentage, never the
    whole-period rate.
    """

    cac: float
    ticket_medio: float
    churn_rate: float
    new_clients_per_month: float
    mrr: float
    ltv: float
    total_clients: int

    @classmethod
    def from_bundle(cls, bundle: MetricsBundle) -> PlanMetrics:
        return cls(
            cac=bundle.cac,
            ticket_medio=bundle.ticket_medio,
            churn_rate=bundle.churn_rate_monthly,
            new_clients_per_month=float(
                bundle.average_new_clients_last_6_months or bundle.new_clients_this_month
            ),
            mrr=bundle.mrr,
            ltv=bundle.ltv,
            total_clients=bundle.active_clients,
        )


@dataclass(frozen=True)
class SavedScenario:
    """
    A named set of simulation levers kept on a plan.
    """

    id: str
    name: str
    cac: float
    ticket_medio: float
    churn_rate: float
    new_clients_per_month: float
    horizon_months: int
    created_at: datetime | None = None


@dataclass
class Plan:
    """
    A growth plan. ``simulated_metrics`` holds the levers currently being
    edited; ``actions`` are free-form checklist items.
    """

    id: str
    title: str
    start_date: date
    status: str = PlanStatus.ACTIVE
    segment: str = ""
    horizon_months: int = 12
    current_metrics: PlanMetrics | None = None
    simulated_metrics: dict[str, float] = field(default_factory=dict)
    actions: list[dict[str, Any]] = field(default_factory=list)
    scenarios: list[SavedScenario] = field(default_factory=list)
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
