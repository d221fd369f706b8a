"""
app/schemas/planning.py

Request and response schemas for growth plans and scenario simulation.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.domain.planning import Plan, PlanMetrics, PlanStatus, SavedScenario
from kpi.projection import Scenario, ScenarioOutcome


class PlanMetricsSchema(BaseModel):
    cac: float = Field(..., ge=0)
    ticket_medio: float = Field(..., ge=0)
    churn_rate: float = Field(..., ge=0)
    new_clients_per_month: float = Field(..., ge=0)
    mrr: float = Field(..., ge=0)
    ltv: float = Field(..., ge=0)
    total_clients: int = Field(..., ge=0)

    model_config = {"from_attributes": True}

    def to_domain(self) -> PlanMetrics:
        return PlanMetrics(**self.model_dump())


class SavedScenarioSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    cac: float = Field(..., ge=0)
    ticket_medio: float = Field(..., ge=0)
    churn_rate: float = Field(..., ge=0, le=100)
    new_clients_per_month: float = Field(..., ge=0)
    horizon_months: int = Field(12, ge=1, le=120)
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    def to_domain(self) -> SavedScenario:
        return SavedScenario(**self.model_dump())


class PlanUpsertRequest(BaseModel):
    """
    Request body for creating or replacing a plan.

    A plan saved as ``active`` pauses every other active plan.
    """

    title: str = Field(..., min_length=1)
    start_date: date
    status: Literal["active", "paused", "cancelled"] = PlanStatus.ACTIVE
    segment: str = ""
    horizon_months: int = Field(12, ge=1, le=120)
    current_metrics: PlanMetricsSchema | None = None
    simulated_metrics: dict[str, float] = Field(default_factory=dict)
    actions: list[dict[str, Any]] = Field(default_factory=list)
    scenarios: list[SavedScenarioSchema] = Field(default_factory=list)
    cancellation_reason: str | None = None

    def to_domain(self, plan_id: str) -> Plan:
        return Plan(
            id=plan_id,
            title=self.title,
            start_date=self.start_date,
            status=self.status,
            segment=self.segment,
            horizon_months=self.horizon_months,
            current_metrics=self.current_metrics.to_domain() if self.current_metrics else None,
            simulated_metrics=dict(self.simulated_metrics),
            actions=[dict(action) for action in self.actions],
            scenarios=[scenario.to_domain() for scenario in self.scenarios],
            cancellation_reason=self.cancellation_reason,
        )


class PlanResponse(BaseModel):
    id: str
    title: str
    start_date: date
    status: str
    segment: str
    horizon_months: int
    current_metrics: PlanMetricsSchema | None = None
    simulated_metrics: dict[str, float] = Field(default_factory=dict)
    actions: list[dict[str, Any]] = Field(default_factory=list)
    scenarios: list[SavedScenarioSchema] = Field(default_factory=list)
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_domain(cls, plan: Plan) -> PlanResponse:
        return cls.model_validate(plan)


class PlanArchiveRequest(BaseModel):
    status: Literal["paused", "cancelled"] = PlanStatus.PAUSED
    reason: str | None = None


class ScenarioSimulationRequest(BaseModel):
    """
    Levers for a what-if run. ``total_clients`` defaults to the current
    active client count when omitted.
    """

    cac: float = Field(..., ge=0)
    ticket_medio: float = Field(..., ge=0)
    churn_rate: float = Field(..., ge=0, le=100)
    new_clients_per_month: float = Field(..., ge=0)
    horizon_months: int = Field(12, ge=1, le=120)
    total_clients: int | None = Field(default=None, ge=0)

    def to_scenario(self) -> Scenario:
        return Scenario(
            cac=self.cac,
            ticket_medio=self.ticket_medio,
            churn_rate=self.churn_rate,
            new_clients_per_month=self.new_clients_per_month,
            horizon_months=self.horizon_months,
        )


class ScenarioOutcomeResponse(BaseModel):
    projected_clients: int = Field(..., ge=0)
    mrr: float
    arr: float
    ltv: float
    total_cost: float
    total_revenue: float
    profit: float
    roi: float
    monthly_mrr: list[float] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: ScenarioOutcome) -> ScenarioOutcomeResponse:
        return cls(
            projected_clients=outcome.projected_clients,
            mrr=outcome.mrr,
            arr=outcome.arr,
            ltv=outcome.ltv,
            total_cost=outcome.total_cost,
            total_revenue=outcome.total_revenue,
            profit=outcome.profit,
            roi=outcome.roi,
            monthly_mrr=list(outcome.monthly_mrr),
        )
