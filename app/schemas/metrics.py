"""
app/schemas/metrics.py

Response schemas for the metrics endpoints.

``ltv_cac_ratio`` and ``quick_ratio`` carry the wire sentinels (-1 when
not applicable, 99 when infinite); the ``*_kind`` fields expose the
underlying tag so clients do not have to decode them.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

from kpi.saas import MetricsBundle


class MetricsBundleResponse(BaseModel):
    """
    API response model for one period's KPI bundle.
    """

    mrr: float
    arr: float
    ticket_medio: float
    active_clients: int = Field(..., ge=0)
    active_clients_with_recurring: int = Field(..., ge=0)
    new_clients_this_month: int = Field(..., ge=0)
    churned_this_month: int = Field(..., ge=0)
    clients_at_start_of_period: int = Field(..., ge=0)
    average_clients: float
    period_months: int = Field(..., ge=1)
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
    average_new_clients_last_6_months: int = Field(..., ge=1)
    ltv_cac_kind: str
    quick_ratio_kind: str
    used_legacy_expenses: bool = False

    @classmethod
    def from_bundle(cls, bundle: MetricsBundle) -> MetricsBundleResponse:
        return cls(
            **bundle.to_dict(),
            ltv_cac_kind=bundle.ltv_cac.kind,
            quick_ratio_kind=bundle.quick.kind,
            used_legacy_expenses=bundle.used_legacy_expenses,
        )


class MetricsComparisonResponse(BaseModel):
    current: MetricsBundleResponse
    previous: MetricsBundleResponse
    changes: dict[str, float | None] = Field(default_factory=dict)


class MrrAtDateResponse(BaseModel):
    date: dt.date
    mrr: float


class MrrHistoryPointResponse(BaseModel):
    month: str
    month_start: dt.date
    mrr: float


class ChurnHistoryPointResponse(BaseModel):
    month: str
    month_start: dt.date
    new_count: int = Field(..., ge=0)
    churned_count: int = Field(..., ge=0)


class RevenueHistoryPointResponse(BaseModel):
    month: str
    month_start: dt.date
    recurring_amount: float
    one_time_amount: float
    total: float


class CashFlowPointResponse(BaseModel):
    month: str
    revenue: float
    expenses: float
    net: float


class ProjectionPointResponse(BaseModel):
    month: str
    projected_mrr: float
    projected_arr: float


class MrrProjectionResponse(BaseModel):
    """
    API response model for the forward MRR projection.
    """

    current_mrr: float
    growth_rate: float
    arr_growth_pct: float
    points: list[ProjectionPointResponse] = Field(default_factory=list)


class CategoryAmountResponse(BaseModel):
    category: str
    amount: float


class FinancialMetricsResponse(BaseModel):
    """
    API response model for statement-level financial metrics.
    """

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
    expenses_by_category: list[CategoryAmountResponse] = Field(default_factory=list)


class RankedClientResponse(BaseModel):
    client_id: str
    name: str
    status: str
    tenure_months: int = Field(..., ge=1)
    ltv: float
    average_ticket: float
    monthly_value: float


class ClientRankingResponse(BaseModel):
    """
    API response model for one page of the LTV ranking.
    """

    status: str
    sort_by: str
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    items: list[RankedClientResponse] = Field(default_factory=list)
