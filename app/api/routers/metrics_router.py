"""
app/api/routers/metrics_router.py

Read-only metrics endpoints.

Every request loads one consistent snapshot through
:class:`~app.services.kpi_orchestrator.KPIOrchestrator` and returns the
engine's output serialized through ``app.schemas.metrics``. Nothing is
written.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import DateRangeParams, get_date_range, get_period
from app.schemas.metrics import (
    CashFlowPointResponse,
    CategoryAmountResponse,
    ChurnHistoryPointResponse,
    FinancialMetricsResponse,
    MetricsBundleResponse,
    MetricsComparisonResponse,
    MrrAtDateResponse,
    MrrHistoryPointResponse,
    MrrProjectionResponse,
    ProjectionPointResponse,
    RevenueHistoryPointResponse,
)
from app.services.kpi_orchestrator import (
    InvalidDateRangeError,
    KPIAggregationError,
    KPIOrchestrator,
    get_kpi_orchestrator,
    require_range,
)
from db.session import get_db

router = APIRouter(prefix="/metrics", tags=["metrics"])


def _aggregation_failed(exc: KPIAggregationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Metrics computation failed: {exc}",
    )


# ---------------------------------------------------------------------------
# Period metrics
# ---------------------------------------------------------------------------


@router.get("", response_model=MetricsBundleResponse)
def get_metrics(
    period: tuple[date, date] = Depends(get_period),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> MetricsBundleResponse:
    """
    KPI bundle for the inclusive range (current month when omitted).

    Raises HTTP 400 when only one bound is supplied.
    """
    start, end = period
    try:
        bundle = orchestrator.metrics(db=db, start=start, end=end)
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc
    return MetricsBundleResponse.from_bundle(bundle)


@router.get("/comparison", response_model=MetricsComparisonResponse)
def get_metrics_comparison(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    comparison_start_date: date | None = Query(default=None),
    comparison_end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> MetricsComparisonResponse:
    """
    Two bundles and the per-field percentage change between them.

    All four bounds are required.
    """
    try:
        current_range = require_range(start_date, end_date, label="current period")
        comparison_range = require_range(
            comparison_start_date, comparison_end_date, label="comparison period"
        )
    except InvalidDateRangeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        result = orchestrator.comparison(
            db=db,
            current_range=current_range,
            comparison_range=comparison_range,
        )
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc

    return MetricsComparisonResponse(
        current=MetricsBundleResponse.from_bundle(result.current),
        previous=MetricsBundleResponse.from_bundle(result.previous),
        changes=result.changes,
    )


@router.get("/mrr", response_model=MrrAtDateResponse)
def get_mrr_at(
    at: date | None = Query(default=None, description="Snapshot date; today when omitted"),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> MrrAtDateResponse:
    at = at or date.today()
    try:
        mrr = orchestrator.mrr_at(db=db, at=at)
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc
    return MrrAtDateResponse(date=at, mrr=mrr)


@router.get("/financial", response_model=FinancialMetricsResponse)
def get_financial_metrics(
    period: tuple[date, date] = Depends(get_period),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> FinancialMetricsResponse:
    start, end = period
    try:
        result = orchestrator.financial(db=db, start=start, end=end)
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc

    return FinancialMetricsResponse(
        total_revenue=result.total_revenue,
        subscription_revenue=result.subscription_revenue,
        setup_revenue=result.setup_revenue,
        other_revenue=result.other_revenue,
        total_expenses=result.total_expenses,
        cac_expenses=result.cac_expenses,
        operational_expenses=result.operational_expenses,
        gross_profit=result.gross_profit,
        gross_margin=result.gross_margin,
        operational_result=result.operational_result,
        operational_margin=result.operational_margin,
        burn_rate=result.burn_rate,
        expenses_by_category=[
            CategoryAmountResponse(category=item.category, amount=item.amount)
            for item in result.expenses_by_category
        ],
    )


# ---------------------------------------------------------------------------
# Historical series
# ---------------------------------------------------------------------------


@router.get("/history/mrr", response_model=list[MrrHistoryPointResponse])
def get_mrr_history(
    range_params: DateRangeParams = Depends(get_date_range),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> list[MrrHistoryPointResponse]:
    try:
        points = orchestrator.mrr_history(db=db, start=range_params.start, end=range_params.end)
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc
    return [
        MrrHistoryPointResponse(month=p.month, month_start=p.month_start, mrr=p.mrr)
        for p in points
    ]


@router.get("/history/churn", response_model=list[ChurnHistoryPointResponse])
def get_churn_history(
    range_params: DateRangeParams = Depends(get_date_range),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> list[ChurnHistoryPointResponse]:
    try:
        points = orchestrator.churn_history(db=db, start=range_params.start, end=range_params.end)
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc
    return [
        ChurnHistoryPointResponse(
            month=p.month,
            month_start=p.month_start,
            new_count=p.new_count,
            churned_count=p.churned_count,
        )
        for p in points
    ]


@router.get("/history/revenue", response_model=list[RevenueHistoryPointResponse])
def get_revenue_history(
    range_params: DateRangeParams = Depends(get_date_range),
    basis: Literal["mrr", "cash"] = Query(default="mrr"),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> list[RevenueHistoryPointResponse]:
    try:
        points = orchestrator.revenue_history(
            db=db,
            start=range_params.start,
            end=range_params.end,
            basis=basis,
        )
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc
    return [
        RevenueHistoryPointResponse(
            month=p.month,
            month_start=p.month_start,
            recurring_amount=p.recurring_amount,
            one_time_amount=p.one_time_amount,
            total=p.total,
        )
        for p in points
    ]


@router.get("/history/cash-flow", response_model=list[CashFlowPointResponse])
def get_cash_flow_history(
    range_params: DateRangeParams = Depends(get_date_range),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> list[CashFlowPointResponse]:
    try:
        points = orchestrator.cash_flow_history(db=db, start=range_params.start, end=range_params.end)
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc
    return [
        CashFlowPointResponse(month=p.month, revenue=p.revenue, expenses=p.expenses, net=p.net)
        for p in points
    ]


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


@router.get("/projection", response_model=MrrProjectionResponse)
def get_mrr_projection(
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> MrrProjectionResponse:
    try:
        projection = orchestrator.projection(db=db)
    except KPIAggregationError as exc:
        raise _aggregation_failed(exc) from exc
    return MrrProjectionResponse(
        current_mrr=projection.current_mrr,
        growth_rate=projection.growth_rate,
        arr_growth_pct=projection.arr_growth_pct,
        points=[
            ProjectionPointResponse(
                month=p.month,
                projected_mrr=p.projected_mrr,
                projected_arr=p.projected_arr,
            )
            for p in projection.points
        ],
    )
