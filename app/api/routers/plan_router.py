"""
app/api/routers/plan_router.py

Growth plan endpoints.

Plans are read and written through the injected
:class:`~app.repositories.plan_repository.PlanStore`; the router owns the
commit. Saving a plan as ``active`` pauses whichever plan was active.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_plan_store
from app.domain.planning import PlanMetrics
from app.repositories.plan_repository import PlanStore
from app.schemas.planning import (
    PlanArchiveRequest,
    PlanMetricsSchema,
    PlanResponse,
    PlanUpsertRequest,
    ScenarioOutcomeResponse,
    ScenarioSimulationRequest,
)
from app.services.kpi_orchestrator import (
    KPIAggregationError,
    KPIOrchestrator,
    get_kpi_orchestrator,
)
from db.repositories.errors import PlanNotFoundError
from db.session import get_db
from kpi.projection import simulate_scenario
from kpi.temporal import month_end, month_start

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans", tags=["plans"])


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Plan persistence failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist plan changes.",
        ) from exc


def _current_baseline(db: Session, orchestrator: KPIOrchestrator) -> PlanMetrics:
    today = date.today()
    try:
        bundle = orchestrator.metrics(db=db, start=month_start(today), end=month_end(today))
    except KPIAggregationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Metrics computation failed: {exc}",
        ) from exc
    return PlanMetrics.from_bundle(bundle)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("", response_model=list[PlanResponse])
def list_plans(
    status_filter: Literal["active", "paused", "cancelled"] | None = Query(default=None, alias="status"),
    store: PlanStore = Depends(get_plan_store),
) -> list[PlanResponse]:
    plans = store.list_by_status(status_filter) if status_filter else store.list_all()
    return [PlanResponse.from_domain(plan) for plan in plans]


@router.get("/active", response_model=PlanResponse | None)
def get_active_plan(store: PlanStore = Depends(get_plan_store)) -> PlanResponse | None:
    """The active plan, or ``null`` when none is active."""
    plan = store.get_active()
    return PlanResponse.from_domain(plan) if plan else None


@router.get("/baseline", response_model=PlanMetricsSchema)
def get_plan_baseline(
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> PlanMetricsSchema:
    """Current-month figures a new plan starts from."""
    return PlanMetricsSchema.model_validate(_current_baseline(db, orchestrator))


@router.get("/{plan_id}", response_model=PlanResponse)
def get_plan(plan_id: str, store: PlanStore = Depends(get_plan_store)) -> PlanResponse:
    try:
        plan = store.get(plan_id)
    except PlanNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PlanResponse.from_domain(plan)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


@router.put("/{plan_id}", response_model=PlanResponse)
def upsert_plan(
    plan_id: str,
    body: PlanUpsertRequest,
    db: Session = Depends(get_db),
    store: PlanStore = Depends(get_plan_store),
) -> PlanResponse:
    """
    Create or replace a plan.

    Saving with ``status=active`` pauses every other active plan.
    """
    saved = store.save(body.to_domain(plan_id))
    _commit(db)
    logger.info("Plan %s saved with status %s", saved.id, saved.status)
    return PlanResponse.from_domain(saved)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_plan(
    plan_id: str,
    db: Session = Depends(get_db),
    store: PlanStore = Depends(get_plan_store),
) -> Response:
    try:
        store.delete(plan_id)
    except PlanNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    _commit(db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/active/archive", response_model=PlanResponse | None)
def archive_active_plan(
    body: PlanArchiveRequest,
    db: Session = Depends(get_db),
    store: PlanStore = Depends(get_plan_store),
) -> PlanResponse | None:
    """
    Pause or cancel the active plan. Returns ``null`` when none is active.
    """
    archived = store.archive_active(status=body.status, reason=body.reason)
    if archived is None:
        return None
    _commit(db)
    return PlanResponse.from_domain(archived)


@router.post("/simulate", response_model=ScenarioOutcomeResponse)
def simulate_plan_scenario(
    body: ScenarioSimulationRequest,
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> ScenarioOutcomeResponse:
    """
    What-if projection of the client base under the given levers.

    Starts from the current active client count unless ``total_clients``
    is given.
    """
    total_clients = body.total_clients
    if total_clients is None:
        total_clients = _current_baseline(db, orchestrator).total_clients
    outcome = simulate_scenario(total_clients, body.to_scenario())
    return ScenarioOutcomeResponse.from_outcome(outcome)
