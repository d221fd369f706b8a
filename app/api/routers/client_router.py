"""
app/api/routers/client_router.py

Client ranking endpoints.
"""

from __future__ import annotations

import math
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.schemas.metrics import ClientRankingResponse, RankedClientResponse
from app.services.kpi_orchestrator import (
    KPIAggregationError,
    KPIOrchestrator,
    get_kpi_orchestrator,
)
from db.session import get_db

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("/ranking", response_model=ClientRankingResponse)
def get_client_ranking(
    status_filter: Literal["all", "active", "churned"] = Query(default="all", alias="status"),
    sort_by: Literal["ltv", "tenure"] = Query(default="ltv"),
    page: int = Query(default=1, ge=1),
    db: Session = Depends(get_db),
    orchestrator: KPIOrchestrator = Depends(get_kpi_orchestrator),
) -> ClientRankingResponse:
    """
    One page of clients ranked by realized LTV (or tenure), descending.

    A page past the end returns an empty ``items`` list.
    """
    try:
        ranked = orchestrator.ranking(db=db, status=status_filter, sort_by=sort_by)
    except KPIAggregationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Ranking computation failed: {exc}",
        ) from exc

    page_size = orchestrator.service.settings.ranking_page_size
    offset = (page - 1) * page_size
    return ClientRankingResponse(
        status=status_filter,
        sort_by=sort_by,
        page=page,
        page_size=page_size,
        total=len(ranked),
        total_pages=math.ceil(len(ranked) / page_size),
        items=[
            RankedClientResponse(
                client_id=item.client_id,
                name=item.name,
                status=item.status,
                tenure_months=item.tenure_months,
                ltv=item.ltv,
                average_ticket=item.average_ticket,
                monthly_value=item.monthly_value,
            )
            for item in ranked[offset : offset + page_size]
        ],
    )
