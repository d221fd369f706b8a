"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from fastapi import Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.repositories.plan_repository import PlanStore, SQLAlchemyPlanStore
from app.services.kpi_orchestrator import InvalidDateRangeError, optional_range
from db.session import get_db
from kpi.temporal import month_end, month_start

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(".csv")
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


# ---------------------------------------------------------------------------
# Date ranges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateRangeParams:
    """Both bounds or neither."""

    start: date | None = None
    end: date | None = None

    @property
    def is_set(self) -> bool:
        return self.start is not None and self.end is not None


def get_date_range(
    start_date: date | None = Query(default=None, description="Inclusive range start (YYYY-MM-DD)"),
    end_date: date | None = Query(default=None, description="Inclusive range end (YYYY-MM-DD)"),
) -> DateRangeParams:
    """
    Parse an optional ``start_date``/``end_date`` pair.

    Raises HTTP 400 when only one bound is supplied. An inverted range is
    passed through untouched.
    """
    try:
        start, end = optional_range(start_date, end_date)
    except InvalidDateRangeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DateRangeParams(start=start, end=end)


def get_period(range_params: DateRangeParams = Depends(get_date_range)) -> tuple[date, date]:
    """
    Resolve the metrics period; without bounds, the current calendar month.
    """
    if range_params.is_set:
        return range_params.start, range_params.end
    today = date.today()
    return month_start(today), month_end(today)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


def get_plan_store(db: Session = Depends(get_db)) -> PlanStore:
    return SQLAlchemyPlanStore(db)
