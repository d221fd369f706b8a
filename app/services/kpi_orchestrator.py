"""
app/services/kpi_orchestrator.py

Metrics pipeline orchestrator.

Wires SnapshotRepository → KPIService for a single request. No business
logic lives here; every layer retains its own responsibility:

    SnapshotRepository  – reads the four record collections into engine types
    KPIService          – deterministic metric calculation and logging

Failure contract
----------------
- Only one bound of a range supplied → raises InvalidDateRangeError
- Snapshot read failure               → raises KPIAggregationError (no writes occurred)
- Data problems (missing products, zero denominators, inverted ranges)
  never raise; the engine degrades to zeros and documented sentinels.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.kpi_service import KPIService, PeriodComparison
from db.repositories.snapshot_repository import SnapshotRepository
from kpi.financial import CashFlowPoint, FinancialMetrics
from kpi.history import ChurnPoint, MrrPoint, RevenuePoint
from kpi.projection import MrrProjection
from kpi.ranking import RankedClient, RankingFilter, RankingSort
from kpi.revenue import RevenueBasis
from kpi.saas import MetricsBundle
from kpi.types import BillingSnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class KPIAggregationError(RuntimeError):
    """
    Raised when the record snapshot cannot be read from the database.

    The session is left in a clean state (no partial writes occurred).
    """


class InvalidDateRangeError(ValueError):
    """
    Raised when a request supplies only one bound of a date range.

    An inverted range is not an error; the engine handles it.
    """


def require_range(start: date | None, end: date | None, *, label: str = "date range") -> tuple[date, date]:
    """Both bounds or neither; returns the pair or raises InvalidDateRangeError."""
    if start is None or end is None:
        raise InvalidDateRangeError(f"Both start and end dates are required for the {label}.")
    return start, end


def optional_range(start: date | None, end: date | None) -> tuple[date | None, date | None]:
    """Both bounds or neither; a lone bound raises InvalidDateRangeError."""
    if (start is None) != (end is None):
        raise InvalidDateRangeError("Provide both start_date and end_date, or neither.")
    return start, end


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class KPIOrchestrator:
    """
    Loads a consistent snapshot per call and delegates to :class:`KPIService`.

    Stateless with respect to business data; the repository is
    instantiated per call because it is bound to a request-scoped session.
    """

    def __init__(self, service: KPIService | None = None) -> None:
        self._service = service or KPIService()

    @property
    def service(self) -> KPIService:
        return self._service

    # ------------------------------------------------------------------
    # Period metrics
    # ------------------------------------------------------------------

    def metrics(self, *, db: Session, start: date, end: date) -> MetricsBundle:
        snapshot = self._load(db)
        return self._service.compute_metrics(
            snapshot.clients,
            snapshot.addons,
            snapshot.transactions,
            start,
            end,
            expenses=snapshot.expenses,
        )

    def comparison(
        self,
        *,
        db: Session,
        current_range: tuple[date, date],
        comparison_range: tuple[date, date],
    ) -> PeriodComparison:
        snapshot = self._load(db)
        return self._service.compute_comparison(
            snapshot.clients,
            snapshot.addons,
            snapshot.transactions,
            current_range,
            comparison_range,
            expenses=snapshot.expenses,
        )

    def mrr_at(self, *, db: Session, at: date) -> float:
        snapshot = self._load(db, include_transactions=False)
        return self._service.compute_mrr_at(snapshot.clients, snapshot.addons, at)

    def financial(self, *, db: Session, start: date, end: date) -> FinancialMetrics:
        snapshot = self._load(db)
        return self._service.compute_financial_metrics(
            snapshot.clients,
            snapshot.addons,
            snapshot.transactions,
            start,
            end,
        )

    # ------------------------------------------------------------------
    # Historical series
    # ------------------------------------------------------------------

    def mrr_history(
        self,
        *,
        db: Session,
        start: date | None = None,
        end: date | None = None,
    ) -> list[MrrPoint]:
        snapshot = self._load(db, include_transactions=False)
        return self._service.compute_mrr_history(snapshot.clients, snapshot.addons, start, end)

    def churn_history(
        self,
        *,
        db: Session,
        start: date | None = None,
        end: date | None = None,
    ) -> list[ChurnPoint]:
        snapshot = self._load(db, include_transactions=False)
        return self._service.compute_churn_history(snapshot.clients, start, end)

    def revenue_history(
        self,
        *,
        db: Session,
        start: date | None = None,
        end: date | None = None,
        basis: str = RevenueBasis.MRR,
    ) -> list[RevenuePoint]:
        snapshot = self._load(db, include_transactions=False)
        return self._service.compute_revenue_history(
            snapshot.clients, snapshot.addons, start, end, basis=basis
        )

    def cash_flow_history(
        self,
        *,
        db: Session,
        start: date | None = None,
        end: date | None = None,
    ) -> list[CashFlowPoint]:
        snapshot = self._load(db)
        return self._service.compute_cash_flow_history(
            snapshot.clients, snapshot.addons, snapshot.transactions, start, end
        )

    # ------------------------------------------------------------------
    # Projection and ranking
    # ------------------------------------------------------------------

    def projection(self, *, db: Session, today: date | None = None) -> MrrProjection:
        snapshot = self._load(db, include_transactions=False)
        return self._service.compute_projection(snapshot.clients, snapshot.addons, today=today)

    def ranking(
        self,
        *,
        db: Session,
        status: str = RankingFilter.ALL,
        sort_by: str = RankingSort.LTV,
        as_of: date | None = None,
    ) -> list[RankedClient]:
        snapshot = self._load(db, include_transactions=False)
        return self._service.rank_clients_by_ltv(
            snapshot.clients,
            snapshot.addons,
            status=status,
            sort_by=sort_by,
            as_of=as_of,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, db: Session, *, include_transactions: bool = True) -> BillingSnapshot:
        started = time.perf_counter()
        try:
            snapshot = SnapshotRepository(db).load_snapshot(include_transactions=include_transactions)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load billing snapshot")
            raise KPIAggregationError("Failed to load billing records from the database.") from exc

        logger.debug(
            "Snapshot loaded clients=%d addons=%d transactions=%d expenses=%d in %.1fms",
            len(snapshot.clients),
            len(snapshot.addons),
            len(snapshot.transactions),
            len(snapshot.expenses),
            (time.perf_counter() - started) * 1000,
        )
        return snapshot


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_kpi_orchestrator() -> KPIOrchestrator:
    """
    Build and cache the orchestrator with env-driven metrics settings.
    """
    return KPIOrchestrator(KPIService())
