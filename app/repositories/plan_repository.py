"""
app/repositories/plan_repository.py

Plan persistence behind an injected store interface.

Invariant shared by every implementation: saving a plan whose status is
``active`` pauses every other active plan, so at most one plan is active.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.planning import Plan, PlanMetrics, PlanStatus, SavedScenario
from db.models.plan import PlanRecord
from db.repositories.errors import PlanNotFoundError

logger = logging.getLogger(__name__)


class PlanStore(ABC):
    """
    Contract for plan persistence.

    Implementations never commit on their own; the caller owns the unit of
    work (the in-memory store has nothing to commit).
    """

    @abstractmethod
    def get(self, plan_id: str) -> Plan:
        """Return the plan or raise PlanNotFoundError."""

    @abstractmethod
    def save(self, plan: Plan) -> Plan:
        """Insert or replace *plan*; an active plan pauses the others."""

    @abstractmethod
    def delete(self, plan_id: str) -> None:
        """Remove the plan or raise PlanNotFoundError."""

    @abstractmethod
    def list_all(self) -> list[Plan]:
        """All plans, most recently updated first."""

    def list_by_status(self, status: str) -> list[Plan]:
        if status not in PlanStatus.ALL:
            raise ValueError(
                f"Unknown plan status {status!r}. Allowed values: {sorted(PlanStatus.ALL)}."
            )
        return [plan for plan in self.list_all() if plan.status == status]

    def get_active(self) -> Plan | None:
        active = self.list_by_status(PlanStatus.ACTIVE)
        return active[0] if active else None

    def archive_active(self, status: str = PlanStatus.PAUSED, reason: str | None = None) -> Plan | None:
        """
        Move the active plan to *status* (``paused`` or ``cancelled``).

        Returns the archived plan, or None when no plan was active.
        """
        if status not in (PlanStatus.PAUSED, PlanStatus.CANCELLED):
            raise ValueError(f"Cannot archive a plan into status {status!r}.")
        active = self.get_active()
        if active is None:
            return None
        archived = replace(
            active,
            status=status,
            cancellation_reason=reason if status == PlanStatus.CANCELLED else active.cancellation_reason,
        )
        logger.info("Archiving plan %s as %s", active.id, status)
        return self.save(archived)


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryPlanStore(PlanStore):
    """Dictionary-backed store for tests and single-process use."""

    def __init__(self) -> None:
        self._plans: dict[str, Plan] = {}

    def get(self, plan_id: str) -> Plan:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id!r} not found.")
        return copy.deepcopy(plan)

    def save(self, plan: Plan) -> Plan:
        now = _now_utc()
        existing = self._plans.get(plan.id)
        stored = replace(
            copy.deepcopy(plan),
            created_at=existing.created_at if existing else (plan.created_at or now),
            updated_at=now,
        )
        if stored.status == PlanStatus.ACTIVE:
            for other_id, other in self._plans.items():
                if other_id != stored.id and other.status == PlanStatus.ACTIVE:
                    self._plans[other_id] = replace(other, status=PlanStatus.PAUSED, updated_at=now)
        self._plans[stored.id] = stored
        return copy.deepcopy(stored)

    def delete(self, plan_id: str) -> None:
        if self._plans.pop(plan_id, None) is None:
            raise PlanNotFoundError(f"Plan {plan_id!r} not found.")

    def list_all(self) -> list[Plan]:
        plans = sorted(
            self._plans.values(),
            key=lambda p: p.updated_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return [copy.deepcopy(plan) for plan in plans]


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SQLAlchemyPlanStore(PlanStore):
    """
    Store backed by the ``plans`` table.

    Writes are flushed, never committed.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, plan_id: str) -> Plan:
        return _row_to_plan(self._get_row(plan_id))

    def save(self, plan: Plan) -> Plan:
        if plan.status == PlanStatus.ACTIVE:
            stmt = select(PlanRecord).where(
                PlanRecord.status == PlanStatus.ACTIVE,
                PlanRecord.id != plan.id,
            )
            for other in self._session.execute(stmt).scalars().all():
                logger.debug("Pausing plan %s because plan %s became active", other.id, plan.id)
                other.status = PlanStatus.PAUSED

        row = self._session.get(PlanRecord, plan.id)
        values = _plan_to_values(plan)
        if row is None:
            row = PlanRecord(id=plan.id, **values)
            self._session.add(row)
        else:
            for key, value in values.items():
                setattr(row, key, value)

        self._session.flush()
        self._session.refresh(row)
        return _row_to_plan(row)

    def delete(self, plan_id: str) -> None:
        self._session.delete(self._get_row(plan_id))
        self._session.flush()

    def list_all(self) -> list[Plan]:
        stmt = select(PlanRecord).order_by(PlanRecord.updated_at.desc(), PlanRecord.id)
        return [_row_to_plan(row) for row in self._session.execute(stmt).scalars().all()]

    def list_by_status(self, status: str) -> list[Plan]:
        if status not in PlanStatus.ALL:
            raise ValueError(
                f"Unknown plan status {status!r}. Allowed values: {sorted(PlanStatus.ALL)}."
            )
        stmt = (
            select(PlanRecord)
            .where(PlanRecord.status == status)
            .order_by(PlanRecord.updated_at.desc(), PlanRecord.id)
        )
        return [_row_to_plan(row) for row in self._session.execute(stmt).scalars().all()]

    def _get_row(self, plan_id: str) -> PlanRecord:
        row = self._session.get(PlanRecord, plan_id)
        if row is None:
            raise PlanNotFoundError(f"Plan {plan_id!r} not found.")
        return row


# ---------------------------------------------------------------------------
# Module-level helpers (no business logic)
# ---------------------------------------------------------------------------


def _plan_to_values(plan: Plan) -> dict[str, Any]:
    return {
        "title": plan.title,
        "status": plan.status,
        "segment": plan.segment,
        "start_date": plan.start_date,
        "horizon_months": plan.horizon_months,
        "current_metrics": asdict(plan.current_metrics) if plan.current_metrics else {},
        "simulated_metrics": dict(plan.simulated_metrics),
        "actions": [dict(action) for action in plan.actions],
        "scenarios": [_scenario_to_json(s) for s in plan.scenarios],
        "cancellation_reason": plan.cancellation_reason,
    }


def _row_to_plan(row: PlanRecord) -> Plan:
    return Plan(
        id=row.id,
        title=row.title,
        start_date=row.start_date,
        status=row.status,
        segment=row.segment,
        horizon_months=row.horizon_months,
        current_metrics=PlanMetrics(**row.current_metrics) if row.current_metrics else None,
        simulated_metrics=dict(row.simulated_metrics or {}),
        actions=[dict(action) for action in row.actions or []],
        scenarios=[_scenario_from_json(s) for s in row.scenarios or []],
        cancellation_reason=row.cancellation_reason,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _scenario_to_json(scenario: SavedScenario) -> dict[str, Any]:
    payload = asdict(scenario)
    payload["created_at"] = scenario.created_at.isoformat() if scenario.created_at else None
    return payload


def _scenario_from_json(payload: dict[str, Any]) -> SavedScenario:
    created_at = payload.get("created_at")
    return SavedScenario(
        id=str(payload["id"]),
        name=str(payload.get("name", "")),
        cac=float(payload.get("cac", 0.0)),
        ticket_medio=float(payload.get("ticket_medio", 0.0)),
        churn_rate=float(payload.get("churn_rate", 0.0)),
        new_clients_per_month=float(payload.get("new_clients_per_month", 0.0)),
        horizon_months=int(payload.get("horizon_months", 12)),
        created_at=datetime.fromisoformat(created_at) if created_at else None,
    )


def _now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)
