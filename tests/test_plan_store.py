"""
tests/test_plan_store.py

Unit tests for app/repositories/plan_repository.py.

Coverage:
  - Both stores: CRUD, single-active invariant, archive, status filter
  - SQLAlchemy store: JSON round trip of metrics and saved scenarios
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.orm import Session

from app.domain.planning import Plan, PlanMetrics, PlanStatus, SavedScenario
from app.repositories.plan_repository import InMemoryPlanStore, PlanStore, SQLAlchemyPlanStore
from db.repositories.errors import PlanNotFoundError


def _plan(plan_id: str, status: str = PlanStatus.ACTIVE, **overrides) -> Plan:
    overrides.setdefault("title", f"Plan {plan_id}")
    return Plan(
        id=plan_id,
        start_date=date(2024, 1, 1),
        status=status,
        **overrides,
    )


@pytest.fixture(params=["memory", "sqlalchemy"])
def store(request: pytest.FixtureRequest, db_session: Session) -> PlanStore:
    if request.param == "memory":
        return InMemoryPlanStore()
    return SQLAlchemyPlanStore(db_session)


# ---------------------------------------------------------------------------
# Shared contract
# ---------------------------------------------------------------------------


class TestPlanStoreContract:
    def test_save_and_get(self, store: PlanStore) -> None:
        store.save(_plan("p1", segment="smb", horizon_months=6))
        loaded = store.get("p1")
        assert loaded.title == "Plan p1"
        assert loaded.segment == "smb"
        assert loaded.horizon_months == 6
        assert loaded.created_at is not None

    def test_missing_plan_raises(self, store: PlanStore) -> None:
        with pytest.raises(PlanNotFoundError):
            store.get("missing")
        with pytest.raises(PlanNotFoundError):
            store.delete("missing")

    def test_saving_active_plan_pauses_others(self, store: PlanStore) -> None:
        store.save(_plan("p1"))
        store.save(_plan("p2"))
        assert store.get("p1").status == PlanStatus.PAUSED
        assert store.get_active().id == "p2"
        assert [p.id for p in store.list_by_status(PlanStatus.ACTIVE)] == ["p2"]

    def test_saving_paused_plan_keeps_active(self, store: PlanStore) -> None:
        store.save(_plan("p1"))
        store.save(_plan("p2", status=PlanStatus.PAUSED))
        assert store.get_active().id == "p1"

    def test_resaving_replaces_fields(self, store: PlanStore) -> None:
        store.save(_plan("p1"))
        store.save(_plan("p1", title="Renamed"))
        assert store.get("p1").title == "Renamed"
        assert len(store.list_all()) == 1

    def test_delete(self, store: PlanStore) -> None:
        store.save(_plan("p1"))
        store.delete("p1")
        assert store.list_all() == []
        assert store.get_active() is None

    def test_archive_active_cancels_with_reason(self, store: PlanStore) -> None:
        store.save(_plan("p1"))
        archived = store.archive_active(status=PlanStatus.CANCELLED, reason="budget cut")
        assert archived is not None
        assert archived.status == PlanStatus.CANCELLED
        assert archived.cancellation_reason == "budget cut"
        assert store.get_active() is None

    def test_archive_without_active_plan(self, store: PlanStore) -> None:
        store.save(_plan("p1", status=PlanStatus.PAUSED))
        assert store.archive_active() is None

    def test_archive_into_active_is_rejected(self, store: PlanStore) -> None:
        with pytest.raises(ValueError):
            store.archive_active(status=PlanStatus.ACTIVE)

    def test_unknown_status_filter(self, store: PlanStore) -> None:
        with pytest.raises(ValueError, match="Unknown plan status"):
            store.list_by_status("archived")


# ---------------------------------------------------------------------------
# SQLAlchemy specifics
# ---------------------------------------------------------------------------


class TestSQLAlchemyPlanStore:
    def test_json_columns_round_trip(self, db_session: Session) -> None:
        store = SQLAlchemyPlanStore(db_session)
        metrics = PlanMetrics(
            cac=120.0,
            ticket_medio=300.0,
            churn_rate=2.5,
            new_clients_per_month=4.0,
            mrr=9000.0,
            ltv=12000.0,
            total_clients=30,
        )
        scenario = SavedScenario(
            id="s1",
            name="Aggressive",
            cac=150.0,
            ticket_medio=320.0,
            churn_rate=2.0,
            new_clients_per_month=8.0,
            horizon_months=12,
            created_at=datetime(2024, 1, 2, 10, 30, tzinfo=timezone.utc),
        )
        store.save(
            _plan(
                "p1",
                current_metrics=metrics,
                simulated_metrics={"cac": 150.0},
                actions=[{"title": "Launch referral program", "done": False}],
                scenarios=[scenario],
            )
        )
        db_session.commit()
        db_session.expire_all()

        loaded = store.get("p1")
        assert loaded.current_metrics == metrics
        assert loaded.simulated_metrics == {"cac": 150.0}
        assert loaded.actions == [{"title": "Launch referral program", "done": False}]
        assert loaded.scenarios == [scenario]

    def test_store_never_commits(self, db_session: Session, session_factory) -> None:
        SQLAlchemyPlanStore(db_session).save(_plan("p1"))
        db_session.rollback()
        other = session_factory()
        try:
            assert SQLAlchemyPlanStore(other).list_all() == []
        finally:
            other.close()
