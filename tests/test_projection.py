"""
tests/test_projection.py

MRR projection and plan scenario simulation.
"""

from __future__ import annotations

from datetime import date

import pytest

from kpi.history import MrrPoint
from kpi.projection import (
    INFINITE_ROI_SENTINEL,
    Scenario,
    average_growth_rate,
    project_mrr,
    simulate_scenario,
)


def _history(*values: float) -> list[MrrPoint]:
    return [
        MrrPoint(month=f"m{i}", month_start=date(2024, i + 1, 1), mrr=value)
        for i, value in enumerate(values)
    ]


class TestGrowthRate:
    def test_average_of_month_over_month_rates(self) -> None:
        assert average_growth_rate(_history(100.0, 110.0, 121.0)) == pytest.approx(0.1)

    def test_zero_predecessors_are_skipped(self) -> None:
        assert average_growth_rate(_history(0.0, 100.0, 200.0)) == pytest.approx(1.0)

    def test_lookback_window(self) -> None:
        assert average_growth_rate(_history(100.0, 50.0, 100.0, 110.0), lookback=2) == pytest.approx(0.1)

    def test_short_history(self) -> None:
        assert average_growth_rate(_history(100.0)) == 0.0
        assert average_growth_rate([]) == 0.0


class TestProjectMrr:
    def test_compounds_forward(self) -> None:
        projection = project_mrr(_history(100.0, 110.0, 121.0), months=2, as_of=date(2024, 3, 15))
        assert projection.current_mrr == 121.0
        assert [p.month for p in projection.points] == ["abr/24", "mai/24"]
        assert [p.projected_mrr for p in projection.points] == pytest.approx([133.1, 146.41])
        assert projection.points[-1].projected_arr == pytest.approx(146.41 * 12)
        assert projection.arr_growth_pct == pytest.approx((146.41 - 121.0) / 121.0 * 100)

    def test_empty_history(self) -> None:
        projection = project_mrr([], months=3, as_of=date(2024, 1, 1))
        assert projection.current_mrr == 0.0
        assert projection.growth_rate == 0.0
        assert projection.arr_growth_pct == 0.0
        assert [p.projected_mrr for p in projection.points] == [0.0, 0.0, 0.0]


class TestSimulateScenario:
    def test_compounding_client_base(self) -> None:
        outcome = simulate_scenario(
            10,
            Scenario(cac=100.0, ticket_medio=200.0, churn_rate=10.0, new_clients_per_month=2, horizon_months=3),
        )
        assert outcome.projected_clients == 13
        assert outcome.mrr == 2600.0
        assert outcome.arr == 31200.0
        assert outcome.ltv == pytest.approx(2000.0)
        assert outcome.total_cost == 600.0
        assert outcome.total_revenue == 7800.0
        assert outcome.profit == 7200.0
        assert outcome.roi == pytest.approx(1200.0)
        assert list(outcome.monthly_mrr) == pytest.approx([2200.0, 2380.0, 2542.0])

    def test_zero_churn_ltv(self) -> None:
        outcome = simulate_scenario(5, Scenario(cac=0.0, ticket_medio=100.0, churn_rate=0.0, new_clients_per_month=0))
        assert outcome.ltv == 2400.0
        assert outcome.roi == INFINITE_ROI_SENTINEL

    def test_no_cost_no_revenue(self) -> None:
        outcome = simulate_scenario(0, Scenario(cac=0.0, ticket_medio=0.0, churn_rate=5.0, new_clients_per_month=0))
        assert outcome.roi == 0.0
        assert outcome.projected_clients == 0
