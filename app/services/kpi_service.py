"""
app/services/kpi_service.py

Typed facade over the metrics engine.

All methods operate on pre-fetched, read-only record collections. No
database logic lives here: the caller (see
:mod:`app.services.kpi_orchestrator`) loads a consistent snapshot and
passes its collections in.

The engine functions in ``kpi/`` never log. This facade logs input sizes
and headline results at DEBUG, and emits a WARNING whenever a sentinel or
fallback path shapes the result (no CAC spend, legacy-expense fallback,
degenerate range) so operators can tell a real zero from missing data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from app.config import MetricsSettings, get_metrics_settings
from kpi.financial import CashFlowPoint, FinancialKPIFormula, FinancialMetrics, cash_flow_history
from kpi.history import (
    ChurnPoint,
    MrrPoint,
    RevenuePoint,
    churn_history,
    default_history_range,
    mrr_history,
    revenue_history,
)
from kpi.mrr import mrr_at_date
from kpi.projection import MrrProjection, project_mrr
from kpi.ranking import RankedClient, RankingFilter, RankingSort, rank_clients_by_ltv
from kpi.ratios import RatioKind
from kpi.revenue import RevenueBasis
from kpi.saas import MetricsBundle, SaaSKPIFormula
from kpi.temporal import months_in_range
from kpi.types import BillingSnapshot, Client, ClientAddon, DateRange, LegacyExpense, Transaction

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeriodComparison:
    """
    Two metric bundles and the per-field percentage change between them.

    ``changes[name]`` is ``(current - previous) / |previous| * 100`` or
    ``None`` when the previous value is 0 or either side is a sentinel.
    """

    current: MetricsBundle
    previous: MetricsBundle
    changes: dict[str, float | None] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class KPIService:
    """
    Stateless, deterministic metrics engine facade.

    Usage::

        service = KPIService()
        bundle = service.compute_metrics(clients, addons, transactions,
                                         date(2024, 1, 1), date(2024, 1, 31))
        print(bundle.mrr)
    """

    def __init__(self, settings: MetricsSettings | None = None) -> None:
        self._settings = settings or get_metrics_settings()

    @property
    def settings(self) -> MetricsSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Period metrics
    # ------------------------------------------------------------------

    def compute_metrics(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon],
        transactions: Sequence[Transaction],
        start: date,
        end: date,
        *,
        expenses: Sequence[LegacyExpense] = (),
    ) -> MetricsBundle:
        """
        Compute the full KPI bundle for the inclusive range ``[start, end]``.

        Returns
        -------
        MetricsBundle
            Zero-denominator ratios are already resolved to 0 or the
            -1 / 99 sentinels.
        """
        logger.debug(
            "Computing metrics for %s..%s over %d clients, %d add-ons, %d transactions",
            start,
            end,
            len(clients),
            len(addons),
            len(transactions),
        )
        if end < start:
            logger.warning("Inverted metrics range %s..%s; period months clamp to 1.", start, end)

        formula = SaaSKPIFormula(max_lifetime_months=self._settings.max_lifetime_months)
        bundle = formula.calculate(
            BillingSnapshot(
                clients=tuple(clients),
                addons=tuple(addons),
                transactions=tuple(transactions),
                expenses=tuple(expenses),
            ),
            DateRange(start=start, end=end),
        )

        if bundle.used_legacy_expenses:
            logger.warning(
                "No CAC-tagged transactions in %s..%s; using legacy expense rows (%.2f).",
                start,
                end,
                bundle.cac_expenses,
            )
        if bundle.ltv_cac.kind == RatioKind.NOT_APPLICABLE:
            logger.warning("LTV/CAC not applicable for %s..%s: no CAC spend recorded.", start, end)

        logger.debug(
            "Metrics computed: mrr=%.2f active=%d churn_monthly=%.4f ltv=%.2f cac=%.2f",
            bundle.mrr,
            bundle.active_clients,
            bundle.churn_rate_monthly,
            bundle.ltv,
            bundle.cac,
        )
        return bundle

    def compute_comparison(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon],
        transactions: Sequence[Transaction],
        current_range: tuple[date, date],
        comparison_range: tuple[date, date],
        *,
        expenses: Sequence[LegacyExpense] = (),
    ) -> PeriodComparison:
        """Compute both bundles and their per-field percentage change."""
        current = self.compute_metrics(
            clients, addons, transactions, *current_range, expenses=expenses
        )
        previous = self.compute_metrics(
            clients, addons, transactions, *comparison_range, expenses=expenses
        )
        return PeriodComparison(
            current=current,
            previous=previous,
            changes=_percentage_changes(current, previous),
        )

    def compute_mrr_at(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon],
        at: date,
    ) -> float:
        mrr = mrr_at_date(clients, addons, at)
        logger.debug("MRR at %s computed from %d clients: %.4f", at, len(clients), mrr)
        return mrr

    # ------------------------------------------------------------------
    # Historical series
    # ------------------------------------------------------------------

    def history_range(
        self,
        start: date | None = None,
        end: date | None = None,
        *,
        today: date | None = None,
    ) -> tuple[date, date]:
        """
        Resolve the range of a history request.

        Without bounds, the trailing ``default_history_months`` whole months
        ending with the month of *today* are used.
        """
        if start is not None and end is not None:
            return start, end
        return default_history_range(today or date.today(), self._settings.default_history_months)

    def compute_mrr_history(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon],
        start: date | None = None,
        end: date | None = None,
        *,
        today: date | None = None,
    ) -> list[MrrPoint]:
        start, end = self.history_range(start, end, today=today)
        self._warn_if_empty_walk(start, end, "MRR")
        return mrr_history(clients, addons, start, end, locale=self._settings.month_label_locale)

    def compute_churn_history(
        self,
        clients: Sequence[Client],
        start: date | None = None,
        end: date | None = None,
        *,
        today: date | None = None,
    ) -> list[ChurnPoint]:
        start, end = self.history_range(start, end, today=today)
        self._warn_if_empty_walk(start, end, "churn")
        return churn_history(clients, start, end, locale=self._settings.month_label_locale)

    def compute_revenue_history(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon],
        start: date | None = None,
        end: date | None = None,
        *,
        basis: str = RevenueBasis.MRR,
        today: date | None = None,
    ) -> list[RevenuePoint]:
        start, end = self.history_range(start, end, today=today)
        self._warn_if_empty_walk(start, end, "revenue")
        return revenue_history(
            clients,
            addons,
            start,
            end,
            basis=basis,
            locale=self._settings.month_label_locale,
        )

    def compute_cash_flow_history(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon],
        transactions: Sequence[Transaction],
        start: date | None = None,
        end: date | None = None,
        *,
        today: date | None = None,
    ) -> list[CashFlowPoint]:
        start, end = self.history_range(start, end, today=today)
        return cash_flow_history(clients, addons, transactions, start, end)

    # ------------------------------------------------------------------
    # Financial statement, projection and ranking
    # ------------------------------------------------------------------

    def compute_financial_metrics(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon],
        transactions: Sequence[Transaction],
        start: date,
        end: date,
    ) -> FinancialMetrics:
        """
        Statement metrics where subscription and setup revenue come from
        the same month walk as ``faturamento_real``.
        """
        result = FinancialKPIFormula().calculate(
            BillingSnapshot(
                clients=tuple(clients),
                addons=tuple(addons),
                transactions=tuple(transactions),
            ),
            DateRange(start=start, end=end),
        )
        logger.debug(
            "Financial metrics for %s..%s: revenue=%.2f expenses=%.2f burn=%.2f",
            start,
            end,
            result.total_revenue,
            result.total_expenses,
            result.burn_rate,
        )
        return result

    def compute_projection(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon],
        *,
        today: date | None = None,
    ) -> MrrProjection:
        """Project MRR forward from the trailing lookback window ending this month."""
        today = today or date.today()
        start, end = default_history_range(today, self._settings.projection_lookback_months)
        history = mrr_history(clients, addons, start, end, locale=self._settings.month_label_locale)
        projection = project_mrr(
            history,
            months=self._settings.projection_months,
            lookback=self._settings.projection_lookback_months,
            as_of=today,
            locale=self._settings.month_label_locale,
        )
        logger.debug(
            "MRR projection: current=%.2f growth=%.6f arr_growth_pct=%.2f",
            projection.current_mrr,
            projection.growth_rate,
            projection.arr_growth_pct,
        )
        return projection

    def rank_clients_by_ltv(
        self,
        clients: Sequence[Client],
        addons: Sequence[ClientAddon] = (),
        *,
        status: str = RankingFilter.ALL,
        sort_by: str = RankingSort.LTV,
        as_of: date | None = None,
    ) -> list[RankedClient]:
        ranked = rank_clients_by_ltv(clients, addons, status=status, sort_by=sort_by, as_of=as_of)
        logger.debug("Ranked %d clients (status=%s, sort_by=%s)", len(ranked), status, sort_by)
        return ranked

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _warn_if_empty_walk(self, start: date, end: date, series: str) -> None:
        if not months_in_range(start, end):
            logger.warning(
                "%s history range %s..%s holds no whole month; returning an empty series.",
                series,
                start,
                end,
            )


def _percentage_changes(current: MetricsBundle, previous: MetricsBundle) -> dict[str, float | None]:
    current_values = current.to_dict()
    previous_values = previous.to_dict()
    tagged = {
        "ltv_cac_ratio": (current.ltv_cac, previous.ltv_cac),
        "quick_ratio": (current.quick, previous.quick),
    }

    changes: dict[str, float | None] = {}
    for name, value in current_values.items():
        if name in tagged and not all(ratio.is_value for ratio in tagged[name]):
            changes[name] = None
            continue
        changes[name] = percentage_change(float(value), float(previous_values[name]))
    return changes


def percentage_change(current: float, previous: float) -> float | None:
    """(current - previous) / |previous| * 100, or None when previous is 0."""
    if previous == 0:
        return None
    return (current - previous) / abs(previous) * 100
